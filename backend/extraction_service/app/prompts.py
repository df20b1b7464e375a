"""Prompt used to extract pain points and call metadata from a transcript."""

from datetime import date

EXTRACTION_PROMPT_TEMPLATE = """You are an expert at analyzing sales call transcripts and extracting customer needs and company information.

IMPORTANT: You must respond with ONLY valid JSON. Do not include any explanatory text, markdown formatting, or code blocks. Return only the JSON object.

Today's date is {current_date}. Use it to turn relative timelines into calendar dates.

Extract the following from the transcript:
1. Company Name: The name of the customer/client company that the sales rep is talking to. This should be the official company name.
2. Customer Name: The name of the person at the customer company the sales rep is speaking with. Omit if unknown.
3. Call Summary: Two or three sentences summarizing the call.
4. Customer Needs: For each customer need, identify:
   - Pain Point: The specific problem, challenge, or need mentioned by the customer
   - Urgency: A number from 1-5 where:
     - 1 = Very low urgency (mentioned casually, no timeline)
     - 2 = Low urgency (mentioned but not pressing)
     - 3 = Medium urgency (some timeline mentioned)
     - 4 = High urgency (specific deadline or blocking issue)
     - 5 = Critical urgency (urgent, ASAP, blocking, critical)
   - Mentioned Timeline: Extract any timeline mentioned (e.g., "Q3 2024", "September", "next quarter", "in 6 months", "before Q3", "by end of year"). If no timeline is mentioned, omit this field.
   - Calculated Date: If a timeline is mentioned, the follow-up date it implies as YYYY-MM-DD, relative to today's date. Omit if it cannot be determined.
   - Raw Quote: The exact quote or sentence from the transcript where this pain point was mentioned (1-3 sentences). If you cannot find a specific quote, omit this field.
   - Person Mentioned: The person who raised this pain point, if named. Omit otherwise.

Return ONLY a JSON object in this format:
{{
  "organization_name": "Acme Corporation",
  "customer_name": "Jane Doe",
  "call_summary": "Jane described compliance pressure and a migration planned for next quarter.",
  "needs": [
    {{
      "painPoint": "SOC2 compliance",
      "urgency": 4,
      "mentionedTimeline": "Before Q3",
      "calculatedDate": "2024-07-01",
      "rawQuote": "honestly right now we are struggling with SOC2 compliance. We need to solve that before Q3.",
      "personMentioned": "Jane Doe"
    }}
  ]
}}"""


def build_extraction_prompt(current_date: date) -> str:
    return EXTRACTION_PROMPT_TEMPLATE.format(current_date=current_date.isoformat())
