"""End-to-end extraction: transcript in, company/call/insight rows out."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import ClassVar, Optional, Protocol, Union

from backend.common.errors import EmptyTranscript, MissingCompanyName, PipelineError
from backend.common.models import InsightStatus, TranscriptAnalysis
from backend.common.models_db import Call, Company, Insight
from backend.extraction_service.app.normalizer import parse_model_output
from backend.extraction_service.app.prompts import build_extraction_prompt
from backend.extraction_service.app.reconciler import (
    ReimportPolicy,
    company_lock,
    reconcile_company,
    replace_company_insights,
)
from backend.extraction_service.app.timeline import resolve_follow_up_date
from backend.extraction_service.app.validator import analyze_payload

logger = logging.getLogger("extraction_service")


class CompletionClient(Protocol):
    def complete(self, system_prompt: str, user_content: str) -> str: ...


@dataclass
class ExtractionResult:
    company: Company
    call: Call
    insights: list[Insight] = field(default_factory=list)
    company_created: bool = False
    purged_insights: int = 0

    ok: ClassVar[bool] = True


@dataclass
class PreviewResult:
    analysis: TranscriptAnalysis

    ok: ClassVar[bool] = True


@dataclass
class ExtractionFailure:
    kind: str
    message: str
    error: Optional[PipelineError] = None

    ok: ClassVar[bool] = False

    @classmethod
    def from_error(cls, error: PipelineError) -> "ExtractionFailure":
        return cls(kind=error.kind, message=error.message, error=error)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


ExtractionOutcome = Union[ExtractionResult, ExtractionFailure]


class TranscriptExtractor:
    """Runs one transcript through the LLM and reconciles the result.

    Holds no state between calls; each ``extract`` is an independent
    sequence of commits with no rollback of rows already written.
    """

    def __init__(
        self,
        llm_client: CompletionClient,
        store,
        reimport_policy: ReimportPolicy = replace_company_insights,
    ) -> None:
        self.llm_client = llm_client
        self.store = store
        self.reimport_policy = reimport_policy

    async def extract(self, transcript: str, current_date: Optional[date] = None) -> ExtractionOutcome:
        try:
            return await self._extract(transcript, current_date or date.today())
        except PipelineError as e:
            logger.error("Extraction failed (%s): %s", e.kind, e.message)
            return ExtractionFailure.from_error(e)

    async def preview(
        self, transcript: str, current_date: Optional[date] = None
    ) -> Union[PreviewResult, ExtractionFailure]:
        """Analyze without touching the store."""
        try:
            analysis = await self.analyze(transcript, current_date or date.today())
        except PipelineError as e:
            logger.error("Preview failed (%s): %s", e.kind, e.message)
            return ExtractionFailure.from_error(e)
        return PreviewResult(analysis=analysis)

    async def analyze(self, transcript: str, current_date: date) -> TranscriptAnalysis:
        """Prompt the model, then normalize, validate and date its answer."""
        if not isinstance(transcript, str) or not transcript.strip():
            raise EmptyTranscript()

        logger.info("Analyzing transcript (length: %d chars) as of %s", len(transcript), current_date)
        completion = await asyncio.to_thread(
            self.llm_client.complete,
            build_extraction_prompt(current_date),
            transcript,
        )
        analysis = analyze_payload(parse_model_output(completion))

        for insight in analysis.insights:
            insight.follow_up_date = resolve_follow_up_date(
                insight.mentioned_timeline, insight.calculated_date, current_date
            )
        logger.info(
            "Model returned company=%r with %d valid insights",
            analysis.company_name, len(analysis.insights),
        )
        return analysis

    async def _extract(self, transcript: str, current_date: date) -> ExtractionResult:
        analysis = await self.analyze(transcript, current_date)
        if not analysis.company_name:
            raise MissingCompanyName()

        async with company_lock(analysis.company_name):
            reconciliation = await reconcile_company(
                self.store, analysis.company_name, self.reimport_policy
            )
            company = reconciliation.company

            call = await self.store.create_call({
                "company_id": company.id,
                "transcript_text": transcript,
                "customer_name": analysis.customer_name,
                "call_summary": analysis.call_summary,
            })
            logger.info("Saved call %s for company %s (id=%s)", call.id, company.name, company.id)

            insights = await self.store.insert_insights([
                {
                    "call_id": call.id,
                    "pain_point_description": candidate.pain_point_description,
                    "raw_quote": candidate.raw_quote,
                    "person_mentioned": candidate.person_mentioned,
                    "urgency_level": candidate.urgency_level,
                    "mentioned_timeline": candidate.mentioned_timeline,
                    "follow_up_date": candidate.follow_up_date,
                    "status": InsightStatus.to_do.value,
                }
                for candidate in analysis.insights
            ])

        if not insights:
            logger.warning("No valid insights extracted from transcript for call %s", call.id)
        logger.info(
            "Extraction complete: company=%s call=%s insights=%d purged=%d",
            company.id, call.id, len(insights), reconciliation.purged_insights,
        )
        return ExtractionResult(
            company=company,
            call=call,
            insights=insights,
            company_created=reconciliation.created,
            purged_insights=reconciliation.purged_insights,
        )
