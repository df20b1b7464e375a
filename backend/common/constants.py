"""Shared constants for the extraction pipeline and API."""

DEFAULT_COMPANY_LIST_LIMIT = 500

# Reasoning models emit chain-of-thought ahead of this marker.
REASONING_MARKER = "</think>"

MIN_URGENCY = 1
MAX_URGENCY = 5

# Customers with at least this many calls are shown as "existing".
EXISTING_CUSTOMER_CALL_THRESHOLD = 3
