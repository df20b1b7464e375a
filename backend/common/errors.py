"""Typed failures raised inside the pipeline and surfaced to callers."""

from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    """Base class for every failure the pipeline reports to its callers."""

    kind = "PipelineError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class EmptyTranscript(PipelineError):
    kind = "EmptyTranscript"

    def __init__(self, message: str = "Transcript is required and must be a non-empty string") -> None:
        super().__init__(message)


class UpstreamUnavailable(PipelineError):
    """The LLM backend could not be reached or answered with a non-2xx status."""

    kind = "UpstreamUnavailable"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedModelOutput(PipelineError):
    """The model completion did not contain parseable JSON."""

    kind = "MalformedModelOutput"

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class MissingCompanyName(PipelineError):
    kind = "MissingCompanyName"

    def __init__(self, message: str = "Could not extract company name from transcript") -> None:
        super().__init__(message)


class PersistenceFailure(PipelineError):
    kind = "PersistenceFailure"


class InvalidStatusValue(PipelineError):
    kind = "InvalidStatusValue"


class InsightNotFound(PipelineError):
    kind = "InsightNotFound"


class CompanyNotFound(PipelineError):
    kind = "CompanyNotFound"
