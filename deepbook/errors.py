# deepbook/errors.py
from __future__ import annotations

from enum import Enum


class DeepbookError(Exception):
    """Base class for every pipeline error."""


class CredentialMissing(DeepbookError):
    """API key absent or still the placeholder; never retried."""


class TransientNetworkError(DeepbookError):
    """Connection failure, non-2xx status or malformed response envelope."""


class ExtractionFailure(str, Enum):
    NO_PAYLOAD = "no_payload_found"
    MALFORMED_PAYLOAD = "malformed_payload"
    INVALID_SCHEMA = "invalid_schema"


class ExtractionError(DeepbookError):
    def __init__(self, kind: ExtractionFailure, message: str = ""):
        self.kind = kind
        super().__init__(f"{kind.value}: {message}" if message else kind.value)


class DuplicateContent(DeepbookError):
    """Fragment identical to the one before it in the same chapter."""

    def __init__(self, ended: bool = False):
        self.ended = ended
        super().__init__("fragment repeats the previous one")


class RetryExhausted(DeepbookError):
    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"gave up after {attempts} attempts: {last_error}")


class GenerationFailed(DeepbookError):
    """A pipeline stage could not produce usable output."""

    def __init__(self, stage: str, attempts: int, reason: str = ""):
        self.stage = stage
        self.attempts = attempts
        self.reason = reason
        msg = f"{stage} failed after {attempts} attempt(s)"
        super().__init__(f"{msg}: {reason}" if reason else msg)
