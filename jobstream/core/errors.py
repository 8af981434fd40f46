"""Error taxonomy for the search service.

Failures are tagged with an explicit kind where they originate; the
user-facing wording lives in one table here instead of being guessed from
exception text further up the stack.
"""

from enum import Enum


class JobStreamError(Exception):
    """Base class for every error raised by this package."""

    code = "SEARCH_ERROR"


class SearchValidationError(JobStreamError):
    """The search request carries no usable profile signal. Raised pre-stream."""

    code = "INVALID_PROFILE"


class ConfigurationError(JobStreamError):
    """No provider has credentials configured. Raised pre-stream."""

    code = "NO_PROVIDERS"


class ProviderErrorKind(str, Enum):
    TIMEOUT = "timeout"
    HTTP = "http"
    PARSE = "parse"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"


class ProviderError(JobStreamError):
    """A single adapter failed. Non-fatal: reported as a status event."""

    code = "PROVIDER_ERROR"

    def __init__(self, provider: str, kind: ProviderErrorKind, detail: str = "") -> None:
        self.provider = provider
        self.kind = kind
        self.detail = detail
        super().__init__(f"{provider}: {kind.value}" + (f" ({detail})" if detail else ""))


class ScoringError(JobStreamError):
    """Scoring a listing failed. The listing is delivered unscored."""

    code = "SCORING_ERROR"


class DeadlineExceeded(JobStreamError):
    """The session deadline elapsed. Triggers early finalization, not failure."""

    code = "DEADLINE_EXCEEDED"


class TransportError(JobStreamError):
    """The stream broke on the consumer side before a terminal frame."""

    code = "TRANSPORT_ERROR"


class ProfileExtractionErrorKind(str, Enum):
    TOO_SHORT = "too_short"
    SERVICE_UNAVAILABLE = "service_unavailable"
    RATE_LIMITED = "rate_limited"


class ProfileExtractionError(JobStreamError):
    """The profile extractor could not turn resume text into a profile."""

    code = "PROFILE_EXTRACTION_ERROR"

    def __init__(self, kind: ProfileExtractionErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(detail or user_message(kind))


class DocumentErrorKind(str, Enum):
    UNSUPPORTED_FORMAT = "unsupported_format"
    NO_EXTRACTABLE_TEXT = "no_extractable_text"
    CORRUPTED = "corrupted"
    TIMEOUT = "timeout"


class DocumentError(JobStreamError):
    """Text extraction from an uploaded document failed."""

    code = "DOCUMENT_ERROR"

    def __init__(self, kind: DocumentErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(detail or user_message(kind))


_USER_MESSAGES: dict[Enum, str] = {
    ProviderErrorKind.TIMEOUT: "The provider took too long to respond and was skipped.",
    ProviderErrorKind.HTTP: "The provider returned an error and was skipped.",
    ProviderErrorKind.PARSE: "The provider sent a response we could not read.",
    ProviderErrorKind.UNAUTHORIZED: (
        "The provider rejected our credentials. Check the configured API key."
    ),
    ProviderErrorKind.RATE_LIMITED: (
        "The provider's request quota is used up. It is paused and will be retried later."
    ),
    ProfileExtractionErrorKind.TOO_SHORT: (
        "The resume text is too short to extract a profile from."
    ),
    ProfileExtractionErrorKind.SERVICE_UNAVAILABLE: (
        "The resume analysis service is unavailable. Please try again later."
    ),
    ProfileExtractionErrorKind.RATE_LIMITED: (
        "The resume analysis service is busy. Please wait a moment and try again."
    ),
    DocumentErrorKind.UNSUPPORTED_FORMAT: "Unsupported file type. Upload a PDF or TXT file.",
    DocumentErrorKind.NO_EXTRACTABLE_TEXT: (
        "No text could be extracted from the document. It may be a scanned image."
    ),
    DocumentErrorKind.CORRUPTED: "The document appears to be damaged and could not be read.",
    DocumentErrorKind.TIMEOUT: "Reading the document took too long.",
}


def user_message(kind: Enum) -> str:
    """Return the user-facing text for an error kind."""
    return _USER_MESSAGES.get(kind, "Something went wrong. Please try again.")
