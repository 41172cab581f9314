"""Error taxonomy for the analysis pipeline and its wire-level codes."""
from enum import Enum

from page_explainer.constants import (
    MSG_AUTH_ERROR,
    MSG_CONTENT_REJECTED,
    MSG_EMPTY_PAYLOAD,
    MSG_EMPTY_RESPONSE,
    MSG_ENCODING_FAILED,
    MSG_FILE_TOO_LARGE,
    MSG_QUOTA_EXCEEDED,
    MSG_UNEXPECTED_ERROR,
    MSG_UNKNOWN_PROVIDER_ERROR,
    MSG_UNSUPPORTED_FORMAT,
)

CODE_INVALID_INPUT = "INVALID_INPUT"
CODE_API_ERROR = "API_ERROR"
CODE_UNKNOWN = "UNKNOWN"


class ErrorKind(Enum):
    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    FILE_TOO_LARGE = "FileTooLarge"
    INVALID_INPUT = "InvalidInput"
    ENCODING_FAILED = "EncodingFailed"
    AUTH_ERROR = "AuthError"
    QUOTA_EXCEEDED = "QuotaExceeded"
    CONTENT_REJECTED = "ContentRejected"
    EMPTY_RESPONSE = "EmptyResponse"
    UNKNOWN_PROVIDER_ERROR = "UnknownProviderError"
    UNEXPECTED = "Unexpected"

    @property
    def code(self) -> str:
        """Wire code reported in failure payloads."""
        match self:
            case ErrorKind.UNSUPPORTED_FORMAT | ErrorKind.FILE_TOO_LARGE | ErrorKind.INVALID_INPUT:
                return CODE_INVALID_INPUT
            case ErrorKind.UNEXPECTED:
                return CODE_UNKNOWN
            case _:
                return CODE_API_ERROR

    @property
    def is_input_error(self) -> bool:
        return self.code == CODE_INVALID_INPUT

    @property
    def default_message(self) -> str:
        return _DEFAULT_MESSAGES[self]


_DEFAULT_MESSAGES = {
    ErrorKind.UNSUPPORTED_FORMAT: MSG_UNSUPPORTED_FORMAT,
    ErrorKind.FILE_TOO_LARGE: MSG_FILE_TOO_LARGE,
    ErrorKind.INVALID_INPUT: MSG_EMPTY_PAYLOAD,
    ErrorKind.ENCODING_FAILED: MSG_ENCODING_FAILED,
    ErrorKind.AUTH_ERROR: MSG_AUTH_ERROR,
    ErrorKind.QUOTA_EXCEEDED: MSG_QUOTA_EXCEEDED,
    ErrorKind.CONTENT_REJECTED: MSG_CONTENT_REJECTED,
    ErrorKind.EMPTY_RESPONSE: MSG_EMPTY_RESPONSE,
    ErrorKind.UNKNOWN_PROVIDER_ERROR: MSG_UNKNOWN_PROVIDER_ERROR,
    ErrorKind.UNEXPECTED: MSG_UNEXPECTED_ERROR,
}


class PipelineError(Exception):
    """A failure at one pipeline stage, already classified."""

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or kind.default_message
        super().__init__(self.message)


class ProviderError(PipelineError):
    """Raised by vision backends when the SDK exposes a structured failure signal."""
