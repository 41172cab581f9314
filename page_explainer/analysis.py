"""AnalysisClient — one image in, one tagged outcome out."""
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from page_explainer.constants import (
    ANALYSIS_PROMPT,
    ERR_MARKER_AUTH,
    ERR_MARKER_QUOTA,
    ERR_MARKER_SAFETY,
    MAX_BASE64_RATIO,
    MAX_FILE_SIZE,
    MSG_ANALYSIS_FAIL,
    MSG_ANALYSIS_OK,
    MSG_EMPTY_PAYLOAD,
    MSG_FILE_TOO_LARGE,
    MSG_MISSING_FILENAME,
    MSG_PROVIDER_ERROR,
    MSG_UNKNOWN_PROVIDER_ERROR,
    MSG_UNSUPPORTED_FORMAT,
)
from page_explainer.errors import ErrorKind, ProviderError
from page_explainer.images.encoder import EncodedImage
from page_explainer.images.validator import is_allowed_type
from page_explainer.vision.client import VisionClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisSuccess:
    content: str
    timestamp: str
    success = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": True,
            "data": {"content": self.content, "timestamp": self.timestamp},
        }


@dataclass(frozen=True)
class AnalysisFailure:
    message: str
    kind: ErrorKind
    success = False

    @property
    def code(self) -> str:
        return self.kind.code

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": {"message": self.message, "code": self.code},
        }


AnalysisOutcome = Union[AnalysisSuccess, AnalysisFailure]


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-01T00:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def classify_error_message(message: str) -> ErrorKind:
    """Best-effort mapping of a free-text provider error onto the taxonomy."""
    match message:
        case m if ERR_MARKER_AUTH in m:
            return ErrorKind.AUTH_ERROR
        case m if ERR_MARKER_QUOTA in m:
            return ErrorKind.QUOTA_EXCEEDED
        case m if ERR_MARKER_SAFETY in m:
            return ErrorKind.CONTENT_REJECTED
        case _:
            return ErrorKind.UNKNOWN_PROVIDER_ERROR


def input_problems(image: EncodedImage) -> list[str]:
    """Shape checks repeated here even though the validator ran upstream."""
    problems = []
    if not image.data:
        problems.append(MSG_EMPTY_PAYLOAD)
    elif len(image.data) > MAX_FILE_SIZE * MAX_BASE64_RATIO:
        problems.append(MSG_FILE_TOO_LARGE)
    if not is_allowed_type(image.mime_type):
        problems.append(MSG_UNSUPPORTED_FORMAT)
    if not image.file_name:
        problems.append(MSG_MISSING_FILENAME)
    return problems


def failure_from_exception(exc: Exception) -> AnalysisFailure:
    match exc:
        case ProviderError(kind=kind, message=message):
            return AnalysisFailure(message=message, kind=kind)
        case _:
            raw = str(exc)
            kind = classify_error_message(raw)
            match kind:
                case ErrorKind.UNKNOWN_PROVIDER_ERROR:
                    return AnalysisFailure(message=raw or MSG_UNKNOWN_PROVIDER_ERROR, kind=kind)
                case _:
                    return AnalysisFailure(message=kind.default_message, kind=kind)


class AnalysisClient:
    """Sends an encoded image with the fixed explanation prompt to a vision backend."""

    def __init__(
        self,
        vision: VisionClient,
        prompt: str = ANALYSIS_PROMPT,
        clock: Optional[Callable[[], str]] = None,
    ) -> None:
        self._vision = vision
        self._prompt = prompt
        self._clock = clock or utc_timestamp

    async def analyze(self, image: EncodedImage) -> AnalysisOutcome:
        match input_problems(image):
            case []:
                pass
            case problems:
                return AnalysisFailure(message=", ".join(problems), kind=ErrorKind.INVALID_INPUT)

        start = time.time()
        try:
            text = await self._vision.analyze(image, self._prompt)
        except Exception as exc:
            logger.exception(MSG_PROVIDER_ERROR)
            failure = failure_from_exception(exc)
            logger.error(MSG_ANALYSIS_FAIL, failure.kind.value)
            return failure

        match text.strip() if text else "":
            case "":
                logger.error(MSG_ANALYSIS_FAIL, ErrorKind.EMPTY_RESPONSE.value)
                return AnalysisFailure(
                    message=ErrorKind.EMPTY_RESPONSE.default_message,
                    kind=ErrorKind.EMPTY_RESPONSE,
                )
            case _:
                logger.info(MSG_ANALYSIS_OK, time.time() - start)
                return AnalysisSuccess(content=text, timestamp=self._clock())
