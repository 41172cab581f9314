"""RequestOrchestrator — drives validate → encode → analyze for one session."""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from page_explainer.analysis import (
    AnalysisClient,
    AnalysisFailure,
    AnalysisOutcome,
    AnalysisSuccess,
)
from page_explainer.constants import (
    MSG_ANALYSIS_START,
    MSG_NO_IMAGE,
    MSG_STATUS_CHANGE,
    MSG_SUBMIT_IGNORED,
    MSG_TRIGGER_IGNORED,
)
from page_explainer.errors import ErrorKind, PipelineError
from page_explainer.images.encoder import PreviewSlot, encode_image
from page_explainer.images.validator import ImageCandidate, validate_candidate

logger = logging.getLogger(__name__)


class AnalysisStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class SessionView:
    """What a UI needs to render the current session."""
    status: AnalysisStatus
    file_name: Optional[str] = None
    preview_path: Optional[Path] = None
    result: Optional[AnalysisSuccess] = None
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


StatusListener = Callable[[SessionView], None]


class RequestOrchestrator:
    """Owns the current candidate, preview and outcome. One analysis in flight at most."""

    def __init__(self, client: AnalysisClient, previews: Optional[PreviewSlot] = None) -> None:
        self._client = client
        self._previews = previews or PreviewSlot()
        self._status = AnalysisStatus.IDLE
        self._candidate: Optional[ImageCandidate] = None
        self._outcome: Optional[AnalysisOutcome] = None
        self._task: Optional[asyncio.Task] = None
        self._listeners: list[StatusListener] = []

    # ── state ─────────────────────────────────────────────────────────────────

    @property
    def status(self) -> AnalysisStatus:
        return self._status

    @property
    def candidate(self) -> Optional[ImageCandidate]:
        return self._candidate

    @property
    def outcome(self) -> Optional[AnalysisOutcome]:
        return self._outcome

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    def view(self) -> SessionView:
        preview = self._previews.current
        match self._outcome:
            case AnalysisSuccess() as success:
                result, error_message, error_kind = success, None, None
            case AnalysisFailure(message=message, kind=kind):
                result, error_message, error_kind = None, message, kind
            case _:
                result, error_message, error_kind = None, None, None
        return SessionView(
            status=self._status,
            file_name=self._candidate.file_name if self._candidate else None,
            preview_path=preview.path if preview else None,
            result=result,
            error_message=error_message,
            error_kind=error_kind,
        )

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # ── commands ──────────────────────────────────────────────────────────────

    def submit_image(self, candidate: ImageCandidate) -> bool:
        """Attach a new candidate, dropping any prior preview, result or error."""
        match self.in_flight:
            case True:
                logger.debug(MSG_SUBMIT_IGNORED)
                return False
            case False:
                pass
        self._previews.clear()
        self._candidate = candidate
        self._outcome = None
        self._set_status(AnalysisStatus.IDLE)
        return True

    async def trigger_analysis(self) -> Optional[AnalysisOutcome]:
        """Run one attempt. Returns None when ignored or superseded by reset()."""
        match (self._candidate, self.in_flight):
            case (_, True):
                logger.debug(MSG_TRIGGER_IGNORED)
                return None
            case (None, _):
                logger.debug(MSG_NO_IMAGE)
                return None
            case (candidate, False):
                pass

        self._outcome = None
        self._set_status(AnalysisStatus.UPLOADING)
        task = asyncio.create_task(self._run(candidate))
        self._task = task
        try:
            outcome = await task
        except asyncio.CancelledError:
            match self._task is task:
                case True:
                    # The caller was cancelled, not the attempt; leave a terminal state.
                    self._task = None
                    self._finish(
                        AnalysisFailure(
                            message=ErrorKind.UNEXPECTED.default_message,
                            kind=ErrorKind.UNEXPECTED,
                        )
                    )
                    raise
                case False:
                    return None
        match self._task is task:
            case True:
                self._task = None
                self._finish(outcome)
                return outcome
            case False:
                return None

    def reset(self) -> None:
        """Discard candidate, preview and outcome; cancel any in-flight attempt."""
        match self._task:
            case None:
                pass
            case task:
                self._task = None
                task.cancel()
        self._previews.clear()
        self._candidate = None
        self._outcome = None
        self._set_status(AnalysisStatus.IDLE)

    # ── pipeline ──────────────────────────────────────────────────────────────

    async def _run(self, candidate: ImageCandidate) -> AnalysisOutcome:
        logger.info(MSG_ANALYSIS_START, candidate.file_name, candidate.mime_type, candidate.size)
        try:
            match validate_candidate(candidate):
                case None:
                    pass
                case kind:
                    raise PipelineError(kind)
            encoded = await encode_image(candidate, self._previews)
            self._set_status(AnalysisStatus.ANALYZING)
            return await self._client.analyze(encoded)
        except PipelineError as exc:
            return AnalysisFailure(message=exc.message, kind=exc.kind)
        except Exception:
            logger.exception(ErrorKind.UNEXPECTED.default_message)
            return AnalysisFailure(
                message=ErrorKind.UNEXPECTED.default_message,
                kind=ErrorKind.UNEXPECTED,
            )

    def _finish(self, outcome: AnalysisOutcome) -> None:
        self._outcome = outcome
        match outcome:
            case AnalysisSuccess():
                self._set_status(AnalysisStatus.COMPLETE)
            case AnalysisFailure():
                self._set_status(AnalysisStatus.ERROR)

    def _set_status(self, status: AnalysisStatus) -> None:
        if status is not self._status:
            logger.debug(MSG_STATUS_CHANGE, self._status.value, status.value)
        self._status = status
        view = self.view()
        list(map(lambda listener: listener(view), self._listeners[:]))
