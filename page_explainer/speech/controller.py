"""SpeechController — idle/speaking/paused state machine over a SpeechEngine."""
import itertools
import logging
from enum import Enum
from functools import partial
from typing import Callable, Optional

from page_explainer.constants import (
    MSG_SPEECH_ENGINE_ERROR,
    MSG_SPEECH_STALE_EVENT,
    MSG_SPEECH_UNSUPPORTED,
    MSG_STATUS_CHANGE,
    SPEECH_LANGUAGE,
    SPEECH_PITCH,
    SPEECH_RATE,
    SPEECH_RATE_MAX,
    SPEECH_RATE_MIN,
)
from page_explainer.speech.engine import SpeechEngine, SpeechEvent, UtteranceRequest, Voice
from page_explainer.speech.text import to_speakable

logger = logging.getLogger(__name__)


class SpeechStatus(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"
    PAUSED = "paused"


SpeechListener = Callable[[SpeechStatus], None]


def _validate_rate(rate: float) -> float:
    match rate:
        case r if SPEECH_RATE_MIN <= r <= SPEECH_RATE_MAX:
            return float(r)
        case _:
            raise ValueError(f"Speech rate must be between {SPEECH_RATE_MIN} and {SPEECH_RATE_MAX}")


class SpeechController:
    """Narrates one utterance at a time.

    Every utterance gets a token; engine events carrying an older token are
    dropped, so a rapid stop()/speak() cannot be undone by a late callback.
    Voice and rate are read at speak() time only.
    """

    def __init__(
        self,
        engine: Optional[SpeechEngine],
        language: str = SPEECH_LANGUAGE,
        rate: float = SPEECH_RATE,
    ) -> None:
        self._engine = engine
        self._language = language
        self._rate = _validate_rate(rate)
        self._status = SpeechStatus.IDLE
        self._voices: list[Voice] = []
        self._selected_voice: Optional[Voice] = None
        self._tokens = itertools.count(1)
        self._active: Optional[int] = None
        self._listeners: list[SpeechListener] = []
        match engine:
            case None:
                pass
            case e:
                self._load_voices()
                e.on_voices_changed(self._load_voices)

    # ── configuration ─────────────────────────────────────────────────────────

    @property
    def is_supported(self) -> bool:
        return self._engine is not None

    @property
    def status(self) -> SpeechStatus:
        return self._status

    @property
    def voices(self) -> list[Voice]:
        return list(self._voices)

    @property
    def selected_voice(self) -> Optional[Voice]:
        return self._selected_voice

    def select_voice(self, voice: Optional[Voice]) -> None:
        self._selected_voice = voice

    @property
    def rate(self) -> float:
        return self._rate

    def set_rate(self, rate: float) -> None:
        self._rate = _validate_rate(rate)

    def subscribe(self, listener: SpeechListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def close(self) -> None:
        match self._engine:
            case None:
                return
            case engine:
                self.stop()
                engine.on_voices_changed(None)

    # ── commands ──────────────────────────────────────────────────────────────

    def speak(self, text: str) -> None:
        match self._engine:
            case None:
                logger.warning(MSG_SPEECH_UNSUPPORTED)
                return
            case engine:
                pass

        engine.cancel()
        self._active = None
        self._set_status(SpeechStatus.IDLE)

        token = next(self._tokens)
        self._active = token
        request = UtteranceRequest(
            text=to_speakable(text),
            voice=self._selected_voice,
            rate=self._rate,
            pitch=SPEECH_PITCH,
            lang=self._language,
        )
        try:
            engine.speak(request, partial(self._on_event, token))
        except Exception as exc:
            logger.error(MSG_SPEECH_ENGINE_ERROR, token, exc)
            if self._active == token:
                self._active = None
                self._set_status(SpeechStatus.IDLE)

    def pause(self) -> None:
        match (self._engine, self._status):
            case (engine, SpeechStatus.SPEAKING) if engine is not None:
                engine.pause()
                self._set_status(SpeechStatus.PAUSED)
            case _:
                pass

    def resume(self) -> None:
        match (self._engine, self._status):
            case (engine, SpeechStatus.PAUSED) if engine is not None:
                engine.resume()
                self._set_status(SpeechStatus.SPEAKING)
            case _:
                pass

    def stop(self) -> None:
        match self._engine:
            case None:
                return
            case engine:
                self._active = None
                engine.cancel()
                self._set_status(SpeechStatus.IDLE)

    # ── engine callbacks ──────────────────────────────────────────────────────

    def _on_event(self, token: int, event: SpeechEvent, detail: Optional[str] = None) -> None:
        if token != self._active:
            logger.debug(MSG_SPEECH_STALE_EVENT, event.value, token)
            return
        match (event, self._status):
            case (SpeechEvent.START, _):
                self._set_status(SpeechStatus.SPEAKING)
            case (SpeechEvent.PAUSE, SpeechStatus.SPEAKING):
                self._set_status(SpeechStatus.PAUSED)
            case (SpeechEvent.RESUME, SpeechStatus.PAUSED):
                self._set_status(SpeechStatus.SPEAKING)
            case (SpeechEvent.END, _):
                self._active = None
                self._set_status(SpeechStatus.IDLE)
            case (SpeechEvent.ERROR, _):
                logger.warning(MSG_SPEECH_ENGINE_ERROR, token, detail)
                self._active = None
                self._set_status(SpeechStatus.IDLE)
            case _:
                pass

    def _load_voices(self) -> None:
        match self._engine:
            case None:
                return
            case engine:
                self._voices = engine.voices()
        prefix = self._language.split("-", 1)[0]
        match (self._selected_voice, self._preferred_voice(prefix)):
            case (None, Voice() as preferred):
                self._selected_voice = preferred
            case _:
                pass

    def _preferred_voice(self, prefix: str) -> Optional[Voice]:
        return next((v for v in self._voices if v.lang.startswith(prefix)), None)

    def _set_status(self, status: SpeechStatus) -> None:
        match status is self._status:
            case True:
                return
            case False:
                logger.debug(MSG_STATUS_CHANGE, self._status.value, status.value)
        self._status = status
        list(map(lambda listener: listener(status), self._listeners[:]))
