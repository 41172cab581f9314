"""SpeechEngine — abstract boundary to a text-to-speech backend."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str
    default: bool = False


@dataclass(frozen=True)
class UtteranceRequest:
    text: str
    voice: Optional[Voice]
    rate: float
    pitch: float
    lang: str


class SpeechEvent(str, Enum):
    START = "start"
    END = "end"
    ERROR = "error"
    PAUSE = "pause"
    RESUME = "resume"


# (event, detail); detail carries the engine's error description, if any.
EventCallback = Callable[[SpeechEvent, Optional[str]], None]


class SpeechEngine(ABC):
    """Engines deliver events through the callback passed to speak()."""

    @abstractmethod
    def voices(self) -> list[Voice]: ...

    @abstractmethod
    def on_voices_changed(self, callback: Optional[Callable[[], None]]) -> None:
        """Register (or clear, with None) a hook fired when the voice list updates."""
        ...

    @abstractmethod
    def speak(self, request: UtteranceRequest, on_event: EventCallback) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def resume(self) -> None: ...

    @abstractmethod
    def cancel(self) -> None: ...
