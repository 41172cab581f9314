"""Markdown → plain narration text."""
import re

from page_explainer.constants import SPOKEN_PAUSE_CUE

_HEADING = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_STAR_EMPHASIS = re.compile(r"\*{1,2}([^*]+)\*{1,2}")
_UNDERSCORE_EMPHASIS = re.compile(r"_{1,2}([^_]+)_{1,2}")
_CODE_FENCE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`([^`]+)`")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_BULLET = re.compile(r"^[-*+]\s+", re.MULTILINE)
_NUMBERED = re.compile(r"^\d+\.\s+", re.MULTILINE)
_BLANK_RUN = re.compile(r"\n{3,}")


def to_speakable(text: str, pause_cue: str = SPOKEN_PAUSE_CUE) -> str:
    """Strip markdown structure so a speech engine reads only the words.

    List markers become ``pause_cue`` so items stay audibly separated.
    Order matters: emphasis is unwrapped before code fences are dropped.
    """
    text = _HEADING.sub("", text)
    text = _STAR_EMPHASIS.sub(r"\1", text)
    text = _UNDERSCORE_EMPHASIS.sub(r"\1", text)
    text = _CODE_FENCE.sub("", text)
    text = _INLINE_CODE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _BULLET.sub(pause_cue, text)
    text = _NUMBERED.sub(pause_cue, text)
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()
