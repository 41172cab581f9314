"""Image encoding — raw bytes → base64 payload, plus a transient preview file."""
import asyncio
import base64
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from page_explainer.constants import (
    DATA_URI_SEPARATOR,
    MSG_PREVIEW_RELEASE_FAILED,
    PREVIEW_SUFFIXES,
)
from page_explainer.errors import ErrorKind, PipelineError
from page_explainer.images.validator import ImageCandidate, ImageSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedImage:
    data: str
    mime_type: str
    file_name: str

    def to_bytes(self) -> bytes:
        return base64.standard_b64decode(self.data)


def strip_data_uri_prefix(text: str) -> str:
    """'data:image/png;base64,AAAA' → 'AAAA'. Bare payloads pass through."""
    head, separator, payload = text.partition(DATA_URI_SEPARATOR)
    match (head.startswith("data:"), bool(separator)):
        case (True, True):
            return payload
        case _:
            return text


async def read_source(source: ImageSource) -> bytes:
    match source:
        case Path() as path:
            return await asyncio.to_thread(path.read_bytes)
        case bytes() as data:
            return data
        case str() as text:
            return base64.b64decode(strip_data_uri_prefix(text), validate=True)
        case _:
            raise TypeError(f"Unsupported image source: {type(source).__name__}")


class PreviewHandle:
    """A temporary file holding the image for display. Must be released."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._released = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def released(self) -> bool:
        return self._released

    @classmethod
    def create(cls, data: bytes, mime_type: str) -> "PreviewHandle":
        suffix = PREVIEW_SUFFIXES.get(mime_type, "")
        with tempfile.NamedTemporaryFile("wb", suffix=suffix, delete=False) as f:
            path = Path(f.name)
            try:
                f.write(data)
            except OSError:
                f.close()
                path.unlink(missing_ok=True)
                raise
        return cls(path)

    def release(self) -> None:
        match self._released:
            case True:
                return
            case False:
                pass
        self._released = True
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning(MSG_PREVIEW_RELEASE_FAILED, exc)


class PreviewSlot:
    """Owns at most one preview at a time; acquiring a new one releases the old first."""

    def __init__(self) -> None:
        self._handle: Optional[PreviewHandle] = None

    @property
    def current(self) -> Optional[PreviewHandle]:
        return self._handle

    def acquire(self, data: bytes, mime_type: str) -> PreviewHandle:
        self.clear()
        self._handle = PreviewHandle.create(data, mime_type)
        return self._handle

    def clear(self) -> None:
        match self._handle:
            case None:
                pass
            case handle:
                handle.release()
                self._handle = None

    def __enter__(self) -> "PreviewSlot":
        return self

    def __exit__(self, *exc_info) -> None:
        self.clear()


async def encode_image(
    candidate: ImageCandidate, previews: Optional[PreviewSlot] = None
) -> EncodedImage:
    """Read the candidate's bytes and base64-encode them.

    When a slot is given, a fresh preview replaces whatever it held. Any
    failure raises ``PipelineError(ENCODING_FAILED)`` and leaves no preview.
    """
    try:
        raw = await read_source(candidate.source)
    except (OSError, ValueError) as exc:
        raise PipelineError(ErrorKind.ENCODING_FAILED) from exc

    encoded = EncodedImage(
        data=base64.standard_b64encode(raw).decode("ascii"),
        mime_type=candidate.mime_type,
        file_name=candidate.file_name,
    )
    match previews:
        case None:
            pass
        case slot:
            try:
                slot.acquire(raw, candidate.mime_type)
            except OSError as exc:
                raise PipelineError(ErrorKind.ENCODING_FAILED) from exc
    return encoded
