"""Upload policy checks — run before any encoding work."""
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from page_explainer.constants import ALLOWED_IMAGE_TYPES, MAX_FILE_SIZE, PREVIEW_SUFFIXES
from page_explainer.errors import ErrorKind

# Path on disk, raw bytes, or a data URI / bare base64 string.
ImageSource = Union[Path, bytes, str]

# Older mimetypes tables lack .webp; the allow-list suffixes are known regardless.
_SUFFIX_TYPES = {suffix: mime for mime, suffix in PREVIEW_SUFFIXES.items()} | {".jpeg": "image/jpeg"}


@dataclass(frozen=True)
class ImageCandidate:
    source: ImageSource
    mime_type: str
    size: int
    file_name: str

    @classmethod
    def from_path(cls, path: Path, mime_type: Optional[str] = None) -> "ImageCandidate":
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            source=path,
            mime_type=mime_type or guessed or _SUFFIX_TYPES.get(path.suffix.lower(), ""),
            size=path.stat().st_size,
            file_name=path.name,
        )

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str, file_name: str) -> "ImageCandidate":
        return cls(source=data, mime_type=mime_type, size=len(data), file_name=file_name)


def is_allowed_type(mime_type: str) -> bool:
    return mime_type in ALLOWED_IMAGE_TYPES


def validate_candidate(candidate: ImageCandidate) -> Optional[ErrorKind]:
    """Return None when the candidate passes, else the first rejection reason."""
    match (is_allowed_type(candidate.mime_type), candidate.size <= MAX_FILE_SIZE):
        case (False, _):
            return ErrorKind.UNSUPPORTED_FORMAT
        case (True, False):
            return ErrorKind.FILE_TOO_LARGE
        case _:
            return None
