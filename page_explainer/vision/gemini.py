"""GeminiVisionClient — Google Gemini vision backend."""
from typing import Optional

from google import genai
from google.genai import errors, types

from page_explainer.constants import GEMINI_VISION_MODEL
from page_explainer.errors import ErrorKind, ProviderError
from page_explainer.images.encoder import EncodedImage
from page_explainer.vision.client import VisionClient

_BLOCKED_FINISH_REASONS = (
    types.FinishReason.SAFETY,
    types.FinishReason.PROHIBITED_CONTENT,
    types.FinishReason.BLOCKLIST,
)


def _kind_for_status(code: Optional[int]) -> Optional[ErrorKind]:
    match code:
        case 401 | 403:
            return ErrorKind.AUTH_ERROR
        case 429:
            return ErrorKind.QUOTA_EXCEEDED
        case _:
            return None


class GeminiVisionClient(VisionClient):

    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_VISION_MODEL,
        client: Optional[genai.Client] = None,
    ) -> None:
        self._client = client or genai.Client(api_key=api_key)
        self._model = model

    async def analyze(self, image: EncodedImage, prompt: str) -> str:
        image_part = types.Part.from_bytes(data=image.to_bytes(), mime_type=image.mime_type)
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=[prompt, image_part],
            )
        except errors.APIError as exc:
            match _kind_for_status(exc.code):
                case None:
                    raise
                case kind:
                    raise ProviderError(kind) from exc

        feedback = response.prompt_feedback
        if feedback is not None and feedback.block_reason:
            raise ProviderError(ErrorKind.CONTENT_REJECTED)

        match response.candidates:
            case [first, *_] if first.finish_reason in _BLOCKED_FINISH_REASONS:
                raise ProviderError(ErrorKind.CONTENT_REJECTED)
            case _:
                pass
        return response.text or ""
