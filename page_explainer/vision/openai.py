"""OpenAIVisionClient — OpenAI GPT-4o vision backend."""
from typing import Optional

from openai import AsyncOpenAI, AuthenticationError, PermissionDeniedError, RateLimitError

from page_explainer.constants import OPENAI_VISION_MODEL, VISION_MAX_TOKENS
from page_explainer.errors import ErrorKind, ProviderError
from page_explainer.images.encoder import EncodedImage
from page_explainer.vision.client import VisionClient


class OpenAIVisionClient(VisionClient):

    def __init__(
        self,
        api_key: str,
        model: str = OPENAI_VISION_MODEL,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._model = model

    async def analyze(self, image: EncodedImage, prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                max_tokens=VISION_MAX_TOKENS,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{image.mime_type};base64,{image.data}"},
                            },
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
            )
        except (AuthenticationError, PermissionDeniedError) as exc:
            raise ProviderError(ErrorKind.AUTH_ERROR) from exc
        except RateLimitError as exc:
            raise ProviderError(ErrorKind.QUOTA_EXCEEDED) from exc

        choice = response.choices[0]
        match choice.finish_reason:
            case "content_filter":
                raise ProviderError(ErrorKind.CONTENT_REJECTED)
            case _:
                pass
        return choice.message.content or ""
