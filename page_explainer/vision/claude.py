"""ClaudeVisionClient — Anthropic Claude vision backend."""
from typing import Optional

from anthropic import AsyncAnthropic, AuthenticationError, PermissionDeniedError, RateLimitError

from page_explainer.constants import CLAUDE_VISION_MODEL, VISION_MAX_TOKENS
from page_explainer.errors import ErrorKind, ProviderError
from page_explainer.images.encoder import EncodedImage
from page_explainer.vision.client import VisionClient


class ClaudeVisionClient(VisionClient):

    def __init__(
        self,
        api_key: str,
        model: str = CLAUDE_VISION_MODEL,
        client: Optional[AsyncAnthropic] = None,
    ) -> None:
        self._client = client or AsyncAnthropic(api_key=api_key)
        self._model = model

    async def analyze(self, image: EncodedImage, prompt: str) -> str:
        try:
            message = await self._client.messages.create(
                model=self._model,
                max_tokens=VISION_MAX_TOKENS,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": image.mime_type,
                                    "data": image.data,
                                },
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

        match message.stop_reason:
            case "refusal":
                raise ProviderError(ErrorKind.CONTENT_REJECTED)
            case _:
                pass
        return "".join(block.text for block in message.content if block.type == "text")
