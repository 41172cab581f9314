"""VisionClient — abstract base for image analysis backends."""
from abc import ABC, abstractmethod

from page_explainer.images.encoder import EncodedImage


class VisionClient(ABC):
    @abstractmethod
    async def analyze(self, image: EncodedImage, prompt: str) -> str:
        """Send one image + prompt and return the raw text reply.

        Raises ProviderError when the SDK exposes a recognisable failure,
        any other exception otherwise.
        """
        ...
