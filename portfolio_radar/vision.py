"""
Vision board: edit an inspiration image with a text instruction.

Gemini only. The image goes in as an inline part next to the prompt and the
first inline image part of the first candidate comes back.
"""

import mimetypes
from pathlib import Path
from typing import Optional

from google import genai
from google.genai import types

from extraction.client import DEFAULT_TIMEOUT_SECONDS, translate_gemini_error
from portfolio_radar.config import Settings, get_settings
from portfolio_radar.utils.errors import NoImageGeneratedError
from portfolio_radar.utils.logging import get_logger

logger = get_logger(__name__)


def guess_image_type(path: Path) -> Optional[str]:
    """MIME type from the file name, or None when it is not an image."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type if mime_type and mime_type.startswith("image/") else None


class VisionImageEditor:
    """Image editing through a Gemini image model."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash-image",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[genai.Client] = None,
    ) -> None:
        self.model = model
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    async def edit(self, image: bytes, prompt: str, mime_type: str) -> bytes:
        """
        Apply ``prompt`` to ``image``.

        Args:
            image: Raw image bytes
            prompt: Edit instruction, e.g. "add a sunset over the sea"
            mime_type: Type of ``image``, e.g. image/jpeg

        Returns:
            Bytes of the generated image

        Raises:
            NoImageGeneratedError: the model answered with text only
            QuotaExceededError: the vendor rejected the request on quota
            RemoteQueryError: any other vendor or transport failure
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=[types.Part.from_bytes(data=image, mime_type=mime_type), prompt],
            )
        except Exception as e:
            raise translate_gemini_error(e, "Image edit") from e

        candidates = response.candidates or []
        content = candidates[0].content if candidates else None
        for part in (content.parts if content else None) or []:
            if part.inline_data and part.inline_data.data:
                return part.inline_data.data

        logger.warning(f"{self.model} returned no image for the edit")
        raise NoImageGeneratedError(self.model)


def create_vision_editor(settings: Optional[Settings] = None) -> VisionImageEditor:
    settings = settings or get_settings()
    return VisionImageEditor(api_key=settings.require_gemini_key(), model=settings.vision_model)
