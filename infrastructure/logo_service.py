"""AI logo generation through the Gemini image models.

The generator turns a short description into a square PNG logo and returns it
as a `data:` URL, which the rest of the app treats like any other image source.
"""

from __future__ import annotations

import base64
import os
from typing import Any

from google import genai
from google.genai import types as genai_types
from loguru import logger

from core.errors import LogoGenerationError
from core.services.interfaces import ILogoGenerator

DEFAULT_MODEL = "gemini-3-pro-image-preview"
DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"
MISSING_KEY_MESSAGE = "API Key is missing. Please check your configuration."
NO_IMAGE_MESSAGE = "No image data found in the response."

PROMPT_TEMPLATE = (
    "Design a simple, clean, professional logo or watermark icon "
    'based on this description: "{prompt}". '
    "The output should be suitable for use as an overlay. "
    "White background or transparent if possible "
    "(though models usually output rectangular images). "
    "High contrast."
)


def build_prompt(prompt: str) -> str:
    return PROMPT_TEMPLATE.format(prompt=prompt.strip())


class LogoService(ILogoGenerator):
    """Generates watermark logos from free-text prompts."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        client: Any | None = None,
    ) -> None:
        """Create the service.

        Args:
            api_key: Gemini API key; without it `generate` fails with a clear message.
            model: Image generation model name.
            client: Pre-built `genai.Client` (mainly for tests).
        """
        self._api_key = api_key
        self._model = model
        self._client = client

    @classmethod
    def from_environment(
        cls, env_var: str = DEFAULT_API_KEY_ENV, model: str = DEFAULT_MODEL
    ) -> LogoService:
        return cls(api_key=os.environ.get(env_var) or None, model=model)

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise LogoGenerationError(MISSING_KEY_MESSAGE)
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        """Generate a logo for `prompt` and return it as a PNG data URL.

        Raises:
            ValueError: if `prompt` is blank.
            LogoGenerationError: on missing credentials, an image-less response,
                or any service error (message kept verbatim).
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")
        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=build_prompt(prompt),
                config=genai_types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                    image_config=genai_types.ImageConfig(aspect_ratio="1:1", image_size="1K"),
                ),
            )
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Error generating logo: {}", ex)
            raise LogoGenerationError(str(ex) or type(ex).__name__) from ex

        data = _first_inline_image(response)
        if data is None:
            logger.error("Logo response for model {} carried no image", self._model)
            raise LogoGenerationError(NO_IMAGE_MESSAGE)
        logger.info("Generated logo ({} bytes) with {}", len(data), self._model)
        return "data:image/png;base64," + base64.b64encode(data).decode("ascii")


def _first_inline_image(response: Any) -> bytes | None:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            data = inline.data
            if isinstance(data, str):
                data = base64.b64decode(data)
            return data
    return None
