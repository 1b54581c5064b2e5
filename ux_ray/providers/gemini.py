"""
Google Gemini Vision Provider

Implements the inference call using the google-genai SDK.
Default model is the lightweight gemini-2.0-flash-lite.
"""

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..errors import UpstreamError, UpstreamUnreachableError
from ..models import ImagePart, InferenceRequest, TextPart
from .base import VisionProvider


class GeminiProvider(VisionProvider):
    """
    Vision provider using Google's Gemini models.

    Example:
        provider = GeminiProvider(api_key="AIza...")
        text = await provider.generate(request)
    """

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash-lite"):
        """
        Initialize Gemini provider.

        Args:
            api_key: Gemini API key (get from https://aistudio.google.com/apikey)
            model: Default Gemini model (must accept image input)
        """
        self.client = genai.Client(api_key=api_key)
        self.model = model
        self._api_key = api_key

    @property
    def name(self) -> str:
        """Provider name for identification"""
        return "gemini"

    @property
    def default_model(self) -> str:
        return self.model

    def is_available(self) -> bool:
        """
        Check if Gemini provider is configured.

        Returns:
            True if API key is set, False otherwise
        """
        return self._api_key is not None and len(self._api_key) > 0

    def _build_contents(self, request: InferenceRequest) -> list[types.Content]:
        """Translate request parts into a single user turn"""
        parts = []
        for part in request.parts:
            if isinstance(part, TextPart):
                parts.append(types.Part.from_text(text=part.text))
            elif isinstance(part, ImagePart):
                parts.append(
                    types.Part.from_bytes(data=part.data, mime_type=part.media_type)
                )
        return [types.Content(role="user", parts=parts)]

    async def generate(self, request: InferenceRequest) -> str:
        """
        Send the request with the async Gemini client.

        Raises:
            UpstreamError: Gemini returned an API error (status in `.status`)
            UpstreamUnreachableError: The API could not be reached
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=request.model,
                contents=self._build_contents(request),
            )
        except genai_errors.APIError as e:
            raise UpstreamError(f"Gemini API error: {e}", status=e.code) from e
        except httpx.TransportError as e:
            raise UpstreamUnreachableError(f"Gemini API unreachable: {e}") from e

        return response.text or ""
