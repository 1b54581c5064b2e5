"""
OpenAI GPT-4V Vision Provider

Implements the inference call using OpenAI's GPT-4 with vision capabilities.
Supports GPT-4 Turbo with Vision and later models.
"""

import openai

from ..errors import UpstreamError, UpstreamUnreachableError
from ..models import ImagePart, InferenceRequest, TextPart
from .base import VisionProvider


class OpenAIProvider(VisionProvider):
    """
    Vision provider using OpenAI's GPT-4 with Vision.

    Example:
        provider = OpenAIProvider(api_key="sk-...")
        text = await provider.generate(request)
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (get from https://platform.openai.com/api-keys)
            model: OpenAI model to use (default: gpt-4o)
                   Must be a vision-capable model
            max_tokens: Response token limit
            temperature: Sampling temperature (lower is more consistent)
        """
        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._api_key = api_key

    @property
    def name(self) -> str:
        """Provider name for identification"""
        return "openai"

    @property
    def default_model(self) -> str:
        return self.model

    def is_available(self) -> bool:
        """
        Check if OpenAI provider is configured.

        Returns:
            True if API key is set, False otherwise
        """
        return self._api_key is not None and len(self._api_key) > 0

    def _build_content(self, request: InferenceRequest) -> list[dict]:
        """Translate request parts into chat completion content parts"""
        content = []
        for part in request.parts:
            if isinstance(part, TextPart):
                content.append({"type": "text", "text": part.text})
            elif isinstance(part, ImagePart):
                content.append({
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:{part.media_type};base64,{part.base64_data}",
                        "detail": "high"
                    }
                })
        return content

    async def generate(self, request: InferenceRequest) -> str:
        """
        Send the request to the chat completions API.

        Raises:
            UpstreamError: OpenAI returned an API error
            UpstreamUnreachableError: The API could not be reached
        """
        try:
            response = await self.client.chat.completions.create(
                model=request.model,
                messages=[{
                    "role": "user",
                    "content": self._build_content(request)
                }],
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
        except openai.APIConnectionError as e:
            raise UpstreamUnreachableError(f"OpenAI API unreachable: {e}") from e
        except openai.APIStatusError as e:
            raise UpstreamError(f"OpenAI API error: {e}", status=e.status_code) from e
        except openai.APIError as e:
            raise UpstreamError(f"OpenAI API error: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
