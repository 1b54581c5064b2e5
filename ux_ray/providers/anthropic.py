"""
Anthropic Claude Vision Provider

Implements the inference call using Claude's vision capabilities.
Supports Claude 3+ models with vision understanding.
"""

import anthropic

from ..errors import UpstreamError, UpstreamUnreachableError
from ..models import ImagePart, InferenceRequest, TextPart
from .base import VisionProvider


class AnthropicProvider(VisionProvider):
    """
    Vision provider using Anthropic's Claude models.

    Example:
        provider = AnthropicProvider(api_key="sk-ant-...")
        text = await provider.generate(request)
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        max_tokens: int = 2048,
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key (get from https://console.anthropic.com/)
            model: Claude model to use (default: claude-3-5-sonnet-20241022)
                   Must be a vision-capable model (Claude 3+)
            max_tokens: Response token limit
        """
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self._api_key = api_key

    @property
    def name(self) -> str:
        """Provider name for identification"""
        return "anthropic"

    @property
    def default_model(self) -> str:
        return self.model

    def is_available(self) -> bool:
        """
        Check if Anthropic provider is configured.

        Returns:
            True if API key is set, False otherwise
        """
        return self._api_key is not None and len(self._api_key) > 0

    def _build_content(self, request: InferenceRequest) -> list[dict]:
        """Translate request parts into Messages API content blocks"""
        content = []
        for part in request.parts:
            if isinstance(part, TextPart):
                content.append({"type": "text", "text": part.text})
            elif isinstance(part, ImagePart):
                content.append({
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": part.media_type,
                        "data": part.base64_data
                    }
                })
        return content

    async def generate(self, request: InferenceRequest) -> str:
        """
        Send the request to the Messages API.

        Raises:
            UpstreamError: Claude returned an API error
            UpstreamUnreachableError: The API could not be reached
        """
        try:
            response = await self.client.messages.create(
                model=request.model,
                max_tokens=self.max_tokens,
                messages=[{
                    "role": "user",
                    "content": self._build_content(request)
                }]
            )
        except anthropic.APIConnectionError as e:
            raise UpstreamUnreachableError(f"Anthropic API unreachable: {e}") from e
        except anthropic.APIStatusError as e:
            raise UpstreamError(f"Anthropic API error: {e}", status=e.status_code) from e
        except anthropic.APIError as e:
            raise UpstreamError(f"Anthropic API error: {e}") from e

        return "".join(
            block.text for block in response.content if block.type == "text"
        )
