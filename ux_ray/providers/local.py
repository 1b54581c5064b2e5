"""
Local LLM Vision Provider

Implements the inference call using local LLMs via Ollama.
Supports LLaVA, BakLLaVA, and other vision-capable local models.
"""

import asyncio

import requests

from ..errors import UpstreamError, UpstreamUnreachableError
from ..models import InferenceRequest
from .base import VisionProvider


class LocalProvider(VisionProvider):
    """
    Vision provider using local LLMs through Ollama.

    Fully offline, privacy-preserving, no API costs.

    Requirements:
    - Ollama installed (https://ollama.ai/)
    - Vision model pulled (e.g., `ollama pull llava`)

    Example:
        provider = LocalProvider(host="http://localhost:11434", model="llava")
        text = await provider.generate(request)
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llava",
        timeout: float = 120
    ):
        """
        Initialize local LLM provider.

        Args:
            host: Ollama server URL (default: http://localhost:11434)
            model: Vision model name (default: llava)
                   Run `ollama list` to see available models
            timeout: HTTP timeout in seconds (local models can be slow)
        """
        self.host = host.rstrip("/")
        self.model = model
        self.timeout = timeout

    @property
    def name(self) -> str:
        """Provider name for identification"""
        return "local"

    @property
    def default_model(self) -> str:
        return self.model

    def is_available(self) -> bool:
        """
        Check if Ollama server is running.

        Returns:
            True if server is reachable, False otherwise
        """
        try:
            response = requests.get(f"{self.host}/api/tags", timeout=2)
            return response.status_code == 200
        except requests.RequestException:
            return False

    def _build_payload(self, request: InferenceRequest) -> dict:
        """Ollama /api/generate body: prompt text plus base64 images"""
        return {
            "model": request.model,
            "prompt": request.text,
            "images": [request.image.base64_data],
            "stream": False,
            "format": "json",
            "options": {
                "temperature": 0.3
            }
        }

    def _post(self, payload: dict) -> str:
        try:
            response = requests.post(
                f"{self.host}/api/generate",
                json=payload,
                timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise UpstreamUnreachableError(
                f"Ollama server not reachable at {self.host}: {e}"
            ) from e
        except requests.RequestException as e:
            raise UpstreamError(f"Ollama request failed: {e}") from e

        if response.status_code != 200:
            raise UpstreamError(
                f"Ollama API error: {response.text}",
                status=response.status_code
            )

        return response.json().get("response", "")

    async def generate(self, request: InferenceRequest) -> str:
        """
        Send the request to Ollama's generate endpoint.

        Raises:
            UpstreamError: Ollama answered with a non-200 status
            UpstreamUnreachableError: Ollama is not running or timed out
        """
        return await asyncio.to_thread(self._post, self._build_payload(request))
