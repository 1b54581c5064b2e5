"""
Base Vision Provider Interface

Abstract base class defining the contract for vision model providers.
A provider executes one provider-neutral InferenceRequest and hands back
the model's raw text; parsing and validation happen elsewhere.
"""

from abc import ABC, abstractmethod

from ..models import InferenceRequest


class VisionProvider(ABC):
    """
    Abstract base class for vision model providers.

    All vision providers (Gemini, Anthropic, OpenAI, Local) implement
    this interface so the pipeline can swap them freely.

    Subclasses must implement:
    - generate(): Send a request and return the raw response text
    - is_available(): Check if provider is configured and ready
    - name: Property returning provider name
    - default_model: Property returning the model used when none is given

    Failure contract:
    - Provider/SDK errors are re-raised as UpstreamError with the provider's
      message and HTTP status so they can be classified
    - Connection failures are re-raised as UpstreamUnreachableError
    - No retries are attempted; the caller decides whether to resubmit
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Provider name for logging and identification.

        Returns:
            Provider name (e.g., "gemini", "anthropic", "openai", "local")
        """
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model identifier used when the request does not override it"""
        pass

    @abstractmethod
    async def generate(self, request: InferenceRequest) -> str:
        """
        Execute a multimodal request and return the model's text.

        Parts are sent in request order. The returned text may be empty;
        empty replies are the extractor's concern, not the provider's.

        Args:
            request: Instruction text plus one inline image

        Returns:
            Raw response text ("" when the model produced nothing)

        Raises:
            UpstreamError: If the provider rejected or failed the call
            UpstreamUnreachableError: If the provider could not be reached

        Example:
            request = InferenceRequestBuilder().build(compressed, provider.default_model)
            text = await provider.generate(request)
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if provider is configured and ready to use.

        Validates that:
        - API keys are set (for cloud providers)
        - Service is reachable (for local providers)

        Returns:
            True if provider can be used, False otherwise
        """
        pass
