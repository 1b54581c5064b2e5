"""
Audit Pipeline Orchestrator

Coordinates one screenshot audit end to end:

    preprocess -> build request -> provider call -> extract -> (classify)

Each analysis is independent; nothing is shared between calls except the
immutable configuration and provider given at construction. No retries and
no internal timeout: wrap `run()` in asyncio.wait_for if you need one.
"""

import logging
from typing import Optional, Union

from .classify import classify
from .errors import BadInputError
from .extract import ResponseExtractor
from .models import AuditReport, ClassifiedError, Config, RawImage
from .preprocess import ImagePreprocessor
from .providers.base import VisionProvider
from .request import InferenceRequestBuilder

logger = logging.getLogger(__name__)


class AuditPipeline:
    """
    Orchestrates the complete screenshot audit workflow.

    Example:
        config = load_config()
        provider = get_provider(config.vision_provider, config)
        pipeline = AuditPipeline(provider, config)

        outcome = await pipeline.run(RawImage.from_path(Path("shot.png")))
        if isinstance(outcome, ClassifiedError):
            print(outcome.message)
        else:
            print(f"Score: {outcome.score}/100")
    """

    def __init__(self, provider: VisionProvider, config: Optional[Config] = None):
        """
        Initialize the pipeline.

        Args:
            provider: Configured vision provider
            config: Compression limits, prompt variant, bounds policy and
                    model override (defaults when omitted)
        """
        self.provider = provider
        self.config = config or Config()
        self.preprocessor = ImagePreprocessor.from_config(self.config)
        self.builder = InferenceRequestBuilder(annotations=self.config.annotations)
        self.extractor = ResponseExtractor(self.config.bounds_policy)

    def resolve_model(self, model: Optional[str] = None) -> str:
        """Pick the model: explicit argument, then config override, then provider default"""
        return model or self.config.model or self.provider.default_model

    async def analyze(
        self,
        image: Optional[RawImage],
        model: Optional[str] = None
    ) -> AuditReport:
        """
        Audit a screenshot, raising on failure.

        Args:
            image: The screenshot to critique
            model: Optional target model identifier

        Returns:
            Validated AuditReport

        Raises:
            BadInputError: If no image was supplied
            PreprocessError: If the image cannot be decoded/encoded
            UpstreamError: If the provider call failed
            EmptyResponseError: If the model returned nothing
            ParseError: If the reply is not a valid report
        """
        if image is None:
            raise BadInputError("No image provided")

        # 1. Shrink to fit the payload budget
        compressed = await self.preprocessor.compress_async(image)
        logger.debug(
            "Compressed %dx%d %s (%d bytes) -> %dx%d JPEG q=%.2f (%d bytes)",
            image.width, image.height, image.media_type, len(image.data),
            compressed.width, compressed.height, compressed.quality, compressed.size,
        )

        # 2. Build the single multimodal request
        request = self.builder.build(compressed, self.resolve_model(model))

        # 3. Call the model
        logger.info("Sending screenshot to %s (%s)", self.provider.name, request.model)
        response_text = await self.provider.generate(request)

        # 4. Parse and validate
        return self.extractor.extract(response_text)

    async def run(
        self,
        image: Optional[RawImage],
        model: Optional[str] = None
    ) -> Union[AuditReport, ClassifiedError]:
        """
        Audit a screenshot, returning a ClassifiedError instead of raising.

        This is the failure boundary: any exception from the stages above
        is logged and mapped to a stable error kind.
        """
        try:
            return await self.analyze(image, model)
        except Exception as e:
            return classify(e)
