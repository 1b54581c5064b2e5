"""
Inference Request Builder

Pairs the fixed critique instruction with one compressed screenshot into a
provider-neutral InferenceRequest. Providers translate it to their own wire
format (see ux_ray.providers).
"""

from typing import Optional

from .errors import ValidationError
from .models import CompressedImage, ImagePart, InferenceRequest, TextPart
from .prompts import ANNOTATED_CRITIQUE_PROMPT, CRITIQUE_PROMPT

# Used when the caller did not declare a media type
FALLBACK_MEDIA_TYPE = "image/png"


def build_request(
    instruction: str,
    image: CompressedImage,
    model: str,
) -> InferenceRequest:
    """
    Build a single multimodal request: instruction text, then the image.

    Args:
        instruction: Prompt text
        image: Screenshot bytes and media type
        model: Target model identifier

    Returns:
        InferenceRequest with exactly one text part and one image part

    Raises:
        ValidationError: If the image bytes, instruction or model are empty
    """
    if not image.data:
        raise ValidationError("Image bytes are empty")
    if not instruction.strip():
        raise ValidationError("Instruction text is empty")
    if not model:
        raise ValidationError("No model specified")

    return InferenceRequest(
        model=model,
        parts=[
            TextPart(text=instruction),
            ImagePart(
                media_type=image.media_type or FALLBACK_MEDIA_TYPE,
                data=image.data,
            ),
        ],
    )


class InferenceRequestBuilder:
    """
    Builds requests with the versioned critique prompt.

    Example:
        builder = InferenceRequestBuilder(annotations=True)
        request = builder.build(compressed, "gemini-2.0-flash-lite")
    """

    def __init__(self, annotations: bool = True, instruction: Optional[str] = None):
        """
        Args:
            annotations: Use the annotation-capable prompt variant
            instruction: Replace the stock prompt entirely (tests, experiments)
        """
        if instruction is None:
            instruction = ANNOTATED_CRITIQUE_PROMPT if annotations else CRITIQUE_PROMPT
        self.instruction = instruction

    def build(self, image: CompressedImage, model: str) -> InferenceRequest:
        return build_request(self.instruction, image, model)
