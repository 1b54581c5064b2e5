"""
UX-Ray - Screenshot UI Audit

Sends a UI screenshot to a vision language model with a structured critique
prompt and turns the free-form reply into a validated, annotated report.

Supports multiple vision providers:
- Google Gemini (default)
- Anthropic Claude
- OpenAI GPT-4V
- Local LLMs (Ollama/LLaVA)
"""

from .classify import classify
from .extract import ResponseExtractor, extract
from .models import (
    Annotation,
    AuditReport,
    BoundsPolicy,
    ClassifiedError,
    CompressedImage,
    ErrorKind,
    InferenceRequest,
    RawImage,
)
from .pipeline import AuditPipeline
from .preprocess import ImagePreprocessor
from .request import InferenceRequestBuilder

__version__ = "0.1.0"
__all__ = [
    "Annotation",
    "AuditPipeline",
    "AuditReport",
    "BoundsPolicy",
    "ClassifiedError",
    "CompressedImage",
    "ErrorKind",
    "ImagePreprocessor",
    "InferenceRequest",
    "InferenceRequestBuilder",
    "RawImage",
    "ResponseExtractor",
    "classify",
    "extract",
]
