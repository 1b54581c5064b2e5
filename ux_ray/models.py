"""
Data Models for UX-Ray

Type-safe Pydantic models for every value that flows through the audit
pipeline: input images, the inference request, the canonical report and
the classified error returned when something goes wrong.
"""

import base64
import io
import math
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Literal, Optional, Union

from PIL import Image, UnidentifiedImageError
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .errors import BadInputError
from .geometry import clip_box, is_within_bounds
from .prompts import PROMPT_VERSION


Severity = Literal["critical", "warning", "info"]


class BoundsPolicy(str, Enum):
    """
    How out-of-range numbers in a model response are handled at ingestion.

    - clamp: scores are clamped to 0-100, boxes are clipped to the image
    - reject: any out-of-range value makes the response unparseable
    - passthrough: values are kept exactly as the model returned them
    """

    CLAMP = "clamp"
    REJECT = "reject"
    PASSTHROUGH = "passthrough"


class _CamelModel(BaseModel):
    """Base for report models serialized with the camelCase wire names."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False
    )


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


class RawImage(BaseModel):
    """
    A user-supplied screenshot, before compression.

    Attributes:
        data: Encoded image bytes as uploaded
        media_type: Declared media type (e.g. "image/png")
        width: Pixel width
        height: Pixel height
    """

    data: bytes
    media_type: Optional[str] = None
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @classmethod
    def from_bytes(cls, data: bytes, media_type: Optional[str] = None) -> "RawImage":
        """
        Build a RawImage by sniffing dimensions (and format) from the bytes.

        Raises:
            BadInputError: If the bytes are empty or not a decodable image
        """
        if not data:
            raise BadInputError("No image provided")

        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                detected = Image.MIME.get(img.format or "")
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
            raise BadInputError(f"Unreadable image: {e}") from e

        return cls(
            data=data,
            media_type=media_type or detected,
            width=width,
            height=height,
        )

    @classmethod
    def from_path(cls, path: Path) -> "RawImage":
        """Read an image file from disk."""
        path = Path(path)
        if not path.exists():
            raise BadInputError(f"Image not found: {path}")
        return cls.from_bytes(path.read_bytes())

    @classmethod
    def from_data_url(cls, value: str, media_type: Optional[str] = None) -> "RawImage":
        """
        Decode a base64 payload, with or without a "data:<type>;base64," prefix.
        """
        if "," in value:
            header, value = value.split(",", 1)
            if header.startswith("data:") and media_type is None:
                media_type = header[5:].split(";", 1)[0] or None

        try:
            data = base64.b64decode(value, validate=True)
        except ValueError as e:
            raise BadInputError(f"Image payload is not valid base64: {e}") from e

        return cls.from_bytes(data, media_type)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


class CompressedImage(BaseModel):
    """
    Output of the preprocessor, ready to be inlined into a request.

    Attributes:
        data: Re-encoded bytes (JPEG)
        media_type: Media type of `data`
        width: Pixel width after any downscale
        height: Pixel height after any downscale
        quality: Lossy quality factor (0-1) used for the final encode
    """

    data: bytes
    media_type: Optional[str] = "image/jpeg"
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    quality: float = Field(ge=0, le=1)

    @property
    def size(self) -> int:
        """Encoded size in bytes"""
        return len(self.data)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


# ---------------------------------------------------------------------------
# Inference request
# ---------------------------------------------------------------------------


class TextPart(BaseModel):
    """Instruction text part of a multimodal request."""

    kind: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """Inline image part of a multimodal request."""

    kind: Literal["image"] = "image"
    media_type: str
    data: bytes = Field(repr=False)

    @property
    def base64_data(self) -> str:
        """Image bytes in the text-safe encoding providers expect"""
        return base64.b64encode(self.data).decode("utf-8")


class InferenceRequest(BaseModel):
    """
    A single provider-neutral multimodal request.

    Parts keep their order on the wire. Exactly one text part and exactly
    one image part are allowed (single-image analysis only).
    """

    model: str = Field(min_length=1)
    parts: list[Union[TextPart, ImagePart]]

    @model_validator(mode="after")
    def _single_image(self) -> "InferenceRequest":
        texts = [p for p in self.parts if isinstance(p, TextPart)]
        images = [p for p in self.parts if isinstance(p, ImagePart)]
        if len(texts) != 1 or len(images) != 1:
            raise ValueError(
                "An inference request needs exactly one text part and one image part"
            )
        return self

    @property
    def text(self) -> str:
        return next(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def image(self) -> ImagePart:
        return next(p for p in self.parts if isinstance(p, ImagePart))


# ---------------------------------------------------------------------------
# Audit report
# ---------------------------------------------------------------------------


def _policy(info: ValidationInfo) -> BoundsPolicy:
    context = info.context or {}
    return BoundsPolicy(context.get("bounds_policy", BoundsPolicy.CLAMP))


def _bounded_score(value: object, info: ValidationInfo) -> object:
    """Round a 0-100 score and apply the active bounds policy to it."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return value
    try:
        number = float(value)
    except ValueError:
        return value
    if not math.isfinite(number):
        raise ValueError(f"score {value!r} is not a finite number")

    policy = _policy(info)
    if policy is BoundsPolicy.CLAMP:
        number = min(100.0, max(0.0, number))
    elif policy is BoundsPolicy.REJECT and not 0 <= number <= 100:
        raise ValueError(f"score {number} is outside 0-100")
    return round(number)


class Annotation(_CamelModel):
    """
    A labeled bounding box over the screenshot.

    Coordinates are percentages of the image size measured from the
    top-left corner, so a box survives any scaling of the displayed image.

    Attributes:
        id: Positive identifier, unique within a report
        x: Left edge, percent of image width
        y: Top edge, percent of image height
        width: Box width, percent of image width
        height: Box height, percent of image height
        severity: critical, warning or info
        label: Short label (2-4 words)
        description: What is wrong in this region
    """

    id: int = Field(gt=0)
    x: float
    y: float
    width: float
    height: float
    severity: Severity
    label: str
    description: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def apply_bounds(self, info: ValidationInfo) -> "Annotation":
        """Clip, reject or keep the box according to the active policy"""
        policy = _policy(info)
        if policy is BoundsPolicy.CLAMP:
            x, y, width, height = clip_box(self.x, self.y, self.width, self.height)
            self.x = x
            self.y = y
            self.width = width
            self.height = height
        elif policy is BoundsPolicy.REJECT and not is_within_bounds(self):
            raise ValueError(f"annotation {self.id} extends beyond the image")
        return self

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


class CategoryIssue(_CamelModel):
    """A finding nested under a category (richer response variant)."""

    id: Optional[str] = None
    title: str = ""
    description: str = ""
    severity: Optional[Severity] = None
    location: Optional[str] = None
    suggestion: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: object) -> object:
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v


class Category(_CamelModel):
    """Score and commentary for one quality dimension."""

    score: int
    comment: str = Field(
        default="",
        validation_alias=AliasChoices("comment", "commentary"),
    )
    issues: list[CategoryIssue] = Field(default_factory=list)

    bound_score = field_validator("score", mode="before")(_bounded_score)


class Categories(_CamelModel):
    """
    Fixed set of quality dimensions.

    `usability` only appears in the richer response variant.
    """

    visual_hierarchy: Category
    accessibility: Category
    consistency: Category
    usability: Optional[Category] = None


class AuditReport(_CamelModel):
    """
    Canonical, validated critique of one screenshot.

    Attributes:
        score: Overall score, 0-100
        summary: One-sentence verdict
        categories: Per-dimension scores and commentary
        critical_issues: Ordered list of the most severe problems
        quick_fixes: Ordered list of cheap improvements
        annotations: Bounding boxes in discovery order (may be empty)
    """

    score: int
    summary: str
    categories: Categories
    critical_issues: list[str] = Field(default_factory=list)
    quick_fixes: list[str] = Field(default_factory=list)
    annotations: list[Annotation] = Field(default_factory=list)

    bound_score = field_validator("score", mode="before")(_bounded_score)

    @field_validator("annotations", mode="before")
    @classmethod
    def number_annotations(cls, v: object) -> object:
        """
        Give id-less annotations their 1-based discovery index, or the next
        id above it that no other annotation already uses.
        """
        if v is None:
            return []
        if not isinstance(v, list):
            return v

        taken = set()
        for item in v:
            if isinstance(item, dict):
                explicit = item.get("id")
                if isinstance(explicit, int) and not isinstance(explicit, bool):
                    taken.add(explicit)
                elif isinstance(explicit, str) and explicit.strip().isdigit():
                    taken.add(int(explicit))

        numbered = []
        for index, item in enumerate(v, 1):
            if isinstance(item, dict) and item.get("id") is None:
                while index in taken:
                    index += 1
                taken.add(index)
                item = {**item, "id": index}
            numbered.append(item)
        return numbered

    @field_validator("critical_issues", "quick_fixes", mode="before")
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        return [] if v is None else v

    @model_validator(mode="after")
    def unique_annotation_ids(self) -> "AuditReport":
        seen = set()
        for annotation in self.annotations:
            if annotation.id in seen:
                raise ValueError(f"duplicate annotation id {annotation.id}")
            seen.add(annotation.id)
        return self

    def grade(self) -> str:
        """Get letter grade for overall score"""
        if self.score >= 90:
            return "A"
        elif self.score >= 75:
            return "B"
        elif self.score >= 60:
            return "C"
        elif self.score >= 40:
            return "D"
        else:
            return "F"

    def severity_counts(self) -> dict[str, int]:
        """Count annotations per severity, in severity order"""
        counts = {"critical": 0, "warning": 0, "info": 0}
        for annotation in self.annotations:
            counts[annotation.severity] += 1
        return counts

    def summary_text(self) -> str:
        """Generate a plain-text digest suitable for pasting"""
        text = f"UX-Ray Report\nScore: {self.score}/100\nVerdict: {self.summary}\n"
        if self.critical_issues:
            text += "\nCritical Issues:\n"
            text += "\n".join(
                f"{i}. {issue}" for i, issue in enumerate(self.critical_issues, 1)
            )
            text += "\n"
        return text

    def to_dict(self) -> dict:
        """Serialize with the camelCase field names of the response schema"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_export(self) -> dict:
        """JSON export envelope"""
        return {
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "tool": "UX-Ray",
            "promptVersion": PROMPT_VERSION,
            "result": self.to_dict(),
        }


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorKind(str, Enum):
    """Stable, user-facing failure categories."""

    MISSING_CREDENTIALS = "missing-credentials"
    BAD_INPUT = "bad-input"
    UPSTREAM_QUOTA = "upstream-quota"
    UPSTREAM_UNREACHABLE = "upstream-unreachable"
    UPSTREAM_AUTH = "upstream-auth"
    UPSTREAM_NOT_FOUND = "upstream-not-found"
    RESPONSE_UNPARSEABLE = "response-unparseable"
    EMPTY_RESPONSE = "empty-response"
    UNKNOWN = "unknown"


class Failure(BaseModel):
    """
    Opaque description of a failure: message text plus optional status hint.
    """

    message: str = ""
    status: Optional[int] = None

    @property
    def signal(self) -> str:
        """Text searched by the classifier"""
        if self.status is None:
            return self.message
        return f"{self.status} {self.message}"


class ClassifiedError(_CamelModel):
    """
    Normalized failure returned to the caller instead of a report.

    The message is a fixed, kind-specific string; upstream error text is
    never copied into it.
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    http_status: int
    message: str

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class Config(BaseModel):
    """
    Configuration for the audit pipeline.

    Loaded once from .env files and the environment (see `load_config`).

    Attributes:
        vision_provider: Which provider to use by default
        gemini_api_key: Google Gemini API key
        anthropic_api_key: Anthropic API key (optional)
        openai_api_key: OpenAI API key (optional)
        ollama_host: Ollama server URL for local models
        ollama_model: Model name for Ollama (default: llava)
        model: Target model override for the selected provider
        max_bytes: Byte budget for the compressed screenshot
        max_dimension: Longest allowed edge in pixels after downscale
        quality_initial: First lossy quality factor tried
        quality_step: Quality decrement per retry
        quality_floor: Quality is never lowered past this value
        bounds_policy: Handling of out-of-range scores and boxes
        annotations: Ask the model for bounding-box annotations
    """

    vision_provider: Literal["gemini", "anthropic", "openai", "local"] = "gemini"
    gemini_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llava"
    model: Optional[str] = None
    max_bytes: int = Field(default=500 * 1024, gt=0)
    max_dimension: int = Field(default=1200, gt=0)
    quality_initial: float = Field(default=0.8, gt=0, le=1)
    quality_step: float = Field(default=0.1, gt=0, le=1)
    quality_floor: float = Field(default=0.1, gt=0, le=1)
    bounds_policy: BoundsPolicy = BoundsPolicy.CLAMP
    annotations: bool = True

    @model_validator(mode="after")
    def _floor_below_initial(self) -> "Config":
        if self.quality_floor > self.quality_initial:
            raise ValueError("quality_floor must not exceed quality_initial")
        return self

    def has_gemini(self) -> bool:
        """Check if Gemini is configured"""
        return self.gemini_api_key is not None and len(self.gemini_api_key) > 0

    def has_anthropic(self) -> bool:
        """Check if Anthropic is configured"""
        return self.anthropic_api_key is not None and len(self.anthropic_api_key) > 0

    def has_openai(self) -> bool:
        """Check if OpenAI is configured"""
        return self.openai_api_key is not None and len(self.openai_api_key) > 0
