"""Shared test fixtures and factories."""

import io
import json
from typing import Optional

import pytest
from PIL import Image

from ux_ray.models import Config, InferenceRequest, RawImage
from ux_ray.providers.base import VisionProvider


# =============================================================================
# Images
# =============================================================================


def image_bytes(
    width: int,
    height: int,
    color=(40, 120, 200),
    mode: str = "RGB",
    fmt: str = "PNG",
) -> bytes:
    """Encode a solid-color image."""
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def noise_bytes(width: int, height: int) -> bytes:
    """Encode RGB gaussian noise as BMP (incompressible for JPEG, fast to write)."""
    channels = [Image.effect_noise((width, height), 100) for _ in range(3)]
    img = Image.merge("RGB", channels)
    buf = io.BytesIO()
    img.save(buf, format="BMP")
    return buf.getvalue()


@pytest.fixture
def small_png() -> RawImage:
    return RawImage.from_bytes(image_bytes(320, 200))


@pytest.fixture
def large_png() -> RawImage:
    return RawImage.from_bytes(image_bytes(2400, 1500))


# =============================================================================
# Reports
# =============================================================================


def report_payload(**overrides) -> dict:
    """A valid report as a model would return it."""
    payload = {
        "score": 42,
        "summary": "rough",
        "categories": {
            "visualHierarchy": {"score": 40, "comment": "No clear focal point"},
            "accessibility": {"score": 35, "comment": "Low contrast body text"},
            "consistency": {"score": 55, "comment": "Three button styles"},
        },
        "criticalIssues": ["Grey-on-grey text", "CTA below the fold"],
        "quickFixes": ["Darken body text", "Move CTA up"],
        "annotations": [
            {
                "id": 1,
                "x": 10,
                "y": 20,
                "width": 30,
                "height": 10,
                "severity": "critical",
                "label": "Low contrast",
                "description": "Body text fails WCAG AA",
            },
            {
                "id": 2,
                "x": 60,
                "y": 70,
                "width": 25,
                "height": 15,
                "severity": "info",
                "label": "Spacing",
                "description": "Cards are cramped",
            },
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def report_json() -> str:
    return json.dumps(report_payload())


# =============================================================================
# Providers and configuration
# =============================================================================


class FakeProvider(VisionProvider):
    """Records requests and replies with canned text or raises."""

    def __init__(self, text: str = "", error: Optional[BaseException] = None):
        self.text = text
        self.error = error
        self.requests: list[InferenceRequest] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def default_model(self) -> str:
        return "fake-vision-1"

    def is_available(self) -> bool:
        return True

    async def generate(self, request: InferenceRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def config() -> Config:
    return Config(gemini_api_key="test-key")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate from the developer's .env files and API keys."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in (
        "VISION_PROVIDER",
        "GEMINI_API_KEY",
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "OLLAMA_HOST",
        "OLLAMA_MODEL",
        "UX_RAY_MODEL",
        "UX_RAY_MAX_BYTES",
        "UX_RAY_MAX_DIMENSION",
        "UX_RAY_QUALITY_INITIAL",
        "UX_RAY_QUALITY_STEP",
        "UX_RAY_QUALITY_FLOOR",
        "UX_RAY_BOUNDS_POLICY",
        "UX_RAY_ANNOTATIONS",
    ):
        # setenv first so anything load_dotenv writes is undone at teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path
