"""
Configuration Management

Loads configuration from .env files and provides typed config objects.
Handles API keys, provider settings, and compression limits.

Configuration is read once at startup; the resulting Config is passed
explicitly into the provider factory and the pipeline.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .models import Config


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(env_file: Optional[Path] = None) -> Config:
    """
    Load configuration from .env file and environment variables.

    Searches for .env file in:
    1. Provided env_file path
    2. Current directory (.env, then .env.local)
    3. User's home directory

    Environment variables override .env file values.

    Args:
        env_file: Optional path to .env file

    Returns:
        Config object with all settings

    Raises:
        pydantic.ValidationError: If a value is out of range

    Example:
        config = load_config()
        if config.has_gemini():
            provider = GeminiProvider(config.gemini_api_key)
    """
    # Load .env file
    if env_file and env_file.exists():
        load_dotenv(env_file)
    elif Path(".env").exists():
        load_dotenv(".env")
    elif Path(".env.local").exists():
        load_dotenv(".env.local")
    elif (Path.home() / ".env").exists():
        load_dotenv(Path.home() / ".env")

    # Build config from environment
    config = Config(
        vision_provider=os.getenv("VISION_PROVIDER", "gemini"),
        gemini_api_key=os.getenv("GEMINI_API_KEY"),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        ollama_host=os.getenv("OLLAMA_HOST", "http://localhost:11434"),
        ollama_model=os.getenv("OLLAMA_MODEL", "llava"),
        model=os.getenv("UX_RAY_MODEL") or None,
        max_bytes=int(os.getenv("UX_RAY_MAX_BYTES", str(500 * 1024))),
        max_dimension=int(os.getenv("UX_RAY_MAX_DIMENSION", "1200")),
        quality_initial=float(os.getenv("UX_RAY_QUALITY_INITIAL", "0.8")),
        quality_step=float(os.getenv("UX_RAY_QUALITY_STEP", "0.1")),
        quality_floor=float(os.getenv("UX_RAY_QUALITY_FLOOR", "0.1")),
        bounds_policy=os.getenv("UX_RAY_BOUNDS_POLICY", "clamp"),
        annotations=_env_bool("UX_RAY_ANNOTATIONS", True)
    )

    return config
