"""Tests for the ux-ray command line."""

import json

import pytest
import requests
from click.testing import CliRunner
from rich.console import Console

from conftest import FakeProvider, image_bytes, report_payload
from ux_ray import cli
from ux_ray.errors import UpstreamError


def _json_tail(output: str) -> dict:
    """Parse the JSON document printed last (log lines may precede it)."""
    return json.loads(output[output.index("{"):])


@pytest.fixture
def screenshot(clean_env):
    path = clean_env / "shot.png"
    path.write_bytes(image_bytes(640, 400))
    return path


@pytest.fixture
def wide_console(monkeypatch):
    monkeypatch.setattr(cli, "console", Console(width=200))


@pytest.fixture
def fake_provider(monkeypatch, report_json):
    provider = FakeProvider(text=report_json)
    monkeypatch.setattr(cli, "get_provider", lambda name, config: provider)
    return provider


def test_json_output(screenshot, fake_provider):
    result = CliRunner().invoke(cli.main, ["analyze", str(screenshot), "--output", "json"])

    assert result.exit_code == 0, result.output
    export = _json_tail(result.output)
    assert export["tool"] == "UX-Ray"
    assert export["provider"] == "fake"
    assert export["model"] == "fake-vision-1"
    assert export["result"]["score"] == 42
    assert export["result"]["criticalIssues"][0] == "Grey-on-grey text"


def test_rich_output(screenshot, fake_provider, wide_console):
    result = CliRunner().invoke(cli.main, ["analyze", str(screenshot)])

    assert result.exit_code == 0, result.output
    assert "42/100" in result.output
    assert "Low contrast" in result.output
    assert "Darken body text" in result.output


def test_rich_output_keeps_brackets_in_model_text(screenshot, monkeypatch, wide_console):
    payload = report_payload(
        summary="Weak [primary] actions",
        criticalIssues=["Close [/b] icon", "Press [submit] twice"],
    )
    payload["annotations"][0]["label"] = "[bold] misuse"
    provider = FakeProvider(text=json.dumps(payload))
    monkeypatch.setattr(cli, "get_provider", lambda name, config: provider)

    result = CliRunner().invoke(cli.main, ["analyze", str(screenshot)])

    assert result.exit_code == 0, result.output
    assert "Weak [primary] actions" in result.output
    assert "Close [/b] icon" in result.output
    assert "Press [submit] twice" in result.output
    assert "[bold] misuse" in result.output


def test_display_size_projects_boxes(screenshot, fake_provider, wide_console):
    result = CliRunner().invoke(
        cli.main, ["analyze", str(screenshot), "--display-size", "1000x500", "--zoom", "2"]
    )

    assert result.exit_code == 0, result.output
    assert "200, 200, 600, 100" in result.output


def test_overrides_reach_pipeline(screenshot, fake_provider):
    result = CliRunner().invoke(
        cli.main,
        ["analyze", str(screenshot), "--output", "json", "--no-annotations", "--model", "other-model"],
    )

    assert result.exit_code == 0, result.output
    request = fake_provider.requests[0]
    assert request.model == "other-model"
    assert '"annotations"' not in request.text


def test_bad_display_size(screenshot, fake_provider):
    result = CliRunner().invoke(cli.main, ["analyze", str(screenshot), "--display-size", "wide"])

    assert result.exit_code == 2
    assert fake_provider.requests == []


def test_classified_failure(screenshot, monkeypatch):
    provider = FakeProvider(error=UpstreamError("429 RESOURCE_EXHAUSTED", status=429))
    monkeypatch.setattr(cli, "get_provider", lambda name, config: provider)

    result = CliRunner().invoke(cli.main, ["analyze", str(screenshot), "--output", "json"])

    assert result.exit_code == 1
    assert _json_tail(result.output)["error"] == {
        "kind": "upstream-quota",
        "httpStatus": 429,
        "message": "API quota exceeded. Please wait a moment and try again, or use a new API key.",
    }


def test_missing_credentials(screenshot):
    result = CliRunner().invoke(cli.main, ["analyze", str(screenshot), "--output", "json"])

    assert result.exit_code == 1
    assert _json_tail(result.output)["error"]["kind"] == "missing-credentials"


def test_invalid_configuration(screenshot, monkeypatch):
    monkeypatch.setenv("VISION_PROVIDER", "bard")

    result = CliRunner().invoke(cli.main, ["analyze", str(screenshot)])

    assert result.exit_code == 2


def test_providers_command(clean_env, monkeypatch, wide_console):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")

    def refuse(*args, **kwargs):
        raise requests.ConnectionError("Connection refused")

    monkeypatch.setattr(requests, "get", refuse)

    result = CliRunner().invoke(cli.main, ["providers"])

    assert result.exit_code == 0, result.output
    assert "gemini (default)" in result.output
    assert "ready" in result.output
    assert "no API key" in result.output
    assert "unavailable" in result.output


def test_version():
    result = CliRunner().invoke(cli.main, ["--version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output
