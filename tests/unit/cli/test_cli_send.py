"""Unit tests for the send command.

The HTTP sink is swapped for one backed by httpx.MockTransport so no
network traffic leaves the test.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest
from click.testing import CliRunner

import fake_time_series_cli.commands.send as send_module
from fake_time_series.sink import HttpSink
from fake_time_series_cli.main import cli

pytestmark = pytest.mark.unit

WINDOW = [
    "--start-time",
    "2024-01-01T00:00:00Z",
    "--end-time",
    "2024-01-01T00:01:00Z",
    "--min-interval",
    "10s",
    "--max-interval",
    "10s",
    "--seed",
    "42",
]


class RecordingSink:
    """Replaces HttpSink in the send module and records every request."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []
        self.timeouts: list[float] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text="nope" if self.status_code >= 400 else "")

    def __call__(self, url: str, *, headers: dict[str, str], timeout: float, **_: Any) -> HttpSink:
        self.timeouts.append(timeout)
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return HttpSink(url, headers=headers, timeout=timeout, client=client)

    @property
    def urls(self) -> set[str]:
        return {str(request.url) for request in self.requests}

    @property
    def points(self) -> int:
        return sum(len(json.loads(request.content)) for request in self.requests)


@pytest.fixture
def recording_sink(monkeypatch: pytest.MonkeyPatch) -> RecordingSink:
    sink = RecordingSink()
    monkeypatch.setattr(send_module, "HttpSink", sink)
    return sink


class TestSendCommand:
    """Tests for fake-time-series send."""

    def test_sink_url_required(
        self, isolated_runner: CliRunner, recording_sink: RecordingSink
    ) -> None:
        """Without a sink URL the command fails before sending."""
        result = isolated_runner.invoke(cli, ["send", *WINDOW])

        assert result.exit_code == 1
        assert "Sink URL is required." in result.output
        assert recording_sink.requests == []

    def test_posts_every_point(
        self, isolated_runner: CliRunner, recording_sink: RecordingSink
    ) -> None:
        """Every generated point is POSTed as part of a JSON array."""
        result = isolated_runner.invoke(
            cli, ["send", *WINDOW, "--sink-url", "http://sink.test/in"]
        )

        assert result.exit_code == 0, result.output
        assert recording_sink.urls == {"http://sink.test/in"}
        assert recording_sink.points == 6
        assert all(r.method == "POST" for r in recording_sink.requests)
        assert all(
            r.headers["content-type"] == "application/json" for r in recording_sink.requests
        )
        assert "Sent 6 messages" in result.stdout

    def test_headers_merged_with_defaults(
        self, isolated_runner: CliRunner, recording_sink: RecordingSink
    ) -> None:
        """--headers adds to the default JSON content type."""
        result = isolated_runner.invoke(
            cli,
            [
                "send",
                *WINDOW,
                "--sink-url",
                "http://sink.test/in",
                "--headers",
                '{"Authorization": "Bearer abc"}',
            ],
        )

        assert result.exit_code == 0, result.output
        request = recording_sink.requests[0]
        assert request.headers["authorization"] == "Bearer abc"
        assert request.headers["content-type"] == "application/json"

    def test_invalid_headers(
        self, isolated_runner: CliRunner, recording_sink: RecordingSink
    ) -> None:
        """Headers that are not a JSON object are usage errors."""
        result = isolated_runner.invoke(
            cli, ["send", *WINDOW, "--sink-url", "http://sink.test/in", "--headers", "[1]"]
        )

        assert result.exit_code == 2
        assert recording_sink.requests == []

    def test_failures_reported_without_aborting(
        self, isolated_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Rejected batches are counted and the run still completes."""
        sink = RecordingSink(status_code=500)
        monkeypatch.setattr(send_module, "HttpSink", sink)

        result = isolated_runner.invoke(
            cli, ["send", *WINDOW, "--sink-url", "http://sink.test/in"]
        )

        assert result.exit_code == 0, result.output
        assert sink.points == 6
        assert f"{len(sink.requests)} of {len(sink.requests)} batches failed" in result.output

    def test_timeout_passed_to_sink(
        self, isolated_runner: CliRunner, recording_sink: RecordingSink
    ) -> None:
        """--timeout reaches the sink."""
        isolated_runner.invoke(
            cli, ["send", *WINDOW, "--sink-url", "http://sink.test/in", "--timeout", "2.5"]
        )
        assert recording_sink.timeouts == [2.5]


class TestSendPrecedence:
    """Command line, environment and config file precedence."""

    def test_environment_sink_url(
        self,
        isolated_runner: CliRunner,
        recording_sink: RecordingSink,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """FAKE_TIME_SERIES_SINK_URL is used when no flag is given."""
        monkeypatch.setenv("FAKE_TIME_SERIES_SINK_URL", "http://env.test/in")

        result = isolated_runner.invoke(cli, ["send", *WINDOW])

        assert result.exit_code == 0, result.output
        assert recording_sink.urls == {"http://env.test/in"}

    def test_flag_beats_environment(
        self,
        isolated_runner: CliRunner,
        recording_sink: RecordingSink,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """--sink-url wins over the environment."""
        monkeypatch.setenv("FAKE_TIME_SERIES_SINK_URL", "http://env.test/in")

        isolated_runner.invoke(cli, ["send", *WINDOW, "--sink-url", "http://cli.test/in"])

        assert recording_sink.urls == {"http://cli.test/in"}

    def test_config_file_sink(
        self, isolated_runner: CliRunner, recording_sink: RecordingSink
    ) -> None:
        """The config file supplies the sink URL, headers and timeout."""
        Path("fake-time-series.yaml").write_text(
            "sinkUrl: http://cfg.test/in\n"
            "timeout: 4\n"
            "headers:\n"
            "  X-Source: config\n"
        )

        result = isolated_runner.invoke(cli, ["send", *WINDOW])

        assert result.exit_code == 0, result.output
        assert recording_sink.urls == {"http://cfg.test/in"}
        assert recording_sink.timeouts == [4.0]
        assert recording_sink.requests[0].headers["x-source"] == "config"

    def test_environment_beats_config_file(
        self,
        isolated_runner: CliRunner,
        recording_sink: RecordingSink,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Environment values win over the config file."""
        Path("fake-time-series.yaml").write_text(
            "sinkUrl: http://cfg.test/in\nheaders:\n  X-Source: config\n"
        )
        monkeypatch.setenv("FAKE_TIME_SERIES_SINK_URL", "http://env.test/in")
        monkeypatch.setenv("FAKE_TIME_SERIES_HEADERS", '{"X-Source": "env"}')

        result = isolated_runner.invoke(cli, ["send", *WINDOW])

        assert result.exit_code == 0, result.output
        assert recording_sink.urls == {"http://env.test/in"}
        assert recording_sink.requests[0].headers["x-source"] == "env"
