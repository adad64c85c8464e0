"""Tests for the linear source fallback pipeline."""

from __future__ import annotations

import logging

import pytest

from nhc_proxy.core.exceptions import ContractError
from nhc_proxy.providers.base import UpstreamNotFoundError, UpstreamTimeoutError
from nhc_proxy.providers.fallback import (
    FallbackPipeline,
    Source,
    SourcesExhaustedError,
)


def _raise(exc: Exception):
    def fetch() -> object:
        raise exc

    return fetch


class TestFallbackPipeline:
    def test_first_success_wins(self) -> None:
        calls: list[str] = []

        def second() -> str:
            calls.append("second")
            return "b"

        result = FallbackPipeline("x", Source("first", lambda: "a"), Source("second", second)).run()

        assert result.value == "a"
        assert result.source == "first"
        assert result.failures == ()
        assert calls == []

    def test_falls_through_proxy_errors(self) -> None:
        not_found = UpstreamNotFoundError("missing")
        result = FallbackPipeline(
            "forecast-cone",
            Source("geojson", _raise(not_found)),
            Source("kmz", lambda: {"type": "FeatureCollection"}),
        ).run()

        assert result.source == "kmz"
        assert result.failures == (("geojson", not_found),)

    def test_falsy_value_is_still_success(self) -> None:
        result = FallbackPipeline("x", Source("empty", lambda: {})).run()
        assert result.value == {}
        assert result.source == "empty"

    def test_exhausted(self) -> None:
        first = UpstreamNotFoundError("a")
        second = UpstreamTimeoutError("b")
        pipeline = FallbackPipeline("forecast-track", Source("geojson", _raise(first)), Source("kmz", _raise(second)))

        with pytest.raises(SourcesExhaustedError, match="All sources failed for forecast-track: geojson, kmz") as exc_info:
            pipeline.run()

        assert exc_info.value.failures == (("geojson", first), ("kmz", second))
        assert exc_info.value.last_error is second

    def test_non_proxy_errors_propagate(self) -> None:
        pipeline = FallbackPipeline(
            "x",
            Source("broken", _raise(KeyError("bug"))),
            Source("never", lambda: "unused"),
        )
        with pytest.raises(KeyError):
            pipeline.run()

    def test_failures_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="nhc_proxy.providers.fallback"):
            FallbackPipeline(
                "forecast-cone",
                Source("geojson", _raise(ContractError("bad", code="UPSTREAM_INVALID_JSON"))),
                Source("kmz", lambda: 1),
            ).run()

        assert "source=geojson" in caplog.text
        assert "UPSTREAM_INVALID_JSON" in caplog.text

    def test_requires_a_source(self) -> None:
        with pytest.raises(ValueError, match="at least one source"):
            FallbackPipeline("empty")
