"""Linear fallback across upstream sources.

NHC publishes most products in more than one place (GeoJSON archive,
KMZ storm graphics, ``CurrentStorms.json`` metadata). A
``FallbackPipeline`` tries an ordered sequence of named sources and
returns the first success. A source signals failure by raising a
``ProxyError``; any other exception is a bug and propagates unchanged.

Usage::

    pipeline = FallbackPipeline(
        "forecast-cone",
        Source("geojson", lambda: client.fetch_json(geojson_url)),
        Source("kmz", lambda: kmz_to_cone_geojson(client.fetch_bytes(kmz_url))),
    )
    result = pipeline.run()   # FallbackResult(value=..., source="kmz", failures=(...))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from nhc_proxy.core.exceptions import PermanentError, ProxyError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("nhc_proxy.providers.fallback")


@dataclass(frozen=True, slots=True)
class Source:
    """A named zero-argument fetch-and-translate step."""

    name: str
    fetch: Callable[[], Any]


@dataclass(frozen=True, slots=True)
class FallbackResult:
    """Outcome of a successful pipeline run.

    Attributes:
        value: Whatever the winning source returned.
        source: Name of the winning source.
        failures: ``(source name, error)`` for every source tried before it.
    """

    value: Any
    source: str
    failures: tuple[tuple[str, ProxyError], ...] = ()


class SourcesExhaustedError(PermanentError):
    """Raised when every source in a pipeline failed.

    Attributes:
        failures: ``(source name, error)`` for every source, in order.
    """

    default_stage = "fallback"
    default_code = "SOURCES_EXHAUSTED"

    def __init__(self, message: str, *, failures: tuple[tuple[str, ProxyError], ...]) -> None:
        self.failures = failures
        super().__init__(message)

    @property
    def last_error(self) -> ProxyError | None:
        return self.failures[-1][1] if self.failures else None


class FallbackPipeline:
    """Ordered sources tried one after another until one succeeds."""

    def __init__(self, label: str, *sources: Source) -> None:
        if not sources:
            msg = "FallbackPipeline needs at least one source"
            raise ValueError(msg)
        self.label = label
        self.sources = sources

    def run(self) -> FallbackResult:
        """Run sources in order.

        Raises:
            SourcesExhaustedError: If every source raised a ``ProxyError``.
        """
        failures: list[tuple[str, ProxyError]] = []
        for source in self.sources:
            try:
                value = source.fetch()
            except ProxyError as exc:
                logger.warning(
                    "Source failed | pipeline=%s | source=%s | code=%s | error=%s",
                    self.label,
                    source.name,
                    exc.code,
                    exc,
                )
                failures.append((source.name, exc))
                continue
            return FallbackResult(value=value, source=source.name, failures=tuple(failures))

        names = ", ".join(name for name, _ in failures)
        msg = f"All sources failed for {self.label}: {names}"
        raise SourcesExhaustedError(msg, failures=tuple(failures))
