"""Upstream data sources.

- NhcClient: ``httpx`` client for NHC JSON, KMZ and A-deck endpoints
- FallbackPipeline: ordered sources tried until one succeeds
- UpstreamError hierarchy: transport and HTTP failures
"""

from nhc_proxy.providers.base import (
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from nhc_proxy.providers.fallback import (
    FallbackPipeline,
    FallbackResult,
    Source,
    SourcesExhaustedError,
)
from nhc_proxy.providers.nhc import NhcClient

__all__ = [
    "FallbackPipeline",
    "FallbackResult",
    "NhcClient",
    "Source",
    "SourcesExhaustedError",
    "UpstreamError",
    "UpstreamNotFoundError",
    "UpstreamTimeoutError",
    "UpstreamUnavailableError",
]
