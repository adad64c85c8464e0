"""NHC Proxy.

Serverless Azure Functions proxy that fetches hurricane-forecast data
from the National Hurricane Center, translates KMZ archives and ATCF
A-deck text into GeoJSON / structured JSON, and re-serves it with
permissive CORS headers.
"""

__version__ = "0.1.0"
