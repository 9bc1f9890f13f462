"""
Service layer for tabular exchange.

The ExchangeService is the transport-agnostic entry point used by the
FastAPI application and by library callers.
"""

from tabular_exchange.services.exchange_service import (
    ExchangeService,
    download_headers,
    resolve_format,
)

__all__ = ["ExchangeService", "download_headers", "resolve_format"]
