"""
Infrastructure package for the priceport service.

Centralizes database connectivity (pool factory) and the persistence gateway.
Keep this layer focused on I/O and resource management, decoupled from the
orchestrator and the HTTP layer.
"""

from priceport.infrastructure.db_factory import build_dsn, open_pool
from priceport.infrastructure.gateway import SCHEMA_SQL, PriceGateway

__all__ = [
    "PriceGateway",
    "SCHEMA_SQL",
    "build_dsn",
    "open_pool",
]
