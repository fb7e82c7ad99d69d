"""
Pytest configuration for the priceport service.

Provides fixtures for:
- Building zip archives in memory
- An in-memory PriceStore for unit tests of the orchestrator and HTTP layer
- Database pool/gateway management for integration tests
"""

from __future__ import annotations

import os
from typing import Callable, Dict, Generator

import psycopg
import pytest

from priceport.config import Settings
from priceport.infrastructure.db_factory import open_pool
from priceport.infrastructure.gateway import PriceGateway
from tests.helpers import SAMPLE_CSV, InMemoryPriceStore, build_zip


@pytest.fixture
def zip_factory() -> Callable[[Dict[str, bytes]], bytes]:
    return build_zip


@pytest.fixture
def sample_archive() -> bytes:
    return build_zip({"data.csv": SAMPLE_CSV})


@pytest.fixture
def memory_store() -> InMemoryPriceStore:
    return InMemoryPriceStore()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "priceport"),
        db_pool_min_size=1,
        db_pool_max_size=4,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_gateway(
    test_settings: Settings, test_dsn: str, db_connection_available: bool
) -> Generator[PriceGateway, None, None]:
    """
    Session-scoped gateway over a real pool, with the schema created.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    pool = open_pool(test_settings, dsn_override=test_dsn)
    gateway = PriceGateway(pool, export_batch_size=3)
    gateway.ensure_schema()
    try:
        yield gateway
    finally:
        pool.close()


@pytest.fixture(scope="function")
def clean_prices_table(test_dsn: str, db_gateway: PriceGateway) -> Generator[PriceGateway, None, None]:
    """
    Empty the prices table before and after each test function.
    """

    def _truncate() -> None:
        with psycopg.connect(test_dsn) as conn:
            conn.execute("TRUNCATE TABLE public.prices RESTART IDENTITY;")

    _truncate()
    yield db_gateway
    _truncate()
