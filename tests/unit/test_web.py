from __future__ import annotations

import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from priceport.web.app import create_app
from tests.helpers import InMemoryPriceStore, build_zip

PRICES_URL = "/api/v0/prices"


@pytest.fixture
def client(memory_store: InMemoryPriceStore):
    with TestClient(create_app(gateway=memory_store)) as test_client:
        yield test_client


def test_upload_returns_stats(client: TestClient, sample_archive: bytes) -> None:
    response = client.post(
        PRICES_URL, content=sample_archive, headers={"Content-Type": "application/zip"}
    )

    assert response.status_code == 200
    assert response.json() == {"total_items": 1, "total_categories": 1, "total_price": 9.99}


def test_upload_with_wrong_content_type_is_400(client: TestClient, sample_archive: bytes) -> None:
    response = client.post(PRICES_URL, content=sample_archive, headers={"Content-Type": "text/csv"})

    assert response.status_code == 400
    assert "Expected zip file" in response.json()["detail"]


def test_upload_with_empty_body_is_400(client: TestClient, memory_store: InMemoryPriceStore) -> None:
    response = client.post(PRICES_URL, content=b"", headers={"Content-Type": "application/zip"})

    assert response.status_code == 400
    assert response.json() == {"detail": "Empty request body"}
    assert memory_store.insert_calls == 0


def test_upload_without_csv_member_is_400(client: TestClient) -> None:
    body = build_zip({"notes.txt": b"hello"})

    response = client.post(PRICES_URL, content=body, headers={"Content-Type": "application/zip"})

    assert response.status_code == 400
    assert "notes.txt" in response.json()["detail"]


def test_upload_with_bad_row_is_400_and_stores_nothing(
    client: TestClient, memory_store: InMemoryPriceStore
) -> None:
    body = build_zip(
        {"data.csv": b"name,category,price,create_date\nWidget,Tools,bad,2024-01-15\n"}
    )

    response = client.post(PRICES_URL, content=body, headers={"Content-Type": "application/zip"})

    assert response.status_code == 400
    assert "line 2" in response.json()["detail"]
    assert memory_store.count() == 0


def test_storage_failure_is_500(
    client: TestClient, memory_store: InMemoryPriceStore, sample_archive: bytes
) -> None:
    memory_store.fail_inserts = True

    response = client.post(
        PRICES_URL, content=sample_archive, headers={"Content-Type": "application/zip"}
    )

    assert response.status_code == 500
    assert "simulated outage" in response.json()["detail"]


def test_download_returns_zip_attachment(client: TestClient, sample_archive: bytes) -> None:
    client.post(PRICES_URL, content=sample_archive, headers={"Content-Type": "application/zip"})

    response = client.get(PRICES_URL)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert response.headers["content-disposition"] == 'attachment; filename="prices.zip"'
    assert int(response.headers["content-length"]) == len(response.content)
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == ["data.csv"]
        assert archive.read("data.csv") == (
            b"name,category,price,create_date\nWidget,Tools,9.99,2024-01-15\n"
        )


def test_download_of_empty_store_has_header_only(client: TestClient) -> None:
    response = client.get(PRICES_URL)

    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.read("data.csv") == b"name,category,price,create_date\n"


def test_health_reports_connected(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "connected"}


def test_health_reports_disconnected_database(
    client: TestClient, memory_store: InMemoryPriceStore
) -> None:
    memory_store.healthy = False

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "error", "database": "disconnected"}
