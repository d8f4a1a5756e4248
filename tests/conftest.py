"""Pytest configuration and fixtures for FinFlux Console tests."""

import os
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

# Set test environment
os.environ["APP_ENV"] = "test"
os.environ["DEBUG"] = "true"
os.environ["API_BASE_URL"] = "http://backend.test"
os.environ["ALERT_CHANNEL"] = "sms"
os.environ["ALERT_PHONE_NUMBERS"] = '["9876543210"]'
os.environ["TWILIO_ACCOUNT_SID"] = "ACtest"
os.environ["TWILIO_AUTH_TOKEN"] = "test_token"
os.environ["TWILIO_PHONE_NUMBER"] = "+15005550006"
os.environ["TELEGRAM_BOT_TOKEN"] = "test_token"
os.environ["TELEGRAM_CHAT_ID"] = "test_chat_id"
os.environ["CLOUDINARY_UPLOAD_URL"] = "https://assets.test/upload"
os.environ["CLOUDINARY_UPLOAD_PRESET"] = "test_preset"

BASE_URL = "http://backend.test"


class FakeBackend:
    """
    Backend REST en memoria sobre httpx.MockTransport.

    Rutas por (método, path); el valor es un payload JSON, un
    httpx.Response o un callable(request) -> httpx.Response.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, result: Any) -> None:
        self.routes[(method.upper(), path)] = result

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method.upper() and r.url.path == path
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.routes.get((request.method, request.url.path))
        if result is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(result):
            return result(request)
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=result)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def backend_client(fake_backend):
    """BackendClient de la organización ORG-1 contra el FakeBackend."""
    from finflux.services.backend import BackendClient

    client = BackendClient(
        org_id="ORG-1",
        token="jwt-token",
        base_url=BASE_URL,
        transport=fake_backend.transport,
    )
    yield client
    await client.close()


@pytest.fixture
def store():
    from finflux.services.store import SnapshotStore

    return SnapshotStore()


@pytest.fixture
def mock_notifier():
    """Notificador que registra los textos enviados."""
    notifier = MagicMock()
    notifier.channel = "sms"
    notifier.send = AsyncMock(return_value=None)
    return notifier


@pytest.fixture
def product_factory() -> Callable[..., dict]:
    """DTO de producto del backend."""

    def make(
        product_id: str = "P1",
        name: str = "Diesel",
        capacity: float = 10000,
        level: float = 5000,
        status: Any = True,
    ) -> dict:
        return {
            "id": product_id,
            "productName": name,
            "tankCapacity": capacity,
            "currentLevel": level,
            "status": status,
            "metric": "L",
        }

    return make


@pytest.fixture
def sample_sales() -> list[dict]:
    """Sale-history rows."""
    return [
        {
            "id": "S1",
            "productName": "Diesel",
            "salesInRupees": 100,
            "cashReceived": 60,
            "phonePay": 30,
            "creditCard": 10,
            "shortCollections": 0,
            "dateTime": "2024-11-28T09:15:00",
        },
        {
            "id": "S2",
            "productName": "Diesel",
            "salesInRupees": 200,
            "cashReceived": 200,
            "phonePay": 0,
            "creditCard": 0,
            "shortCollections": 0,
            "dateTime": "2024-11-27T18:40:00",
        },
        {
            "id": "S3",
            "productName": "Diesel",
            "salesInRupees": 300,
            "cashReceived": 100,
            "phonePay": 100,
            "creditCard": 50,
            "shortCollections": 50,
            "dateTime": "2024-11-25T11:05:00",
        },
    ]


@pytest.fixture
def login_payload() -> dict:
    """Respuesta de /api/auth/login."""
    return {
        "id": 42,
        "username": "Ravi Kumar",
        "role": " Manager ",
        "email": "ravi@example.com",
        "organizationId": "ORG-1",
        "empId": "EMP-7",
        "token": "jwt-token",
    }
