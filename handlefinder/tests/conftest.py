"""Pytest configuration."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "network: mark test as requiring live chess.com / Lichess access (not run by default)"
    )


def make_response(status: int = 200, payload=None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    resp.text = text
    if status >= 400:
        resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            f"HTTP {status}", request=MagicMock(), response=resp
        )
    return resp


@pytest.fixture
def routed_session():
    """
    Build an AsyncClient stand-in from {url: (status, payload_or_text)}.
    Unknown URLs answer 404. Text payloads are served as .text.
    """

    def build(routes: dict) -> AsyncMock:
        async def get(url, headers=None, **kwargs):
            if url not in routes:
                return make_response(404)
            status, body = routes[url]
            if isinstance(body, str):
                return make_response(status, text=body)
            return make_response(status, payload=body)

        session = AsyncMock(spec=httpx.AsyncClient)
        session.get = AsyncMock(side_effect=get)
        return session

    return build
