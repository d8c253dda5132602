import asyncio

import httpx
import pytest

from standardapi import AsyncStandardAPIClient, StandardAPIClient

BASE_URL = "http://api.test"


@pytest.fixture()
def schema_data():
    return {
        "comment": "Project tracker",
        "models": {
            "Project": {
                "comment": "A tracked project",
                "attributes": {
                    "id": {
                        "type": "integer",
                        "default": None,
                        "primary_key": True,
                        "null": False,
                        "array": False,
                        "comment": None,
                    },
                    "name": {
                        "type": "string",
                        "default": None,
                        "primary_key": False,
                        "null": True,
                        "array": False,
                        "comment": "Display name",
                    },
                    "tags": {
                        "type": "string",
                        "default": [],
                        "primary_key": False,
                        "null": False,
                        "array": True,
                        "comment": None,
                    },
                },
            },
            "Person": {"comment": None, "attributes": {}},
        },
        "routes": [
            {"path": "/projects", "method": "get", "model": "Project", "array": True, "limit": 1000},
            {"path": "/projects/:id", "method": "GET", "model": "Project", "array": False},
            {"path": "/schema", "method": "GET", "array": False},
        ],
    }


@pytest.fixture()
def make_client():
    """Create a client whose requests are answered by ``handler``."""
    clients = []

    def _make_client(handler, **kwargs):
        http = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(http)
        return StandardAPIClient(BASE_URL, http=http, **kwargs)

    yield _make_client
    for http in clients:
        http.close()


@pytest.fixture()
def make_async_client():
    clients = []

    def _make_client(handler, **kwargs):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(http)
        return AsyncStandardAPIClient(BASE_URL, http=http, **kwargs)

    yield _make_client
    for http in clients:
        asyncio.run(http.aclose())
