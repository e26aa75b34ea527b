"""Shared fixtures for provider tests."""

from unittest.mock import MagicMock

import pytest

from ceph_provider.ceph.client import CephAPIClient
from ceph_provider.ceph.errors import CephAPIError


def not_found(body: str = '{"detail": "not found"}') -> CephAPIError:
    """Build the error the client raises for a 404 answer."""
    return CephAPIError(404, body)


def server_error(body: str = "internal error") -> CephAPIError:
    """Build the error the client raises for a 500 answer."""
    return CephAPIError(500, body)


@pytest.fixture
def mock_client():
    """Mock CephAPIClient; every API coroutine is an AsyncMock."""
    client = MagicMock(spec=CephAPIClient)
    client.endpoint = "https://mgr.example:8443"
    client.token = "token"
    return client
