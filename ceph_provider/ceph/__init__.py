"""Ceph API client and utilities."""

from ceph_provider.ceph.client import CephAPIClient
from ceph_provider.ceph.errors import (
    CephAPIError,
    CephAuthenticationError,
    CephConfigurationError,
    CephConnectionError,
    CephNotFound,
    CephParseError,
    CephProviderError,
    CephResourceError,
    CephRollbackError,
    CephTimeout,
    CephUnsupportedOperation,
    CephValidationError,
)

__all__ = [
    "CephAPIClient",
    "CephAPIError",
    "CephAuthenticationError",
    "CephConfigurationError",
    "CephConnectionError",
    "CephNotFound",
    "CephParseError",
    "CephProviderError",
    "CephResourceError",
    "CephRollbackError",
    "CephTimeout",
    "CephUnsupportedOperation",
    "CephValidationError",
]
