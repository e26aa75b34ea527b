"""Custom exceptions for Ceph provider operations."""

from typing import Any, Dict, List, Union


class CephProviderError(Exception):
    """Base exception for Ceph provider errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "CEPH_PROVIDER_ERROR",
        status_code: Union[int, None] = None,
        details: Union[Dict[str, Any], None] = None,
        attribute: Union[str, None] = None,
    ) -> None:
        """Initialize CephProviderError.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code returned by the Ceph API, if any
            details: Additional error details
            attribute: Attribute path the error concerns, if known
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.attribute = attribute


class CephConfigurationError(CephProviderError):
    """Provider configuration is missing or invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        """Initialize CephConfigurationError."""
        kwargs.setdefault("error_code", "CONFIGURATION_ERROR")
        super().__init__(message, **kwargs)


class CephAuthenticationError(CephProviderError):
    """Token validation or password login failed."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        """Initialize CephAuthenticationError."""
        kwargs.setdefault("error_code", "AUTHENTICATION_ERROR")
        super().__init__(message, **kwargs)


class CephValidationError(CephProviderError):
    """A plan violates a resource invariant."""

    def __init__(self, message: str, errors: Union[List[Any], None] = None, **kwargs: Any) -> None:
        """Initialize CephValidationError.

        Args:
            message: Summary of the validation failure
            errors: Individual error diagnostics
            **kwargs: Additional arguments
        """
        kwargs.setdefault("error_code", "VALIDATION_ERROR")
        super().__init__(message, **kwargs)
        self.errors = errors or []


class CephAPIError(CephProviderError):
    """The Ceph API returned a status outside the accepted set."""

    def __init__(self, status_code: int, body: str, **kwargs: Any) -> None:
        """Initialize CephAPIError.

        Args:
            status_code: HTTP status code returned by the Ceph API
            body: Response body, verbatim
            **kwargs: Additional arguments
        """
        message = f"ceph API returned status {status_code}: {body}"
        kwargs.setdefault("error_code", "CEPH_API_ERROR")
        kwargs.setdefault("details", {})
        kwargs["details"]["body"] = body
        super().__init__(message, status_code=status_code, **kwargs)
        self.body = body

    @property
    def is_not_found(self) -> bool:
        """Whether the server answered 404."""
        return self.status_code == 404


class CephConnectionError(CephProviderError):
    """The Ceph API could not be reached."""

    def __init__(self, message: str = "unable to make request to Ceph API", **kwargs: Any) -> None:
        """Initialize CephConnectionError."""
        kwargs.setdefault("error_code", "CEPH_CONNECTION_ERROR")
        super().__init__(message, **kwargs)


class CephTimeout(CephProviderError):
    """A Ceph API request timed out."""

    def __init__(self, message: str = "Ceph API request timed out", **kwargs: Any) -> None:
        """Initialize CephTimeout."""
        kwargs.setdefault("error_code", "CEPH_TIMEOUT")
        super().__init__(message, **kwargs)


class CephParseError(CephProviderError):
    """A response body or keyring text could not be decoded."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        """Initialize CephParseError."""
        kwargs.setdefault("error_code", "CEPH_PARSE_ERROR")
        super().__init__(message, **kwargs)


class CephResourceError(CephProviderError):
    """An operation on a managed resource failed."""

    def __init__(self, message: str, cause: Union[Exception, None] = None, **kwargs: Any) -> None:
        """Initialize CephResourceError.

        Args:
            message: Operation-level message ("Unable to create ...")
            cause: Underlying error, appended to the message
            **kwargs: Additional arguments
        """
        if cause is not None:
            message = f"{message}: {cause}"
            if isinstance(cause, CephProviderError):
                kwargs.setdefault("status_code", cause.status_code)
                kwargs.setdefault("attribute", cause.attribute)
        kwargs.setdefault("error_code", "CEPH_RESOURCE_ERROR")
        super().__init__(message, **kwargs)
        self.cause = cause


class CephRollbackError(CephProviderError):
    """A rollback step failed and the cluster may be inconsistent."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        """Initialize CephRollbackError."""
        kwargs.setdefault("error_code", "CEPH_ROLLBACK_FAILED")
        super().__init__(message, **kwargs)


class CephUnsupportedOperation(CephProviderError):
    """The resource does not support the requested operation."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        """Initialize CephUnsupportedOperation."""
        kwargs.setdefault("error_code", "UNSUPPORTED_OPERATION")
        super().__init__(message, **kwargs)


class CephNotFound(CephProviderError):
    """A lookup or import target does not exist."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        """Initialize CephNotFound."""
        kwargs.setdefault("error_code", "CEPH_NOT_FOUND")
        kwargs.setdefault("status_code", 404)
        super().__init__(message, **kwargs)
