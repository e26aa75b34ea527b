"""Ceph Manager REST API client."""

import asyncio
import json
import logging
import time
from typing import Any, Collection, Dict, Iterable, List, Union
from urllib.parse import quote, urlsplit

import requests

from ceph_provider.ceph.errors import (
    CephAPIError,
    CephAuthenticationError,
    CephConfigurationError,
    CephConnectionError,
    CephParseError,
    CephProviderError,
    CephTimeout,
)

logger = logging.getLogger(__name__)

API_VERSION_V1 = "v1.0"
API_VERSION_V2 = "v2.0"
DEFAULT_TIMEOUT = 10
MASK = "***"


def mask_secrets(text: str, secrets: Iterable[Union[str, None]]) -> str:
    """Replace every occurrence of the given secrets in text."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, MASK)
    return text


def accept_header(version: str = API_VERSION_V1) -> str:
    """Build the versioned Ceph API media type."""
    return f"application/vnd.ceph.api.{version}+json"


def _segment(value: str) -> str:
    """Percent-encode one URL path segment, slashes included."""
    return quote(str(value), safe="")


class CephAPIClient:
    """Authenticated JSON client for the Ceph Manager API.

    The endpoint and token are set once by :meth:`configure` and only read
    afterwards, so one instance is shared by every controller.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        verify_tls: bool = True,
        session: Union[requests.Session, None] = None,
    ) -> None:
        """Initialize CephAPIClient.

        Args:
            timeout: Per-request timeout in seconds
            verify_tls: Whether to verify the endpoint TLS certificate
            session: Pre-built requests session (optional)
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = verify_tls
        self.endpoint: Union[str, None] = None
        self.token: Union[str, None] = None
        self._secrets: List[str] = []

    @property
    def configured(self) -> bool:
        """Whether an endpoint and token have been established."""
        return self.endpoint is not None and self.token is not None

    async def configure(
        self,
        endpoints: List[str],
        username: Union[str, None] = None,
        password: Union[str, None] = None,
        token: Union[str, None] = None,
    ) -> None:
        """Select an endpoint and establish a session token.

        Args:
            endpoints: Candidate endpoints, probed in order
            username: Dashboard username (with password)
            password: Dashboard password (with username)
            token: Pre-issued token (instead of username/password)

        Raises:
            CephConfigurationError: If no endpoint answers or no credentials are given
            CephAuthenticationError: If the token or credentials are rejected
        """
        try:
            self.endpoint = await self._query_endpoints(endpoints)
        except CephConnectionError as e:
            raise CephConfigurationError(f"unable to query endpoints: {e}") from e

        logger.info(f"Using ceph mgr endpoint: {self.endpoint}")

        if token:
            self.token = token
            self._secrets.append(token)
            try:
                valid = await self.auth_check()
            except CephProviderError as e:
                self.token = None
                raise CephAuthenticationError(f"failed to validate token: {e}") from e
            if not valid:
                self.token = None
                raise CephAuthenticationError("provided token is invalid or expired")
        elif username and password:
            self._secrets.append(password)
            try:
                self.token = await self.auth(username, password)
            except CephProviderError as e:
                raise CephAuthenticationError(f"failed to authenticate with credentials: {e}") from e
            self._secrets.append(self.token)
        else:
            raise CephConfigurationError("either token or username/password must be provided")

    async def _query_endpoints(self, endpoints: List[str]) -> str:
        """Return the first endpoint not answering 503 to a plain GET."""
        for endpoint in endpoints:
            started = time.monotonic()
            try:
                response = await asyncio.to_thread(self.session.get, endpoint, timeout=self.timeout)
            except requests.RequestException as e:
                self._log_request("GET", endpoint, started, error=e)
                continue

            self._log_request("GET", endpoint, started, status=response.status_code)
            if response.status_code == 503:
                continue
            return endpoint.rstrip("/")

        raise CephConnectionError("no available endpoints found")

    def _url(self, *segments: str) -> str:
        if self.endpoint is None:
            raise CephConfigurationError("Ceph API client is not configured")
        return "/".join([self.endpoint, "api", *(_segment(s) for s in segments)])

    def _log_request(
        self,
        method: str,
        url: str,
        started: float,
        status: Union[int, None] = None,
        error: Union[Exception, None] = None,
    ) -> None:
        parts = urlsplit(url)
        duration_ms = int((time.monotonic() - started) * 1000)
        masked = mask_secrets(url, self._secrets)
        fields = f"method={method} url={masked} host={parts.netloc} path={parts.path} duration_ms={duration_ms}"
        if status is not None:
            fields += f" status={status}"

        if error is not None:
            logger.error(f"Ceph API request failed: {fields} error={mask_secrets(str(error), self._secrets)}")
            return
        logger.info(f"Ceph API request completed: {fields}")

    async def request(
        self,
        method: str,
        url: str,
        *,
        accepted: Collection[int],
        body: Union[Dict[str, Any], None] = None,
        params: Union[Dict[str, str], None] = None,
        version: str = API_VERSION_V1,
    ) -> requests.Response:
        """Issue one API request and check its status.

        The blocking call runs in a worker thread. Cancelling the awaiting
        task closes the session so the in-flight connection is dropped, and
        the session reconnects on the next request.

        Args:
            method: HTTP method
            url: Absolute request URL
            accepted: Status codes treated as success
            body: JSON request body
            params: Query parameters
            version: Accept version for this operation

        Returns:
            The response, with a status in ``accepted``

        Raises:
            CephAPIError: If the status is outside ``accepted``
            CephTimeout: If the request timed out
            CephConnectionError: If the request could not be made
        """
        headers = {
            "Accept": accept_header(version),
            "Content-Type": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        started = time.monotonic()
        try:
            response = await asyncio.to_thread(
                self.session.request,
                method,
                url,
                headers=headers,
                json=body,
                params=params,
                timeout=self.timeout,
            )
        except asyncio.CancelledError:
            # unblocks the worker thread's read
            logger.warning(f"Ceph API request cancelled: {method} {mask_secrets(url, self._secrets)}")
            self.session.close()
            raise
        except requests.Timeout as e:
            self._log_request(method, url, started, error=e)
            raise CephTimeout(
                message=f"Ceph API request timed out after {self.timeout}s",
                details={"method": method, "timeout": self.timeout},
            ) from e
        except requests.RequestException as e:
            self._log_request(method, url, started, error=e)
            raise CephConnectionError(
                message=f"unable to make request to Ceph API: {mask_secrets(str(e), self._secrets)}",
                details={"method": method, "error_type": type(e).__name__},
            ) from e

        self._log_request(method, url, started, status=response.status_code)

        if response.status_code not in accepted:
            self._handle_error(response)

        return response

    def _handle_error(self, response: requests.Response) -> None:
        """Raise the error for a response outside the accepted set.

        Raises:
            CephAPIError: Always, carrying the status and body verbatim
        """
        raise CephAPIError(response.status_code, response.text)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except (ValueError, json.JSONDecodeError) as e:
            raise CephParseError(
                f"unable to decode JSON response: {e}",
                details={"body": response.text},
            ) from e

    # Authentication

    async def auth_check(self) -> bool:
        """Validate the configured token.

        Returns:
            True for a valid token, False for 401

        Raises:
            CephAPIError: For any other status
        """
        response = await self.request(
            "POST",
            self._url("auth", "check"),
            accepted=(200, 201, 202, 401),
            body={},
            params={"token": self.token or ""},
        )
        return response.status_code != 401

    async def auth(self, username: str, password: str) -> str:
        """Log in with username and password and return the issued token."""
        response = await self.request(
            "POST",
            self._url("auth"),
            accepted=(200, 201),
            body={"username": username, "password": password},
        )
        token = self._decode(response).get("token")
        if not token:
            raise CephAuthenticationError("authentication response did not contain a token")
        return token

    # Cluster users

    async def cluster_export_user(self, entity: str) -> str:
        """Export an identity as keyring text."""
        response = await self.request(
            "POST",
            self._url("cluster", "user", "export"),
            accepted=(200,),
            body={"entities": [entity]},
        )
        keyring = self._decode(response)
        if not isinstance(keyring, str):
            raise CephParseError("unable to decode JSON response: expected a string", details={"body": response.text})
        return keyring

    async def cluster_create_user(self, entity: str, capabilities: List[Dict[str, str]]) -> None:
        """Create an identity with the given capability list."""
        await self.request(
            "POST",
            self._url("cluster", "user"),
            accepted=(201, 202),
            body={"user_entity": entity, "capabilities": capabilities},
        )

    async def cluster_import_user(self, import_data: str) -> None:
        """Create identities from keyring text."""
        await self.request(
            "POST",
            self._url("cluster", "user"),
            accepted=(201, 202),
            body={"import_data": import_data},
        )

    async def cluster_update_user(self, entity: str, capabilities: List[Dict[str, str]]) -> None:
        """Replace the capability list of an identity."""
        await self.request(
            "PUT",
            self._url("cluster", "user"),
            accepted=(200, 202),
            body={"user_entity": entity, "capabilities": capabilities},
        )

    async def cluster_delete_user(self, entity: str) -> None:
        """Delete an identity."""
        await self.request("DELETE", self._url("cluster", "user", entity), accepted=(202, 204))

    # Cluster configuration

    async def cluster_list_conf(self) -> List[Dict[str, Any]]:
        """List every cluster configuration option."""
        response = await self.request("GET", self._url("cluster_conf"), accepted=(200,))
        return self._decode(response)

    async def cluster_get_conf(self, name: str) -> Dict[str, Any]:
        """Get one cluster configuration option with its per-section values."""
        response = await self.request("GET", self._url("cluster_conf", name), accepted=(200,))
        return self._decode(response)

    async def cluster_update_conf(self, name: str, section: str, value: str) -> None:
        """Set one configuration cell."""
        await self.request(
            "POST",
            self._url("cluster_conf"),
            accepted=(201, 202),
            body={"name": name, "value": [{"section": section, "value": value}]},
        )

    async def cluster_delete_conf(self, name: str, section: str) -> None:
        """Remove one configuration cell."""
        await self.request(
            "DELETE",
            self._url("cluster_conf", name),
            accepted=(202, 204),
            params={"section": section},
        )

    # Manager modules

    async def mgr_get_module_config(self, module: str) -> Dict[str, Any]:
        """Get the current option values of a manager module."""
        response = await self.request("GET", self._url("mgr", "module", module), accepted=(200,))
        return self._decode(response)

    async def mgr_set_module_config(self, module: str, config: Dict[str, Any]) -> None:
        """Set option values of a manager module."""
        await self.request(
            "PUT",
            self._url("mgr", "module", module),
            accepted=(200, 201, 202),
            body={"config": config},
        )

    async def mgr_enable_module(self, module: str) -> None:
        """Enable a manager module."""
        await self.request("POST", self._url("mgr", "module", module, "enable"), accepted=(200, 201, 202))

    async def mgr_disable_module(self, module: str) -> None:
        """Disable a manager module."""
        await self.request("POST", self._url("mgr", "module", module, "disable"), accepted=(200, 201, 202))

    async def mgr_get_module_options(self, module: str) -> Dict[str, Dict[str, Any]]:
        """Get the published options of a manager module, including defaults."""
        response = await self.request("GET", self._url("mgr", "module", module, "options"), accepted=(200,))
        return self._decode(response)

    # RGW users and keys

    async def rgw_get_user(self, uid: str) -> Dict[str, Any]:
        """Get an RGW user."""
        response = await self.request("GET", self._url("rgw", "user", uid), accepted=(200,))
        return self._decode(response)

    async def rgw_create_user(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create an RGW user."""
        response = await self.request("POST", self._url("rgw", "user"), accepted=(200, 201), body=payload)
        return self._decode(response)

    async def rgw_update_user(self, uid: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Update an RGW user."""
        response = await self.request("PUT", self._url("rgw", "user", uid), accepted=(200, 202), body=payload)
        return self._decode(response)

    async def rgw_delete_user(self, uid: str) -> None:
        """Delete an RGW user."""
        await self.request("DELETE", self._url("rgw", "user", uid), accepted=(200, 202, 204))

    async def rgw_create_s3_key(
        self,
        uid: str,
        subuser: Union[str, None] = None,
        access_key: Union[str, None] = None,
        secret_key: Union[str, None] = None,
        generate_key: Union[bool, None] = None,
    ) -> List[Dict[str, Any]]:
        """Create an S3 key and return every S3 key of the user."""
        payload: Dict[str, Any] = {"uid": uid, "key_type": "s3"}
        if subuser is not None:
            payload["subuser"] = subuser
        if access_key is not None:
            payload["access_key"] = access_key
        if secret_key is not None:
            payload["secret_key"] = secret_key
        if generate_key is not None:
            payload["generate_key"] = generate_key

        response = await self.request(
            "POST",
            self._url("rgw", "user", uid, "key"),
            accepted=(200, 201),
            body=payload,
        )
        return self._decode(response)

    async def rgw_delete_s3_key(self, uid: str, access_key: str, subuser: Union[str, None] = None) -> None:
        """Delete an S3 key."""
        params = {"key_type": "s3", "access_key": access_key}
        if subuser is not None:
            params["subuser"] = subuser
        await self.request(
            "DELETE",
            self._url("rgw", "user", uid, "key"),
            accepted=(200, 202, 204),
            params=params,
        )

    # RGW buckets

    async def rgw_get_bucket(self, bucket: str) -> Dict[str, Any]:
        """Get an RGW bucket."""
        response = await self.request("GET", self._url("rgw", "bucket", bucket), accepted=(200,))
        return self._decode(response)

    async def rgw_create_bucket(self, payload: Dict[str, Any]) -> Union[Dict[str, Any], None]:
        """Create an RGW bucket."""
        response = await self.request("POST", self._url("rgw", "bucket"), accepted=(200, 201), body=payload)
        if not response.content:
            return None
        return self._decode(response)

    async def rgw_delete_bucket(self, bucket: str) -> None:
        """Delete an RGW bucket."""
        await self.request("DELETE", self._url("rgw", "bucket", bucket), accepted=(200, 204))

    # Pools

    async def list_pools(self) -> List[Dict[str, Any]]:
        """List pools."""
        response = await self.request("GET", self._url("pool"), accepted=(200,))
        return self._decode(response)

    async def get_pool(self, pool_name: str) -> Dict[str, Any]:
        """Get a pool."""
        response = await self.request("GET", self._url("pool", pool_name), accepted=(200,))
        return self._decode(response)

    async def create_pool(self, payload: Dict[str, Any]) -> None:
        """Create a pool."""
        await self.request("POST", self._url("pool"), accepted=(201, 202), body=payload)

    async def update_pool(self, pool_name: str, payload: Dict[str, Any]) -> None:
        """Update a pool in place."""
        await self.request("PUT", self._url("pool", pool_name), accepted=(200, 202), body=payload)

    async def delete_pool(self, pool_name: str) -> None:
        """Delete a pool."""
        await self.request("DELETE", self._url("pool", pool_name), accepted=(202, 204))

    async def get_pool_configuration(self, pool_name: str) -> List[Dict[str, Any]]:
        """Get the per-pool configuration overrides."""
        response = await self.request("GET", self._url("pool", pool_name, "configuration"), accepted=(200,))
        return self._decode(response)

    # CRUSH rules

    async def list_crush_rules(self) -> List[Dict[str, Any]]:
        """List CRUSH rules."""
        response = await self.request("GET", self._url("crush_rule"), accepted=(200,), version=API_VERSION_V2)
        return self._decode(response)

    async def get_crush_rule(self, name: str) -> Dict[str, Any]:
        """Get a CRUSH rule."""
        response = await self.request("GET", self._url("crush_rule", name), accepted=(200,), version=API_VERSION_V2)
        return self._decode(response)

    async def create_crush_rule(self, payload: Dict[str, Any]) -> None:
        """Create a CRUSH rule."""
        await self.request("POST", self._url("crush_rule"), accepted=(201, 202), body=payload)

    async def delete_crush_rule(self, name: str) -> None:
        """Delete a CRUSH rule."""
        await self.request("DELETE", self._url("crush_rule", name), accepted=(202, 204))

    # Erasure code profiles

    async def list_erasure_code_profiles(self) -> List[Dict[str, Any]]:
        """List erasure code profiles."""
        response = await self.request("GET", self._url("erasure_code_profile"), accepted=(200,))
        return self._decode(response)

    async def get_erasure_code_profile(self, name: str) -> Dict[str, Any]:
        """Get an erasure code profile."""
        response = await self.request("GET", self._url("erasure_code_profile", name), accepted=(200,))
        return self._decode(response)

    async def create_erasure_code_profile(self, payload: Dict[str, Any]) -> None:
        """Create an erasure code profile."""
        await self.request("POST", self._url("erasure_code_profile"), accepted=(201, 202), body=payload)

    async def delete_erasure_code_profile(self, name: str) -> None:
        """Delete an erasure code profile."""
        await self.request("DELETE", self._url("erasure_code_profile", name), accepted=(202, 204))
