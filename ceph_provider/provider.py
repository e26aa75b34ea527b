"""Provider shell: configuration, the shared client and the registries."""

import logging
from typing import Any, Callable, Dict, Tuple, Type, Union

from ceph_provider.ceph.client import CephAPIClient
from ceph_provider.ceph.errors import CephConfigurationError, CephValidationError
from ceph_provider.core.config import ProviderSettings, get_settings
from ceph_provider.datasources import ClusterDataSource, RGWDataSource, StorageDataSource
from ceph_provider.resources import CONTROLLERS, ResourceController, ResourceResult

logger = logging.getLogger(__name__)

RESOURCE_TYPES: Dict[str, Type[ResourceController]] = {cls.type_name: cls for cls in CONTROLLERS}

# lookup kind -> (data source attribute, method name)
LOOKUPS: Dict[str, Tuple[str, str]] = {
    "auth": ("cluster", "auth"),
    "config": ("cluster", "config"),
    "config_value": ("cluster", "config_value"),
    "mgr_module_config": ("cluster", "mgr_module_config"),
    "rgw_user": ("rgw", "rgw_user"),
    "rgw_subuser": ("rgw", "rgw_subuser"),
    "rgw_s3_key": ("rgw", "rgw_s3_key"),
    "rgw_swift_key": ("rgw", "rgw_swift_key"),
    "rgw_bucket": ("rgw", "rgw_bucket"),
    "pool": ("storage", "pool"),
    "crush_rule": ("storage", "crush_rule"),
    "erasure_code_profile": ("storage", "erasure_code_profile"),
}


class Provider:
    """Holds the one configured Ceph API client and hands it to controllers.

    The client is read-only once :meth:`configure` has returned, so
    controllers and lookups built from it can run concurrently.
    """

    def __init__(
        self,
        settings: Union[ProviderSettings, None] = None,
        client: Union[CephAPIClient, None] = None,
    ) -> None:
        """Initialize Provider.

        Args:
            settings: Provider settings (defaults to the global settings)
            client: Pre-built client (optional, mainly for tests)
        """
        self.settings = settings or get_settings()
        self.client = client or CephAPIClient(
            timeout=self.settings.timeout,
            verify_tls=self.settings.verify_tls,
        )
        self.cluster = ClusterDataSource(self.client)
        self.rgw = RGWDataSource(self.client)
        self.storage = StorageDataSource(self.client)

    async def configure(self) -> None:
        """Validate the settings, pick an endpoint and authenticate.

        Raises:
            CephConfigurationError: If the settings are invalid or no endpoint answers
            CephAuthenticationError: If the credentials are rejected
        """
        endpoints = self.settings.validate_provider()
        token = self.settings.token.get_secret_value() if self.settings.token else None
        password = self.settings.password.get_secret_value() if self.settings.password else None

        await self.client.configure(
            endpoints,
            username=self.settings.username,
            password=password,
            token=token,
        )
        logger.info(f"Ceph provider configured against {self.client.endpoint}")

    def resource(self, type_name: str) -> ResourceController:
        """Build the controller for a resource type (e.g., ``ceph_pool``).

        Raises:
            CephValidationError: If the type is unknown
        """
        self._require_configured()
        controller_class = RESOURCE_TYPES.get(type_name)
        if controller_class is None:
            raise CephValidationError(
                f"Unknown resource type {type_name!r}. Expected one of: {', '.join(sorted(RESOURCE_TYPES))}"
            )
        return controller_class(self.client)

    async def lookup(self, kind: str, *args: Any, **kwargs: Any) -> ResourceResult:
        """Run a data-source lookup by kind (e.g., ``rgw_s3_key``).

        Raises:
            CephValidationError: If the kind is unknown
        """
        self._require_configured()
        if kind not in LOOKUPS:
            raise CephValidationError(f"Unknown lookup {kind!r}. Expected one of: {', '.join(sorted(LOOKUPS))}")
        source, method = LOOKUPS[kind]
        call: Callable[..., Any] = getattr(getattr(self, source), method)
        return await call(*args, **kwargs)

    def _require_configured(self) -> None:
        if not self.client.configured:
            raise CephConfigurationError("Provider is not configured. Call configure() first.")
