"""Lookups for cephx identities and configuration."""

import logging
from typing import Union

from ceph_provider.ceph.errors import CephNotFound, CephProviderError, CephResourceError, CephValidationError
from ceph_provider.ceph.keyring import parse_keyring
from ceph_provider.datasources.base import DataSource
from ceph_provider.models.auth import AuthModel
from ceph_provider.models.config import (
    ClusterConfEntry,
    ConfigEntryModel,
    ConfigListModel,
    ConfigValueModel,
    MgrModuleConfigModel,
    format_config_value,
)
from ceph_provider.reconcile import Diagnostics
from ceph_provider.resources.base import ResourceResult

logger = logging.getLogger(__name__)


class ClusterDataSource(DataSource):
    """Read cephx identities, cluster configuration and manager modules."""

    async def auth(self, entity: str) -> ResourceResult[AuthModel]:
        """Look up a cephx identity by exporting its keyring.

        Args:
            entity: Entity name (e.g., 'client.admin')

        Returns:
            The identity, with a warning if the export held several

        Raises:
            CephNotFound: If the export holds no identity
            CephResourceError: If the export or parsing fails
        """
        keyring_raw = await self._fetch("Unable to export user from Ceph API", self.client.cluster_export_user(entity))
        if not keyring_raw.strip():
            raise CephNotFound(f"Ceph export returned no users for entity {entity}")

        try:
            users = parse_keyring(keyring_raw)
        except CephProviderError as e:
            raise CephResourceError("Unable to parse keyring data", cause=e) from e

        diagnostics = Diagnostics()
        if len(users) > 1:
            diagnostics.add_warning(
                "Multiple Users Found",
                f"Ceph export returned multiple users for entity {entity}; using {users[0].entity}",
            )

        user = users[0]
        return ResourceResult(
            AuthModel(entity=user.entity, caps=user.caps.to_dict(), key=user.key, keyring=keyring_raw),
            diagnostics,
        )

    async def config(self, section: Union[str, None] = None) -> ResourceResult[ConfigListModel]:
        """List every explicitly set configuration cell, optionally for one section."""
        data = await self._fetch("Unable to list cluster configuration from Ceph API", self.client.cluster_list_conf())

        configs = []
        for raw in data:
            entry = ClusterConfEntry.model_validate(raw)
            for value in entry.value:
                if section and value.section != section:
                    continue
                configs.append(
                    ConfigEntryModel(
                        section=value.section,
                        name=entry.name,
                        value=value.value,
                        level=entry.level,
                        can_update_at_runtime=entry.can_update_at_runtime,
                    )
                )
        return ResourceResult(ConfigListModel(section=section, configs=configs))

    async def config_value(self, name: str, section: str = "global") -> ResourceResult[ConfigValueModel]:
        """Get the value of one option in one section.

        Raises:
            CephNotFound: If the option has no value in the section
        """
        if not name:
            raise CephValidationError("Configuration name cannot be empty", attribute="name")

        data = await self._fetch(
            f"Unable to get cluster configuration '{name}' from Ceph API",
            self.client.cluster_get_conf(name),
        )
        value = ClusterConfEntry.model_validate(data).value_for(section)
        if value is None:
            raise CephNotFound(f"Configuration '{name}' is not set for section '{section}'", attribute="section")
        return ResourceResult(ConfigValueModel(name=name, section=section, value=value))

    async def mgr_module_config(self, module_name: str) -> ResourceResult[MgrModuleConfigModel]:
        """Get every current option of a manager module, formatted."""
        data = await self._fetch(
            f"Unable to read MGR module config for '{module_name}' from Ceph API",
            self.client.mgr_get_module_config(module_name),
        )

        configs = {}
        for key, value in data.items():
            try:
                configs[key] = format_config_value(value)
            except CephProviderError as e:
                raise CephResourceError(f"Unable to format config value for key '{key}'", cause=e) from e
        return ResourceResult(MgrModuleConfigModel(module_name=module_name, configs=configs))
