"""Lookups for pools, CRUSH rules and erasure code profiles."""

import logging
from typing import List

from ceph_provider.datasources.base import DataSource
from ceph_provider.models.crush import CrushRule, CrushRuleModel, ErasureCodeProfile, ErasureCodeProfileModel
from ceph_provider.models.pool import Pool, PoolConfigItem, PoolModel
from ceph_provider.resources.base import ResourceResult
from ceph_provider.resources.crush_rule import rule_from_api
from ceph_provider.resources.erasure_code_profile import profile_state
from ceph_provider.resources.pool import pool_state

logger = logging.getLogger(__name__)


class StorageDataSource(DataSource):
    """Read placement objects by name."""

    async def pool(self, name: str) -> ResourceResult[PoolModel]:
        data = await self._fetch(f"Unable to read pool {name!r}", self.client.get_pool(name))
        return ResourceResult(pool_state(Pool.model_validate(data)))

    async def crush_rule(self, name: str) -> ResourceResult[CrushRuleModel]:
        data = await self._fetch(f"Unable to read CRUSH rule '{name}'", self.client.get_crush_rule(name))
        return ResourceResult(rule_from_api(CrushRule.model_validate(data)))

    async def erasure_code_profile(self, name: str) -> ResourceResult[ErasureCodeProfileModel]:
        data = await self._fetch(
            f"Unable to read erasure code profile '{name}'",
            self.client.get_erasure_code_profile(name),
        )
        return ResourceResult(profile_state(ErasureCodeProfile.model_validate(data)))

    async def pool_configuration(self, name: str) -> List[PoolConfigItem]:
        """Per-pool configuration overrides of ``name``."""
        data = await self._fetch(
            f"Unable to read configuration of pool {name!r}",
            self.client.get_pool_configuration(name),
        )
        return [PoolConfigItem.model_validate(item) for item in data or []]

    async def pools(self) -> List[str]:
        """Names of all pools, sorted."""
        data = await self._fetch("Unable to list pools", self.client.list_pools())
        return sorted(item["pool_name"] for item in data or [])

    async def crush_rules(self) -> List[str]:
        """Names of all CRUSH rules, sorted."""
        data = await self._fetch("Unable to list CRUSH rules", self.client.list_crush_rules())
        return sorted(item["rule_name"] for item in data or [])

    async def erasure_code_profiles(self) -> List[str]:
        """Names of all erasure code profiles, sorted."""
        data = await self._fetch("Unable to list erasure code profiles", self.client.list_erasure_code_profiles())
        return sorted(item["name"] for item in data or [])
