"""Controller for Ceph pools."""

import asyncio
import logging
import time
from typing import Any, Dict, List

from ceph_provider.ceph.errors import CephProviderError, CephValidationError
from ceph_provider.models.pool import Pool, PoolModel
from ceph_provider.reconcile import Diagnostics, is_not_found
from ceph_provider.resources.base import ResourceController, ResourceResult

logger = logging.getLogger(__name__)

COMPRESSION_SUB_OPTIONS = (
    "compression_algorithm",
    "compression_required_ratio",
    "compression_min_blob_size",
    "compression_max_blob_size",
)

# Attributes sent on update when they changed and are set in the plan.
UPDATABLE_FIELDS = (
    "min_size",
    "pg_autoscale_mode",
    "quota_max_objects",
    "quota_max_bytes",
    "compression_mode",
    *COMPRESSION_SUB_OPTIONS,
    "application_metadata",
)


def is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def pool_state(pool: Pool) -> PoolModel:
    """Build state from an API pool, mapping unset options to None."""
    options = pool.options
    return PoolModel(
        name=pool.pool_name,
        pool_type=pool.type,
        pool_id=pool.pool_id,
        size=pool.size,
        min_size=pool.min_size,
        pg_num=pool.pg_num,
        pgp_num=pool.pg_placement_num,
        crush_rule=pool.crush_rule,
        pg_autoscale_mode=pool.pg_autoscale_mode or None,
        primary_affinity=pool.primary_affinity,
        quota_max_objects=pool.quota_max_objects,
        quota_max_bytes=pool.quota_max_bytes,
        erasure_code_profile=pool.erasure_code_profile or None,
        compression_mode=options.compression_mode or None,
        compression_algorithm=options.compression_algorithm or None,
        compression_required_ratio=options.compression_required_ratio if options.compression_required_ratio > 0 else None,
        compression_min_blob_size=options.compression_min_blob_size or None,
        compression_max_blob_size=options.compression_max_blob_size or None,
        application_metadata=list(pool.application_metadata) or None,
    )


def pool_mismatches(pool: Pool, expected: PoolModel) -> List[str]:
    """Attributes set in ``expected`` that the server does not reflect yet."""
    checks = {
        "min_size": pool.min_size,
        "pg_autoscale_mode": pool.pg_autoscale_mode,
        "quota_max_objects": pool.quota_max_objects,
        "quota_max_bytes": pool.quota_max_bytes,
        "compression_mode": pool.options.compression_mode,
        "compression_algorithm": pool.options.compression_algorithm,
    }
    if expected.pool_type == "replicated":
        checks["size"] = pool.size

    mismatches = [name for name, actual in checks.items() if getattr(expected, name) not in (None, actual)]
    if expected.application_metadata is not None and sorted(expected.application_metadata) != sorted(
        pool.application_metadata
    ):
        mismatches.append("application_metadata")
    return mismatches


class PoolController(ResourceController[PoolModel]):
    """Manage a pool through ``/api/pool``.

    Pool changes are applied asynchronously by the monitors, so create and
    update poll the pool until it reflects the requested properties.
    """

    type_name = "ceph_pool"
    model = PoolModel
    replace_fields = ("pool_type", "size", "crush_rule", "erasure_code_profile")

    check_interval = 0.5
    properties_timeout = 60.0
    rename_settle_time = 5.0

    def identify(self, state: PoolModel) -> str:
        return state.name

    def validate(self, plan: PoolModel) -> Diagnostics:
        diagnostics = Diagnostics()
        summary = "Invalid Attribute Combination"

        if plan.pool_type == "replicated" and plan.erasure_code_profile is not None:
            diagnostics.add_error(
                summary,
                "erasure_code_profile is only valid for erasure pools, not replicated pools.",
                attribute="erasure_code_profile",
            )
        if plan.pool_type == "erasure":
            for name in ("size", "min_size"):
                if getattr(plan, name) is not None:
                    diagnostics.add_error(
                        summary,
                        f"{name} is only valid for replicated pools, not erasure pools.",
                        attribute=name,
                    )

        if plan.compression_mode == "none":
            for name in COMPRESSION_SUB_OPTIONS:
                if getattr(plan, name) is not None:
                    diagnostics.add_error(
                        summary,
                        f'{name} cannot be set when compression_mode is "none". '
                        "Compression attributes are only valid when compression is enabled.",
                        attribute=name,
                    )

        if plan.pg_num and not is_power_of_two(plan.pg_num):
            diagnostics.add_warning(
                "Non-Power-of-2 Placement Group Count",
                f"pg_num value {plan.pg_num} is not a power of 2, which may cause suboptimal data "
                "distribution and generate a HEALTH_WARN in Ceph.",
                attribute="pg_num",
            )
        return diagnostics

    def create_payload(self, plan: PoolModel) -> Dict[str, Any]:
        """Build the create request from the set attributes of a plan."""
        payload: Dict[str, Any] = {"pool": plan.name, "pool_type": plan.pool_type}
        optional = {
            "pg_num": plan.pg_num,
            "pgp_num": plan.pgp_num,
            "crush_rule": plan.crush_rule,
            "pg_autoscale_mode": plan.pg_autoscale_mode,
            "quota_max_objects": plan.quota_max_objects,
            "quota_max_bytes": plan.quota_max_bytes,
            "compression_mode": plan.compression_mode,
            "compression_algorithm": plan.compression_algorithm,
            "compression_required_ratio": plan.compression_required_ratio,
            "compression_min_blob_size": plan.compression_min_blob_size,
            "compression_max_blob_size": plan.compression_max_blob_size,
            "application_metadata": plan.application_metadata or None,
        }
        if plan.pool_type == "erasure":
            optional["erasure_code_profile"] = plan.erasure_code_profile or "default"
        else:
            optional["size"] = plan.size
            optional["min_size"] = plan.min_size

        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload

    def update_payload(self, prior: PoolModel, plan: PoolModel) -> Dict[str, Any]:
        """Build the update request from the attributes that changed."""
        payload: Dict[str, Any] = {}
        if plan.name != prior.name:
            payload["pool"] = plan.name
        for name in ("pg_num", "pgp_num"):
            value = getattr(plan, name)
            if value != getattr(prior, name) and value:
                payload[name] = value
        for name in UPDATABLE_FIELDS:
            value = getattr(plan, name)
            if value is not None and value != getattr(prior, name):
                payload[name] = value
        return payload

    async def _create(self, plan: PoolModel) -> ResourceResult[PoolModel]:
        try:
            await self.client.create_pool(self.create_payload(plan))
        except CephProviderError as e:
            raise self._fail(f"Unable to create pool {plan.name!r}", e) from e

        try:
            pool = await self.wait_for_pool_properties(plan.name, plan)
        except CephProviderError as e:
            raise self._fail(f"Unable to read pool {plan.name!r} after creation", e) from e
        return ResourceResult(pool_state(pool))

    async def _read(self, state: PoolModel) -> ResourceResult[PoolModel]:
        try:
            response = await self.client.get_pool(state.name)
        except CephProviderError as e:
            if is_not_found(e):
                diagnostics = Diagnostics()
                diagnostics.add_warning("Pool Drift Detected", f"Pool {state.name} no longer exists. Removing from state.")
                return ResourceResult(None, diagnostics)
            raise self._fail(f"Unable to read pool {state.name!r}", e) from e
        return ResourceResult(pool_state(Pool.model_validate(response)))

    async def _update(self, prior: PoolModel, plan: PoolModel) -> ResourceResult[PoolModel]:
        payload = self.update_payload(prior, plan)
        if payload:
            try:
                await self.client.update_pool(prior.name, payload)
            except CephProviderError as e:
                raise self._fail(f"Unable to update pool {prior.name!r}", e) from e

        if plan.name != prior.name:
            logger.info(f"Renamed pool {prior.name} to {plan.name}, waiting {self.rename_settle_time}s to settle")
            await asyncio.sleep(self.rename_settle_time)

        try:
            pool = await self.wait_for_pool_properties(plan.name, plan)
        except CephProviderError as e:
            raise self._fail(f"Unable to read pool {plan.name!r} after update", e) from e
        return ResourceResult(pool_state(pool))

    async def _delete(self, state: PoolModel) -> ResourceResult[PoolModel]:
        try:
            await self.client.delete_pool(state.name)
        except CephProviderError as e:
            raise self._fail(f"Unable to delete pool {state.name!r}", e) from e
        return ResourceResult(None)

    async def _import(self, import_id: str) -> ResourceResult[PoolModel]:
        name = import_id.strip()
        if not name:
            raise CephValidationError("Import ID cannot be empty. Expected a pool name")
        try:
            response = await self.client.get_pool(name)
        except CephProviderError as e:
            raise self._fail(f"Unable to read pool {name!r} during import", e) from e
        return ResourceResult(pool_state(Pool.model_validate(response)))

    async def wait_for_pool_properties(self, pool_name: str, expected: PoolModel) -> Pool:
        """Poll a pool until it reflects the expected properties.

        A 404 is treated as "not visible yet". Once the deadline passes the
        last read is returned as is.

        Raises:
            CephProviderError: If a read fails for any other reason
        """
        deadline = time.monotonic() + self.properties_timeout
        attempt = 0

        while True:
            attempt += 1
            try:
                pool = Pool.model_validate(await self.client.get_pool(pool_name))
            except CephProviderError as e:
                if not is_not_found(e):
                    raise
                logger.debug(f"Pool {pool_name} not found yet, attempt {attempt}")
            else:
                mismatches = pool_mismatches(pool, expected)
                if not mismatches:
                    logger.debug(f"Pool {pool_name} properties matched after {attempt} attempts")
                    return pool
                logger.debug(f"Pool {pool_name} mismatched {', '.join(mismatches)}, attempt {attempt}")

            if time.monotonic() >= deadline:
                logger.warning(f"Timed out waiting for pool {pool_name} properties after {attempt} attempts")
                return Pool.model_validate(await self.client.get_pool(pool_name))
            await asyncio.sleep(self.check_interval)
