"""Controller for erasure code profiles."""

import logging

from ceph_provider.ceph.errors import CephProviderError, CephValidationError
from ceph_provider.models.crush import ErasureCodeProfile, ErasureCodeProfileModel
from ceph_provider.reconcile import Diagnostics, is_not_found
from ceph_provider.resources.base import ImmutableResourceController, ResourceResult

logger = logging.getLogger(__name__)


def profile_state(profile: ErasureCodeProfile) -> ErasureCodeProfileModel:
    return ErasureCodeProfileModel(
        name=profile.name,
        k=profile.k or None,
        m=profile.m or None,
        plugin=profile.plugin or None,
        crush_failure_domain=profile.crush_failure_domain or None,
        technique=profile.technique or None,
        crush_root=profile.crush_root or None,
        crush_device_class=profile.crush_device_class or None,
        directory=profile.directory or None,
    )


class ErasureCodeProfileController(ImmutableResourceController[ErasureCodeProfileModel]):
    """Manage an erasure code profile through ``/api/erasure_code_profile``."""

    type_name = "ceph_erasure_code_profile"
    model = ErasureCodeProfileModel
    replace_fields = (
        "name",
        "k",
        "m",
        "plugin",
        "crush_failure_domain",
        "technique",
        "crush_root",
        "crush_device_class",
        "directory",
    )
    update_message = (
        "Erasure code profiles are immutable in Ceph and cannot be updated. Any changes require replacing the resource."
    )

    def identify(self, state: ErasureCodeProfileModel) -> str:
        return state.name

    async def _create(self, plan: ErasureCodeProfileModel) -> ResourceResult[ErasureCodeProfileModel]:
        try:
            await self.client.create_erasure_code_profile(plan.to_payload())
        except CephProviderError as e:
            raise self._fail(f"Unable to create erasure code profile '{plan.name}'", e) from e

        try:
            profile = ErasureCodeProfile.model_validate(await self.client.get_erasure_code_profile(plan.name))
        except CephProviderError as e:
            raise self._fail(f"Unable to read erasure code profile '{plan.name}' after creation", e) from e
        return ResourceResult(profile_state(profile))

    async def _read(self, state: ErasureCodeProfileModel) -> ResourceResult[ErasureCodeProfileModel]:
        try:
            profile = ErasureCodeProfile.model_validate(await self.client.get_erasure_code_profile(state.name))
        except CephProviderError as e:
            if is_not_found(e):
                diagnostics = Diagnostics()
                diagnostics.add_warning(
                    "Erasure Code Profile Drift Detected",
                    f"Erasure code profile {state.name} no longer exists. Removing from state.",
                )
                return ResourceResult(None, diagnostics)
            raise self._fail(f"Unable to read erasure code profile '{state.name}'", e) from e
        return ResourceResult(profile_state(profile))

    async def _delete(self, state: ErasureCodeProfileModel) -> ResourceResult[ErasureCodeProfileModel]:
        try:
            await self.client.delete_erasure_code_profile(state.name)
        except CephProviderError as e:
            raise self._fail(f"Unable to delete erasure code profile '{state.name}'", e) from e
        return ResourceResult(None)

    async def _import(self, import_id: str) -> ResourceResult[ErasureCodeProfileModel]:
        name = import_id.strip()
        if not name:
            raise CephValidationError("Import ID cannot be empty. Expected an erasure code profile name")
        try:
            profile = ErasureCodeProfile.model_validate(await self.client.get_erasure_code_profile(name))
        except CephProviderError as e:
            raise self._fail(f"Unable to read erasure code profile '{name}' during import", e) from e
        return ResourceResult(profile_state(profile))
