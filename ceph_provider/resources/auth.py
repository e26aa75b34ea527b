"""Controller for cephx identities."""

import logging

from ceph_provider.ceph.errors import CephNotFound, CephProviderError, CephValidationError
from ceph_provider.ceph.keyring import KeyringUser, parse_keyring, render_keyring_user
from ceph_provider.models.auth import AuthModel
from ceph_provider.models.capabilities import CephCaps
from ceph_provider.reconcile import Diagnostics, is_not_found
from ceph_provider.resources.base import ResourceController, ResourceResult

logger = logging.getLogger(__name__)


class AuthController(ResourceController[AuthModel]):
    """Manage a cephx identity through ``/api/cluster/user``.

    The identity is always re-exported after a mutation so that ``key`` and
    ``keyring`` reflect what the cluster actually holds.
    """

    type_name = "ceph_auth"
    model = AuthModel
    replace_fields = ("entity", "key")

    def identify(self, state: AuthModel) -> str:
        return state.entity

    def validate(self, plan: AuthModel) -> Diagnostics:
        diagnostics = Diagnostics()
        try:
            CephCaps.from_dict(plan.caps)
        except CephValidationError as e:
            diagnostics.add_error("Invalid Capabilities", e.message, attribute="caps")
        return diagnostics

    async def _create(self, plan: AuthModel) -> ResourceResult[AuthModel]:
        caps = CephCaps.from_dict(plan.caps)

        try:
            if plan.key:
                keyring = render_keyring_user(KeyringUser(entity=plan.entity, key=plan.key, caps=caps))
                await self.client.cluster_import_user(keyring)
            else:
                await self.client.cluster_create_user(plan.entity, caps.to_wire())
        except CephProviderError as e:
            raise self._fail("Unable to create user in Ceph API", e) from e

        return await self._export(plan.entity)

    async def _read(self, state: AuthModel) -> ResourceResult[AuthModel]:
        try:
            return await self._export(state.entity)
        except CephProviderError as e:
            if not (is_not_found(e) or isinstance(e, CephNotFound)):
                raise
            diagnostics = Diagnostics()
            diagnostics.add_warning(
                "Identity Drift Detected",
                f"Identity {state.entity} no longer exists in cluster. Removing from state.",
            )
            return ResourceResult(None, diagnostics)

    async def _update(self, prior: AuthModel, plan: AuthModel) -> ResourceResult[AuthModel]:
        caps = CephCaps.from_dict(plan.caps)

        try:
            await self.client.cluster_update_user(prior.entity, caps.to_wire())
        except CephProviderError as e:
            raise self._fail("Unable to update user in Ceph API", e) from e

        return await self._export(prior.entity)

    async def _delete(self, state: AuthModel) -> ResourceResult[AuthModel]:
        try:
            await self.client.cluster_delete_user(state.entity)
        except CephProviderError as e:
            raise self._fail("Unable to delete user from Ceph API", e) from e
        return ResourceResult(None)

    async def _import(self, import_id: str) -> ResourceResult[AuthModel]:
        entity = import_id.strip()
        if not entity:
            raise CephValidationError("Import ID cannot be empty. Expected an entity name (e.g., 'client.foo')")
        return await self._export(entity)

    async def _export(self, entity: str) -> ResourceResult[AuthModel]:
        """Export an identity and build its state from the keyring."""
        diagnostics = Diagnostics()

        try:
            keyring_raw = await self.client.cluster_export_user(entity)
        except CephProviderError as e:
            if is_not_found(e):
                raise
            raise self._fail("Unable to export user from Ceph API", e) from e

        if not keyring_raw.strip():
            raise CephNotFound(f"Ceph export returned no users for entity {entity}")

        try:
            users = parse_keyring(keyring_raw)
        except CephProviderError as e:
            raise self._fail("Unable to parse keyring data", e) from e

        if len(users) > 1:
            diagnostics.add_warning(
                "Ceph export returned multiple users",
                f"Ceph export returned multiple users for entity {entity}; using {users[0].entity}",
            )

        user = users[0]
        state = AuthModel(entity=entity, caps=user.caps.to_dict(), key=user.key, keyring=keyring_raw)
        return ResourceResult(state, diagnostics)
