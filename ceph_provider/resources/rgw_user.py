"""Controller for RGW users."""

import logging
from typing import Union

from ceph_provider.ceph.errors import CephNotFound, CephProviderError, CephValidationError
from ceph_provider.models.rgw import RGWUser, RGWUserModel, RGWUserRequest
from ceph_provider.reconcile import Diagnostics, DriftAction, classify_drift, is_not_found
from ceph_provider.resources.base import ResourceController, ResourceResult

logger = logging.getLogger(__name__)


def user_request(plan: RGWUserModel, uid: Union[str, None] = None) -> RGWUserRequest:
    """Build a create or update request from the set attributes of a plan."""
    suspended = None
    if plan.suspended is not None:
        suspended = 1 if plan.suspended else 0
    return RGWUserRequest(
        uid=uid,
        display_name=plan.display_name,
        email=plan.email,
        max_buckets=plan.max_buckets,
        system=plan.system,
        suspended=suspended,
    )


def user_state(user: RGWUser, plan: Union[RGWUserModel, None] = None) -> RGWUserModel:
    """Build state from an API user.

    An empty email stays empty when the plan set one and becomes None when
    the plan left it unset.
    """
    if user.email:
        email = user.email
    elif plan is not None and plan.email is not None:
        email = ""
    else:
        email = None

    return RGWUserModel(
        user_id=user.user_id,
        display_name=user.display_name,
        email=email,
        max_buckets=user.max_buckets,
        system=user.system,
        suspended=user.suspended == 1,
        tenant=user.tenant,
        admin=user.admin,
    )


class RGWUserController(ResourceController[RGWUserModel]):
    """Manage an RGW user through ``/api/rgw/user``.

    Users are created without keys; S3 keys are separate resources.
    """

    type_name = "ceph_rgw_user"
    model = RGWUserModel
    replace_fields = ("user_id",)

    def identify(self, state: RGWUserModel) -> str:
        return state.user_id

    async def _create(self, plan: RGWUserModel) -> ResourceResult[RGWUserModel]:
        request = user_request(plan, uid=plan.user_id)
        request.generate_key = False

        try:
            response = await self.client.rgw_create_user(request.to_payload())
        except CephProviderError as e:
            raise self._fail("Unable to create RGW user", e) from e

        return ResourceResult(user_state(RGWUser.model_validate(response), plan))

    async def _read(self, state: RGWUserModel) -> ResourceResult[RGWUserModel]:
        try:
            response = await self.client.rgw_get_user(state.user_id)
        except CephProviderError as e:
            if is_not_found(e) and classify_drift("resource") is DriftAction.REMOVE:
                diagnostics = Diagnostics()
                diagnostics.add_warning(
                    "RGW User Drift Detected",
                    f"RGW user {state.user_id} no longer exists. Removing from state.",
                )
                return ResourceResult(None, diagnostics)
            raise self._fail("Unable to read RGW user", e) from e

        return ResourceResult(user_state(RGWUser.model_validate(response), state))

    async def _update(self, prior: RGWUserModel, plan: RGWUserModel) -> ResourceResult[RGWUserModel]:
        request = user_request(plan)

        try:
            response = await self.client.rgw_update_user(prior.user_id, request.to_payload())
        except CephProviderError as e:
            raise self._fail("Unable to update RGW user", e) from e

        return ResourceResult(user_state(RGWUser.model_validate(response), plan))

    async def _delete(self, state: RGWUserModel) -> ResourceResult[RGWUserModel]:
        try:
            await self.client.rgw_delete_user(state.user_id)
        except CephProviderError as e:
            raise self._fail("Unable to delete RGW user", e) from e
        return ResourceResult(None)

    async def _import(self, import_id: str) -> ResourceResult[RGWUserModel]:
        uid = import_id.strip()
        if not uid:
            raise CephValidationError("Import ID cannot be empty. Expected an RGW user id")

        try:
            response = await self.client.rgw_get_user(uid)
        except CephProviderError as e:
            if is_not_found(e):
                raise CephNotFound(f"unable to read rgw user during import: {e}") from e
            raise self._fail("Unable to read RGW user", e) from e

        return ResourceResult(user_state(RGWUser.model_validate(response)))
