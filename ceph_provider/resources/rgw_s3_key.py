"""Controller for RGW S3 access keys."""

import logging
from typing import Any, Dict, Set

from ceph_provider.ceph.errors import CephNotFound, CephProviderError, CephValidationError
from ceph_provider.models.rgw import RGWS3Key, RGWS3KeyModel, RGWUser
from ceph_provider.reconcile import Diagnostics, is_not_found, split_user_id
from ceph_provider.resources.base import ImmutableResourceController, ResourceResult

logger = logging.getLogger(__name__)


def key_state(user_id: str, key: RGWS3Key) -> RGWS3KeyModel:
    return RGWS3KeyModel(
        user_id=user_id,
        access_key=key.access_key,
        secret_key=key.secret_key,
        user=key.user,
        active=key.active,
        create_date=key.create_date,
    )


class RGWS3KeyController(ImmutableResourceController[RGWS3KeyModel]):
    """Manage one S3 key of an RGW user or subuser.

    A ``user_id`` of the form ``parent:subuser`` creates the key for the
    subuser. When no access key is given RGW generates one; the response
    lists every key of the user, so the new key is picked out by comparing
    with the keys present before the call.
    """

    type_name = "ceph_rgw_s3_key"
    model = RGWS3KeyModel
    replace_fields = ("user_id", "access_key", "secret_key")
    update_message = "RGW S3 keys cannot be updated. All key attributes require replacement."

    def identify(self, state: RGWS3KeyModel) -> str:
        if state.access_key:
            return f"{state.user_id}:{state.access_key}"
        return state.user_id

    def validate(self, plan: RGWS3KeyModel) -> Diagnostics:
        diagnostics = Diagnostics()
        if (plan.access_key is None) != (plan.secret_key is None):
            diagnostics.add_error(
                "Invalid Attribute Combination",
                "access_key and secret_key must either both be set or both be omitted.",
                attribute="access_key" if plan.access_key is None else "secret_key",
            )
        return diagnostics

    async def _create(self, plan: RGWS3KeyModel) -> ResourceResult[RGWS3KeyModel]:
        parent, subuser = split_user_id(plan.user_id)
        custom = plan.access_key is not None

        existing: Set[str] = set()
        if not custom:
            user = await self._get_user(parent, "Unable to create RGW S3 key")
            existing = {key.access_key for key in user.keys}

        try:
            response = await self.client.rgw_create_s3_key(
                parent,
                subuser=subuser,
                access_key=plan.access_key,
                secret_key=plan.secret_key,
                generate_key=None if custom else True,
            )
        except CephProviderError as e:
            raise self._fail("Unable to create RGW S3 key", e) from e

        keys = [RGWS3Key.model_validate(k) for k in response]
        if custom:
            candidates = [k for k in keys if k.access_key == plan.access_key]
        else:
            candidates = [k for k in keys if k.user == plan.user_id and k.access_key not in existing]

        if not candidates:
            raise CephNotFound(f"Unable to create RGW S3 key: created key not found in response for user {plan.user_id}")

        diagnostics = Diagnostics()
        if len(candidates) > 1:
            diagnostics.add_warning(
                "Multiple New Keys Found",
                f"RGW returned {len(candidates)} new S3 keys for user {plan.user_id}; using {candidates[0].access_key}",
            )
        return ResourceResult(key_state(plan.user_id, candidates[0]), diagnostics)

    async def _read(self, state: RGWS3KeyModel) -> ResourceResult[RGWS3KeyModel]:
        parent, _ = split_user_id(state.user_id)
        diagnostics = Diagnostics()

        try:
            user = await self._get_user(parent, "Unable to read RGW S3 key")
        except CephProviderError as e:
            if not isinstance(e, CephNotFound):
                raise
            diagnostics.add_warning(
                "RGW S3 Key Drift Detected",
                f"RGW user {parent} no longer exists. Removing S3 key {state.access_key} from state.",
            )
            return ResourceResult(None, diagnostics)

        for key in user.keys:
            if key.access_key == state.access_key:
                return ResourceResult(key_state(state.user_id, key))

        diagnostics.add_warning(
            "RGW S3 Key Drift Detected",
            f"S3 key {state.access_key} no longer exists for user {state.user_id}. Removing from state.",
        )
        return ResourceResult(None, diagnostics)

    async def _delete(self, state: RGWS3KeyModel) -> ResourceResult[RGWS3KeyModel]:
        parent, subuser = split_user_id(state.user_id)
        try:
            await self.client.rgw_delete_s3_key(parent, state.access_key or "", subuser=subuser)
        except CephProviderError as e:
            raise self._fail("Unable to delete RGW S3 key", e) from e
        return ResourceResult(None)

    async def _import(self, import_id: str) -> ResourceResult[RGWS3KeyModel]:
        """Import ``<user_id>:<access_key>``; ``user_id`` may itself contain a colon."""
        user_id, _, access_key = import_id.strip().rpartition(":")
        if not user_id or not access_key:
            raise CephValidationError(
                f"Invalid import ID {import_id!r}. Expected format: user_id:access_key (e.g., 'myuser:AKIA...')"
            )

        parent, _ = split_user_id(user_id)
        user = await self._get_user(parent, "Unable to read RGW S3 key during import")
        for key in user.keys:
            if key.access_key == access_key:
                return ResourceResult(key_state(user_id, key))
        raise CephNotFound(f"S3 access key {access_key} not found for user {user_id}")

    async def _get_user(self, uid: str, message: str) -> RGWUser:
        try:
            response: Dict[str, Any] = await self.client.rgw_get_user(uid)
        except CephProviderError as e:
            if is_not_found(e):
                raise CephNotFound(f"{message}: RGW user {uid} not found") from e
            raise self._fail(message, e) from e
        return RGWUser.model_validate(response)
