"""Lookups for RGW users, subusers, keys and buckets."""

import logging
from typing import List, Tuple, Union

from ceph_provider.ceph.errors import CephNotFound, CephValidationError
from ceph_provider.datasources.base import DataSource
from ceph_provider.models.rgw import (
    RGWBucket,
    RGWBucketModel,
    RGWS3Key,
    RGWS3KeyModel,
    RGWSubuserModel,
    RGWSwiftKeyModel,
    RGWUser,
    RGWUserInfoModel,
)
from ceph_provider.reconcile import split_user_id
from ceph_provider.resources.base import ResourceResult
from ceph_provider.resources.rgw_bucket import bucket_state
from ceph_provider.resources.rgw_s3_key import key_state

logger = logging.getLogger(__name__)


def select_s3_keys(keys: List[RGWS3Key], user_id: str, access_key: Union[str, None] = None) -> List[RGWS3Key]:
    """Keys owned by exactly ``user_id``, optionally narrowed to one access key."""
    matching = [key for key in keys if key.user == user_id]
    if access_key:
        matching = [key for key in matching if key.access_key == access_key]
    return matching


def require_subuser_id(user_id: str, message: str) -> Tuple[str, str]:
    parent, subuser = split_user_id(user_id)
    if not parent or not subuser:
        raise CephValidationError(message, attribute="user_id")
    return parent, subuser


class RGWDataSource(DataSource):
    """Read RGW users and the objects hanging off them."""

    async def rgw_user(self, uid: str) -> ResourceResult[RGWUserInfoModel]:
        user = await self._get_rgw_user(uid)
        return ResourceResult(self._user_info(user))

    async def rgw_subuser(self, subuser_id: str) -> ResourceResult[RGWSubuserModel]:
        """Look up a subuser by its ``parent:subuser`` id."""
        parent, _ = require_subuser_id(
            subuser_id,
            f"Subuser ID must be in the format 'parent_user:subuser', got: {subuser_id}",
        )
        user = await self._get_rgw_user(parent)
        for subuser in user.subusers:
            if subuser.id == subuser_id:
                return ResourceResult(RGWSubuserModel(id=subuser.id, permissions=subuser.permissions))
        raise CephNotFound(f"Subuser {subuser_id} not found for user {parent}")

    async def rgw_s3_key(self, user_id: str, access_key: Union[str, None] = None) -> ResourceResult[RGWS3KeyModel]:
        """Look up one S3 key of a user or subuser.

        Args:
            user_id: Owning uid, or ``parent:subuser``
            access_key: Access key to match; optional when the user has a single key

        Raises:
            CephNotFound: If no key matches
            CephValidationError: If ``access_key`` is unset and several keys match
        """
        parent, _ = split_user_id(user_id)
        user = await self._get_rgw_user(parent)

        matching = select_s3_keys(user.keys, user_id, access_key)
        if not matching:
            if access_key:
                raise CephNotFound(f"S3 access key {access_key} not found for user {user_id}")
            raise CephNotFound(f"No S3 keys found for user {user_id}")
        if len(matching) > 1:
            raise CephValidationError(
                f"Multiple Keys Found: User {user_id} has {len(matching)} S3 keys. "
                "Please specify the access_key parameter to disambiguate.",
                attribute="access_key",
            )
        return ResourceResult(key_state(user_id, matching[0]))

    async def rgw_swift_key(self, user_id: str) -> ResourceResult[RGWSwiftKeyModel]:
        """Look up the Swift key of a subuser."""
        parent, _ = require_subuser_id(
            user_id,
            "Swift keys are associated with subusers. The user_id parameter must be in the format "
            f"'parent_user:subuser', got: {user_id}",
        )
        user = await self._get_rgw_user(parent)
        for key in user.swift_keys:
            if key.user == user_id:
                return ResourceResult(
                    RGWSwiftKeyModel(
                        user_id=user_id,
                        secret_key=key.secret_key,
                        active=key.active,
                        create_date=key.create_date or None,
                    )
                )
        raise CephNotFound(f"Swift key not found for subuser {user_id}")

    async def rgw_bucket(self, bucket: str) -> ResourceResult[RGWBucketModel]:
        data = await self._fetch("Unable to get RGW bucket from Ceph API", self.client.rgw_get_bucket(bucket))
        return ResourceResult(bucket_state(RGWBucket.model_validate(data)))

    @staticmethod
    def _user_info(user: RGWUser) -> RGWUserInfoModel:
        return RGWUserInfoModel(
            user_id=user.user_id,
            display_name=user.display_name,
            email=user.email or None,
            max_buckets=user.max_buckets,
            system=user.system,
            admin=user.admin,
            suspended=user.suspended == 1,
            tenant=user.tenant or None,
            keys=[key_state(key.user or user.user_id, key) for key in user.keys],
            swift_keys=[
                RGWSwiftKeyModel(
                    user_id=key.user,
                    secret_key=key.secret_key,
                    active=key.active,
                    create_date=key.create_date or None,
                )
                for key in user.swift_keys
            ],
            subusers=[RGWSubuserModel(id=s.id, permissions=s.permissions) for s in user.subusers],
        )
