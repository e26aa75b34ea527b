"""Controller for RGW buckets."""

import json
import logging
from typing import Any, Dict

from ceph_provider.ceph.errors import CephProviderError, CephValidationError
from ceph_provider.models.rgw import RGWBucket, RGWBucketModel
from ceph_provider.reconcile import Diagnostics, is_not_found
from ceph_provider.resources.base import ImmutableResourceController, ResourceResult

logger = logging.getLogger(__name__)


def bucket_state(bucket: RGWBucket) -> RGWBucketModel:
    acl = bucket.acl
    if acl is not None and not isinstance(acl, str):
        acl = json.dumps(acl, sort_keys=True)
    return RGWBucketModel(
        bucket=bucket.bucket,
        owner=bucket.owner,
        zonegroup=bucket.zonegroup,
        placement_rule=bucket.placement_rule,
        id=bucket.id,
        creation_time=bucket.creation_time,
        acl=acl,
        bid=bucket.bid,
    )


class RGWBucketController(ImmutableResourceController[RGWBucketModel]):
    """Manage an RGW bucket. The zonegroup is taken from the server when unset."""

    type_name = "ceph_rgw_bucket"
    model = RGWBucketModel
    replace_fields = ("bucket", "owner", "zonegroup")
    update_message = "RGW buckets cannot be updated. All bucket attributes require replacement."

    def identify(self, state: RGWBucketModel) -> str:
        return state.bucket

    async def _create(self, plan: RGWBucketModel) -> ResourceResult[RGWBucketModel]:
        payload: Dict[str, Any] = {"bucket": plan.bucket, "uid": plan.owner}
        if plan.zonegroup is not None:
            payload["zonegroup"] = plan.zonegroup

        try:
            await self.client.rgw_create_bucket(payload)
        except CephProviderError as e:
            raise self._fail("Unable to create RGW bucket", e) from e

        try:
            bucket = RGWBucket.model_validate(await self.client.rgw_get_bucket(plan.bucket))
        except CephProviderError as e:
            raise self._fail("Unable to read RGW bucket after creation", e) from e
        return ResourceResult(bucket_state(bucket))

    async def _read(self, state: RGWBucketModel) -> ResourceResult[RGWBucketModel]:
        try:
            bucket = RGWBucket.model_validate(await self.client.rgw_get_bucket(state.bucket))
        except CephProviderError as e:
            if is_not_found(e):
                diagnostics = Diagnostics()
                diagnostics.add_warning(
                    "RGW Bucket Drift Detected",
                    f"RGW bucket {state.bucket} no longer exists. Removing from state.",
                )
                return ResourceResult(None, diagnostics)
            raise self._fail("Unable to read RGW bucket", e) from e
        return ResourceResult(bucket_state(bucket))

    async def _delete(self, state: RGWBucketModel) -> ResourceResult[RGWBucketModel]:
        try:
            await self.client.rgw_delete_bucket(state.bucket)
        except CephProviderError as e:
            raise self._fail("Unable to delete RGW bucket", e) from e
        return ResourceResult(None)

    async def _import(self, import_id: str) -> ResourceResult[RGWBucketModel]:
        name = import_id.strip()
        if not name:
            raise CephValidationError("Import ID cannot be empty. Expected a bucket name")
        try:
            bucket = RGWBucket.model_validate(await self.client.rgw_get_bucket(name))
        except CephProviderError as e:
            raise self._fail("Unable to read RGW bucket during import", e) from e
        return ResourceResult(bucket_state(bucket))
