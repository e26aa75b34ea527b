"""Common plumbing for read-only lookups."""

import logging
from typing import Any, Awaitable, Dict

from ceph_provider.ceph.client import CephAPIClient
from ceph_provider.ceph.errors import CephNotFound, CephProviderError, CephResourceError
from ceph_provider.models.rgw import RGWUser
from ceph_provider.reconcile import is_not_found

logger = logging.getLogger(__name__)


class DataSource:
    """Base class for lookups sharing one configured client."""

    def __init__(self, client: CephAPIClient) -> None:
        self.client = client

    async def _fetch(self, message: str, call: Awaitable[Any]) -> Any:
        """Await an API call and wrap its failure with an operation message.

        A 404 becomes :class:`CephNotFound`.
        """
        try:
            return await call
        except CephProviderError as e:
            if is_not_found(e):
                raise CephNotFound(f"{message}: {e}") from e
            raise CephResourceError(message, cause=e) from e

    async def _get_rgw_user(self, uid: str) -> RGWUser:
        response: Dict[str, Any] = await self._fetch("Unable to get RGW user from Ceph API", self.client.rgw_get_user(uid))
        return RGWUser.model_validate(response)
