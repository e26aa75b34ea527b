"""Resource controllers, one per managed Ceph object kind."""

from ceph_provider.resources.auth import AuthController
from ceph_provider.resources.base import ImmutableResourceController, ResourceController, ResourceResult
from ceph_provider.resources.cluster_config import ClusterConfigController
from ceph_provider.resources.crush_rule import CrushRuleController
from ceph_provider.resources.erasure_code_profile import ErasureCodeProfileController
from ceph_provider.resources.mgr_module_config import MgrModuleConfigController
from ceph_provider.resources.pool import PoolController
from ceph_provider.resources.rgw_bucket import RGWBucketController
from ceph_provider.resources.rgw_s3_key import RGWS3KeyController
from ceph_provider.resources.rgw_user import RGWUserController

CONTROLLERS = (
    AuthController,
    ClusterConfigController,
    MgrModuleConfigController,
    RGWUserController,
    RGWS3KeyController,
    PoolController,
    CrushRuleController,
    ErasureCodeProfileController,
    RGWBucketController,
)

__all__ = [
    "AuthController",
    "CONTROLLERS",
    "ClusterConfigController",
    "CrushRuleController",
    "ErasureCodeProfileController",
    "ImmutableResourceController",
    "MgrModuleConfigController",
    "PoolController",
    "RGWBucketController",
    "RGWS3KeyController",
    "RGWUserController",
    "ResourceController",
    "ResourceResult",
]
