"""Pydantic models for Ceph objects and provider state."""

from ceph_provider.models.auth import AuthModel
from ceph_provider.models.base import ResourceModel
from ceph_provider.models.capabilities import CephCaps
from ceph_provider.models.config import (
    ClusterConfigModel,
    ConfigEntryModel,
    ConfigListModel,
    ConfigScalar,
    ConfigValueModel,
    MgrModuleConfigModel,
    ScalarKind,
    format_config_value,
)
from ceph_provider.models.crush import CrushRuleModel, ErasureCodeProfileModel
from ceph_provider.models.pool import PoolModel
from ceph_provider.models.rgw import (
    RGWBucketModel,
    RGWS3KeyModel,
    RGWSubuserModel,
    RGWSwiftKeyModel,
    RGWUserInfoModel,
    RGWUserModel,
)

__all__ = [
    "AuthModel",
    "CephCaps",
    "ClusterConfigModel",
    "ConfigEntryModel",
    "ConfigListModel",
    "ConfigScalar",
    "ConfigValueModel",
    "CrushRuleModel",
    "ErasureCodeProfileModel",
    "MgrModuleConfigModel",
    "PoolModel",
    "RGWBucketModel",
    "RGWS3KeyModel",
    "RGWSubuserModel",
    "RGWSwiftKeyModel",
    "RGWUserInfoModel",
    "RGWUserModel",
    "ResourceModel",
    "ScalarKind",
    "format_config_value",
]
