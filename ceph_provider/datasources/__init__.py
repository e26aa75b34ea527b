"""Read-only lookups of Ceph objects."""

from ceph_provider.datasources.base import DataSource
from ceph_provider.datasources.cluster import ClusterDataSource
from ceph_provider.datasources.rgw import RGWDataSource
from ceph_provider.datasources.storage import StorageDataSource

__all__ = ["ClusterDataSource", "DataSource", "RGWDataSource", "StorageDataSource"]
