"""Pydantic models for Ceph pools."""

from typing import Any, List, Literal, Union

from pydantic import BaseModel, Field

from ceph_provider.models.base import ResourceModel

PoolType = Literal["replicated", "erasure"]
AutoscaleMode = Literal["off", "warn", "on"]
CompressionMode = Literal["none", "passive", "aggressive", "force"]


class PoolOptions(BaseModel):
    """Per-pool options reported under ``options``."""

    compression_mode: str = ""
    compression_algorithm: str = ""
    compression_required_ratio: float = 0.0
    compression_min_blob_size: int = 0
    compression_max_blob_size: int = 0
    target_size_ratio: float = 0.0
    target_size_bytes: int = 0
    pg_num_min: int = 0
    pg_num_max: int = 0


class Pool(BaseModel):
    """A pool as returned by ``/api/pool/<name>``."""

    pool_name: str
    type: str = ""
    pool_id: int = 0
    size: int = 0
    min_size: int = 0
    pg_num: int = 0
    pg_placement_num: int = 0
    crush_rule: str = ""
    primary_affinity: float = 0.0
    application_metadata: List[str] = Field(default_factory=list)
    erasure_code_profile: str = ""
    pg_autoscale_mode: str = ""
    quota_max_objects: int = 0
    quota_max_bytes: int = 0
    options: PoolOptions = Field(default_factory=PoolOptions)


class PoolConfigItem(BaseModel):
    """One entry of ``/api/pool/<name>/configuration``."""

    name: str
    value: Any = None
    source: Union[int, None] = None


class PoolModel(ResourceModel):
    """State of a pool."""

    name: str = Field(..., min_length=1, description="Pool name")
    pool_type: PoolType = Field(..., description="Pool type, 'replicated' or 'erasure'")
    pg_num: Union[int, None] = Field(None, ge=0, description="Number of placement groups")
    pgp_num: Union[int, None] = Field(None, ge=0, description="Number of placement groups for placement")
    crush_rule: Union[str, None] = Field(None, description="CRUSH rule name")
    erasure_code_profile: Union[str, None] = Field(None, description="Erasure code profile (erasure pools only)")
    min_size: Union[int, None] = Field(None, description="Minimum replicas (replicated pools only)")
    size: Union[int, None] = Field(None, description="Replicas (replicated pools only)")
    pg_autoscale_mode: Union[AutoscaleMode, None] = None
    quota_max_objects: Union[int, None] = Field(None, ge=0)
    quota_max_bytes: Union[int, None] = Field(None, ge=0)
    compression_mode: Union[CompressionMode, None] = None
    compression_algorithm: Union[str, None] = None
    compression_required_ratio: Union[float, None] = None
    compression_min_blob_size: Union[int, None] = None
    compression_max_blob_size: Union[int, None] = None
    application_metadata: Union[List[str], None] = Field(None, description="Applications enabled on the pool")
    pool_id: Union[int, None] = Field(None, description="Pool id (read-only)")
    primary_affinity: Union[float, None] = Field(None, description="Primary affinity (read-only)")
