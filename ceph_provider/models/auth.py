"""Pydantic models for CephX identities."""

from typing import Dict, Union

from pydantic import Field

from ceph_provider.models.base import SENSITIVE, ResourceModel


class AuthModel(ResourceModel):
    """State of a cephx identity."""

    entity: str = Field(..., min_length=1, description="Entity name (e.g., 'client.foo')")
    caps: Dict[str, str] = Field(
        default_factory=dict,
        description="Capabilities keyed by subsystem (mds, mgr, mon, osd)",
    )
    key: Union[str, None] = Field(
        None,
        description="cephx secret key; imported when set, generated otherwise",
        json_schema_extra=SENSITIVE,
    )
    keyring: Union[str, None] = Field(
        None,
        description="Keyring text as exported by the cluster",
        json_schema_extra=SENSITIVE,
    )
