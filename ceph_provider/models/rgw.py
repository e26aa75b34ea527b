"""Pydantic models for RGW users, keys and buckets."""

from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field

from ceph_provider.models.base import SENSITIVE, ResourceModel


class RGWS3Key(BaseModel):
    """An S3 key as listed on an RGW user."""

    user: str = ""
    access_key: str = ""
    secret_key: str = ""
    active: bool = True
    create_date: Union[str, None] = None


class RGWSwiftKey(BaseModel):
    """A Swift key as listed on an RGW user."""

    user: str = ""
    secret_key: str = ""
    active: bool = True
    create_date: Union[str, None] = None


class RGWSubuser(BaseModel):
    """A subuser as listed on an RGW user."""

    id: str
    permissions: str = ""


class RGWUser(BaseModel):
    """An RGW user as returned by ``/api/rgw/user/<uid>``."""

    tenant: str = ""
    user_id: str
    display_name: str = ""
    email: str = ""
    suspended: int = 0
    max_buckets: int = 0
    subusers: List[RGWSubuser] = Field(default_factory=list)
    keys: List[RGWS3Key] = Field(default_factory=list)
    swift_keys: List[RGWSwiftKey] = Field(default_factory=list)
    system: bool = False
    admin: bool = False


class RGWUserRequest(BaseModel):
    """Body of an RGW user create or update request.

    Unset fields are left out of the wire payload entirely.
    """

    uid: Union[str, None] = None
    display_name: Union[str, None] = None
    email: Union[str, None] = None
    max_buckets: Union[int, None] = None
    suspended: Union[int, None] = None
    system: Union[bool, None] = None
    generate_key: Union[bool, None] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RGWBucket(BaseModel):
    """An RGW bucket as returned by ``/api/rgw/bucket/<name>``."""

    bucket: str
    zonegroup: str = ""
    placement_rule: str = ""
    id: str = ""
    owner: str = ""
    creation_time: str = ""
    acl: Any = None
    bid: str = ""


class RGWUserModel(ResourceModel):
    """State of an RGW user."""

    user_id: str = Field(..., min_length=1, description="User id (uid)")
    display_name: str = Field(..., description="Display name")
    email: Union[str, None] = Field(None, description="Email address")
    max_buckets: Union[int, None] = Field(None, description="Maximum number of buckets")
    system: Union[bool, None] = Field(None, description="System user flag")
    suspended: Union[bool, None] = Field(None, description="Whether the user is suspended")
    tenant: Union[str, None] = Field(None, description="Tenant (read-only)")
    admin: Union[bool, None] = Field(None, description="Admin flag (read-only)")


class RGWS3KeyModel(ResourceModel):
    """State of an RGW S3 access key."""

    user_id: str = Field(..., min_length=1, description="Owning uid, or 'uid:subuser' for a subuser key")
    access_key: Union[str, None] = Field(None, description="Access key; generated when unset")
    secret_key: Union[str, None] = Field(
        None,
        description="Secret key; generated when unset",
        json_schema_extra=SENSITIVE,
    )
    user: Union[str, None] = Field(None, description="Key owner as reported by RGW")
    active: Union[bool, None] = Field(None, description="Whether the key is active")
    create_date: Union[str, None] = Field(None, description="Creation timestamp")


class RGWBucketModel(ResourceModel):
    """State of an RGW bucket."""

    bucket: str = Field(..., min_length=1, description="Bucket name")
    owner: str = Field(..., min_length=1, description="Owner uid")
    zonegroup: Union[str, None] = Field(None, description="Zonegroup; taken from the server when unset")
    placement_rule: Union[str, None] = None
    id: Union[str, None] = None
    creation_time: Union[str, None] = None
    acl: Union[str, None] = None
    bid: Union[str, None] = None


class RGWSubuserModel(ResourceModel):
    """A subuser looked up by its ``parent:subuser`` id."""

    id: str = Field(..., description="Subuser id ('parent_user:subuser')")
    permissions: str = Field(default="", description="Subuser permissions (e.g., 'full-control')")


class RGWSwiftKeyModel(ResourceModel):
    """The Swift key of a subuser."""

    user_id: str = Field(..., description="Subuser id ('parent_user:subuser')")
    secret_key: str = Field(..., json_schema_extra=SENSITIVE)
    active: bool = True
    create_date: Union[str, None] = None


class RGWUserInfoModel(ResourceModel):
    """An RGW user with its keys and subusers."""

    user_id: str
    display_name: str = ""
    email: Union[str, None] = None
    max_buckets: int = 0
    system: bool = False
    admin: bool = False
    suspended: bool = False
    tenant: Union[str, None] = None
    keys: List[RGWS3KeyModel] = Field(default_factory=list)
    swift_keys: List[RGWSwiftKeyModel] = Field(default_factory=list)
    subusers: List[RGWSubuserModel] = Field(default_factory=list)
