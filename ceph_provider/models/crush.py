"""Pydantic models for CRUSH rules and erasure code profiles."""

from typing import Any, Dict, List, Literal, Union

from pydantic import BaseModel, Field, field_validator

from ceph_provider.models.base import ResourceModel


class CrushRuleStep(BaseModel):
    """One step of a CRUSH rule."""

    op: str
    num: Union[int, None] = None
    type: Union[str, None] = None
    item: Union[int, None] = None
    item_name: Union[str, None] = None

    @field_validator("num", "item")
    @classmethod
    def validate_zero_as_unset(cls, v: Union[int, None]) -> Union[int, None]:
        """The API reports absent numeric arguments as 0."""
        return v or None


class CrushRule(BaseModel):
    """A CRUSH rule as returned by ``/api/crush_rule/<name>`` (v2.0)."""

    rule_id: int = 0
    rule_name: str
    ruleset: int = 0
    type: int = 0
    min_size: int = 0
    max_size: int = 0
    steps: List[CrushRuleStep] = Field(default_factory=list)


class CrushRuleModel(ResourceModel):
    """State of a CRUSH rule. Every configurable attribute is replace-only."""

    name: str = Field(..., min_length=1, description="Rule name")
    pool_type: Literal["replicated", "erasure"] = Field(default="replicated", description="Pool type the rule is for")
    failure_domain: str = Field(..., min_length=1, description="Failure domain (e.g., 'host')")
    device_class: Union[str, None] = Field(None, description="Device class constraint (e.g., 'ssd')")
    profile: Union[str, None] = Field(None, description="Erasure code profile (erasure rules only)")
    root: str = Field(default="default", description="CRUSH root")
    rule_id: Union[int, None] = None
    ruleset: Union[int, None] = None
    type: Union[int, None] = None
    min_size: Union[int, None] = None
    max_size: Union[int, None] = None
    steps: Union[List[CrushRuleStep], None] = None


class ErasureCodeProfile(BaseModel):
    """An erasure code profile as returned by ``/api/erasure_code_profile/<name>``."""

    name: str
    k: int = 0
    m: int = 0
    plugin: str = ""
    crush_failure_domain: str = Field(default="", alias="crush-failure-domain")
    technique: str = ""
    crush_root: str = Field(default="", alias="crush-root")
    crush_device_class: str = Field(default="", alias="crush-device-class")
    directory: str = ""


class ErasureCodeProfileModel(ResourceModel):
    """State of an erasure code profile. Every attribute is replace-only."""

    name: str = Field(..., min_length=1, description="Profile name")
    k: Union[int, None] = Field(None, ge=1, description="Number of data chunks")
    m: Union[int, None] = Field(None, ge=1, description="Number of coding chunks")
    plugin: Union[str, None] = Field(None, description="Erasure code plugin (e.g., 'jerasure')")
    crush_failure_domain: Union[str, None] = None
    technique: Union[str, None] = None
    crush_root: Union[str, None] = None
    crush_device_class: Union[str, None] = None
    directory: Union[str, None] = None

    def to_payload(self) -> Dict[str, Any]:
        """Build the create request; ``k`` and ``m`` travel as strings."""
        payload: Dict[str, Any] = {"name": self.name}
        if self.k is not None:
            payload["k"] = str(self.k)
        if self.m is not None:
            payload["m"] = str(self.m)
        optional = {
            "plugin": self.plugin,
            "crush-failure-domain": self.crush_failure_domain,
            "technique": self.technique,
            "crush-root": self.crush_root,
            "crush-device-class": self.crush_device_class,
            "directory": self.directory,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload
