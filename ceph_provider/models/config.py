"""Pydantic models for cluster and manager-module configuration."""

import math
from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field, field_validator

from ceph_provider.ceph.errors import CephParseError
from ceph_provider.models.base import ResourceModel

MGR_CONFIG_PREFIX = "mgr/"


class ScalarKind(str, Enum):
    """Tag of a JSON scalar returned by the Ceph API."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    OTHER = "other"


class ConfigScalar(BaseModel):
    """A tagged JSON scalar, used for manager-module option values."""

    kind: ScalarKind
    value: Any = None

    @classmethod
    def from_json(cls, value: Any) -> "ConfigScalar":
        """Tag a decoded JSON value."""
        # bool is a subclass of int
        if isinstance(value, bool):
            return cls(kind=ScalarKind.BOOL, value=value)
        if isinstance(value, int):
            return cls(kind=ScalarKind.INT, value=value)
        if isinstance(value, float):
            return cls(kind=ScalarKind.FLOAT, value=value)
        if isinstance(value, str):
            return cls(kind=ScalarKind.STRING, value=value)
        return cls(kind=ScalarKind.OTHER, value=value)

    def format(self) -> str:
        """Render the scalar in its canonical string form.

        Returns:
            ``true``/``false`` for booleans, base-10 for integers, integral
            floats without a decimal point, other floats in their shortest
            form, strings unchanged

        Raises:
            CephParseError: If the value is not a supported scalar
        """
        if self.kind is ScalarKind.BOOL:
            return "true" if self.value else "false"
        if self.kind is ScalarKind.INT:
            return str(self.value)
        if self.kind is ScalarKind.FLOAT:
            if math.isfinite(self.value) and self.value.is_integer():
                return str(int(self.value))
            return repr(self.value)
        if self.kind is ScalarKind.STRING:
            return self.value
        raise CephParseError(
            f"unsupported config value type: {type(self.value).__name__}",
            details={"value": self.value},
        )


def format_config_value(value: Any) -> str:
    """Format a JSON scalar returned by the Ceph API as a string."""
    return ConfigScalar.from_json(value).format()


class ClusterConfValue(BaseModel):
    """Value of a configuration option in one section."""

    section: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def validate_value(cls, v: Any) -> str:
        """Accept scalars from the API and keep their string form."""
        return format_config_value(v)


class ClusterConfEntry(BaseModel):
    """A cluster configuration option as returned by ``/api/cluster_conf``."""

    name: str
    level: Union[str, None] = None
    can_update_at_runtime: Union[bool, None] = None
    value: List[ClusterConfValue] = Field(default_factory=list)

    def value_for(self, section: str) -> Union[str, None]:
        """Value set for a section, or None if the section has none."""
        for entry in self.value:
            if entry.section == section:
                return entry.value
        return None


class ClusterConfigModel(ResourceModel):
    """State of a group of cluster configuration cells."""

    configs: Dict[str, Dict[str, str]] = Field(
        default_factory=dict,
        description="Mapping of section to option name to value",
    )

    @field_validator("configs", mode="before")
    @classmethod
    def validate_configs(cls, v: Any) -> Any:
        """Store native booleans and numbers in their string form."""
        if not isinstance(v, dict):
            return v
        return {
            section: {name: format_config_value(value) for name, value in (names or {}).items()}
            for section, names in v.items()
        }


class MgrModuleOption(BaseModel):
    """Published metadata of a manager-module option."""

    default_value: Any = None


class MgrModuleConfigModel(ResourceModel):
    """State of a manager module's option overrides."""

    module_name: str = Field(..., min_length=1, description="Manager module name (e.g., 'dashboard')")
    configs: Dict[str, str] = Field(
        default_factory=dict,
        description="Mapping of option name to string-encoded value",
    )

    @field_validator("configs", mode="before")
    @classmethod
    def validate_configs(cls, v: Any) -> Any:
        """Store native booleans and numbers in their string form."""
        if not isinstance(v, dict):
            return v
        return {name: format_config_value(value) for name, value in v.items()}


class ConfigEntryModel(ResourceModel):
    """One explicitly set configuration cell."""

    section: str
    name: str
    value: str
    level: Union[str, None] = None
    can_update_at_runtime: Union[bool, None] = None


class ConfigListModel(ResourceModel):
    """Explicitly set configuration cells, optionally limited to one section."""

    section: Union[str, None] = Field(None, description="Section filter; every section when unset")
    configs: List[ConfigEntryModel] = Field(default_factory=list)


class ConfigValueModel(ResourceModel):
    """Value of one option in one section."""

    name: str = Field(..., min_length=1)
    section: str = Field(default="global")
    value: str
