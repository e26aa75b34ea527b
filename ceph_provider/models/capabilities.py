"""CephX capability value object."""

from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel, Field, field_validator

from ceph_provider.ceph.errors import CephValidationError

# Wire and rendering order of the subsystems.
CAPABILITY_TYPES = ("mds", "mgr", "mon", "osd")


class CephCaps(BaseModel):
    """CephX capabilities for the four Ceph subsystems.

    An empty string is treated as "not set": it is normalised to ``None`` and
    never appears on the wire or in :meth:`to_dict`.
    """

    mds: Union[str, None] = Field(None, description="MDS capabilities (e.g., 'allow rw')")
    mgr: Union[str, None] = Field(None, description="Manager capabilities (e.g., 'allow r')")
    mon: Union[str, None] = Field(None, description="Monitor capabilities (e.g., 'allow r')")
    osd: Union[str, None] = Field(None, description="OSD capabilities (e.g., 'allow rw pool=mypool')")

    @field_validator("mds", "mgr", "mon", "osd")
    @classmethod
    def validate_capability(cls, v: Union[str, None]) -> Union[str, None]:
        """Treat empty capability strings as unset."""
        if v is None or v == "":
            return None
        return v

    @classmethod
    def from_dict(cls, capabilities: Mapping[str, Any]) -> "CephCaps":
        """Build capabilities from an open string-keyed mapping.

        Keys are matched case-insensitively against ``mds``, ``mgr``, ``mon``
        and ``osd``.

        Args:
            capabilities: Mapping of subsystem to capability string

        Returns:
            CephCaps instance

        Raises:
            CephValidationError: If a key names an unsupported subsystem
        """
        values: Dict[str, Any] = {}
        for cap_type, cap_value in capabilities.items():
            lower = cap_type.lower()
            if lower not in CAPABILITY_TYPES:
                raise CephValidationError(
                    f'caps attribute contains unsupported capability type "{cap_type}"',
                    attribute="caps",
                    details={"capability_type": cap_type},
                )
            values[lower] = cap_value
        return cls(**values)

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary, omitting unset subsystems."""
        return {name: getattr(self, name) for name in CAPABILITY_TYPES if getattr(self, name)}

    def to_wire(self) -> List[Dict[str, str]]:
        """Convert to the Ceph API list-of-``{entity, cap}`` form."""
        return [{"entity": name, "cap": value} for name, value in self.to_dict().items()]

    def is_empty(self) -> bool:
        """Check if no subsystem has a capability."""
        return not self.to_dict()
