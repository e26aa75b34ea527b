"""Base model shared by resource and data-source state."""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict

SENSITIVE: Dict[str, Any] = {"sensitive": True}
SENSITIVE_PLACEHOLDER = "(sensitive value)"


class ResourceModel(BaseModel):
    """State of one managed or looked-up object."""

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def sensitive_fields(cls) -> List[str]:
        """Names of fields whose values must be masked in rendered output."""
        return [
            name
            for name, field in cls.model_fields.items()
            if isinstance(field.json_schema_extra, dict) and field.json_schema_extra.get("sensitive")
        ]

    def masked_dump(self) -> Dict[str, Any]:
        """Dump the model with sensitive values replaced by a placeholder."""
        sensitive = set(self.sensitive_fields())
        data: Dict[str, Any] = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if name in sensitive and value is not None:
                data[name] = SENSITIVE_PLACEHOLDER
            elif isinstance(value, ResourceModel):
                data[name] = value.masked_dump()
            elif isinstance(value, list):
                data[name] = [v.masked_dump() if isinstance(v, ResourceModel) else v for v in value]
            elif isinstance(value, BaseModel):
                data[name] = value.model_dump()
            else:
                data[name] = value
        return data
