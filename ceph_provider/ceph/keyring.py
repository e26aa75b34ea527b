"""Parsing and rendering of cephx keyring text.

A keyring holds one or more identities::

    [client.admin]
        key = AQB5m89objcKIxAAda2ULz/l3NH+mv9XzKePHQ==
        caps mon = "allow *"

The functions in this module are pure; they never touch the network.
"""

import re
from typing import Iterable, List

from pydantic import BaseModel, Field

from ceph_provider.ceph.errors import CephParseError
from ceph_provider.models.capabilities import CAPABILITY_TYPES, CephCaps

ENTITY_RE = re.compile(r"^\[([^\]]+)\]$")
KEY_RE = re.compile(r"^key\s*=\s*(.*)$")
CAPS_RE = re.compile(r"^caps\s+(\w+)\s*=\s*(.*)$")


class KeyringUser(BaseModel):
    """A single identity section of a keyring."""

    entity: str = Field(..., description="Entity name (e.g., 'client.admin')")
    key: str = Field(default="", description="cephx secret key")
    caps: CephCaps = Field(default_factory=CephCaps, description="Per-subsystem capabilities")


def parse_keyring(content: str) -> List[KeyringUser]:
    """Parse keyring text into identities.

    Lines are trimmed before matching. Unknown lines inside a section are
    ignored; any non-blank line before the first section is rejected.

    Args:
        content: Keyring text

    Returns:
        Identities in the order they appear

    Raises:
        CephParseError: If the text is not a valid keyring
    """
    users: List[KeyringUser] = []
    current = None
    caps = {}

    for lineno, original in enumerate(content.split("\n"), start=1):
        line = original.strip()
        if not line:
            continue

        match = ENTITY_RE.match(line)
        if match:
            if current is not None:
                users.append(KeyringUser(entity=current["entity"], key=current["key"], caps=CephCaps(**caps)))
            current = {"entity": match.group(1), "key": ""}
            caps = {}
            continue

        if current is None:
            raise CephParseError(
                f"parse error:{lineno}:{original}",
                details={"line": lineno},
            )

        match = KEY_RE.match(line)
        if match:
            current["key"] = match.group(1).strip()
            continue

        match = CAPS_RE.match(line)
        if match:
            cap_type = match.group(1)
            if cap_type.lower() not in CAPABILITY_TYPES:
                raise CephParseError(
                    f'parse error:{lineno}:{original} (unsupported capability type "{cap_type}")',
                    details={"line": lineno, "capability_type": cap_type},
                )
            caps[cap_type.lower()] = match.group(2).strip().strip('"')

    if current is not None:
        users.append(KeyringUser(entity=current["entity"], key=current["key"], caps=CephCaps(**caps)))

    if not users:
        raise CephParseError(
            "invalid keyring format: no valid entity sections found "
            "(expected format: [entity.name] followed by key and caps)"
        )

    return users


def render_keyring_user(user: KeyringUser) -> str:
    """Render one identity as a keyring section."""
    lines = [f"[{user.entity}]\n", f"\tkey = {user.key}\n"]
    for cap_type, cap_value in user.caps.to_dict().items():
        lines.append(f'\tcaps {cap_type} = "{cap_value}"\n')
    return "".join(lines)


def render_keyring(users: Iterable[KeyringUser]) -> str:
    """Render identities as keyring text, separated by blank lines."""
    return "\n".join(render_keyring_user(user) for user in users)
