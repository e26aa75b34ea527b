"""Shared reconciliation helpers used by the resource controllers."""

import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterator, List, Literal, Mapping, Tuple, Union

from pydantic import BaseModel, Field

from ceph_provider.ceph.errors import CephAPIError, CephProviderError, CephValidationError

logger = logging.getLogger(__name__)

# (section, name)
CellKey = Tuple[str, str]

BULK_IMPORT_IDS = ("", "*", "id-attribute-not-set")


class Diagnostic(BaseModel):
    """A warning or error attached to an operation result."""

    severity: Literal["error", "warning"]
    summary: str
    detail: str
    attribute: Union[str, None] = Field(None, description="Attribute path the diagnostic concerns")


class Diagnostics:
    """Ordered collection of diagnostics."""

    def __init__(self) -> None:
        self.items: List[Diagnostic] = []

    def add_error(self, summary: str, detail: str, attribute: Union[str, None] = None) -> None:
        """Record an error that fails the operation."""
        self.items.append(Diagnostic(severity="error", summary=summary, detail=detail, attribute=attribute))

    def add_warning(self, summary: str, detail: str, attribute: Union[str, None] = None) -> None:
        """Record a warning returned alongside the state."""
        self.items.append(Diagnostic(severity="warning", summary=summary, detail=detail, attribute=attribute))

    def extend(self, other: "Diagnostics") -> None:
        """Append the diagnostics of another collection."""
        self.items.extend(other.items)

    @property
    def errors(self) -> List[Diagnostic]:
        """Error diagnostics, in insertion order."""
        return [d for d in self.items if d.severity == "error"]

    @property
    def warnings(self) -> List[Diagnostic]:
        """Warning diagnostics, in insertion order."""
        return [d for d in self.items if d.severity == "warning"]

    def has_error(self) -> bool:
        """Whether any error was recorded."""
        return bool(self.errors)

    def raise_for_errors(self) -> None:
        """Raise the collected errors as one validation error.

        Raises:
            CephValidationError: If any error diagnostic was collected
        """
        errors = self.errors
        if not errors:
            return
        first = errors[0]
        message = "; ".join(e.detail for e in errors)
        raise CephValidationError(message, errors=errors, attribute=first.attribute)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def flatten_cells(groups: Mapping[str, Mapping[str, str]]) -> Dict[CellKey, str]:
    """Flatten a section -> name -> value mapping into cells."""
    return {(section, name): value for section, names in groups.items() for name, value in names.items()}


def group_cells(cells: Mapping[CellKey, str]) -> Dict[str, Dict[str, str]]:
    """Group cells back into a section -> name -> value mapping."""
    groups: Dict[str, Dict[str, str]] = {}
    for (section, name), value in cells.items():
        groups.setdefault(section, {})[name] = value
    return groups


class CompositeDiff:
    """Cells to create, update and delete to move from prior to plan."""

    def __init__(
        self,
        to_create: Dict[CellKey, str],
        to_update: Dict[CellKey, str],
        to_delete: List[CellKey],
    ) -> None:
        self.to_create = to_create
        self.to_update = to_update
        self.to_delete = to_delete

    @property
    def to_apply(self) -> Dict[CellKey, str]:
        """Cells that need a set call, created or changed."""
        return {**self.to_create, **self.to_update}

    def is_empty(self) -> bool:
        """Whether prior and plan already match."""
        return not (self.to_create or self.to_update or self.to_delete)


def diff_cells(prior: Mapping[CellKey, str], plan: Mapping[CellKey, str]) -> CompositeDiff:
    """Compute the composite diff between two flat cell maps.

    Keys are visited in sorted order so the emitted mutations are stable.
    """
    to_create = {key: plan[key] for key in sorted(plan) if key not in prior}
    to_update = {key: plan[key] for key in sorted(plan) if key in prior and prior[key] != plan[key]}
    to_delete = [key for key in sorted(prior) if key not in plan]
    return CompositeDiff(to_create, to_update, to_delete)


class RollbackResult:
    """Outcome of walking a rollback log."""

    def __init__(self) -> None:
        self.reverted: List[CellKey] = []
        self.failed: List[Tuple[CellKey, CephProviderError]] = []

    @property
    def ok(self) -> bool:
        """Whether every recorded cell was reverted."""
        return not self.failed


class RollbackLog:
    """Append-only log of applied cells, undone in reverse order."""

    def __init__(self) -> None:
        self._entries: List[CellKey] = []

    def record(self, key: CellKey) -> None:
        """Record a cell that was applied on the server."""
        self._entries.append(key)

    @property
    def entries(self) -> Tuple[CellKey, ...]:
        """Recorded cells, oldest first."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    async def rollback(self, undo: Callable[[str, str], Awaitable[None]]) -> RollbackResult:
        """Undo every recorded cell, newest first.

        Every step is attempted even when an earlier one fails.

        Args:
            undo: Coroutine function called with (section, name)

        Returns:
            Which cells were reverted and which failed
        """
        result = RollbackResult()
        for section, name in reversed(self._entries):
            logger.warning(f"Rolling back configuration {section}/{name}")
            try:
                await undo(section, name)
            except CephProviderError as e:
                logger.error(f"Failed to rollback configuration {section}/{name}: {e}")
                result.failed.append(((section, name), e))
            else:
                result.reverted.append((section, name))
        return result


class DriftAction(str, Enum):
    """What to do when a recorded object is missing on the server."""

    DROP = "drop"
    REMOVE = "remove"
    ERROR = "error"


def classify_drift(missing: str, *, importing: bool = False, remaining: int = 0) -> DriftAction:
    """Decide how a read reacts to a missing object.

    Args:
        missing: ``"cell"`` for one entry of a composite resource, ``"resource"`` otherwise
        importing: Whether the read is part of an import
        remaining: Cells still present after dropping the missing ones

    Returns:
        DROP for a missing cell while others remain, ERROR during import,
        REMOVE otherwise
    """
    if importing:
        return DriftAction.ERROR
    if missing == "cell" and remaining > 0:
        return DriftAction.DROP
    return DriftAction.REMOVE


def is_not_found(error: Exception) -> bool:
    """Whether an error is a 404 answer from the Ceph API."""
    return isinstance(error, CephAPIError) and error.is_not_found


def parse_config_import_id(import_id: str) -> Union[List[CellKey], None]:
    """Parse a cluster configuration import id.

    An empty id, ``*`` or ``id-attribute-not-set`` selects bulk import and
    yields ``None``. Otherwise the id is a comma-separated list of
    ``section.name`` pairs. Sections may contain dots (``osd.0``), option
    names never do, so the split happens at the last dot.

    Raises:
        CephValidationError: If a part is empty, malformed or duplicated
    """
    import_id = import_id.strip()
    if import_id in BULK_IMPORT_IDS:
        return None

    cells: List[CellKey] = []
    for part in import_id.split(","):
        part = part.strip()
        if not part:
            raise CephValidationError(
                f"Import ID contains an empty entry: {import_id!r}. Expected format: section.name[,section.name...]"
            )
        section, _, name = part.rpartition(".")
        if not section or not name:
            raise CephValidationError(
                f"Invalid import entry {part!r}. Expected format: section.name (e.g., 'global.osd_pool_default_size')"
            )
        if (section, name) in cells:
            raise CephValidationError(f"Duplicate import entry {part!r}")
        cells.append((section, name))
    return cells


def split_user_id(user_id: str) -> Tuple[str, Union[str, None]]:
    """Split an RGW ``parent:subuser`` id into the parent uid and subuser."""
    parent, sep, subuser = user_id.partition(":")
    if not sep:
        return user_id, None
    return parent, subuser
