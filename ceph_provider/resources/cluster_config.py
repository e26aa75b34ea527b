"""Controller for groups of cluster configuration cells."""

import logging
from typing import Dict, List, Union

from ceph_provider.ceph.errors import (
    CephNotFound,
    CephProviderError,
    CephResourceError,
    CephRollbackError,
    CephValidationError,
)
from ceph_provider.models.config import MGR_CONFIG_PREFIX, ClusterConfEntry, ClusterConfigModel
from ceph_provider.reconcile import (
    CellKey,
    Diagnostics,
    DriftAction,
    RollbackLog,
    classify_drift,
    diff_cells,
    flatten_cells,
    group_cells,
    is_not_found,
    parse_config_import_id,
)
from ceph_provider.resources.base import ResourceController, ResourceResult

logger = logging.getLogger(__name__)


def cell_path(section: str, name: str) -> str:
    """Attribute path of one cell within ``configs``."""
    return f'configs["{section}"]["{name}"]'


def mgr_prefix_message(name: str) -> str:
    return f"Configuration '{name}' cannot be managed via ceph_config. Use ceph_mgr_module_config instead."


class ClusterConfigController(ResourceController[ClusterConfigModel]):
    """Manage a group of ``(section, name) -> value`` cells.

    Cells are set one at a time through ``/api/cluster_conf``. A failed
    create undoes the cells it already applied, newest first.

    Two resource instances may manage the same cell. Nothing detects this;
    whichever applies last wins.
    """

    type_name = "ceph_config"
    model = ClusterConfigModel

    def identify(self, state: ClusterConfigModel) -> str:
        return ",".join(f"{section}.{name}" for section, name in sorted(flatten_cells(state.configs)))

    def validate(self, plan: ClusterConfigModel) -> Diagnostics:
        diagnostics = Diagnostics()
        for section, name in sorted(flatten_cells(plan.configs)):
            if name.startswith(MGR_CONFIG_PREFIX):
                diagnostics.add_error(
                    "Invalid Configuration Name",
                    mgr_prefix_message(name),
                    attribute=cell_path(section, name),
                )
        return diagnostics

    async def _create(self, plan: ClusterConfigModel) -> ResourceResult[ClusterConfigModel]:
        cells = flatten_cells(plan.configs)
        applied = RollbackLog()

        for section, name in sorted(cells):
            try:
                await self.client.cluster_update_conf(name, section, cells[(section, name)])
            except CephProviderError as e:
                error = CephResourceError(f"Unable to create cluster configuration {section}/{name}", cause=e)
                error.attribute = cell_path(section, name)
                raise await self._rollback(applied, error) from e
            applied.record((section, name))

        try:
            return await self._refresh(cells)
        except CephProviderError as e:
            raise await self._rollback(applied, e) from e

    async def _rollback(self, applied: RollbackLog, error: CephProviderError) -> CephProviderError:
        """Undo the applied cells and pick the error to raise.

        Returns ``error`` itself when every cell was reverted.
        """
        result = await applied.rollback(self._delete_cell)
        if result.ok:
            return error

        (failed_section, failed_name), rollback_error = result.failed[0]
        return CephRollbackError(
            f"Failed to rollback configuration {failed_section}/{failed_name}: {rollback_error}. "
            "Cluster may be in an inconsistent state. Manual intervention may be required.",
            attribute=cell_path(failed_section, failed_name),
            details={
                "cause": str(error),
                "failed": [f"{s}/{n}" for (s, n), _ in result.failed],
                "reverted": [f"{s}/{n}" for s, n in result.reverted],
            },
        )

    async def _delete_cell(self, section: str, name: str) -> None:
        await self.client.cluster_delete_conf(name, section)

    async def _read(self, state: ClusterConfigModel) -> ResourceResult[ClusterConfigModel]:
        return await self._refresh(flatten_cells(state.configs))

    async def _refresh(self, cells: Dict[CellKey, str]) -> ResourceResult[ClusterConfigModel]:
        """Re-read every cell and drop the ones that no longer exist."""
        diagnostics = Diagnostics()
        if not cells:
            return ResourceResult(ClusterConfigModel(configs={}), diagnostics)

        entries: Dict[str, Union[ClusterConfEntry, None]] = {}
        refreshed: Dict[CellKey, str] = {}
        missing: List[CellKey] = []

        for section, name in sorted(cells):
            if name not in entries:
                entries[name] = await self._get_entry(section, name)
            entry = entries[name]
            value = entry.value_for(section) if entry is not None else None
            if value is None:
                missing.append((section, name))
            else:
                refreshed[(section, name)] = value

        for section, name in missing:
            diagnostics.add_warning(
                "Configuration Drift Detected",
                f"Configuration {section}/{name} no longer exists in cluster. Removing from state.",
                attribute=cell_path(section, name),
            )

        if missing and classify_drift("cell", remaining=len(refreshed)) is DriftAction.REMOVE:
            return ResourceResult(None, diagnostics)
        return ResourceResult(ClusterConfigModel(configs=group_cells(refreshed)), diagnostics)

    async def _get_entry(self, section: str, name: str) -> Union[ClusterConfEntry, None]:
        """Fetch one option, or None when the server does not know it."""
        try:
            data = await self.client.cluster_get_conf(name)
            return ClusterConfEntry.model_validate(data)
        except CephProviderError as e:
            if is_not_found(e):
                return None
            error = self._fail(f"Unable to read cluster configuration {section}/{name}", e)
            error.attribute = cell_path(section, name)
            raise error from e

    async def _update(self, prior: ClusterConfigModel, plan: ClusterConfigModel) -> ResourceResult[ClusterConfigModel]:
        diff = diff_cells(flatten_cells(prior.configs), flatten_cells(plan.configs))

        for (section, name), value in diff.to_apply.items():
            verb = "create" if (section, name) in diff.to_create else "update"
            try:
                await self.client.cluster_update_conf(name, section, value)
            except CephProviderError as e:
                error = self._fail(f"Unable to {verb} cluster configuration {section}/{name}", e)
                error.attribute = cell_path(section, name)
                raise error from e

        for section, name in diff.to_delete:
            try:
                await self.client.cluster_delete_conf(name, section)
            except CephProviderError as e:
                error = self._fail(f"Unable to delete cluster configuration {section}/{name}", e)
                error.attribute = cell_path(section, name)
                raise error from e

        return await self._refresh(flatten_cells(plan.configs))

    async def _delete(self, state: ClusterConfigModel) -> ResourceResult[ClusterConfigModel]:
        diagnostics = Diagnostics()
        for section, name in sorted(flatten_cells(state.configs)):
            try:
                await self.client.cluster_delete_conf(name, section)
            except CephProviderError as e:
                diagnostics.add_warning(
                    "API Request Warning",
                    f"Unable to delete cluster configuration {section}/{name}: {e}. Continuing with remaining deletions.",
                    attribute=cell_path(section, name),
                )
        return ResourceResult(None, diagnostics)

    async def _import(self, import_id: str) -> ResourceResult[ClusterConfigModel]:
        requested = parse_config_import_id(import_id)
        if requested is None:
            return await self._import_all()

        for section, name in requested:
            if name.startswith(MGR_CONFIG_PREFIX):
                raise CephValidationError(mgr_prefix_message(name), attribute=cell_path(section, name))

        result = await self._refresh({key: "" for key in requested})
        found = flatten_cells(result.state.configs) if result.state is not None else {}
        missing = [key for key in requested if key not in found]
        if missing and classify_drift("cell", importing=True) is DriftAction.ERROR:
            section, name = missing[0]
            raise CephNotFound(
                f"Configuration {section}/{name} not found in cluster",
                attribute=cell_path(section, name),
                details={"missing": [f"{s}/{n}" for s, n in missing]},
            )
        return ResourceResult(result.state)

    async def _import_all(self) -> ResourceResult[ClusterConfigModel]:
        """Import every explicitly set cell outside the ``mgr/`` namespace."""
        try:
            data = await self.client.cluster_list_conf()
        except CephProviderError as e:
            raise self._fail("Unable to list cluster configurations during import", e) from e

        cells: Dict[CellKey, str] = {}
        for raw in data:
            entry = ClusterConfEntry.model_validate(raw)
            if entry.name.startswith(MGR_CONFIG_PREFIX):
                continue
            for value in entry.value:
                cells[(value.section, entry.name)] = value.value

        if not cells:
            raise CephNotFound("No non-default configurations found in the cluster")

        logger.info(f"Importing {len(cells)} cluster configuration values")
        return ResourceResult(ClusterConfigModel(configs=group_cells(cells)))
