"""Controller for manager-module option overrides."""

import logging
from typing import Any, Dict, Iterable

from ceph_provider.ceph.errors import CephProviderError, CephValidationError
from ceph_provider.models.config import MgrModuleConfigModel, MgrModuleOption, format_config_value
from ceph_provider.reconcile import Diagnostics, is_not_found
from ceph_provider.resources.base import ResourceController, ResourceResult

logger = logging.getLogger(__name__)


class MgrModuleConfigController(ResourceController[MgrModuleConfigModel]):
    """Manage option values of one manager module.

    Only the options named in the state are tracked. Values are stored in
    their canonical string form, whatever JSON type the module reports.
    """

    type_name = "ceph_mgr_module_config"
    model = MgrModuleConfigModel
    replace_fields = ("module_name",)

    def identify(self, state: MgrModuleConfigModel) -> str:
        return state.module_name

    async def _create(self, plan: MgrModuleConfigModel) -> ResourceResult[MgrModuleConfigModel]:
        try:
            await self.client.mgr_set_module_config(plan.module_name, dict(plan.configs))
        except CephProviderError as e:
            raise self._fail(f"Unable to create MGR module config for '{plan.module_name}'", e) from e
        return await self._read_back(plan.module_name, plan.configs)

    async def _read(self, state: MgrModuleConfigModel) -> ResourceResult[MgrModuleConfigModel]:
        try:
            current = await self.client.mgr_get_module_config(state.module_name)
        except CephProviderError as e:
            if not is_not_found(e):
                raise self._fail(f"Unable to read MGR module config for '{state.module_name}'", e) from e
            diagnostics = Diagnostics()
            diagnostics.add_warning(
                "MGR Module Drift Detected",
                f"MGR module {state.module_name} no longer exists in cluster. Removing from state.",
            )
            return ResourceResult(None, diagnostics)
        return ResourceResult(self._project(state.module_name, current, state.configs))

    async def _update(
        self, prior: MgrModuleConfigModel, plan: MgrModuleConfigModel
    ) -> ResourceResult[MgrModuleConfigModel]:
        """Apply the planned values and reset dropped options to their defaults."""
        payload: Dict[str, Any] = dict(plan.configs)
        removed = [key for key in prior.configs if key not in plan.configs]
        if removed:
            options = await self._options(plan.module_name)
            payload.update({key: options[key].default_value for key in removed if key in options})

        if payload:
            try:
                await self.client.mgr_set_module_config(plan.module_name, payload)
            except CephProviderError as e:
                raise self._fail(f"Unable to update MGR module config for '{plan.module_name}'", e) from e
        return await self._read_back(plan.module_name, plan.configs)

    async def _delete(self, state: MgrModuleConfigModel) -> ResourceResult[MgrModuleConfigModel]:
        """Reset every tracked option to its published default."""
        if not state.configs:
            return ResourceResult(None)

        options = await self._options(state.module_name)
        defaults = {key: options[key].default_value for key in state.configs if key in options}
        if defaults:
            try:
                await self.client.mgr_set_module_config(state.module_name, defaults)
            except CephProviderError as e:
                raise self._fail(f"Unable to reset MGR module config for '{state.module_name}' to defaults", e) from e
        return ResourceResult(None)

    async def _import(self, import_id: str) -> ResourceResult[MgrModuleConfigModel]:
        """Import only the options whose value differs from the default."""
        module_name = import_id.strip()
        if not module_name:
            raise CephValidationError("Import ID cannot be empty. Expected a manager module name (e.g., 'dashboard')")

        try:
            current = await self.client.mgr_get_module_config(module_name)
        except CephProviderError as e:
            raise self._fail(f"Unable to read MGR module config for '{module_name}'", e) from e
        options = await self._options(module_name)

        configs: Dict[str, str] = {}
        for key, value in current.items():
            option = options.get(key)
            if option is None:
                continue
            formatted = self._format(key, value)
            try:
                default = format_config_value(option.default_value)
            except CephProviderError as e:
                raise self._fail(f"Unable to format default value for key '{key}'", e) from e
            if formatted != default:
                configs[key] = formatted

        return ResourceResult(MgrModuleConfigModel(module_name=module_name, configs=configs))

    async def enable_module(self, module_name: str) -> None:
        """Enable a manager module."""
        try:
            await self.client.mgr_enable_module(module_name)
        except CephProviderError as e:
            raise self._fail(f"Unable to enable MGR module '{module_name}'", e) from e
        logger.info(f"Enabled MGR module {module_name}")

    async def disable_module(self, module_name: str) -> None:
        """Disable a manager module."""
        try:
            await self.client.mgr_disable_module(module_name)
        except CephProviderError as e:
            raise self._fail(f"Unable to disable MGR module '{module_name}'", e) from e
        logger.info(f"Disabled MGR module {module_name}")

    async def _read_back(self, module_name: str, keys: Iterable[str]) -> ResourceResult[MgrModuleConfigModel]:
        try:
            current = await self.client.mgr_get_module_config(module_name)
        except CephProviderError as e:
            raise self._fail(f"Unable to read back MGR module config for '{module_name}'", e) from e
        return ResourceResult(self._project(module_name, current, keys))

    async def _options(self, module_name: str) -> Dict[str, MgrModuleOption]:
        try:
            raw = await self.client.mgr_get_module_options(module_name)
        except CephProviderError as e:
            raise self._fail(f"Unable to get module options for '{module_name}'", e) from e
        return {key: MgrModuleOption.model_validate(value) for key, value in raw.items()}

    def _project(self, module_name: str, current: Dict[str, Any], keys: Iterable[str]) -> MgrModuleConfigModel:
        """Keep the given keys of the server config, formatted."""
        configs = {key: self._format(key, current[key]) for key in keys if key in current}
        return MgrModuleConfigModel(module_name=module_name, configs=configs)

    def _format(self, key: str, value: Any) -> str:
        try:
            return format_config_value(value)
        except CephProviderError as e:
            raise self._fail(f"Unable to format config value for key '{key}'", e) from e
