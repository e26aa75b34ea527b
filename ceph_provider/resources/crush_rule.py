"""Controller for CRUSH rules."""

import logging
from typing import Any, Dict

from ceph_provider.ceph.errors import CephProviderError, CephResourceError, CephValidationError
from ceph_provider.models.crush import CrushRule, CrushRuleModel
from ceph_provider.reconcile import Diagnostics, is_not_found
from ceph_provider.resources.base import ImmutableResourceController, ResourceResult

logger = logging.getLogger(__name__)

IN_USE_HINT = "Note that CRUSH rules cannot be deleted if they are in use by any pools."


def rule_state(rule: CrushRule, plan: CrushRuleModel) -> CrushRuleModel:
    """Merge the computed attributes of a rule into the configured ones."""
    return plan.model_copy(
        update={
            "name": rule.rule_name,
            "rule_id": rule.rule_id,
            "ruleset": rule.ruleset,
            "type": rule.type,
            "min_size": rule.min_size,
            "max_size": rule.max_size,
            "steps": rule.steps,
        }
    )


def rule_from_api(rule: CrushRule) -> CrushRuleModel:
    """Recover the create-time attributes of a rule from its steps."""
    root = "default"
    device_class = None
    failure_domain = "host"
    for step in rule.steps:
        if step.op == "take" and step.item_name:
            # shadow roots are named "<root>~<device class>"
            root, _, device_class = step.item_name.partition("~")
        elif step.op.startswith("choose") and step.type:
            failure_domain = step.type

    plan = CrushRuleModel(
        name=rule.rule_name,
        pool_type="erasure" if rule.type == 3 else "replicated",
        failure_domain=failure_domain,
        root=root,
        device_class=device_class or None,
    )
    return rule_state(rule, plan)


class CrushRuleController(ImmutableResourceController[CrushRuleModel]):
    """Manage a CRUSH rule. Rules are read with the v2.0 API."""

    type_name = "ceph_crush_rule"
    model = CrushRuleModel
    replace_fields = ("name", "pool_type", "failure_domain", "device_class", "profile", "root")
    update_message = "CRUSH rules are immutable in Ceph and cannot be updated. Any changes require replacing the resource."

    def identify(self, state: CrushRuleModel) -> str:
        return state.name

    def create_payload(self, plan: CrushRuleModel) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": plan.name,
            "pool_type": plan.pool_type,
            "failure_domain": plan.failure_domain,
        }
        optional = {"device_class": plan.device_class, "profile": plan.profile, "root": plan.root}
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload

    async def _create(self, plan: CrushRuleModel) -> ResourceResult[CrushRuleModel]:
        try:
            await self.client.create_crush_rule(self.create_payload(plan))
        except CephProviderError as e:
            raise self._fail(f"Unable to create CRUSH rule '{plan.name}'", e) from e

        try:
            rule = CrushRule.model_validate(await self.client.get_crush_rule(plan.name))
        except CephProviderError as e:
            raise self._fail(f"Unable to read CRUSH rule '{plan.name}' after creation", e) from e
        return ResourceResult(rule_state(rule, plan))

    async def _read(self, state: CrushRuleModel) -> ResourceResult[CrushRuleModel]:
        try:
            rule = CrushRule.model_validate(await self.client.get_crush_rule(state.name))
        except CephProviderError as e:
            if is_not_found(e):
                diagnostics = Diagnostics()
                diagnostics.add_warning(
                    "CRUSH Rule Drift Detected",
                    f"CRUSH rule {state.name} no longer exists. Removing from state.",
                )
                return ResourceResult(None, diagnostics)
            raise self._fail(f"Unable to read CRUSH rule '{state.name}'", e) from e
        return ResourceResult(rule_state(rule, state))

    async def _delete(self, state: CrushRuleModel) -> ResourceResult[CrushRuleModel]:
        try:
            await self.client.delete_crush_rule(state.name)
        except CephProviderError as e:
            raise CephResourceError(
                f"Unable to delete CRUSH rule '{state.name}': {e}. {IN_USE_HINT}",
                status_code=e.status_code,
            ) from e
        return ResourceResult(None)

    async def _import(self, import_id: str) -> ResourceResult[CrushRuleModel]:
        """Import a rule by name.

        The create-time attributes are not reported by the API. Failure
        domain and root are recovered from the rule steps where possible.
        """
        name = import_id.strip()
        if not name:
            raise CephValidationError("Import ID cannot be empty. Expected a CRUSH rule name")

        try:
            rule = CrushRule.model_validate(await self.client.get_crush_rule(name))
        except CephProviderError as e:
            raise self._fail(f"Unable to read CRUSH rule '{name}' during import", e) from e

        return ResourceResult(rule_from_api(rule))
