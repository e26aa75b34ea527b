"""Common lifecycle shared by every resource controller."""

import logging
from typing import Generic, List, Tuple, Type, TypeVar, Union

from ceph_provider.ceph.client import CephAPIClient
from ceph_provider.ceph.errors import (
    CephProviderError,
    CephResourceError,
    CephUnsupportedOperation,
)
from ceph_provider.core.logging import audit_logger
from ceph_provider.models.base import ResourceModel
from ceph_provider.reconcile import Diagnostics

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=ResourceModel)


class ResourceResult(Generic[ModelT]):
    """Authoritative state after an operation, plus diagnostics.

    ``state`` is None when the resource must be removed from the recorded
    state, either because it was deleted or because it drifted away.
    """

    def __init__(self, state: Union[ModelT, None], diagnostics: Union[Diagnostics, None] = None) -> None:
        self.state = state
        self.diagnostics = diagnostics or Diagnostics()

    @property
    def removed(self) -> bool:
        return self.state is None


class ResourceController(Generic[ModelT]):
    """Create, read, update, delete and import one kind of Ceph object.

    Subclasses implement the ``_create``/``_read``/``_update``/``_delete``/
    ``_import`` coroutines. The public methods validate the plan, record an
    audit entry and keep errors flowing to the caller.
    """

    type_name: str = ""
    model: Type[ResourceModel] = ResourceModel
    replace_fields: Tuple[str, ...] = ()

    def __init__(self, client: CephAPIClient) -> None:
        self.client = client

    def identify(self, state: ModelT) -> str:
        """Human-readable identity of a resource instance."""
        raise NotImplementedError

    def validate(self, plan: ModelT) -> Diagnostics:
        """Check invariants that cannot be expressed per attribute."""
        return Diagnostics()

    def requires_replace(self, prior: ModelT, plan: ModelT) -> List[str]:
        """Attributes whose change cannot be applied in place.

        A plan value of None means "keep whatever the server has" and never
        forces replacement.
        """
        return [
            name
            for name in self.replace_fields
            if getattr(plan, name) is not None and getattr(plan, name) != getattr(prior, name)
        ]

    async def create(self, plan: ModelT) -> ResourceResult[ModelT]:
        diagnostics = self.validate(plan)
        diagnostics.raise_for_errors()
        result = await self._run("CREATE", self.identify(plan), self._create(plan))
        result.diagnostics.items[:0] = diagnostics.items
        return result

    async def read(self, state: ModelT) -> ResourceResult[ModelT]:
        return await self._run("READ", self.identify(state), self._read(state))

    async def update(self, prior: ModelT, plan: ModelT) -> ResourceResult[ModelT]:
        replace = self.requires_replace(prior, plan)
        if replace:
            raise CephUnsupportedOperation(
                f"{self.type_name} attributes {', '.join(replace)} cannot be updated in place and require replacement",
                attribute=replace[0],
                details={"requires_replace": replace},
            )
        diagnostics = self.validate(plan)
        diagnostics.raise_for_errors()
        result = await self._run("UPDATE", self.identify(prior), self._update(prior, plan))
        result.diagnostics.items[:0] = diagnostics.items
        return result

    async def delete(self, state: ModelT) -> ResourceResult[ModelT]:
        return await self._run("DELETE", self.identify(state), self._delete(state))

    async def import_state(self, import_id: str) -> ResourceResult[ModelT]:
        return await self._run("IMPORT", import_id, self._import(import_id))

    async def _run(self, operation: str, ident: str, coro) -> ResourceResult[ModelT]:
        resource = f"{self.type_name}:{ident}"
        try:
            result = await coro
        except CephProviderError as e:
            logger.error(f"{operation} {resource} failed: {e.message}")
            audit_logger.log_operation(
                operation,
                resource,
                "FAILED",
                {"error_code": e.error_code, "message": e.message},
            )
            raise

        status = "REMOVED" if result.removed and operation != "DELETE" else "SUCCESS"
        for warning in result.diagnostics.warnings:
            logger.warning(f"{operation} {resource}: {warning.summary}: {warning.detail}")
        audit_logger.log_operation(operation, resource, status)
        return result

    @staticmethod
    def _fail(message: str, cause: Exception) -> CephResourceError:
        return CephResourceError(message, cause=cause)

    async def _create(self, plan: ModelT) -> ResourceResult[ModelT]:
        raise NotImplementedError

    async def _read(self, state: ModelT) -> ResourceResult[ModelT]:
        raise NotImplementedError

    async def _update(self, prior: ModelT, plan: ModelT) -> ResourceResult[ModelT]:
        raise NotImplementedError

    async def _delete(self, state: ModelT) -> ResourceResult[ModelT]:
        raise NotImplementedError

    async def _import(self, import_id: str) -> ResourceResult[ModelT]:
        raise NotImplementedError


class ImmutableResourceController(ResourceController[ModelT]):
    """Controller for objects Ceph cannot modify after creation."""

    update_message = "This resource cannot be updated. Any changes require replacing the resource."

    async def update(self, prior: ModelT, plan: ModelT) -> ResourceResult[ModelT]:
        audit_logger.log_operation("UPDATE", f"{self.type_name}:{self.identify(prior)}", "FAILED")
        raise CephUnsupportedOperation(self.update_message)
