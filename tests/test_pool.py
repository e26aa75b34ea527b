"""Tests for the pool controller."""

import pytest

from ceph_provider.ceph.errors import CephResourceError, CephUnsupportedOperation, CephValidationError
from ceph_provider.models.pool import PoolModel
from ceph_provider.resources.pool import PoolController, is_power_of_two
from tests.conftest import not_found, server_error

# Mock /api/pool/rbd
MOCK_POOL = {
    "pool_name": "rbd",
    "type": "replicated",
    "pool_id": 3,
    "size": 3,
    "min_size": 2,
    "pg_num": 32,
    "pg_placement_num": 32,
    "crush_rule": "replicated_rule",
    "primary_affinity": 1.0,
    "application_metadata": ["rbd"],
    "erasure_code_profile": "",
    "pg_autoscale_mode": "on",
    "quota_max_objects": 0,
    "quota_max_bytes": 0,
    "options": {},
}

MOCK_EC_POOL = {
    "pool_name": "ecpool",
    "type": "erasure",
    "pool_id": 4,
    "size": 3,
    "min_size": 2,
    "pg_num": 64,
    "pg_placement_num": 64,
    "crush_rule": "ecpool",
    "erasure_code_profile": "default",
    "pg_autoscale_mode": "warn",
    "options": {"compression_mode": "aggressive", "compression_algorithm": "zstd"},
}


def pool_with(**changes):
    """MOCK_POOL with some fields replaced."""
    data = dict(MOCK_POOL)
    data.update(changes)
    return data


@pytest.fixture
def controller(mock_client):
    """PoolController with a mocked client and no waiting."""
    mock_client.get_pool.return_value = dict(MOCK_POOL)
    controller = PoolController(mock_client)
    controller.check_interval = 0
    controller.properties_timeout = 0
    controller.rename_settle_time = 0
    return controller


class TestValidatePool:
    """Tests for pool plan validation."""

    def test_replicated_with_profile(self, controller) -> None:
        """Test that replicated pools reject an erasure code profile."""
        plan = PoolModel(name="rbd", pool_type="replicated", erasure_code_profile="default")

        diagnostics = controller.validate(plan)

        assert diagnostics.errors[0].detail == "erasure_code_profile is only valid for erasure pools, not replicated pools."

    def test_erasure_with_size(self, controller) -> None:
        """Test that erasure pools reject size and min_size."""
        plan = PoolModel(name="ec", pool_type="erasure", size=3, min_size=2)

        diagnostics = controller.validate(plan)

        assert [d.attribute for d in diagnostics.errors] == ["size", "min_size"]

    def test_compression_options_without_compression(self, controller) -> None:
        """Test that compression sub-options need compression enabled."""
        plan = PoolModel(name="rbd", pool_type="replicated", compression_mode="none", compression_algorithm="zstd")

        diagnostics = controller.validate(plan)

        assert diagnostics.errors[0].attribute == "compression_algorithm"
        assert 'cannot be set when compression_mode is "none"' in diagnostics.errors[0].detail

    def test_non_power_of_two_warns(self, controller) -> None:
        """Test that an odd pg_num is only a warning."""
        diagnostics = controller.validate(PoolModel(name="rbd", pool_type="replicated", pg_num=100))

        assert not diagnostics.has_error()
        assert diagnostics.warnings[0].summary == "Non-Power-of-2 Placement Group Count"

    @pytest.mark.parametrize("value,expected", [(1, True), (32, True), (0, False), (100, False)])
    def test_is_power_of_two(self, value: int, expected: bool) -> None:
        """Test the power-of-two check."""
        assert is_power_of_two(value) is expected


class TestCreatePool:
    """Tests for creating pools."""

    @pytest.mark.asyncio
    async def test_create_replicated(self, controller, mock_client) -> None:
        """Test the create payload and refreshed state of a replicated pool."""
        plan = PoolModel(name="rbd", pool_type="replicated", size=3, min_size=2, pg_num=32, application_metadata=["rbd"])

        result = await controller.create(plan)

        mock_client.create_pool.assert_awaited_once_with(
            {
                "pool": "rbd",
                "pool_type": "replicated",
                "pg_num": 32,
                "size": 3,
                "min_size": 2,
                "application_metadata": ["rbd"],
            }
        )
        state = result.state
        assert state.pool_id == 3
        assert state.crush_rule == "replicated_rule"
        assert state.erasure_code_profile is None
        assert state.compression_mode is None

    @pytest.mark.asyncio
    async def test_create_erasure_defaults_profile(self, controller, mock_client) -> None:
        """Test that erasure pools default to the 'default' profile and send no size."""
        mock_client.get_pool.return_value = dict(MOCK_EC_POOL)
        plan = PoolModel(name="ecpool", pool_type="erasure")

        result = await controller.create(plan)

        mock_client.create_pool.assert_awaited_once_with(
            {"pool": "ecpool", "pool_type": "erasure", "erasure_code_profile": "default"}
        )
        assert result.state.compression_algorithm == "zstd"

    @pytest.mark.asyncio
    async def test_create_waits_for_properties(self, controller, mock_client) -> None:
        """Test that creation polls until the pool shows the planned values."""
        controller.properties_timeout = 60
        mock_client.get_pool.side_effect = [
            not_found(),
            pool_with(min_size=1),
            pool_with(min_size=2),
        ]

        result = await controller.create(PoolModel(name="rbd", pool_type="replicated", min_size=2))

        assert mock_client.get_pool.await_count == 3
        assert result.state.min_size == 2

    @pytest.mark.asyncio
    async def test_create_timeout_returns_last_read(self, controller, mock_client) -> None:
        """Test that a timed-out wait still returns the pool as read."""
        mock_client.get_pool.return_value = pool_with(min_size=1)

        result = await controller.create(PoolModel(name="rbd", pool_type="replicated", min_size=2))

        assert result.state.min_size == 1

    @pytest.mark.asyncio
    async def test_create_invalid_plan(self, controller, mock_client) -> None:
        """Test that invalid combinations are rejected before any call."""
        with pytest.raises(CephValidationError):
            await controller.create(PoolModel(name="ec", pool_type="erasure", size=3))

        mock_client.create_pool.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_failure(self, controller, mock_client) -> None:
        """Test the create error message."""
        mock_client.create_pool.side_effect = server_error()

        with pytest.raises(CephResourceError) as exc_info:
            await controller.create(PoolModel(name="rbd", pool_type="replicated"))

        assert exc_info.value.message.startswith("Unable to create pool 'rbd'")


class TestReadPool:
    """Tests for reading pools."""

    @pytest.mark.asyncio
    async def test_read_missing_pool(self, controller, mock_client) -> None:
        """Test that a deleted pool drifts out of state."""
        mock_client.get_pool.side_effect = not_found()

        result = await controller.read(PoolModel(name="rbd", pool_type="replicated"))

        assert result.removed
        assert result.diagnostics.warnings[0].summary == "Pool Drift Detected"


class TestUpdatePool:
    """Tests for updating pools."""

    @pytest.mark.asyncio
    async def test_update_sends_changed_fields(self, controller, mock_client) -> None:
        """Test that only changed, set attributes are sent."""
        mock_client.get_pool.return_value = pool_with(quota_max_objects=1000, pg_num=64)
        prior = PoolModel(name="rbd", pool_type="replicated", size=3, pg_num=32, pg_autoscale_mode="on")
        plan = PoolModel(name="rbd", pool_type="replicated", size=3, pg_num=64, quota_max_objects=1000)

        await controller.update(prior, plan)

        mock_client.update_pool.assert_awaited_once_with("rbd", {"pg_num": 64, "quota_max_objects": 1000})

    @pytest.mark.asyncio
    async def test_update_pg_num_zero_not_sent(self, controller, mock_client) -> None:
        """Test that pg_num is never sent unless positive."""
        prior = PoolModel(name="rbd", pool_type="replicated", pg_num=32)
        plan = PoolModel(name="rbd", pool_type="replicated", pg_num=0)

        await controller.update(prior, plan)

        mock_client.update_pool.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_rename(self, controller, mock_client) -> None:
        """Test that a rename targets the old name and reads the new one."""
        mock_client.get_pool.return_value = pool_with(pool_name="volumes")
        prior = PoolModel(name="rbd", pool_type="replicated")
        plan = PoolModel(name="volumes", pool_type="replicated")

        result = await controller.update(prior, plan)

        mock_client.update_pool.assert_awaited_once_with("rbd", {"pool": "volumes"})
        mock_client.get_pool.assert_awaited_with("volumes")
        assert result.state.name == "volumes"

    @pytest.mark.asyncio
    async def test_update_size_requires_replace(self, controller) -> None:
        """Test that changing the replica count is not done in place."""
        prior = PoolModel(name="rbd", pool_type="replicated", size=3)
        plan = PoolModel(name="rbd", pool_type="replicated", size=2)

        with pytest.raises(CephUnsupportedOperation):
            await controller.update(prior, plan)

    def test_pg_num_never_forces_replace(self, controller) -> None:
        """Test that pg_num changes are applied in place."""
        prior = PoolModel(name="rbd", pool_type="replicated", pg_num=32)
        plan = PoolModel(name="rbd", pool_type="replicated", pg_num=128)

        assert controller.requires_replace(prior, plan) == []


class TestDeleteAndImportPool:
    """Tests for deleting and importing pools."""

    @pytest.mark.asyncio
    async def test_delete(self, controller, mock_client) -> None:
        """Test deleting a pool."""
        result = await controller.delete(PoolModel(name="rbd", pool_type="replicated"))

        mock_client.delete_pool.assert_awaited_once_with("rbd")
        assert result.removed

    @pytest.mark.asyncio
    async def test_import(self, controller) -> None:
        """Test importing a pool."""
        result = await controller.import_state("rbd")

        assert result.state.name == "rbd"
        assert result.state.pgp_num == 32
        assert result.state.application_metadata == ["rbd"]
