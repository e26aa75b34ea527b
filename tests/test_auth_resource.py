"""Tests for the cephx identity controller."""

import pytest

from ceph_provider.ceph.errors import CephNotFound, CephResourceError, CephUnsupportedOperation, CephValidationError
from ceph_provider.models.auth import AuthModel
from ceph_provider.resources.auth import AuthController
from tests.conftest import not_found, server_error

FOO_KEYRING = '[client.foo]\n\tkey = AQDExampleKey==\n\tcaps mon = "allow r"\n\tcaps osd = "allow rw pool=rbd"\n'


@pytest.fixture
def controller(mock_client):
    """AuthController with a mocked client."""
    return AuthController(mock_client)


class TestCreateAuth:
    """Tests for creating identities."""

    @pytest.mark.asyncio
    async def test_create_generated_key(self, controller, mock_client) -> None:
        """Test that identities without a key are created from capabilities."""
        mock_client.cluster_export_user.return_value = FOO_KEYRING
        plan = AuthModel(entity="client.foo", caps={"osd": "allow rw pool=rbd", "MON": "allow r"})

        result = await controller.create(plan)

        mock_client.cluster_create_user.assert_awaited_once_with(
            "client.foo",
            [{"entity": "mon", "cap": "allow r"}, {"entity": "osd", "cap": "allow rw pool=rbd"}],
        )
        mock_client.cluster_import_user.assert_not_called()
        assert result.state.key == "AQDExampleKey=="
        assert result.state.keyring == FOO_KEYRING
        assert result.state.caps == {"mon": "allow r", "osd": "allow rw pool=rbd"}

    @pytest.mark.asyncio
    async def test_create_with_key_imports_keyring(self, controller, mock_client) -> None:
        """Test that a provided key is imported as rendered keyring text."""
        mock_client.cluster_export_user.return_value = FOO_KEYRING
        plan = AuthModel(
            entity="client.foo",
            key="AQDExampleKey==",
            caps={"mon": "allow r", "osd": "allow rw pool=rbd"},
        )

        await controller.create(plan)

        mock_client.cluster_import_user.assert_awaited_once_with(FOO_KEYRING)
        mock_client.cluster_create_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_invalid_caps(self, controller, mock_client) -> None:
        """Test that unsupported capability types are rejected before any call."""
        plan = AuthModel(entity="client.foo", caps={"rgw": "allow *"})

        with pytest.raises(CephValidationError) as exc_info:
            await controller.create(plan)

        assert exc_info.value.attribute == "caps"
        mock_client.cluster_create_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_api_failure(self, controller, mock_client) -> None:
        """Test that API failures are wrapped with the operation."""
        mock_client.cluster_create_user.side_effect = server_error("exists")

        with pytest.raises(CephResourceError) as exc_info:
            await controller.create(AuthModel(entity="client.foo", caps={"mon": "allow r"}))

        assert exc_info.value.message.startswith("Unable to create user in Ceph API: ")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_create_empty_export(self, controller, mock_client) -> None:
        """Test that an empty export after creation is an error."""
        mock_client.cluster_export_user.return_value = "  \n"

        with pytest.raises(CephNotFound) as exc_info:
            await controller.create(AuthModel(entity="client.foo"))

        assert exc_info.value.message == "Ceph export returned no users for entity client.foo"

    @pytest.mark.asyncio
    async def test_create_unparseable_export(self, controller, mock_client) -> None:
        """Test that an unparseable export is wrapped."""
        mock_client.cluster_export_user.return_value = "garbage"

        with pytest.raises(CephResourceError) as exc_info:
            await controller.create(AuthModel(entity="client.foo"))

        assert exc_info.value.message == "Unable to parse keyring data: parse error:1:garbage"


class TestReadAuth:
    """Tests for reading identities."""

    @pytest.mark.asyncio
    async def test_read_refreshes_state(self, controller, mock_client) -> None:
        """Test that the key and caps come from the export."""
        mock_client.cluster_export_user.return_value = FOO_KEYRING

        result = await controller.read(AuthModel(entity="client.foo", caps={"mon": "allow *"}))

        assert result.state.caps == {"mon": "allow r", "osd": "allow rw pool=rbd"}
        assert not result.diagnostics.warnings

    @pytest.mark.asyncio
    async def test_read_missing_identity(self, controller, mock_client) -> None:
        """Test that a missing identity is removed from state with a warning."""
        mock_client.cluster_export_user.side_effect = not_found()

        result = await controller.read(AuthModel(entity="client.foo"))

        assert result.removed
        assert result.diagnostics.warnings[0].summary == "Identity Drift Detected"

    @pytest.mark.asyncio
    async def test_read_other_errors_propagate(self, controller, mock_client) -> None:
        """Test that non-404 failures are errors."""
        mock_client.cluster_export_user.side_effect = server_error()

        with pytest.raises(CephResourceError):
            await controller.read(AuthModel(entity="client.foo"))

    @pytest.mark.asyncio
    async def test_read_multiple_users_warns(self, controller, mock_client) -> None:
        """Test that an export with several identities keeps the first."""
        mock_client.cluster_export_user.return_value = FOO_KEYRING + "\n[client.bar]\n\tkey = OTHER\n"

        result = await controller.read(AuthModel(entity="client.foo"))

        assert result.state.key == "AQDExampleKey=="
        assert result.diagnostics.warnings[0].summary == "Ceph export returned multiple users"


class TestUpdateAuth:
    """Tests for updating identities."""

    @pytest.mark.asyncio
    async def test_update_caps(self, controller, mock_client) -> None:
        """Test that capabilities are replaced in place."""
        mock_client.cluster_export_user.return_value = FOO_KEYRING
        prior = AuthModel(entity="client.foo", caps={"mon": "allow r"}, key="AQDExampleKey==")
        plan = AuthModel(entity="client.foo", caps={"mon": "allow r", "osd": "allow rw pool=rbd"})

        result = await controller.update(prior, plan)

        mock_client.cluster_update_user.assert_awaited_once_with(
            "client.foo",
            [{"entity": "mon", "cap": "allow r"}, {"entity": "osd", "cap": "allow rw pool=rbd"}],
        )
        assert result.state.caps["osd"] == "allow rw pool=rbd"

    @pytest.mark.asyncio
    async def test_update_entity_requires_replace(self, controller, mock_client) -> None:
        """Test that renaming an identity is not done in place."""
        prior = AuthModel(entity="client.foo")
        plan = AuthModel(entity="client.bar")

        with pytest.raises(CephUnsupportedOperation) as exc_info:
            await controller.update(prior, plan)

        assert exc_info.value.details["requires_replace"] == ["entity"]
        mock_client.cluster_update_user.assert_not_called()

    def test_unset_key_never_forces_replace(self, controller) -> None:
        """Test that an unset key in the plan keeps the generated one."""
        prior = AuthModel(entity="client.foo", key="GENERATED==")
        plan = AuthModel(entity="client.foo")

        assert controller.requires_replace(prior, plan) == []


class TestDeleteAndImportAuth:
    """Tests for deleting and importing identities."""

    @pytest.mark.asyncio
    async def test_delete(self, controller, mock_client) -> None:
        """Test that delete removes the identity."""
        result = await controller.delete(AuthModel(entity="client.foo"))

        mock_client.cluster_delete_user.assert_awaited_once_with("client.foo")
        assert result.removed

    @pytest.mark.asyncio
    async def test_import(self, controller, mock_client) -> None:
        """Test that import exports the identity."""
        mock_client.cluster_export_user.return_value = FOO_KEYRING

        result = await controller.import_state(" client.foo ")

        mock_client.cluster_export_user.assert_awaited_once_with("client.foo")
        assert result.state.entity == "client.foo"

    @pytest.mark.asyncio
    async def test_import_empty_id(self, controller) -> None:
        """Test that an empty import id is rejected."""
        with pytest.raises(CephValidationError):
            await controller.import_state("   ")

    def test_masked_dump_hides_secrets(self) -> None:
        """Test that the key and keyring are masked."""
        state = AuthModel(entity="client.foo", key="K", keyring=FOO_KEYRING)

        data = state.masked_dump()

        assert data["key"] == "(sensitive value)"
        assert data["keyring"] == "(sensitive value)"
        assert data["entity"] == "client.foo"
