"""Tests for the command-line tool."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ceph_provider.ceph.errors import CephNotFound
from ceph_provider.cli import main, parse_caps_args
from ceph_provider.models.pool import PoolConfigItem, PoolModel
from ceph_provider.reconcile import Diagnostics
from ceph_provider.resources.base import ResourceResult

ADMIN_KEYRING = '[client.admin]\n\tkey = AQB5m89objcKIxAAda2ULz/l3NH+mv9XzKePHQ==\n\tcaps mon = "allow *"\n'


@pytest.fixture
def mock_provider():
    """Patch the Provider used by the CLI."""
    with patch("ceph_provider.cli.Provider") as provider_class:
        instance = MagicMock()
        instance.configure = AsyncMock()
        instance.lookup = AsyncMock()
        provider_class.return_value = instance
        yield instance


class TestKeyringCommands:
    """Tests for the offline keyring commands."""

    def test_parse_hides_keys(self, tmp_path, capsys) -> None:
        """Test that parsed keys are masked by default."""
        keyring_file = tmp_path / "ceph.client.admin.keyring"
        keyring_file.write_text(ADMIN_KEYRING)

        main(["keyring", "parse", str(keyring_file)])

        out = capsys.readouterr().out
        assert "client.admin" in out
        assert "mon = allow *" in out
        assert "AQB5m89objcKIxAAda2ULz" not in out

    def test_parse_show_keys(self, tmp_path, capsys) -> None:
        """Test that --show-keys prints the secret."""
        keyring_file = tmp_path / "keyring"
        keyring_file.write_text(ADMIN_KEYRING)

        main(["keyring", "parse", str(keyring_file), "--show-keys"])

        assert "AQB5m89objcKIxAAda2ULz/l3NH+mv9XzKePHQ==" in capsys.readouterr().out

    def test_parse_invalid(self, tmp_path, capsys) -> None:
        """Test that a parse error exits non-zero with the error."""
        keyring_file = tmp_path / "keyring"
        keyring_file.write_text("hello")

        with pytest.raises(SystemExit) as exc_info:
            main(["keyring", "parse", str(keyring_file)])

        assert exc_info.value.code == 1
        assert "parse error:1:hello" in capsys.readouterr().err

    def test_render(self, capsys) -> None:
        """Test rendering a keyring section."""
        main(["keyring", "render", "--entity", "client.foo", "--key", "K==", "--caps", "osd=allow rw", "mon=allow r"])

        assert capsys.readouterr().out == '[client.foo]\n\tkey = K==\n\tcaps mon = "allow r"\n\tcaps osd = "allow rw"\n'

    def test_render_bad_caps(self, capsys) -> None:
        """Test that unsupported subsystems are rejected."""
        with pytest.raises(SystemExit):
            main(["keyring", "render", "--entity", "client.foo", "--key", "K", "--caps", "rgw=allow"])

        assert "unsupported capability type" in capsys.readouterr().err

    def test_parse_caps_args(self) -> None:
        """Test parsing SUBSYSTEM=CAPS arguments."""
        assert parse_caps_args(["mon=allow r", "osd = allow rw pool=a"]) == {"mon": "allow r", "osd": "allow rw pool=a"}
        with pytest.raises(ValueError):
            parse_caps_args(["mon"])


class TestLookupCommand:
    """Tests for the lookup command."""

    def test_lookup_prints_state(self, mock_provider, capsys) -> None:
        """Test that the looked-up state is printed as a table."""
        diagnostics = Diagnostics()
        diagnostics.add_warning("Heads Up", "something odd")
        mock_provider.lookup.return_value = ResourceResult(
            PoolModel(name="rbd", pool_type="replicated", size=3),
            diagnostics,
        )

        main(["lookup", "pool", "rbd"])

        mock_provider.configure.assert_awaited_once()
        mock_provider.lookup.assert_awaited_once_with("pool", "rbd")
        out = capsys.readouterr().out
        assert "Warning: Heads Up: something odd" in out
        assert "replicated" in out

    def test_lookup_passes_options(self, mock_provider) -> None:
        """Test that lookup-specific options become keyword arguments."""
        mock_provider.lookup.return_value = ResourceResult(None)

        main(["lookup", "rgw_s3_key", "alice", "--access-key", "AKIA"])

        mock_provider.lookup.assert_awaited_once_with("rgw_s3_key", "alice", access_key="AKIA")

    def test_lookup_error(self, mock_provider, capsys) -> None:
        """Test that provider errors exit non-zero."""
        mock_provider.lookup.side_effect = CephNotFound("Pool 'ghost' not found")

        with pytest.raises(SystemExit) as exc_info:
            main(["lookup", "pool", "ghost"])

        assert exc_info.value.code == 1
        assert "Pool 'ghost' not found" in capsys.readouterr().err


class TestImportCommand:
    """Tests for the import command."""

    def test_import(self, mock_provider, capsys) -> None:
        """Test importing through the named controller."""
        controller = MagicMock()
        controller.import_state = AsyncMock(return_value=ResourceResult(PoolModel(name="rbd", pool_type="replicated")))
        mock_provider.resource.return_value = controller

        main(["import", "ceph_pool", "rbd"])

        mock_provider.resource.assert_called_once_with("ceph_pool")
        controller.import_state.assert_awaited_once_with("rbd")
        assert "Imported ceph_pool 'rbd'" in capsys.readouterr().out


class TestStorageListings:
    """Tests for the list and pool-config commands."""

    def test_list_pools(self, mock_provider, capsys) -> None:
        """Test listing pool names."""
        mock_provider.storage.pools = AsyncMock(return_value=[".mgr", "rbd"])

        main(["list", "pools"])

        out = capsys.readouterr().out
        assert "rbd" in out
        assert "Total: 2 object(s)" in out

    def test_list_empty(self, mock_provider, capsys) -> None:
        """Test the message for an empty listing."""
        mock_provider.storage.crush_rules = AsyncMock(return_value=[])

        main(["list", "crush-rules"])

        assert "No crush-rules found." in capsys.readouterr().out

    def test_pool_config(self, mock_provider, capsys) -> None:
        """Test printing per-pool overrides."""
        mock_provider.storage.pool_configuration = AsyncMock(
            return_value=[PoolConfigItem(name="csum_type", value="crc32c", source=1)]
        )

        main(["pool-config", "rbd"])

        mock_provider.storage.pool_configuration.assert_awaited_once_with("rbd")
        out = capsys.readouterr().out
        assert "csum_type" in out
        assert "crc32c" in out


class TestMain:
    """Tests for argument handling."""

    def test_no_command(self) -> None:
        """Test that running without a command exits non-zero."""
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1

    def test_unknown_resource_type(self) -> None:
        """Test that argparse rejects unknown resource types."""
        with pytest.raises(SystemExit):
            main(["import", "ceph_volume", "x"])
