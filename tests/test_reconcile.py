"""Tests for shared reconciliation helpers."""

import pytest

from ceph_provider.ceph.errors import CephAPIError, CephNotFound, CephValidationError
from ceph_provider.reconcile import (
    Diagnostics,
    DriftAction,
    RollbackLog,
    classify_drift,
    diff_cells,
    flatten_cells,
    group_cells,
    is_not_found,
    parse_config_import_id,
    split_user_id,
)


class TestDiffCells:
    """Tests for the composite diff."""

    def test_diff_creates_updates_and_deletes(self) -> None:
        """Test that every kind of change is detected."""
        prior = {("global", "a"): "1", ("global", "b"): "2", ("osd", "c"): "3"}
        plan = {("global", "a"): "1", ("global", "b"): "20", ("mon", "d"): "4"}

        diff = diff_cells(prior, plan)

        assert diff.to_create == {("mon", "d"): "4"}
        assert diff.to_update == {("global", "b"): "20"}
        assert diff.to_delete == [("osd", "c")]
        assert diff.to_apply == {("mon", "d"): "4", ("global", "b"): "20"}

    def test_diff_is_sorted(self) -> None:
        """Test that emitted keys are in sorted order."""
        plan = {("osd", "z"): "1", ("global", "b"): "1", ("global", "a"): "1"}

        diff = diff_cells({}, plan)

        assert list(diff.to_create) == [("global", "a"), ("global", "b"), ("osd", "z")]

    def test_diff_empty(self) -> None:
        """Test that identical maps produce no work."""
        cells = {("global", "a"): "1"}

        assert diff_cells(cells, dict(cells)).is_empty()

    def test_flatten_and_group(self) -> None:
        """Test converting between nested and flat cell maps."""
        groups = {"global": {"a": "1"}, "osd.0": {"b": "2"}}

        cells = flatten_cells(groups)

        assert cells == {("global", "a"): "1", ("osd.0", "b"): "2"}
        assert group_cells(cells) == groups


class TestRollbackLog:
    """Tests for RollbackLog."""

    @pytest.mark.asyncio
    async def test_rollback_reverse_order(self) -> None:
        """Test that cells are undone newest first."""
        log = RollbackLog()
        log.record(("global", "a"))
        log.record(("global", "b"))
        calls = []

        async def undo(section: str, name: str) -> None:
            calls.append((section, name))

        result = await log.rollback(undo)

        assert calls == [("global", "b"), ("global", "a")]
        assert result.ok
        assert result.reverted == [("global", "b"), ("global", "a")]

    @pytest.mark.asyncio
    async def test_rollback_continues_after_failure(self) -> None:
        """Test that every step is attempted when one fails."""
        log = RollbackLog()
        for name in ("a", "b", "c"):
            log.record(("global", name))
        calls = []

        async def undo(section: str, name: str) -> None:
            calls.append(name)
            if name == "b":
                raise CephAPIError(500, "boom")

        result = await log.rollback(undo)

        assert calls == ["c", "b", "a"]
        assert not result.ok
        assert [key for key, _ in result.failed] == [("global", "b")]
        assert result.reverted == [("global", "c"), ("global", "a")]


class TestClassifyDrift:
    """Tests for classify_drift."""

    def test_missing_cell_with_remaining(self) -> None:
        """Test that a missing cell is dropped while others remain."""
        assert classify_drift("cell", remaining=2) is DriftAction.DROP

    def test_missing_all_cells(self) -> None:
        """Test that the resource is removed when nothing remains."""
        assert classify_drift("cell", remaining=0) is DriftAction.REMOVE

    def test_missing_resource(self) -> None:
        """Test that a missing resource is removed."""
        assert classify_drift("resource") is DriftAction.REMOVE

    def test_missing_during_import(self) -> None:
        """Test that a missing object during import is an error."""
        assert classify_drift("resource", importing=True) is DriftAction.ERROR
        assert classify_drift("cell", importing=True, remaining=3) is DriftAction.ERROR


class TestParseConfigImportId:
    """Tests for parse_config_import_id."""

    @pytest.mark.parametrize("import_id", ["", "*", "id-attribute-not-set", "  "])
    def test_bulk_ids(self, import_id: str) -> None:
        """Test the ids that select bulk import."""
        assert parse_config_import_id(import_id) is None

    def test_explicit_ids_split_at_last_dot(self) -> None:
        """Test that sections containing dots are kept whole."""
        cells = parse_config_import_id("global.osd_pool_default_size, osd.0.osd_max_backfills")

        assert cells == [("global", "osd_pool_default_size"), ("osd.0", "osd_max_backfills")]

    @pytest.mark.parametrize("import_id", ["global", "global.", ".name", "global.a,,osd.b"])
    def test_malformed_ids(self, import_id: str) -> None:
        """Test that malformed entries are rejected."""
        with pytest.raises(CephValidationError):
            parse_config_import_id(import_id)

    def test_duplicate_ids(self) -> None:
        """Test that a repeated entry is rejected."""
        with pytest.raises(CephValidationError) as exc_info:
            parse_config_import_id("global.a,global.a")

        assert "Duplicate" in exc_info.value.message


class TestDiagnostics:
    """Tests for Diagnostics."""

    def test_raise_for_errors_joins_details(self) -> None:
        """Test that all errors are reported and warnings ignored."""
        diagnostics = Diagnostics()
        diagnostics.add_warning("W", "just a warning")
        diagnostics.add_error("E1", "first", attribute="a")
        diagnostics.add_error("E2", "second", attribute="b")

        with pytest.raises(CephValidationError) as exc_info:
            diagnostics.raise_for_errors()

        assert exc_info.value.message == "first; second"
        assert exc_info.value.attribute == "a"
        assert len(exc_info.value.errors) == 2

    def test_raise_for_errors_noop_without_errors(self) -> None:
        """Test that warnings alone do not raise."""
        diagnostics = Diagnostics()
        diagnostics.add_warning("W", "detail")

        diagnostics.raise_for_errors()
        assert len(diagnostics) == 1
        assert not diagnostics.has_error()


class TestHelpers:
    """Tests for small helpers."""

    def test_is_not_found(self) -> None:
        """Test that only API 404s count as not found."""
        assert is_not_found(CephAPIError(404, "missing"))
        assert not is_not_found(CephAPIError(500, "boom"))
        assert not is_not_found(CephNotFound("missing"))

    def test_split_user_id(self) -> None:
        """Test splitting parent and subuser."""
        assert split_user_id("alice") == ("alice", None)
        assert split_user_id("alice:swift") == ("alice", "swift")
