"""Tests for the well registry."""

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from fieldflow.data import registry as registry_module
from fieldflow.data.registry import (
    RegistryLoadError,
    RegistryState,
    WellRecord,
    WellRegistry,
    fetch_text,
    get_registry,
    normalize_row,
)


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _loaded(name="wells_master.csv", **kwargs) -> WellRegistry:
    registry = WellRegistry(source=FIXTURES_DIR / name, **kwargs)
    assert registry.load()
    return registry


class TestNormalizeRow:
    """Tests for normalize_row()."""

    def test_basic(self):
        well = normalize_row({
            "igs_id": " IGS-1 ", "well_name": " Cory 1", "field": "Dixon ",
            "orifice_size": "1.5", "is_obs": " yes ",
        })
        assert well == WellRecord(
            id="IGS-1", name="Cory 1", field="Dixon",
            orifice_size=1.5, is_observation=True,
        )

    def test_defaults_for_missing_columns(self):
        well = normalize_row({})
        assert well.id == ""
        assert well.orifice_size == 0.0
        assert well.is_observation is False

    @pytest.mark.parametrize("value,expected", [
        ("Y", True), ("y", True), ("Yes", True),
        ("N", False), ("", False), ("no", False), ("x", False),
    ])
    def test_is_obs(self, value, expected):
        assert normalize_row({"is_obs": value}).is_observation is expected

    @pytest.mark.parametrize("value,expected", [
        ("2", 2.0), ("abc", 0.0), ("", 0.0), ("-3", 0.0),
    ])
    def test_orifice_size(self, value, expected):
        assert normalize_row({"orifice_size": value}).orifice_size == expected


class TestLoad:
    """Tests for WellRegistry.load()."""

    def test_load_from_file(self):
        registry = _loaded()
        assert registry.state is RegistryState.LOADED
        assert registry.is_loaded
        assert len(registry) == 5
        assert registry.error is None

    def test_initial_state_empty(self):
        registry = WellRegistry(source=FIXTURES_DIR / "wells_master.csv")
        assert registry.state is RegistryState.EMPTY
        assert registry.lookup("Dixon", "Cory 1") is None

    def test_second_load_is_noop(self):
        registry = _loaded()
        before = (registry.wells, registry.fields(), registry.wells_in_field("Dixon"))

        with patch.object(registry_module, "fetch_text") as fetch:
            assert registry.load()
            assert registry.load(FIXTURES_DIR / "wells_duplicates.csv")
            fetch.assert_not_called()

        after = (registry.wells, registry.fields(), registry.wells_in_field("Dixon"))
        assert before == after

    def test_missing_file_fails_open(self, tmp_path, caplog):
        registry = WellRegistry(source=tmp_path / "missing.csv")
        with caplog.at_level(logging.ERROR):
            assert registry.load() is False

        assert registry.state is RegistryState.FAILED
        assert isinstance(registry.error, RegistryLoadError)
        assert "Failed to load well registry" in caplog.text
        assert len(registry) == 0
        assert registry.lookup("Dixon", "Cory 1") is None
        assert registry.resolve_identifier("Dixon", "Cory 1") == ""
        assert registry.resolve_orifice_size("Dixon", "Cory 1") == 0.0
        assert registry.wells_in_field("Dixon") == []

    def test_failed_load_not_retried(self, tmp_path):
        registry = WellRegistry(source=tmp_path / "missing.csv")
        assert registry.load() is False

        with patch.object(registry_module, "fetch_text") as fetch:
            assert registry.load(FIXTURES_DIR / "wells_master.csv") is False
            fetch.assert_not_called()
        assert registry.state is RegistryState.FAILED

    def test_reset_allows_retry(self, tmp_path):
        registry = WellRegistry(source=tmp_path / "missing.csv")
        assert registry.load() is False

        registry.reset()
        assert registry.state is RegistryState.EMPTY
        assert registry.error is None
        assert registry.load(FIXTURES_DIR / "wells_master.csv")
        assert registry.resolve_identifier("Dixon", "Cory 1") == "IGS-001"

    def test_missing_columns_warned(self, tmp_path, caplog):
        path = tmp_path / "wells.csv"
        path.write_text("igs_id,well_name,field\nA1,Cory 1,Dixon\n")
        registry = WellRegistry(source=path)

        with caplog.at_level(logging.WARNING):
            assert registry.load()

        assert "orifice_size" in caplog.text
        assert registry.resolve_orifice_size("Dixon", "Cory 1") == 0.0

    def test_empty_file_loads_nothing(self, tmp_path):
        path = tmp_path / "wells.csv"
        path.write_text("")
        registry = WellRegistry(source=path)
        assert registry.load()
        assert len(registry) == 0

    def test_utf8_bom_stripped(self, tmp_path):
        path = tmp_path / "wells.csv"
        path.write_bytes("igs_id,well_name,field,orifice_size,is_obs\nA1,Cory 1,Dixon,1,N\n".encode("utf-8-sig"))
        registry = WellRegistry(source=path)
        assert registry.load()
        assert registry.resolve_identifier("Dixon", "Cory 1") == "A1"


class TestFetchText:
    """Tests for fetch_text() over HTTP."""

    def test_http_success(self):
        response = MagicMock()
        response.text = "igs_id,well_name,field,orifice_size,is_obs\nA1,Cory 1,Dixon,1,N"
        with patch.object(registry_module.requests, "get", return_value=response) as get:
            text = fetch_text("https://example.com/wells_master.csv", timeout=5)
        get.assert_called_once_with("https://example.com/wells_master.csv", timeout=5)
        response.raise_for_status.assert_called_once()
        assert text.startswith("igs_id")

    def test_http_error_status(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        with patch.object(registry_module.requests, "get", return_value=response):
            with pytest.raises(RegistryLoadError, match="404"):
                fetch_text("http://example.com/wells_master.csv")

    def test_http_transport_failure_fails_open(self):
        registry = WellRegistry(source="http://example.com/wells_master.csv")
        with patch.object(
            registry_module.requests, "get",
            side_effect=requests.ConnectionError("connection refused"),
        ):
            assert registry.load() is False
        assert registry.state is RegistryState.FAILED
        assert registry.fields() == []


class TestLookups:
    """Tests for registry lookups on the fixture table."""

    def test_fields_in_first_seen_order(self):
        assert _loaded().fields() == ["Dixon", "Belmont"]

    def test_wells_in_field(self):
        registry = _loaded()
        assert registry.wells_in_field("Dixon") == ["Cory 1", "Cory 2", "Smith 4"]
        assert registry.wells_in_field("Belmont") == ["Cory 1", "Hale 7"]

    def test_wells_in_unknown_field(self):
        assert _loaded().wells_in_field("Nowhere") == []

    def test_observation_wells(self):
        registry = _loaded()
        assert registry.observation_wells("Dixon") == ["Cory 2"]
        assert registry.observation_wells("Belmont") == ["Cory 1"]

    def test_wells_named_across_fields(self):
        wells = _loaded().wells_named("Cory 1")
        assert [(w.field, w.id) for w in wells] == [("Dixon", "IGS-001"), ("Belmont", "IGS-101")]

    def test_lookup(self):
        well = _loaded().lookup("Belmont", "Cory 1")
        assert well.id == "IGS-101"
        assert well.orifice_size == 2.0
        assert well.is_observation is True

    def test_lookup_is_exact(self):
        registry = _loaded()
        assert registry.lookup("dixon", "Cory 1") is None
        assert registry.lookup("Dixon", "Cory") is None

    def test_resolve_identifier(self):
        registry = _loaded()
        assert registry.resolve_identifier("Dixon", "Cory 2") == "IGS-002"
        assert registry.resolve_identifier("Dixon", "Hale 7") == ""

    def test_resolve_orifice_size(self):
        registry = _loaded()
        assert registry.resolve_orifice_size("Dixon", "Cory 1") == 1.25
        assert registry.resolve_orifice_size("Dixon", "Smith 4") == 0.0
        assert registry.resolve_orifice_size("Belmont", "Hale 7") == 0.0
        assert registry.resolve_orifice_size("Nowhere", "Cory 1") == 0.0

    def test_lookup_iff_present_in_source(self):
        registry = _loaded()
        source_pairs = {("Dixon", "Cory 1"), ("Dixon", "Cory 2"), ("Dixon", "Smith 4"),
                        ("Belmont", "Cory 1"), ("Belmont", "Hale 7")}
        candidates = source_pairs | {("Dixon", "Hale 7"), ("Belmont", "Cory 2"), ("X", "Y")}
        for field, name in candidates:
            assert (registry.lookup(field, name) is not None) == ((field, name) in source_pairs)

    def test_every_field_entry_reachable_by_key(self):
        registry = _loaded()
        for field in registry.fields():
            for name in registry.wells_in_field(field):
                assert registry.lookup(field, name).field == field


class TestDuplicates:
    """Tests for repeated (field, well_name) rows."""

    def test_last_row_wins_for_lookup(self, caplog):
        with caplog.at_level(logging.WARNING):
            registry = _loaded("wells_duplicates.csv")

        well = registry.lookup("Dixon", "Cory 1")
        assert well.orifice_size == 14.0
        assert well.id == "IGS-009"
        assert registry.wells_in_field("Dixon") == ["Cory 1", "Cory 1", "Cory 2"]
        assert len(registry.wells_named("Cory 1")) == 2
        assert registry.duplicates == ["Dixon|Cory 1"]
        assert "Dixon|Cory 1" in caplog.text

    def test_reject_policy_keeps_first(self):
        registry = _loaded("wells_duplicates.csv", duplicate_policy="reject")

        well = registry.lookup("Dixon", "Cory 1")
        assert well.orifice_size == 12.0
        assert registry.wells_in_field("Dixon") == ["Cory 1", "Cory 2"]
        assert len(registry) == 2
        assert registry.duplicates == ["Dixon|Cory 1"]


class TestFromRows:
    """Tests for in-memory fixture registries."""

    def test_from_rows_is_loaded(self):
        registry = WellRegistry.from_rows([
            {"igs_id": "A1", "well_name": "Cory 1", "field": "Dixon", "orifice_size": "12", "is_obs": "N"},
        ])
        assert registry.state is RegistryState.LOADED
        assert registry.resolve_orifice_size("Dixon", "Cory 1") == 12.0

    def test_from_rows_does_not_load_again(self):
        registry = WellRegistry.from_rows([])
        with patch.object(registry_module, "fetch_text") as fetch:
            assert registry.load()
            fetch.assert_not_called()


class TestAttendants:
    """Tests for the attendant roster."""

    def test_default_roster(self):
        assert WellRegistry().attendants() == ["T. Cherry", "T. Ressler"]

    def test_returns_copy(self):
        registry = WellRegistry()
        roster = registry.attendants()
        roster.append("Intruder")
        roster.clear()
        assert registry.attendants() == ["T. Cherry", "T. Ressler"]

    def test_custom_roster_independent_of_load(self, tmp_path):
        registry = WellRegistry(source=tmp_path / "missing.csv", attendants=["A. Field"])
        registry.load()
        assert registry.attendants() == ["A. Field"]


class TestGetRegistry:
    """Tests for the process-wide registry."""

    def test_same_instance(self, monkeypatch):
        monkeypatch.setattr(registry_module, "_registry", None)
        first = get_registry(source="a.csv")
        second = get_registry(source="b.csv")
        assert first is second
        assert first.source == "a.csv"
        assert first.state is RegistryState.EMPTY
