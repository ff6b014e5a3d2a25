"""Tests for compliance/loader.py."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from assurance.compliance.loader import (
    build_risk,
    get_available_catalogs,
    load_framework_catalog,
    load_risk_register,
)
from assurance.core.statuses import ImplementationStatus, RiskStatus, TreatmentStatus


class TestLoadFrameworkCatalog:
    def test_flat_controls(self, catalog_file: Path):
        result = load_framework_catalog(catalog_file, created_by="u-import")
        assert result.is_success
        framework, controls = result.value
        assert framework.id == "soc2-2022"
        assert framework.version.get_value() == "2022"
        assert [c.code for c in controls] == ["CC6.1", "CC6.2", "CC7.2", "CC8.1"]
        assert all(c.framework_id == framework.id for c in controls)
        assert controls[1].implementation_status == ImplementationStatus.PARTIALLY_IMPLEMENTED
        assert controls[0].created_by == "u-import"

    def test_domains_become_categories(self, tmp_path: Path):
        path = tmp_path / "cmmc.yaml"
        path.write_text(
            """name: CMMC
version: "2.0"
description: Cybersecurity maturity model
domains:
  - id: AC
    name: Access Control
    controls:
      - id: AC.L2-3.1.1
        title: Authorized access
        description: Limit system access.
""",
            encoding="utf-8",
        )
        framework, controls = load_framework_catalog(path).value
        assert controls[0].code == "AC.L2-3.1.1"
        assert controls[0].categories == frozenset({"Access Control"})

    def test_missing_file(self, tmp_path: Path):
        result = load_framework_catalog(tmp_path / "nope.yaml")
        assert result.error.code == "LoadError"

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("name: [unclosed\n", encoding="utf-8")
        assert load_framework_catalog(path).error.code == "LoadError"

    def test_invalid_control_reports_location(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text(
            "name: X\nversion: 1\ndescription: d\ncontrols:\n  - code: A\n    title: t\n",
            encoding="utf-8",
        )
        result = load_framework_catalog(path)
        assert result.error.code == "EmptyDescription"
        assert result.error.message.startswith("controls[0]:")

    def test_framework_error(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("name: X\nversion: 1\ncontrols: []\n", encoding="utf-8")
        result = load_framework_catalog(path)
        assert result.error.message.startswith("framework:")


class TestGetAvailableCatalogs:
    def test_lists_catalogs(self, catalog_file: Path):
        (catalog_file.parent / "notes.yaml").write_text("just: notes\n", encoding="utf-8")
        found = get_available_catalogs(catalog_file.parent)
        assert [c["id"] for c in found] == ["soc2-2022"]
        assert found[0]["version"] == "2022"

    def test_missing_dir(self, tmp_path: Path):
        assert get_available_catalogs(tmp_path / "missing") == []


class TestLoadRiskRegister:
    def test_loads_risks_and_treatments(self, register_file: Path):
        result = load_risk_register(register_file)
        assert result.is_success
        first, second = result.value
        assert first.id == "R-1"
        assert first.status == RiskStatus.TREATED
        assert first.inherent_score().value == 25
        assert first.residual_score().value == 2
        assert first.owner.name == "Dana Reyes"
        assert first.last_review_date == datetime(2025, 12, 1, tzinfo=timezone.utc)
        assert first.next_review_date == datetime(2026, 6, 1, tzinfo=timezone.utc)
        assert first.tags == frozenset({"auth", "internet-facing"})
        assert first.treatments[0].status == TreatmentStatus.IN_PROGRESS
        assert first.treatments[0].risk_id == "R-1"
        assert second.residual_score() is None

    def test_default_period_applies(self, tmp_path: Path):
        path = tmp_path / "r.yaml"
        path.write_text(
            """- name: Churn
  description: Key staff leave
  category: operational
  inherent: {impact: moderate, likelihood: possible}
  last_review_date: 2026-01-15
""",
            encoding="utf-8",
        )
        risk = load_risk_register(path, default_period_months=3).value[0]
        assert risk.review_period_months == 3
        assert risk.next_review_date == datetime(2026, 4, 15, tzinfo=timezone.utc)

    def test_first_invalid_entry_fails(self, tmp_path: Path):
        path = tmp_path / "r.yaml"
        path.write_text(
            """risks:
  - name: Ok
    description: fine
    category: legal
    inherent: {impact: minor, likelihood: rare}
  - name: Broken
    description: bad impact
    category: legal
    inherent: {impact: catastrophic, likelihood: rare}
""",
            encoding="utf-8",
        )
        result = load_risk_register(path)
        assert result.error.code == "InvalidValue"
        assert result.error.message.startswith("risks[1]:")

    def test_not_a_list(self, tmp_path: Path):
        path = tmp_path / "r.yaml"
        path.write_text("risks: 3\n", encoding="utf-8")
        assert load_risk_register(path).error.code == "LoadError"


class TestMalformedNodes:
    def _catalog(self, tmp_path: Path, body: str) -> Path:
        path = tmp_path / "catalog.yaml"
        path.write_text("name: X\nversion: 1\ndescription: d\n" + body, encoding="utf-8")
        return path

    def test_control_entry_not_a_mapping(self, tmp_path: Path):
        result = load_framework_catalog(self._catalog(tmp_path, "controls:\n  - AC-1\n"))
        assert result.error.code == "LoadError"
        assert result.error.message == "controls[0]: expected a mapping"

    def test_controls_not_a_list(self, tmp_path: Path):
        result = load_framework_catalog(self._catalog(tmp_path, "controls: AC-1\n"))
        assert result.error.code == "LoadError"

    def test_domain_not_a_mapping(self, tmp_path: Path):
        result = load_framework_catalog(self._catalog(tmp_path, "domains:\n  - Access Control\n"))
        assert result.error.message == "domains[0]: expected a mapping"

    def test_domain_control_not_a_mapping(self, tmp_path: Path):
        body = "domains:\n  - name: AC\n    controls:\n      - AC-1\n"
        result = load_framework_catalog(self._catalog(tmp_path, body))
        assert result.error.message == "domains[0].controls[0]: expected a mapping"

    def _register(self, tmp_path: Path, extra: str) -> Path:
        path = tmp_path / "register.yaml"
        path.write_text(
            "- name: Phishing\n"
            "  description: Staff click malicious links\n"
            "  category: security\n"
            "  inherent: {impact: major, likelihood: likely}\n" + extra,
            encoding="utf-8",
        )
        return path

    def test_owner_not_a_mapping(self, tmp_path: Path):
        result = load_risk_register(self._register(tmp_path, "  owner: alice\n"))
        assert result.error.code == "LoadError"
        assert result.error.message == "risks[0]: owner: expected a mapping"

    def test_treatment_not_a_mapping(self, tmp_path: Path):
        result = load_risk_register(self._register(tmp_path, "  treatments:\n    - train staff\n"))
        assert result.error.message == "risks[0]: treatments[0]: expected a mapping"

    def test_residual_not_a_mapping(self, tmp_path: Path):
        result = load_risk_register(self._register(tmp_path, "  residual: low\n"))
        assert result.error.code == "LoadError"

    def test_register_entry_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "register.yaml"
        path.write_text("- just a string\n", encoding="utf-8")
        assert load_risk_register(path).error.code == "LoadError"


class TestBuildRisk:
    def test_bad_treatment_reports_index(self):
        raw = {
            "name": "Phishing",
            "description": "Staff click malicious links",
            "category": "security",
            "inherent": {"impact": "major", "likelihood": "likely"},
            "treatments": [{"name": "Training", "description": "Annual", "type": "pray"}],
        }
        result = build_risk(raw)
        assert result.error.code == "InvalidValue"
        assert result.error.message.startswith("treatments[0]:")

    def test_bad_date(self):
        raw = {
            "name": "Phishing",
            "description": "Staff click malicious links",
            "category": "security",
            "inherent": {"impact": "major", "likelihood": "likely"},
            "last_review_date": "last tuesday",
        }
        assert build_risk(raw).error.code == "InvalidValue"
