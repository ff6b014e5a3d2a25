"""YAML loading for framework catalogs and risk registers.

A catalog describes one framework and its controls, either as a flat
``controls`` list or grouped under ``domains`` (each domain name becomes a
control category). A register lists risks with optional treatments.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from ..models.control import Control
from ..models.entity import as_utc
from ..models.framework import Framework
from ..models.result import DomainError, Result, validation_error
from ..models.risk import DEFAULT_REVIEW_PERIOD_MONTHS, Risk
from ..models.treatment import RiskTreatment
from ..models.values import RiskOwner

logger = logging.getLogger(__name__)


def _read_yaml(path: Path) -> Result[Any]:
    if not path.exists():
        return Result.fail(validation_error("LoadError", f"File not found: {path}"))
    try:
        return Result.ok(yaml.safe_load(path.read_text(encoding="utf-8-sig")))
    except (OSError, yaml.YAMLError) as exc:
        return Result.fail(validation_error("LoadError", f"Cannot read {path.name}: {exc}"))


def _at(where: str, error: DomainError) -> DomainError:
    return DomainError(kind=error.kind, code=error.code, message=f"{where}: {error.message}")


def _not_mapping(where: str) -> DomainError:
    return validation_error("LoadError", f"{where}: expected a mapping")


def _as_datetime(value: Any) -> Optional[datetime]:
    """YAML gives dates and naive datetimes; the model wants aware datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return as_utc(datetime.fromisoformat(str(value)))


def get_available_catalogs(catalog_dir: Path) -> list[dict]:
    """List framework catalogs found under a directory."""
    catalogs: list[dict] = []

    if not catalog_dir.exists():
        return catalogs

    for yaml_file in sorted(catalog_dir.rglob("*.yaml")):
        loaded = _read_yaml(yaml_file)
        if loaded.is_failure:
            logger.warning("Skipping catalog %s: %s", yaml_file, loaded.error.message)
            continue
        content = loaded.value
        if isinstance(content, dict) and content.get("name") and ("controls" in content or "domains" in content):
            catalogs.append({
                "id": content.get("id", yaml_file.stem),
                "name": content["name"],
                "version": str(content.get("version", "")),
                "description": content.get("description", ""),
                "path": str(yaml_file),
            })

    return catalogs


def _as_list(raw: Any, where: str) -> Result[list]:
    if raw is None:
        return Result.ok([])
    if not isinstance(raw, list):
        return Result.fail(validation_error("LoadError", f"{where}: expected a list"))
    return Result.ok(raw)


def _iter_control_entries(content: dict) -> Result[list[tuple[str, dict, list[str]]]]:
    """Flatten both catalog styles into (location, entry, inherited categories)."""
    entries: list[tuple[str, dict, list[str]]] = []

    flat = _as_list(content.get("controls"), "controls")
    if flat.is_failure:
        return Result.fail(flat.error)
    for index, ctrl in enumerate(flat.value):
        entries.append((f"controls[{index}]", ctrl, []))

    # Grouped style: domains -> controls
    domains = _as_list(content.get("domains"), "domains")
    if domains.is_failure:
        return Result.fail(domains.error)
    for d_index, domain in enumerate(domains.value):
        if not isinstance(domain, dict):
            return Result.fail(_not_mapping(f"domains[{d_index}]"))
        domain_name = domain.get("name") or domain.get("id")
        grouped = _as_list(domain.get("controls"), f"domains[{d_index}].controls")
        if grouped.is_failure:
            return Result.fail(grouped.error)
        for index, ctrl in enumerate(grouped.value):
            entries.append((f"domains[{d_index}].controls[{index}]", ctrl, [domain_name] if domain_name else []))

    for where, ctrl, _ in entries:
        if not isinstance(ctrl, dict):
            return Result.fail(_not_mapping(where))
    return Result.ok(entries)


def build_framework(content: dict, created_by: Optional[str] = None) -> Result[tuple[Framework, list[Control]]]:
    framework_result = Framework.create(
        name=content.get("name"),
        version=str(content["version"]) if content.get("version") is not None else None,
        description=content.get("description"),
        is_active=bool(content.get("active", True)),
        organization=content.get("organization"),
        category=content.get("category"),
        website=content.get("website"),
        created_by=created_by,
        id=content.get("id"),
    )
    if framework_result.is_failure:
        return Result.fail(_at("framework", framework_result.error))
    framework = framework_result.value

    entries = _iter_control_entries(content)
    if entries.is_failure:
        return Result.fail(entries.error)

    controls: list[Control] = []
    for where, entry, inherited in entries.value:
        control_result = Control.create(
            framework_id=framework.id,
            code=str(entry.get("code") or entry.get("id") or ""),
            title=entry.get("title"),
            description=entry.get("description"),
            implementation_status=entry.get("status", "not_implemented"),
            implementation_details=entry.get("details"),
            guidance=entry.get("guidance"),
            owner_id=entry.get("owner"),
            categories=inherited + list(entry.get("categories") or []),
            is_active=bool(entry.get("active", True)),
            created_by=created_by,
        )
        if control_result.is_failure:
            return Result.fail(_at(where, control_result.error))
        controls.append(control_result.value)

    return Result.ok((framework, controls))


def load_framework_catalog(path: Path, created_by: Optional[str] = None) -> Result[tuple[Framework, list[Control]]]:
    """Load one framework and its controls from a YAML catalog."""
    loaded = _read_yaml(path)
    if loaded.is_failure:
        return Result.fail(loaded.error)
    if not isinstance(loaded.value, dict):
        return Result.fail(validation_error("LoadError", f"{path.name}: catalog must be a mapping"))
    result = build_framework(loaded.value, created_by)
    if result.is_success:
        framework, controls = result.value
        logger.info("Loaded %s %s with %d controls", framework.name, framework.version, len(controls))
    return result


def _build_owner(raw: Any) -> Result[Optional[RiskOwner]]:
    if not raw:
        return Result.ok(None)
    if not isinstance(raw, dict):
        return Result.fail(_not_mapping("owner"))
    return RiskOwner.create(
        user_id=str(raw.get("user_id") or raw.get("id") or ""),
        name=raw.get("name", ""),
        department=raw.get("department", ""),
        assigned_at=_as_datetime(raw.get("assigned_at")),
    )


def _build_treatment(risk: Risk, raw: dict, created_by: Optional[str]) -> Result[RiskTreatment]:
    return RiskTreatment.create(
        risk_id=risk.id,
        name=raw.get("name"),
        description=raw.get("description"),
        type=raw.get("type"),
        status=raw.get("status", "planned"),
        due_date=_as_datetime(raw.get("due_date")),
        completed_date=_as_datetime(raw.get("completed_date")),
        assignee=raw.get("assignee"),
        cost=raw.get("cost"),
        related_control_ids=raw.get("controls"),
        created_by=created_by,
        id=raw.get("id"),
    )


def build_risk(
    raw: dict,
    default_period_months: int = DEFAULT_REVIEW_PERIOD_MONTHS,
    created_by: Optional[str] = None,
) -> Result[Risk]:
    inherent = raw.get("inherent") or {}
    residual = raw.get("residual") or {}
    for where, node in (("inherent", inherent), ("residual", residual)):
        if not isinstance(node, dict):
            return Result.fail(_not_mapping(where))

    try:
        owner_result = _build_owner(raw.get("owner"))
        last_review = _as_datetime(raw.get("last_review_date"))
        next_review = _as_datetime(raw.get("next_review_date"))
    except ValueError as exc:
        return Result.fail(validation_error("InvalidValue", f"Invalid date: {exc}"))
    if owner_result.is_failure:
        return Result.fail(owner_result.error)

    risk_result = Risk.create(
        name=raw.get("name"),
        description=raw.get("description"),
        category=raw.get("category"),
        inherent_impact=inherent.get("impact"),
        inherent_likelihood=inherent.get("likelihood"),
        residual_impact=residual.get("impact"),
        residual_likelihood=residual.get("likelihood"),
        status=raw.get("status", "identified"),
        owner=owner_result.value,
        related_control_ids=raw.get("controls"),
        review_period_months=raw.get("review_period_months", default_period_months),
        last_review_date=last_review,
        next_review_date=next_review,
        tags=raw.get("tags"),
        is_active=bool(raw.get("active", True)),
        created_by=created_by,
        id=raw.get("id"),
    )
    if risk_result.is_failure:
        return risk_result
    risk = risk_result.value

    treatments = _as_list(raw.get("treatments"), "treatments")
    if treatments.is_failure:
        return Result.fail(treatments.error)
    for index, entry in enumerate(treatments.value):
        if not isinstance(entry, dict):
            return Result.fail(_not_mapping(f"treatments[{index}]"))
        try:
            treatment_result = _build_treatment(risk, entry, created_by)
        except ValueError as exc:
            return Result.fail(validation_error("InvalidValue", f"treatments[{index}]: {exc}"))
        if treatment_result.is_failure:
            return Result.fail(_at(f"treatments[{index}]", treatment_result.error))
        added = risk.add_treatment(treatment_result.value, created_by)
        if added.is_failure:
            return Result.fail(_at(f"treatments[{index}]", added.error))

    return Result.ok(risk)


def load_risk_register(
    path: Path,
    default_period_months: int = DEFAULT_REVIEW_PERIOD_MONTHS,
    created_by: Optional[str] = None,
) -> Result[list[Risk]]:
    """Load every risk in a YAML register. The first invalid entry fails the load."""
    loaded = _read_yaml(path)
    if loaded.is_failure:
        return Result.fail(loaded.error)
    content = loaded.value
    entries = content.get("risks") if isinstance(content, dict) else content
    if not isinstance(entries, list):
        return Result.fail(validation_error("LoadError", f"{path.name}: expected a list of risks"))

    risks: list[Risk] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            return Result.fail(validation_error("LoadError", f"risks[{index}]: expected a mapping"))
        result = build_risk(entry, default_period_months, created_by)
        if result.is_failure:
            return Result.fail(_at(f"risks[{index}]", result.error))
        risks.append(result.value)

    logger.info("Loaded %d risks from %s", len(risks), path.name)
    return Result.ok(risks)
