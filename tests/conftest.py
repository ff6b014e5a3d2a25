"""Shared fixtures for assurance tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from assurance.models.control import Control
from assurance.models.evidence import Evidence
from assurance.models.framework import Framework
from assurance.models.risk import Risk
from assurance.models.values import RiskOwner


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def framework() -> Framework:
    return Framework.create(
        name="SOC 2",
        version="2022",
        description="SOC 2 Compliance Framework",
        created_by="u-admin",
    ).value


@pytest.fixture
def control(framework: Framework) -> Control:
    return Control.create(
        framework_id=framework.id,
        code="CC6.1",
        title="Logical access security",
        description="Restrict logical access to information assets.",
        categories=["access control"],
        created_by="u-admin",
    ).value


@pytest.fixture
def other_control(framework: Framework) -> Control:
    return Control.create(
        framework_id=framework.id,
        code="CC7.2",
        title="System monitoring",
        description="Monitor system components for anomalies.",
        categories=["operations"],
    ).value


@pytest.fixture
def evidence(control: Control, now: datetime) -> Evidence:
    return Evidence.create(
        control_ids=[control.id],
        title="Quarterly access review",
        description="Export of the Q2 access review",
        collection_date=now,
    ).value


@pytest.fixture
def owner(now: datetime) -> RiskOwner:
    return RiskOwner.create("u-42", "Dana Reyes", "Security", assigned_at=now).value


@pytest.fixture
def risk(owner: RiskOwner) -> Risk:
    return Risk.create(
        name="Credential stuffing",
        description="Attackers reuse leaked passwords against the login page",
        category="security",
        inherent_impact="severe",
        inherent_likelihood="almost_certain",
        residual_impact="insignificant",
        residual_likelihood="unlikely",
        owner=owner,
        review_period_months=6,
        created_by="u-admin",
    ).value


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "soc2.yaml"
    path.write_text(
        """id: soc2-2022
name: SOC 2
version: 2022
description: Trust services criteria
controls:
  - code: CC6.1
    title: Logical access security
    description: Restrict logical access.
    status: implemented
    categories: [access]
  - code: CC6.2
    title: User registration
    description: Register and authorize new users.
    status: partially_implemented
    categories: [access]
  - code: CC7.2
    title: System monitoring
    description: Monitor system components.
    status: not_implemented
    categories: [operations]
  - code: CC8.1
    title: Change management
    description: Authorize and test changes.
    status: implemented
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def register_file(tmp_path: Path) -> Path:
    path = tmp_path / "register.yaml"
    path.write_text(
        """risks:
  - id: R-1
    name: Credential stuffing
    description: Leaked passwords reused against the login page
    category: security
    status: treated
    inherent: {impact: severe, likelihood: almost_certain}
    residual: {impact: insignificant, likelihood: unlikely}
    owner: {user_id: u-42, name: Dana Reyes, department: Security}
    review_period_months: 6
    last_review_date: 2025-12-01
    tags: [auth, internet-facing]
    treatments:
      - name: Enforce MFA
        description: Require MFA for every account
        type: mitigate
        status: in_progress
        due_date: 2026-03-01
  - id: R-2
    name: Vendor outage
    description: Primary hosting provider suffers a regional outage
    category: third_party
    inherent: {impact: major, likelihood: unlikely}
    review_period_months: 12
    last_review_date: 2026-02-01
""",
        encoding="utf-8",
    )
    return path
