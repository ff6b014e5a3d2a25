"""Framework implementation coverage, overall and per control category."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable

from ..core.projections import implementation_rate, project_control
from ..core.relations import controls_in_framework
from ..core.statuses import ImplementationStatus
from ..models.control import Control
from ..models.framework import Framework
from ..models.projection import CategoryCoverage, FrameworkCoverage

UNCATEGORIZED = "uncategorized"


def get_framework_coverage(framework: Framework, controls: Iterable[Control]) -> FrameworkCoverage:
    """Summarize how far a framework's active controls are implemented."""
    active = [c for c in controls_in_framework(framework, controls) if c.is_active]
    implemented = [c for c in active if c.implementation_status == ImplementationStatus.IMPLEMENTED]
    gaps = [c for c in active if c.implementation_status == ImplementationStatus.NOT_IMPLEMENTED]

    # A control with several categories counts toward each of them
    category_groups: dict[str, list[Control]] = defaultdict(list)
    for ctrl in active:
        for category in sorted(ctrl.categories) or [UNCATEGORIZED]:
            category_groups[category].append(ctrl)

    by_category: dict[str, CategoryCoverage] = {}
    for category, group in sorted(category_groups.items()):
        c_implemented = sum(1 for c in group if c.implementation_status == ImplementationStatus.IMPLEMENTED)
        c_partial = sum(1 for c in group if c.implementation_status == ImplementationStatus.PARTIALLY_IMPLEMENTED)
        by_category[category] = CategoryCoverage(
            name=category,
            total=len(group),
            implemented=c_implemented,
            partial=c_partial,
            gaps=len(group) - c_implemented - c_partial,
            coverage=implementation_rate(group),
        )

    return FrameworkCoverage(
        framework_id=framework.id,
        framework_name=framework.name.get_value(),
        timestamp=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        total_controls=len(active),
        implemented_controls=len(implemented),
        gapped_controls=len(gaps),
        implementation_rate=implementation_rate(active),
        by_category=by_category,
        gaps=[project_control(c) for c in gaps],
    )


def get_category_controls(controls: Iterable[Control], category: str) -> list[Control]:
    """Get controls tagged with a category, case-insensitively."""
    wanted = category.lower()
    return [c for c in controls if any(cat.lower() == wanted for cat in c.categories)]
