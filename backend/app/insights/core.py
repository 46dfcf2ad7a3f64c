from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Literal, Optional

from backend.app.facts.stats import clamp, finite

Severity = Literal["info", "success", "warning", "critical"]
InsightKind = Literal[
    "anomaly",
    "recurring-charge",
    "payday-effect",
    "temporal-behavior",
    "category-trend",
    "merchant-concentration",
    "lifestyle-inflation",
    "opportunity-cost",
    "cash-flow-projection",
    "savings-summary",
    "top-category",
    "categorization-reminder",
]

# Feed order: critical first, success last
SEVERITY_PRIORITY: Dict[str, int] = {"critical": 0, "warning": 1, "info": 2, "success": 3}


@dataclass(frozen=True)
class Insight:
    kind: InsightKind
    severity: Severity
    headline: str
    narrative: str
    supporting_data: Dict[str, Any] = field(default_factory=dict)
    action_hint: Optional[str] = None
    confidence: float = 0.5  # 0..1
    is_demo: bool = False


def _clean(value: Any) -> Any:
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, float):
        return round(finite(value), 2)
    if isinstance(value, dict):
        return {k: _clean(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_clean(v) for v in value]
    return value


def mk_insight(**kwargs: Any) -> Insight:
    """Build an Insight with cents-rounded, finite supporting data and a clamped confidence."""
    kwargs["supporting_data"] = _clean(kwargs.get("supporting_data") or {})
    kwargs["confidence"] = clamp(kwargs.get("confidence", 0.5), 0.0, 1.0)
    return Insight(**kwargs)


def with_clamped_confidence(insight: Insight) -> Insight:
    return replace(insight, confidence=clamp(insight.confidence, 0.0, 1.0))


def severity_rank(severity: str) -> int:
    return SEVERITY_PRIORITY.get((severity or "info").lower(), len(SEVERITY_PRIORITY))
