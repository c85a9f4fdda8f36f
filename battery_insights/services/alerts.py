"""
Alert and driver tip projection.

Maps triggered rule impacts to the user-facing alert and tip templates of the
rule parameters. Purely presentational: nothing here affects scoring.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from battery_insights.models import RuleImpact
from battery_insights.services.rules_config import AlertSeverity, RuleId, RuleParameters


@dataclass(frozen=True)
class Alert:
    id: RuleId
    title: str
    message: str
    severity: AlertSeverity
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id.value,
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class DriverTip:
    id: RuleId
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id.value, "message": self.message}


def build_alerts_from_impacts(impacts: Iterable[RuleImpact], rules: RuleParameters) -> List[Alert]:
    """
    One alert per impact that has a template, in impact order.

    Impacts with an unknown rule id are dropped.
    """
    templates = rules.alert_templates()
    alerts = []
    for impact in impacts:
        template = templates.get(impact.id)
        if template is None:
            continue
        alerts.append(Alert(
            id=RuleId(impact.id),
            title=template.title,
            message=template.message,
            severity=template.severity,
            metadata=dict(impact.metadata),
        ))
    return alerts


def build_driver_tips_from_impacts(impacts: Iterable[RuleImpact], rules: RuleParameters) -> List[DriverTip]:
    """One tip per impact that has a template, in impact order."""
    templates = rules.tip_templates()
    return [
        DriverTip(id=RuleId(impact.id), message=templates[impact.id].message)
        for impact in impacts
        if impact.id in templates
    ]
