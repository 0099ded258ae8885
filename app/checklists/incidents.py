"""
Incident Generator - decides whether a scored execution is a low-performance
incident and classifies its severity.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from app.checklists.config import ScoringConfig, get_scoring_config
from app.checklists.models import (
    ChecklistType,
    Execution,
    Incident,
    IncidentSeverity,
    IncidentStatus,
    TargetType,
)
from app.core.logging import get_logger

logger = get_logger("incidents")


@dataclass(frozen=True)
class IncidentPolicy:
    """Threshold context resolved by the orchestrator for one execution."""
    threshold: float
    checklist_type: ChecklistType
    is_group_execution: bool = False

    def score_to_check(self, execution: Execution) -> float:
        if self.is_group_execution and execution.group_score is not None:
            return execution.group_score
        return execution.percentage_score or 0.0


class IncidentGenerator:
    """Creates incident records for executions scoring below threshold."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or get_scoring_config()

    def should_create(self, score: float, policy: IncidentPolicy) -> bool:
        # Groups are always compliance-typed, so both conditions hold for them
        below = score < policy.threshold
        return (policy.checklist_type == ChecklistType.COMPLIANCE and below) or (
            policy.is_group_execution and below
        )

    def determine_severity(self, score: float, threshold: float) -> IncidentSeverity:
        bands = self.config.severity
        difference = threshold - score

        for lower_bound, severity in bands.bands:
            if difference + bands.boundary_epsilon >= lower_bound:
                return IncidentSeverity(severity)
        return IncidentSeverity(bands.fallback)

    def failed_categories(self, category_scores: Dict[str, float], threshold: float) -> List[str]:
        return [cid for cid, score in category_scores.items() if score < threshold]

    def maybe_create_incident(self, execution: Execution, policy: IncidentPolicy) -> Optional[Incident]:
        """Return a new incident for ``execution`` or None when it performed well enough."""
        score = policy.score_to_check(execution)
        if not self.should_create(score, policy):
            return None

        kind = "Group" if policy.is_group_execution else "Template"
        score_type = "group score" if policy.is_group_execution else "template score"
        severity = self.determine_severity(score, policy.threshold)

        incident = Incident(
            execution_id=execution.id,
            title=f"Low Performance {kind} Checklist Execution",
            description=(
                f"Checklist {kind.lower()} execution scored {score:.2f}% ({score_type}) "
                f"which is below the threshold of {policy.threshold:g}%"
            ),
            severity=severity,
            status=IncidentStatus.OPEN,
            performance_score=score,
            threshold_score=policy.threshold,
            failed_categories=self.failed_categories(execution.category_scores, policy.threshold),
            auto_generated=True,
            vehicle_id=execution.target_id if execution.target_type == TargetType.VEHICLE else None,
            reported_by_user_id=execution.executor_user_id,
            reported_at=datetime.utcnow(),
        )

        logger.info(
            f"Incident raised for execution {execution.id}: {severity.value} "
            f"(score {score:.2f} < threshold {policy.threshold:g})"
        )
        return incident
