"""
Tests for incident generation.

Verifies that:
- Only COMPLIANCE templates and groups raise incidents below threshold
- Severity bands: >= 30 CRITICAL, >= 20 HIGH, >= 10 MEDIUM, else LOW
- Severity never decreases as the score drops
- Incident fields follow the execution (vehicle, reporter, failed categories)
"""
import pytest

from app.checklists.incidents import IncidentGenerator, IncidentPolicy
from app.checklists.models import (
    ChecklistType,
    Execution,
    ExecutionStatus,
    IncidentSeverity,
    IncidentStatus,
    TargetType,
)

SEVERITY_ORDER = [IncidentSeverity.LOW, IncidentSeverity.MEDIUM, IncidentSeverity.HIGH, IncidentSeverity.CRITICAL]


@pytest.fixture
def generator():
    return IncidentGenerator()


def scored_execution(percentage: float, group_score: float = None, **kwargs) -> Execution:
    fields = dict(
        template_id=None if group_score is not None else "tpl-1",
        group_id="grp-1" if group_score is not None else None,
        executor_user_id="inspector-7",
        target_type=TargetType.VEHICLE,
        target_id="truck-42",
        status=ExecutionStatus.COMPLETED,
        percentage_score=percentage,
        group_score=group_score,
        category_scores={"cat-a": percentage},
    )
    fields.update(kwargs)
    return Execution(**fields)


class TestSeverity:

    @pytest.mark.parametrize("score,expected", [
        (40.0, IncidentSeverity.CRITICAL),   # difference exactly 30
        (39.0, IncidentSeverity.CRITICAL),
        (50.0, IncidentSeverity.HIGH),       # difference exactly 20
        (50.5, IncidentSeverity.MEDIUM),
        (60.0, IncidentSeverity.MEDIUM),     # difference exactly 10
        (60.01, IncidentSeverity.LOW),
        (68.0, IncidentSeverity.LOW),
        (0.0, IncidentSeverity.CRITICAL),
    ])
    def test_bands(self, generator, score, expected):
        assert generator.determine_severity(score, 70.0) == expected

    def test_float_noise_at_boundary(self, generator):
        # 0.4 / 1.0 * 100 is 40.00000000000001 in binary floating point
        assert generator.determine_severity((0.4 / 1.0) * 100, 70.0) == IncidentSeverity.CRITICAL

    def test_band_edges_are_not_rounded(self, generator):
        assert generator.determine_severity(60.004, 70.0) == IncidentSeverity.LOW
        assert generator.determine_severity(59.996, 70.0) == IncidentSeverity.MEDIUM

    def test_monotonic_in_score(self, generator):
        previous = SEVERITY_ORDER.index(IncidentSeverity.LOW)
        for step in range(700, -1, -5):
            severity = generator.determine_severity(step / 10, 70.0)
            rank = SEVERITY_ORDER.index(severity)
            assert rank >= previous
            previous = rank


class TestShouldCreate:

    def test_compliance_below_threshold(self, generator):
        policy = IncidentPolicy(threshold=70.0, checklist_type=ChecklistType.COMPLIANCE)
        assert generator.should_create(69.99, policy)

    def test_at_threshold_no_incident(self, generator):
        policy = IncidentPolicy(threshold=70.0, checklist_type=ChecklistType.COMPLIANCE)
        assert not generator.should_create(70.0, policy)

    def test_inspection_never_raises(self, generator):
        policy = IncidentPolicy(threshold=70.0, checklist_type=ChecklistType.INSPECTION)
        assert not generator.should_create(0.0, policy)

    def test_group_below_threshold(self, generator):
        policy = IncidentPolicy(threshold=70.0, checklist_type=ChecklistType.COMPLIANCE, is_group_execution=True)
        assert generator.should_create(68.0, policy)

    def test_zero_threshold_never_raises(self, generator):
        policy = IncidentPolicy(threshold=0.0, checklist_type=ChecklistType.COMPLIANCE)
        assert not generator.should_create(0.0, policy)


class TestMaybeCreateIncident:

    def test_template_incident_fields(self, generator):
        execution = scored_execution(40.0)
        policy = IncidentPolicy(threshold=70.0, checklist_type=ChecklistType.COMPLIANCE)
        incident = generator.maybe_create_incident(execution, policy)

        assert incident is not None
        assert incident.execution_id == execution.id
        assert incident.severity == IncidentSeverity.CRITICAL
        assert incident.status == IncidentStatus.OPEN
        assert incident.auto_generated is True
        assert incident.performance_score == pytest.approx(40.0)
        assert incident.threshold_score == 70.0
        assert incident.failed_categories == ["cat-a"]
        assert incident.vehicle_id == "truck-42"
        assert incident.reported_by_user_id == "inspector-7"
        assert incident.title == "Low Performance Template Checklist Execution"
        assert "40.00%" in incident.description
        assert "template score" in incident.description

    def test_group_incident_uses_group_score(self, generator):
        execution = scored_execution(90.0, group_score=68.0, target_type=TargetType.WAREHOUSE)
        policy = IncidentPolicy(threshold=70.0, checklist_type=ChecklistType.COMPLIANCE, is_group_execution=True)
        incident = generator.maybe_create_incident(execution, policy)

        assert incident.severity == IncidentSeverity.LOW
        assert incident.performance_score == pytest.approx(68.0)
        assert incident.vehicle_id is None
        assert incident.title == "Low Performance Group Checklist Execution"
        assert "group score" in incident.description

    def test_group_score_missing_falls_back_to_percentage(self):
        execution = scored_execution(55.0)
        policy = IncidentPolicy(threshold=70.0, checklist_type=ChecklistType.COMPLIANCE, is_group_execution=True)
        assert policy.score_to_check(execution) == pytest.approx(55.0)

    def test_no_incident_above_threshold(self, generator):
        policy = IncidentPolicy(threshold=70.0, checklist_type=ChecklistType.COMPLIANCE)
        assert generator.maybe_create_incident(scored_execution(100.0), policy) is None
