"""
Scoring Configuration - Centralizes the numeric rules of the scoring engine.

Weight floors, tolerances and severity bands are defined here so that
validators, the score calculator and the incident generator agree on them.
"""
from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(frozen=True)
class WeightRules:
    """Definition-time weight rules."""
    min_question_weight: float = 0.1       # strict floor, 0.1 itself is valid
    group_weight_total: float = 1.0
    group_weight_tolerance: float = 0.0001  # absolute


@dataclass(frozen=True)
class AnswerRules:
    """Answer consistency rules."""
    min_approval_value: float = 0.0
    max_approval_value: float = 1.0
    approved_value: float = 1.0
    not_approved_value: float = 0.0
    intermediate_tolerance: float = 0.01


@dataclass(frozen=True)
class SeverityBands:
    """
    Incident severity bands keyed by how far the score fell below threshold.

    Bands are checked from the largest difference down; a difference equal to
    a band's lower bound lands in that band.
    """
    bands: List[Tuple[float, str]] = field(default_factory=lambda: [
        (30.0, "CRITICAL"),
        (20.0, "HIGH"),
        (10.0, "MEDIUM"),
    ])
    fallback: str = "LOW"
    # Absorbs float noise such as 70 - 40.00000000000001 at a band edge
    boundary_epsilon: float = 1e-9


@dataclass(frozen=True)
class ScoringConfig:
    """Main configuration container for the scoring engine."""
    weights: WeightRules = field(default_factory=WeightRules)
    answers: AnswerRules = field(default_factory=AnswerRules)
    severity: SeverityBands = field(default_factory=SeverityBands)


_config = ScoringConfig()


def get_scoring_config() -> ScoringConfig:
    """Get the scoring configuration."""
    return _config
