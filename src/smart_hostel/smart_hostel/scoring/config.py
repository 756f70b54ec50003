"""Immutable scoring configuration.

Weights and thresholds are injected into the scorer, the confidence
estimator and the decision engine; tests can pass alternative sets.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

MODEL_NAME = "Smart Hostel Leave Prediction Model"
MODEL_VERSION = "1.0.0"


@dataclass(frozen=True)
class RiskWeights:
    """Per-request component weights.

    These sum to 0.90, not 1.00; the published weight table is reproduced
    as-is and never normalized.
    """

    attendance: float = 0.18
    reliability: float = 0.15
    violations: float = 0.12
    frequency: float = 0.08
    history: float = 0.07
    calendar_conflict: float = 0.15
    duration: float = 0.05
    leave_type: float = 0.05
    timing: float = 0.05

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ProfileWeights:
    """Weights of the per-student profile risk stored with the statistics."""

    attendance: float = 0.30
    reliability: float = 0.25
    violations: float = 0.20
    frequency: float = 0.15
    history: float = 0.10

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DecisionThresholds:
    auto_approve: int = 20
    manual_review: int = 60
    high_risk: int = 80
    min_confidence: float = 0.6

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ScoringConfig:
    risk_weights: RiskWeights = field(default_factory=RiskWeights)
    profile_weights: ProfileWeights = field(default_factory=ProfileWeights)
    thresholds: DecisionThresholds = field(default_factory=DecisionThresholds)
    model_name: str = MODEL_NAME
    model_version: str = MODEL_VERSION


DEFAULT_SCORING_CONFIG = ScoringConfig()
