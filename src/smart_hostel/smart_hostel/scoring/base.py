from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..core.enums import Impact, RiskCategory
from .features import FeatureBundle


@dataclass(frozen=True)
class ComponentScore:
    name: str
    value: float
    risk: float
    weight: float
    impact: Impact

    @property
    def weighted(self) -> float:
        return self.risk * self.weight

    def as_dict(self) -> dict:
        return {
            "value": self.value,
            "risk": round(self.risk, 2),
            "weight": self.weight,
            "weighted": round(self.weighted, 2),
            "impact": self.impact.value,
        }


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    category: RiskCategory
    components: tuple[ComponentScore, ...] = field(default_factory=tuple)
    calendar_modifier: int = 0

    def component(self, name: str) -> ComponentScore:
        for c in self.components:
            if c.name == name:
                return c
        raise KeyError(name)

    def components_dict(self) -> dict:
        return {c.name: c.as_dict() for c in self.components}


class RiskScorer(ABC):
    @abstractmethod
    def score(self, features: FeatureBundle) -> RiskAssessment:
        raise NotImplementedError
