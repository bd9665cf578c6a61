"""Weighted provider selection."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import structlog

from esg_intelligence.config.settings import Settings
from esg_intelligence.exceptions import NoProviderAvailableError
from esg_intelligence.orchestrator.registry import ProviderRegistry

logger = structlog.get_logger(__name__)


class QueryComplexity(str, Enum):
    """Coarse query complexity used to bias provider choice."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class SelectionPolicy:
    """Static bonuses added on top of the health-derived score."""

    priority_bonus: Dict[str, float] = field(default_factory=dict)
    complexity_bonus: Dict[str, Dict[str, float]] = field(default_factory=dict)
    low_cost_bonus: float = 5.0
    low_cost_threshold: float = 0.001

    @classmethod
    def from_settings(cls, settings: Settings) -> "SelectionPolicy":
        return cls(
            priority_bonus=dict(settings.provider_priority_bonus),
            complexity_bonus={
                name: dict(bonuses) for name, bonuses in settings.provider_complexity_bonus.items()
            },
        )

    def bonus_for(self, name: str, complexity: QueryComplexity, cost_per_request: float) -> float:
        bonus = self.priority_bonus.get(name, 0.0)
        bonus += self.complexity_bonus.get(name, {}).get(complexity.value, 0.0)
        if cost_per_request < self.low_cost_threshold:
            bonus += self.low_cost_bonus
        return bonus


@dataclass(frozen=True)
class ProviderScore:
    """Score breakdown for one candidate provider."""

    provider: str
    base_score: float
    bonus: float

    @property
    def total(self) -> float:
        return self.base_score + self.bonus


class ProviderSelector:
    """Picks the highest-scoring available provider.

    score = 0.40 * availability + 0.30 * speed + 0.20 * quality
            + 0.10 * rate-limit headroom (percent) + policy bonuses
    """

    AVAILABILITY_WEIGHT = 0.40
    SPEED_WEIGHT = 0.30
    QUALITY_WEIGHT = 0.20
    RATE_LIMIT_WEIGHT = 0.10
    NEUTRAL_SPEED = 50.0

    def __init__(self, registry: ProviderRegistry, policy: Optional[SelectionPolicy] = None):
        self.registry = registry
        self.policy = policy or SelectionPolicy()

    def rank(
        self,
        complexity: QueryComplexity = QueryComplexity.MEDIUM,
        prefer_speed: bool = False,
    ) -> List[ProviderScore]:
        """Score every available provider, best first; ties keep listing order."""
        return self._rank(self.registry.list_available(), complexity, prefer_speed)

    def preview(
        self,
        complexity: QueryComplexity = QueryComplexity.MEDIUM,
        prefer_speed: bool = False,
    ) -> List[ProviderScore]:
        """Ranking as ``rank`` would produce it, leaving circuit states untouched."""
        names = self.registry.list_available(update_circuits=False)
        return self._rank(names, complexity, prefer_speed)

    def _rank(
        self, names: List[str], complexity: QueryComplexity, prefer_speed: bool
    ) -> List[ProviderScore]:
        scores = [self._score(name, complexity, prefer_speed) for name in names]
        # sorted() is stable, so equal totals stay in configured order
        return sorted(scores, key=lambda s: s.total, reverse=True)

    def select(
        self,
        complexity: QueryComplexity = QueryComplexity.MEDIUM,
        prefer_speed: bool = False,
    ) -> str:
        ranked = self.rank(complexity, prefer_speed)
        if not ranked:
            raise NoProviderAvailableError()

        best = ranked[0]
        logger.debug(
            "provider_selected",
            provider=best.provider,
            score=round(best.total, 2),
            complexity=complexity.value,
            candidates={s.provider: round(s.total, 2) for s in ranked},
        )
        return best.provider

    def _score(self, name: str, complexity: QueryComplexity, prefer_speed: bool) -> ProviderScore:
        record = self.registry.get(name)
        health = record.health
        rate = self.registry.rate_limit_status(name)

        if prefer_speed:
            speed = max(0.0, 100 - health.response_time_ms / 100)
        else:
            speed = self.NEUTRAL_SPEED

        base = (
            health.availability * self.AVAILABILITY_WEIGHT
            + speed * self.SPEED_WEIGHT
            + health.quality_score * self.QUALITY_WEIGHT
            + rate.percentage * self.RATE_LIMIT_WEIGHT
        )
        bonus = self.policy.bonus_for(name, complexity, record.cost_per_request)
        return ProviderScore(provider=name, base_score=base, bonus=bonus)
