"""
Model selection between the fast and thorough reasoning tiers.

Scores a request's complexity from phrase patterns and context richness,
checks it for urgency, and picks a tier.  Pure function of its inputs: the
selector holds only configuration, never per-request state.

The weights below are tuning constants, not a contract; what matters is that
more complexity indicators never lower the score.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from ..utils.context import CRITICAL_OPERATION, MULTI_SYSTEM, context_flag
from .config import FAST_MODEL, THOROUGH_MODEL, ModelTier

BASE_COMPLEXITY = 0.2
PATTERN_WEIGHT = 0.15
RICH_CONTEXT_KEYS = 3
RICH_CONTEXT_WEIGHT = 0.1
MULTI_SYSTEM_WEIGHT = 0.2
CRITICAL_OPERATION_WEIGHT = 0.15

# Above this, thorough wins unless the request is urgent.
THOROUGH_THRESHOLD = 0.7
# Above this, thorough wins even when urgent.
FORCE_THOROUGH_THRESHOLD = 0.8

_COMPLEXITY_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        # multi-step
        r"analy[sz]e.*\band\b.*(?:recommend|optimi[sz]e|create|update)",
        r"(?:create|set ?up|configure).*(?:workflow|integration|automation)",
        # cross-system
        r"sync.*(?:between|from.*to|across)",
        r"coordinate.*(?:multiple|several|all)",
        # strategic / forecasting
        r"strateg|planning|forecast|predict",
        r"optimi[sz]ation|efficiency|performance.*analysis",
        # troubleshooting
        r"debug|troubleshoot|fix.*issue|resolve.*problem",
        r"error.*analysis|failure.*investigation",
    )
)

_URGENCY_PATTERN = re.compile(r"\b(?:urgent|emergency|critical|asap|immediately|now)\b", re.IGNORECASE)


@dataclass(frozen=True)
class ModelChoice:
    """Outcome of a selection, kept for logging and result metadata."""

    tier: ModelTier
    model: str
    complexity: float
    urgent: bool


class ModelSelector:
    """Chooses the fast or thorough tier for a request.

    Args:
        fast_model: Model used for :attr:`ModelTier.FAST`.
        thorough_model: Model used for :attr:`ModelTier.THOROUGH`.
    """

    def __init__(self, fast_model: str = FAST_MODEL, thorough_model: str = THOROUGH_MODEL):
        self.fast_model = fast_model
        self.thorough_model = thorough_model

    @staticmethod
    def assess_complexity(request: str, context: Mapping[str, Any] | None = None) -> float:
        """Score complexity in [0, 1]; each matched indicator adds weight."""
        context = context or {}
        score = BASE_COMPLEXITY
        score += PATTERN_WEIGHT * sum(1 for p in _COMPLEXITY_PATTERNS if p.search(request))

        if len(context) > RICH_CONTEXT_KEYS:
            score += RICH_CONTEXT_WEIGHT
        if context_flag(context, MULTI_SYSTEM):
            score += MULTI_SYSTEM_WEIGHT
        if context_flag(context, CRITICAL_OPERATION):
            score += CRITICAL_OPERATION_WEIGHT

        return min(score, 1.0)

    @staticmethod
    def assess_urgency(request: str) -> bool:
        return bool(_URGENCY_PATTERN.search(request))

    def select(self, request: str, context: Mapping[str, Any] | None = None) -> ModelTier:
        """Return the tier for *request*.

        Priority:
        1. complexity > 0.8 -> thorough, urgency ignored
        2. urgent -> fast
        3. complexity > 0.7 -> thorough
        4. otherwise -> fast
        """
        return self.choose(request, context).tier

    def choose(self, request: str, context: Mapping[str, Any] | None = None) -> ModelChoice:
        """Like :meth:`select`, but also resolves the concrete model name."""
        complexity = self.assess_complexity(request, context)
        urgent = self.assess_urgency(request)

        if complexity > FORCE_THOROUGH_THRESHOLD:
            tier = ModelTier.THOROUGH
        elif urgent:
            tier = ModelTier.FAST
        elif complexity > THOROUGH_THRESHOLD:
            tier = ModelTier.THOROUGH
        else:
            tier = ModelTier.FAST

        logger.debug(f"Model selection: complexity={complexity:.2f} urgent={urgent} -> {tier}")
        return ModelChoice(tier=tier, model=self.model_for(tier), complexity=complexity, urgent=urgent)

    def model_for(self, tier: ModelTier) -> str:
        return self.thorough_model if tier == ModelTier.THOROUGH else self.fast_model
