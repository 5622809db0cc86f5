"""
Parent selection strategies for reproduction.

This module contains the strategies the generation engine uses to pick a
parent from the scored organisms that survived food and predation.
"""

import random
from abc import ABC, abstractmethod
from typing import List

from ..entities import ScoredOrganism


class SelectionStrategy(ABC):
    """Abstract base class for parent selection strategies."""

    @abstractmethod
    def sample_parent(self, survivors: List[ScoredOrganism],
                      rng: random.Random) -> ScoredOrganism:
        """Sample a parent from the surviving organisms."""
        pass


class FitnessProportionateSampling(SelectionStrategy):
    """Roulette-wheel selection: sample survivors proportional to their scores."""

    def sample_parent(self, survivors: List[ScoredOrganism],
                      rng: random.Random) -> ScoredOrganism:
        if not survivors:
            raise ValueError("Cannot sample from empty survivor list")

        total = sum(s.score for s in survivors)
        r = rng.uniform(0, total)
        cumsum = 0.0
        for survivor in survivors:
            cumsum += survivor.score
            if r <= cumsum:
                return survivor
        return survivors[-1]  # float rounding fallback
