"""
Entity definitions for the BeakSim evolutionary system.

This module contains the core data structures representing organisms, their
environment and the per-generation bookkeeping kept by a simulation.
"""

import numbers
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional


class Trait(str, Enum):
    """Beak-size category carried by every organism."""
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"


TRAITS = (Trait.SMALL, Trait.MEDIUM, Trait.LARGE)


class SeedSize(str, Enum):
    """Dominant seed size available in the environment."""
    SMALL = "small"
    MIXED = "mixed"
    LARGE = "large"


class InvalidEnvironmentError(ValueError):
    """Exception raised when an environment value is outside its domain."""
    pass


@dataclass(frozen=True)
class Environment:
    """Seed-size regime and predator pressure acting on a population."""
    seed_size: SeedSize = SeedSize.MIXED
    predator_strength: float = 0.2

    def __post_init__(self):
        try:
            seed_size = SeedSize(self.seed_size)
        except ValueError:
            valid = [s.value for s in SeedSize]
            raise InvalidEnvironmentError(
                f"Unknown seed size: {self.seed_size!r}. Available: {valid}"
            )

        strength = self.predator_strength
        if isinstance(strength, bool) or not isinstance(strength, numbers.Real):
            raise InvalidEnvironmentError(
                f"Predator strength must be a number, got {strength!r}"
            )
        if not 0.0 <= strength <= 1.0:
            raise InvalidEnvironmentError(
                f"Predator strength must be within [0, 1], got {strength}"
            )

        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "seed_size", seed_size)
        object.__setattr__(self, "predator_strength", float(strength))

    def to_dict(self) -> Dict[str, object]:
        return {"seed_size": self.seed_size.value, "predator_strength": self.predator_strength}


@dataclass
class Organism:
    """A single bird. Only the trait lineage matters between generations."""
    organism_id: str
    trait: Trait
    energy: float = 0.0  # Reserved; no scoring or survival rule reads it yet


@dataclass
class ScoredOrganism:
    """An organism paired with its noisy fitness score for one generation."""
    organism: Organism
    score: float

    @property
    def trait(self) -> Trait:
        return self.organism.trait


@dataclass(frozen=True)
class GenerationRecord:
    """Snapshot of a population taken just before a generation transition."""
    generation: int
    trait_counts: Mapping[Trait, int]
    environment: Environment

    def __post_init__(self):
        object.__setattr__(self, "trait_counts", MappingProxyType(dict(self.trait_counts)))

    def to_dict(self) -> Dict[str, object]:
        return {
            "generation": self.generation,
            "trait_counts": {trait.value: count for trait, count in self.trait_counts.items()},
            "environment": self.environment.to_dict(),
        }


@dataclass(frozen=True)
class GenerationReport:
    """Counts collected while computing one generation transition."""
    generation: int
    scored: int
    survivors: int
    after_predation: int
    offspring: int
    mutations: int
    immigrants: int

    @property
    def weakened(self) -> bool:
        return self.immigrants > 0


@dataclass
class SimulationState:
    """Everything a simulation owns between two generation steps."""
    population: List[Organism]
    environment: Environment
    population_size: int
    food_per_generation: int
    generation: int = 1
    history: List[GenerationRecord] = field(default_factory=list)
    message: str = ""
    last_report: Optional[GenerationReport] = None
