"""
Generation engine for BeakSim.

This module implements one full generation transition:
- Scoring every organism (base fitness times noise)
- Food-limited survival of the best scorers
- Uniform predator culling of the survivors
- Roulette-wheel reproduction with trait mutation
- Replenishment with random immigrants after a collapse
- History bookkeeping

The transition is pure: the input state is left untouched and a new
SimulationState is returned for the caller to adopt.
"""

import logging
import random
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .fitness import base_fitness
from .mutation import MUTATION_RATE, mutate_trait
from .population import count_traits, create_population, new_organism_id
from .sampling import FitnessProportionateSampling, SelectionStrategy
from ..entities import (
    Environment,
    GenerationRecord,
    GenerationReport,
    Organism,
    ScoredOrganism,
    SimulationState,
)


logger = logging.getLogger(__name__)

POPULATION_WEAKENED_MESSAGE = "Population weakened; random immigrants arrived."


@dataclass
class EngineConfig:
    """Tunable constants of the generation transition."""
    noise_low: float = 0.7
    noise_high: float = 1.3
    predation_cull_factor: float = 0.5  # removal chance = predator_strength * factor
    mutation_rate: float = MUTATION_RATE

    def __post_init__(self):
        if not 0 < self.noise_low <= self.noise_high:
            raise ValueError(
                f"Noise range must satisfy 0 < low <= high, got [{self.noise_low}, {self.noise_high}]"
            )
        if not 0.0 <= self.predation_cull_factor <= 1.0:
            raise ValueError(f"Predation cull factor must be within [0, 1], got {self.predation_cull_factor}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError(f"Mutation rate must be within [0, 1], got {self.mutation_rate}")


class GenerationEngine:
    """
    Computes generation transitions.

    Every random draw goes through the generator handed to step(), so a
    seeded generator reproduces a run exactly.
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 strategy: Optional[SelectionStrategy] = None):
        self.config = config or EngineConfig()
        self.strategy = strategy or FitnessProportionateSampling()

    def step(self, state: SimulationState, rng: random.Random) -> SimulationState:
        """
        Run one generation transition.

        Args:
            state: Current simulation state (not modified)
            rng: Random generator for noise, culling, selection and mutation

        Returns:
            The next SimulationState

        Raises:
            ValueError: If the state offers less than one unit of food
        """
        if state.food_per_generation < 1:
            raise ValueError(f"Food per generation must be at least 1, got {state.food_per_generation}")

        target = state.population_size
        population = state.population
        if len(population) != target:
            # Population size changed since the last step: start over at the new size
            logger.info(f"Population size changed ({len(population)} -> {target}); regenerating population")
            population = create_population(target, rng)

        environment = state.environment
        counts_before = count_traits(population)

        # Step 1: Score every organism
        scored = self.score_population(population, environment, rng)

        # Step 2: Feed the best scorers
        survivors = self.select_survivors(scored, state.food_per_generation)

        # Step 3: Predators take a uniform share of the fed survivors
        remaining = self.apply_predation(survivors, environment, rng)

        # Step 4: Reproduce from whoever is left
        offspring, mutations = self.reproduce(remaining, target, rng)

        # Step 5: Fill any gap with immigrants
        immigrants = target - len(offspring)
        if immigrants > 0:
            offspring.extend(create_population(immigrants, rng))
            message = POPULATION_WEAKENED_MESSAGE
            logger.warning(
                f"Generation {state.generation}: only {len(remaining)} survivors after predation, "
                f"{immigrants} random immigrants added"
            )
        else:
            message = f"Generation {state.generation} complete."

        # Step 6: Record the population as it was before this transition
        record = GenerationRecord(
            generation=state.generation,
            trait_counts=counts_before,
            environment=environment,
        )
        report = GenerationReport(
            generation=state.generation,
            scored=len(scored),
            survivors=len(survivors),
            after_predation=len(remaining),
            offspring=target - immigrants,
            mutations=mutations,
            immigrants=immigrants,
        )
        logger.debug(f"Generation {state.generation} report: {report}")

        # Step 7: Advance
        return replace(
            state,
            population=offspring,
            generation=state.generation + 1,
            history=state.history + [record],
            message=message,
            last_report=report,
        )

    def score_population(self, population: List[Organism], environment: Environment,
                         rng: random.Random) -> List[ScoredOrganism]:
        """Score each organism as base fitness times uniform noise."""
        low, high = self.config.noise_low, self.config.noise_high
        return [
            ScoredOrganism(
                organism=organism,
                score=base_fitness(organism.trait, environment) * rng.uniform(low, high),
            )
            for organism in population
        ]

    def select_survivors(self, scored: List[ScoredOrganism], food: int) -> List[ScoredOrganism]:
        """Keep the top ``food`` scorers. Ties keep their population order."""
        ranked = sorted(scored, key=lambda s: s.score, reverse=True)
        return ranked[:food]

    def apply_predation(self, survivors: List[ScoredOrganism], environment: Environment,
                        rng: random.Random) -> List[ScoredOrganism]:
        """Remove each survivor independently with the predator cull probability."""
        cull = environment.predator_strength * self.config.predation_cull_factor
        return [s for s in survivors if rng.random() >= cull]

    def reproduce(self, parents: List[ScoredOrganism], target: int,
                  rng: random.Random) -> Tuple[List[Organism], int]:
        """
        Breed offspring by fitness-proportionate parent selection.

        Returns:
            Tuple of (offspring, mutation_count). Offspring is empty when no
            parent is left.
        """
        offspring: List[Organism] = []
        mutations = 0
        if not parents:
            return offspring, mutations

        while len(offspring) < target:
            parent = self.strategy.sample_parent(parents, rng)
            trait, mutated = mutate_trait(parent.trait, rng, self.config.mutation_rate)
            if mutated:
                mutations += 1
            offspring.append(Organism(organism_id=new_organism_id(rng), trait=trait))
        return offspring, mutations


def step_generation(state: SimulationState, rng: Optional[random.Random] = None,
                    engine: Optional[GenerationEngine] = None) -> SimulationState:
    """Convenience wrapper: run one transition with a default engine."""
    engine = engine or GenerationEngine()
    return engine.step(state, rng or random.Random())
