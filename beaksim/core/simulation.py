"""
Simulation state holder for BeakSim.

A Simulation owns the current SimulationState, the random generator every
core operation draws from, and the configuration knobs a host layer may
turn between steps. Hosts learn about changes by subscribing a callback.
"""

import logging
import math
import numbers
import random
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from .engine import EngineConfig, GenerationEngine
from .population import count_traits, create_population
from .scenarios import apply_scenario
from ..entities import Environment, InvalidEnvironmentError, SimulationState, Trait, TRAITS


logger = logging.getLogger(__name__)

StateCallback = Callable[[SimulationState], None]


class SimulationBusyError(RuntimeError):
    """Exception raised when a step is requested while another is in flight."""
    pass


@dataclass
class SimulationConfig:
    """Configuration for a simulation."""
    population_size: int = 20
    food_per_generation: int = 18
    seed_size: str = "mixed"
    predator_strength: float = 0.2
    min_population_size: int = 1
    max_population_size: int = 1000
    rng_seed: Optional[int] = None  # None draws a fresh seed from the OS
    engine: EngineConfig = field(default_factory=EngineConfig)

    def __post_init__(self):
        if not 1 <= self.min_population_size <= self.max_population_size:
            raise ValueError(
                f"Population size bounds must satisfy 1 <= min <= max, "
                f"got [{self.min_population_size}, {self.max_population_size}]"
            )

    def environment(self) -> Environment:
        return Environment(seed_size=self.seed_size, predator_strength=self.predator_strength)


class Simulation:
    """
    Host-facing simulation.

    Usage:
        sim = Simulation(SimulationConfig(rng_seed=7))
        sim.subscribe(render)
        sim.apply_scenario("Drought")
        sim.step()
    """

    def __init__(self, config: Optional[SimulationConfig] = None,
                 rng: Optional[random.Random] = None,
                 engine: Optional[GenerationEngine] = None):
        self.config = config or SimulationConfig()
        self.rng = rng or random.Random(self.config.rng_seed)
        self.engine = engine or GenerationEngine(self.config.engine)
        self._subscribers: List[StateCallback] = []
        self._stepping = False

        population_size = self._clamp_population_size(self.config.population_size)
        self.state = SimulationState(
            population=create_population(population_size, self.rng),
            environment=self.config.environment(),
            population_size=population_size,
            food_per_generation=max(1, int(self.config.food_per_generation)),
        )

    # Observers

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        """
        Register a callback invoked with the new state after every change.

        Returns:
            A function that removes the callback again
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _adopt(self, state: SimulationState) -> SimulationState:
        self.state = state
        for callback in list(self._subscribers):
            callback(state)
        return state

    # Stepping

    def step(self) -> SimulationState:
        """Run one generation and adopt the result."""
        if self._stepping:
            raise SimulationBusyError("A generation step is already in progress")

        # Subscribers run inside the guard, so a callback cannot start another step
        self._stepping = True
        try:
            return self._adopt(self.engine.step(self.state, self.rng))
        finally:
            self._stepping = False

    def run(self, generations: int) -> SimulationState:
        """Run several generations back to back."""
        if generations < 0:
            raise ValueError(f"Generations cannot be negative: {generations}")
        for _ in range(generations):
            self.step()
        return self.state

    # Lifecycle

    def reset(self) -> SimulationState:
        """Start over with a random population, generation 1 and no history."""
        logger.info(f"Resetting simulation with {self.state.population_size} organisms")
        return self._adopt(replace(
            self.state,
            population=create_population(self.state.population_size, self.rng),
            generation=1,
            history=[],
            message="",
            last_report=None,
        ))

    def clear_history(self) -> SimulationState:
        return self._adopt(replace(self.state, history=[], message="History cleared."))

    # Configuration knobs

    def apply_scenario(self, name: str) -> Environment:
        """Switch the environment to a named preset."""
        environment = apply_scenario(name)
        logger.info(f"Scenario set: {name} ({environment})")
        self._adopt(replace(self.state, environment=environment, message=f"Scenario set: {name}"))
        return environment

    def set_environment(self, environment: Environment) -> Environment:
        if not isinstance(environment, Environment):
            raise InvalidEnvironmentError(f"Expected an Environment, got {environment!r}")
        self._adopt(replace(self.state, environment=environment))
        return environment

    def set_seed_size(self, seed_size: str) -> Environment:
        return self.set_environment(Environment(
            seed_size=seed_size,
            predator_strength=self.state.environment.predator_strength,
        ))

    def set_predator_strength(self, strength: float) -> Environment:
        """Set predator pressure, clamping into [0, 1] like a slider would."""
        if isinstance(strength, bool) or not isinstance(strength, numbers.Real):
            raise InvalidEnvironmentError(f"Predator strength must be a number, got {strength!r}")
        if math.isnan(strength):
            raise InvalidEnvironmentError("Predator strength cannot be NaN")
        return self.set_environment(Environment(
            seed_size=self.state.environment.seed_size,
            predator_strength=min(1.0, max(0.0, float(strength))),
        ))

    def set_food_per_generation(self, food: int) -> int:
        food = max(1, int(food))
        self._adopt(replace(self.state, food_per_generation=food))
        return food

    def adjust_food(self, delta: int) -> int:
        return self.set_food_per_generation(self.state.food_per_generation + delta)

    def set_population_size(self, size: int) -> int:
        """
        Resize the population. A new size discards the current population
        and starts a fresh random one.
        """
        size = self._clamp_population_size(size)
        if size == self.state.population_size:
            return size

        logger.info(f"Population size changed: {self.state.population_size} -> {size}")
        self._adopt(replace(
            self.state,
            population=create_population(size, self.rng),
            population_size=size,
        ))
        return size

    def _clamp_population_size(self, size: int) -> int:
        return min(self.config.max_population_size, max(self.config.min_population_size, int(size)))

    # Queries

    def trait_counts(self) -> Dict[Trait, int]:
        return count_traits(self.state.population)

    def get_statistics(self) -> Dict[str, Any]:
        """Get population statistics for the current generation."""
        counts = self.trait_counts()
        total = len(self.state.population)
        dominant = max(TRAITS, key=lambda t: counts[t]) if total else None
        return {
            "generation": self.state.generation,
            "population_size": total,
            "food_per_generation": self.state.food_per_generation,
            "environment": self.state.environment.to_dict(),
            "trait_counts": {t.value: counts[t] for t in TRAITS},
            "trait_frequencies": {t.value: (counts[t] / total if total else 0.0) for t in TRAITS},
            "dominant_trait": dominant.value if dominant else None,
            "history_length": len(self.state.history),
        }
