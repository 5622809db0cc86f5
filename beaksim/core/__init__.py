"""
Core components for BeakSim - natural selection of beak sizes.
"""

from .population import create_population, count_traits
from .fitness import base_fitness, MIN_FITNESS
from .mutation import mutate_trait, MUTATION_RATE
from .sampling import SelectionStrategy, FitnessProportionateSampling

from .engine import (
    GenerationEngine,
    EngineConfig,
    step_generation,
    POPULATION_WEAKENED_MESSAGE
)

from .scenarios import (
    SCENARIOS,
    UnknownScenarioError,
    apply_scenario,
    list_scenarios
)

from .simulation import (
    Simulation,
    SimulationConfig,
    SimulationBusyError
)

from .controller import (
    SimulationRunner,
    RunConfig,
    create_simulation_runner
)

from .config import (
    AppConfig,
    ConfigError,
    load_config,
    load_config_file
)

__all__ = [
    "create_population",
    "count_traits",
    "base_fitness",
    "MIN_FITNESS",
    "mutate_trait",
    "MUTATION_RATE",
    "SelectionStrategy",
    "FitnessProportionateSampling",
    "GenerationEngine",
    "EngineConfig",
    "step_generation",
    "POPULATION_WEAKENED_MESSAGE",
    "SCENARIOS",
    "UnknownScenarioError",
    "apply_scenario",
    "list_scenarios",
    "Simulation",
    "SimulationConfig",
    "SimulationBusyError",
    "SimulationRunner",
    "RunConfig",
    "create_simulation_runner",
    "AppConfig",
    "ConfigError",
    "load_config",
    "load_config_file"
]
