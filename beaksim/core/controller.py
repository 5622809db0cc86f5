"""
Run controller for BeakSim - multi-generation runs with experiment tracking.

This module drives a Simulation for a number of generations and records the
run in MLflow:
- Simulation and run parameters
- Per-generation trait counts and frequencies
- Survival, predation, mutation and immigration counts
- The generation history as a JSON artifact
"""

import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import mlflow

from .population import count_traits
from .simulation import Simulation, SimulationConfig
from ..entities import SimulationState, TRAITS


logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Configuration for a multi-generation run."""
    generations: int = 25
    verbose: bool = True
    stop_on_fixation: bool = False  # Stop once every organism shares one trait

    # MLflow configuration
    experiment_name: str = "beaksim_runs"
    log_artifacts: bool = True
    tracking_uri: Optional[str] = None  # Use default local tracking if None

    def __post_init__(self):
        if self.generations < 0:
            raise ValueError(f"Generations cannot be negative: {self.generations}")


class SimulationRunner:
    """
    Runs a simulation for a number of generations and tracks it in MLflow.

    Follows the per-generation loop:
    1. state = simulation.step()
    2. log the generation report and trait counts
    3. stop early if a trait reached fixation (optional)
    """

    def __init__(self, simulation: Simulation, config: Optional[RunConfig] = None):
        self.simulation = simulation
        self.config = config or RunConfig()

        self.stats = {
            'generations_run': 0,
            'collapses': 0,
            'total_mutations': 0,
            'total_immigrants': 0,
            'fixation_generation': None,
        }

        self._setup_mlflow()

    def _setup_mlflow(self):
        """Set up MLflow experiment."""
        if self.config.tracking_uri:
            mlflow.set_tracking_uri(self.config.tracking_uri)

        experiment = mlflow.get_experiment_by_name(self.config.experiment_name)
        if experiment is None:
            experiment_id = mlflow.create_experiment(self.config.experiment_name)
            logger.info(f"Created new MLflow experiment: {self.config.experiment_name}")
        else:
            experiment_id = experiment.experiment_id
            logger.info(f"Using existing MLflow experiment: {self.config.experiment_name}")

        mlflow.set_experiment(experiment_id=experiment_id)

    def run(self) -> Dict[str, Any]:
        """
        Run the configured number of generations.

        Returns:
            Dictionary containing run statistics, final population statistics
            and the generation history
        """
        logger.info(f"Starting simulation run for {self.config.generations} generations")

        with mlflow.start_run():
            return self._run_loop()

    def _run_loop(self) -> Dict[str, Any]:
        self._log_params()
        self._log_trait_counts(self.simulation.state)

        if self.config.verbose:
            self._print_state(self.simulation.state)

        for _ in range(self.config.generations):
            state = self.run_single_generation()

            if self.config.verbose:
                self._print_state(state)

            if self.config.stop_on_fixation and self._is_fixed(state):
                self.stats['fixation_generation'] = state.generation
                logger.info(f"Trait fixation reached at generation {state.generation}; stopping early")
                mlflow.log_param("fixation_generation", state.generation)
                break

        results = self._get_final_results()
        self._log_final_results(results)
        return results

    def run_single_generation(self) -> SimulationState:
        """Step the simulation once and log the outcome."""
        state = self.simulation.step()
        report = state.last_report

        self.stats['generations_run'] += 1
        self.stats['total_mutations'] += report.mutations
        self.stats['total_immigrants'] += report.immigrants
        if report.weakened:
            self.stats['collapses'] += 1

        # Transition counts belong to the generation that was stepped,
        # trait counts to the population it produced
        mlflow.log_metrics({
            "survivors": report.survivors,
            "after_predation": report.after_predation,
            "mutations": report.mutations,
            "immigrants": report.immigrants,
        }, step=report.generation)
        self._log_trait_counts(state)

        return state

    def _log_trait_counts(self, state: SimulationState):
        counts = count_traits(state.population)
        size = max(1, len(state.population))
        metrics = {}
        for trait in TRAITS:
            key = trait.value.lower()
            metrics[f"count_{key}"] = counts[trait]
            metrics[f"frequency_{key}"] = counts[trait] / size
        mlflow.log_metrics(metrics, step=state.generation)

    def _is_fixed(self, state: SimulationState) -> bool:
        return len({organism.trait for organism in state.population}) == 1

    def _log_params(self):
        state = self.simulation.state
        params = {
            "population_size": state.population_size,
            "food_per_generation": state.food_per_generation,
            "seed_size": state.environment.seed_size.value,
            "predator_strength": state.environment.predator_strength,
            "rng_seed": self.simulation.config.rng_seed,
        }
        params.update(asdict(self.simulation.engine.config))
        params.update(asdict(self.config))
        mlflow.log_params({k: v for k, v in params.items() if v is not None})

    def _print_state(self, state: SimulationState):
        counts = self.simulation.trait_counts()
        summary = "  ".join(f"{t.value}: {counts[t]:3d}" for t in TRAITS)
        print(f"Gen {state.generation:3d}: {summary}  {state.message}".rstrip())

    def _get_final_results(self) -> Dict[str, Any]:
        return {
            'run_stats': dict(self.stats),
            'final_statistics': self.simulation.get_statistics(),
            'history': [record.to_dict() for record in self.simulation.state.history],
        }

    def _log_final_results(self, results: Dict[str, Any]):
        """Log final run results to MLflow."""
        run_stats = results['run_stats']
        final = results['final_statistics']

        mlflow.log_metrics({
            "final_generations_run": run_stats['generations_run'],
            "final_collapses": run_stats['collapses'],
            "final_total_mutations": run_stats['total_mutations'],
            "final_total_immigrants": run_stats['total_immigrants'],
        })

        if self.config.log_artifacts and results['history']:
            with tempfile.TemporaryDirectory() as tmp_dir:
                path = os.path.join(tmp_dir, "history.json")
                with open(path, 'w') as f:
                    json.dump({"history": results['history'], "final": final}, f, indent=2)
                mlflow.log_artifact(path)

    def cleanup(self):
        """End the MLflow run if one is still active."""
        try:
            if mlflow.active_run():
                mlflow.end_run()
        except Exception as e:
            logger.warning(f"Error ending MLflow run: {e}")


def create_simulation_runner(simulation_config: Optional[SimulationConfig] = None,
                             run_config: Optional[RunConfig] = None,
                             scenario: Optional[str] = None) -> SimulationRunner:
    """
    Factory function to create a runner around a fresh simulation.

    Args:
        simulation_config: Simulation configuration (defaults if None)
        run_config: Run configuration (defaults if None)
        scenario: Optional scenario name applied before the run

    Returns:
        Configured SimulationRunner ready to run
    """
    simulation = Simulation(simulation_config)
    if scenario:
        simulation.apply_scenario(scenario)
    return SimulationRunner(simulation, run_config)
