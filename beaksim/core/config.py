"""
YAML configuration loading for BeakSim.

A configuration file has up to four sections plus an optional scenario:

    simulation:   population, food and environment settings
    engine:       noise range, predation cull factor, mutation rate
    run:          generations, verbosity, early stopping
    mlflow:       experiment name, tracking URI, artifact logging
    scenario:     name of a preset that overrides the environment
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, Union, get_args, get_origin

import yaml

from .controller import RunConfig
from .engine import EngineConfig
from .scenarios import SCENARIO_ALIASES, SCENARIOS
from .simulation import SimulationConfig
from ..entities import InvalidEnvironmentError

SECTIONS = {"simulation", "engine", "run", "mlflow", "scenario"}
MLFLOW_KEYS = {"experiment_name", "tracking_uri", "log_artifacts"}


class ConfigError(ValueError):
    """Exception raised when a configuration file is invalid."""
    pass


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    run: RunConfig = field(default_factory=RunConfig)
    scenario: Optional[str] = None


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Configuration section '{name}' must be a mapping")
    return dict(value)


def _accepted_types(annotation) -> Optional[Tuple[type, ...]]:
    """Map a field annotation to the YAML value types it accepts, or None to skip."""
    if get_origin(annotation) is Union:
        accepted = ()
        for arg in get_args(annotation):
            if arg is type(None):
                accepted += (type(None),)
                continue
            inner = _accepted_types(arg)
            if inner is None:
                return None
            accepted += inner
        return accepted
    if annotation is float:
        return (int, float)
    if annotation in (int, bool, str):
        return (annotation,)
    return None


def _check_types(cls: Type, values: Dict[str, Any], section: str):
    for f in fields(cls):
        if f.name not in values:
            continue
        accepted = _accepted_types(f.type)
        if accepted is None:
            continue
        value = values[f.name]
        # YAML booleans are ints to Python; only bool fields take them
        if isinstance(value, bool) and bool not in accepted:
            valid = False
        else:
            valid = isinstance(value, accepted)
        if not valid:
            expected = " or ".join(t.__name__ for t in accepted)
            raise ConfigError(
                f"Invalid '{section}' section: {f.name} must be {expected}, got {value!r}"
            )


def _build(cls: Type, values: Dict[str, Any], section: str):
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ConfigError(f"Unknown keys in '{section}' section: {sorted(unknown)}")
    _check_types(cls, values, section)
    try:
        return cls(**values)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid '{section}' section: {e}")


def load_config(raw: Optional[Dict[str, Any]]) -> AppConfig:
    """
    Build an AppConfig from a parsed configuration dictionary.

    Raises:
        ConfigError: If a section is malformed or names unknown keys
    """
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping")

    unknown = set(raw) - SECTIONS
    if unknown:
        raise ConfigError(f"Unknown configuration sections: {sorted(unknown)}")

    engine = _build(EngineConfig, _section(raw, "engine"), "engine")

    sim_values = _section(raw, "simulation")
    environment = sim_values.pop("environment", None) or {}
    if not isinstance(environment, dict):
        raise ConfigError("'simulation.environment' must be a mapping")
    sim_values.update(environment)
    simulation = _build(SimulationConfig, dict(sim_values, engine=engine), "simulation")
    try:
        simulation.environment()
    except InvalidEnvironmentError as e:
        raise ConfigError(f"Invalid environment: {e}")

    mlflow_values = _section(raw, "mlflow")
    unknown = set(mlflow_values) - MLFLOW_KEYS
    if unknown:
        raise ConfigError(f"Unknown keys in 'mlflow' section: {sorted(unknown)}")
    run = _build(RunConfig, dict(_section(raw, "run"), **mlflow_values), "run")

    scenario = raw.get("scenario")
    if scenario is not None and scenario not in SCENARIOS and scenario not in SCENARIO_ALIASES:
        raise ConfigError(f"Unknown scenario: {scenario!r}. Available: {list(SCENARIOS)}")

    return AppConfig(simulation=simulation, run=run, scenario=scenario)


def load_config_file(path: Path) -> AppConfig:
    """Load an AppConfig from a YAML file."""
    try:
        raw = yaml.safe_load(Path(path).read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}")
    return load_config(raw)
