"""
Named environment presets.
"""

from typing import Dict, List

from ..entities import Environment, SeedSize


class UnknownScenarioError(ValueError):
    """Exception raised when a scenario name is not one of the presets."""
    pass


SCENARIOS: Dict[str, Environment] = {
    "Drought": Environment(seed_size=SeedSize.SMALL, predator_strength=0.2),
    "Abundant": Environment(seed_size=SeedSize.LARGE, predator_strength=0.1),
    "High predators": Environment(seed_size=SeedSize.MIXED, predator_strength=0.6),
    "Mixed stable": Environment(seed_size=SeedSize.MIXED, predator_strength=0.15),
}

# Longer labels the scenarios are also known by
SCENARIO_ALIASES = {
    "Drought (small seeds)": "Drought",
    "Abundant large seeds": "Abundant",
}


def list_scenarios() -> List[str]:
    return list(SCENARIOS)


def apply_scenario(name: str) -> Environment:
    """
    Look up the environment of a named scenario.

    Raises:
        UnknownScenarioError: If the name is neither a preset nor an alias
    """
    key = SCENARIO_ALIASES.get(name, name)
    if key not in SCENARIOS:
        raise UnknownScenarioError(
            f"Unknown scenario: {name!r}. Available: {list_scenarios()}"
        )
    return SCENARIOS[key]
