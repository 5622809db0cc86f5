"""
Demo script showing the Simulation interface.

This demonstrates the host-layer pattern:
sim = Simulation(config)
sim.subscribe(render)
sim.apply_scenario(name)
state = sim.step()
"""

import random

from beaksim.core import (
    Simulation,
    SimulationConfig,
    count_traits,
    create_population,
    list_scenarios,
    step_generation,
)
from beaksim.entities import Environment, SimulationState, TRAITS


def render(state: SimulationState):
    """Print a one-line summary of a state, like a UI would redraw it."""
    counts = count_traits(state.population)
    bars = "  ".join(f"{t.value}: {'#' * counts[t]:<20}" for t in TRAITS)
    print(f"Gen {state.generation:2d} | {bars} {state.message}".rstrip())


def demo_scenarios(generations: int = 8):
    """Run each scenario for a few generations from the same starting seed."""
    print("=== Scenario Demo ===")

    for name in list_scenarios():
        print(f"\n--- {name} ---")
        sim = Simulation(SimulationConfig(rng_seed=2024))
        sim.apply_scenario(name)
        unsubscribe = sim.subscribe(render)
        sim.run(generations)
        unsubscribe()

        stats = sim.get_statistics()
        print(f"Dominant trait after {generations} generations: {stats['dominant_trait']}")


def demo_pure_step():
    """Use the pure transition function without a Simulation."""
    print("\n\n=== Pure Step Demo ===\n")

    rng = random.Random(7)
    state = SimulationState(
        population=create_population(20, rng),
        environment=Environment(seed_size="small", predator_strength=0.2),
        population_size=20,
        food_per_generation=1,
    )
    render(state)
    for _ in range(3):
        state = step_generation(state, rng)
        render(state)
    print(f"History entries: {len(state.history)}")


if __name__ == "__main__":
    demo_scenarios()
    demo_pure_step()
