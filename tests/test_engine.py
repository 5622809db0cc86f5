"""
Tests for the generation engine.

These tests seed every generator so each run is reproducible, and assert
properties that hold for any seed.
"""

import random
from dataclasses import replace

import pytest
from beaksim.core.engine import (
    POPULATION_WEAKENED_MESSAGE,
    EngineConfig,
    GenerationEngine,
    step_generation,
)
from beaksim.core.fitness import base_fitness
from beaksim.core.mutation import MUTATION_TABLE
from beaksim.core.population import count_traits, create_population
from beaksim.entities import (
    Environment,
    GenerationRecord,
    Organism,
    ScoredOrganism,
    SimulationState,
    Trait,
    TRAITS,
)


def make_state(size=20, food=18, seed="small", strength=0.2, rng=None, population=None):
    rng = rng or random.Random(0)
    return SimulationState(
        population=population if population is not None else create_population(size, rng),
        environment=Environment(seed_size=seed, predator_strength=strength),
        population_size=size,
        food_per_generation=food,
    )


def uniform_population(trait, size):
    return [Organism(organism_id=f"{trait.value}_{i}", trait=trait) for i in range(size)]


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()

        assert config.noise_low == 0.7
        assert config.noise_high == 1.3
        assert config.predation_cull_factor == 0.5
        assert config.mutation_rate == 0.06

    @pytest.mark.parametrize("kwargs", [
        {"noise_low": 0.0},
        {"noise_low": 1.5, "noise_high": 1.0},
        {"predation_cull_factor": 1.5},
        {"mutation_rate": -0.1},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)


class TestStepGeneration:
    """Test full generation transitions."""

    def test_end_to_end_small_seeds(self):
        rng = random.Random(99)
        state = make_state(size=20, food=18, seed="small", strength=0.2, rng=rng)
        counts_before = count_traits(state.population)

        new_state = step_generation(state, rng)

        assert len(new_state.population) == 20
        assert new_state.generation == 2
        assert len(new_state.history) == 1
        record = new_state.history[0]
        assert record.generation == 1
        assert dict(record.trait_counts) == counts_before
        assert record.environment == state.environment

    def test_input_state_unchanged(self):
        rng = random.Random(1)
        state = make_state(rng=rng)
        population = list(state.population)

        step_generation(state, rng)

        assert state.population == population
        assert state.generation == 1
        assert state.history == []
        assert state.last_report is None

    def test_population_size_invariant_over_many_steps(self):
        rng = random.Random(5)
        engine = GenerationEngine()
        state = make_state(size=30, food=10, seed="mixed", strength=0.6, rng=rng)

        for expected_generation in range(2, 52):
            state = engine.step(state, rng)
            assert len(state.population) == 30
            assert state.generation == expected_generation
            assert all(o.trait in TRAITS for o in state.population)

    def test_history_is_append_only(self):
        rng = random.Random(7)
        engine = GenerationEngine()
        state = make_state(rng=rng)
        previous = []

        for step in range(10):
            before = state
            state = engine.step(state, rng)
            assert len(state.history) == len(before.history) + 1
            assert state.history[:-1] == previous
            assert len(before.history) == step
            previous = list(state.history)

    def test_history_records_pre_transition_environment(self):
        rng = random.Random(3)
        state = make_state(seed="large", strength=0.1, rng=rng)
        state = step_generation(state, rng)

        state = replace(state, environment=Environment(seed_size="small", predator_strength=0.5))
        counts = count_traits(state.population)
        state = step_generation(state, rng)

        assert state.history[0].environment.seed_size.value == "large"
        second = state.history[1]
        assert second.generation == 2
        assert second.environment == Environment(seed_size="small", predator_strength=0.5)
        assert dict(second.trait_counts) == counts

    def test_single_survivor_fills_population(self):
        rng = random.Random(21)
        state = make_state(size=20, food=1, seed="small", strength=0.0,
                           population=uniform_population(Trait.SMALL, 20))

        new_state = step_generation(state, rng)
        report = new_state.last_report

        assert report.survivors == 1
        assert report.after_predation == 1
        assert report.immigrants == 0
        assert report.weakened is False
        assert new_state.message != POPULATION_WEAKENED_MESSAGE

        counts = count_traits(new_state.population)
        assert len(new_state.population) == 20
        assert counts[Trait.LARGE] == 0
        assert counts[Trait.SMALL] >= 20 - report.mutations

    def test_single_survivor_offspring_stay_near_parent(self):
        rng = random.Random(8)
        engine = GenerationEngine()
        state = make_state(size=20, food=1, seed="mixed", strength=0.0, rng=rng)

        scored = engine.score_population(state.population, state.environment, random.Random(8))
        parent_trait = engine.select_survivors(scored, 1)[0].trait

        new_state = engine.step(state, random.Random(8))

        assert {o.trait for o in new_state.population} <= set(MUTATION_TABLE[parent_trait])
        assert count_traits(new_state.population)[parent_trait] >= 20 - new_state.last_report.mutations

    def test_collapse_brings_immigrants(self):
        rng = random.Random(4)
        engine = GenerationEngine(EngineConfig(predation_cull_factor=1.0))
        state = make_state(size=20, food=18, seed="mixed", strength=1.0, rng=rng)

        new_state = engine.step(state, rng)
        report = new_state.last_report

        assert report.after_predation == 0
        assert report.offspring == 0
        assert report.immigrants == 20
        assert report.weakened is True
        assert new_state.message == POPULATION_WEAKENED_MESSAGE
        assert len(new_state.population) == 20
        assert len(new_state.history) == 1

    def test_food_limits_survivors(self):
        rng = random.Random(12)
        state = make_state(size=20, food=5, strength=0.0, rng=rng)

        report = step_generation(state, rng).last_report

        assert report.scored == 20
        assert report.survivors == 5
        assert report.after_predation == 5

    def test_food_above_population_feeds_everyone(self):
        rng = random.Random(12)
        state = make_state(size=10, food=50, strength=0.0, rng=rng)

        report = step_generation(state, rng).last_report

        assert report.survivors == 10

    @pytest.mark.parametrize("food", [0, -3])
    def test_food_below_one_rejected(self, food):
        rng = random.Random(12)
        state = make_state(size=10, food=food, rng=rng)

        with pytest.raises(ValueError, match="at least 1"):
            step_generation(state, rng)

    def test_resized_population_is_regenerated(self):
        rng = random.Random(6)
        state = make_state(size=10, rng=rng)
        state = replace(state, population_size=25)

        new_state = step_generation(state, rng)

        assert len(new_state.population) == 25
        assert sum(new_state.history[0].trait_counts.values()) == 25

    def test_seeded_runs_are_identical(self):
        state = make_state(rng=random.Random(0))

        first = step_generation(state, random.Random(77))
        second = step_generation(state, random.Random(77))

        assert first.population == second.population
        assert first.last_report == second.last_report

    def test_offspring_have_fresh_ids(self):
        rng = random.Random(2)
        state = make_state(rng=rng)

        new_state = step_generation(state, rng)

        old_ids = {o.organism_id for o in state.population}
        new_ids = {o.organism_id for o in new_state.population}
        assert len(new_ids) == 20
        assert not old_ids & new_ids

    def test_strong_selection_shifts_small_seed_population(self):
        rng = random.Random(10)
        engine = GenerationEngine()
        state = make_state(size=200, food=60, seed="small", strength=0.0, rng=rng)
        start = count_traits(state.population)

        for _ in range(15):
            state = engine.step(state, rng)

        end = count_traits(state.population)
        assert end[Trait.SMALL] > start[Trait.SMALL]
        assert end[Trait.SMALL] > end[Trait.LARGE]


class TestEngineStages:
    """Test the individual stages of a transition."""

    def test_scores_stay_within_noise_band(self):
        engine = GenerationEngine()
        environment = Environment(seed_size="large", predator_strength=0.3)
        population = create_population(500, random.Random(1))

        for s in engine.score_population(population, environment, random.Random(1)):
            assert s.score > 0
            base = base_fitness(s.trait, environment)
            assert 0.7 * base - 1e-9 <= s.score <= 1.3 * base + 1e-9

    def test_select_survivors_sorted_and_stable(self):
        engine = GenerationEngine()
        organisms = [Organism(organism_id=str(i), trait=Trait.MEDIUM) for i in range(4)]
        scored = [
            ScoredOrganism(organisms[0], 1.0),
            ScoredOrganism(organisms[1], 2.0),
            ScoredOrganism(organisms[2], 1.0),
            ScoredOrganism(organisms[3], 0.5),
        ]

        survivors = engine.select_survivors(scored, 3)

        assert [s.organism.organism_id for s in survivors] == ["1", "0", "2"]

    def test_predation_disabled_without_predators(self):
        engine = GenerationEngine()
        survivors = [ScoredOrganism(o, 1.0) for o in uniform_population(Trait.LARGE, 50)]

        kept = engine.apply_predation(survivors, Environment(predator_strength=0.0), random.Random(0))

        assert kept == survivors

    def test_predation_rate(self):
        engine = GenerationEngine()
        survivors = [ScoredOrganism(o, 1.0) for o in uniform_population(Trait.SMALL, 20000)]

        kept = engine.apply_predation(survivors, Environment(predator_strength=0.6), random.Random(3))

        # removal probability 0.6 * 0.5 = 0.3
        assert len(kept) / 20000 == pytest.approx(0.7, abs=0.02)

    def test_reproduce_without_parents(self):
        offspring, mutations = GenerationEngine().reproduce([], 20, random.Random(0))

        assert offspring == []
        assert mutations == 0

    def test_reproduce_fills_target(self):
        parents = [ScoredOrganism(o, 1.0) for o in uniform_population(Trait.LARGE, 3)]

        offspring, mutations = GenerationEngine().reproduce(parents, 40, random.Random(0))

        assert len(offspring) == 40
        assert all(o.trait in (Trait.MEDIUM, Trait.LARGE) for o in offspring)
        assert all(o.energy == 0.0 for o in offspring)

    def test_records_are_generation_records(self):
        rng = random.Random(0)
        new_state = step_generation(make_state(rng=rng), rng)

        assert isinstance(new_state.history[0], GenerationRecord)
