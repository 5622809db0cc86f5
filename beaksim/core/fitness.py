"""
Fitness model: deterministic base fitness of a trait under an environment.
"""

from ..entities import Environment, SeedSize, Trait

MIN_FITNESS = 0.1

# Base fitness per seed regime, before predation
SEED_FITNESS = {
    SeedSize.SMALL: {Trait.SMALL: 1.2, Trait.MEDIUM: 1.0, Trait.LARGE: 0.8},
    SeedSize.MIXED: {Trait.SMALL: 1.05, Trait.MEDIUM: 1.1, Trait.LARGE: 1.0},
    SeedSize.LARGE: {Trait.SMALL: 0.7, Trait.MEDIUM: 1.0, Trait.LARGE: 1.25},
}

# Larger birds are easier prey
PREDATION_PENALTY = {
    Trait.SMALL: 0.05,
    Trait.MEDIUM: 0.15,
    Trait.LARGE: 0.3,
}


def base_fitness(trait: Trait, environment: Environment) -> float:
    """
    Compute the base fitness of a trait, before per-organism noise.

    The result is floored at MIN_FITNESS so that fitness-proportionate
    selection always sees a positive total.
    """
    base = SEED_FITNESS[environment.seed_size][trait]
    penalty = environment.predator_strength * PREDATION_PENALTY[trait]
    return max(MIN_FITNESS, base - penalty)
