"""
Organism factory for the BeakSim evolutionary system.

New organisms come either from here (initial populations and immigrants) or
from reproduction in the generation engine. Both draw identifiers from the
same injectable random generator.
"""

import random
import uuid
from typing import Dict, Iterable, List, Optional

from ..entities import Organism, Trait, TRAITS


def new_organism_id(rng: random.Random) -> str:
    """Generate a unique organism identifier from the given generator."""
    return uuid.UUID(int=rng.getrandbits(128), version=4).hex


def random_trait(rng: random.Random) -> Trait:
    return TRAITS[rng.randrange(len(TRAITS))]


def create_population(size: int, rng: Optional[random.Random] = None) -> List[Organism]:
    """
    Create a population of organisms with uniformly random traits.

    Args:
        size: Number of organisms to create (0 yields an empty list)
        rng: Random generator to draw traits and identifiers from

    Returns:
        List of freshly created organisms

    Raises:
        ValueError: If size is negative
    """
    if size < 0:
        raise ValueError(f"Population size cannot be negative: {size}")

    rng = rng or random.Random()
    return [
        Organism(organism_id=new_organism_id(rng), trait=random_trait(rng))
        for _ in range(size)
    ]


def count_traits(population: Iterable[Organism]) -> Dict[Trait, int]:
    """Count organisms per trait. All traits are present, even at zero."""
    counts = {trait: 0 for trait in TRAITS}
    for organism in population:
        counts[organism.trait] += 1
    return counts
