"""
Trait mutation applied to offspring at reproduction time.
"""

import random
from typing import Tuple

from ..entities import Trait

MUTATION_RATE = 0.06

# A mutating trait is redrawn uniformly from its neighbourhood. Medium can
# land anywhere, the extremes only step towards Medium (or stay put).
MUTATION_TABLE = {
    Trait.SMALL: (Trait.SMALL, Trait.MEDIUM),
    Trait.MEDIUM: (Trait.SMALL, Trait.MEDIUM, Trait.LARGE),
    Trait.LARGE: (Trait.MEDIUM, Trait.LARGE),
}


def mutate_trait(trait: Trait, rng: random.Random,
                 rate: float = MUTATION_RATE) -> Tuple[Trait, bool]:
    """
    Inherit a parent's trait, possibly mutated.

    Returns:
        Tuple of (offspring_trait, mutated). ``mutated`` reports that a
        mutation event fired, even when the redraw lands on the parent trait.
    """
    if rng.random() >= rate:
        return trait, False
    choices = MUTATION_TABLE[trait]
    return choices[rng.randrange(len(choices))], True
