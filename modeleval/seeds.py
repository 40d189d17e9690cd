# Explicit seed derivation
# Nested randomized steps get sub-seeds computed from one run seed, never global state

MAX_SEED = 2 ** 32


def derive_seed(seed, index):
    """
    Sub-seed for the index-th randomized step (fold, bootstrap draw, ...).

    seed + index, wrapped into the range numpy's RandomState accepts, so a
    single step can be reproduced without replaying the others.
    """
    return int((seed + index) % MAX_SEED)
