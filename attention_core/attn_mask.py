from functools import lru_cache

import torch


@lru_cache(maxsize=32)
def causal_mask(T: int, device=None):
    """Bool mask, True above the diagonal (key j is in the future of query i).

    Shape (1, 1, T, T) so it broadcasts over batch and heads. Cached per
    (T, device); callers only read it (masked_fill returns a new tensor).
    """
    future = torch.ones((T, T), dtype=torch.bool, device=device).triu(diagonal=1)
    return future.view(1, 1, T, T)
