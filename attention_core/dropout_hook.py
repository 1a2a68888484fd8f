from __future__ import annotations
import torch

from .config import Mode, check_dropout_rate


class IdentityDropout:
    """Inference-mode hook (or rate == 0): returns its input untouched."""
    rate = 0.0

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        return x


class StochasticZero:
    """Inverted dropout with its own RNG.

    Each entry is zeroed with probability `rate`; survivors are scaled by
    1/(1-rate) so the expected value is unchanged. With a seeded generator
    the same call produces the same mask every time.
    """
    def __init__(self, rate: float, generator: torch.Generator | None = None):
        self.rate = check_dropout_rate(rate)
        self.generator = generator

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        # draw on CPU so a CPU generator works for any device
        u = torch.rand(x.shape, generator=self.generator, dtype=torch.float32)
        keep = (u >= self.rate).to(device=x.device)
        return x * keep.to(x.dtype) / (1.0 - self.rate)


def build_dropout_hook(mode: Mode | str, rate: float, rng_seed: int | None = None):
    rate = check_dropout_rate(rate)
    if Mode(mode) is Mode.INFERENCE or rate == 0.0:
        return IdentityDropout()
    g = None
    if rng_seed is not None:
        g = torch.Generator()
        g.manual_seed(int(rng_seed))
    return StochasticZero(rate, g)
