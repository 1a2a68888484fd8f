from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum

import torch

from .errors import ShapeMismatch, HeadDivisibilityError, InvalidDropoutRate


class Mode(str, Enum):
    TRAIN = "train"
    INFERENCE = "inference"


class DropoutStage(str, Enum):
    WEIGHTS = "weights"   # after softmax (step 6)
    CONTEXT = "context"   # after weights @ V (step 7)


def check_dropout_rate(rate: float) -> float:
    rate = float(rate)
    if not (0.0 <= rate < 1.0):
        raise InvalidDropoutRate(f"dropout rate must be in [0, 1), got {rate}")
    return rate


@dataclass(frozen=True)
class AttentionConfig:
    """Static shape/regularization settings for one attention layer.

    d_in:      input feature width
    d_out:     projected width (all heads together)
    num_heads: d_out must split evenly, head_dim = d_out // num_heads
    """
    d_in: int
    d_out: int
    num_heads: int = 1
    dropout_rate: float = 0.0
    dropout_stage: DropoutStage = DropoutStage.WEIGHTS

    def __post_init__(self):
        if self.d_in < 1 or self.d_out < 1:
            raise ShapeMismatch(f"d_in and d_out must be positive, got d_in={self.d_in} d_out={self.d_out}")
        if self.num_heads < 1:
            raise HeadDivisibilityError(f"num_heads must be >= 1, got {self.num_heads}")
        if self.d_out % self.num_heads != 0:
            raise HeadDivisibilityError(
                f"d_out={self.d_out} is not divisible by num_heads={self.num_heads}"
            )
        check_dropout_rate(self.dropout_rate)
        # frozen dataclass: coerce plain strings through object.__setattr__
        object.__setattr__(self, "dropout_stage", DropoutStage(self.dropout_stage))

    @property
    def head_dim(self) -> int:
        return self.d_out // self.num_heads

    @property
    def scale(self) -> float:
        # divide scores by sqrt of the width actually used in each dot product
        return 1.0 / math.sqrt(self.head_dim)


def check_inputs(x: torch.Tensor, w_q: torch.Tensor, w_k: torch.Tensor, w_v: torch.Tensor,
                 w_o: torch.Tensor | None = None, num_heads: int = 1,
                 dropout_rate: float = 0.0,
                 dropout_stage: DropoutStage | str = DropoutStage.WEIGHTS) -> AttentionConfig:
    """Validate a forward call and return the resolved config.

    x: (B, T, D_in); w_q/w_k/w_v: (D_in, D_out); w_o: (D_out, D_out) or None.
    """
    if x.dim() != 3:
        raise ShapeMismatch(f"input must be (B, T, D_in), got shape {tuple(x.shape)}")
    if x.size(1) < 1:
        raise ShapeMismatch(f"sequence length must be >= 1, got shape {tuple(x.shape)}")
    d_in = x.size(-1)
    for name, w in (("w_q", w_q), ("w_k", w_k), ("w_v", w_v)):
        if w.dim() != 2:
            raise ShapeMismatch(f"{name} must be 2-D (D_in, D_out), got shape {tuple(w.shape)}")
        if w.size(0) != d_in:
            raise ShapeMismatch(f"{name} has {w.size(0)} rows but input has D_in={d_in}")
    d_out = w_q.size(1)
    if w_k.size(1) != d_out or w_v.size(1) != d_out:
        raise ShapeMismatch(
            f"w_q/w_k/w_v widths differ: {w_q.size(1)}, {w_k.size(1)}, {w_v.size(1)}"
        )
    if w_o is not None and tuple(w_o.shape) != (d_out, d_out):
        raise ShapeMismatch(f"w_o must be ({d_out}, {d_out}), got {tuple(w_o.shape)}")
    return AttentionConfig(d_in, d_out, num_heads, dropout_rate, dropout_stage)
