from __future__ import annotations
import torch
import torch.nn as nn

from .config import AttentionConfig, Mode, DropoutStage
from .functional import forward_with_weights


class SingleHeadSelfAttention(nn.Module):
    """1.3 Single-head causal attention (explicit shapes).

    Owns W_q/W_k/W_v as bias-free Linear layers and hands their (D_in, D_out)
    views to the functional core. Dropout runs only while self.training.
    """
    def __init__(self, d_in: int, d_out: int, dropout: float = 0.0,
                 dropout_stage: DropoutStage = DropoutStage.WEIGHTS, trace_shapes: bool = False):
        super().__init__()
        self.cfg = AttentionConfig(d_in, d_out, num_heads=1, dropout_rate=dropout, dropout_stage=dropout_stage)
        self.q = nn.Linear(d_in, d_out, bias=False)
        self.k = nn.Linear(d_in, d_out, bias=False)
        self.v = nn.Linear(d_in, d_out, bias=False)
        self.trace_shapes = trace_shapes

    def forward(self, x: torch.Tensor, rng_seed: int | None = None):  # x: (B, T, d_in)
        # nn.Linear stores (out, in); the core expects (in, out)
        out, w = forward_with_weights(
            x, self.q.weight.t(), self.k.weight.t(), self.v.weight.t(),
            num_heads=1,
            mode=Mode.TRAIN if self.training else Mode.INFERENCE,
            dropout_rate=self.cfg.dropout_rate,
            rng_seed=rng_seed,
            dropout_stage=self.cfg.dropout_stage,
        )
        if self.trace_shapes:
            print(f"x {tuple(x.shape)}  weights {tuple(w.shape)}  out {tuple(out.shape)}")
        return out, w
