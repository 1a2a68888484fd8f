from __future__ import annotations
import torch
import torch.nn as nn

from .config import AttentionConfig, Mode, DropoutStage
from .functional import forward_with_weights
from .single_head import SingleHeadSelfAttention


class MultiHeadSelfAttention(nn.Module):
    """1.4 Multi-head causal attention with weight splits.

    Dimensions (before masking):
      x:      (B, T, d_in)
      q,k,v:  (B, T, d_out)
      split→  (B, n_head, T, d_head)      where d_head = d_out // n_head
      scores: (B, n_head, T, T) = q @ k^T / sqrt(d_head)
      weights:(B, n_head, T, T) = softmax(scores)
      ctx:    (B, n_head, T, d_head) = weights @ v
      merge:  (B, T, n_head*d_head) = (B, T, d_out)
      proj:   (B, T, d_out)              (skipped when out_proj=False)
    """
    def __init__(self, d_in: int, d_out: int, n_head: int, dropout: float = 0.0,
                 out_proj: bool = True, dropout_stage: DropoutStage = DropoutStage.WEIGHTS,
                 trace_shapes: bool = False):
        super().__init__()
        self.cfg = AttentionConfig(d_in, d_out, num_heads=n_head, dropout_rate=dropout, dropout_stage=dropout_stage)
        self.n_head = n_head
        self.d_head = self.cfg.head_dim
        self.q = nn.Linear(d_in, d_out, bias=False)
        self.k = nn.Linear(d_in, d_out, bias=False)
        self.v = nn.Linear(d_in, d_out, bias=False)
        self.proj = nn.Linear(d_out, d_out, bias=False) if out_proj else None
        self.trace_shapes = trace_shapes

    def forward(self, x: torch.Tensor, rng_seed: int | None = None):  # (B,T,d_in)
        w_o = self.proj.weight.t() if self.proj is not None else None
        out, w = forward_with_weights(
            x, self.q.weight.t(), self.k.weight.t(), self.v.weight.t(), w_o,
            num_heads=self.n_head,
            mode=Mode.TRAIN if self.training else Mode.INFERENCE,
            dropout_rate=self.cfg.dropout_rate,
            rng_seed=rng_seed,
            dropout_stage=self.cfg.dropout_stage,
        )
        if self.trace_shapes:
            print("x:", tuple(x.shape), "heads:", self.n_head, "d_head:", self.d_head)
            print("weights:", tuple(w.shape), "out:", tuple(out.shape))
        return out, w


class MultiHeadAttentionWrapper(nn.Module):
    """Stack of independent single heads, outputs concatenated along features.

    Slower than the weight-split version, but each head is an obvious
    separate computation; handy as a reference for head merging.
    """
    def __init__(self, d_in: int, d_head: int, n_head: int, dropout: float = 0.0,
                 dropout_stage: DropoutStage = DropoutStage.WEIGHTS):
        super().__init__()
        self.heads = nn.ModuleList(
            [SingleHeadSelfAttention(d_in, d_head, dropout, dropout_stage) for _ in range(n_head)]
        )

    def forward(self, x: torch.Tensor, rng_seed: int | None = None):
        outs, ws = [], []
        for h, head in enumerate(self.heads):
            # distinct stream per head so heads don't share a dropout mask
            seed = None if rng_seed is None else rng_seed + h
            out, w = head(x, rng_seed=seed)
            outs.append(out)
            ws.append(w)
        return torch.cat(outs, dim=-1), torch.stack(ws, dim=1)  # (B,T,H*d_head), (B,H,T,T)
