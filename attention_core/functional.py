"""Causal scaled dot-product attention, one function per step.

Dimensions (H heads, D_h = D_out // H):
  x:        (B, T, D_in)
  W_q/k/v:  (D_in, D_out)
  q,k,v:    (B, T, D_out)   -> split -> (B, H, T, D_h)
  scores:   (B, H, T, T)    = q @ k^T, future keys -> -inf, / sqrt(D_h)
  weights:  (B, H, T, T)    = softmax over the key axis
  ctx:      (B, H, T, D_h)  = weights @ v
  merge:    (B, T, D_out)   -> optional @ W_o
"""
from __future__ import annotations
import torch

from .attn_mask import causal_mask
from .config import Mode, DropoutStage, check_inputs
from .dropout_hook import build_dropout_hook


def project(x: torch.Tensor, w: torch.Tensor) -> torch.Tensor:
    # (B,T,D_in) @ (D_in,D_out) -> (B,T,D_out), broadcast over B
    return torch.matmul(x, w)


def split_heads(t: torch.Tensor, n_head: int) -> torch.Tensor:
    B, T, C = t.shape
    return t.view(B, T, n_head, C // n_head).transpose(1, 2)  # (B,H,T,D_h)


def merge_heads(t: torch.Tensor) -> torch.Tensor:
    B, H, T, D = t.shape
    return t.transpose(1, 2).contiguous().view(B, T, H * D)  # heads concatenated in order


def attention_scores(q: torch.Tensor, k: torch.Tensor) -> torch.Tensor:
    return torch.matmul(q, k.transpose(-2, -1))  # (B,H,T,T)


def apply_causal_mask(scores: torch.Tensor) -> torch.Tensor:
    T = scores.size(-1)
    mask = causal_mask(T, device=scores.device)
    return scores.masked_fill(mask, float('-inf'))


def scale_scores(scores: torch.Tensor, d: int) -> torch.Tensor:
    return scores / (d ** 0.5)


def stable_softmax(scores: torch.Tensor, dim: int = -1) -> torch.Tensor:
    """Softmax with the row max subtracted first.

    -inf entries come out as exactly 0 since exp(-inf) == 0. A row must hold
    at least one finite score; the causal mask guarantees that via the diagonal.
    """
    row_max = scores.amax(dim=dim, keepdim=True)
    e = torch.exp(scores - row_max)
    return e / e.sum(dim=dim, keepdim=True)


def aggregate(weights: torch.Tensor, v: torch.Tensor) -> torch.Tensor:
    return torch.matmul(weights, v)  # (B,H,T,D_h)


def forward_with_weights(x: torch.Tensor,
                         w_q: torch.Tensor, w_k: torch.Tensor, w_v: torch.Tensor,
                         w_o: torch.Tensor | None = None,
                         num_heads: int = 1,
                         mode: Mode | str = Mode.INFERENCE,
                         dropout_rate: float = 0.0,
                         rng_seed: int | None = None,
                         dropout_stage: DropoutStage | str = DropoutStage.WEIGHTS):
    """Run causal attention and also return the attention weights.

    Returns (out, weights): out (B,T,D_out); weights (B,T,T) when num_heads == 1,
    else (B,H,T,T). All validation happens before any tensor math.
    """
    cfg = check_inputs(x, w_q, w_k, w_v, w_o, num_heads, dropout_rate, dropout_stage)
    dropout = build_dropout_hook(mode, cfg.dropout_rate, rng_seed)
    H = cfg.num_heads

    q = split_heads(project(x, w_q), H)
    k = split_heads(project(x, w_k), H)
    v = split_heads(project(x, w_v), H)

    scores = attention_scores(q, k)
    scores = apply_causal_mask(scores)
    scores = scale_scores(scores, cfg.head_dim)
    w = stable_softmax(scores, dim=-1)
    if cfg.dropout_stage is DropoutStage.WEIGHTS:
        w = dropout(w)

    ctx = aggregate(w, v)
    if cfg.dropout_stage is DropoutStage.CONTEXT:
        ctx = dropout(ctx)

    out = merge_heads(ctx)
    if w_o is not None:
        out = project(out, w_o)
    if H == 1:
        w = w.squeeze(1)
    return out, w


def forward(x, w_q, w_k, w_v, w_o=None, num_heads=1, mode=Mode.INFERENCE,
            dropout_rate=0.0, rng_seed=None, dropout_stage=DropoutStage.WEIGHTS) -> torch.Tensor:
    """Causal multi-head attention: (B,T,D_in) -> (B,T,D_out)."""
    out, _ = forward_with_weights(x, w_q, w_k, w_v, w_o, num_heads, mode,
                                  dropout_rate, rng_seed, dropout_stage)
    return out
