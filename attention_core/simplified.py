"""Simplified self-attention without trainable weights.

Every token is its own query, key and value:
  scores:  (B, T, T) = x @ x^T      (no scaling, no mask)
  weights: (B, T, T) = softmax over the last dim
  context: (B, T, d) = weights @ x
"""
import torch

from .errors import ShapeMismatch
from .functional import stable_softmax


def simplified_self_attention(x: torch.Tensor):
    if x.dim() == 2:
        x = x.unsqueeze(0)  # single sequence (T, d) -> (1, T, d)
    if x.dim() != 3:
        raise ShapeMismatch(f"expected (T, d) or (B, T, d), got shape {tuple(x.shape)}")
    scores = torch.matmul(x, x.transpose(-2, -1))
    weights = stable_softmax(scores, dim=-1)
    return torch.matmul(weights, x), weights
