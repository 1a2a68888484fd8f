"""Walkthrough of causal multi-head attention with explicit matrix math and shapes.
Generates a text log at ./out/mha_shapes.txt.

Run from the repository root:
  python -m attention_core.demo_mha_shapes --T 5 --d_in 12 --d_out 12 --n_head 3
"""
import os
import argparse
import torch

from .config import AttentionConfig
from .functional import (project, split_heads, attention_scores, apply_causal_mask,
                         scale_scores, stable_softmax, aggregate, merge_heads, forward)

OUT_TXT = os.path.join(os.path.dirname(__file__), 'out', 'mha_shapes.txt')


def log(s):
    print(s)
    with open(OUT_TXT, 'a') as f:
        f.write(s + "\n")


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--B", type=int, default=1)
    p.add_argument("--T", type=int, default=5)
    p.add_argument("--d_in", type=int, default=12)
    p.add_argument("--d_out", type=int, default=12)
    p.add_argument("--n_head", type=int, default=3)
    p.add_argument("--seed", type=int, default=0)
    args = p.parse_args()

    cfg = AttentionConfig(args.d_in, args.d_out, args.n_head)
    B, T, H = args.B, args.T, cfg.num_heads

    # Reset file
    os.makedirs(os.path.dirname(OUT_TXT), exist_ok=True)
    open(OUT_TXT, 'w').close()

    torch.manual_seed(args.seed)
    x = torch.randn(B, T, cfg.d_in)
    Wq, Wk, Wv = (torch.randn(cfg.d_in, cfg.d_out) for _ in range(3))
    Wo = torch.randn(cfg.d_out, cfg.d_out)

    log(f"Input x:           {tuple(x.shape)} = (B,T,d_in)")
    q, k, v = project(x, Wq), project(x, Wk), project(x, Wv)
    log(f"x @ Wq/Wk/Wv:      q={tuple(q.shape)} k={tuple(k.shape)} v={tuple(v.shape)} = (B,T,d_out)")

    q, k, v = split_heads(q, H), split_heads(k, H), split_heads(v, H)
    log(f"split heads:       q={tuple(q.shape)} k={tuple(k.shape)} v={tuple(v.shape)} = (B,heads,T,d_head)")

    scores = attention_scores(q, k)
    log(f"scores q@k^T:      {tuple(scores.shape)} = (B,heads,T,T)")

    scores = apply_causal_mask(scores)
    log(f"causal mask:       {int(torch.isinf(scores[0, 0]).sum())} of {T*T} entries set to -inf per head")

    scores = scale_scores(scores, cfg.head_dim)
    log(f"scale 1/sqrt({cfg.head_dim}):    {cfg.scale:.4f}")

    weights = stable_softmax(scores, dim=-1)
    log(f"softmax(weights):  {tuple(weights.shape)} = (B,heads,T,T), row sums={weights[0, 0].sum(-1).tolist()}")

    ctx = aggregate(weights, v)
    log(f"context @v:        {tuple(ctx.shape)} = (B,heads,T,d_head)")

    out = merge_heads(ctx)
    log(f"merge heads:       {tuple(out.shape)} = (B,T,d_out)")

    out = project(out, Wo)
    log(f"final proj:        {tuple(out.shape)} = (B,T,d_out)")

    ref = forward(x, Wq, Wk, Wv, Wo, num_heads=H)
    log(f"matches forward(): {torch.allclose(out, ref, atol=1e-5)}")

    log("\nLegend:")
    log("  B=batch, T=sequence length, d_in=input width, d_out=projected width, heads=n_head, d_head=d_out/heads")
    log("  future keys (j > i) are masked before softmax, so each row only mixes the current and earlier tokens")


if __name__ == "__main__":
    main()
