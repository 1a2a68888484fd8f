"""Visualize causal multi-head attention weights per head (grid).

  python -m attention_core.demo_visualize_multi_head --n_head 3 --tensorboard
"""
import argparse
import torch

from .multi_head import MultiHeadSelfAttention
from .vis_utils import save_attention_heads_grid
from .logger import init_logger


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--T", type=int, default=5)
    p.add_argument("--d_model", type=int, default=12)
    p.add_argument("--n_head", type=int, default=3)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--tensorboard", action="store_true", help="also log weights to ./runs/attention")
    args = p.parse_args()

    torch.manual_seed(args.seed)
    x = torch.randn(1, args.T, args.d_model)
    attn = MultiHeadSelfAttention(args.d_model, args.d_model, args.n_head).eval()

    with torch.no_grad():
        out, w = attn(x)  # w: (B, H, T, T)

    save_attention_heads_grid(w.cpu().numpy(), filename="multi_head_attn_grid.png")

    logger = init_logger('tensorboard' if args.tensorboard else 'none')
    logger.log_attention("attn", w, step=0)
    logger.log(step=0, out_norm=out.norm().item())
    logger.close()


if __name__ == "__main__":
    main()
