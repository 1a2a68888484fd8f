from __future__ import annotations
import time
from pathlib import Path
from typing import Any, Optional

import torch


def attention_entropy(weights: torch.Tensor) -> torch.Tensor:
    """Mean entropy (nats) of each head's attention rows. weights: (B,H,T,T) -> (H,)"""
    p = weights.clamp_min(1e-12)
    ent = -(weights * p.log()).sum(dim=-1)  # masked entries contribute 0
    return ent.mean(dim=(0, 2))


class NoopLogger:
    def log(self, step: Optional[int] = None, **kwargs):
        pass
    def log_attention(self, tag: str, weights: torch.Tensor, step: Optional[int] = None):
        pass
    def close(self):
        pass


class TBLogger(NoopLogger):
    """
    TensorBoard logging for attention runs:
      - logger.log(step=..., name=value)            scalars, or histograms for multi-element tensors
      - logger.log_attention("attn", w, step)       per-head entropy scalars, weight histogram, heatmaps
    """
    def __init__(self, out_dir: str, flush_secs: int = 10, run_name: str | None = None):
        self.w = None
        run_name = run_name or time.strftime("%Y%m%d-%H%M%S")
        run_dir = Path(out_dir) / run_name
        run_dir.mkdir(parents=True, exist_ok=True)
        try:
            from torch.utils.tensorboard import SummaryWriter
            self.w = SummaryWriter(log_dir=str(run_dir), flush_secs=flush_secs)
        except ImportError as e:
            print(f"[TBLogger] TensorBoard not available: {e}. Logging disabled.")
        self.run_dir = str(run_dir)

    def log(self, step: Optional[int] = None, **kv: Any):
        if not self.w: return
        for k, v in kv.items():
            if isinstance(v, torch.Tensor) and v.numel() > 1:
                self.w.add_histogram(k, v.detach().cpu(), global_step=step)
            else:
                self.w.add_scalar(k, float(v), global_step=step)

    def log_attention(self, tag: str, weights: torch.Tensor, step: Optional[int] = None):
        """weights: (B,H,T,T) or (B,T,T). Heatmaps are taken from batch element 0."""
        if not self.w: return
        w = weights.detach().cpu()
        if w.dim() == 3:
            w = w.unsqueeze(1)
        self.w.add_histogram(f"{tag}/weights", w, global_step=step)
        for h, ent in enumerate(attention_entropy(w).tolist()):
            self.w.add_scalar(f"{tag}/entropy/head{h}", ent, global_step=step)
            self.w.add_image(f"{tag}/head{h}", w[0, h].unsqueeze(0), global_step=step, dataformats="CHW")

    def close(self):
        if self.w:
            self.w.close()


def init_logger(which: str, out_dir: str = "runs/attention"):
    if which == 'tensorboard':
        tb = TBLogger(out_dir)
        return tb if tb.w is not None else NoopLogger()
    return NoopLogger()
