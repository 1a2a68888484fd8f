import os
import numpy as np
import matplotlib.pyplot as plt

OUT_DIR = os.path.join(os.path.dirname(__file__), 'out')


def _ensure_out(out_dir: str):
    os.makedirs(out_dir, exist_ok=True)


def save_matrix_heatmap(mat: np.ndarray, title: str, filename: str, xlabel: str = 'Key pos',
                        ylabel: str = 'Query pos', out_dir: str = OUT_DIR) -> str:
    """Single (T, T) attention map. Keeps matplotlib defaults for colors."""
    _ensure_out(out_dir)
    plt.figure()
    plt.imshow(mat, aspect='auto')
    plt.title(title)
    plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.colorbar()
    path = os.path.join(out_dir, filename)
    plt.savefig(path, bbox_inches='tight')
    plt.close()
    print(f"Saved: {path}")
    return path


def save_attention_heads_grid(weights: np.ndarray, filename: str, title_prefix: str = "Head",
                              out_dir: str = OUT_DIR) -> str:
    """Plot all heads of the first batch element in one grid figure.
    weights: (B, H, T, T)
    """
    _ensure_out(out_dir)
    _, H, T, _ = weights.shape
    cols = min(4, H)
    rows = (H + cols - 1) // cols
    plt.figure(figsize=(3*cols, 3*rows))
    for h in range(H):
        ax = plt.subplot(rows, cols, h+1)
        ax.imshow(weights[0, h], aspect='auto', vmin=0.0, vmax=1.0)
        ax.set_title(f"{title_prefix} {h}")
        ax.set_xlabel('Key pos')
        ax.set_ylabel('Query pos')
    plt.tight_layout()
    path = os.path.join(out_dir, filename)
    plt.savefig(path, bbox_inches='tight')
    plt.close()
    print(f"Saved: {path}")
    return path
