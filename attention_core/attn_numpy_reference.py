"""1.2 Causal attention from first principles with explicit loops (NumPy only).

Every (batch, head) pair is computed on its own, one query row at a time,
so the batched PyTorch path can be checked against it unit by unit.
Run as a script to trace the tiny example (T=3, d_in=4, d_out=2, one head).

Dimensions summary (single head)
--------------------------------
X:          (B=1, T=3, d_in=4)
Wq/Wk/Wv:   (d_in=4, d_out=2)
Q,K,V:      (1, 3, 2)
Scores:     (1, 3, 3)   = Q @ K^T / sqrt(d_head), future keys = -inf
Weights:    (1, 3, 3)   = softmax over last dim
Output:     (1, 3, 2)   = Weights @ V
"""
import math
import numpy as np

# Toy inputs (batch=1, seq=3, d_in=4)
X = np.array([[[0.1, 0.2, 0.3, 0.4],
               [0.5, 0.4, 0.3, 0.2],
               [0.0, 0.1, 0.0, 0.1]]], dtype=np.float32)

# Weight matrices (learned in real models). We fix numbers for determinism.
Wq = np.array([[ 0.2, -0.1],
               [ 0.0,  0.1],
               [ 0.1,  0.2],
               [-0.1,  0.0]], dtype=np.float32)
Wk = np.array([[ 0.1,  0.1],
               [ 0.0, -0.1],
               [ 0.2,  0.0],
               [ 0.0,  0.2]], dtype=np.float32)
Wv = np.array([[ 0.1,  0.0],
               [-0.1,  0.1],
               [ 0.2, -0.1],
               [ 0.0,  0.2]], dtype=np.float32)


def _attend_unit(q, k, v):
    """One (batch, head) unit. q,k,v: (T, d_head) -> out (T, d_head), weights (T, T)."""
    T, d = q.shape
    weights = np.zeros((T, T))
    out = np.zeros((T, v.shape[1]))
    for i in range(T):
        # only keys j <= i exist for query i
        row = np.array([np.dot(q[i], k[j]) / math.sqrt(d) for j in range(i + 1)])
        e = np.exp(row - row.max())
        p = e / e.sum()
        weights[i, :i + 1] = p
        for j in range(i + 1):
            out[i] += p[j] * v[j]
    return out, weights


def reference_forward(x, wq, wk, wv, wo=None, num_heads=1):
    """Loop-based causal attention in float64. Returns (out (B,T,d_out), weights (B,H,T,T))."""
    x = np.asarray(x, dtype=np.float64)
    Q, K, V = x @ np.asarray(wq, np.float64), x @ np.asarray(wk, np.float64), x @ np.asarray(wv, np.float64)
    B, T, d_out = Q.shape
    d_head = d_out // num_heads
    out = np.zeros((B, T, d_out))
    weights = np.zeros((B, num_heads, T, T))
    for b in range(B):
        for h in range(num_heads):
            cols = slice(h * d_head, (h + 1) * d_head)
            o, w = _attend_unit(Q[b, :, cols], K[b, :, cols], V[b, :, cols])
            out[b, :, cols] = o
            weights[b, h] = w
    if wo is not None:
        out = out @ np.asarray(wo, np.float64)
    return out, weights


if __name__ == "__main__":
    np.set_printoptions(precision=4, suppress=True)
    Q, K, V = X @ Wq, X @ Wk, X @ Wv
    print("Q shape:", Q.shape, "\nQ=\n", Q[0])
    print("K shape:", K.shape, "\nK=\n", K[0])
    print("V shape:", V.shape, "\nV=\n", V[0])

    out, weights = reference_forward(X, Wq, Wk, Wv)
    print("Weights shape:", weights[:, 0].shape, "\nAttention Weights (causal)=\n", weights[0, 0])
    print("Output shape:", out.shape, "\nOutput=\n", out[0])
