import pytest
import torch
from attention_core.functional import forward, forward_with_weights, stable_softmax
from attention_core.errors import HeadDivisibilityError


def _inputs(B=2, T=7, d_in=6, d_out=8, seed=0):
    g = torch.Generator().manual_seed(seed)
    x = torch.randn(B, T, d_in, generator=g)
    wq, wk, wv = (torch.randn(d_in, d_out, generator=g) for _ in range(3))
    wo = torch.randn(d_out, d_out, generator=g)
    return x, wq, wk, wv, wo


@pytest.mark.parametrize("H", [1, 2, 4])
def test_rows_sum_to_one_and_future_is_zero(H):
    x, wq, wk, wv, wo = _inputs()
    _, w = forward_with_weights(x, wq, wk, wv, wo, num_heads=H)
    if H == 1:
        w = w.unsqueeze(1)
    T = w.size(-1)
    future = torch.triu(torch.ones(T, T, dtype=torch.bool), diagonal=1)
    assert torch.allclose(w.sum(-1), torch.ones(w.shape[:-1]), atol=1e-5)
    assert (w[..., future] == 0).all()
    # every position attends to itself
    assert (w.diagonal(dim1=-2, dim2=-1) > 0).all()


def test_head_count_keeps_output_shape():
    x, wq, wk, wv, wo = _inputs(d_out=8)
    assert forward(x, wq, wk, wv, num_heads=1).shape == (2, 7, 8)
    assert forward(x, wq, wk, wv, wo, num_heads=8).shape == (2, 7, 8)
    with pytest.raises(HeadDivisibilityError):
        forward(x, wq, wk, wv, num_heads=3)


def test_inference_is_deterministic():
    x, wq, wk, wv, wo = _inputs()
    a = forward(x, wq, wk, wv, wo, num_heads=2, mode="inference", dropout_rate=0.5)
    b = forward(x, wq, wk, wv, wo, num_heads=2, mode="inference", dropout_rate=0.5)
    c = forward(x, wq, wk, wv, wo, num_heads=2)
    assert torch.equal(a, b)
    # dropout rate is ignored outside training
    assert torch.equal(a, c)


def test_scale_uses_head_dim():
    x, wq, wk, wv, _ = _inputs(B=1, T=4, d_out=8)
    _, w = forward_with_weights(x, wq, wk, wv, num_heads=2)
    q = (x @ wq).view(1, 4, 2, 4).transpose(1, 2)
    k = (x @ wk).view(1, 4, 2, 4).transpose(1, 2)
    scores = (q @ k.transpose(-2, -1)) / 2.0  # sqrt(d_head=4)
    scores = scores.masked_fill(torch.triu(torch.ones(4, 4, dtype=torch.bool), 1), float('-inf'))
    assert torch.allclose(w, torch.softmax(scores, dim=-1), atol=1e-6)


def test_stable_softmax_handles_large_scores():
    s = torch.tensor([[1000.0, 999.0, float('-inf')]])
    p = stable_softmax(s)
    assert torch.isfinite(p).all()
    assert p[0, 2] == 0
    assert torch.allclose(p.sum(-1), torch.ones(1))


def test_gradients_flow_to_weights():
    x, wq, wk, wv, wo = _inputs()
    for t in (wq, wk, wv, wo):
        t.requires_grad_(True)
    forward(x, wq, wk, wv, wo, num_heads=2).pow(2).mean().backward()
    assert all(torch.isfinite(t.grad).all() for t in (wq, wk, wv, wo))
