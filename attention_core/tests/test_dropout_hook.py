import pytest
import torch
from attention_core.dropout_hook import build_dropout_hook, IdentityDropout, StochasticZero
from attention_core.functional import forward, forward_with_weights
from attention_core.multi_head import MultiHeadSelfAttention


def _inputs():
    g = torch.Generator().manual_seed(0)
    x = torch.randn(2, 8, 4, generator=g)
    wq, wk, wv = (torch.randn(4, 8, generator=g) for _ in range(3))
    return x, wq, wk, wv


def test_hook_selection():
    assert isinstance(build_dropout_hook("inference", 0.5, rng_seed=1), IdentityDropout)
    assert isinstance(build_dropout_hook("train", 0.0, rng_seed=1), IdentityDropout)
    assert isinstance(build_dropout_hook("train", 0.5, rng_seed=1), StochasticZero)
    with pytest.raises(ValueError):
        build_dropout_hook("eval", 0.5)


def test_survivors_are_rescaled():
    hook = build_dropout_hook("train", 0.5, rng_seed=0)
    y = hook(torch.ones(1000))
    assert set(y.unique().tolist()) <= {0.0, 2.0}
    # roughly half the entries dropped
    assert 350 < int((y == 0).sum()) < 650


def test_same_seed_same_output_different_seed_differs():
    x, wq, wk, wv = _inputs()
    a = forward(x, wq, wk, wv, num_heads=2, mode="train", dropout_rate=0.5, rng_seed=123)
    b = forward(x, wq, wk, wv, num_heads=2, mode="train", dropout_rate=0.5, rng_seed=123)
    c = forward(x, wq, wk, wv, num_heads=2, mode="train", dropout_rate=0.5, rng_seed=124)
    assert torch.equal(a, b)
    assert not torch.allclose(a, c)


def test_context_stage_leaves_weights_untouched():
    x, wq, wk, wv = _inputs()
    _, w_drop = forward_with_weights(x, wq, wk, wv, mode="train", dropout_rate=0.5,
                                     rng_seed=7, dropout_stage="context")
    _, w_ref = forward_with_weights(x, wq, wk, wv)
    assert torch.equal(w_drop, w_ref)


def test_weights_stage_zeroes_attention_entries():
    x, wq, wk, wv = _inputs()
    _, w = forward_with_weights(x, wq, wk, wv, mode="train", dropout_rate=0.5, rng_seed=7)
    T = w.size(-1)
    past = torch.tril(torch.ones(T, T, dtype=torch.bool))
    assert (w[..., past] == 0).any()


def test_module_uses_dropout_only_in_training():
    torch.manual_seed(0)
    mha = MultiHeadSelfAttention(d_in=4, d_out=8, n_head=2, dropout=0.5)
    x = torch.randn(1, 6, 4)
    mha.train()
    a, _ = mha(x, rng_seed=3)
    b, _ = mha(x, rng_seed=3)
    assert torch.equal(a, b)
    mha.eval()
    c, _ = mha(x)
    assert not torch.allclose(a, c)
