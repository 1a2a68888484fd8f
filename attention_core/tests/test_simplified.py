import torch
from attention_core.simplified import simplified_self_attention

# "Your journey starts with one step", 3-d toy embeddings
INPUTS = torch.tensor([[0.43, 0.15, 0.89],
                       [0.55, 0.87, 0.66],
                       [0.57, 0.85, 0.64],
                       [0.22, 0.58, 0.33],
                       [0.77, 0.25, 0.10],
                       [0.05, 0.80, 0.55]])


def test_simplified_matches_explicit_loop():
    ctx, w = simplified_self_attention(INPUTS)
    assert ctx.shape == (1, 6, 3)
    query = INPUTS[1]
    scores = torch.stack([torch.dot(x_i, query) for x_i in INPUTS])
    weights = torch.softmax(scores, dim=0)
    expected = sum(weights[i] * INPUTS[i] for i in range(6))
    assert torch.allclose(w[0, 1], weights, atol=1e-6)
    assert torch.allclose(ctx[0, 1], expected, atol=1e-6)


def test_simplified_is_not_causal():
    _, w = simplified_self_attention(INPUTS)
    assert (w[0, 0, 1:] > 0).all()
    assert torch.allclose(w.sum(-1), torch.ones(1, 6))
