import pytest
import torch

from topkportfolio import InvalidArgument, LinearRegression, TrainConfig, fit_regression, init_weights, ols_coefficients
from topkportfolio import seeded_generator


def make_data(noise=0.01, seed=0, dtype=torch.float32):
    g = seeded_generator(seed)
    x = torch.randn(512, 3, generator=g, dtype=dtype)
    beta = torch.tensor([1.5, -2.0, 0.5], dtype=dtype)
    y = x @ beta + 0.3 + noise * torch.randn(512, generator=g, dtype=dtype)
    return x, y, beta


def test_ols_recovers_noiseless_coefficients():
    x, y, beta = make_data(noise=0.0, dtype=torch.float64)
    slopes, intercept = ols_coefficients(x, y)
    assert torch.allclose(slopes, beta, atol=1e-8)
    assert torch.isclose(intercept, torch.tensor(0.3, dtype=torch.float64), atol=1e-8)


def test_single_layer_network_matches_ols():
    x, y, _ = make_data()
    model = LinearRegression(3)
    init_weights(model, seeded_generator(0))
    config = TrainConfig(epochs=600, batch_size=512, lr=0.02, shuffle=False, log_every=100)

    history = fit_regression(model, x, y, config)

    slopes, intercept = model.coefficients()
    ols_slopes, ols_intercept = ols_coefficients(x, y)
    assert history[-1] < history[0]
    assert torch.allclose(slopes, ols_slopes, atol=5e-2)
    assert torch.isclose(intercept, ols_intercept, atol=5e-2)


def test_shape_validation():
    x, y, _ = make_data()
    with pytest.raises(InvalidArgument):
        ols_coefficients(x, y[:-1])
    with pytest.raises(InvalidArgument):
        fit_regression(LinearRegression(3), x[:, 0], y)
