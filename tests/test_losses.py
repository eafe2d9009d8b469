import math

import pytest
import torch

from topkportfolio import InvalidArgument, sharpe_ratio, sharpe_ratio_loss


def test_sharpe_ratio_known_value():
    returns = torch.tensor([1.0, 3.0])
    assert torch.isclose(sharpe_ratio(returns), torch.tensor(2.0))
    assert torch.isclose(sharpe_ratio(returns, periods_per_year=4.0), torch.tensor(4.0))


def test_loss_is_negated_mean_sharpe():
    returns = torch.tensor([[1.0, 3.0], [-1.0, 1.0]])
    ratios = sharpe_ratio(returns)
    assert ratios.shape == (2,)
    assert torch.isclose(sharpe_ratio_loss(returns), -ratios.mean())


def test_constant_returns_stay_finite():
    ratio = sharpe_ratio(torch.full((10,), 0.01))
    assert math.isfinite(ratio.item())


def test_needs_two_observations():
    with pytest.raises(InvalidArgument):
        sharpe_ratio(torch.tensor([0.1]))
    with pytest.raises(InvalidArgument):
        sharpe_ratio_loss(torch.tensor(0.1))


def test_loss_is_differentiable():
    returns = torch.tensor([0.01, -0.02, 0.03, 0.005], requires_grad=True)
    sharpe_ratio_loss(returns).backward()
    assert returns.grad is not None
    assert torch.isfinite(returns.grad).all()
