import pytest
import torch

from topkportfolio import InvalidArgument, PortfolioModel, SoftTopKSelector, selection_mask, soft_topk_mask


def test_small_tau_approaches_hard_mask():
    w = torch.tensor([[0.05, 0.30, 0.40, 0.05, 0.20]])
    soft = soft_topk_mask(w, 3, tau=0.01)
    assert torch.allclose(soft, selection_mask(w, 3).float(), atol=1e-2)


def test_membership_is_bounded():
    w = torch.randn(4, 9, generator=torch.Generator().manual_seed(0)).softmax(dim=-1)
    soft = soft_topk_mask(w, 4, tau=0.5)
    assert soft.shape == w.shape
    assert torch.all(soft >= 0) and torch.all(soft <= 1)


def test_selector_is_differentiable():
    w = torch.randn(2, 6, generator=torch.Generator().manual_seed(1)).softmax(dim=-1).requires_grad_()
    SoftTopKSelector(2, tau=0.5)(w).sum().backward()
    assert w.grad is not None
    assert torch.isfinite(w.grad).all()


def test_invalid_arguments():
    w = torch.tensor([[0.2, 0.3, 0.5]])
    with pytest.raises(InvalidArgument):
        soft_topk_mask(w, 4)
    with pytest.raises(InvalidArgument):
        soft_topk_mask(w, 2, tau=0.0)


def test_portfolio_model_soft_selection():
    model = PortfolioModel(num_assets=5, output_dim=2, selection="soft", tau=0.1, renormalize=True)
    x = torch.randn(3, 5, generator=torch.Generator().manual_seed(2))
    w = model(x)
    assert w.shape == (3, 5)
    assert torch.allclose(w.sum(dim=-1), torch.ones(3), atol=1e-4)


def test_selector_rejects_non_integer_output_dim():
    with pytest.raises(InvalidArgument):
        SoftTopKSelector(2.0)
    with pytest.raises(InvalidArgument):
        SoftTopKSelector(True)
    with pytest.raises(InvalidArgument):
        SoftTopKSelector(0)
