"""Top-k sparse portfolio selection models."""

from .config import PortfolioConfig, TrainConfig, load_config
from .differentiable_topk import SoftTopKSelector, soft_topk_mask
from .errors import InvalidArgument
from .losses import sharpe_ratio, sharpe_ratio_loss
from .portfolio import PortfolioModel, portfolio_returns
from .regression import LinearRegression, fit_regression, ols_coefficients
from .topk_selector import TopKSelector, TopKSelectorConfig, select, selection_mask
from .training import build_optimizer, init_weights, iter_batches, seeded_generator, train_portfolio

__all__ = [
    "InvalidArgument",
    "LinearRegression",
    "PortfolioConfig",
    "PortfolioModel",
    "SoftTopKSelector",
    "TopKSelector",
    "TopKSelectorConfig",
    "TrainConfig",
    "build_optimizer",
    "fit_regression",
    "init_weights",
    "iter_batches",
    "load_config",
    "ols_coefficients",
    "portfolio_returns",
    "seeded_generator",
    "select",
    "selection_mask",
    "sharpe_ratio",
    "sharpe_ratio_loss",
    "soft_topk_mask",
    "train_portfolio",
]
