import logging
from typing import List, Optional, Tuple

import torch
import torch.nn as nn
import torch.nn.functional as F
from tqdm import tqdm

from .config import TrainConfig
from .errors import InvalidArgument
from .training import build_optimizer, iter_batches, seeded_generator

logger = logging.getLogger(__name__)


class LinearRegression(nn.Module):
    """A single dense unit; trained on MSE its parameters converge to OLS."""

    def __init__(self, in_features: int) -> None:
        super().__init__()
        self.linear = nn.Linear(in_features, 1)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.linear(x).squeeze(-1)

    def coefficients(self) -> Tuple[torch.Tensor, torch.Tensor]:
        return self.linear.weight.detach().squeeze(0).clone(), self.linear.bias.detach().clone().squeeze(0)


def _check_xy(x: torch.Tensor, y: torch.Tensor) -> None:
    if x.dim() != 2:
        raise InvalidArgument(f"x must be (n, p), got shape {tuple(x.shape)}")
    if y.shape != (x.size(0),):
        raise InvalidArgument(f"y must be ({x.size(0)},), got shape {tuple(y.shape)}")


def ols_coefficients(x: torch.Tensor, y: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
    """Closed-form least squares with an intercept. Returns (slopes, intercept)."""
    _check_xy(x, y)
    design = torch.cat([x, torch.ones(x.size(0), 1, dtype=x.dtype, device=x.device)], dim=1)
    solution = torch.linalg.lstsq(design, y.unsqueeze(-1)).solution.squeeze(-1)
    return solution[:-1], solution[-1]


def fit_regression(
    model: LinearRegression,
    x: torch.Tensor,
    y: torch.Tensor,
    config: Optional[TrainConfig] = None,
    generator: Optional[torch.Generator] = None,
) -> List[float]:
    config = config or TrainConfig()
    _check_xy(x, y)
    generator = generator if generator is not None else seeded_generator(config.seed)
    optimizer = build_optimizer(model, lr=config.lr, weight_decay=config.weight_decay)

    history: List[float] = []
    for epoch in tqdm(range(config.epochs), desc="fit", disable=not config.progress):
        model.train()
        for idx in iter_batches(x.size(0), config.batch_size, config.shuffle, generator):
            loss = F.mse_loss(model(x[idx]), y[idx])
            optimizer.zero_grad()
            loss.backward()
            optimizer.step()

        with torch.no_grad():
            history.append(F.mse_loss(model(x), y).item())
        if config.log_every and (epoch + 1) % config.log_every == 0:
            logger.info("epoch %d/%d mse %.6f", epoch + 1, config.epochs, history[-1])
    return history
