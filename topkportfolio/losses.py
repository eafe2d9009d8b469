import math

import torch

from .errors import InvalidArgument


def sharpe_ratio(returns: torch.Tensor, periods_per_year: float = 1.0, eps: float = 1e-8) -> torch.Tensor:
    """Sharpe ratio of a return series along its last axis.

    Uses the population standard deviation; `periods_per_year` annualizes
    (252 for daily returns, 12 for monthly).
    """
    if returns.dim() == 0 or returns.size(-1) < 2:
        raise InvalidArgument("sharpe ratio needs at least two observations")
    mean = returns.mean(dim=-1)
    std = returns.std(dim=-1, correction=0)
    return mean / (std + eps) * math.sqrt(periods_per_year)


def sharpe_ratio_loss(returns: torch.Tensor, periods_per_year: float = 1.0, eps: float = 1e-8) -> torch.Tensor:
    return -sharpe_ratio(returns, periods_per_year=periods_per_year, eps=eps).mean()
