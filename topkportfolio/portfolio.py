import logging
from typing import Optional

import torch
import torch.nn as nn

from .config import PortfolioConfig
from .differentiable_topk import SoftTopKSelector
from .errors import InvalidArgument
from .topk_selector import TopKSelector

logger = logging.getLogger(__name__)


def portfolio_returns(weights: torch.Tensor, returns: torch.Tensor) -> torch.Tensor:
    """Realized return of each allocation row: sum_i w_i * r_i."""
    if weights.shape != returns.shape:
        raise InvalidArgument(f"weights {tuple(weights.shape)} and returns {tuple(returns.shape)} must match")
    return (weights * returns).sum(dim=-1)


class PortfolioModel(nn.Module):
    """Scores assets, softmaxes the scores and keeps the top `output_dim`."""

    def __init__(
        self,
        num_assets: int,
        output_dim: int,
        num_features: Optional[int] = None,
        hidden_dim: Optional[int] = None,
        renormalize: bool = False,
        selection: str = "hard",
        tau: float = 1.0,
    ) -> None:
        super().__init__()
        if num_features is not None and num_features < 1:
            raise InvalidArgument(f"num_features must be positive, got {num_features}")
        if num_assets < 1:
            raise InvalidArgument(f"num_assets must be positive, got {num_assets}")
        if not 1 <= output_dim <= num_assets:
            raise InvalidArgument(f"output_dim must lie in [1, {num_assets}], got {output_dim}")
        self.num_assets = num_assets
        self.output_dim = output_dim
        self.num_features = num_assets if num_features is None else num_features

        if hidden_dim:
            self.score = nn.Sequential(
                nn.Linear(self.num_features, hidden_dim),
                nn.GELU(),
                nn.Linear(hidden_dim, num_assets),
            )
        else:
            self.score = nn.Linear(self.num_features, num_assets)

        if selection == "hard":
            self.selector = TopKSelector(output_dim, renormalize)
        elif selection == "soft":
            self.selector = SoftTopKSelector(output_dim, tau=tau, renormalize=renormalize)
        else:
            raise InvalidArgument(f"selection must be 'hard' or 'soft', got {selection!r}")
        logger.debug("PortfolioModel: %d assets, keep %d (%s)", num_assets, output_dim, selection)

    @classmethod
    def from_config(cls, config: PortfolioConfig) -> "PortfolioModel":
        return cls(
            num_assets=config.num_assets,
            output_dim=config.output_dim,
            num_features=config.num_features,
            hidden_dim=config.hidden_dim,
            renormalize=config.renormalize,
            selection=config.selection,
            tau=config.tau,
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        scores = self.score(x)  # (B, N)
        weights = scores.softmax(dim=-1)
        return self.selector(weights)

    @torch.no_grad()
    def selected_assets(self, x: torch.Tensor) -> torch.Tensor:
        """Indices of the kept assets per row, heaviest first. Shape (B, k)."""
        weights = self(x)
        order = torch.sort(weights, dim=-1, descending=True, stable=True).indices
        return order[..., : self.output_dim]
