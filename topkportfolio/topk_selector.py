import logging
import numbers
from dataclasses import dataclass
from typing import Sequence, Union

import torch
import torch.nn as nn

from .errors import InvalidArgument

logger = logging.getLogger(__name__)

WeightsLike = Union[torch.Tensor, Sequence[float]]


@dataclass
class TopKSelectorConfig:
    output_dim: int
    renormalize: bool = False


def _as_weights(weights: WeightsLike) -> torch.Tensor:
    if not isinstance(weights, torch.Tensor):
        weights = torch.as_tensor(weights, dtype=torch.get_default_dtype())
    if weights.dim() == 0 or weights.numel() == 0:
        raise InvalidArgument("weights must be a non-empty vector or batch of vectors")
    return weights


def _check_k(k: int, n: int) -> None:
    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise InvalidArgument(f"k must be an integer, got {k!r}")
    if not 1 <= k <= n:
        raise InvalidArgument(f"k must lie in [1, {n}], got {k}")


def selection_mask(weights: WeightsLike, k: int) -> torch.Tensor:
    """Boolean mask of the k largest entries along the last axis.

    Ties at the k-th boundary go to the lowest index. The mask is built from
    detached values and carries no gradient.
    """
    weights = _as_weights(weights)
    _check_k(k, weights.size(-1))

    with torch.no_grad():
        order = torch.sort(weights.detach(), dim=-1, descending=True, stable=True).indices
        mask = torch.zeros(weights.shape, dtype=torch.bool, device=weights.device)
        top = order[..., :k]
        mask.scatter_(-1, top, torch.ones_like(top, dtype=torch.bool))
    return mask


def select(weights: WeightsLike, k: int, renormalize: bool = False) -> torch.Tensor:
    """Zero all but the k largest weights of each row.

    Args:
        weights: tensor of shape (..., N), typically softmax outputs
        k: number of entries to keep per row, 1 <= k <= N
        renormalize: rescale the kept entries of each row to sum to one
    Returns:
        tensor of shape (..., N) with exactly k entries left untouched per row
    """
    weights = _as_weights(weights)
    mask = selection_mask(weights, k)
    out = weights * mask

    if renormalize:
        total = out.sum(dim=-1, keepdim=True)
        # rows whose kept mass is zero stay zero
        out = out / torch.where(total > 0, total, torch.ones_like(total))
    return out


class TopKSelector(nn.Module):
    """Top-k sparsifying layer for softmax allocations."""

    def __init__(self, output_dim: int, renormalize: bool = False) -> None:
        super().__init__()
        if isinstance(output_dim, bool) or not isinstance(output_dim, numbers.Integral) or output_dim < 1:
            raise InvalidArgument(f"output_dim must be a positive integer, got {output_dim!r}")
        self.output_dim = int(output_dim)
        self.renormalize = bool(renormalize)
        logger.debug("TopKSelector(output_dim=%d, renormalize=%s)", self.output_dim, self.renormalize)

    @classmethod
    def from_config(cls, config: TopKSelectorConfig) -> "TopKSelector":
        return cls(config.output_dim, config.renormalize)

    def forward(self, weights: torch.Tensor) -> torch.Tensor:
        return select(weights, self.output_dim, self.renormalize)

    def extra_repr(self) -> str:
        return f"output_dim={self.output_dim}, renormalize={self.renormalize}"
