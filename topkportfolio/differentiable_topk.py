import numbers

import torch
import torch.nn as nn
import torchsort

from .errors import InvalidArgument
from .topk_selector import _as_weights, _check_k


def soft_topk_mask(weights: torch.Tensor, k: int, tau: float = 1.0) -> torch.Tensor:
    """Return soft top-k membership.

    Args:
        weights: tensor of shape (..., N)
        k: size of the soft selection window
        tau: temperature controlling sharpness
    Returns:
        tensor of shape (..., N) with values in [0, 1]
    """
    weights = _as_weights(weights)
    N = weights.size(-1)
    _check_k(k, N)
    if tau <= 0:
        raise InvalidArgument(f"tau must be positive, got {tau}")

    flat = weights.reshape(-1, N)
    # rank 1 is the largest weight
    ranks = torchsort.soft_rank(-flat, regularization_strength=tau)

    upper = torch.sigmoid((k + 0.5 - ranks) / tau)
    lower = torch.sigmoid((0.5 - ranks) / tau)
    return (upper - lower).reshape(weights.shape)


class SoftTopKSelector(nn.Module):
    """Differentiable approximation of top-k selection."""

    def __init__(self, output_dim: int, tau: float = 1.0, renormalize: bool = False) -> None:
        super().__init__()
        if isinstance(output_dim, bool) or not isinstance(output_dim, numbers.Integral) or output_dim < 1:
            raise InvalidArgument(f"output_dim must be a positive integer, got {output_dim!r}")
        if tau <= 0:
            raise InvalidArgument(f"tau must be positive, got {tau}")
        self.output_dim = int(output_dim)
        self.tau = tau
        self.renormalize = renormalize

    def forward(self, weights: torch.Tensor) -> torch.Tensor:
        out = weights * soft_topk_mask(weights, self.output_dim, self.tau)
        if self.renormalize:
            out = out / (out.sum(dim=-1, keepdim=True) + 1e-8)
        return out

    def extra_repr(self) -> str:
        return f"output_dim={self.output_dim}, tau={self.tau}, renormalize={self.renormalize}"
