import logging
from typing import Dict, Iterator, List, Optional

import torch
import torch.nn as nn
from tqdm import tqdm

from .config import TrainConfig
from .errors import InvalidArgument
from .losses import sharpe_ratio, sharpe_ratio_loss
from .portfolio import portfolio_returns

logger = logging.getLogger(__name__)


def seeded_generator(seed: int) -> torch.Generator:
    """A private RNG; nothing in this package touches the global seed."""
    return torch.Generator().manual_seed(seed)


@torch.no_grad()
def init_weights(module: nn.Module, generator: torch.Generator) -> None:
    """Xavier-uniform init of every nn.Linear in `module`, drawn from `generator`."""
    for m in module.modules():
        if isinstance(m, nn.Linear):
            nn.init.xavier_uniform_(m.weight, generator=generator)
            if m.bias is not None:
                nn.init.zeros_(m.bias)


def build_optimizer(model: nn.Module, lr: float = 1e-2, weight_decay: float = 0.0) -> torch.optim.Optimizer:
    decay_params, no_decay_params = [], []
    for _, p in model.named_parameters():
        if not p.requires_grad:
            continue
        if p.dim() >= 2:
            decay_params.append(p)
        else:
            no_decay_params.append(p)

    param_groups = [
        {"params": decay_params, "weight_decay": weight_decay},
        {"params": no_decay_params, "weight_decay": 0.0},
    ]
    param_groups = [g for g in param_groups if g["params"]]
    return torch.optim.AdamW(param_groups, lr=lr)


def iter_batches(
    n: int, batch_size: int, shuffle: bool, generator: torch.Generator, min_batch: int = 1
) -> Iterator[torch.Tensor]:
    """Yield index batches; a tail shorter than `min_batch` joins the batch before it."""
    if batch_size < max(min_batch, 1):
        raise InvalidArgument(f"batch_size must be at least {max(min_batch, 1)}, got {batch_size}")
    order = torch.randperm(n, generator=generator) if shuffle else torch.arange(n)
    starts = list(range(0, n, batch_size))
    if len(starts) > 1 and n - starts[-1] < min_batch:
        starts.pop()
    for i, start in enumerate(starts):
        end = starts[i + 1] if i + 1 < len(starts) else n
        yield order[start:end]


def train_portfolio(
    model: nn.Module,
    features: torch.Tensor,
    returns: torch.Tensor,
    config: Optional[TrainConfig] = None,
    generator: Optional[torch.Generator] = None,
) -> List[Dict[str, float]]:
    """Fit `model` to maximize the Sharpe ratio of its allocations.

    Args:
        model: maps features (T, F) to allocations (T, N)
        features: inputs known at each time step, shape (T, F)
        returns: asset returns realized over the same steps, shape (T, N)
        config: training hyperparameters
        generator: RNG used for shuffling; seeded from `config.seed` if omitted
    Returns:
        one dict per epoch with keys epoch, loss, sharpe
    """
    config = config or TrainConfig()
    if features.size(0) != returns.size(0):
        raise InvalidArgument(f"features has {features.size(0)} rows but returns has {returns.size(0)}")
    if features.size(0) < 2:
        raise InvalidArgument("need at least two time steps to train")
    if config.batch_size < 2:
        raise InvalidArgument(f"batch_size must be at least 2 for a sharpe loss, got {config.batch_size}")
    generator = generator if generator is not None else seeded_generator(config.seed)

    optimizer = build_optimizer(model, lr=config.lr, weight_decay=config.weight_decay)
    history: List[Dict[str, float]] = []

    for epoch in tqdm(range(config.epochs), desc="train", disable=not config.progress):
        model.train()
        losses = []
        # sharpe ratio is undefined on a single observation
        for idx in iter_batches(features.size(0), config.batch_size, config.shuffle, generator, min_batch=2):
            weights = model(features[idx])
            loss = sharpe_ratio_loss(portfolio_returns(weights, returns[idx]), config.periods_per_year)

            optimizer.zero_grad()
            loss.backward()
            optimizer.step()
            losses.append(loss.item())

        model.eval()
        with torch.no_grad():
            realized = portfolio_returns(model(features), returns)
            sharpe = sharpe_ratio(realized, config.periods_per_year).item()

        epoch_loss = sum(losses) / len(losses)
        history.append({"epoch": epoch, "loss": epoch_loss, "sharpe": sharpe})
        if config.log_every and (epoch + 1) % config.log_every == 0:
            logger.info("epoch %d/%d loss %.4f sharpe %.4f", epoch + 1, config.epochs, epoch_loss, sharpe)

    return history
