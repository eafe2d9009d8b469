import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import yaml

from .errors import InvalidArgument


@dataclass
class PortfolioConfig:
    num_assets: int = 10
    output_dim: int = 3
    num_features: Optional[int] = None  # defaults to num_assets
    hidden_dim: Optional[int] = None
    renormalize: bool = False
    selection: str = "hard"  # "hard" or "soft"
    tau: float = 1.0


@dataclass
class TrainConfig:
    epochs: int = 50
    batch_size: int = 64
    lr: float = 1e-2
    weight_decay: float = 0.0
    seed: int = 0
    shuffle: bool = True
    periods_per_year: float = 252.0
    log_every: int = 10
    progress: bool = False


def _build(cls, section: Optional[dict], name: str):
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise InvalidArgument(f"'{name}' section must be a mapping, got {type(section).__name__}")
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise InvalidArgument(f"unknown keys in '{name}' section: {unknown}")
    return cls(**section)


def load_config(path: Union[str, Path]) -> Tuple[PortfolioConfig, TrainConfig]:
    """Read a YAML file with `portfolio:` and `train:` sections."""
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise InvalidArgument(f"config root must be a mapping, got {type(raw).__name__}")

    extra = sorted(set(raw) - {"portfolio", "train"})
    if extra:
        raise InvalidArgument(f"unknown config sections: {extra}")
    return _build(PortfolioConfig, raw.get("portfolio"), "portfolio"), _build(TrainConfig, raw.get("train"), "train")
