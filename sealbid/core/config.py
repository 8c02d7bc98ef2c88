"""
Auction configuration parameters for sealbid.

Defines fixed-point scales, rounding tolerances and the optional log
directory. Values come from dataclass defaults, overridden by SEALBID_*
environment variables (optionally loaded from a .env file).
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from sealbid.core.auction.types import (
    ASSET_SCALE,
    DEFAULT_ASSET_TOLERANCE,
    DEFAULT_DUST_THRESHOLD,
    PAYMENT_SCALE,
    ScaleConfig,
)

ENV_PREFIX = "SEALBID_"


@dataclass
class AuctionSettings:
    """Clearing-wide configuration"""

    # Fixed-point scales
    payment_scale: int = PAYMENT_SCALE  # 6 decimals
    asset_scale: int = ASSET_SCALE  # 18 decimals

    # Rounding
    dust_threshold: int = DEFAULT_DUST_THRESHOLD
    asset_tolerance: int = DEFAULT_ASSET_TOLERANCE

    # File logging is enabled when set
    log_dir: Optional[Path] = None

    def __post_init__(self):
        for name in ("payment_scale", "asset_scale"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("dust_threshold", "asset_tolerance"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.log_dir is not None:
            self.log_dir = Path(self.log_dir)

    @property
    def scales(self) -> ScaleConfig:
        return ScaleConfig(payment_scale=self.payment_scale, asset_scale=self.asset_scale)


def _coerce(name: str, raw: str, kind: type):
    if kind is Path:
        return Path(raw)
    try:
        return int(raw, 10)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}") from None


def load_config(
    env_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AuctionSettings:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional .env file loaded into os.environ first (existing
            variables win)
        environ: Mapping to read instead of os.environ

    Returns:
        AuctionSettings instance
    """
    if env_file:
        load_dotenv(env_file, override=False)

    source = os.environ if environ is None else environ
    overrides = {}
    for f in fields(AuctionSettings):
        raw = source.get(f"{ENV_PREFIX}{f.name.upper()}")
        if raw is None or raw == "":
            continue
        kind = Path if f.name.endswith("_dir") else int
        overrides[f.name] = _coerce(f.name, raw.strip(), kind)

    return AuctionSettings(**overrides)
