"""Fusion configuration loaded from pricecast.yaml.

Supports overriding any FusionConfig field, e.g.:

    fusion:
      short_cap: 0.02
      long_weights:
        mean_reversion: 0.3

Nested weight blocks are merged over the defaults, so a file only needs
the values it changes. No YAML file = default weights.
"""

import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from pricecast.models import FusionConfig

logger = logging.getLogger(__name__)

_WEIGHT_BLOCKS = ("short_weights", "long_weights")


class ForecastFileConfig(BaseModel):
    """Top-level pricecast.yaml configuration."""

    fusion: FusionConfig = FusionConfig()


def _merge_fusion(raw: dict) -> dict:
    """Merge partial weight blocks over the default weights."""
    defaults = FusionConfig()
    merged = dict(raw)
    for block in _WEIGHT_BLOCKS:
        if isinstance(raw.get(block), dict):
            base = getattr(defaults, block).model_dump()
            base.update(raw[block])
            merged[block] = base
    return merged


def load_fusion_config(path: Path | None = None) -> FusionConfig:
    """Load fusion config from a YAML file.

    Falls back to defaults if the file doesn't exist.
    """
    config_path = Path(path) if path else Path("pricecast.yaml")

    # Load .env next to the config so PRICECAST_* settings are visible
    load_dotenv(config_path.parent / ".env", override=False)

    if not config_path.exists():
        logger.info("No fusion config found at %s, using default weights", config_path)
        return FusionConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    fusion_raw = raw.get("fusion") or {}
    config = ForecastFileConfig(fusion=_merge_fusion(fusion_raw)).fusion
    logger.info(
        "Loaded fusion config from %s: %d override(s), caps short=%.3f long=%.3f",
        config_path,
        len(fusion_raw),
        config.short_cap,
        config.long_cap,
    )
    return config
