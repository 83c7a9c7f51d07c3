"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers, later layers winning:

  1. config/config.yaml  -- static defaults checked into the repo
                            (classifier path rules live here)
  2. .env file           -- local overrides
  3. environment vars    -- set at deploy time

``load_config`` reads the YAML file first, then deep-merges the
Settings-derived values on top.
"""

from pathlib import Path

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings instance to overlay; a fresh one is built when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "embedding": {
            "provider": settings.embedding_provider,
            "model": settings.openai_embedding_model,
            "dimension": settings.embedding_dimension,
            "batch_size": settings.embedding_batch_size,
            "timeout_seconds": settings.embedding_timeout_seconds,
        },
        "chunking": {
            "max_chunk_size": settings.chunk_max_size,
            "overlap": settings.chunk_overlap,
            "respect_paragraphs": settings.chunk_respect_paragraphs,
        },
        "site": {
            "base_url": settings.site_base_url,
            "name": settings.site_name,
            "sitemap": settings.resolved_sitemap(),
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
