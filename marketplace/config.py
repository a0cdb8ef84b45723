"""Configuration helpers shared by the CLI and the test suite.

The Hydra entry point in ``marketplace.main`` reads ``conf/base.yaml``
directly. Library callers and tests that do not run under Hydra use
``load_config`` to get the same ``DictConfig`` with optional overrides.
"""

import os
import sys
import logging
from typing import Any, Dict, Optional

from omegaconf import DictConfig, OmegaConf

CONFIG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "conf")
CONTRACTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "contracts")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def load_config(overrides: Optional[Dict[str, Any]] = None,
                config_name: str = "base") -> DictConfig:
    """Load a configuration file and merge overrides on top of it.

    Args:
        overrides: Nested dictionary of values replacing the file's values.
        config_name: Name of the YAML file in the ``conf`` directory.

    Returns:
        The merged configuration.
    """
    path = os.path.join(CONFIG_DIR, f"{config_name}.yaml")
    cfg = OmegaConf.load(path)
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.create(overrides))
    return cfg


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging the same way for every entry point."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
