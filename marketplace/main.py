"""Main entry point for verifying a Marketplace deployment.

Runs the recipient scenario against the network described by the Hydra
configuration in ``conf/base.yaml``, e.g.::

    python -m marketplace.main network.provider=http network.node_url=http://localhost:8545
"""

import sys
import logging

import hydra
from omegaconf import DictConfig, OmegaConf

from marketplace.config import setup_logging
from marketplace.connector import MarketplaceConnector
from marketplace.errors import MarketplaceError
from marketplace.scenario import deploy, set_recipient_scenario

logger = logging.getLogger("marketplace.main")


def run(cfg: DictConfig) -> int:
    """Run the scenario once and return a process exit code."""
    try:
        connector = MarketplaceConnector.from_config(cfg)
        marketplace = deploy(connector, cfg.contracts.name)
        set_recipient_scenario(marketplace, connector.get_identities())
    except (MarketplaceError, AssertionError, ConnectionError, ValueError) as e:
        logger.error(f"Scenario failed: {e}")
        return 1

    logger.info("Scenario passed")
    return 0


@hydra.main(config_path="conf", config_name="base", version_base=None)
def main(cfg: DictConfig) -> None:
    """Verify the Marketplace recipient on the configured network.

    Args:
        cfg: Hydra configuration.
    """
    setup_logging(cfg.logging.level)
    logger.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")
    sys.exit(run(cfg))


if __name__ == "__main__":
    main()
