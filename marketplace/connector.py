"""Connection to the Ethereum network the Marketplace is deployed to.

The connector owns the Web3 instance, provisions the externally-owned
accounts used as identities and hands out contract factories.
"""

import logging
from typing import List, NamedTuple, Optional

from omegaconf import DictConfig
from web3 import Web3

from marketplace.artifacts import ArtifactStore
from marketplace.deployment import ContractFactory, ContractHandle

logger = logging.getLogger("marketplace.connector")


class Identity(NamedTuple):
    """Externally-owned account available on the connected node."""
    index: int
    address: str


class MarketplaceConnector:
    """Connector between the verification scenario and the blockchain."""

    def __init__(
        self,
        node_url: Optional[str] = None,
        provider: str = "http",
        artifacts: Optional[ArtifactStore] = None,
        deploy_timeout: float = 10,
        call_timeout: float = 120,
        poll_latency: float = 0.1
    ):
        """Initialize the connector.

        Args:
            node_url: URL of the JSON-RPC node, used by the ``http`` provider.
            provider: ``http`` for a JSON-RPC node, ``tester`` for an
                in-memory eth-tester chain.
            artifacts: Store resolving contract names to ABI and bytecode.
            deploy_timeout: Seconds to wait for a deployment to confirm.
            call_timeout: Seconds to wait for a transaction to confirm.
            poll_latency: Seconds between receipt polls.
        """
        self.node_url = node_url or "http://localhost:8545"
        self.provider = provider
        self.artifacts = artifacts or ArtifactStore()
        self.deploy_timeout = deploy_timeout
        self.call_timeout = call_timeout
        self.poll_latency = poll_latency

        if provider == "tester":
            self.w3 = Web3(Web3.EthereumTesterProvider())
        elif provider == "http":
            self.w3 = Web3(Web3.HTTPProvider(self.node_url))
        else:
            raise ValueError(f"Unknown provider: {provider}")

        if not self.w3.is_connected():
            raise ConnectionError(f"Failed to connect to Ethereum node ({provider})")

        accounts = self.w3.eth.accounts
        if accounts:
            self.w3.eth.default_account = accounts[0]

        logger.info(f"Connected to Ethereum node via {provider} provider")

    @classmethod
    def from_config(cls, cfg: DictConfig) -> "MarketplaceConnector":
        """Build a connector from the ``network`` and ``contracts`` sections."""
        artifacts = ArtifactStore(
            artifacts_dir=cfg.contracts.artifacts_dir,
            source_dir=cfg.contracts.source_dir,
            solc_version=cfg.contracts.solc_version
        )
        return cls(
            node_url=cfg.network.node_url,
            provider=cfg.network.provider,
            artifacts=artifacts,
            deploy_timeout=cfg.network.deploy_timeout,
            call_timeout=cfg.network.call_timeout,
            poll_latency=cfg.network.poll_latency
        )

    def get_identities(self) -> List[Identity]:
        """Return the node's accounts in order."""
        return [Identity(index, address) for index, address in enumerate(self.w3.eth.accounts)]

    def get_factory(self, name: str) -> ContractFactory:
        """Return a factory deploying the contract called ``name``.

        Raises:
            DeploymentError: If the contract cannot be loaded or compiled.
        """
        artifact = self.artifacts.get(name)
        return ContractFactory(
            self.w3,
            name,
            artifact.abi,
            artifact.bytecode,
            deploy_timeout=self.deploy_timeout,
            call_timeout=self.call_timeout,
            poll_latency=self.poll_latency
        )

    def attach(self, name: str, address: str) -> ContractHandle:
        """Return a handle for an existing deployment of ``name``."""
        return self.get_factory(name).attach(address)
