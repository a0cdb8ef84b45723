"""Deploy-then-verify scenario for the Marketplace recipient.

The scenario is strictly linear: deploy, set the recipient, read it back.
Nothing is retried; any failure propagates to the caller.
"""

import logging
from typing import Sequence

from eth_utils import is_same_address

from marketplace.connector import Identity, MarketplaceConnector
from marketplace.deployment import Marketplace

logger = logging.getLogger("marketplace.scenario")


def deploy(connector: MarketplaceConnector, name: str = "Marketplace") -> Marketplace:
    """Deploy a fresh contract instance and wait for confirmation.

    Args:
        connector: Connector to the target network.
        name: Contract name.

    Returns:
        Handle bound to the deployed contract.

    Raises:
        DeploymentError: If the deployment is not confirmed.
    """
    factory = connector.get_factory(name)
    handle = factory.deploy()
    return handle.wait_until_deployed()


def set_recipient_scenario(marketplace: Marketplace, identities: Sequence[Identity]) -> str:
    """Set the second identity as recipient and verify it was stored.

    Args:
        marketplace: Deployed Marketplace handle.
        identities: Provisioned identities; at least two, with distinct
            addresses.

    Returns:
        The recipient address read back from the contract.

    Raises:
        ValueError: If fewer than two distinct identities are given.
        CallError: If the contract rejects either call.
        AssertionError: If the stored recipient differs from the one set.
    """
    if len(identities) < 2:
        raise ValueError(f"Need at least two identities, got {len(identities)}")

    first, second = identities[0], identities[1]
    if is_same_address(first.address, second.address):
        raise ValueError(f"Identities must be distinct, both are {first.address}")

    logger.info(f"Setting recipient of {marketplace.address} to {second.address}")
    marketplace.set_recipient(second.address)

    recipient = marketplace.recipient()
    if not is_same_address(recipient, second.address):
        raise AssertionError(f"Expected recipient {second.address}, got {recipient}")

    logger.info(f"Recipient verified: {recipient}")
    return recipient
