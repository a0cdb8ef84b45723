"""Contract factories and handles for deployed contract instances.

A ``ContractFactory`` submits the constructor transaction and hands back a
``ContractHandle`` right away. The handle only becomes usable after
``wait_until_deployed`` has seen the deployment receipt and found code at
the new address.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from eth_utils import is_address, to_checksum_address
from web3.exceptions import TimeExhausted, Web3Exception

from marketplace.errors import CallError, DeploymentError

logger = logging.getLogger("marketplace.deployment")


class ContractHandle:
    """Reference to a deployed (or deploying) contract instance."""

    def __init__(
        self,
        w3,
        name: str,
        abi: List[Dict[str, Any]],
        tx_hash=None,
        address: Optional[str] = None,
        deploy_timeout: float = 10,
        call_timeout: float = 120,
        poll_latency: float = 0.1
    ):
        """Initialize the handle.

        Args:
            w3: Web3 instance connected to the network.
            name: Contract name, used in log and error messages.
            abi: Contract ABI.
            tx_hash: Hash of the deployment transaction, if deploying.
            address: Address of an already deployed instance.
            deploy_timeout: Seconds to wait for the deployment receipt.
            call_timeout: Seconds to wait for transaction receipts.
            poll_latency: Seconds between receipt polls.
        """
        self.w3 = w3
        self.name = name
        self.abi = abi
        self.tx_hash = tx_hash
        self.address = address
        self.deploy_timeout = deploy_timeout
        self.call_timeout = call_timeout
        self.poll_latency = poll_latency
        self.deploy_receipt = None
        self._contract = None

        if address is not None:
            self._contract = self.w3.eth.contract(address=address, abi=abi)

    @property
    def deployed(self) -> bool:
        return self._contract is not None

    def wait_until_deployed(self, timeout: Optional[float] = None) -> "ContractHandle":
        """Block until the deployment transaction is confirmed.

        Args:
            timeout: Seconds to wait; defaults to ``deploy_timeout``.

        Returns:
            This handle, now bound to the deployed address.

        Raises:
            DeploymentError: If the deployment times out, reverts or
                leaves no code at the contract address.
        """
        if self.deployed:
            return self

        if self.tx_hash is None:
            raise DeploymentError(f"{self.name} has no deployment transaction")

        timeout = self.deploy_timeout if timeout is None else timeout
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                self.tx_hash,
                timeout=timeout,
                poll_latency=self.poll_latency
            )
        except TimeExhausted as e:
            logger.error(f"Deployment of {self.name} not confirmed after {timeout}s")
            raise DeploymentError(
                f"Deployment of {self.name} not confirmed within {timeout}s"
            ) from e

        if receipt['status'] != 1:
            raise DeploymentError(f"Deployment of {self.name} reverted")

        address = receipt['contractAddress']
        if not address or not self.w3.eth.get_code(address):
            raise DeploymentError(f"No code for {self.name} at {address}")

        self.deploy_receipt = receipt
        self.address = address
        self._contract = self.w3.eth.contract(address=address, abi=self.abi)
        logger.info(f"{self.name} deployed at {address}")
        return self

    def _function(self, fn_name: str, *args):
        if not self.deployed:
            raise DeploymentError(f"{self.name} is not deployed yet")
        return getattr(self._contract.functions, fn_name)(*args)

    def call(self, fn_name: str, *args) -> Any:
        """Read a value from the contract without sending a transaction.

        Raises:
            CallError: If the node or the contract rejects the call.
        """
        function = self._function(fn_name, *args)
        try:
            return function.call()
        except (Web3Exception, ValueError) as e:
            logger.error(f"{self.name}.{fn_name} call failed: {e}")
            raise CallError(f"{self.name}.{fn_name} call rejected: {e}") from e

    def transact(self, fn_name: str, *args, sender: Optional[str] = None) -> Dict[str, Any]:
        """Send a state-changing transaction and wait for its receipt.

        Args:
            fn_name: Contract function name.
            *args: Function arguments.
            sender: Sending account; defaults to the node's default account.

        Returns:
            The transaction receipt.

        Raises:
            CallError: If the transaction is rejected, reverts or is not
                confirmed in time.
        """
        function = self._function(fn_name, *args)
        tx_params = {'from': sender} if sender else {}
        try:
            tx_hash = function.transact(tx_params)
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.call_timeout,
                poll_latency=self.poll_latency
            )
        except (Web3Exception, ValueError) as e:
            logger.error(f"{self.name}.{fn_name} transaction failed: {e}")
            raise CallError(f"{self.name}.{fn_name} transaction rejected: {e}") from e

        if receipt['status'] != 1:
            raise CallError(f"{self.name}.{fn_name} transaction reverted")

        logger.info(f"{self.name}.{fn_name} confirmed in block {receipt['blockNumber']}")
        return receipt


class Marketplace(ContractHandle):
    """Handle exposing the Marketplace recipient functions."""

    def set_recipient(self, address: str, sender: Optional[str] = None) -> Dict[str, Any]:
        """Set the marketplace recipient and wait for confirmation."""
        if not is_address(address):
            raise CallError(f"Invalid recipient address: {address!r}")
        return self.transact("setRecipient", to_checksum_address(address), sender=sender)

    def recipient(self) -> str:
        return self.call("recipient")


# Contract names with a dedicated handle class
HANDLE_TYPES: Dict[str, Type[ContractHandle]] = {
    "Marketplace": Marketplace,
}


class ContractFactory:
    """Deploys new instances of one contract."""

    def __init__(
        self,
        w3,
        name: str,
        abi: List[Dict[str, Any]],
        bytecode: str,
        deploy_timeout: float = 10,
        call_timeout: float = 120,
        poll_latency: float = 0.1
    ):
        self.w3 = w3
        self.name = name
        self.abi = abi
        self.bytecode = bytecode
        self.deploy_timeout = deploy_timeout
        self.call_timeout = call_timeout
        self.poll_latency = poll_latency
        self.handle_type = HANDLE_TYPES.get(name, ContractHandle)

    def _handle(self, **kwargs) -> ContractHandle:
        return self.handle_type(
            self.w3,
            self.name,
            self.abi,
            deploy_timeout=self.deploy_timeout,
            call_timeout=self.call_timeout,
            poll_latency=self.poll_latency,
            **kwargs
        )

    def deploy(self, *args, sender: Optional[str] = None) -> ContractHandle:
        """Submit the deployment transaction.

        The returned handle is not usable until ``wait_until_deployed``
        has been called on it.

        Raises:
            DeploymentError: If the node rejects the deployment transaction.
        """
        contract = self.w3.eth.contract(abi=self.abi, bytecode=self.bytecode)
        tx_params = {'from': sender} if sender else {}
        try:
            tx_hash = contract.constructor(*args).transact(tx_params)
        except (Web3Exception, ValueError) as e:
            logger.error(f"Deployment of {self.name} rejected: {e}")
            raise DeploymentError(f"Deployment of {self.name} rejected: {e}") from e

        logger.info(f"Submitted deployment of {self.name}")
        return self._handle(tx_hash=tx_hash)

    def attach(self, address: str) -> ContractHandle:
        """Return a handle for an instance already deployed at ``address``."""
        if not is_address(address):
            raise DeploymentError(f"Invalid contract address: {address!r}")
        return self._handle(address=to_checksum_address(address))
