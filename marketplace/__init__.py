"""Marketplace contract verification package.

This package deploys the Marketplace smart contract to a local or simulated
Ethereum network through web3.py and verifies its recipient bookkeeping.
"""

__version__ = '0.1.0'
