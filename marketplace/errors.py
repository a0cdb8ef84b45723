"""Exception types raised while deploying and calling contracts."""


class MarketplaceError(Exception):
    """Base class for all marketplace verification errors."""


class DeploymentError(MarketplaceError):
    """Raised when a contract deployment cannot be confirmed."""


class CallError(MarketplaceError):
    """Raised when a contract call or transaction is rejected."""
