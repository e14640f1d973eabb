"""Strategy error taxonomy. Every error aborts the enclosing operation."""


class StrategyError(Exception):
    """Base class for all strategy failures."""


class AuthorizationError(StrategyError):
    """Insufficient credit delegation, or caller is not the position owner."""


class PausedError(StrategyError):
    """Operation attempted while the vault is paused."""


class ProtocolError(StrategyError):
    """An external supply/borrow/repay/withdraw/swap call failed or returned nothing."""


class TransferError(StrategyError):
    """Asset movement between a participant and the engine failed."""


class ReentrancyError(StrategyError):
    """A guarded entry point was re-entered from within its own call."""
