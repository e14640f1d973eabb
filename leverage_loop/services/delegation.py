"""Credit delegation view: read-only from the engine's side."""
from __future__ import annotations

import logging

from ..errors import AuthorizationError, ProtocolError
from ..interfaces.delegation import DelegationRegistry
from ..models import DelegationGrant

logger = logging.getLogger(__name__)


class CreditDelegation:
    """Tracks how much borrowing authority owners have granted the engine."""

    def __init__(self, registry: DelegationRegistry, delegate: str) -> None:
        self._registry = registry
        self._delegate = delegate

    @property
    def debt_token(self) -> str:
        return self._registry.address

    async def grant(self, owner: str) -> DelegationGrant:
        allowance = await self._registry.borrow_allowance(owner, self._delegate)
        return DelegationGrant(owner=owner, delegate=self._delegate, allowance=allowance)

    async def require(self, owner: str, amount: int) -> DelegationGrant:
        """Raise AuthorizationError unless ``owner`` delegated at least ``amount``."""
        grant = await self.grant(owner)
        if grant.allowance < amount:
            logger.warning(
                "Delegation from %s too low: allowance %d < borrow %d",
                owner, grant.allowance, amount,
            )
            raise AuthorizationError(
                f"Owner {owner} delegated {grant.allowance}, borrow needs {amount}"
            )
        return grant

    async def delegate(self, debt_token: str, owner: str, amount: int) -> None:
        """Forward ``owner``'s grant for this engine to the registry."""
        if debt_token.lower() != self._registry.address.lower():
            raise ProtocolError(f"Unknown debt token {debt_token}")
        await self._registry.approve_delegation(owner, self._delegate, amount)
        logger.info("Owner %s delegated %d to %s", owner, amount, self._delegate)
