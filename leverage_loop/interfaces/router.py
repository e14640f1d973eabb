"""Swap router protocol: single-hop exchange abstraction."""
from typing import Protocol

from ..models import SwapParams


class SwapRouter(Protocol):
    """Abstract interface for an exact-input exchange router."""

    @property
    def address(self) -> str: ...

    async def exact_input_single(self, params: SwapParams) -> int: ...
