"""Pricing interface shared by AMM implementations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SwapResult:
    """Exact-input swap through one pool, amounts in base units."""

    amount_in: int
    amount_out: int
    token_in: str
    token_out: str
    pool_address: str | None = None


class AMM(ABC):
    """A pricing curve: output for an input against a pool's reserves."""

    @abstractmethod
    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
    ) -> int:
        """Output amount for amount_in, all values in base units.

        Subclasses may accept extra keyword parameters (fee terms, for
        instance) after the three reserves.
        """
        ...
