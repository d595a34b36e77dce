"""Numbers paired with commodities."""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

from dataclasses import dataclass, replace
from decimal import Decimal

from beancount_directives.commodity import Commodity


@dataclass(frozen=True, order=True)
class Amount:
    """A decimal number of some commodity, e.g. ``-37.45 USD``."""

    number: Decimal
    commodity: Commodity

    def __str__(self) -> str:
        return f"{format(self.number, 'f')} {self.commodity}"


@dataclass(frozen=True)
class AmountWithTolerance:
    """The amount of a balance assertion with an optional tolerance.

    The tolerance, when given, must not be negative.
    """

    amount: Amount
    tolerance: Decimal | None = None

    def __post_init__(self):
        if self.tolerance is not None and self.tolerance < 0:
            raise ValueError(f"Tolerance must not be negative: {self.tolerance}")

    @property
    def number(self) -> Decimal:
        return self.amount.number

    @property
    def commodity(self) -> Commodity:
        return self.amount.commodity


@dataclass(frozen=True)
class PostingAmount:
    """The amount of a posting with optional cost ``{...}`` and price ``@ ...``.

    Cost and price commodities are not required to relate to the amount's
    commodity; that belongs to ledger-level validation.
    """

    amount: Amount
    cost: Amount | None = None
    price: Amount | None = None

    def with_cost(self, cost: Amount) -> "PostingAmount":
        return replace(self, cost=cost)

    def with_price(self, price: Amount) -> "PostingAmount":
        return replace(self, price=price)
