"""Directive content types and the dated directive envelope.

SUPPORTED DIRECTIVES:

1. DirectiveOpen
   - Opens an account, optionally constrained to a set of commodities
   - 2024-01-01 open Assets:Investment EUR,GBP,USD

2. DirectiveBalance
   - Asserts an account balance, optionally within a tolerance
   - 2023-09-20 balance Assets:Investment 319.020 ~ 0.002 RGAGX

3. DirectiveTransaction
   - A flag, an optional payee/narration and one or more postings
   - 2024-01-15 * "Cafe Mogador" "Lamb tagine with wine"
       Liabilities:CreditCard  -37.45 USD
       Expenses:Restaurant

A Directive pairs a Date with exactly one of the content types above.
Callers dispatch on the content with isinstance().
"""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

from dataclasses import dataclass, replace
from typing import FrozenSet, Iterable, Tuple, Union

from beancount_directives.account import Account
from beancount_directives.amount import AmountWithTolerance, PostingAmount
from beancount_directives.commodity import Commodity
from beancount_directives.primitives import Date, Flag


@dataclass(frozen=True)
class TransactionDescription:
    """Narration plus optional payee.

    A payee can only exist alongside a narration; a transaction carrying a
    single string is narration-only.
    """

    narration: str
    payee: str | None = None


@dataclass(frozen=True)
class Posting:
    """One leg of a transaction. No amount means "infer the balancing amount"."""

    account: Account
    flag: Flag | None = None
    amount: PostingAmount | None = None


@dataclass(frozen=True)
class DirectiveOpen:
    account: Account
    commodities: FrozenSet[Commodity] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "commodities", frozenset(self.commodities))


@dataclass(frozen=True)
class DirectiveBalance:
    account: Account
    amount: AmountWithTolerance


@dataclass(frozen=True)
class DirectiveTransaction:
    flag: Flag
    description: TransactionDescription | None = None
    postings: Tuple[Posting, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "postings", tuple(self.postings))

    def with_posting(self, posting: Posting) -> "DirectiveTransaction":
        """Return a copy with ``posting`` appended after the existing postings."""
        return replace(self, postings=self.postings + (posting,))

    def with_postings(self, postings: Iterable[Posting]) -> "DirectiveTransaction":
        """Return a copy whose postings are replaced by ``postings``."""
        return replace(self, postings=tuple(postings))


DirectiveContent = Union[DirectiveOpen, DirectiveBalance, DirectiveTransaction]


@dataclass(frozen=True)
class Directive:
    date: Date
    content: DirectiveContent
