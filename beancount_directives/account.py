"""Account names: a root type followed by validated components.

ACCOUNT SYNTAX:
    Assets:Banking:Checking
    ^^^^^^ ^^^^^^^ ^^^^^^^^
    type   component(s)

COMPONENT RULES:
- Must not be empty
- First character is an uppercase letter or a numeric character
- Remaining characters are letters, numeric characters or dashes
"""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

import enum
from dataclasses import dataclass
from typing import Tuple

from beancount_directives.errors import AccountComponentError, InvalidValueError


class AccountType(str, enum.Enum):
    """The five account roots. Values are the keywords used in ledgers."""

    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    INCOME = "Income"
    EXPENSES = "Expenses"
    EQUITY = "Equity"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class AccountComponent:
    """A single segment of an account path, e.g. "Checking"."""

    name: str

    def __post_init__(self):
        error = self.check(self.name)
        if error is not None:
            raise InvalidValueError(error, self.name)

    @staticmethod
    def check(name: str) -> AccountComponentError | None:
        """Return the first rule ``name`` violates, or None if it is valid."""
        if not name:
            return AccountComponentError.EMPTY
        first = name[0]
        if not (first.isupper() or first.isnumeric()):
            return AccountComponentError.INVALID_START
        for c in name[1:]:
            if not c.isalnum() and c != "-":
                return AccountComponentError.INVALID_CHARACTER
        return None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, order=True)
class Account:
    """An account type plus its ordered components."""

    account_type: AccountType
    components: Tuple[AccountComponent, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "components", tuple(self.components))

    @classmethod
    def of(cls, account_type: AccountType, *components: str) -> "Account":
        """Build an account from plain component strings.

        Example:
            >>> str(Account.of(AccountType.EXPENSES, "Food", "Groceries"))
            'Expenses:Food:Groceries'
        """
        return cls(account_type, tuple(AccountComponent(c) for c in components))

    def __str__(self) -> str:
        return ":".join([self.account_type.value] + [c.name for c in self.components])
