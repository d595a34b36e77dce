"""Canonical text for every grammar production.

CANONICAL FORM:
- Dates are written YYYY-MM-DD with '-' separators, whatever was parsed
- Decimals are written in fixed-point notation exactly as stored
  (trailing zeros kept, never exponent notation)
- Commodity lists are sorted and joined with a bare ','
- Cost braces carry no inner padding: {10 USD}
- Postings are indented by two spaces; the amount is separated from the
  account by two spaces

marshal(value) dispatches on the type of any domain value, so callers that
hold a mixed bag of values do not need to pick the function themselves.
"""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

from decimal import Decimal
from functools import singledispatch
from typing import Iterable

from beancount_directives.account import Account, AccountComponent, AccountType
from beancount_directives.amount import Amount, AmountWithTolerance, PostingAmount
from beancount_directives.commodity import Commodity
from beancount_directives.directives import (
    Directive,
    DirectiveBalance,
    DirectiveOpen,
    DirectiveTransaction,
    Posting,
    TransactionDescription,
)
from beancount_directives.grammar import KEYWORD_BALANCE, KEYWORD_OPEN
from beancount_directives.primitives import Date, Flag

POSTING_INDENT = "  "


def marshal_date(date: Date) -> str:
    return str(date)


def marshal_decimal(number: Decimal) -> str:
    return format(number, "f")


def marshal_quoted_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def marshal_flag(flag: Flag) -> str:
    return flag.char


def marshal_account_type(account_type: AccountType) -> str:
    return account_type.value


def marshal_account_component(component: AccountComponent) -> str:
    return component.name


def marshal_account(account: Account) -> str:
    parts = [marshal_account_type(account.account_type)]
    parts.extend(marshal_account_component(c) for c in account.components)
    return ":".join(parts)


def marshal_commodity(commodity: Commodity) -> str:
    return commodity.name


def marshal_commodity_list(commodities: Iterable[Commodity]) -> str:
    """Sorted, comma joined, no padding: EUR,GBP,USD."""
    return ",".join(marshal_commodity(c) for c in sorted(commodities))


def marshal_amount(amount: Amount) -> str:
    return f"{marshal_decimal(amount.number)} {marshal_commodity(amount.commodity)}"


def marshal_amount_with_tolerance(amount: AmountWithTolerance) -> str:
    text = marshal_decimal(amount.number)
    if amount.tolerance is not None:
        text += f" ~ {marshal_decimal(amount.tolerance)}"
    return f"{text} {marshal_commodity(amount.commodity)}"


def marshal_posting_amount(posting_amount: PostingAmount) -> str:
    text = marshal_amount(posting_amount.amount)
    if posting_amount.cost is not None:
        text += f" {{{marshal_amount(posting_amount.cost)}}}"
    if posting_amount.price is not None:
        text += f" @ {marshal_amount(posting_amount.price)}"
    return text


def marshal_open(directive: DirectiveOpen) -> str:
    text = f"{KEYWORD_OPEN} {marshal_account(directive.account)}"
    if directive.commodities:
        text += f" {marshal_commodity_list(directive.commodities)}"
    return text


def marshal_balance(directive: DirectiveBalance) -> str:
    account = marshal_account(directive.account)
    amount = marshal_amount_with_tolerance(directive.amount)
    return f"{KEYWORD_BALANCE} {account} {amount}"


def marshal_transaction_description(description: TransactionDescription) -> str:
    narration = marshal_quoted_string(description.narration)
    if description.payee is None:
        return narration
    return f"{marshal_quoted_string(description.payee)} {narration}"


def marshal_posting(posting: Posting) -> str:
    text = POSTING_INDENT
    if posting.flag is not None:
        text += f"{marshal_flag(posting.flag)} "
    text += marshal_account(posting.account)
    if posting.amount is not None:
        text += f"  {marshal_posting_amount(posting.amount)}"
    return text


def marshal_transaction(directive: DirectiveTransaction) -> str:
    lines = [marshal_flag(directive.flag)]
    if directive.description is not None:
        lines[0] += f" {marshal_transaction_description(directive.description)}"
    lines.extend(marshal_posting(p) for p in directive.postings)
    return "\n".join(lines)


def marshal_directive(directive: Directive) -> str:
    return f"{marshal_date(directive.date)} {marshal(directive.content)}"


@singledispatch
def marshal(value) -> str:
    """Canonical text of any domain value."""
    raise TypeError(f"Cannot marshal {type(value).__name__}")


# Registration order mirrors the grammar, leaves first
for _type, _marshaller in (
    (Date, marshal_date),
    (Decimal, marshal_decimal),
    (Flag, marshal_flag),
    (AccountType, marshal_account_type),
    (AccountComponent, marshal_account_component),
    (Account, marshal_account),
    (Commodity, marshal_commodity),
    (Amount, marshal_amount),
    (AmountWithTolerance, marshal_amount_with_tolerance),
    (PostingAmount, marshal_posting_amount),
    (TransactionDescription, marshal_transaction_description),
    (Posting, marshal_posting),
    (DirectiveOpen, marshal_open),
    (DirectiveBalance, marshal_balance),
    (DirectiveTransaction, marshal_transaction),
    (Directive, marshal_directive),
):
    marshal.register(_type, _marshaller)
