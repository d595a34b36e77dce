"""Convert entries produced by beancount's own parser into the domain model.

beancount's parser understands the full language and produces a richer AST
(metadata, tags, links, cost specs with dates and labels, interpolation
placeholders). This module maps the subset the domain model represents,
Open, Balance and Transaction entries, without doing any parsing itself.

WHAT IT DOES:
- Converts accounts, currencies, amounts, flags, postings and payee/narration
- Resolves account roots through the ledger's name_* options, so a ledger
  that renames "Assets" still maps onto AccountType.ASSETS
- Reports entries the domain model cannot represent as ConversionErrors
- Skips directive kinds the domain model does not cover

USAGE:
    directives, errors = ingest_file("main.bean")

    entries, _, options_map = parser.parse_file("main.bean")
    directives, errors = ingest(entries, options_map)

CONVERSION ERRORS:
- Invalid commodity, account component, account root or flag
- Posting with a currency but no number, or a number but no currency
- Cost or price on a posting without an amount
- Cost without a per-unit number (e.g. total cost {{...}} or empty {})
- Price without number or currency
- Negative balance tolerance
- Payee without narration

Each error carries the entry's filename/lineno as its source, like the
errors of beancount itself.
"""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from beancount.core import data
from beancount.core.number import MISSING
from beancount.core.position import Cost, CostSpec
from beancount.parser import options, parser

from beancount_directives.account import Account, AccountComponent, AccountType
from beancount_directives.amount import Amount, AmountWithTolerance, PostingAmount
from beancount_directives.commodity import Commodity
from beancount_directives.directives import (
    Directive,
    DirectiveBalance,
    DirectiveContent,
    DirectiveOpen,
    DirectiveTransaction,
    Posting,
    TransactionDescription,
)
from beancount_directives.errors import (
    ConversionError,
    ConversionErrorKind,
    ConversionFailure,
)
from beancount_directives.primitives import Date, Flag

logger = logging.getLogger(__name__)

SUPPORTED_ENTRIES = (data.Open, data.Balance, data.Transaction)

AccountRoots = Dict[str, AccountType]


def _missing(value) -> bool:
    return value is None or value is MISSING


def account_roots(options_map: dict | None = None) -> AccountRoots:
    """Map root account names to account types.

    Args:
        options_map: beancount options map, or None for the default names

    Returns:
        Dict from root name (e.g. "Assets") to AccountType
    """
    if options_map is None:
        return {account_type.value: account_type for account_type in AccountType}
    names = options.get_account_types(options_map)
    return {
        names.assets: AccountType.ASSETS,
        names.liabilities: AccountType.LIABILITIES,
        names.equity: AccountType.EQUITY,
        names.income: AccountType.INCOME,
        names.expenses: AccountType.EXPENSES,
    }


def convert_commodity(currency: str) -> Commodity:
    error = Commodity.check(currency)
    if error is not None:
        raise ConversionFailure(
            ConversionErrorKind.INVALID_COMMODITY, f"'{currency}': {error.value}"
        )
    return Commodity(currency)


def convert_account(account: str, roots: AccountRoots | None = None) -> Account:
    """Split "Root:A:B" and validate every component."""
    if roots is None:
        roots = account_roots()
    root, *names = account.split(":")
    if root not in roots:
        raise ConversionFailure(
            ConversionErrorKind.INVALID_ACCOUNT_TYPE, f"'{root}' in '{account}'"
        )

    components = []
    for name in names:
        error = AccountComponent.check(name)
        if error is not None:
            raise ConversionFailure(
                ConversionErrorKind.INVALID_ACCOUNT_COMPONENT,
                f"'{name}' in '{account}': {error.value}",
            )
        components.append(AccountComponent(name))
    return Account(roots[root], tuple(components))


def convert_flag(flag: str | None) -> Flag:
    if flag is None or len(flag) != 1 or flag.isspace():
        raise ConversionFailure(ConversionErrorKind.INVALID_FLAG, repr(flag))
    return Flag(flag)


def _convert_cost(cost) -> Amount:
    if isinstance(cost, CostSpec):
        if not _missing(cost.number_total):
            raise ConversionFailure(
                ConversionErrorKind.INCOMPLETE_COST, "total cost is not supported"
            )
        number, currency = cost.number_per, cost.currency
    elif isinstance(cost, Cost):
        number, currency = cost.number, cost.currency
    else:
        raise ConversionFailure(ConversionErrorKind.INCOMPLETE_COST, repr(cost))

    if _missing(number) or _missing(currency):
        raise ConversionFailure(ConversionErrorKind.INCOMPLETE_COST)
    return Amount(number, convert_commodity(currency))


def _convert_price(price) -> Amount:
    if _missing(price.number) or _missing(price.currency):
        raise ConversionFailure(ConversionErrorKind.INCOMPLETE_PRICE)
    return Amount(price.number, convert_commodity(price.currency))


def convert_posting(posting: data.Posting, roots: AccountRoots | None = None) -> Posting:
    """Convert one posting.

    A posting without units is an inferred (balancing) posting; it may not
    carry a cost or a price.
    """
    account = convert_account(posting.account, roots)
    flag = convert_flag(posting.flag) if posting.flag else None

    units = posting.units
    number = None if _missing(units) else units.number
    currency = None if _missing(units) else units.currency

    if _missing(number) and _missing(currency):
        if posting.cost is not None:
            raise ConversionFailure(
                ConversionErrorKind.COST_WITHOUT_AMOUNT, posting.account
            )
        if posting.price is not None:
            raise ConversionFailure(
                ConversionErrorKind.PRICE_WITHOUT_AMOUNT, posting.account
            )
        return Posting(account, flag)
    if _missing(number):
        raise ConversionFailure(
            ConversionErrorKind.CURRENCY_WITHOUT_AMOUNT, posting.account
        )
    if _missing(currency):
        raise ConversionFailure(
            ConversionErrorKind.AMOUNT_WITHOUT_CURRENCY, posting.account
        )

    amount = PostingAmount(
        Amount(number, convert_commodity(currency)),
        cost=None if posting.cost is None else _convert_cost(posting.cost),
        price=None if posting.price is None else _convert_price(posting.price),
    )
    return Posting(account, flag, amount)


def convert_open(entry: data.Open, roots: AccountRoots | None = None) -> DirectiveOpen:
    commodities = frozenset(convert_commodity(c) for c in entry.currencies or ())
    return DirectiveOpen(convert_account(entry.account, roots), commodities)


def convert_balance(
    entry: data.Balance, roots: AccountRoots | None = None
) -> DirectiveBalance:
    amount = Amount(entry.amount.number, convert_commodity(entry.amount.currency))
    if entry.tolerance is not None and entry.tolerance < 0:
        raise ConversionFailure(
            ConversionErrorKind.NEGATIVE_TOLERANCE, f"{entry.tolerance} on {entry.account}"
        )
    return DirectiveBalance(
        convert_account(entry.account, roots),
        AmountWithTolerance(amount, entry.tolerance),
    )


def convert_transaction(
    entry: data.Transaction, roots: AccountRoots | None = None
) -> DirectiveTransaction:
    """Convert a transaction.

    beancount stores an empty narration when a transaction has no strings;
    that maps to a transaction without description.
    """
    if entry.payee is not None and entry.narration is None:
        raise ConversionFailure(
            ConversionErrorKind.PAYEE_WITHOUT_NARRATION, repr(entry.payee)
        )

    if entry.payee is not None:
        description = TransactionDescription(entry.narration, entry.payee)
    elif entry.narration:
        description = TransactionDescription(entry.narration)
    else:
        description = None

    postings = tuple(convert_posting(p, roots) for p in entry.postings)
    return DirectiveTransaction(convert_flag(entry.flag), description, postings)


def convert_entry(entry: data.Directive, roots: AccountRoots | None = None) -> Directive:
    """Convert a single Open, Balance or Transaction entry.

    Raises:
        ConversionFailure: If the entry cannot be represented
        TypeError: If the entry is of an unsupported directive kind
    """
    content: DirectiveContent
    if isinstance(entry, data.Open):
        content = convert_open(entry, roots)
    elif isinstance(entry, data.Balance):
        content = convert_balance(entry, roots)
    elif isinstance(entry, data.Transaction):
        content = convert_transaction(entry, roots)
    else:
        raise TypeError(f"Unsupported entry type: {type(entry).__name__}")
    return Directive(Date.from_date(entry.date), content)


def _source(entry: data.Directive) -> dict:
    meta = entry.meta or {}
    return {
        "filename": meta.get("filename", "unknown"),
        "lineno": meta.get("lineno", 0),
    }


def ingest(
    entries: Iterable[data.Directive],
    options_map: dict | None = None,
) -> Tuple[List[Directive], List[ConversionError]]:
    """Convert beancount entries into directives.

    Args:
        entries: Entries as returned by beancount's parser or loader
        options_map: beancount options map (for renamed account roots)

    Returns:
        Tuple of (directives, errors)
    """
    roots = account_roots(options_map)
    directives: list[Directive] = []
    errors: list[ConversionError] = []
    skipped = 0

    for entry in entries:
        if not isinstance(entry, SUPPORTED_ENTRIES):
            skipped += 1
            continue

        try:
            directives.append(convert_entry(entry, roots))
        except ConversionFailure as e:
            logger.debug(f"Failed to convert entry on {entry.date}: {e.message}")
            errors.append(
                ConversionError(
                    source=_source(entry),
                    message=e.message,
                    entry=entry,
                    kind=e.kind,
                )
            )

    logger.info(
        f"Converted {len(directives)} entries, {len(errors)} failed, "
        f"{skipped} unsupported skipped"
    )
    if errors:
        logger.warning(f"Found {len(errors)} entries that cannot be converted")

    return directives, errors


def ingest_string(text: str) -> Tuple[List[Directive], list]:
    """Parse ``text`` with beancount and convert the result.

    Returns:
        Tuple of (directives, errors), errors holding beancount's parser
        errors followed by conversion errors
    """
    entries, parse_errors, options_map = parser.parse_string(text)
    directives, errors = ingest(entries, options_map)
    return directives, list(parse_errors) + errors


def ingest_file(path: str | Path) -> Tuple[List[Directive], list]:
    """Like ingest_string() for a ledger file. Includes are not followed."""
    entries, parse_errors, options_map = parser.parse_file(str(path))
    directives, errors = ingest(entries, options_map)
    return directives, list(parse_errors) + errors
