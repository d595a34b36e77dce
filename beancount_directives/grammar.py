"""Recursive-descent grammar for Beancount directives.

Every production is a function ``parse_<name>(text, pos=0)`` that consumes a
prefix of ``text[pos:]`` and returns either ``Parsed(value, end)`` or a
``ParseError`` describing the first failure. Failures are plain return
values: a sequence stops at its first failing step, and only explicit choice
points (the directive kind, the optional flag of a posting) try another
alternative.

GRAMMAR:
    directive        := date WS (open | balance | transaction)
    date             := [+-]YYYY(-|/)MM(-|/)DD          same separator twice
    open             := "open" WS account [WS commodity_list]
    balance          := "balance" WS account WS amount_with_tolerance
    transaction      := (flag | "txn") [WS description] (NL posting)+
    description      := string [WS string]                payee first
    posting          := WS [flag WS] account [WS posting_amount]
    posting_amount   := amount [WS "{" ws amount ws "}"] [WS "@" WS amount]
    amount_with_tol  := decimal WS ["~" WS positive_decimal WS] commodity
    amount           := decimal WS commodity
    commodity_list   := commodity (ws "," ws commodity)*
    account          := type (":" component)*

    WS is one or more spaces/tabs, ws is zero or more, NL is a line feed.

OPTIONAL CLAUSES:
Optional clauses commit as soon as the token that introduces them is seen
(``~``, ``{``, ``@``, ``,``, a second quote, or more text on the line). An
error after that point is reported instead of silently skipping the clause.

ENTRY POINT:
    >>> value, errors = parse(parse_directive, "2024-01-01 open Assets:Cash")
"""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

import re
from decimal import Decimal
from typing import Any, Callable, List, NamedTuple, Sequence, Tuple, Union

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
from beancount_directives.errors import ParseError, Span
from beancount_directives.primitives import Date, Flag, is_valid_date


class Parsed(NamedTuple):
    value: Any
    end: int


ParseResult = Union[Parsed, ParseError]
Production = Callable[[str, int], ParseResult]

KEYWORD_OPEN = "open"
KEYWORD_BALANCE = "balance"
KEYWORD_TXN = "txn"

_WHITESPACE = re.compile(r"[ \t]*")
_ANY_WHITESPACE = re.compile(r"\s*")
_POSITIVE_DECIMAL = re.compile(r"[0-9]+(?:\.[0-9]+)?")
_STRING_RUN = re.compile(r'[^"\\]*')
_ESCAPE = re.compile(r'\\(["\\])')
_COMPONENT_RUN = re.compile(r"[^\s:]*")
_COMMODITY_RUN = re.compile(r"[^\s,{}]*")

_ACCOUNT_TYPES = {account_type.value: account_type for account_type in AccountType}
_DATE_SEPARATORS = ("-", "/")


def _failed(result: ParseResult) -> bool:
    return isinstance(result, ParseError)


def _peek(text: str, pos: int) -> str | None:
    return text[pos] if pos < len(text) else None


def _at_line_end(text: str, pos: int) -> bool:
    return pos >= len(text) or text[pos] == "\n"


def _expected(text: str, pos: int, *labels: str) -> ParseError:
    if pos < len(text):
        return ParseError(Span(pos, pos + 1), expected=labels, found=text[pos])
    return ParseError(Span(pos, pos), expected=labels)


def _skip_whitespace(text: str, pos: int) -> int:
    return _WHITESPACE.match(text, pos).end()


def _whitespace(text: str, pos: int) -> ParseResult:
    """Mandatory inline whitespace."""
    end = _skip_whitespace(text, pos)
    if end == pos:
        return _expected(text, pos, "whitespace")
    return Parsed(None, end)


def _keyword(text: str, pos: int, word: str) -> ParseResult:
    end = pos + len(word)
    if text.startswith(word, pos) and (end == len(text) or text[end].isspace()):
        return Parsed(word, end)
    return _expected(text, pos, f"'{word}'")


def _choice(text: str, pos: int, alternatives: Sequence[Production]) -> ParseResult:
    """Ordered choice. On total failure report the furthest error.

    Label-only errors failing at the same offset are merged so the caller
    sees every alternative that was possible there.
    """
    best = None
    for alternative in alternatives:
        result = alternative(text, pos)
        if not _failed(result):
            return result
        if best is None or result.span.start > best.span.start:
            best = result
        elif (
            result.span.start == best.span.start
            and result.message is None
            and best.message is None
        ):
            merged = best.expected + tuple(
                label for label in result.expected if label not in best.expected
            )
            best = best._replace(expected=merged)
    return best


def parse(production: Production, text: str) -> Tuple[Any, List[ParseError]]:
    """Run ``production`` over the whole of ``text``.

    Trailing whitespace is allowed; anything else left over is an error.

    Args:
        production: One of the parse_* functions of this module
        text: Source text

    Returns:
        Tuple of (value, errors). On success errors is empty, on failure
        value is None and errors holds the failure.
    """
    result = production(text, 0)
    if _failed(result):
        return None, [result]
    end = _ANY_WHITESPACE.match(text, result.end).end()
    if end < len(text):
        return None, [_expected(text, end, "end of input")]
    return result.value, []


# Primitives


def _digits(text: str, pos: int, count: int, label: str) -> ParseResult:
    for offset in range(count):
        c = _peek(text, pos + offset)
        if c is None or c not in "0123456789":
            # The label only applies while nothing has been consumed yet
            return _expected(text, pos + offset, label if offset == 0 else "digit")
    return Parsed(int(text[pos : pos + count]), pos + count)


def parse_date(text: str, pos: int = 0) -> ParseResult:
    """Parse ``[+-]YYYY-MM-DD`` or ``[+-]YYYY/MM/DD``.

    The separator used between year and month must be repeated between
    month and day. The result is checked against the calendar, so
    ``2023-02-29`` fails with a message naming the literal.
    """
    start = pos
    negative = False
    if _peek(text, pos) in ("-", "+"):
        negative = text[pos] == "-"
        pos += 1
    year = _digits(text, pos, 4, "four digit year" if pos == start else "digit")
    if _failed(year):
        return year

    separator = _peek(text, year.end)
    if separator not in _DATE_SEPARATORS:
        return _expected(text, year.end, *(f"'{s}'" for s in _DATE_SEPARATORS))
    month = _digits(text, year.end + 1, 2, "two digit month")
    if _failed(month):
        return month

    if _peek(text, month.end) != separator:
        return _expected(text, month.end, f"'{separator}'")
    day = _digits(text, month.end + 1, 2, "two digit day")
    if _failed(day):
        return day

    year_value = -year.value if negative else year.value
    if not is_valid_date(year_value, month.value, day.value):
        return ParseError(
            Span(start, day.end),
            message=f"{text[start:day.end]} is not a valid date",
        )
    return Parsed(Date(year_value, month.value, day.value), day.end)


def parse_positive_decimal(text: str, pos: int = 0) -> ParseResult:
    """Digits with an optional fraction, no sign. Used for tolerances."""
    match = _POSITIVE_DECIMAL.match(text, pos)
    if match is None:
        return _expected(text, pos, "digit")
    return Parsed(Decimal(match.group()), match.end())


def parse_decimal(text: str, pos: int = 0) -> ParseResult:
    """Optionally signed decimal, e.g. ``-37.45``. Exponents are not accepted.

    The digits are kept as typed, so ``319.020`` keeps its trailing zero.
    """
    negative = False
    if _peek(text, pos) in ("-", "+"):
        negative = text[pos] == "-"
        pos += 1
    result = parse_positive_decimal(text, pos)
    if _failed(result) or not negative:
        return result
    # copy_negate() does not round to the context precision
    return Parsed(result.value.copy_negate(), result.end)


def parse_quoted_string(text: str, pos: int = 0) -> ParseResult:
    """Parse a double-quoted string.

    Only ``\\"`` and ``\\\\`` are valid escapes. When the string contains no
    escape the slice of the source is returned as is, otherwise the escapes
    are resolved.
    """
    if _peek(text, pos) != '"':
        return _expected(text, pos, "'\"'")
    i = pos + 1
    has_escapes = False
    while True:
        i = _STRING_RUN.match(text, i).end()
        if i >= len(text):
            return ParseError(Span(pos, i), message="Unterminated string")
        if text[i] == '"':
            break
        escaped = _peek(text, i + 1)
        if escaped is None:
            return ParseError(Span(pos, i + 1), message="Unterminated string")
        if escaped not in ('"', "\\"):
            return ParseError(
                Span(i, i + 2),
                message=f"Invalid escape sequence '\\{escaped}'",
                expected=("'\"'", "'\\\\'"),
                found=escaped,
            )
        has_escapes = True
        i += 2

    content = text[pos + 1 : i]
    if has_escapes:
        content = _ESCAPE.sub(r"\1", content)
    return Parsed(content, i + 1)


def parse_flag(text: str, pos: int = 0) -> ParseResult:
    """A single non-whitespace character followed by whitespace or end of line."""
    c = _peek(text, pos)
    following = _peek(text, pos + 1)
    if c is None or c.isspace() or (following is not None and not following.isspace()):
        return _expected(text, pos, "flag")
    return Parsed(Flag(c), pos + 1)


# Account and commodity


def parse_account_type(text: str, pos: int = 0) -> ParseResult:
    end = _COMPONENT_RUN.match(text, pos).end()
    account_type = _ACCOUNT_TYPES.get(text[pos:end])
    if account_type is None:
        return ParseError(
            Span(pos, end),
            message="Expected Assets, Liabilities, Income, Expenses or Equity",
            expected=tuple(_ACCOUNT_TYPES),
            found=_peek(text, pos),
        )
    return Parsed(account_type, end)


def parse_account_component(text: str, pos: int = 0) -> ParseResult:
    """Consume everything up to whitespace or ``:`` and validate it."""
    end = _COMPONENT_RUN.match(text, pos).end()
    name = text[pos:end]
    error = AccountComponent.check(name)
    if error is not None:
        return ParseError(Span(pos, end), message=error.value, found=_peek(text, pos))
    return Parsed(AccountComponent(name), end)


def parse_account(text: str, pos: int = 0) -> ParseResult:
    """Syntax: <Type>(:<Component>)*"""
    account_type = parse_account_type(text, pos)
    if _failed(account_type):
        return account_type

    components = []
    pos = account_type.end
    while _peek(text, pos) == ":":
        component = parse_account_component(text, pos + 1)
        if _failed(component):
            return component
        components.append(component.value)
        pos = component.end
    return Parsed(Account(account_type.value, tuple(components)), pos)


def parse_commodity(text: str, pos: int = 0) -> ParseResult:
    """Consume everything up to whitespace, ``,``, ``{`` or ``}`` and validate it."""
    end = _COMMODITY_RUN.match(text, pos).end()
    name = text[pos:end]
    error = Commodity.check(name)
    if error is not None:
        return ParseError(Span(pos, end), message=error.value, found=_peek(text, pos))
    return Parsed(Commodity(name), end)


def parse_commodity_list(text: str, pos: int = 0) -> ParseResult:
    """Comma separated commodities, collected into a frozenset."""
    first = parse_commodity(text, pos)
    if _failed(first):
        return first

    commodities = {first.value}
    pos = first.end
    while True:
        separator = _skip_whitespace(text, pos)
        if _peek(text, separator) != ",":
            break
        commodity = parse_commodity(text, _skip_whitespace(text, separator + 1))
        if _failed(commodity):
            return commodity
        commodities.add(commodity.value)
        pos = commodity.end
    return Parsed(frozenset(commodities), pos)


# Amounts


def parse_amount(text: str, pos: int = 0) -> ParseResult:
    number = parse_decimal(text, pos)
    if _failed(number):
        return number
    gap = _whitespace(text, number.end)
    if _failed(gap):
        return gap
    commodity = parse_commodity(text, gap.end)
    if _failed(commodity):
        return commodity
    return Parsed(Amount(number.value, commodity.value), commodity.end)


def parse_amount_with_tolerance(text: str, pos: int = 0) -> ParseResult:
    """Syntax: <number> [~ <tolerance>] <commodity>"""
    number = parse_decimal(text, pos)
    if _failed(number):
        return number
    gap = _whitespace(text, number.end)
    if _failed(gap):
        return gap

    pos = gap.end
    tolerance = None
    if _peek(text, pos) == "~":
        gap = _whitespace(text, pos + 1)
        if _failed(gap):
            return gap
        parsed_tolerance = parse_positive_decimal(text, gap.end)
        if _failed(parsed_tolerance):
            return parsed_tolerance
        gap = _whitespace(text, parsed_tolerance.end)
        if _failed(gap):
            return gap
        tolerance = parsed_tolerance.value
        pos = gap.end

    commodity = parse_commodity(text, pos)
    if _failed(commodity):
        return commodity
    amount = Amount(number.value, commodity.value)
    return Parsed(AmountWithTolerance(amount, tolerance), commodity.end)


def parse_posting_amount(text: str, pos: int = 0) -> ParseResult:
    """Syntax: <amount> [{<cost>}] [@ <price>]

    Padding inside the cost braces is optional.
    """
    amount = parse_amount(text, pos)
    if _failed(amount):
        return amount

    pos = amount.end
    cost = None
    price = None

    clause = _skip_whitespace(text, pos)
    if clause > pos and _peek(text, clause) == "{":
        parsed_cost = parse_amount(text, _skip_whitespace(text, clause + 1))
        if _failed(parsed_cost):
            return parsed_cost
        closing = _skip_whitespace(text, parsed_cost.end)
        if _peek(text, closing) != "}":
            return _expected(text, closing, "'}'")
        cost = parsed_cost.value
        pos = closing + 1
        clause = _skip_whitespace(text, pos)

    if clause > pos and _peek(text, clause) == "@":
        gap = _whitespace(text, clause + 1)
        if _failed(gap):
            return gap
        parsed_price = parse_amount(text, gap.end)
        if _failed(parsed_price):
            return parsed_price
        price = parsed_price.value
        pos = parsed_price.end

    return Parsed(PostingAmount(amount.value, cost, price), pos)


# Directive content


def parse_open(text: str, pos: int = 0) -> ParseResult:
    """Syntax: open <account> [<commodity>(,<commodity>)*]"""
    keyword = _keyword(text, pos, KEYWORD_OPEN)
    if _failed(keyword):
        return keyword
    gap = _whitespace(text, keyword.end)
    if _failed(gap):
        return gap
    account = parse_account(text, gap.end)
    if _failed(account):
        return account

    pos = account.end
    commodities = frozenset()
    clause = _skip_whitespace(text, pos)
    if clause > pos and not _at_line_end(text, clause):
        parsed_commodities = parse_commodity_list(text, clause)
        if _failed(parsed_commodities):
            return parsed_commodities
        commodities = parsed_commodities.value
        pos = parsed_commodities.end
    return Parsed(DirectiveOpen(account.value, commodities), pos)


def parse_balance(text: str, pos: int = 0) -> ParseResult:
    """Syntax: balance <account> <number> [~ <tolerance>] <commodity>"""
    keyword = _keyword(text, pos, KEYWORD_BALANCE)
    if _failed(keyword):
        return keyword
    gap = _whitespace(text, keyword.end)
    if _failed(gap):
        return gap
    account = parse_account(text, gap.end)
    if _failed(account):
        return account
    gap = _whitespace(text, account.end)
    if _failed(gap):
        return gap
    amount = parse_amount_with_tolerance(text, gap.end)
    if _failed(amount):
        return amount
    return Parsed(DirectiveBalance(account.value, amount.value), amount.end)


def parse_transaction_description(text: str, pos: int = 0) -> ParseResult:
    """Syntax: ["payee"] "narration"

    The two-string form is tried first: a second string makes the first one
    the payee. A lone string is always the narration.
    """
    first = parse_quoted_string(text, pos)
    if _failed(first):
        return first
    gap = _skip_whitespace(text, first.end)
    if gap > first.end and _peek(text, gap) == '"':
        second = parse_quoted_string(text, gap)
        if _failed(second):
            return second
        description = TransactionDescription(narration=second.value, payee=first.value)
        return Parsed(description, second.end)
    return Parsed(TransactionDescription(narration=first.value), first.end)


def parse_posting(text: str, pos: int = 0) -> ParseResult:
    """Syntax: <indent> [<flag> ]<account>[  <posting_amount>]

    Consumes the rest of the line up to (not including) the line feed.
    """
    indent = _whitespace(text, pos)
    if _failed(indent):
        return indent
    pos = indent.end

    flag = None
    parsed_flag = parse_flag(text, pos)
    if not _failed(parsed_flag):
        gap = _whitespace(text, parsed_flag.end)
        if _failed(gap):
            return gap
        flag = parsed_flag.value
        pos = gap.end

    account = parse_account(text, pos)
    if _failed(account):
        return account

    pos = account.end
    amount = None
    clause = _skip_whitespace(text, pos)
    if clause > pos and not _at_line_end(text, clause):
        parsed_amount = parse_posting_amount(text, clause)
        if _failed(parsed_amount):
            return parsed_amount
        amount = parsed_amount.value
        pos = parsed_amount.end

    pos = _skip_whitespace(text, pos)
    if not _at_line_end(text, pos):
        return _expected(text, pos, "end of line")
    return Parsed(Posting(account.value, flag, amount), pos)


def parse_transaction(text: str, pos: int = 0) -> ParseResult:
    """Syntax: (<flag>|txn) [<description>] followed by indented posting lines.

    ``txn`` stands for the ``*`` flag. At least one posting is required.
    """
    keyword = _keyword(text, pos, KEYWORD_TXN)
    if _failed(keyword):
        parsed_flag = parse_flag(text, pos)
        if _failed(parsed_flag):
            return _expected(text, pos, f"'{KEYWORD_TXN}'", "flag")
        flag = parsed_flag.value
        pos = parsed_flag.end
    else:
        flag = Flag.OKAY
        pos = keyword.end

    description = None
    clause = _skip_whitespace(text, pos)
    if clause > pos and not _at_line_end(text, clause):
        parsed_description = parse_transaction_description(text, clause)
        if _failed(parsed_description):
            return parsed_description
        description = parsed_description.value
        pos = parsed_description.end
    pos = _skip_whitespace(text, pos)

    postings = []
    while _peek(text, pos) == "\n":
        # A whitespace-only line ends the postings
        line = _skip_whitespace(text, pos + 1)
        if line == pos + 1 or _at_line_end(text, line):
            break
        posting = parse_posting(text, pos + 1)
        if _failed(posting):
            return posting
        postings.append(posting.value)
        pos = posting.end

    if not postings:
        if not _at_line_end(text, pos):
            return _expected(text, pos, "end of line")
        return _expected(text, pos, "indented posting")
    return Parsed(DirectiveTransaction(flag, description, tuple(postings)), pos)


_DIRECTIVE_CONTENT = (parse_open, parse_balance, parse_transaction)


def parse_directive_content(text: str, pos: int = 0) -> ParseResult:
    return _choice(text, pos, _DIRECTIVE_CONTENT)


def parse_directive(text: str, pos: int = 0) -> ParseResult:
    """Syntax: <date> <directive_content>"""
    date = parse_date(text, pos)
    if _failed(date):
        return date
    gap = _whitespace(text, date.end)
    if _failed(gap):
        return gap
    content = parse_directive_content(text, gap.end)
    if _failed(content):
        return content
    return Parsed(Directive(date.value, content.value), content.end)
