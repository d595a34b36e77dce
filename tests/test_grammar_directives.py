"""
Tests for directive productions: open, balance, postings and transactions.
"""

from decimal import Decimal

import pytest

from beancount_directives.account import Account, AccountType
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
from beancount_directives.grammar import (
    parse,
    parse_balance,
    parse_directive,
    parse_open,
    parse_posting,
    parse_transaction,
    parse_transaction_description,
)
from beancount_directives.primitives import Date, Flag

USD = Commodity("USD")
CAFE_MOGADOR = (
    '2024-01-15 * "Cafe Mogador" "Lamb tagine with wine"\n'
    "  Liabilities:CreditCard  -37.45 USD\n"
    "  Expenses:Restaurant"
)


def _posting(account: str, number: str | None = None, flag: Flag | None = None) -> Posting:
    account_type, *components = account.split(":")
    amount = None
    if number is not None:
        amount = PostingAmount(Amount(Decimal(number), USD))
    return Posting(Account.of(AccountType(account_type), *components), flag, amount)


class TestParseOpen:
    def test_without_commodities(self) -> None:
        value, errors = parse(parse_open, "open Assets:Cash")
        assert errors == []
        assert value == DirectiveOpen(Account.of(AccountType.ASSETS, "Cash"))

    def test_with_commodities(self) -> None:
        value, errors = parse(parse_open, "open Assets:Investment USD,EUR,GBP")
        assert errors == []
        assert value.commodities == frozenset(
            {USD, Commodity("EUR"), Commodity("GBP")}
        )

    def test_trailing_whitespace(self) -> None:
        value, errors = parse(parse_open, "open Assets:Cash  ")
        assert errors == []
        assert value.commodities == frozenset()

    def test_bad_commodity_is_reported(self) -> None:
        _, errors = parse(parse_open, "open Assets:Cash usd")
        assert errors[0].span == Span(17, 20)

    def test_keyword_needs_separator(self) -> None:
        _, errors = parse(parse_open, "openAssets:Cash")
        assert errors[0] == ParseError(Span(0, 1), expected=("'open'",), found="o")


class TestParseBalance:
    def test_with_tolerance(self) -> None:
        value, errors = parse(parse_balance, "balance Assets:Investment 319.020 ~ 0.002 RGAGX")
        assert errors == []
        assert value == DirectiveBalance(
            Account.of(AccountType.ASSETS, "Investment"),
            AmountWithTolerance(
                Amount(Decimal("319.020"), Commodity("RGAGX")), Decimal("0.002")
            ),
        )

    def test_amount_is_required(self) -> None:
        _, errors = parse(parse_balance, "balance Assets:Cash")
        assert errors[0] == ParseError(Span(19, 19), expected=("whitespace",))


class TestParseTransactionDescription:
    def test_narration_only(self) -> None:
        value, _ = parse(parse_transaction_description, '"Coffee"')
        assert value == TransactionDescription("Coffee")

    def test_payee_and_narration(self) -> None:
        value, _ = parse(parse_transaction_description, '"Cafe Mogador" "Lamb tagine"')
        assert value == TransactionDescription(narration="Lamb tagine", payee="Cafe Mogador")

    def test_empty_narration_with_payee(self) -> None:
        value, _ = parse(parse_transaction_description, '"Cafe Mogador" ""')
        assert value == TransactionDescription(narration="", payee="Cafe Mogador")

    def test_single_string_followed_by_other_content(self) -> None:
        result = parse_transaction_description('"Coffee" #tag')
        assert result.value == TransactionDescription("Coffee")
        assert result.end == 8


class TestParsePosting:
    def test_without_amount(self) -> None:
        value, errors = parse(parse_posting, "  Expenses:Restaurant")
        assert errors == []
        assert value == _posting("Expenses:Restaurant")

    def test_with_amount(self) -> None:
        value, _ = parse(parse_posting, "  Liabilities:CreditCard  -37.45 USD")
        assert value == _posting("Liabilities:CreditCard", "-37.45")

    def test_with_flag(self) -> None:
        value, _ = parse(parse_posting, "\t! Assets:Cash 10 USD")
        assert value == _posting("Assets:Cash", "10", Flag.WARNING)

    def test_indent_is_required(self) -> None:
        _, errors = parse(parse_posting, "Assets:Cash")
        assert errors[0] == ParseError(Span(0, 1), expected=("whitespace",), found="A")

    def test_stops_at_line_feed(self) -> None:
        result = parse_posting("  Assets:Cash  10 USD  \nnext")
        assert result.end == 23

    def test_garbage_after_account(self) -> None:
        _, errors = parse(parse_posting, "  Assets:Cash  10 USD x")
        assert errors[0].span == Span(22, 23)


class TestParseTransaction:
    def test_flag_and_description(self) -> None:
        value, errors = parse(parse_transaction, '! "Check this"\n  Assets:Cash  1 USD')
        assert errors == []
        assert value.flag == Flag.WARNING
        assert value.description == TransactionDescription("Check this")

    def test_txn_keyword_is_okay_flag(self) -> None:
        value, errors = parse(parse_transaction, 'txn "Coffee"\n  Assets:Cash  -3 USD')
        assert errors == []
        assert value.flag == Flag.OKAY

    def test_without_description(self) -> None:
        value, errors = parse(parse_transaction, "*\n  Assets:Cash")
        assert errors == []
        assert value == DirectiveTransaction(Flag.OKAY, None, (_posting("Assets:Cash"),))

    def test_single_posting(self) -> None:
        value, errors = parse(parse_transaction, '* "One leg"\n  Assets:Cash  1 USD')
        assert errors == []
        assert len(value.postings) == 1

    def test_zero_postings_fails(self) -> None:
        text = '* "No legs"'
        value, errors = parse(parse_transaction, text)
        assert value is None
        assert errors == [ParseError(Span(len(text), len(text)), expected=("indented posting",))]

    def test_unindented_line_ends_postings(self) -> None:
        result = parse_transaction('* "x"\n  Assets:Cash\nAssets:Bank')
        assert len(result.value.postings) == 1
        assert result.end == 19

    def test_posting_error_is_reported(self) -> None:
        text = '* "x"\n  assets:Cash'
        _, errors = parse(parse_transaction, text)
        assert errors[0].span == Span(8, 14)

    def test_trailing_whitespace_line(self) -> None:
        value, errors = parse(parse_directive, "2024-01-01 *\n  Assets:Cash\n  ")
        assert errors == []
        assert value.content.postings == (_posting("Assets:Cash"),)

    def test_whitespace_line_is_not_a_posting(self) -> None:
        result = parse_transaction("*\n  Assets:Cash\n\t\n  Assets:Bank")
        assert len(result.value.postings) == 1
        assert result.end == 14

    def test_whitespace_line_without_postings(self) -> None:
        assert parse_transaction("*\n  ") == ParseError(
            Span(1, 2), expected=("indented posting",), found="\n"
        )

    def test_not_a_flag(self) -> None:
        assert parse_transaction("open") == ParseError(
            Span(0, 1), expected=("'txn'", "flag"), found="o"
        )


class TestParseDirective:
    def test_balance_scenario(self) -> None:
        value, errors = parse(
            parse_directive, "2023-09-20 balance Assets:Investment 319.020 ~ 0.002 RGAGX"
        )
        assert errors == []
        assert value.date == Date(2023, 9, 20)
        assert isinstance(value.content, DirectiveBalance)
        assert value.content.account == Account.of(AccountType.ASSETS, "Investment")
        assert value.content.amount.number == Decimal("319.020")
        assert value.content.amount.tolerance == Decimal("0.002")
        assert value.content.amount.commodity == Commodity("RGAGX")

    def test_transaction_scenario(self) -> None:
        value, errors = parse(parse_directive, CAFE_MOGADOR)
        assert errors == []
        assert value == Directive(
            Date(2024, 1, 15),
            DirectiveTransaction(
                Flag.OKAY,
                TransactionDescription("Lamb tagine with wine", "Cafe Mogador"),
                (
                    _posting("Liabilities:CreditCard", "-37.45"),
                    _posting("Expenses:Restaurant"),
                ),
            ),
        )

    def test_open(self) -> None:
        value, errors = parse(parse_directive, "2024/01/01 open Assets:Cash USD")
        assert errors == []
        assert value.date == Date(2024, 1, 1)
        assert value.content == DirectiveOpen(
            Account.of(AccountType.ASSETS, "Cash"), frozenset({USD})
        )

    def test_unknown_directive_merges_expected(self) -> None:
        _, errors = parse(parse_directive, "2024-01-01 price USD 1 EUR")
        assert errors == [
            ParseError(
                Span(11, 12),
                expected=("'open'", "'balance'", "'txn'", "flag"),
                found="p",
            )
        ]
        assert str(errors[0]) == "found 'p' expected 'open', 'balance', 'txn' or flag"

    def test_furthest_error_wins(self) -> None:
        _, errors = parse(parse_directive, "2024-01-01 open assets:Cash")
        assert errors[0].span == Span(16, 22)

    def test_date_needs_whitespace(self) -> None:
        _, errors = parse(parse_directive, "2024-01-01open Assets:Cash")
        assert errors[0] == ParseError(Span(10, 11), expected=("whitespace",), found="o")

    @pytest.mark.parametrize(
        "text",
        ["2023-02-29 open Assets:Cash", "2023-04-31 open Assets:Cash"],
    )
    def test_invalid_date(self, text: str) -> None:
        _, errors = parse(parse_directive, text)
        assert errors[0].span == Span(0, 10)
        assert errors[0].message == f"{text[:10]} is not a valid date"
