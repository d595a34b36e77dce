"""
Tests for converting beancount entries into the domain model.
"""

import datetime
import textwrap
from decimal import Decimal

import pytest
from beancount.core import data
from beancount.core.amount import Amount as BeanAmount
from beancount.core.number import MISSING
from beancount.core.position import Cost, CostSpec
from beancount.parser import options

from beancount_directives.account import Account, AccountType
from beancount_directives.adapter import (
    account_roots,
    convert_account,
    convert_entry,
    convert_posting,
    ingest,
    ingest_file,
    ingest_string,
)
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
from beancount_directives.errors import ConversionErrorKind, ConversionFailure
from beancount_directives.primitives import Date, Flag

USD = Commodity("USD")
DATE = datetime.date(2024, 1, 15)

LEDGER = textwrap.dedent(
    """\
    2024-01-01 open Assets:Cash USD,EUR
    2024-01-02 balance Assets:Cash 100.00 ~ 0.01 USD

    2024-01-15 * "Cafe Mogador" "Lamb tagine with wine"
      Liabilities:CreditCard  -37.45 USD
      Expenses:Restaurant

    2024-01-16 price VBTLX 100 USD
    """
)


def _meta(lineno: int = 1) -> dict:
    return data.new_metadata("test.bean", lineno)


def _posting(account: str = "Assets:Cash", units=MISSING, cost=None, price=None, flag=None):
    return data.Posting(account, units, cost, price, flag, None)


def _transaction(postings, flag="*", payee=None, narration="Test", lineno=1):
    return data.Transaction(
        _meta(lineno), DATE, flag, payee, narration, data.EMPTY_SET, data.EMPTY_SET, postings
    )


def _usd(number: str) -> BeanAmount:
    return BeanAmount(Decimal(number), "USD")


class TestAccountRoots:
    def test_defaults(self) -> None:
        assert account_roots()["Liabilities"] is AccountType.LIABILITIES

    def test_renamed_roots(self) -> None:
        options_map = options.OPTIONS_DEFAULTS.copy()
        options_map["name_assets"] = "Actifs"
        roots = account_roots(options_map)
        assert roots["Actifs"] is AccountType.ASSETS
        assert convert_account("Actifs:Cash", roots) == Account.of(AccountType.ASSETS, "Cash")

    def test_unknown_root(self) -> None:
        with pytest.raises(ConversionFailure) as exc_info:
            convert_account("Actifs:Cash")
        assert exc_info.value.kind is ConversionErrorKind.INVALID_ACCOUNT_TYPE

    def test_invalid_component(self) -> None:
        with pytest.raises(ConversionFailure) as exc_info:
            convert_account("Assets:Ca_sh")
        assert exc_info.value.kind is ConversionErrorKind.INVALID_ACCOUNT_COMPONENT


class TestConvertPosting:
    def test_inferred_posting(self) -> None:
        posting = convert_posting(_posting())
        assert posting == Posting(Account.of(AccountType.ASSETS, "Cash"))

    def test_amount_cost_and_price(self) -> None:
        cost = CostSpec(Decimal("100"), None, "USD", None, None, False)
        posting = convert_posting(
            _posting(
                "Assets:Broker",
                BeanAmount(Decimal("10"), "VBTLX"),
                cost=cost,
                price=_usd("101"),
                flag="!",
            )
        )
        assert posting.flag == Flag.WARNING
        assert posting.amount == PostingAmount(
            Amount(Decimal("10"), Commodity("VBTLX")),
            cost=Amount(Decimal("100"), USD),
            price=Amount(Decimal("101"), USD),
        )

    def test_booked_cost(self) -> None:
        cost = Cost(Decimal("100"), "USD", datetime.date(2024, 1, 1), None)
        posting = convert_posting(
            _posting("Assets:Broker", BeanAmount(Decimal("10"), "VBTLX"), cost=cost)
        )
        assert posting.amount.cost == Amount(Decimal("100"), USD)

    @pytest.mark.parametrize(
        "posting, kind",
        [
            (
                _posting(cost=CostSpec(Decimal("1"), None, "USD", None, None, False)),
                ConversionErrorKind.COST_WITHOUT_AMOUNT,
            ),
            (_posting(price=_usd("1")), ConversionErrorKind.PRICE_WITHOUT_AMOUNT),
            (
                _posting(units=BeanAmount(MISSING, "USD")),
                ConversionErrorKind.CURRENCY_WITHOUT_AMOUNT,
            ),
            (
                _posting(units=BeanAmount(Decimal("1"), MISSING)),
                ConversionErrorKind.AMOUNT_WITHOUT_CURRENCY,
            ),
            (
                _posting(
                    units=_usd("1"),
                    cost=CostSpec(MISSING, Decimal("100"), "EUR", None, None, False),
                ),
                ConversionErrorKind.INCOMPLETE_COST,
            ),
            (
                _posting(units=_usd("1"), cost=CostSpec(MISSING, None, MISSING, None, None, False)),
                ConversionErrorKind.INCOMPLETE_COST,
            ),
            (
                _posting(units=_usd("1"), price=BeanAmount(MISSING, "EUR")),
                ConversionErrorKind.INCOMPLETE_PRICE,
            ),
            (
                _posting(units=BeanAmount(Decimal("1"), "usd")),
                ConversionErrorKind.INVALID_COMMODITY,
            ),
            (_posting(flag="**"), ConversionErrorKind.INVALID_FLAG),
        ],
    )
    def test_invalid(self, posting: data.Posting, kind: ConversionErrorKind) -> None:
        with pytest.raises(ConversionFailure) as exc_info:
            convert_posting(posting)
        assert exc_info.value.kind is kind


class TestConvertEntry:
    def test_open(self) -> None:
        entry = data.Open(_meta(), DATE, "Assets:Cash", ["USD", "EUR"], None)
        assert convert_entry(entry) == Directive(
            Date(2024, 1, 15),
            DirectiveOpen(
                Account.of(AccountType.ASSETS, "Cash"), frozenset({USD, Commodity("EUR")})
            ),
        )

    def test_open_without_currencies(self) -> None:
        entry = data.Open(_meta(), DATE, "Assets:Cash", None, None)
        assert convert_entry(entry).content.commodities == frozenset()

    def test_balance(self) -> None:
        entry = data.Balance(_meta(), DATE, "Assets:Cash", _usd("10.00"), Decimal("0.01"), None)
        assert convert_entry(entry).content == DirectiveBalance(
            Account.of(AccountType.ASSETS, "Cash"),
            AmountWithTolerance(Amount(Decimal("10.00"), USD), Decimal("0.01")),
        )

    def test_negative_tolerance(self) -> None:
        entry = data.Balance(_meta(), DATE, "Assets:Cash", _usd("10"), Decimal("-1"), None)
        with pytest.raises(ConversionFailure) as exc_info:
            convert_entry(entry)
        assert exc_info.value.kind is ConversionErrorKind.NEGATIVE_TOLERANCE

    def test_transaction_descriptions(self) -> None:
        postings = [_posting()]
        narration_only = convert_entry(_transaction(postings, narration="Coffee"))
        with_payee = convert_entry(_transaction(postings, payee="Cafe", narration="Coffee"))
        empty = convert_entry(_transaction(postings, narration=""))

        assert narration_only.content.description == TransactionDescription("Coffee")
        assert with_payee.content.description == TransactionDescription("Coffee", "Cafe")
        assert empty.content.description is None

    def test_payee_without_narration(self) -> None:
        with pytest.raises(ConversionFailure) as exc_info:
            convert_entry(_transaction([_posting()], payee="Cafe", narration=None))
        assert exc_info.value.kind is ConversionErrorKind.PAYEE_WITHOUT_NARRATION

    def test_unsupported_entry(self) -> None:
        with pytest.raises(TypeError):
            convert_entry(data.Commodity(_meta(), DATE, "USD"))


class TestIngest:
    def test_collects_errors_with_source(self) -> None:
        entries = [
            data.Open(_meta(3), DATE, "Assets:Cash", ["usd"], None),
            data.Commodity(_meta(4), DATE, "USD"),
            _transaction([_posting()], lineno=5),
        ]
        directives, errors = ingest(entries)

        assert len(directives) == 1
        assert isinstance(directives[0].content, DirectiveTransaction)
        assert len(errors) == 1
        assert errors[0].source == {"filename": "test.bean", "lineno": 3}
        assert errors[0].kind is ConversionErrorKind.INVALID_COMMODITY
        assert errors[0].entry is entries[0]
        assert errors[0].message.startswith("Invalid commodity")

    def test_negative_tolerance_is_reported(self) -> None:
        directives, errors = ingest_string(
            "2024-01-01 open Assets:Cash\n2024-01-02 balance Assets:Cash 10 ~ -1 USD\n"
        )
        assert len(directives) == 1
        assert len(errors) == 1
        assert errors[0].kind is ConversionErrorKind.NEGATIVE_TOLERANCE
        assert errors[0].source["lineno"] == 2

    def test_ingest_string(self) -> None:
        directives, errors = ingest_string(LEDGER)
        assert errors == []
        assert len(directives) == 3

        open_, balance, transaction = directives
        assert open_.content.commodities == frozenset({USD, Commodity("EUR")})
        assert balance.content.amount.tolerance == Decimal("0.01")
        assert transaction.content == DirectiveTransaction(
            Flag.OKAY,
            TransactionDescription("Lamb tagine with wine", "Cafe Mogador"),
            (
                Posting(
                    Account.of(AccountType.LIABILITIES, "CreditCard"),
                    amount=PostingAmount(Amount(Decimal("-37.45"), USD)),
                ),
                Posting(Account.of(AccountType.EXPENSES, "Restaurant")),
            ),
        )

    def test_ingest_file(self, tmp_path) -> None:
        ledger = tmp_path / "main.bean"
        ledger.write_text(LEDGER)
        directives, errors = ingest_file(ledger)
        assert errors == []
        assert [d.date for d in directives] == [
            Date(2024, 1, 1),
            Date(2024, 1, 2),
            Date(2024, 1, 15),
        ]
