"""Error values shared by the grammar, the value types and the beancount adapter.

ERROR FAMILIES:

1. Parse errors (grammar layer)
   - ParseError carries the offending character span and either a free-form
     message or the labels of what was expected at that position
   - Always returned as values, never raised

2. Validation errors (value types)
   - AccountComponentError / CommodityError enumerate the violated rule
   - Constructors raise InvalidValueError wrapping the kind
   - check() helpers return the kind (or None) for callers that want values

3. Conversion errors (beancount adapter)
   - ConversionFailure is raised while converting a single entry
   - ingest() catches it and reports a ConversionError tuple with the same
     (source, message, entry) shape as beancount's own errors
"""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

import enum
from typing import Any, NamedTuple, Tuple


class Span(NamedTuple):
    """Half-open range of character offsets into the parsed text."""

    start: int
    end: int

    def shift(self, offset: int) -> "Span":
        return Span(self.start + offset, self.end + offset)


class ParseError(NamedTuple):
    """A failed parse with its location.

    Attributes:
        span: Characters the error refers to
        message: Free-form explanation (validation and calendar errors)
        expected: Labels of the tokens that would have been accepted
        found: Character found at span.start, None at end of input
    """

    span: Span
    message: str | None = None
    expected: Tuple[str, ...] = ()
    found: str | None = None

    def shift(self, offset: int) -> "ParseError":
        return self._replace(span=self.span.shift(offset))

    def __str__(self) -> str:
        if self.message is not None:
            return self.message
        found = "end of input" if self.found is None else repr(self.found)
        if not self.expected:
            return f"found {found}"
        if len(self.expected) == 1:
            expected = self.expected[0]
        else:
            expected = ", ".join(self.expected[:-1]) + f" or {self.expected[-1]}"
        return f"found {found} expected {expected}"


class AccountComponentError(enum.Enum):
    EMPTY = "Account component cannot be empty"
    INVALID_START = "Account component must start with an uppercase letter or a number"
    INVALID_CHARACTER = "Account component can only contain letters, numbers or dashes"


class CommodityError(enum.Enum):
    EMPTY = "Commodity name cannot be empty"
    TOO_LONG = "Commodity names can only be up to 24 characters long"
    INVALID_START = "Commodity name must start with a capital letter"
    INVALID_END = "Commodity name must end with a capital letter or number"
    INVALID_CHARACTER = (
        "Commodity name can only contain capital letters, numbers, or punctuation "
        "(apostrophe, period, underscore, dash)"
    )


class InvalidValueError(ValueError):
    """Raised by value-type constructors when the input violates a rule."""

    def __init__(self, kind: enum.Enum, value: str):
        super().__init__(f"{kind.value}: {value!r}")
        self.kind = kind
        self.value = value


class ConversionErrorKind(enum.Enum):
    INVALID_COMMODITY = "Invalid commodity"
    INVALID_ACCOUNT_COMPONENT = "Invalid account component"
    INVALID_ACCOUNT_TYPE = "Invalid account type"
    INVALID_FLAG = "Invalid flag"
    CURRENCY_WITHOUT_AMOUNT = "Currency without amount in posting"
    AMOUNT_WITHOUT_CURRENCY = "Amount without currency in posting"
    COST_WITHOUT_AMOUNT = "Cost without amount in posting"
    PRICE_WITHOUT_AMOUNT = "Price without amount in posting"
    INCOMPLETE_COST = "Cost must have a per-unit number and a currency"
    INCOMPLETE_PRICE = "Price must have a number and a currency"
    NEGATIVE_TOLERANCE = "Balance tolerance must not be negative"
    PAYEE_WITHOUT_NARRATION = "Payee specified but no narration"


class ConversionFailure(Exception):
    """Raised while converting a single beancount entry."""

    def __init__(self, kind: ConversionErrorKind, detail: str = ""):
        message = f"{kind.value}: {detail}" if detail else kind.value
        super().__init__(message)
        self.kind = kind
        self.message = message


class ConversionError(NamedTuple):
    """A beancount entry that could not be converted into the domain model."""

    source: dict
    message: str
    entry: Any
    kind: ConversionErrorKind
