"""Commodity (currency) codes such as USD, VBTLX or RGAGX."""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

from dataclasses import dataclass

from beancount_directives.errors import CommodityError, InvalidValueError

MAX_COMMODITY_NAME_LENGTH = 24

_PUNCTUATION = frozenset("'._-")


@dataclass(frozen=True, order=True)
class Commodity:
    """A validated commodity code. Ordered by name."""

    name: str

    def __post_init__(self):
        error = self.check(self.name)
        if error is not None:
            raise InvalidValueError(error, self.name)

    @staticmethod
    def check(name: str) -> CommodityError | None:
        """Return the first rule ``name`` violates, or None if it is valid.

        Rules are checked in a fixed order so that a name breaking several
        of them always reports the same error: empty, too long, start,
        end, interior characters.
        """
        if not name:
            return CommodityError.EMPTY
        # The length limit counts UTF-8 bytes, not characters
        if len(name.encode("utf-8")) > MAX_COMMODITY_NAME_LENGTH:
            return CommodityError.TOO_LONG
        if not name[0].isupper():
            return CommodityError.INVALID_START
        # A single character was already checked by the stricter start rule
        if len(name) > 1:
            last = name[-1]
            if not (last.isupper() or last.isnumeric()):
                return CommodityError.INVALID_END
        for c in name[1:-1]:
            if not (c.isupper() or c.isnumeric() or c in _PUNCTUATION):
                return CommodityError.INVALID_CHARACTER
        return None

    def __str__(self) -> str:
        return self.name
