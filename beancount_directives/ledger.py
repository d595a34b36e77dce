"""Parse and emit whole ledger texts made of many directives.

WHAT IT DOES:
- Splits a ledger text into directive blocks
  - a line starting in column one opens a block
  - indented lines continue the current block (transaction postings)
  - blank lines and ';' comment lines close the current block
- Parses every block with the directive grammar, independently
- Keeps going after a failing block so one typo does not hide the rest
- Reports error spans relative to the whole text

USAGE:
    directives, errors = parse_directives(open("main.bean").read())
    for error in errors:
        print(error.span, error)

    text = marshal_directives(directives)

Lines end with a bare line feed; CRLF line endings are not supported.

Options, plugins, includes and the other directive kinds are not part of
this grammar; lines using them are reported as errors like any other
unparseable block.
"""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

import logging
from typing import Iterable, Iterator, List, Tuple

from beancount_directives.directives import Directive
from beancount_directives.errors import ParseError, Span
from beancount_directives.grammar import parse, parse_directive
from beancount_directives.marshal import marshal_directive

logger = logging.getLogger(__name__)

COMMENT_PREFIX = ";"


def _split_blocks(text: str) -> Iterator[Tuple[int, str] | ParseError]:
    """Yield (offset, block_text) for each directive block.

    Orphan indented lines are yielded as ParseErrors.
    """
    block_start = None
    block_end = 0
    offset = 0

    for line in text.split("\n"):
        line_start = offset
        offset += len(line) + 1
        stripped = line.strip()

        if not stripped or line.startswith(COMMENT_PREFIX):
            if block_start is not None:
                yield block_start, text[block_start:block_end]
                block_start = None
            continue

        if line[0] in " \t":
            if block_start is None:
                indent = len(line) - len(line.lstrip(" \t"))
                yield ParseError(
                    Span(line_start + indent, line_start + len(line)),
                    message="Indented line outside of a directive",
                )
            else:
                block_end = line_start + len(line)
            continue

        if block_start is not None:
            yield block_start, text[block_start:block_end]
        block_start = line_start
        block_end = line_start + len(line)

    if block_start is not None:
        yield block_start, text[block_start:block_end]


def parse_directives(text: str) -> Tuple[List[Directive], List[ParseError]]:
    """Parse every directive in a ledger text.

    Args:
        text: Full ledger text

    Returns:
        Tuple of (directives, errors) in source order
    """
    directives: list[Directive] = []
    errors: list[ParseError] = []

    for block in _split_blocks(text):
        if isinstance(block, ParseError):
            errors.append(block)
            continue

        offset, block_text = block
        directive, block_errors = parse(parse_directive, block_text)
        if block_errors:
            for error in block_errors:
                logger.debug(f"Failed to parse directive at offset {offset}: {error}")
                errors.append(error.shift(offset))
            continue
        directives.append(directive)

    if errors:
        logger.warning(f"Parsed {len(directives)} directives, {len(errors)} errors")
    else:
        logger.info(f"Parsed {len(directives)} directives")

    return directives, errors


def marshal_directives(directives: Iterable[Directive]) -> str:
    """Canonical text for a sequence of directives, separated by blank lines."""
    blocks = [marshal_directive(d) for d in directives]
    if not blocks:
        return ""
    return "\n\n".join(blocks) + "\n"
