#!/usr/bin/env python3
"""Beancount plugin to check that directives survive canonical formatting.

This plugin converts every Open, Balance and Transaction entry into the
beancount_directives model, writes it out in canonical form, parses that text
back with the beancount_directives grammar and reports anything that does not
come back unchanged. Use it to keep a ledger within the subset that the
canonical formatter can rewrite safely.

WHAT IT DOES:
- Converts entries with beancount_directives.adapter
- Reports entries the model cannot represent (bad commodity names, lowercase
  account components, total costs, ...)
- Marshals each converted directive and re-parses the canonical text
- Reports directives whose canonical text fails to parse or parses into a
  different directive
- Optionally restricts transaction and posting flags to an allowed list
- Leaves entries untouched

USAGE:
In your main ledger file:
    plugin "beancount_directives.check_canonical_format"

Optional config (specify alternate config file):
    plugin "beancount_directives.check_canonical_format" "/path/to/canonical_format.yaml"

CONFIG FILE FORMAT:
Without a config string the plugin looks for canonical_format.yaml in the
working directory and falls back to defaults when it does not exist:

    canonical_format:
      directives: [open, balance, transaction]
      allowed_flags: ["*", "!"]

- directives: Which directive kinds to check (default: all three)
- allowed_flags: Flags allowed on transactions and postings
  (default: any flag)

ERROR REPORTING:
    your-file.bean:42: Cannot represent transaction directive: Invalid commodity: ...
    your-file.bean:57: Canonical text does not parse: found 'x' expected ...
    your-file.bean:63: Flag 'P' not allowed on transaction (allowed: *, !)
"""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

import logging
from pathlib import Path
from typing import Iterable, List, Tuple

import yaml
from beancount.core import data
from beancount.parser.parser import ParserError

from beancount_directives.adapter import account_roots, convert_entry
from beancount_directives.directives import Directive, DirectiveTransaction
from beancount_directives.errors import ConversionFailure
from beancount_directives.grammar import parse, parse_directive
from beancount_directives.marshal import marshal_directive

logger = logging.getLogger(__name__)

__plugins__ = ("check_canonical_format",)

DEFAULT_CONFIG_FILE = "canonical_format.yaml"

DIRECTIVE_TYPES = {
    "open": data.Open,
    "balance": data.Balance,
    "transaction": data.Transaction,
}


def _error(entry, message: str) -> ParserError:
    return ParserError(
        source={
            "filename": entry.meta.get("filename", "unknown") if entry else "unknown",
            "lineno": entry.meta.get("lineno", 0) if entry else 0,
        },
        message=message,
        entry=None,
    )


def _load_config(config: str | None) -> Tuple[dict, List[ParserError]]:
    """Load the plugin configuration.

    Args:
        config: Optional config path from the plugin directive

    Returns:
        Tuple of (config_section, errors)
    """
    if config:
        config_path = Path(config)
        if not config_path.exists():
            logger.warning(f"Canonical format configuration file not found: {config_path}")
            return {}, [
                ParserError(
                    source={"filename": DEFAULT_CONFIG_FILE, "lineno": 0},
                    message=f"Canonical format configuration file not found: {config_path}",
                    entry=None,
                )
            ]
    else:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILE
        if not config_path.exists():
            logger.debug("No canonical format configuration, using defaults")
            return {}, []

    try:
        with open(config_path, encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load canonical format configuration: {e}")
        return {}, [
            ParserError(
                source={"filename": str(config_path), "lineno": 0},
                message=f"Failed to load canonical format configuration: {e}",
                entry=None,
            )
        ]

    section = config_data.get("canonical_format", {}) if isinstance(config_data, dict) else {}
    return section if isinstance(section, dict) else {}, []


def _flags_of(directive: Directive) -> Iterable[Tuple[str, str]]:
    """Yield (flag, where) pairs for a transaction and its postings."""
    if not isinstance(directive.content, DirectiveTransaction):
        return
    yield directive.content.flag.char, "transaction"
    for posting in directive.content.postings:
        if posting.flag is not None:
            yield posting.flag.char, f"posting to '{posting.account}'"


def check_canonical_format(
    entries: data.Entries,
    options_map: dict,
    config: str | None = None,
) -> Tuple[data.Entries, List[ParserError]]:
    """Report entries that do not survive canonical formatting.

    Args:
        entries: List of beancount entries
        options_map: Beancount options map
        config: Optional config path (defaults to canonical_format.yaml)

    Returns:
        Tuple of (entries_unchanged, errors)
    """
    settings, errors = _load_config(config)
    if errors:
        return entries, errors

    # Determine which directive kinds to check
    kinds = settings.get("directives") or list(DIRECTIVE_TYPES)
    unknown = [k for k in kinds if k not in DIRECTIVE_TYPES]
    if unknown:
        errors.append(
            _error(None, f"Unknown directive types in configuration: {', '.join(unknown)}")
        )
        return entries, errors
    checked_types = tuple(DIRECTIVE_TYPES[k] for k in kinds)

    allowed_flags = settings.get("allowed_flags")
    allowed_flags = set(allowed_flags) if allowed_flags else None

    roots = account_roots(options_map)
    checked_count = 0
    violations_count = 0

    for entry in entries:
        if not isinstance(entry, checked_types):
            continue
        checked_count += 1
        directive_type = type(entry).__name__.lower()

        try:
            directive = convert_entry(entry, roots)
        except ConversionFailure as e:
            violations_count += 1
            errors.append(
                _error(entry, f"Cannot represent {directive_type} directive: {e.message}")
            )
            continue

        # Flags
        if allowed_flags is not None:
            for flag, where in _flags_of(directive):
                if flag not in allowed_flags:
                    violations_count += 1
                    errors.append(
                        _error(
                            entry,
                            f"Flag '{flag}' not allowed on {where} "
                            f"(allowed: {', '.join(sorted(allowed_flags))})",
                        )
                    )

        # Round trip through the canonical text
        text = marshal_directive(directive)
        reparsed, parse_errors = parse(parse_directive, text)
        if parse_errors:
            violations_count += 1
            errors.append(
                _error(entry, f"Canonical text does not parse: {parse_errors[0]}")
            )
        elif reparsed != directive:
            violations_count += 1
            errors.append(
                _error(entry, f"Canonical text changes the {directive_type} directive")
            )

    # Log summary
    if violations_count > 0:
        logger.warning(
            f"Found {violations_count} canonical format violations "
            f"in {checked_count} directives"
        )
    else:
        logger.info(f"All {checked_count} directives survive canonical formatting")

    return entries, errors
