"""Parse and emit Beancount directives through a typed, validated model.

This package reads the open, balance and transaction directives of a
Beancount ledger into immutable value types and writes them back in a single
canonical form. The same model can also be filled from beancount's own
parser, so tools can work on either source.

INCLUDED MODULES:

1. grammar
   - One parse_<production> function per grammar production
   - Failures are ParseError values with a character span
   Usage: value, errors = parse(parse_directive, "2024-01-01 open Assets:Cash")

2. marshal
   - One marshal_<production> function per production, plus marshal(value)
   - Canonical output: '-' date separators, sorted commodity lists
   Usage: text = marshal(directive)

3. ledger
   - Whole ledger texts: blank-line separated directive blocks
   - Keeps parsing after a failing block
   Usage: directives, errors = parse_directives(text)

4. adapter
   - Converts beancount.core.data entries into the domain model
   - Reports entries the model cannot represent as ConversionErrors
   Usage: directives, errors = ingest_file("main.bean")

5. check_canonical_format
   - Beancount plugin reporting entries that do not survive canonical
     formatting
   Usage: plugin "beancount_directives.check_canonical_format"

VALUE TYPES:
- account: AccountType, AccountComponent, Account
- commodity: Commodity
- amount: Amount, AmountWithTolerance, PostingAmount
- primitives: Date, Flag
- directives: TransactionDescription, Posting, DirectiveOpen,
  DirectiveBalance, DirectiveTransaction, Directive
- errors: Span, ParseError and the validation/conversion error kinds

CONFIGURATION:
Only the plugin reads configuration (canonical_format.yaml), see
check_canonical_format for the format.
"""
