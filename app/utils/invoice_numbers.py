import re

INVOICE_PREFIX = "INV"
INVOICE_NUMBER_PATTERN = re.compile(r"INV(\d+)")
INVOICE_NUMBER_WIDTH = 5


def format_invoice_number(value: int) -> str:
    """Render a counter value as an invoice number, e.g. 12 -> INV00012."""
    return f"{INVOICE_PREFIX}{value:0{INVOICE_NUMBER_WIDTH}d}"


def parse_invoice_number(invoice_number) -> int:
    """
    Return the numeric suffix of an invoice number.

    Anything that does not look like INV<digits> counts as 0 so the
    sequence restarts at INV00001.
    """
    if not invoice_number:
        return 0
    match = INVOICE_NUMBER_PATTERN.search(invoice_number)
    if not match:
        return 0
    return int(match.group(1))


def next_invoice_number(last_invoice_number) -> str:
    return format_invoice_number(parse_invoice_number(last_invoice_number) + 1)
