"""Amount parsing utilities."""

from decimal import Decimal


def parse_cents(amount_str: str) -> Decimal:
    """Parse a zero-padded amount in cents into a Decimal with two places.

    "0000050000" -> Decimal("500.00")

    Args:
        amount_str: Digits-only amount field

    Returns:
        Decimal amount in currency units

    Raises:
        ValueError: If the field is empty or contains non-digit characters
    """
    if not amount_str or not amount_str.isdigit():
        raise ValueError(f"Invalid amount format '{amount_str}'. Must be numeric")
    return (Decimal(int(amount_str)) / 100).quantize(Decimal("0.01"))
