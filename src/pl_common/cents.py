"""Integer arithmetic utilities for escrowed amounts.

Buy-ins, chip counts, counter values and payouts are all int cents.
No float, no Decimal.
"""

# Amounts are stored in BIGINT columns
MAX_CENTS = 2**63 - 1


def validate_non_negative(amount: int) -> None:
    """Raise ValueError unless amount is an int in [0, MAX_CENTS] (bool is rejected)."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"must be an integer number of cents, got {amount!r}")
    if amount < 0:
        raise ValueError(f"must be >= 0 cents, got {amount}")
    if amount > MAX_CENTS:
        raise ValueError(f"must be <= {MAX_CENTS} cents, got {amount}")


def validate_positive(amount: int) -> None:
    """Raise ValueError unless amount is an int > 0."""
    validate_non_negative(amount)
    if amount == 0:
        raise ValueError("must be > 0 cents, got 0")


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 15000 -> '$150.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"
