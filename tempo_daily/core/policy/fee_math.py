"""Fee arithmetic. Gas prices are quoted in attodollars, fee-token balances in microdollars."""

ATTO_PER_MICRODOLLAR = 1_000_000_000_000


def ceil_div(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        raise ValueError(f"denominator must be > 0, got {denominator}")
    if numerator < 0:
        raise ValueError(f"numerator must be >= 0, got {numerator}")
    if numerator == 0:
        return 0
    return (numerator + denominator - 1) // denominator


def attodollars_to_microdollars_ceil(attodollars: int) -> int:
    """Never under-estimates: any remainder rounds the result up."""
    return ceil_div(attodollars, ATTO_PER_MICRODOLLAR)
