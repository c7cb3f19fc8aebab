"""Loan maths for the start-of-game financing."""

from .helpers import clamp
from .prng import PRNG_MODULUS


def compute_interest_rate(base_rate: float, credit_score: float) -> float:
    """Base rate plus 1.2 points per 100 credit points below 850."""
    normalized = clamp(credit_score, 300, 900)
    spread = (850 - normalized) / 100 * 0.012
    return base_rate + spread


def pmt(rate: float, periods: int, principal: float) -> float:
    """
    Monthly payment on an amortizing loan.

    Args:
        rate: Annual interest rate (0.06 = 6%)
        periods: Number of monthly payments
        principal: Amount borrowed

    Returns:
        The level monthly payment; 0 when there is nothing to repay, and
        straight-line principal/periods when the rate is zero.
    """
    if periods <= 0 or principal <= 0:
        return 0.0
    monthly_rate = rate / 12
    if monthly_rate == 0:
        return principal / periods
    denominator = 1 - (1 + monthly_rate) ** -periods
    if denominator == 0:
        return principal / periods
    return principal * monthly_rate / denominator


def loan_seed_from(parts: list[str]) -> int:
    """Stable, never-zero PRNG seed from the loan's identifying terms."""
    base = ":".join(parts)
    value = 0
    for char in base:
        value = (value * 31 + ord(char)) % 1_000_003
    return (value + 11) % PRNG_MODULUS
