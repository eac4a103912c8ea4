"""Summary metrics derived from a single high/low quote.

Both functions are pure and accept a :class:`models.Quote`. A price of ``0``
is treated the same as a missing price, matching how the prices API reports
items with no recent trade on one side.
"""

from decimal import ROUND_HALF_UP, Decimal

from models import Quote, TrendSignal

# Spread (as a fraction of the low price) beyond which a quote counts as moving
TREND_THRESHOLD = 0.02
CENT = Decimal("0.01")


def average_price(quote: Quote) -> int:
    """Return the average of the high and low price.

    Contract:
    - Both prices present and non-zero: mean rounded half-up to an integer.
    - Exactly one present: that price.
    - Neither present: 0.
    - Never raises; result is always a non-negative int.
    """
    high = quote.high_price or 0
    low = quote.low_price or 0
    if high and low:
        # Non-negative ints, so floor((h + l + 1) / 2) is round-half-up
        return (high + low + 1) // 2
    return high or low


def trend(quote: Quote) -> TrendSignal:
    """Classify the quote's high/low spread as ``up``, ``down`` or ``stable``.

    ``percent`` is the spread relative to the low price, rounded half-up to
    two decimals and reported as an absolute value. A quote missing either side
    is ``stable`` at 0%.

    Note this compares one quote's two sides, not prices across time.
    """
    high = quote.high_price or 0
    low = quote.low_price or 0
    if not (high and low):
        return TrendSignal("stable", 0.0)

    delta = high - low
    # Exact decimal so ties like 0.125 round away from zero, not to even
    percent = (Decimal(abs(delta)) * 100 / Decimal(low)).quantize(CENT, rounding=ROUND_HALF_UP)

    direction = "stable"
    if delta > low * TREND_THRESHOLD:
        direction = "up"
    elif delta < -low * TREND_THRESHOLD:
        direction = "down"

    return TrendSignal(direction, float(percent))
