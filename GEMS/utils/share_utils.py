"""
Numeric helpers shared by the share calculations of subsectors and technologies.
"""
import math

SMALL_PRICE = 0.01
TREND_PRICE = 0.1


def logit_weight(price, logit_exponent):
    """
    Calculates the unnormalized logit weight (`price ** logit_exponent`) of an alternative.

    If the price is less than 0.01, the weight is approximated with a straight line fit through the
    weights at 0.1 and 0.01 (equivalent to Excel's TREND() function). This keeps the weight finite
    as the price approaches 0.

    Parameters
    ----------
    price : float
        The price (or cost) of the alternative. Must be finite and non-negative.
    logit_exponent : float
        The logit exponent. Negative values give cheaper alternatives larger weights.

    Returns
    -------
    float :
        The weight the alternative has during share competition.
    """
    if price < SMALL_PRICE:
        weight_1 = TREND_PRICE ** logit_exponent
        weight_2 = SMALL_PRICE ** logit_exponent
        slope = (weight_2 - weight_1) / (SMALL_PRICE - TREND_PRICE)
        weight = slope * price + (weight_1 - slope * TREND_PRICE)
    else:
        weight = price ** logit_exponent
    return weight


def is_valid_number(value):
    return value is not None and math.isfinite(value)


def relative_difference(value, target):
    """The absolute difference between value and target, relative to target."""
    if target == 0:
        return abs(value)
    return abs(value - target) / abs(target)
