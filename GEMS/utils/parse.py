import re


def is_year(val) -> bool:
    """ Determines whether `val` is a year

    Parameters
    ----------
    val : int or str
        The value to check to determine if it is a year.

    Returns
    -------
    bool
        True if `val` is made entirely of digits [0-9] and is 4 characters in length. False
        otherwise.

    Examples
    --------
    >>> is_year(1900)
    True

    >>> is_year('2010')
    True

    >>> is_year('Parameter')
    False
    """
    re_year = re.compile(r'^\d{4}$')

    return bool(re_year.match(str(val)))


def is_blank(val) -> bool:
    """True for missing cells (None, NaN, or empty/whitespace strings)."""
    if val is None:
        return True
    if isinstance(val, float):
        return val != val
    return str(val).strip() == ''
