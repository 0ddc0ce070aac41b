"""
Module containing the ModelTime class, which translates between model periods and calendar years.
"""
from .errors import InvalidSizeError, RangeError
from .period_array import PeriodArray


class ModelTime:
    """
    The calendar years simulated in a run, one per model period.

    Parameters
    ----------
    years : list [int or str]
        The years of the run, in increasing order. The first year is period 0.
    """

    def __init__(self, years):
        years = [int(y) for y in years]
        if len(years) == 0:
            raise InvalidSizeError("A model run requires at least one year.")
        if any(b <= a for a, b in zip(years, years[1:])):
            raise InvalidSizeError(f"Model years must be strictly increasing, got {years}.")
        self.years = years
        self._year_to_period = {year: period for period, year in enumerate(years)}

    @classmethod
    def from_range(cls, start_year, end_year, step):
        return cls(range(start_year, end_year + 1, step))

    @property
    def max_period(self):
        return len(self.years)

    @property
    def base_year(self):
        return self.years[0]

    def period_to_year(self, period):
        if not 0 <= period < len(self.years):
            raise RangeError(f"Period {period} is not a model period.")
        return self.years[period]

    def year_to_period(self, year):
        try:
            return self._year_to_period[int(year)]
        except KeyError:
            raise RangeError(f"{year} is not a model year.") from None

    def timestep(self, period):
        """
        The number of years represented by `period`. The first period uses the step of the period
        which follows it (or 1 in a single-period run).
        """
        if period == 0:
            return self.years[1] - self.years[0] if len(self.years) > 1 else 1
        return self.period_to_year(period) - self.period_to_year(period - 1)

    def period_array(self, default_value=0.0):
        return PeriodArray(self.max_period, default_value)

    def __repr__(self):
        return f"ModelTime({self.years})"
