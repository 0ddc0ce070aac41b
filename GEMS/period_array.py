"""
Fixed size containers holding one value for each model period (or each year within a range).

Every per-period quantity in the model (prices, shares, outputs, emissions, flags) is stored in one
of these arrays. The size of an array is fixed when it is constructed and its storage is owned
exclusively by the array. Copies are always deep copies.
"""
import copy
import operator

import numpy as np

from .errors import InvalidSizeError, RangeError


class TimeArray:
    """
    Base class for arrays indexed by period or by year.

    Parameters
    ----------
    size : int
        Number of positions in the array. Immutable once constructed.
    default_value : float or bool, optional
        Value every position is initialized to. Defaults to 0.
    dtype : numpy.dtype, optional
        Storage type. If not provided, boolean defaults create boolean storage and everything
        else is stored as a float.
    """

    def __init__(self, size, default_value=0.0, dtype=None):
        size = operator.index(size)
        if size < 0:
            raise InvalidSizeError(f"Cannot create a time array with {size} positions.")
        if dtype is None:
            dtype = bool if isinstance(default_value, (bool, np.bool_)) else float
        self._data = np.full(size, default_value, dtype=dtype)

    def _position(self, key):
        raise NotImplementedError

    def __len__(self):
        return self._data.shape[0]

    def size(self):
        return len(self)

    def __getitem__(self, key):
        return self._data[self._position(key)].item()

    def __setitem__(self, key, value):
        position = self._position(key)
        assert self._data.dtype == bool or np.isfinite(value), \
            f"Attempted to store {value} in a {type(self).__name__}"
        self._data[position] = value

    def __iter__(self):
        return iter(self._data.tolist())

    def __eq__(self, other):
        if not isinstance(other, TimeArray):
            return NotImplemented
        return len(self) == len(other) and bool(np.array_equal(self._data, other._data))

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def __copy__(self):
        # Arrays never share their storage, so a "shallow" copy is a value copy too.
        return self.copy()

    def copy(self):
        """Returns a deep (value) copy of the array."""
        return copy.deepcopy(self)

    def copy_from(self, other):
        """
        Overwrite the values of this array with the values of `other`. Copying an array onto
        itself does nothing.

        Parameters
        ----------
        other : TimeArray
            An array of the same type and size.
        """
        if other is self:
            return
        if type(other) is not type(self) or len(other) != len(self):
            raise InvalidSizeError(
                f"Cannot copy a {type(other).__name__} of size {len(other)} into a "
                f"{type(self).__name__} of size {len(self)}.")
        self._copy_bounds(other)
        self._data = other._data.copy()

    def _copy_bounds(self, other):
        pass

    def assign(self, positions, value):
        """Set the first `positions` positions of the array to `value`."""
        if not 0 <= positions <= len(self):
            raise RangeError(f"Cannot assign {positions} positions in an array of size {len(self)}.")
        self._data[:positions] = value

    def fill(self, value):
        self._data[:] = value

    def last(self):
        """Returns the value stored in the final position of the array."""
        if len(self) == 0:
            raise RangeError("An empty time array has no last value.")
        return self._data[-1].item()

    def find(self, key):
        """
        Find the position of `key` in the array.

        Returns
        -------
        int :
            The storage position of `key`, or `len(self)` (the end marker) if `key` is outside
            of the array's range. Never raises.
        """
        try:
            return self._position(key)
        except (RangeError, TypeError):
            return len(self)

    def to_numpy(self):
        """Returns a copy of the stored values."""
        return self._data.copy()

    def __repr__(self):
        return f"{type(self).__name__}({self._data.tolist()})"


class PeriodArray(TimeArray):
    """
    Array with one position per model period, indexed by period (0 is the first period).

    Use `ModelTime.period_array()` to create an array sized to the number of periods in a run.
    """

    def _position(self, period):
        period = operator.index(period)
        if not 0 <= period < self._data.shape[0]:
            raise RangeError(f"Period {period} is outside of [0, {self._data.shape[0] - 1}].")
        return period


class YearArray(TimeArray):
    """
    Array with one position for every year from `start_year` to `end_year` (inclusive), indexed by
    year rather than by position.

    Parameters
    ----------
    start_year : int
        First year of the array.
    end_year : int
        Last year of the array. Must not be less than `start_year`.
    default_value : float or bool, optional
        Value every year is initialized to.
    """

    def __init__(self, start_year, end_year, default_value=0.0, dtype=None):
        if end_year < start_year:
            raise InvalidSizeError(f"End year {end_year} is before start year {start_year}.")
        self.start_year = int(start_year)
        self.end_year = int(end_year)
        super().__init__(self.end_year - self.start_year + 1, default_value, dtype=dtype)

    def _position(self, year):
        year = operator.index(year)
        if not self.start_year <= year <= self.end_year:
            raise RangeError(f"Year {year} is outside of [{self.start_year}, {self.end_year}].")
        return year - self.start_year

    def _copy_bounds(self, other):
        self.start_year = other.start_year
        self.end_year = other.end_year

    def years(self):
        return list(range(self.start_year, self.end_year + 1))
