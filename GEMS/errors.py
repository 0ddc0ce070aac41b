"""
Exceptions and warnings raised while building and solving a GEMS model.
"""


class GEMSError(Exception):
    """Base class for all errors raised by GEMS."""


class ConfigurationError(GEMSError, ValueError):
    """
    Raised when required configuration is missing or malformed. These are detected when a model
    object is completed (`complete_init`), never inside the solve loop.
    """


class InvalidSizeError(ConfigurationError):
    """Raised when a time array is requested with an impossible size (e.g. end year < start year)."""


class RangeError(GEMSError, IndexError):
    """Raised when a time array is indexed outside of its bounds."""


class NumericDivergenceError(GEMSError, ArithmeticError):
    """
    Raised when a share, price, or calibration scale becomes non-finite (or is otherwise
    pathological) during a solve pass.

    Parameters
    ----------
    message : str
        Description of the problem.
    region : str, optional
        Name of the region being solved.
    sector : str, optional
        Name of the sector being solved.
    subsector : str, optional
        Name of the subsector being solved.
    period : int, optional
        The model period being solved.
    field : str, optional
        The quantity which diverged (e.g. 'price', 'share').
    """

    def __init__(self, message, region=None, sector=None, subsector=None, period=None,
                 field=None):
        self.region = region
        self.sector = sector
        self.subsector = subsector
        self.period = period
        self.field = field
        location = '.'.join(n for n in (region, sector, subsector) if n)
        details = f" [{location}, period {period}, field '{field}']" if location else ''
        super().__init__(f"{message}{details}")


class CalibrationUnattainableError(GEMSError):
    """
    Describes a calibration target which cannot be approached (e.g. no demand is available to share
    out). Instances are recorded and queried, they are not raised during a run.
    """

    def __init__(self, message, region=None, sector=None, subsector=None, period=None):
        self.region = region
        self.sector = sector
        self.subsector = subsector
        self.period = period
        super().__init__(message)


class CalibrationWarning(UserWarning):
    """Warning category used for calibration diagnostics."""
