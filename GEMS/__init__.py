from .period_array import PeriodArray, YearArray
from .model_time import ModelTime
from .settings import RunSettings, CalcCounter
from .technology import Technology
from .subsector import Subsector
from .sector import Sector
from .region import Region, RegionID
from .world import World, RegionLookupBuilder, FrozenRegionLookup
from .scenario import Scenario
from .climate import ClimateModel, CumulativeClimateModel
from .global_tech_db import GlobalTechnologyDatabase
from .readers import ModelReader
from .errors import (GEMSError, ConfigurationError, InvalidSizeError, RangeError,
                     NumericDivergenceError, CalibrationUnattainableError, CalibrationWarning)

from .about import __version__
