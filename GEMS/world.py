"""
Module containing the World class, the container of all regions in a model run.
"""
import logging
import warnings
from types import MappingProxyType

from .climate import CumulativeClimateModel
from .errors import ConfigurationError
from .global_tech_db import GlobalTechnologyDatabase
from .region import RegionID
from .settings import RunSettings, CalcCounter

logger = logging.getLogger(__name__)


class FrozenRegionLookup:
    """Read-only map from a RegionID to the position of the region in the world."""

    def __init__(self, mapping):
        self._mapping = MappingProxyType(dict(mapping))

    def get_index(self, region_id):
        return self._mapping.get(region_id)

    def __contains__(self, region_id):
        return region_id in self._mapping

    def __len__(self):
        return len(self._mapping)

    def __iter__(self):
        return iter(self._mapping)


class RegionLookupBuilder:
    """Collects RegionID to index entries, then freezes them into a FrozenRegionLookup."""

    def __init__(self):
        self._entries = {}

    def add(self, region_id, index):
        if region_id in self._entries:
            raise ConfigurationError(f"Region {region_id.name} is defined twice.")
        self._entries[region_id] = index
        return self

    def build(self):
        return FrozenRegionLookup(self._entries)


class World:
    """
    The regions of a model run, and the operations which solve them.

    Parameters
    ----------
    model_time : GEMS.ModelTime
        The model time of the run.
    settings : GEMS.RunSettings, optional
        Configuration of the run. Defaults to `RunSettings()`.
    climate_model : GEMS.ClimateModel, optional
        Climate model run on the emissions of every region once the run is complete. Defaults to a
        `CumulativeClimateModel`.
    global_tech_db : GEMS.GlobalTechnologyDatabase, optional
        Technologies shared by every region.

    Attributes
    ----------
    status : str
        One of 'instantiated', 'parsed', 'initialized', 'solving', 'post calc' or 'run completed'.
    """

    def __init__(self, model_time, settings=None, climate_model=None, global_tech_db=None):
        self.model_time = model_time
        self.settings = settings or RunSettings()
        self.climate_model = climate_model or CumulativeClimateModel(model_time)
        self.global_tech_db = global_tech_db or GlobalTechnologyDatabase()

        self.regions = []
        self.region_names_to_numbers = {}
        self._region_lookup = None
        self.calc_counter = CalcCounter()
        self.calibration_issues = {}
        self.current_period = None
        self.last_completed_period = -1
        self.status = 'instantiated'

    # ---------------------------------------------------------------------------------------------
    # Building
    # ---------------------------------------------------------------------------------------------
    def add_region(self, region):
        if self.status not in ('instantiated', 'parsed'):
            raise ValueError("Regions can't be added to a world which has already been initialized.")
        if region.name in self.region_names_to_numbers:
            raise ConfigurationError(f"Region {region.name} is defined twice.")
        self.region_names_to_numbers[region.name] = len(self.regions)
        self.regions.append(region)
        self.status = 'parsed'

    def get_region(self, name):
        return self.regions[self.region_names_to_numbers[name]]

    def complete_init(self):
        """Complete every region and build the region lookup. May only be called once."""
        if self.status not in ('instantiated', 'parsed'):
            raise ValueError("complete_init has already been called on this world.")
        if len(self.regions) == 0:
            raise ConfigurationError("The world has no regions.")

        for region in self.regions:
            region.complete_init()
        self.rebuild_fast_lookup_map()
        self.status = 'initialized'
        logger.info("Initialized world with %d regions", len(self.regions))

    def rebuild_fast_lookup_map(self):
        builder = RegionLookupBuilder()
        for index, region in enumerate(self.regions):
            builder.add(region.id, index)
        self._region_lookup = builder.build()

    def get_region_index(self, region_id):
        return self._region_lookup.get_index(region_id)

    def get_output_region_map(self):
        return dict(self.region_names_to_numbers)

    def get_region_ids(self):
        return [region.id for region in self.regions]

    def set_calc_counter(self, calc_counter):
        self.calc_counter = calc_counter

    def get_ghgs(self):
        return sorted(set().union(*(region.get_ghgs() for region in self.regions)))

    # ---------------------------------------------------------------------------------------------
    # Solving
    # ---------------------------------------------------------------------------------------------
    def _check_initialized(self):
        if self.status in ('instantiated', 'parsed'):
            raise ValueError("complete_init must be called before the world is calculated.")

    def init_calc(self, period):
        """Prepare every region to be solved in `period`. Periods are solved in order."""
        self._check_initialized()
        if period > self.last_completed_period + 1:
            raise ValueError(f"Period {period} can't begin before period "
                             f"{self.last_completed_period + 1} has been completed.")
        for region in self.regions:
            region.init_calc(period)
        self.calibration_issues[period] = {}
        self.current_period = period

    def calc(self, period, regions_to_calc=None):
        """
        Solve one pass of `period` for every region, or only the regions in `regions_to_calc`.

        Parameters
        ----------
        period : int
            The model period.
        regions_to_calc : list [GEMS.RegionID], optional
            The regions to calculate, in order. All regions are calculated when this is empty.
            Unknown regions are skipped with a warning.
        """
        self._check_initialized()
        self.status = 'solving'
        self.current_period = period
        self.calc_counter.increment(period)

        for index in self._get_region_indexes_to_calculate(regions_to_calc):
            region = self.regions[index]
            issues = region.calc(period, self.settings)
            self.calibration_issues.setdefault(period, {})[region.name] = issues

    def _get_region_indexes_to_calculate(self, regions_to_calc):
        if not regions_to_calc:
            return range(len(self.regions))

        indexes = []
        for region_id in regions_to_calc:
            index = self.get_region_index(region_id)
            if index is None:
                if self.settings.print_warnings:
                    warnings.warn(f"Region {region_id.name} is not in the world and will not be "
                                  f"calculated.")
                continue
            indexes.append(index)
        return indexes

    def post_calc(self, period):
        for region in self.regions:
            region.post_calc(period)
        self.last_completed_period = max(self.last_completed_period, period)
        self.status = 'post calc'

    def get_calibration_issues(self, period):
        """All calibration issues recorded in the last pass of `period`, across regions."""
        return [issue for issues in self.calibration_issues.get(period, {}).values()
                for issue in issues]

    # ---------------------------------------------------------------------------------------------
    # Calibration
    # ---------------------------------------------------------------------------------------------
    def is_all_calibrated(self, period, cal_accuracy=None, print_warnings=None):
        """
        Whether every calibrated output in every region is within `cal_accuracy` of its target.
        """
        cal_accuracy = self.settings.cal_accuracy if cal_accuracy is None else cal_accuracy
        print_warnings = self.settings.print_warnings if print_warnings is None else print_warnings

        all_calibrated = True
        for region in self.regions:
            if not region.is_all_calibrated(period, cal_accuracy, print_warnings):
                all_calibrated = False
        return all_calibrated

    def check_cal_consistency(self, period):
        consistent = True
        for region in self.regions:
            if not region.check_cal_consistency(period, self.settings.print_warnings):
                consistent = False
        return consistent

    def turn_calibrations_on(self):
        self.settings.calibration_enabled = True

    def turn_calibrations_off(self):
        self.settings.calibration_enabled = False

    def get_calibration_setting(self):
        return self.settings.calibration_enabled

    # ---------------------------------------------------------------------------------------------
    # Policy & results
    # ---------------------------------------------------------------------------------------------
    def set_tax(self, ghg, taxes, regions=None):
        """
        Set the tax on emissions of `ghg`. Taxes take effect from the next `init_calc`.

        Parameters
        ----------
        ghg : str
            The gas being taxed.
        taxes : float or dict {int: float}
            A tax applied in every period, or taxes keyed by period.
        regions : list [str], optional
            Names of the regions to tax. Defaults to every region.
        """
        if not isinstance(taxes, dict):
            taxes = {period: taxes for period in range(self.model_time.max_period)}
        region_names = regions if regions is not None else list(self.region_names_to_numbers)
        for name in region_names:
            region = self.get_region(name)
            for period, tax in taxes.items():
                region.set_carbon_tax(ghg, period, tax)

    def get_emissions_quantity_curves(self, ghg):
        """Emissions of `ghg` by region, as `pandas.Series` indexed by year."""
        return {region.name: region.get_emissions_curve(ghg) for region in self.regions}

    def get_emissions_price_curves(self, ghg):
        """Tax on `ghg` by region, as `pandas.Series` indexed by year."""
        return {region.name: region.get_tax_curve(ghg) for region in self.regions}

    def run_climate_model(self):
        for ghg in self.get_ghgs():
            for region_name, curve in self.get_emissions_quantity_curves(ghg).items():
                self.climate_model.set_emissions(ghg, region_name, curve)
        self.climate_model.run_model()
        self.status = 'run completed'

    def __repr__(self):
        return f"World({[r.name for r in self.regions]}, status={self.status!r})"
