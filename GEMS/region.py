"""
Module containing the Region class and RegionID, the identity token the world uses to look regions
up.
"""
import logging
import warnings

import pandas as pd

from . import graph_utils
from .errors import ConfigurationError, CalibrationWarning
from .settings import RunSettings

logger = logging.getLogger(__name__)


class RegionID:
    """
    Hashable identity of a region. Two RegionIDs are equal when they name the same region.
    """
    __slots__ = ('name',)

    def __init__(self, name):
        self.name = str(name)

    def __eq__(self, other):
        if not isinstance(other, RegionID):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(('RegionID', self.name))

    def __repr__(self):
        return f"RegionID({self.name!r})"


class Region:
    """
    A region of the world. Holds the sectors which meet the region's demand, the exogenous prices
    of its primary fuels, and the carbon taxes applied to its emissions.

    Parameters
    ----------
    name : str
        Name of the region. Must be unique in the world.
    model_time : GEMS.ModelTime
        The model time of the run.
    """

    def __init__(self, name, model_time):
        self.name = name
        self.id = RegionID(name)
        self.model_time = model_time

        self.sectors = []
        self.sector_name_map = {}
        self.fuel_prices = {}
        self.final_demand = {}
        self.carbon_tax = {}
        self.gdp_scale = model_time.period_array(1.0)

        self.graph = None
        self.loops = []
        self.calibration_issues = {}
        # Per period: consuming sector -> {supplying sector: amount} from its latest output
        self.intermediate_demand = [{} for _ in range(model_time.max_period)]

    # ---------------------------------------------------------------------------------------------
    # Building
    # ---------------------------------------------------------------------------------------------
    def add_sector(self, sector):
        if sector.name in self.sector_name_map:
            raise ConfigurationError(f"Sector {sector.name} is defined twice in region {self.name}.")
        self.sector_name_map[sector.name] = len(self.sectors)
        self.sectors.append(sector)

    def get_sector(self, name):
        return self.sectors[self.sector_name_map[name]]

    def _period_values(self, values, key):
        if key not in values:
            values[key] = self.model_time.period_array(0.0)
        return values[key]

    def set_fuel_price(self, fuel, period, price):
        """Set the exogenous price of a primary fuel."""
        self._period_values(self.fuel_prices, fuel)[period] = price

    def set_final_demand(self, sector_name, period, demand):
        self._period_values(self.final_demand, sector_name)[period] = demand

    def set_carbon_tax(self, ghg, period, tax):
        self._period_values(self.carbon_tax, ghg)[period] = tax

    def get_primary_fuels(self):
        return set(self.fuel_prices)

    def complete_init(self):
        """
        Finish building the region: complete its sectors, check that every fuel used in the region
        is either produced by a sector or has an exogenous price, and build the sector graph.
        """
        if len(self.sectors) == 0:
            raise ConfigurationError(f"Region {self.name} has no sectors.")
        for sector in self.sectors:
            sector.complete_init()

        sectors = {sector.name: sector for sector in self.sectors}
        if self.name in sectors:
            raise ConfigurationError(f"Region {self.name} has a sector with the same name.")
        for sector in self.sectors:
            missing = sector.get_fuels() - set(sectors) - self.get_primary_fuels()
            if missing:
                raise ConfigurationError(f"Fuel(s) {sorted(missing)} used in {self.name}.{sector.name}"
                                         f" have no price and are not produced in the region.")
        for demand_sector in self.final_demand:
            if demand_sector not in sectors:
                raise ConfigurationError(f"Final demand for {demand_sector} in {self.name} does not "
                                         f"correspond to a sector.")
            if any(d < 0 for d in self.final_demand[demand_sector]):
                raise ConfigurationError(f"Final demand for {demand_sector} in {self.name} is "
                                         f"negative.")

        self.graph = graph_utils.make_sector_graph(self.name, sectors, self.final_demand)
        self.loops = graph_utils.find_loops(self.graph)
        if self.loops:
            logger.info("Region %s has %d supply loops", self.name, len(self.loops))

    # ---------------------------------------------------------------------------------------------
    # Calculation
    # ---------------------------------------------------------------------------------------------
    def init_calc(self, period):
        for sector in self.sectors:
            sector.init_calc(period)
            for ghg, taxes in self.carbon_tax.items():
                sector.add_ghg_tax(ghg, taxes[period], period)
        self.calibration_issues[period] = []
        if period > 0 and not self.intermediate_demand[period]:
            # Loop members start from the previous period's consumption
            self.intermediate_demand[period] = {consumer: dict(amounts) for consumer, amounts
                                                in self.intermediate_demand[period - 1].items()}

    def calc(self, period, settings=None):
        """
        Solve one pass of the region in `period`. Prices are calculated from the bottom of the sector
        graph up (suppliers before consumers), then demand is passed down (consumers before
        suppliers). Sectors in supply loops use the values from the previous pass.

        Returns
        -------
        list [GEMS.CalibrationUnattainableError] :
            Calibration issues found in this pass.
        """
        settings = settings or RunSettings()
        prices = {fuel: values[period] for fuel, values in self.fuel_prices.items()}
        prices.update({sector.name: sector.get_price(period) for sector in self.sectors})
        graph_utils.bottom_up_traversal(self.graph, self._calc_sector_price, period, prices, settings,
                                        root=self.name)

        graph_utils.top_down_traversal(self.graph, self._set_sector_output, period, settings,
                                       root=self.name)

        issues = []
        for sector in self.sectors:
            sector.emission(period)
            sector.calc_pe_consumption(period, self.get_primary_fuels())
            issues.extend(sector.calibration_issues)
            sector.calibration_issues = []
        self.calibration_issues[period] = issues
        return issues

    def _calc_sector_price(self, graph, node, period, prices, settings):
        if node == self.name:
            return
        sector = self.get_sector(node)
        prices[node] = sector.calc_price(period, prices, self.gdp_scale[period], settings)

    def get_sector_demand(self, sector_name, period):
        """
        Final demand for the sector's good plus the consumption of every sector using it. A consumer
        not yet solved in this pass contributes its consumption from the previous pass.
        """
        final_demand = self.final_demand.get(sector_name)
        demand = final_demand[period] if final_demand is not None else 0.0
        return demand + sum(amounts.get(sector_name, 0.0)
                            for amounts in self.intermediate_demand[period].values())

    def _set_sector_output(self, graph, node, period, settings):
        if node == self.name:
            return
        sector = self.get_sector(node)
        sector.set_output(self.get_sector_demand(node, period), period, settings)
        self.intermediate_demand[period][node] = {
            fuel: amount for fuel, amount in sector.get_fuel_consumption(period).items()
            if fuel in self.sector_name_map}

    def post_calc(self, period):
        for sector in self.sectors:
            sector.post_calc(period)

    # ---------------------------------------------------------------------------------------------
    # Results
    # ---------------------------------------------------------------------------------------------
    def get_ghgs(self):
        return set().union(*(sector.get_ghgs() for sector in self.sectors))

    def get_emissions(self, period):
        emissions = {}
        for sector in self.sectors:
            for gas, amount in sector.get_emission(period).items():
                emissions[gas] = emissions.get(gas, 0.0) + amount
        return emissions

    def get_emissions_curve(self, ghg):
        """Emissions of `ghg` in every model year, as a `pandas.Series` indexed by year."""
        return pd.Series([self.get_emissions(p).get(ghg, 0.0)
                          for p in range(self.model_time.max_period)],
                         index=self.model_time.years, name=self.name)

    def get_tax_curve(self, ghg):
        taxes = self.carbon_tax.get(ghg, self.model_time.period_array(0.0))
        return pd.Series(list(taxes), index=self.model_time.years, name=self.name)

    def get_pe_consumption(self, period):
        return sum(s.get_pe_consumption(period) for sector in self.sectors
                   for s in sector.subsectors)

    # ---------------------------------------------------------------------------------------------
    # Calibration
    # ---------------------------------------------------------------------------------------------
    def is_all_calibrated(self, period, cal_accuracy, print_warnings=False):
        all_calibrated = True
        for sector in self.sectors:
            if not sector.is_all_calibrated(period, cal_accuracy, print_warnings):
                all_calibrated = False
        return all_calibrated

    def get_calibration_issues(self, period):
        return list(self.calibration_issues.get(period, []))

    def check_cal_consistency(self, period, print_warnings=True):
        consistent = True
        for sector in self.sectors:
            if not sector.check_cal_consistency(period, print_warnings):
                consistent = False
        if not consistent and print_warnings:
            warnings.warn(f"Region {self.name} has inconsistent calibration data in period {period}.",
                          CalibrationWarning)
        return consistent

    def __repr__(self):
        return f"Region({self.name!r})"
