"""
Module containing the Sector class. A sector meets the demand for a single good by sharing it out
among its subsectors.
"""
import logging
import warnings

from .errors import ConfigurationError, CalibrationWarning
from .settings import RunSettings

logger = logging.getLogger(__name__)


class Sector:
    """
    Produces one good (also the name of the fuel it supplies to other sectors).

    Parameters
    ----------
    name : str
        Name of the sector and of the good it produces.
    region_name : str
        Name of the region the sector belongs to.
    model_time : GEMS.ModelTime
        The model time of the run.
    unit : str, optional
        Unit of the sector's output.
    """

    def __init__(self, name, region_name, model_time, unit=''):
        self.name = name
        self.region_name = region_name
        self.model_time = model_time
        self.unit = unit

        self.subsectors = []
        self.subsector_name_map = {}

        self.price = model_time.period_array(0.0)
        self.output = model_time.period_array(0.0)
        self.demand = model_time.period_array(0.0)
        self.carbon_tax_paid = model_time.period_array(0.0)
        self.emissions = [{} for _ in range(model_time.max_period)]
        self.calibration_issues = []

    def add_subsector(self, subsector):
        if subsector.name in self.subsector_name_map:
            raise ConfigurationError(f"Subsector {subsector.name} is defined twice in sector "
                                     f"{self.region_name}.{self.name}.")
        self.subsector_name_map[subsector.name] = len(self.subsectors)
        self.subsectors.append(subsector)

    def get_subsector(self, name):
        return self.subsectors[self.subsector_name_map[name]]

    def complete_init(self):
        if len(self.subsectors) == 0:
            raise ConfigurationError(f"Sector {self.region_name}.{self.name} has no subsectors.")
        for subsector in self.subsectors:
            subsector.complete_init()

    def init_calc(self, period):
        if period > 0 and self.price[period] == 0:
            # Start the solve from the previous period's price
            self.price[period] = self.price[period - 1]
        for subsector in self.subsectors:
            subsector.init_calc(period)
        self.calibration_issues = []

    def get_fuels(self):
        """Names of every fuel consumed by the sector's technologies."""
        return {tech.fuel_name for subsector in self.subsectors for tech_periods in subsector.techs
                for tech in tech_periods}

    def get_ghgs(self):
        return set().union(*(subsector.get_ghgs() for subsector in self.subsectors))

    def add_ghg_tax(self, ghg, tax, period):
        for subsector in self.subsectors:
            subsector.add_ghg_tax(ghg, tax, period)

    # ---------------------------------------------------------------------------------------------
    # Prices & shares
    # ---------------------------------------------------------------------------------------------
    def calc_price(self, period, fuel_prices, gnp_cap=1.0, settings=None):
        """
        Calculate subsector prices and shares, then the sector price (the share-weighted average of
        subsector prices).
        """
        for subsector in self.subsectors:
            subsector.calc_price(period, fuel_prices)
        self.calc_share(period, gnp_cap, settings)
        self.price[period] = sum(s.get_share(period) * s.get_price(period) for s in self.subsectors)
        return self.price[period]

    def calc_share(self, period, gnp_cap=1.0, settings=None):
        """
        Calculate normalized subsector shares, then apply capacity limits. Subsectors exceeding
        their limits are frozen and the freed share is redistributed among the remaining
        subsectors until no remaining subsector exceeds its limit.
        """
        settings = settings or RunSettings()
        total = sum(subsector.calc_share(period, gnp_cap) for subsector in self.subsectors)
        for subsector in self.subsectors:
            subsector.norm_share(total, period)

        for _ in range(len(self.subsectors)):
            newly_limited = [s for s in self.subsectors
                             if not s.get_cap_limit_status(period) and s.exceeds_capacity_limit(period)]
            already_limited = [s for s in self.subsectors if s.get_cap_limit_status(period)]
            if not newly_limited and not already_limited:
                break

            limited = already_limited + newly_limited
            sum_limited = sum(s.get_limited_share(period) for s in limited)
            sum_unlimited = sum(s.get_share(period) for s in self.subsectors if s not in limited)

            if sum_limited > 1 or sum_unlimited <= 0:
                multiplier = 0.0
                if sum_limited < 1 and settings.print_warnings:
                    warnings.warn(f"Capacity limits in {self.region_name}.{self.name} leave "
                                  f"{1 - sum_limited:.4f} of demand unallocated in period {period}.")
            else:
                multiplier = (1 - sum_limited) / sum_unlimited

            for subsector in self.subsectors:
                subsector.limit_shares(multiplier, period)

            if not newly_limited:
                break

    def get_price(self, period):
        return self.price[period]

    def get_shares(self, period):
        return [s.get_share(period) for s in self.subsectors]

    # ---------------------------------------------------------------------------------------------
    # Output
    # ---------------------------------------------------------------------------------------------
    def get_fixed_supply(self, period):
        return sum(s.get_fixed_supply(period) for s in self.subsectors)

    def set_output(self, demand, period, settings=None):
        """
        Meet `demand` in `period`. Fixed supply is removed from the demand (scaled down if it
        exceeds demand), the remainder is shared among the subsectors with variable output, and
        share weights are adjusted toward calibrated outputs when calibration is enabled.
        """
        settings = settings or RunSettings()
        self.demand[period] = demand

        total_fixed_supply = self._scale_fixed_supply(demand, period, settings)
        variable_share_total = sum(s.get_share(period) for s in self.subsectors
                                   if not s.all_output_fixed(period))
        if total_fixed_supply == 0 and not any(s.all_output_fixed(period) for s in self.subsectors):
            share_ratio = 1.0
        else:
            share_ratio = 1 / variable_share_total if variable_share_total > 0 else 0.0

        for subsector in self.subsectors:
            subsector.adj_shares(demand, share_ratio, total_fixed_supply, period)
            subsector.set_output(demand, period)
        self.output[period] = sum(s.get_output(period) for s in self.subsectors)

        if settings.calibration_enabled and self.get_calibration_status(period):
            self.adjust_for_calibration(demand, total_fixed_supply, period, settings)

    def _scale_fixed_supply(self, demand, period, settings):
        for subsector in self.subsectors:
            subsector.reset_fixed_supply(period)
        total_fixed_supply = self.get_fixed_supply(period)
        if total_fixed_supply > demand:
            scale_ratio = demand / total_fixed_supply if total_fixed_supply > 0 else 0.0
            if settings.verbose:
                print(f"Scaling fixed supply in {self.region_name}.{self.name} by {scale_ratio:.4f}")
            for subsector in self.subsectors:
                subsector.scale_fixed_supply(scale_ratio, period)
            total_fixed_supply = self.get_fixed_supply(period)
        return total_fixed_supply

    def get_output(self, period):
        return self.output[period]

    def get_fuel_consumption(self, period):
        fuel_consumption = {}
        for subsector in self.subsectors:
            for fuel, amount in subsector.get_fuel_consumption(period).items():
                fuel_consumption[fuel] = fuel_consumption.get(fuel, 0.0) + amount
        return fuel_consumption

    def calc_pe_consumption(self, period, primary_fuels):
        return sum(s.calc_pe_consumption(period, primary_fuels) for s in self.subsectors)

    def emission(self, period):
        emissions = {}
        for subsector in self.subsectors:
            for gas, amount in subsector.emission(period).items():
                emissions[gas] = emissions.get(gas, 0.0) + amount
        self.emissions[period] = emissions
        self.carbon_tax_paid[period] = sum(s.get_total_carbon_tax_paid(period)
                                           for s in self.subsectors)
        return emissions

    def get_emission(self, period):
        return dict(self.emissions[period])

    # ---------------------------------------------------------------------------------------------
    # Calibration
    # ---------------------------------------------------------------------------------------------
    def get_calibration_status(self, period):
        return any(s.get_calibration_status(period) for s in self.subsectors)

    def all_calibrated(self, period):
        """Whether every subsector with variable output has a calibrated output."""
        return all(s.get_calibration_status(period) for s in self.subsectors
                   if not s.all_output_fixed(period))

    def get_total_cal_outputs(self, period):
        return sum(s.get_total_cal_outputs(period) for s in self.subsectors
                   if s.get_calibration_status(period))

    def get_cal_and_fixed_outputs(self, period):
        return sum(s.get_total_cal_outputs(period) if s.get_calibration_status(period)
                   else s.get_fixed_supply(period) for s in self.subsectors)

    def adjust_for_calibration(self, demand, total_fixed_supply, period, settings):
        """
        Scale subsector share weights toward their calibrated outputs.

        Each calibrated subsector scales its own share weight by (desired share / current share).
        When some subsectors with variable output are not calibrated, the calibrated share weights
        are then rescaled together so that the uncalibrated subsectors keep the share left over.
        """
        total_cal_outputs = sum(s.get_variable_cal_outputs(period) for s in self.subsectors)
        available_demand = demand - total_fixed_supply
        variable = [s for s in self.subsectors if not s.all_output_fixed(period)]
        calibrated = [s for s in variable if s.get_calibration_status(period)]

        group_factor = None
        if available_demand > 0 and total_cal_outputs > 0 and len(calibrated) < len(variable):
            desired_total = total_cal_outputs / max(available_demand, total_cal_outputs)
            current_total = sum(s.get_output(period) - s.get_fixed_supply(period)
                                for s in calibrated) / available_demand
            if desired_total < 1 and current_total < 1:
                group_factor = (1 - current_total) / (1 - desired_total)

        for subsector in self.subsectors:
            subsector.adjust_for_calibration(demand, total_fixed_supply, total_cal_outputs, period)
            if subsector.calibration_issues:
                self.calibration_issues.extend(subsector.calibration_issues)
                if settings.print_warnings:
                    for issue in subsector.calibration_issues:
                        warnings.warn(str(issue), CalibrationWarning)
                subsector.calibration_issues = []

        if group_factor is not None:
            for subsector in calibrated:
                subsector.share_weights[period] = subsector.share_weights[period] * group_factor

    def scale_calibration_input(self, period, scale_factor):
        for subsector in self.subsectors:
            subsector.scale_calibration_input(period, scale_factor)

    def is_all_calibrated(self, period, cal_accuracy, print_warnings=False):
        """Whether every calibrated output in the sector is within `cal_accuracy` of its target."""
        all_calibrated = True
        for subsector in self.subsectors:
            if not subsector.is_calibrated(period, cal_accuracy):
                all_calibrated = False
                if print_warnings:
                    warnings.warn(f"{self.region_name}.{self.name}.{subsector.name} is not "
                                  f"calibrated in period {period}: output "
                                  f"{subsector.get_output(period):.4f}, target "
                                  f"{subsector.get_total_cal_outputs(period):.4f}",
                                  CalibrationWarning)
        return all_calibrated

    def check_cal_consistency(self, period, print_warnings=True):
        """
        Check that calibrated and fixed outputs can be met by the sector's demand. When every
        subsector is calibrated, they must add up to the demand.
        """
        cal_and_fixed = self.get_cal_and_fixed_outputs(period)
        demand = self.demand[period]
        consistent = cal_and_fixed <= demand * (1 + 1e-6)
        if self.all_calibrated(period) and self.get_calibration_status(period):
            consistent = abs(cal_and_fixed - demand) <= 1e-6 * max(abs(demand), 1.0)
        if not consistent and print_warnings:
            warnings.warn(f"Calibrated and fixed outputs ({cal_and_fixed:.4f}) of "
                          f"{self.region_name}.{self.name} are inconsistent with its demand "
                          f"({demand:.4f}) in period {period}.", CalibrationWarning)
        return consistent

    def post_calc(self, period):
        for subsector in self.subsectors:
            subsector.share_weight_scale(period)
        logger.debug("Finished %s.%s in period %s", self.region_name, self.name, period)

    def __repr__(self):
        return f"Sector({self.region_name}.{self.name})"
