"""
Module containing the Subsector class. A subsector competes for share of its sector's demand using a
logit formula, holds the technologies which produce its output, and is the level at which share
weights are calibrated.
"""
import logging
import math

import numpy as np
from scipy.interpolate import interp1d

from .errors import ConfigurationError, NumericDivergenceError, CalibrationUnattainableError
from .utils.share_utils import logit_weight, is_valid_number, relative_difference

logger = logging.getLogger(__name__)

# Shares below CAP_LIMIT_KNEE * capacity limit are untouched by the smooth capacity limit transform
CAP_LIMIT_KNEE = 1 / 1.4
LARGE_SHARE_WEIGHT = 1e4


class Subsector:
    """
    A group of technologies sharing a fuel type, which competes for share of a sector's demand.

    Parameters
    ----------
    name : str
        Name of the subsector.
    region_name : str
        Name of the region the subsector belongs to.
    sector_name : str
        Name of the sector the subsector belongs to.
    model_time : GEMS.ModelTime
        The model time of the run. Every per-period attribute has one value per model period.
    unit : str, optional
        Unit of the subsector's output.
    fuel_type : str, optional
        Label of the fuel type the subsector represents.

    Attributes
    ----------
    techs : list [list [GEMS.Technology]]
        `techs[i][period]` is the i-th technology in `period`.
    tech_name_map : dict {str: int}
        Maps technology names to their position in `techs`.
    """

    def __init__(self, name, region_name, sector_name, model_time, unit='', fuel_type=''):
        self.name = name
        self.region_name = region_name
        self.sector_name = sector_name
        self.unit = unit
        self.fuel_type = fuel_type
        self.model_time = model_time
        self.cap_limit_smoothing = False

        period_array = model_time.period_array
        self.tax = period_array(0.0)
        self.cap_limit = period_array(1.0)
        self.cap_limited = period_array(False)
        self.limited_share = period_array(0.0)
        self.fixed_share = period_array(0.0)
        self.fixed_supply = period_array(0.0)
        self.share_weights = period_array(1.0)
        self.share_weight_specified = period_array(False)
        self.logit_exponent = period_array(-2.0)
        self.share = period_array(0.0)
        self.input = period_array(0.0)
        self.pe_cons = period_array(0.0)
        self.price = period_array(0.0)
        self.fuel_price = period_array(0.0)
        self.output = period_array(0.0)
        self.carbon_tax_paid = period_array(0.0)
        self.fuel_pref_elasticity = period_array(0.0)
        self.cal_output_value = period_array(0.0)
        self.do_calibration = period_array(False)
        self.calibration_status = period_array(False)

        self.techs = []
        self.tech_name_map = {}
        self.emissions = [{} for _ in range(model_time.max_period)]
        self.fuel_consumption = [{} for _ in range(model_time.max_period)]
        self.calibration_issues = []

    def get_name(self):
        return self.name

    def _error_context(self, period, field):
        return dict(region=self.region_name, sector=self.sector_name, subsector=self.name,
                    period=period, field=field)

    # ---------------------------------------------------------------------------------------------
    # Building
    # ---------------------------------------------------------------------------------------------
    def add_technology(self, technology, period=None):
        """
        Add a technology to the subsector.

        Parameters
        ----------
        technology : GEMS.Technology
            The technology to add.
        period : int, optional
            The period the technology object applies to. If not provided, a copy of `technology` is
            used for every period.
        """
        if technology.name not in self.tech_name_map:
            self.tech_name_map[technology.name] = len(self.techs)
            self.techs.append([None] * self.model_time.max_period)

        tech_periods = self.techs[self.tech_name_map[technology.name]]
        if period is None:
            for i in range(len(tech_periods)):
                tech_periods[i] = technology.copy()
        else:
            tech_periods[period] = technology

    def get_technology(self, name, period):
        return self.techs[self.tech_name_map[name]][period]

    def get_technologies(self, period):
        return [tech_periods[period] for tech_periods in self.techs]

    def set_share_weight(self, period, value):
        """Set a share weight read from input. Unspecified periods are interpolated."""
        self.share_weights[period] = value
        self.share_weight_specified[period] = True

    def set_calibration_output(self, period, value):
        self.cal_output_value[period] = value
        self.do_calibration[period] = True

    def complete_init(self):
        """
        Finish building the subsector, checking its configuration. Technologies which are not
        defined for a period are copied from the closest earlier (or, failing that, later) period
        and share weights are interpolated between the periods they were specified in.
        """
        if len(self.techs) == 0:
            raise ConfigurationError(
                f"Subsector {self.region_name}.{self.sector_name}.{self.name} has no technologies.")

        for period in range(self.model_time.max_period):
            if self.cap_limit[period] < 0:
                raise ConfigurationError(
                    f"Subsector {self.name} has a negative capacity limit "
                    f"({self.cap_limit[period]}) in period {period}.")
            if self.share_weights[period] < 0:
                raise ConfigurationError(
                    f"Subsector {self.name} has a negative share weight in period {period}.")
            if self.do_calibration[period] and self.cal_output_value[period] < 0:
                raise ConfigurationError(
                    f"Subsector {self.name} has a negative calibrated output in period {period}.")

        for name, tech_periods in zip(self.tech_name_map, self.techs):
            self._fill_technology_periods(name, tech_periods)
            for tech in tech_periods:
                tech.complete_init()

        specified = [p for p in range(self.model_time.max_period) if self.share_weight_specified[p]]
        for begin_period, end_period in zip(specified, specified[1:]):
            self.share_weight_interp(begin_period, end_period)
        if specified:
            for period in range(specified[-1] + 1, self.model_time.max_period):
                self.share_weights[period] = self.share_weights[specified[-1]]

        logger.debug("Initialized subsector %s.%s.%s with %d technologies", self.region_name,
                     self.sector_name, self.name, len(self.techs))

    def _fill_technology_periods(self, name, tech_periods):
        defined = [p for p, tech in enumerate(tech_periods) if tech is not None]
        if not defined:
            raise ConfigurationError(f"Technology {name} in subsector {self.name} is never defined.")
        for period in range(len(tech_periods)):
            if tech_periods[period] is None:
                earlier = [p for p in defined if p < period]
                source = earlier[-1] if earlier else defined[0]
                tech_periods[period] = tech_periods[source].copy()

    # ---------------------------------------------------------------------------------------------
    # Per-period initialization
    # ---------------------------------------------------------------------------------------------
    def init_calc(self, period):
        self.cap_limited[period] = False
        self.limited_share[period] = 0.0
        for tech in self.get_technologies(period):
            tech.init_calc()
        self.set_calibration_status(period)
        self.exog_supply(period)

    # ---------------------------------------------------------------------------------------------
    # Prices and shares
    # ---------------------------------------------------------------------------------------------
    def calc_price(self, period, fuel_prices):
        """
        Calculate the technology costs & shares and the resulting subsector price in `period`.

        Parameters
        ----------
        period : int
            The model period.
        fuel_prices : dict {str: float}
            Price of each fuel available in the region.

        Returns
        -------
        float :
            The subsector price.
        """
        for tech in self.get_technologies(period):
            fuel_price = fuel_prices[tech.fuel_name]
            if not is_valid_number(fuel_price):
                raise NumericDivergenceError(
                    f"Fuel price for {tech.fuel_name} is {fuel_price}",
                    **self._error_context(period, 'fuel price'))
            tech.calc_cost(fuel_price)
        self.calc_tech_shares(period)

        techs = self.get_technologies(period)
        self.price[period] = sum(t.share * t.cost for t in techs) + self.tax[period]
        self.fuel_price[period] = sum(t.share * t.fuel_price for t in techs)
        return self.price[period]

    def calc_tech_shares(self, period):
        """Calculate the logit shares of the technologies in `period`. Shares sum to 1."""
        techs = self.get_technologies(period)
        for tech in techs:
            if not is_valid_number(tech.cost) or tech.cost < 0:
                raise NumericDivergenceError(
                    f"Technology {tech.name} has an invalid cost of {tech.cost}",
                    **self._error_context(period, 'technology cost'))
            tech.calc_share()
        total = sum(t.share for t in techs)
        for tech in techs:
            tech.norm_share(total)

    def get_price(self, period):
        return self.price[period]

    def get_fuel_price(self, period):
        return self.fuel_price[period]

    def get_weighted_fuel_price(self, period):
        return self.share[period] * self.fuel_price[period]

    def calc_share(self, period, gnp_cap=1.0):
        """
        Calculate the unnormalized logit share of the subsector:
        `share_weight * price ** logit_exponent * gnp_cap ** fuel_pref_elasticity`.

        The parent sector normalizes shares across its subsectors with `norm_share`.

        Parameters
        ----------
        period : int
            The model period.
        gnp_cap : float, optional
            Scaled GDP per capita, used with the fuel preference elasticity. Defaults to 1.

        Returns
        -------
        float :
            The unnormalized share.
        """
        price = self.price[period]
        if not is_valid_number(price) or price < 0:
            raise NumericDivergenceError(f"Invalid price ({price}) entering the share calculation",
                                         **self._error_context(period, 'price'))

        share = self.share_weights[period] * logit_weight(price, self.logit_exponent[period])
        if self.fuel_pref_elasticity[period] != 0:
            share *= gnp_cap ** self.fuel_pref_elasticity[period]

        if not is_valid_number(share):
            raise NumericDivergenceError(f"Share calculation produced {share}",
                                         **self._error_context(period, 'share'))
        self.share[period] = share
        return share

    def set_share(self, share_value, period):
        self.share[period] = share_value

    def norm_share(self, total, period):
        """Normalize the share by the sum of the shares of all subsectors in the sector."""
        if total > 0:
            self.share[period] = self.share[period] / total
        else:
            self.share[period] = 0.0

    def get_share(self, period):
        return self.share[period]

    # ---------------------------------------------------------------------------------------------
    # Capacity limits
    # ---------------------------------------------------------------------------------------------
    @staticmethod
    def cap_limit_transform(cap_limit, original_share):
        """
        Smoothly map a share onto a share which respects a capacity limit.

        Shares below `CAP_LIMIT_KNEE * cap_limit` are returned unchanged. Above that, the returned
        share approaches `cap_limit` asymptotically without ever exceeding it. The function and its
        first derivative are continuous, so small changes in the original share never produce jumps
        in the transformed share.

        Parameters
        ----------
        cap_limit : float
            The capacity limit, as a share [0, 1]. A limit of 0 always gives 0. Limits of 1 or more
            only cap the share at the limit itself.
        original_share : float
            The share before the capacity limit is applied.

        Returns
        -------
        float :
            The capacity limited share.

        Examples
        --------
        >>> Subsector.cap_limit_transform(0.5, 0.1)
        0.1
        >>> Subsector.cap_limit_transform(0.5, 100.0) <= 0.5
        True
        """
        if cap_limit >= 1 or cap_limit <= 0:
            return min(original_share, cap_limit)
        lower_limit = cap_limit * CAP_LIMIT_KNEE
        if original_share <= lower_limit:
            return original_share
        span = cap_limit - lower_limit
        capped = lower_limit + span * -math.expm1(-(original_share - lower_limit) / span)
        return min(capped, cap_limit)

    def get_capacity_limit(self, period):
        return self.cap_limit[period]

    def get_capped_share(self, period):
        """The share the subsector would be frozen at if it was capacity limited now."""
        share = self.share[period]
        if self.cap_limit_smoothing:
            return self.cap_limit_transform(self.cap_limit[period], share)
        return min(share, self.cap_limit[period])

    def exceeds_capacity_limit(self, period):
        return self.get_capped_share(period) < self.share[period]

    def limit_shares(self, multiplier, period):
        """
        Apply capacity limits after shares have been normalized.

        A subsector whose share exceeds its limit is frozen at its limited share for the rest of
        `period` (until the next `init_calc`). The share of an unlimited subsector is rescaled by
        `multiplier` so that the share mass freed by limited subsectors is redistributed.

        Parameters
        ----------
        multiplier : float
            Rescaling factor for unlimited shares, (1 - sum of limited shares) / (sum of unlimited
            shares), calculated by the sector.
        period : int
            The model period.
        """
        if self.cap_limited[period]:
            self.share[period] = self.limited_share[period]
        elif self.exceeds_capacity_limit(period):
            self.limited_share[period] = self.get_capped_share(period)
            self.share[period] = self.limited_share[period]
            self.cap_limited[period] = True
        else:
            self.share[period] = self.share[period] * multiplier

    def set_cap_limit_status(self, value, period):
        self.cap_limited[period] = value

    def get_cap_limit_status(self, period):
        return self.cap_limited[period]

    def get_limited_share(self, period):
        if self.cap_limited[period]:
            return self.limited_share[period]
        return self.get_capped_share(period)

    # ---------------------------------------------------------------------------------------------
    # Fixed supply
    # ---------------------------------------------------------------------------------------------
    def exog_supply(self, period):
        """Find (and store) the output of technologies with a fixed output in `period`."""
        self.fixed_supply[period] = sum(t.get_fixed_supply() for t in self.get_technologies(period))
        return self.fixed_supply[period]

    def get_fixed_supply(self, period):
        return self.fixed_supply[period]

    def scale_fixed_supply(self, scale_ratio, period):
        for tech in self.get_technologies(period):
            tech.scale_fixed_supply(scale_ratio)
        self.fixed_supply[period] = self.fixed_supply[period] * scale_ratio

    def reset_fixed_supply(self, period):
        for tech in self.get_technologies(period):
            tech.reset_fixed_supply()
        self.exog_supply(period)

    def all_output_fixed(self, period):
        return all(t.output_fixed() for t in self.get_technologies(period))

    def get_fixed_share(self, period):
        return self.fixed_share[period]

    def set_fixed_share(self, period, share):
        self.fixed_share[period] = share

    def set_share_to_fixed_value(self, period):
        self.share[period] = self.fixed_share[period]

    def adj_shares(self, demand, share_ratio, total_fixed_supply, period):
        """
        Adjust the share of the subsector for fixed supplies in the sector.

        The sector's fixed supply is removed from `demand` and the remainder is shared out among
        subsectors which have variable output, using their logit shares rescaled by `share_ratio`.
        The subsector's own fixed supply is then added back to its share.

        Parameters
        ----------
        demand : float
            Total sector demand.
        share_ratio : float
            1 / (sum of the shares of subsectors with variable output).
        total_fixed_supply : float
            Fixed supply across all subsectors of the sector.
        period : int
            The model period.
        """
        fixed_supply = self.get_fixed_supply(period)
        if demand <= 0:
            self.set_fixed_share(period, 0.0)
            self.share[period] = 0.0 if self.all_output_fixed(period) else \
                self.share[period] * share_ratio
            return

        self.set_fixed_share(period, min(fixed_supply / demand, 1.0))
        if self.all_output_fixed(period):
            self.set_share_to_fixed_value(period)
        else:
            variable_demand = max(demand - total_fixed_supply, 0.0)
            variable_output = self.share[period] * share_ratio * variable_demand
            self.share[period] = (fixed_supply + variable_output) / demand

    # ---------------------------------------------------------------------------------------------
    # Output
    # ---------------------------------------------------------------------------------------------
    def set_output(self, demand, period):
        """
        Set the subsector output to its share of `demand` and distribute this output to its
        technologies. Technologies with a fixed output produce that output, the remainder is
        shared among the other technologies by their logit shares.
        """
        self.output[period] = self.share[period] * demand

        techs = self.get_technologies(period)
        variable_techs = [t for t in techs if not t.output_fixed()]
        variable_output = max(self.output[period] - self.get_fixed_supply(period), 0.0)
        variable_share_total = sum(t.share for t in variable_techs)

        for tech in techs:
            if tech.output_fixed():
                tech.production(tech.get_fixed_supply())
            elif variable_share_total > 0:
                tech.production(variable_output * tech.share / variable_share_total)
            else:
                tech.production(variable_output / len(variable_techs))

        self.input[period] = sum(t.input for t in techs)
        fuel_consumption = {}
        for tech in techs:
            fuel_consumption[tech.fuel_name] = fuel_consumption.get(tech.fuel_name, 0.0) + tech.input
        self.fuel_consumption[period] = fuel_consumption

    def get_output(self, period):
        return self.output[period]

    def get_input(self, period):
        return self.input[period]

    def get_fuel_consumption(self, period):
        return dict(self.fuel_consumption[period])

    def clear_fuel_consumption(self, period):
        self.fuel_consumption[period] = {}

    def calc_pe_consumption(self, period, primary_fuels):
        """Sum the inputs of fuels which are primary energy in the region."""
        self.pe_cons[period] = sum(amount for fuel, amount in self.fuel_consumption[period].items()
                                   if fuel in primary_fuels)
        return self.pe_cons[period]

    def get_pe_consumption(self, period):
        return self.pe_cons[period]

    # ---------------------------------------------------------------------------------------------
    # Taxes & emissions
    # ---------------------------------------------------------------------------------------------
    def apply_carbon_tax(self, tax, period):
        self.add_ghg_tax('CO2', tax, period)

    def add_ghg_tax(self, ghg, tax, period):
        for tech in self.get_technologies(period):
            tech.add_ghg_tax(ghg, tax)

    def emission(self, period):
        """Calculate the emissions (by gas) and carbon taxes paid by the subsector in `period`."""
        emissions = {}
        carbon_tax_paid = 0.0
        for tech in self.get_technologies(period):
            for gas, amount in tech.calc_emission().items():
                emissions[gas] = emissions.get(gas, 0.0) + amount
            carbon_tax_paid += tech.carbon_tax_paid
        self.emissions[period] = emissions
        self.carbon_tax_paid[period] = carbon_tax_paid
        return emissions

    def get_emission(self, period):
        return dict(self.emissions[period])

    def get_total_carbon_tax_paid(self, period):
        return self.carbon_tax_paid[period]

    def get_ghgs(self):
        return {gas for tech_periods in self.techs for tech in tech_periods
                for gas in tech.emission_coefficients}

    # ---------------------------------------------------------------------------------------------
    # Calibration
    # ---------------------------------------------------------------------------------------------
    def set_calibration_status(self, period):
        """
        Flag the subsector as calibrated in `period` if a calibrated output was read in for the
        subsector or for any of its technologies.
        """
        tech_calibrated = any(t.get_cal_output() is not None for t in self.get_technologies(period))
        self.calibration_status[period] = bool(self.do_calibration[period] or tech_calibrated)

    def get_calibration_status(self, period):
        return self.calibration_status[period]

    def get_total_cal_outputs(self, period):
        """
        The calibrated output of the subsector: the subsector calibration value if there is one,
        otherwise the sum of its technologies' calibrated outputs.
        """
        if self.do_calibration[period]:
            return self.cal_output_value[period]
        return sum(t.get_cal_output() for t in self.get_technologies(period)
                   if t.get_cal_output() is not None)

    def get_variable_cal_outputs(self, period):
        """The part of the calibrated output which is not met by fixed supply."""
        if not self.calibration_status[period]:
            return 0.0
        return max(self.get_total_cal_outputs(period) - self.get_fixed_supply(period), 0.0)

    def scale_calibration_input(self, period, scale_factor):
        if self.do_calibration[period]:
            self.cal_output_value[period] = self.cal_output_value[period] * scale_factor
        for tech in self.get_technologies(period):
            tech.scale_calibration_input(scale_factor)

    def adjust_for_calibration(self, sector_demand, total_fixed_supply, total_cal_outputs, period):
        """
        Scale the subsector share weight so that its share moves toward the share needed to
        produce its calibrated output. The new share weight takes effect the next time shares are
        calculated for `period`.

        If `total_cal_outputs` is 0, share weights are left unchanged. If there is no demand left
        once fixed supply is removed, the calibration target can't be approached, this is recorded
        in `calibration_issues` and the share weights are left unchanged.

        Parameters
        ----------
        sector_demand : float
            Total demand for the sector's output.
        total_fixed_supply : float
            Fixed supply across all subsectors in the sector.
        total_cal_outputs : float
            Sum of the variable calibrated outputs across all subsectors in the sector.
        period : int
            The model period.

        Returns
        -------
        float or None :
            The factor the share weight was scaled by, or None if no scaling was applied.
        """
        if not self.calibration_status[period]:
            return None
        if total_cal_outputs <= 0:
            logger.debug("No calibrated outputs in %s.%s, period %s. Share weights are unchanged.",
                         self.region_name, self.sector_name, period)
            return None

        available_demand = sector_demand - total_fixed_supply
        if available_demand <= 0:
            self.calibration_issues.append(CalibrationUnattainableError(
                f"No demand is available to calibrate {self.name} once fixed supply is removed",
                region=self.region_name, sector=self.sector_name, subsector=self.name,
                period=period))
            return None

        cal_output = self.get_variable_cal_outputs(period)
        desired_share = cal_output / max(available_demand, total_cal_outputs)
        current_share = (self.output[period] - self.get_fixed_supply(period)) / available_demand

        if current_share <= 0:
            if desired_share > 0:
                # A zero share weight (or share) can't be scaled toward a positive target
                self.share_weights[period] = 1.0
            scale_factor = None
        else:
            scale_factor = desired_share / current_share
            new_share_weight = self.share_weights[period] * scale_factor
            if not is_valid_number(new_share_weight):
                raise NumericDivergenceError(
                    f"Calibration produced a share weight of {new_share_weight}",
                    **self._error_context(period, 'share weight'))
            self.share_weights[period] = new_share_weight

        if self.share_weights[period] > LARGE_SHARE_WEIGHT:
            logger.warning("Share weight of %s.%s.%s is %s in period %s", self.region_name,
                           self.sector_name, self.name, self.share_weights[period], period)

        self._adjust_tech_share_weights(period)
        return scale_factor

    def _adjust_tech_share_weights(self, period):
        """Scale technology share weights toward the share of each calibrated technology."""
        variable_techs = [t for t in self.get_technologies(period) if not t.output_fixed()]
        if len(variable_techs) < 2:
            return
        calibrated = [t for t in variable_techs if t.get_cal_output() is not None]
        if not calibrated:
            return
        total_cal = sum(t.get_cal_output() for t in calibrated)
        reference = total_cal if len(calibrated) == len(variable_techs) else \
            max(self.get_variable_cal_outputs(period), total_cal)
        if reference <= 0:
            return
        for tech in calibrated:
            desired_share = tech.get_cal_output() / reference
            if tech.share > 0:
                tech.adjust_share_weight(desired_share / tech.share)
            elif desired_share > 0:
                tech.share_weight = 1.0

    def is_calibrated(self, period, cal_accuracy):
        """
        Whether every calibrated output (of the subsector or its technologies) is matched by the
        computed output within a relative tolerance of `cal_accuracy`.
        """
        if self.do_calibration[period] and \
                relative_difference(self.output[period], self.cal_output_value[period]) > cal_accuracy:
            return False
        for tech in self.get_technologies(period):
            if tech.get_cal_output() is not None and \
                    relative_difference(tech.output, tech.get_cal_output()) > cal_accuracy:
                return False
        return True

    # ---------------------------------------------------------------------------------------------
    # Share weight interpolation
    # ---------------------------------------------------------------------------------------------
    def share_weight_interp(self, begin_period, end_period):
        """
        Linearly interpolate share weights for the periods between `begin_period` and
        `end_period`. The share weights at both endpoints are not modified.
        """
        if end_period < begin_period:
            raise ValueError(f"Cannot interpolate share weights from period {begin_period} back "
                             f"to period {end_period}.")
        if end_period - begin_period < 2:
            return

        interpolator = interp1d([begin_period, end_period],
                                [self.share_weights[begin_period], self.share_weights[end_period]])
        for period, weight in zip(range(begin_period + 1, end_period),
                                  interpolator(np.arange(begin_period + 1, end_period))):
            self.share_weights[period] = float(weight)

    def share_weight_scale(self, period):
        """
        Carry share weights calibrated in `period` forward. If a later period has a share weight
        specified in the input, weights are interpolated toward it, otherwise the calibrated weight
        is used for every later period.
        """
        if not self.calibration_status[period]:
            return
        later_specified = [p for p in range(period + 1, self.model_time.max_period)
                           if self.share_weight_specified[p]]
        if later_specified:
            self.share_weight_interp(period, later_specified[0])
        else:
            for later in range(period + 1, self.model_time.max_period):
                self.share_weights[later] = self.share_weights[period]

        for tech_periods in self.techs:
            if tech_periods[period].get_cal_output() is None:
                continue
            for later in range(period + 1, self.model_time.max_period):
                tech_periods[later].share_weight = tech_periods[period].share_weight

    def __repr__(self):
        return f"Subsector({self.region_name}.{self.sector_name}.{self.name})"
