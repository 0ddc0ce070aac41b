"""
Module containing the Technology class, the alternatives which compete for share inside a
subsector.
"""
import copy

from .errors import ConfigurationError
from .utils.share_utils import logit_weight


class Technology:
    """
    A single technology in a single period. A subsector holds one Technology object for each
    technology and period.

    Parameters
    ----------
    name : str
        Name of the technology.
    fuel_name : str
        Name of the fuel (or good) the technology consumes.
    efficiency : float, optional
        Units of output produced per unit of fuel input.
    non_energy_cost : float, optional
        Non-fuel cost per unit of output.
    share_weight : float, optional
        Calibration-tunable share weight used in the technology logit.
    logit_exponent : float, optional
        Logit exponent used when technologies compete within their subsector.
    fixed_output : float, optional
        If provided, the technology produces this amount regardless of price.
    cal_output : float, optional
        Calibrated (observed) output of the technology.
    emission_coefficients : dict {str: float}, optional
        Emissions per unit of fuel input, keyed by gas.
    """

    def __init__(self, name, fuel_name, efficiency=1.0, non_energy_cost=0.0, share_weight=1.0,
                 logit_exponent=-6.0, fixed_output=None, cal_output=None,
                 emission_coefficients=None):
        self.name = name
        self.fuel_name = fuel_name
        self.efficiency = efficiency
        self.non_energy_cost = non_energy_cost
        self.share_weight = share_weight
        self.logit_exponent = logit_exponent
        self.fixed_output = fixed_output
        self.fixed_output_base = fixed_output
        self.cal_output = cal_output
        self.emission_coefficients = dict(emission_coefficients or {})
        self.carbon_tax = {}

        self.fuel_price = 0.0
        self.cost = 0.0
        self.share = 0.0
        self.output = 0.0
        self.input = 0.0
        self.carbon_tax_paid = 0.0
        self.emissions = {}

    def copy(self):
        return copy.deepcopy(self)

    def complete_init(self):
        if self.efficiency is None or self.efficiency <= 0:
            raise ConfigurationError(
                f"Technology {self.name} must have a positive efficiency, got {self.efficiency}.")
        if self.share_weight < 0:
            raise ConfigurationError(f"Technology {self.name} has a negative share weight.")
        if self.fixed_output is not None and self.fixed_output < 0:
            raise ConfigurationError(f"Technology {self.name} has a negative fixed output.")

    def init_calc(self):
        self.reset_fixed_supply()

    def calc_cost(self, fuel_price):
        """
        Calculate the cost of producing one unit of output, including any carbon taxes on the
        emissions from the fuel consumed.
        """
        self.fuel_price = fuel_price
        tax_cost = sum(coef * self.carbon_tax.get(gas, 0.0)
                       for gas, coef in self.emission_coefficients.items())
        self.cost = (fuel_price + tax_cost) / self.efficiency + self.non_energy_cost
        return self.cost

    def calc_share(self):
        """Unnormalized share, normalized by the subsector with `norm_share`."""
        self.share = self.share_weight * logit_weight(self.cost, self.logit_exponent)
        return self.share

    def norm_share(self, total):
        self.share = self.share / total if total > 0 else 0.0

    def production(self, output):
        """Produce `output` (or the fixed output if the technology has one)."""
        if self.output_fixed():
            output = self.fixed_output
        self.output = output
        self.input = output / self.efficiency
        return self.output

    def calc_emission(self):
        self.emissions = {gas: coef * self.input for gas, coef in self.emission_coefficients.items()}
        self.carbon_tax_paid = sum(amount * self.carbon_tax.get(gas, 0.0)
                                   for gas, amount in self.emissions.items())
        return self.emissions

    def add_ghg_tax(self, gas, tax):
        self.carbon_tax[gas] = tax

    def output_fixed(self):
        return self.fixed_output is not None

    def get_fixed_supply(self):
        return self.fixed_output if self.fixed_output is not None else 0.0

    def scale_fixed_supply(self, scale_ratio):
        if self.fixed_output is not None:
            self.fixed_output *= scale_ratio

    def reset_fixed_supply(self):
        self.fixed_output = self.fixed_output_base

    def get_cal_output(self):
        return self.cal_output

    def scale_calibration_input(self, scale_factor):
        if self.cal_output is not None:
            self.cal_output *= scale_factor

    def adjust_share_weight(self, factor):
        self.share_weight *= factor

    def __repr__(self):
        return f"Technology({self.name!r}, fuel={self.fuel_name!r})"
