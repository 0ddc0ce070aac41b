# ------------ Global Technologies ------------ #
global_region = "global"

# ------------ Region ------------ #
fuel_price = "fuel price"
gdp_scale = "gdp scale"
carbon_tax = "carbon tax"

# ------------ Sector ------------ #
final_demand = "final demand"
unit = "unit"

# ------------ Subsector ------------ #
share_weight = "share weight"
logit_exponent = "logit exponent"
capacity_limit = "capacity limit"
capacity_limit_smoothing = "capacity limit smoothing"
fuel_preference_elasticity = "fuel preference elasticity"
tax = "tax"
calibrated_output = "calibrated output"
fuel_type = "fuel type"

# ------------ Technology ------------ #
fuel = "fuel"
efficiency = "efficiency"
non_energy_cost = "non-energy cost"
fixed_output = "fixed output"
emission_coefficient = "emission coefficient"

# Parameters which only apply in the years they are given (not carried forward)
explicit_year_parameters = [share_weight, calibrated_output]
