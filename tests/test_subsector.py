import numpy as np
import pytest

import GEMS
from GEMS import Subsector, Technology, ModelTime
from GEMS.errors import ConfigurationError, NumericDivergenceError, CalibrationUnattainableError


class TestCapLimitTransform:
    @pytest.fixture(scope="class")
    def rng(self):
        return np.random.default_rng(2005)

    def test_zero_share(self):
        for cap_limit in (0.0, 0.1, 0.5, 0.99):
            assert Subsector.cap_limit_transform(cap_limit, 0.0) == 0.0

    def test_monotone(self, rng):
        for cap_limit in rng.uniform(0.01, 0.99, size=20):
            shares = np.sort(rng.uniform(0, 5, size=200))
            transformed = [Subsector.cap_limit_transform(cap_limit, s) for s in shares]
            assert all(b >= a for a, b in zip(transformed, transformed[1:]))

    def test_never_exceeds_limit(self, rng):
        for cap_limit in rng.uniform(0.01, 0.99, size=20):
            for share in rng.uniform(0, 1000, size=50):
                assert Subsector.cap_limit_transform(cap_limit, share) <= cap_limit

    def test_approaches_limit(self):
        assert Subsector.cap_limit_transform(0.4, 50.0) == pytest.approx(0.4)

    @pytest.mark.parametrize("cap_limit, share", [(0.5, 0.1), (0.9, 0.3), (0.3, 0.2)])
    def test_small_shares_unchanged(self, cap_limit, share):
        assert Subsector.cap_limit_transform(cap_limit, share) == share

    def test_no_limit(self):
        assert Subsector.cap_limit_transform(1.0, 0.8) == 0.8

    @pytest.mark.parametrize("share", [0.01, 0.5, 1.0, 20.0])
    def test_zero_limit(self, share):
        assert Subsector.cap_limit_transform(0.0, share) == 0.0

    @pytest.mark.parametrize("cap_limit, share", [(1.0, 1.5), (2.0, 3.0)])
    def test_shares_above_a_full_limit(self, cap_limit, share):
        assert Subsector.cap_limit_transform(cap_limit, share) == cap_limit


class TestSubsector:
    @pytest.fixture
    def subsector(self, model_time, make_subsector):
        subsector = make_subsector(model_time, 'coal', ['coal'])
        subsector.complete_init()
        subsector.init_calc(0)
        return subsector

    def test_calc_price(self, subsector):
        price = subsector.calc_price(0, {'coal': 2.0})
        assert price == pytest.approx(2.0)
        assert subsector.get_fuel_price(0) == pytest.approx(2.0)

    def test_calc_share(self, subsector):
        subsector.calc_price(0, {'coal': 2.0})
        assert subsector.calc_share(0) == pytest.approx(0.25)

    def test_fuel_preference_elasticity(self, subsector):
        subsector.fuel_pref_elasticity[0] = 0.5
        subsector.calc_price(0, {'coal': 1.0})
        assert subsector.calc_share(0, gnp_cap=4.0) == pytest.approx(2.0)

    def test_negative_price(self, subsector):
        subsector.price[0] = -1.0
        with pytest.raises(NumericDivergenceError) as error:
            subsector.calc_share(0)
        assert error.value.field == 'price'
        assert error.value.subsector == 'coal'
        assert error.value.period == 0

    def test_nan_fuel_price(self, subsector):
        with pytest.raises(NumericDivergenceError):
            subsector.calc_price(0, {'coal': float('nan')})

    def test_norm_share_zero_total(self, subsector):
        subsector.set_share(0.4, 0)
        subsector.norm_share(0.0, 0)
        assert subsector.get_share(0) == 0.0

    def test_tech_shares_sum_to_one(self, model_time, make_subsector):
        subsector = make_subsector(model_time, 'gas', ['gas', 'lng', 'biogas'])
        subsector.complete_init()
        subsector.init_calc(0)
        subsector.calc_price(0, {'gas': 1.0, 'lng': 1.5, 'biogas': 3.0})
        assert sum(t.share for t in subsector.get_technologies(0)) == pytest.approx(1.0)

    def test_set_output(self, subsector):
        subsector.calc_price(0, {'coal': 1.0})
        subsector.set_share(0.25, 0)
        subsector.set_output(200.0, 0)
        assert subsector.get_output(0) == pytest.approx(50.0)
        assert subsector.get_fuel_consumption(0) == {'coal': pytest.approx(50.0)}

    def test_emissions(self, model_time, make_subsector):
        subsector = make_subsector(model_time, 'coal', ['coal'],
                                   emission_coefficients={'CO2': 0.5})
        subsector.complete_init()
        subsector.init_calc(0)
        subsector.add_ghg_tax('CO2', 10.0, 0)
        subsector.calc_price(0, {'coal': 1.0})
        assert subsector.get_price(0) == pytest.approx(6.0)
        subsector.set_share(1.0, 0)
        subsector.set_output(10.0, 0)
        assert subsector.emission(0) == {'CO2': pytest.approx(5.0)}
        assert subsector.get_total_carbon_tax_paid(0) == pytest.approx(50.0)


class TestCompleteInit:
    def test_no_technologies(self, model_time):
        with pytest.raises(ConfigurationError):
            Subsector('empty', 'R1', 'electricity', model_time).complete_init()

    def test_negative_capacity_limit(self, model_time, make_subsector):
        subsector = make_subsector(model_time, 'coal', ['coal'])
        subsector.cap_limit[1] = -0.5
        with pytest.raises(ConfigurationError):
            subsector.complete_init()

    def test_technology_periods_filled(self, model_time):
        subsector = Subsector('coal', 'R1', 'electricity', model_time)
        subsector.add_technology(Technology('old', 'coal', efficiency=0.3), period=0)
        subsector.complete_init()
        later = subsector.get_technology('old', 1)
        assert later.efficiency == 0.3
        assert later is not subsector.get_technology('old', 0)

    def test_share_weights_interpolated(self, make_subsector):
        model_time = ModelTime.from_range(2005, 2030, 5)
        subsector = make_subsector(model_time, 'coal', ['coal'])
        subsector.set_share_weight(0, 1.0)
        subsector.set_share_weight(4, 3.0)
        subsector.complete_init()
        assert list(subsector.share_weights) == pytest.approx([1.0, 1.5, 2.0, 2.5, 3.0, 3.0])
        assert subsector.share_weights[4] == 3.0


class TestShareWeightInterp:
    @pytest.fixture
    def subsector(self, make_subsector):
        model_time = ModelTime.from_range(2005, 2025, 5)
        return make_subsector(model_time, 'coal', ['coal'])

    def test_endpoints_reproduced(self, subsector):
        subsector.share_weights[0] = 0.1
        subsector.share_weights[3] = 0.7
        subsector.share_weight_interp(0, 3)
        assert subsector.share_weights[0] == 0.1
        assert subsector.share_weights[3] == 0.7
        assert subsector.share_weights[1] == pytest.approx(0.3)
        assert subsector.share_weights[2] == pytest.approx(0.5)

    def test_reversed_periods(self, subsector):
        with pytest.raises(ValueError):
            subsector.share_weight_interp(3, 1)

    def test_share_weight_scale_carries_forward(self, subsector):
        subsector.set_calibration_output(0, 10.0)
        subsector.complete_init()
        subsector.init_calc(0)
        subsector.share_weights[0] = 0.4
        subsector.share_weight_scale(0)
        assert list(subsector.share_weights) == pytest.approx([0.4] * 5)

    def test_share_weight_scale_interpolates_to_specified(self, subsector):
        subsector.set_share_weight(4, 2.0)
        subsector.set_calibration_output(0, 10.0)
        subsector.complete_init()
        subsector.init_calc(0)
        subsector.share_weights[0] = 1.0
        subsector.share_weight_scale(0)
        assert list(subsector.share_weights) == pytest.approx([1.0, 1.25, 1.5, 1.75, 2.0])


class TestCalibration:
    @pytest.fixture
    def subsector(self, model_time, make_subsector):
        subsector = make_subsector(model_time, 'coal', ['coal'])
        subsector.set_calibration_output(0, 60.0)
        subsector.complete_init()
        subsector.init_calc(0)
        subsector.calc_price(0, {'coal': 1.0})
        subsector.set_share(0.8, 0)
        subsector.set_output(100.0, 0)
        return subsector

    def test_calibration_status(self, subsector):
        assert subsector.get_calibration_status(0)
        assert subsector.get_total_cal_outputs(0) == 60.0

    def test_zero_total_cal_outputs(self, subsector):
        assert subsector.adjust_for_calibration(100.0, 0.0, 0.0, 0) is None
        assert subsector.share_weights[0] == 1.0

    def test_share_weight_scaled(self, subsector):
        scale = subsector.adjust_for_calibration(100.0, 0.0, 100.0, 0)
        assert scale == pytest.approx(0.75)
        assert subsector.share_weights[0] == pytest.approx(0.75)

    def test_targets_exceeding_demand_are_scaled(self, subsector):
        subsector.adjust_for_calibration(100.0, 0.0, 200.0, 0)
        assert subsector.share_weights[0] == pytest.approx(0.3 / 0.8)

    def test_unattainable(self, subsector):
        assert subsector.adjust_for_calibration(50.0, 50.0, 60.0, 0) is None
        assert subsector.share_weights[0] == 1.0
        assert len(subsector.calibration_issues) == 1
        assert isinstance(subsector.calibration_issues[0], CalibrationUnattainableError)

    def test_zero_share_weight_reset(self, subsector):
        subsector.share_weights[0] = 0.0
        subsector.set_share(0.0, 0)
        subsector.set_output(100.0, 0)
        subsector.adjust_for_calibration(100.0, 0.0, 100.0, 0)
        assert subsector.share_weights[0] == 1.0

    @pytest.mark.parametrize("output, expected", [(60.0, True), (60.05, True), (61.0, False)])
    def test_is_calibrated(self, subsector, output, expected):
        subsector.output[0] = output
        assert subsector.is_calibrated(0, 0.001) is expected

    def test_technology_calibration(self, model_time):
        subsector = Subsector('gas', 'R1', 'electricity', model_time)
        subsector.add_technology(Technology('turbine', 'gas', cal_output=30.0))
        subsector.add_technology(Technology('boiler', 'gas', cal_output=10.0))
        subsector.complete_init()
        subsector.init_calc(0)
        assert subsector.get_calibration_status(0)
        assert subsector.get_total_cal_outputs(0) == 40.0

        subsector.calc_price(0, {'gas': 1.0})
        subsector.set_share(1.0, 0)
        subsector.set_output(40.0, 0)
        subsector.adjust_for_calibration(40.0, 0.0, 40.0, 0)
        subsector.calc_price(0, {'gas': 1.0})
        subsector.set_output(40.0, 0)
        assert subsector.get_technology('turbine', 0).output == pytest.approx(30.0)
        assert subsector.is_calibrated(0, 0.001)

    def test_scale_calibration_input(self, subsector):
        subsector.scale_calibration_input(0, 0.5)
        assert subsector.get_total_cal_outputs(0) == 30.0


class TestFixedSupply:
    @pytest.fixture
    def subsector(self, model_time):
        subsector = Subsector('nuclear', 'R1', 'electricity', model_time)
        subsector.add_technology(Technology('reactor', 'uranium', fixed_output=30.0))
        subsector.complete_init()
        subsector.init_calc(0)
        return subsector

    def test_exog_supply(self, subsector):
        assert subsector.all_output_fixed(0)
        assert subsector.exog_supply(0) == 30.0

    def test_adj_shares(self, subsector):
        subsector.adj_shares(100.0, 1.0, 30.0, 0)
        assert subsector.get_fixed_share(0) == pytest.approx(0.3)
        assert subsector.get_share(0) == pytest.approx(0.3)

    def test_scale_and_reset(self, subsector):
        subsector.scale_fixed_supply(0.5, 0)
        assert subsector.get_fixed_supply(0) == 15.0
        subsector.reset_fixed_supply(0)
        assert subsector.get_fixed_supply(0) == 30.0
