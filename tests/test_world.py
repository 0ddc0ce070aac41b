import pytest

import GEMS
from GEMS import World, RegionID, RegionLookupBuilder, RunSettings, CalcCounter
from GEMS.errors import ConfigurationError, NumericDivergenceError


class TestRegionLookup:
    def test_build(self):
        lookup = RegionLookupBuilder().add(RegionID('R1'), 0).add(RegionID('R2'), 1).build()
        assert lookup.get_index(RegionID('R2')) == 1
        assert lookup.get_index(RegionID('R3')) is None
        assert RegionID('R1') in lookup
        assert len(lookup) == 2

    def test_frozen(self):
        lookup = RegionLookupBuilder().add(RegionID('R1'), 0).build()
        with pytest.raises(TypeError):
            lookup._mapping[RegionID('R2')] = 1

    def test_duplicate(self):
        builder = RegionLookupBuilder().add(RegionID('R1'), 0)
        with pytest.raises(ConfigurationError):
            builder.add(RegionID('R1'), 1)

    def test_region_id_value_semantics(self):
        assert RegionID('R1') == RegionID('R1')
        assert hash(RegionID('R1')) == hash(RegionID('R1'))
        assert RegionID('R1') != RegionID('R2')


class TestWorldLifecycle:
    @pytest.fixture
    def world(self, model_time, make_world):
        return make_world(model_time)

    def test_status(self, world, model_time):
        assert World(model_time).status == 'instantiated'
        assert world.status == 'parsed'
        world.complete_init()
        assert world.status == 'initialized'
        world.init_calc(0)
        world.calc(0)
        assert world.status == 'solving'
        world.post_calc(0)
        assert world.status == 'post calc'
        world.run_climate_model()
        assert world.status == 'run completed'

    def test_complete_init_twice(self, world):
        world.complete_init()
        with pytest.raises(ValueError):
            world.complete_init()

    def test_add_region_after_init(self, world, model_time, make_region):
        world.complete_init()
        with pytest.raises(ValueError):
            world.add_region(make_region(model_time, 'R3'))

    def test_duplicate_region(self, world, model_time, make_region):
        with pytest.raises(ConfigurationError):
            world.add_region(make_region(model_time, 'R1'))

    def test_calc_before_init(self, world):
        with pytest.raises(ValueError):
            world.calc(0)

    def test_periods_in_order(self, world):
        world.complete_init()
        with pytest.raises(ValueError):
            world.init_calc(1)

    def test_empty_world(self, model_time):
        with pytest.raises(ConfigurationError):
            World(model_time).complete_init()

    def test_region_maps(self, world):
        world.complete_init()
        assert world.get_output_region_map() == {'R1': 0, 'R2': 1}
        assert world.get_region_ids() == [RegionID('R1'), RegionID('R2')]
        assert world.get_region_index(RegionID('R2')) == 1


class TestWorldCalc:
    @pytest.fixture
    def world(self, model_time, make_world):
        world = make_world(model_time)
        world.complete_init()
        world.init_calc(0)
        return world

    def output(self, world, region_name):
        return world.get_region(region_name).get_sector('electricity').get_output(0)

    def test_calc_all(self, world):
        world.calc(0)
        assert self.output(world, 'R1') == pytest.approx(100.0)
        assert self.output(world, 'R2') == pytest.approx(100.0)

    def test_calc_subset(self, world):
        world.calc(0, [RegionID('R2')])
        assert self.output(world, 'R1') == 0.0
        assert self.output(world, 'R2') == pytest.approx(100.0)

    def test_calc_empty_subset(self, world):
        world.calc(0, [])
        assert self.output(world, 'R1') == pytest.approx(100.0)
        assert self.output(world, 'R2') == pytest.approx(100.0)

    def test_calc_unknown_region(self, world):
        world.settings.print_warnings = True
        with pytest.warns(UserWarning, match="not in the world"):
            world.calc(0, [RegionID('Atlantis'), RegionID('R1')])
        assert self.output(world, 'R1') == pytest.approx(100.0)

    def test_divergence_aborts_calc(self, world):
        subsector = world.get_region('R2').get_sector('electricity').get_subsector('A')
        subsector.get_technology('A-cheap', 0).non_energy_cost = float('nan')
        with pytest.raises(NumericDivergenceError) as exc_info:
            world.calc(0)
        error = exc_info.value
        assert (error.region, error.sector, error.subsector) == ('R2', 'electricity', 'A')
        assert error.period == 0
        assert error.field == 'technology cost'
        assert self.output(world, 'R1') == pytest.approx(100.0)
        assert self.output(world, 'R2') == 0.0

    def test_calc_counter(self, world):
        counter = CalcCounter()
        world.set_calc_counter(counter)
        world.calc(0)
        world.calc(0)
        assert counter.total == 2
        assert counter.get_period_count(0) == 2


class TestWorldCalibration:
    @pytest.fixture
    def world(self, model_time, make_world):
        world = make_world(model_time)
        subsector = world.get_region('R2').get_sector('electricity').get_subsector('A')
        subsector.set_calibration_output(0, 60.0)
        world.complete_init()
        world.init_calc(0)
        return world

    def test_one_uncalibrated_region(self, world):
        world.calc(0)
        assert world.get_region('R1').is_all_calibrated(0, 0.001)
        assert not world.get_region('R2').is_all_calibrated(0, 0.001)
        assert not world.is_all_calibrated(0)

    def test_all_calibrated(self, world):
        world.calc(0)
        world.calc(0)
        assert world.is_all_calibrated(0, 0.001, False)

    def test_calibration_toggle(self, world):
        world.turn_calibrations_off()
        assert not world.get_calibration_setting()
        world.calc(0)
        world.calc(0)
        assert not world.is_all_calibrated(0)
        world.turn_calibrations_on()
        assert world.get_calibration_setting()

    def test_unattainable_recorded(self, model_time, make_world):
        world = make_world(model_time, demand=0.0)
        world.get_region('R1').get_sector('electricity').get_subsector('A') \
            .set_calibration_output(0, 60.0)
        world.complete_init()
        world.init_calc(0)
        world.calc(0)
        issues = world.get_calibration_issues(0)
        assert len(issues) == 1
        assert issues[0].region == 'R1'
        assert not world.is_all_calibrated(0)


class TestWorldEmissions:
    @pytest.fixture
    def world(self, model_time, make_world):
        world = make_world(model_time, emission_coefficients={'CO2': 0.5})
        world.set_tax('CO2', {0: 0.0, 1: 2.0})
        world.complete_init()
        for period in range(model_time.max_period):
            world.init_calc(period)
            world.calc(period)
            world.post_calc(period)
        return world

    def test_quantity_curves(self, world):
        curves = world.get_emissions_quantity_curves('CO2')
        assert set(curves) == {'R1', 'R2'}
        assert curves['R1'][2005] == pytest.approx(50.0)
        assert list(curves['R1'].index) == [2005, 2010]

    def test_price_curves(self, world):
        curves = world.get_emissions_price_curves('CO2')
        assert curves['R2'][2010] == 2.0

    def test_climate_model(self, world):
        world.run_climate_model()
        assert world.climate_model.get_emissions('CO2')[2005] == pytest.approx(100.0)
