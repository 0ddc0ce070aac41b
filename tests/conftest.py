import pytest

import GEMS


@pytest.fixture
def model_time():
    return GEMS.ModelTime([2005, 2010])


@pytest.fixture
def make_subsector():
    """Factory for a subsector with one technology per fuel."""
    def _make_subsector(model_time, name, fuels, share_weight=1.0, logit_exponent=-2.0,
                        region_name='R1', sector_name='electricity', **tech_kwargs):
        subsector = GEMS.Subsector(name, region_name, sector_name, model_time)
        subsector.share_weights.fill(share_weight)
        subsector.logit_exponent.fill(logit_exponent)
        for fuel in fuels:
            subsector.add_technology(GEMS.Technology(f"{name}-{fuel}", fuel, **tech_kwargs))
        return subsector
    return _make_subsector


@pytest.fixture
def make_region(make_subsector):
    """
    Factory for a region with a single 'electricity' sector. `subsectors` maps subsector names to
    (fuel, fuel price, share weight).
    """
    def _make_region(model_time, name='R1', subsectors=None, demand=100.0, **tech_kwargs):
        subsectors = subsectors or {'A': ('cheap', 1.0, 0.5), 'B': ('pricey', 2.0, 0.5)}
        region = GEMS.Region(name, model_time)
        sector = GEMS.Sector('electricity', name, model_time)
        for sub_name, (fuel, price, share_weight) in subsectors.items():
            sector.add_subsector(make_subsector(model_time, sub_name, [fuel], share_weight,
                                                region_name=name, **tech_kwargs))
            for period in range(model_time.max_period):
                region.set_fuel_price(fuel, period, price)
        region.add_sector(sector)
        for period in range(model_time.max_period):
            region.set_final_demand('electricity', period, demand)
        return region
    return _make_region


@pytest.fixture
def make_world(make_region):
    def _make_world(model_time, region_names=('R1', 'R2'), settings=None, **region_kwargs):
        world = GEMS.World(model_time, settings=settings or GEMS.RunSettings(print_warnings=False))
        for name in region_names:
            world.add_region(make_region(model_time, name, **region_kwargs))
        return world
    return _make_world
