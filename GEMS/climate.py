"""
Climate models which take the emissions of a run as input.
"""
import pandas as pd


class ClimateModel:
    """Interface for a climate model run on the emissions of every region."""

    def set_emissions(self, ghg, region_name, emissions):
        raise NotImplementedError

    def run_model(self):
        raise NotImplementedError

    def get_emissions(self, ghg):
        raise NotImplementedError


class CumulativeClimateModel(ClimateModel):
    """
    Sums emissions across regions and accumulates them over time. Each model year's emissions are
    assumed to occur in every year of that period's timestep.

    Parameters
    ----------
    model_time : GEMS.ModelTime
        The model time of the run.
    """

    def __init__(self, model_time):
        self.model_time = model_time
        self.emissions = {}
        self.global_emissions = {}
        self.cumulative_emissions = {}

    def set_emissions(self, ghg, region_name, emissions):
        self.emissions.setdefault(ghg, {})[region_name] = pd.Series(emissions, dtype=float)

    def run_model(self):
        timesteps = pd.Series([self.model_time.timestep(p) for p in range(self.model_time.max_period)],
                              index=self.model_time.years)
        for ghg, regions in self.emissions.items():
            total = pd.concat(regions.values(), axis=1).sum(axis=1).reindex(timesteps.index,
                                                                            fill_value=0.0)
            self.global_emissions[ghg] = total
            self.cumulative_emissions[ghg] = (total * timesteps).cumsum()

    def get_emissions(self, ghg):
        """Global emissions of `ghg` by year."""
        return self.global_emissions[ghg]

    def get_cumulative_emissions(self, ghg):
        return self.cumulative_emissions[ghg]
