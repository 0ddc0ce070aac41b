import warnings

import numpy as np
import pandas as pd

from ..errors import ConfigurationError
from ..global_tech_db import GlobalTechnologyDatabase
from ..model_time import ModelTime
from ..region import Region
from ..sector import Sector
from ..subsector import Subsector
from ..technology import Technology
from ..world import World
from ..utils import model_columns as COL
from ..utils import parameters as PARAM
from ..utils.parse import is_year, is_blank


class ModelReader:
    """
    Builds a World from a long-format model description.

    Each row of the description sets one parameter. The Region, Sector, Subsector and Technology
    columns say where the parameter applies (columns to the right of the level are left blank), the
    Context column qualifies the parameter (e.g. which fuel a price is for), and the year columns
    hold its value in each year. Blank years take the value of the previous year.

    Rows with a Region of "global" define technologies shared by every region.

    Parameters
    ----------
    csv_file_paths : list [str], optional
        CSV files holding the model description. They are appended together.
    model_df : pandas.DataFrame, optional
        The model description, used instead of `csv_file_paths`.
    """

    def __init__(self, csv_file_paths=None, model_df=None):
        if model_df is None and not csv_file_paths:
            raise ConfigurationError("A model description (CSV files or a DataFrame) is required.")
        self.csv_files = csv_file_paths or []
        self.model_df = self._get_model_df() if model_df is None else self._clean_model_df(model_df)
        self.year_cols = [c for c in self.model_df.columns if is_year(c)]
        if len(self.year_cols) == 0:
            raise ConfigurationError("The model description has no year columns.")
        self.model_time = ModelTime(sorted(int(y) for y in self.year_cols))

    def _get_model_df(self):
        appended_data = []
        for csv_file in self.csv_files:
            try:
                sheet_df = pd.read_csv(csv_file, dtype=str)
                appended_data.append(sheet_df)
            except ValueError:
                print(f"Warning: Unable to parse csv_path at {csv_file}. Skipping.")

        if not appended_data:
            raise ConfigurationError("None of the model description files could be read.")
        model_df = pd.concat(appended_data, ignore_index=True)
        return self._clean_model_df(model_df)

    @staticmethod
    def _clean_model_df(model_df):
        model_df = model_df.copy()
        model_df.columns = [str(c).strip() for c in model_df.columns]
        missing = [c for c in COL.description_columns if c not in model_df.columns]
        if missing:
            raise ConfigurationError(f"The model description is missing columns {missing}.")

        for col in COL.description_columns:
            model_df[col] = model_df[col].map(lambda v: np.nan if is_blank(v) else str(v).strip())
        model_df = model_df[model_df[COL.region].notna() & model_df[COL.parameter].notna()].copy()
        model_df[COL.parameter] = model_df[COL.parameter].str.lower()

        # Years are sorted so that blank years can be filled from the previous year
        year_cols = sorted((c for c in model_df.columns if is_year(c)), key=int)
        if year_cols:
            model_df[year_cols] = model_df[year_cols].apply(pd.to_numeric, errors='coerce')
        return model_df[COL.description_columns + year_cols].reset_index(drop=True)

    def get_model_time(self):
        return self.model_time

    def _row_values(self, row, explicit=False):
        """
        The (period, value) pairs set by a row. Unless `explicit` is True, blank years take the
        value of the previous year.
        """
        values = row[self.year_cols].astype(float)
        if not explicit:
            values = values.ffill()
        return [(self.model_time.year_to_period(year), float(value))
                for year, value in values.items() if not np.isnan(value)]

    def _first_value(self, row):
        values = self._row_values(row)
        if not values:
            return None
        return values[0][1]

    @staticmethod
    def _context(row, default=None):
        context = row[COL.context]
        return context if isinstance(context, str) else default

    @classmethod
    def _required_context(cls, row):
        context = cls._context(row)
        if context is None:
            raise ConfigurationError(f"Parameter '{row[COL.parameter]}' requires a Context.")
        return context

    @staticmethod
    def _warn_unknown(row, level):
        location = '.'.join(str(row[c]) for c in COL.location_columns if isinstance(row[c], str))
        warnings.warn(f"Unknown {level} parameter '{row[COL.parameter]}' at {location}. Skipping.")

    # ---------------------------------------------------------------------------------------------
    # World
    # ---------------------------------------------------------------------------------------------
    def build_world(self, settings=None, climate_model=None):
        """
        Build the World described by the model description. `complete_init` has not been called on
        the returned world.
        """
        is_global = self.model_df[COL.region].str.lower() == PARAM.global_region
        tech_db = self._build_global_technologies(self.model_df[is_global])

        world = World(self.model_time, settings=settings, climate_model=climate_model,
                      global_tech_db=tech_db)
        for region_name, region_df in self.model_df[~is_global].groupby(COL.region, sort=False):
            world.add_region(self._build_region(region_name, region_df, tech_db))
        return world

    def _build_global_technologies(self, global_df):
        tech_db = GlobalTechnologyDatabase()
        tech_rows = global_df[global_df[COL.sector].notna() & global_df[COL.technology].notna()]
        for (sector_name, tech_name), tech_df in tech_rows.groupby([COL.sector, COL.technology],
                                                                   sort=False):
            template = Technology(tech_name, fuel_name=None)
            for _, row in tech_df.iterrows():
                if row[COL.parameter] == PARAM.fuel:
                    template.fuel_name = self._required_context(row)
                else:
                    value = self._first_value(row)
                    if value is not None:
                        self._set_technology_value(template, row, value)
            tech_db.add_technology(sector_name, template)
        return tech_db

    # ---------------------------------------------------------------------------------------------
    # Region & Sector
    # ---------------------------------------------------------------------------------------------
    def _build_region(self, region_name, region_df, tech_db):
        region = Region(region_name, self.model_time)

        for _, row in region_df[region_df[COL.sector].isna()].iterrows():
            parameter = row[COL.parameter]
            for period, value in self._row_values(row):
                if parameter == PARAM.fuel_price:
                    region.set_fuel_price(self._required_context(row), period, value)
                elif parameter == PARAM.gdp_scale:
                    region.gdp_scale[period] = value
                elif parameter == PARAM.carbon_tax:
                    region.set_carbon_tax(self._context(row, default='CO2'), period, value)
                else:
                    self._warn_unknown(row, 'region')
                    break

        sector_rows = region_df[region_df[COL.sector].notna()]
        for sector_name, sector_df in sector_rows.groupby(COL.sector, sort=False):
            region.add_sector(self._build_sector(region, sector_name, sector_df, tech_db))
        return region

    def _build_sector(self, region, sector_name, sector_df, tech_db):
        sector = Sector(sector_name, region.name, self.model_time)

        for _, row in sector_df[sector_df[COL.subsector].isna()].iterrows():
            parameter = row[COL.parameter]
            if parameter == PARAM.unit:
                sector.unit = self._context(row, default='')
            elif parameter == PARAM.final_demand:
                for period, value in self._row_values(row):
                    region.set_final_demand(sector_name, period, value)
            else:
                self._warn_unknown(row, 'sector')

        subsector_rows = sector_df[sector_df[COL.subsector].notna()]
        for subsector_name, subsector_df in subsector_rows.groupby(COL.subsector, sort=False):
            sector.add_subsector(self._build_subsector(region.name, sector_name, subsector_name,
                                                       subsector_df, tech_db))
        return sector

    # ---------------------------------------------------------------------------------------------
    # Subsector & Technology
    # ---------------------------------------------------------------------------------------------
    def _build_subsector(self, region_name, sector_name, subsector_name, subsector_df, tech_db):
        subsector = Subsector(subsector_name, region_name, sector_name, self.model_time)

        for _, row in subsector_df[subsector_df[COL.technology].isna()].iterrows():
            parameter = row[COL.parameter]
            if parameter == PARAM.unit:
                subsector.unit = self._context(row, default='')
                continue
            if parameter == PARAM.fuel_type:
                subsector.fuel_type = self._context(row, default='')
                continue

            explicit = parameter in PARAM.explicit_year_parameters
            for period, value in self._row_values(row, explicit=explicit):
                if parameter == PARAM.share_weight:
                    subsector.set_share_weight(period, value)
                elif parameter == PARAM.calibrated_output:
                    subsector.set_calibration_output(period, value)
                elif parameter == PARAM.logit_exponent:
                    subsector.logit_exponent[period] = value
                elif parameter == PARAM.capacity_limit:
                    subsector.cap_limit[period] = value
                elif parameter == PARAM.capacity_limit_smoothing:
                    subsector.cap_limit_smoothing = bool(value)
                elif parameter == PARAM.fuel_preference_elasticity:
                    subsector.fuel_pref_elasticity[period] = value
                elif parameter == PARAM.tax:
                    subsector.tax[period] = value
                else:
                    self._warn_unknown(row, 'subsector')
                    break

        tech_rows = subsector_df[subsector_df[COL.technology].notna()]
        for tech_name, tech_df in tech_rows.groupby(COL.technology, sort=False):
            for period, technology in enumerate(
                    self._build_technologies(sector_name, tech_name, tech_df, tech_db)):
                subsector.add_technology(technology, period)
        return subsector

    def _build_technologies(self, sector_name, tech_name, tech_df, tech_db):
        """One Technology for each model period."""
        if (sector_name, tech_name) in tech_db:
            technologies = [tech_db.get_technology(sector_name, tech_name)
                            for _ in range(self.model_time.max_period)]
        else:
            technologies = [Technology(tech_name, fuel_name=None)
                            for _ in range(self.model_time.max_period)]

        for _, row in tech_df.iterrows():
            if row[COL.parameter] == PARAM.fuel:
                for technology in technologies:
                    technology.fuel_name = self._required_context(row)
                continue
            explicit = row[COL.parameter] in PARAM.explicit_year_parameters
            for period, value in self._row_values(row, explicit=explicit):
                if not self._set_technology_value(technologies[period], row, value):
                    break

        for technology in technologies:
            if technology.fuel_name is None:
                raise ConfigurationError(f"Technology {sector_name}.{tech_name} has no fuel.")
        return technologies

    def _set_technology_value(self, technology, row, value):
        parameter = row[COL.parameter]
        if parameter == PARAM.efficiency:
            technology.efficiency = value
        elif parameter == PARAM.non_energy_cost:
            technology.non_energy_cost = value
        elif parameter == PARAM.share_weight:
            technology.share_weight = value
        elif parameter == PARAM.logit_exponent:
            technology.logit_exponent = value
        elif parameter == PARAM.fixed_output:
            technology.fixed_output = value
            technology.fixed_output_base = value
        elif parameter == PARAM.calibrated_output:
            technology.cal_output = value
        elif parameter == PARAM.emission_coefficient:
            technology.emission_coefficients[self._context(row, default='CO2')] = value
        else:
            self._warn_unknown(row, 'technology')
            return False
        return True
