"""
Module containing the Scenario class, which drives a world through every model period.
"""
import logging
import warnings

from .settings import CalcCounter

logger = logging.getLogger(__name__)


class Scenario:
    """
    Runs a world period by period.

    Parameters
    ----------
    world : GEMS.World
        The world to run. `complete_init` is called on it if it hasn't been already.
    model_time : GEMS.ModelTime
        The model time of the run.
    settings : GEMS.RunSettings, optional
        Configuration of the run. Defaults to the world's settings.
    """

    def __init__(self, world, model_time, settings=None):
        self.world = world
        self.model_time = model_time
        if settings is not None:
            self.world.settings = settings
        self.calc_counter = CalcCounter()
        self.world.set_calc_counter(self.calc_counter)
        self.iterations = {}

    @property
    def settings(self):
        return self.world.settings

    def run(self, max_iterations=10, min_iterations=1):
        """
        Runs the entire model, solving each period until every calibrated output has been matched
        (or calibration is turned off), then runs the climate model.

        Parameters
        ----------
        max_iterations : int, optional
            The maximum number of passes per period. If it is reached, a warning is raised and the
            next period begins.
        min_iterations : int, optional
            The minimum number of passes per period.

        Returns
        -------
            Nothing is returned, but the world will be updated with the prices, shares, outputs and
            emissions calculated for each period.
        """
        if self.world.status in ('instantiated', 'parsed'):
            self.world.complete_init()

        for period in range(self.model_time.max_period):
            year = self.model_time.period_to_year(period)
            if self.settings.verbose:
                print(f"***** ***** year: {year} ***** *****")

            self.world.init_calc(period)
            iteration = 1
            while True:
                self.world.calc(period)
                calibrated = not self.settings.calibration_enabled or \
                    self.world.is_all_calibrated(period, self.settings.cal_accuracy, False)
                if self.settings.verbose:
                    print(f"iter {iteration}")
                if calibrated and iteration >= min_iterations:
                    break
                if iteration >= max_iterations:
                    if self.settings.print_warnings:
                        warnings.warn(f"Max iterations reached for year {year}. "
                                      f"Continuing to next year.")
                        self.world.is_all_calibrated(period, self.settings.cal_accuracy, True)
                    break
                iteration += 1

            self.iterations[period] = iteration
            if self.settings.calibration_enabled:
                self.world.check_cal_consistency(period)
            self.world.post_calc(period)
            logger.info("Solved %s in %d iterations", year, iteration)

        self.world.run_climate_model()
