"""
Run-wide configuration passed down through the model while it is being solved.
"""


class RunSettings:
    """
    Configuration supplied by the run driver.

    Parameters
    ----------
    calibration_enabled : bool, optional
        Whether share weights are scaled toward calibration targets during `calc`. Defaults to True.
    cal_accuracy : float, optional
        Largest relative difference between a calibrated output and its target for that output to
        count as calibrated. Defaults to 0.001.
    print_warnings : bool, optional
        Whether diagnostics are emitted with `warnings.warn`. Has no effect on results.
    verbose : bool, optional
        Whether progress is printed while running.
    """

    def __init__(self, calibration_enabled=True, cal_accuracy=0.001, print_warnings=True,
                 verbose=False):
        self.calibration_enabled = calibration_enabled
        self.cal_accuracy = cal_accuracy
        self.print_warnings = print_warnings
        self.verbose = verbose

    def __repr__(self):
        return (f"RunSettings(calibration_enabled={self.calibration_enabled}, "
                f"cal_accuracy={self.cal_accuracy}, print_warnings={self.print_warnings}, "
                f"verbose={self.verbose})")


class CalcCounter:
    """Counts the number of times the world has been calculated, in total and per period."""

    def __init__(self):
        self.total = 0
        self.period_counts = {}

    def increment(self, period):
        self.total += 1
        self.period_counts[period] = self.period_counts.get(period, 0) + 1

    def get_period_count(self, period):
        return self.period_counts.get(period, 0)
