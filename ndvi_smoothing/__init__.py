from .functions import (
    boxplot_outliers,
    daily_scaffold,
    decimal_year,
    loess_span,
    min_sampling_interval,
    quality_filter,
    read_observations,
    remove_weekly_outliers,
    run_smoothers,
    smooth_linear,
    smooth_loess,
    smooth_savgol,
    smooth_spline,
)
from .pipeline import run, smooth_ndvi_timeseries

__version__ = "0.1.0"
