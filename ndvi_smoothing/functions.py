import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy.interpolate import UnivariateSpline
from scipy.signal import savgol_filter

from .config import (
    CLOUD_COLUMN,
    CLOUD_THRESHOLD,
    IQR_COEF,
    LOESS_MIN_POINTS,
    LOESS_WINDOW_DAYS,
    NDVI_COLUMN,
    SAVGOL_POLYORDER,
    SAVGOL_WINDOW,
    SMOOTHERS,
    SPLINE_DEGREE,
    SPLINE_SMOOTHING,
    TIMESTAMP_COLUMN,
)


def decimal_year(dates):
    # day 1 of the year maps to year + 0, leap years are divided by 366
    dates = pd.DatetimeIndex(dates)
    days_in_year = np.where(dates.is_leap_year, 366.0, 365.0)
    return np.asarray(dates.year, dtype=float) + (np.asarray(dates.dayofyear, dtype=float) - 1) / days_in_year


def read_observations(path):
    """
    Read NDVI observations (timestamp, ndvi, cp) from a csv file.

    Timestamps are day-first (e.g. 15-03-2020). Malformed ndvi or cp values
    become NaN, the quality filter later classifies those records as bad.
    """
    try:
        df = pd.read_csv(path)
    except pd.errors.EmptyDataError as e:
        raise RuntimeError(f"No observations in {path}") from e

    missing = [c for c in (TIMESTAMP_COLUMN, NDVI_COLUMN, CLOUD_COLUMN) if c not in df.columns]
    if missing:
        raise ValueError(f"{path} is missing required columns: {', '.join(missing)}")

    if len(df) == 0:
        raise RuntimeError(f"No observations in {path}")

    try:
        dates = pd.to_datetime(df[TIMESTAMP_COLUMN], dayfirst=True)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse '{TIMESTAMP_COLUMN}' in {path}: {e}") from e

    observations = pd.DataFrame({
        "date": dates.dt.normalize(),
        NDVI_COLUMN: pd.to_numeric(df[NDVI_COLUMN], errors="coerce"),
        CLOUD_COLUMN: pd.to_numeric(df[CLOUD_COLUMN], errors="coerce"),
    })
    observations.insert(1, "decimal_year", decimal_year(observations["date"]))

    return observations


def quality_filter(df, threshold=CLOUD_THRESHOLD):
    """
    Flag every observation as "good" (cloud probability below threshold) or
    "bad", and copy the ndvi of good observations into ndvi_clean.
    """
    out = df.copy()
    cp = pd.to_numeric(out[CLOUD_COLUMN], errors="coerce")
    ndvi = pd.to_numeric(out[NDVI_COLUMN], errors="coerce")

    # NaN < threshold is False, so a missing cp is bad
    good = (cp < threshold) & ndvi.notna()

    out["quality"] = np.where(good, "good", "bad")
    out["ndvi_clean"] = ndvi.where(good)
    return out


def boxplot_outliers(values, coef=IQR_COEF):
    values = np.asarray(values, dtype=float)
    is_outlier = np.zeros(values.shape, dtype=bool)

    valid = np.isfinite(values)
    if not valid.any():
        return is_outlier

    q1, q3 = np.quantile(values[valid], [0.25, 0.75])
    iqr = q3 - q1
    is_outlier[valid] = (values[valid] < q1 - coef * iqr) | (values[valid] > q3 + coef * iqr)
    return is_outlier


def remove_weekly_outliers(df, coef=IQR_COEF, by_year=False):
    """
    Remove box-plot outliers from ndvi_clean, bucketed by ISO week.

    Steps:
      1. Annotate each record with its ISO week number.
      2. Per week bucket, null the values beyond coef * IQR from the
         nearest quartile of the bucket's non-null values.
      3. Drop records without a value and sort by decimal year.

    Buckets are keyed by week number only, so week 1 of every year lands in
    the same bucket. by_year=True keys them by (ISO year, week) instead.
    """
    out = df.copy()
    iso = out["date"].dt.isocalendar()
    out["week"] = iso["week"].astype(int)

    keys = [iso["year"].astype(int), out["week"]] if by_year else [out["week"]]

    ndvi = out["ndvi_clean"].to_numpy(dtype=float)
    is_outlier = np.zeros(len(out), dtype=bool)
    for _, idx in out.groupby(keys, sort=True).indices.items():
        is_outlier[idx] = boxplot_outliers(ndvi[idx], coef)

    out["outlier"] = is_outlier
    out.loc[is_outlier, "ndvi_clean"] = np.nan

    cleaned = out[out["ndvi_clean"].notna()]
    return cleaned.sort_values("decimal_year", kind="mergesort").reset_index(drop=True)


def daily_scaffold(start_year, end_year):
    if end_year < start_year:
        raise ValueError(f"end_year ({end_year}) is before start_year ({start_year})")

    dates = pd.date_range(
        pd.Timestamp(year=int(start_year), month=1, day=1),
        pd.Timestamp(year=int(end_year), month=12, day=31),
        freq="D",
    )
    return pd.DataFrame({
        "date": dates,
        "decimal_year": decimal_year(dates),
        "doy": np.asarray(dates.dayofyear),
    })


def min_sampling_interval(decimal_years):
    steps = np.diff(np.asarray(decimal_years, dtype=float))
    steps = steps[steps > 0]
    if steps.size == 0:
        raise ValueError("At least two distinct dates are needed for a sampling interval")
    return float(steps.min())


def loess_span(sample_years, min_interval, window=LOESS_WINDOW_DAYS, min_points=LOESS_MIN_POINTS):
    # fraction of the sampled time range covered by `window` sampling intervals,
    # widened so the neighbourhood holds at least `min_points` samples
    sample_years = np.asarray(sample_years, dtype=float)
    if sample_years.size == 0:
        return 1.0
    time_range = sample_years.max() - sample_years.min()
    if time_range <= 0:
        return 1.0
    span = max(window * min_interval / time_range, min_points / sample_years.size)
    return float(min(span, 1.0))


def _inside(x, x_daily):
    return (x_daily >= x.min()) & (x_daily <= x.max())


# --------------------
#  smoothers
# --------------------
# every smoother takes the cleaned samples (x sorted ascending) and returns
# one value per daily decimal year

def smooth_savgol(x, y, x_daily, window_length=SAVGOL_WINDOW, polyorder=SAVGOL_POLYORDER):
    # filter runs on the sample index, not on elapsed time
    smoothed = savgol_filter(y, window_length=window_length, polyorder=polyorder)
    return np.interp(x_daily, x, smoothed, left=np.nan, right=np.nan)


def smooth_spline(x, y, x_daily, s=SPLINE_SMOOTHING, k=SPLINE_DEGREE):
    # evaluated everywhere, including outside the sampled range
    if len(x) <= k:
        raise ValueError(f"a degree {k} spline needs more than {k} samples, got {len(x)}")
    spline = UnivariateSpline(x, y, k=k, s=s)
    return spline(x_daily)


def smooth_loess(x, y, x_daily, frac):
    smoothed = np.full(x_daily.shape, np.nan)
    inside = _inside(x, x_daily)
    if inside.any():
        smoothed[inside] = sm.nonparametric.lowess(
            y, x, frac=frac, it=0, delta=0.0, xvals=x_daily[inside], is_sorted=True
        )
        if not np.isfinite(smoothed[inside]).any():
            raise ValueError(f"lowess returned no values (frac={frac:.3f}, {len(x)} samples)")
    return smoothed


def smooth_linear(x, y, x_daily):
    return np.interp(x_daily, x, y, left=np.nan, right=np.nan)


def run_smoothers(cleaned, scaffold, min_interval=None):
    """
    Fit every smoother on the cleaned samples and evaluate it on the
    scaffold's decimal years.

    A smoother that fails only loses its own output: its column is all NaN
    and a warning is printed, the others still run.
    """
    x = cleaned["decimal_year"].to_numpy(dtype=float)
    y = cleaned["ndvi_clean"].to_numpy(dtype=float)
    x_daily = scaffold["decimal_year"].to_numpy(dtype=float)

    if min_interval is None:
        min_interval = min_sampling_interval(x_daily)
    frac = loess_span(x, min_interval)

    smoothers = {
        "savgol": smooth_savgol,
        "spline": smooth_spline,
        "loess": lambda x, y, x_daily: smooth_loess(x, y, x_daily, frac),
        "linear": smooth_linear,
    }

    results = {}
    for name in SMOOTHERS:
        try:
            if x.size == 0:
                raise ValueError("no cleaned samples")
            results[name] = np.asarray(smoothers[name](x, y, x_daily), dtype=float)
        except Exception as e:
            print(f"Warning: {name} smoother produced no output ({e})", flush=True)
            results[name] = np.full(x_daily.shape, np.nan)

    return results
