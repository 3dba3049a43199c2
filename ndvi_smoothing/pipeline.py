# python -m ndvi_smoothing.pipeline observations.csv figures/

import os
import sys

import matplotlib.pyplot as plt

from .config import CLOUD_COLUMN, NDVI_COLUMN, SMOOTHERS
from .functions import (
    daily_scaffold,
    decimal_year,
    min_sampling_interval,
    quality_filter,
    read_observations,
    remove_weekly_outliers,
    run_smoothers,
)
from .plotting import plot_doy_overlay, plot_results


def smooth_ndvi_timeseries(observations, by_year=False):
    """
    Clean and smooth one pixel's NDVI observations onto a daily grid.

    Steps:
      1. Quality filter on cloud probability.
      2. Per-week box-plot outlier removal.
      3. Daily scaffold over the full years of the input.
      4. Join raw and cleaned values into the scaffold.
      5. Savitzky-Golay, spline, LOESS and linear smoothers.

    Returns one row per calendar day with the raw ndvi/cp (first record of
    the day), ndvi_clean (mean of the day's cleaned records) and one
    ndvi_<smoother> column per smoother.
    """
    if observations is None or len(observations) == 0:
        raise RuntimeError("No observations to smooth")

    observations = observations.copy()
    observations["date"] = observations["date"].astype("datetime64[ns]")
    if "decimal_year" not in observations.columns:
        observations["decimal_year"] = decimal_year(observations["date"])

    # --- quality filter ---
    flagged = quality_filter(observations)
    n_good = int((flagged["quality"] == "good").sum())
    print(f"{n_good} of {len(flagged)} observations passed the quality filter", flush=True)

    # --- weekly outliers ---
    cleaned = remove_weekly_outliers(flagged, by_year=by_year)
    n_valid = int(flagged["ndvi_clean"].notna().sum())
    print(f"{n_valid - len(cleaned)} weekly outliers removed", flush=True)

    if len(cleaned) == 0:
        raise RuntimeError("No valid observations left after quality and outlier filtering")

    # --- daily scaffold ---
    years = observations["date"].dt.year
    daily = daily_scaffold(years.min(), years.max())
    min_interval = min_sampling_interval(daily["decimal_year"])

    raw = observations.drop_duplicates("date")[["date", NDVI_COLUMN, CLOUD_COLUMN]]
    clean = cleaned.groupby("date", as_index=False)["ndvi_clean"].mean()
    daily = daily.merge(raw, on="date", how="left").merge(clean, on="date", how="left")

    # --- smoothing ---
    smoothed = run_smoothers(cleaned, daily, min_interval)
    for name in SMOOTHERS:
        daily[f"ndvi_{name}"] = smoothed[name]

    return daily


def run(path, figures_dir=None):
    observations = read_observations(path)
    daily = smooth_ndvi_timeseries(observations)

    if figures_dir:
        os.makedirs(figures_dir, exist_ok=True)
        name = os.path.splitext(os.path.basename(path))[0]

        fig = plot_results(name, daily, save_path=os.path.join(figures_dir, f"{name}_smoothed.png"))
        plt.close(fig)
        fig = plot_doy_overlay(name, daily, save_path=os.path.join(figures_dir, f"{name}_doy.png"))
        plt.close(fig)
        print(f"Figures saved to {figures_dir}", flush=True)

    return daily


if __name__ == "__main__":
    if len(sys.argv) < 2:
        sys.exit("usage: python -m ndvi_smoothing.pipeline <observations.csv> [figures_dir]")
    run(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)
    print("done")
