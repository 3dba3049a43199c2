import numpy as np
import matplotlib.pyplot as plt

from .config import FIGURE_DPI, FIGURE_SIZE, SMOOTHERS


def plot_results(title, daily, columns=None, save_path=None):
    """
    Plot a smoothed NDVI time series:
      - raw NDVI, kept observations green, rejected ones red
      - one line per smoothed column
    """
    if columns is None:
        columns = [f"ndvi_{name}" for name in SMOOTHERS]

    observed = daily[daily["ndvi"].notna()]
    colors = np.where(observed["ndvi_clean"].notna(), "green", "red")

    fig, ax = plt.subplots(figsize=FIGURE_SIZE)

    ax.scatter(observed["date"], observed["ndvi"], s=10, color=colors, label="Raw NDVI", zorder=3)

    for column in columns:
        ax.plot(daily["date"], daily[column], label=column.replace("ndvi_", ""), linewidth=1)

    ax.set_title(title)
    ax.set_ylim(-0.1, 1.0)
    ax.set_xlabel("Date")
    ax.set_ylabel("NDVI")
    ax.legend()
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=FIGURE_DPI, bbox_inches="tight")

    return fig


def plot_doy_overlay(title, daily, column="ndvi_spline", save_path=None):
    # one line per year against day of year
    fig, ax = plt.subplots(figsize=FIGURE_SIZE)

    for year, group in daily.groupby(daily["date"].dt.year):
        ax.plot(group["doy"], group[column], label=str(year))

    ax.set_title(f"{title} ({column.replace('ndvi_', '')})")
    ax.set_ylim(-0.1, 1.0)
    ax.set_xlabel("DOY")
    ax.set_ylabel("NDVI")
    ax.legend()
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=FIGURE_DPI, bbox_inches="tight")

    return fig
