import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from ndvi_smoothing.functions import decimal_year


def make_observations(start="2020-01-05", end="2021-12-20", step_days=3, seed=42):
    dates = pd.date_range(start, end, freq=f"{step_days}D")
    rng = np.random.default_rng(seed)

    t = dates.dayofyear.to_numpy() / 365.0
    ndvi = 0.5 + 0.3 * np.sin(2 * np.pi * (t - 0.25)) + rng.normal(0, 0.02, len(dates))
    cp = np.zeros(len(dates))
    cp[::7] = 0.6

    # a few cloud-shadow dips that slipped past the cloud mask
    ndvi[10] = 0.05
    ndvi[130] = 0.02

    return pd.DataFrame({"date": dates, "decimal_year": decimal_year(dates), "ndvi": ndvi, "cp": cp})


@pytest.fixture
def observations():
    return make_observations()


@pytest.fixture
def observations_csv(tmp_path, observations):
    path = tmp_path / "pixel.csv"
    df = pd.DataFrame({
        "timestamp": observations["date"].dt.strftime("%d-%m-%Y"),
        "ndvi": observations["ndvi"],
        "cp": observations["cp"],
    })
    df.to_csv(path, index=False)
    return path
