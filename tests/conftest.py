import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
from rasterio.transform import from_origin

from ecotrends.datasets.model_set import ModelSet
from ecotrends.datasets.surfaces import SurfaceStack

PERIODS = ('2000', '2010')
N_SIDE = 10
N_PRESENCES = 20

# 10 x 10 grid of 1-unit cells, north-west corner at (0, 10)
TRANSFORM = from_origin(0, N_SIDE, 1, 1)


class LinearScore:
    """Score = intercept + predictors . weights (columns taken by position)."""

    def __init__(self, weights, intercept=0.5):
        self.weights = np.asarray(weights, dtype=float)
        self.intercept = intercept

    def predict(self, table):
        return self.intercept + table.to_numpy(dtype=float) @ self.weights


class ConstantScore:
    def predict(self, table):
        return np.full(len(table), 0.3)


class FailingScore:
    def predict(self, table):
        raise ValueError("malformed predictor table")


def grid_cells():
    """Row and column index of the sample point placed in every cell."""
    return np.divmod(np.arange(N_SIDE * N_SIDE), N_SIDE)


@pytest.fixture
def observations():
    """One sample point at the centre of every cell; 20 presences, 2 replicate splits."""
    rng = np.random.default_rng(0)
    rows, cols = grid_cells()
    data = pd.DataFrame({'x': cols + 0.5, 'y': N_SIDE - rows - 0.5})

    presence = np.zeros(len(data), dtype=int)
    presence[rng.choice(len(data), N_PRESENCES, replace=False)] = 1
    data['presence'] = presence

    for period in PERIODS:
        data[f'A_{period}'] = rng.uniform(0, 1, len(data))
        data[f'B_{period}'] = rng.uniform(0, 1, len(data))

    pres_idx = np.flatnonzero(presence)
    # replicate 1 withholds the first 5 presences, replicate 2 the last 5
    for rep, held in ((1, pres_idx[:5]), (2, pres_idx[-5:])):
        used = presence.copy()
        used[held] = 0
        data[f'pres_rep{rep}'] = used
    return data


@pytest.fixture
def model_set(observations):
    models = {
        period: {1: LinearScore([0.1, 0.0]), 2: LinearScore([0.05, 0.05])}
        for period in PERIODS
    }
    return ModelSet(models=models, data=observations)


def make_surface(presence, seed):
    """Surface scoring presence cells higher than the rest, float32-exact values."""
    rng = np.random.default_rng(seed)
    rows, cols = grid_cells()
    scores = np.where(presence == 1, rng.uniform(0.4, 1.0, presence.size),
                      rng.uniform(0.0, 0.6, presence.size))
    surface = np.full((N_SIDE, N_SIDE), np.nan)
    surface[rows, cols] = scores
    return surface.astype(np.float32).astype(float)


@pytest.fixture
def surfaces(observations):
    presence = observations['presence'].to_numpy()
    return {
        period: SurfaceStack(
            values=np.stack([make_surface(presence, seed=10 * i + r) for r in (1, 2)]),
            transform=TRANSFORM,
            replicates=(1, 2),
        )
        for i, period in enumerate(PERIODS)
    }
