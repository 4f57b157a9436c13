"""
Permutation Importance
======================
Contribution of each predictor to model output, per period and replicate.

Each variable is shuffled in turn (a given number of times) and the
root-mean-square difference between the original predictions and those
obtained with the shuffled variable is averaged. Values are then expressed
as a percentage of the sum over all variables of the model.

Usage:
    from ecotrends.evaluation.importance import get_importance
    table = get_importance(model_set, n_permutations=10, plot=True)
"""

import numpy as np
import pandas as pd

from ecotrends.datasets.model_set import coerce_period, replicate_label
from ecotrends.evaluation.errors import DegenerateImportanceError
from ecotrends.evaluation.visualize import display_variable, plot_importance
from ecotrends.utils.seed import make_rng


def _rmse(a, b):
    return float(np.sqrt(np.mean((a - b) ** 2)))


def _predict(model, table):
    return np.asarray(model.predict(table), dtype=float).ravel()


def compute_importance(model, predictors, n_permutations=10, rng=None):
    """
    Normalised permutation importance of every predictor of one model.

    Args:
        model: ScoreProvider (predict(DataFrame) -> scores)
        predictors: DataFrame of predictor values, one column per variable
        n_permutations: shuffles per variable, averaged
        rng: numpy Generator, int seed or None

    Returns:
        pd.Series variable -> importance (%), in column order, summing to 100

    Raises:
        DegenerateImportanceError: if no variable changes the predictions
    """
    if predictors.shape[0] < 1 or predictors.shape[1] < 1:
        raise ValueError(f"Predictor table must have at least one row and column, got {predictors.shape}")
    if int(n_permutations) < 1:
        raise ValueError(f"n_permutations must be >= 1, got {n_permutations}")
    rng = make_rng(rng)

    baseline = _predict(model, predictors)
    raw = np.zeros(predictors.shape[1])

    for v, column in enumerate(predictors.columns):
        original = predictors[column].to_numpy()
        scores = np.zeros(int(n_permutations))
        for p in range(int(n_permutations)):
            permuted = predictors.copy()
            permuted[column] = rng.permutation(original)
            scores[p] = _rmse(baseline, _predict(model, permuted))
        raw[v] = scores.mean()

    total = raw.sum()
    if not total > 0:
        raise DegenerateImportanceError(
            "Permutation importances sum to zero; predictions do not depend on any variable"
        )

    return pd.Series(raw / total * 100, index=list(predictors.columns), name='importance')


def get_importance(model_set, n_permutations=10, verbosity=2, plot=False, palette="Dark2",
                   ax=None, rng=None):
    """
    Permutation importance of each variable in each model replicate of each period.

    Args:
        model_set: ModelSet
        n_permutations: shuffles per variable (more = more accurate, slower)
        verbosity: 0 silent, 1 minimal, 2 per-period progress
        plot: draw mean importance along the periods (see plot_importance)
        palette: colour palette for the plot
        ax: Axes to draw on when plot=True
        rng: numpy Generator, int seed or None; one stream feeds all models

    Returns:
        DataFrame with columns period, variable, rep<id>..., mean, sd.
        sd is NaN when a period has a single replicate.
    """
    rng = make_rng(rng)
    periods = model_set.periods
    n_periods = len(periods)

    if verbosity > 0:
        print(f"Computing permutation importance ({n_permutations} permutations) "
              f"for {n_periods} periods...")

    blocks = []
    for y, period in enumerate(periods, start=1):
        replicates = model_set.replicates(period)

        if verbosity > 1:
            suffix = " (with replicates)" if len(replicates) > 1 else ""
            print(f"computing period {y} of {n_periods}{suffix}: {period}")

        dat = model_set.predictors(period)
        columns = {}
        for rep in replicates:
            try:
                columns[replicate_label(rep)] = compute_importance(
                    model_set.models[period][rep], dat, n_permutations=n_permutations, rng=rng
                )
            except DegenerateImportanceError as err:
                raise DegenerateImportanceError(
                    "Permutation importances sum to zero", period=period, replicate=rep
                ) from err

        block = pd.DataFrame(columns).sort_index()
        block.index.name = 'variable'
        block.insert(0, 'period', period)
        blocks.append(block.reset_index())

    varimps = pd.concat(blocks, ignore_index=True)
    rep_cols = sorted((c for c in varimps.columns if c not in ('period', 'variable')),
                      key=lambda c: int(c[len('rep'):]))
    varimps['mean'] = varimps[rep_cols].mean(axis=1)
    varimps['sd'] = varimps[rep_cols].std(axis=1, ddof=1)
    varimps = varimps[['period', 'variable'] + rep_cols + ['mean', 'sd']].copy()
    # display names come from the string labels, before "01" turns into 1
    labels = [display_variable(v, p) for v, p in zip(varimps['variable'], varimps['period'])]
    varimps['period'] = coerce_period(varimps['period'])

    if plot:
        plot_importance(varimps, ax=ax, palette=palette, labels=labels)

    if verbosity > 0:
        print(f"Done: {len(varimps)} period-variable rows.")

    return varimps
