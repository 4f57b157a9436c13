"""
Model Performance
=================
Train/test discrimination of every model replicate of every period.

For each replicate, presences used to fit it (train) and presences withheld
from it (test) are scored against all background cells of its prediction
surface, after masking the surface to the cells holding sample points.
AUC is threshold independent; TSS and Kappa are reported at their optimal
threshold.

Note: the test threshold is optimised on the test presences themselves
rather than carried over from training, so test TSS/Kappa describe the
best achievable discrimination on withheld data, not the performance of the
training threshold.

Usage:
    from ecotrends.evaluation.performance import get_performance
    table = get_performance(surfaces, model_set, metrics=["AUC", "TSS"])
"""

import os

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from ecotrends.datasets.model_set import COORD_COLUMNS, coerce_period
from ecotrends.evaluation.errors import ShapeMismatchError
from ecotrends.evaluation.metrics import (
    AUC, KAPPA, TSS, METRICS, THRESHOLD_METRICS,
    auc, best_threshold, metric_at, normalize_metric, pbg_scores,
)
from ecotrends.evaluation.visualize import plot_roc, plot_threshold_curve, save_figure
from ecotrends.utils.raster_io import load_prediction_surfaces
from ecotrends.utils.spatial import mask_to_points

SPLITS = ('train', 'test')

# Output columns of each metric, in table order
METRIC_COLUMNS = {
    AUC: ('train_AUC', 'test_AUC'),
    KAPPA: ('train_Kappa', 'train_thresh_Kappa', 'test_Kappa', 'test_thresh_Kappa'),
    TSS: ('train_TSS', 'train_thresh_TSS', 'test_TSS', 'test_thresh_TSS'),
}


def _value_column(split, metric):
    return f"{split}_{metric}"


def _threshold_column(split, metric):
    return f"{split}_thresh_{metric}"


def resolve_surfaces(surfaces):
    """Accept a period -> SurfaceStack mapping or a directory of prediction rasters."""
    if isinstance(surfaces, (str, os.PathLike)):
        surfaces = load_prediction_surfaces(os.fspath(surfaces))
    return {str(period): stack for period, stack in surfaces.items()}


def check_inputs(surfaces, model_set):
    """
    Validate that surfaces and models describe the same periods and replicates.

    Stacks without replicate ids adopt the model set's ids in ascending order.

    Returns:
        dict period -> SurfaceStack with explicit replicate ids, in model-set order

    Raises:
        ShapeMismatchError
    """
    model_periods = model_set.periods
    if set(surfaces) != set(model_periods):
        raise ShapeMismatchError(
            f"Prediction periods {sorted(surfaces)} do not match model periods {sorted(model_periods)}"
        )

    checked = {}
    for period in model_periods:
        stack = surfaces[period]
        replicates = tuple(model_set.replicates(period))
        if stack.n_layers != len(replicates):
            raise ShapeMismatchError(
                f"Period {period}: {stack.n_layers} prediction layers for {len(replicates)} replicate models"
            )
        if stack.replicates is None:
            stack = stack.with_replicates(replicates)
        elif set(stack.replicates) != set(replicates):
            raise ShapeMismatchError(
                f"Period {period}: prediction replicates {stack.replicates} do not match "
                f"model replicates {replicates}"
            )
        checked[period] = stack
    return checked


def _score_split(points, layer, transform, metrics, interval, pbg):
    """Metric values and optimal thresholds for one set of presence points."""
    y_true, y_score = pbg_scores(points['x'].to_numpy(), points['y'].to_numpy(),
                                 layer, transform, pbg=pbg)
    result = {}
    if AUC in metrics:
        result[AUC] = auc(y_true, y_score)
    for metric in THRESHOLD_METRICS:
        if metric in metrics:
            threshold = best_threshold(y_true, y_score, metric, interval)
            result[metric] = metric_at(y_true, y_score, metric, threshold)
            result[f"thresh_{metric}"] = threshold
    return result, (y_true, y_score)


def _plot_split(scores, result, metrics, interval, title):
    y_true, y_score = scores
    fig, axes = plt.subplots(1, len(metrics), figsize=(4.5 * len(metrics), 4), squeeze=False)
    for ax, metric in zip(axes[0], metrics):
        if metric == AUC:
            plot_roc(y_true, y_score, ax, title=f"{title} AUC", auc_value=result[AUC])
        else:
            plot_threshold_curve(y_true, y_score, metric, ax, threshold=result[f"thresh_{metric}"],
                                 interval=interval, title=f"{title} {metric}")
    return fig


def get_performance(surfaces, model_set, metrics=METRICS, plot=False, verbosity=2,
                    interval=0.01, pbg=True, plot_dir=None, figures=None):
    """
    Evaluate every model replicate of every period on train and test presences.

    Args:
        surfaces: period -> SurfaceStack mapping, or a directory of prediction rasters
        model_set: ModelSet (observation table with presences and pres_rep<id> flags)
        metrics: any subset of 'AUC', 'TSS', 'Kappa' (case-insensitive)
        plot: draw ROC and threshold-optimisation diagnostics (slow on large grids)
        verbosity: 0 silent, 1 minimal, 2 per-period progress
        interval: spacing of candidate thresholds
        pbg: compare presences against all background cells, presence cells included
        plot_dir: folder to save diagnostic figures into (figures are then closed)
        figures: list receiving the open diagnostic figures when plot_dir is None;
                 with neither, figures are closed once drawn

    Returns:
        DataFrame with one row per (period, replicate): period, replicate,
        train_presence_count, test_presence_count, and per metric train/test
        values and thresholds. Test fields are NaN when nothing was withheld.
    """
    metrics = sorted({normalize_metric(m) for m in metrics})
    if not metrics:
        raise ValueError("At least one metric must be requested")
    if not interval > 0:
        raise ValueError(f"interval must be positive, got {interval}")

    stacks = check_inputs(resolve_surfaces(surfaces), model_set)
    if plot and plot_dir is not None:
        os.makedirs(plot_dir, exist_ok=True)

    data = model_set.data
    bg_x = data[COORD_COLUMNS[0]].to_numpy()
    bg_y = data[COORD_COLUMNS[1]].to_numpy()
    n_periods = len(stacks)

    if verbosity > 0:
        print(f"Evaluating {', '.join(metrics)} for {n_periods} periods...")

    rows = []
    for y, (period, stack) in enumerate(stacks.items(), start=1):
        replicates = model_set.replicates(period)

        if verbosity > 1:
            suffix = " (with replicates)" if len(replicates) > 1 else ""
            print(f"evaluating period {y} of {n_periods}{suffix}: {period}")

        masked = mask_to_points(stack, bg_x, bg_y)

        for rep in replicates:
            split = model_set.split_presences(rep)
            layer = masked.layer(rep)
            row = {
                'period': period,
                'replicate': rep,
                'train_presence_count': len(split['train']),
                'test_presence_count': len(split['test']),
            }
            for column in (c for m in metrics for c in METRIC_COLUMNS[m]):
                row[column] = np.nan

            for name in SPLITS:
                points = split[name]
                if name == 'test' and len(points) == 0:
                    continue
                result, scores = _score_split(points, layer, masked.transform,
                                              metrics, interval, pbg)
                for metric in metrics:
                    row[_value_column(name, metric)] = result[metric]
                    if metric in THRESHOLD_METRICS:
                        row[_threshold_column(name, metric)] = result[f"thresh_{metric}"]

                if plot:
                    fig = _plot_split(scores, result, metrics, interval,
                                      title=f"{period}_rep{rep}_{name}")
                    if plot_dir is not None:
                        save_figure(fig, os.path.join(plot_dir, f"{period}_rep{rep}_{name}.png"),
                                    verbose=verbosity > 0)
                    elif figures is not None:
                        figures.append(fig)
                    else:
                        plt.close(fig)

            rows.append(row)

    columns = ['period', 'replicate', 'train_presence_count', 'test_presence_count']
    columns += [c for m in metrics for c in METRIC_COLUMNS[m]]
    out = pd.DataFrame(rows, columns=columns)

    out['period'] = coerce_period(out['period'])

    if verbosity > 0:
        print(f"Done: {len(out)} period-replicate rows.")

    return out
