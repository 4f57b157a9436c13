"""
Visualization Helpers
=====================
Plotting functions for temporal model evaluation.

Nothing here feeds back into the computed tables; every helper draws on an
explicit Axes/Figure handed in or returned to the caller.
"""

import re

import numpy as np
import matplotlib.colors as mcolors
import matplotlib.pyplot as plt
import seaborn as sns
from sklearn.metrics import roc_curve

from ecotrends.evaluation.metrics import threshold_curve


def display_variable(variable, period):
    """Strip the trailing period token (and its separator) from a variable name."""
    stripped = re.sub(r'[._\-]?' + re.escape(str(period)) + r'$', '', str(variable))
    return stripped or str(variable)


def _period_label(period):
    if isinstance(period, (float, np.floating)) and float(period).is_integer():
        return str(int(period))
    return str(period)


def line_colours(palette, n):
    """n distinct colours from a palette, interpolated when it holds fewer than n."""
    base = sns.color_palette(palette)
    if n <= len(base):
        return sns.color_palette(palette, n)
    cmap = mcolors.LinearSegmentedColormap.from_list(str(palette), base)
    return [tuple(cmap(x)[:3]) for x in np.linspace(0, 1, n)]


def plot_importance(importance, ax=None, palette="Dark2", labels=None):
    """
    Spaghetti plot of mean variable importance along the periods.

    Args:
        importance: DataFrame from get_importance() (period, variable, mean, ...)
        ax: matplotlib Axes to draw on; a new figure is created if None
        palette: seaborn/matplotlib palette name, or a list of colours
        labels: display name of every row; derived from variable and period if None

    Returns:
        The Axes drawn on
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(9, 5))

    if labels is None:
        labels = [
            display_variable(v, _period_label(p))
            for v, p in zip(importance['variable'], importance['period'])
        ]
    unique_names = list(dict.fromkeys(labels))
    colours = line_colours(palette, len(unique_names))
    names = np.asarray(labels)

    for name, colour in zip(unique_names, colours):
        dat = importance[names == name]
        ax.plot(dat['period'], dat['mean'], color=colour, alpha=0.9)
        ax.annotate(
            name, xy=(dat['period'].iloc[-1], dat['mean'].iloc[-1]),
            xytext=(4, 0), textcoords='offset points',
            ha='left', va='center', fontsize=8, color=colour,
            annotation_clip=False,
        )

    ax.set_xlabel('Period')
    ax.set_ylabel('Mean importance (%)')
    for side in ('top', 'right'):
        ax.spines[side].set_visible(False)
    return ax


def plot_roc(y_true, y_score, ax, title=None, auc_value=None):
    """
    ROC curve of presences against background.

    Args:
        y_true: [N] binary labels
        y_score: [N] predicted scores
        ax: matplotlib Axes
        title: panel title
        auc_value: AUC to print on the panel
    """
    if len(np.unique(y_true)) > 1:
        fpr, tpr, _ = roc_curve(y_true, y_score)
        ax.plot(fpr, tpr, color='#2196F3', linewidth=2)
    ax.plot([0, 1], [0, 1], color='gray', linestyle='--', linewidth=1, alpha=0.6)
    ax.set_xlabel('1 - Specificity')
    ax.set_ylabel('Sensitivity')
    if auc_value is not None and np.isfinite(auc_value):
        ax.text(0.55, 0.05, f"AUC = {auc_value:.3f}")
    if title:
        ax.set_title(title)
    ax.grid(True, alpha=0.3)


def plot_threshold_curve(y_true, y_score, metric, ax, threshold=None, interval=0.01, title=None):
    """
    Metric value against threshold, with the chosen threshold marked.

    Args:
        y_true: [N] binary labels
        y_score: [N] predicted scores
        metric: 'TSS' or 'Kappa'
        ax: matplotlib Axes
        threshold: optimal threshold to mark
        interval: spacing of candidate thresholds
        title: panel title
    """
    thresholds, values = threshold_curve(y_true, y_score, metric, interval)
    ax.scatter(thresholds, values, s=4, color='#4CAF50')
    if threshold is not None and np.isfinite(threshold):
        best = values[np.argmin(np.abs(thresholds - threshold))]
        ax.axvline(threshold, color='black', linestyle='--', alpha=0.5)
        ax.text(0.5, 0.05, f"max{metric} = {best:.3f}", transform=ax.transAxes)
    ax.set_xlabel('Threshold')
    ax.set_ylabel(metric)
    if title:
        ax.set_title(title)
    ax.grid(True, alpha=0.3)


def save_figure(fig, output_path, verbose=True):
    """Save and close a figure."""
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    if verbose:
        print(f"  Saved: {output_path}")
