"""
Evaluation Metrics
==================
Discrimination metrics for presence-only model evaluation.

Metrics:
    - AUC (area under the ROC curve, threshold independent)
    - TSS (True Skill Statistic = sensitivity + specificity - 1)
    - Kappa (Cohen's kappa)
    - Sensitivity, specificity, precision, F1 at a threshold

Presences are scored against background cells of the prediction surface
(presence-background, "pbg"): the negative class is every valid cell of the
surface, so the metrics measure how well presences are told apart from
random locations rather than from true absences.
"""

import warnings

import numpy as np
from sklearn.metrics import cohen_kappa_score, confusion_matrix, roc_auc_score

from ecotrends.utils.spatial import point_mask, sample_at

AUC = 'AUC'
TSS = 'TSS'
KAPPA = 'Kappa'
METRICS = (AUC, KAPPA, TSS)
THRESHOLD_METRICS = (KAPPA, TSS)


def normalize_metric(name):
    """Canonical metric name, matched case-insensitively ('kappa' -> 'Kappa')."""
    for metric in METRICS:
        if str(name).lower() == metric.lower():
            return metric
    raise ValueError(f"Unknown metric '{name}', expected a subset of {list(METRICS)}")


def pbg_scores(x, y, values, transform, pbg=True):
    """
    Build presence/background labels and scores from a prediction surface.

    Args:
        x, y: [N] presence coordinates
        values: [H, W] prediction surface (NaN outside the study area)
        transform: Affine geotransform of the surface
        pbg: keep presence cells in the background (presence vs random).
             False drops them (presence vs pseudo-absence).

    Returns:
        y_true: [P + B] labels, 1 for presences then 0 for background cells
        y_score: [P + B] predicted scores
    """
    values = np.asarray(values, dtype=float)
    pres = sample_at(values, transform, x, y)
    n_missing = int(np.isnan(pres).sum())
    if n_missing:
        warnings.warn(
            f"{n_missing} of {len(pres)} presence points fall outside the prediction surface",
            stacklevel=2,
        )
    pres = pres[np.isfinite(pres)]

    background = np.isfinite(values)
    if not pbg:
        background &= ~point_mask(transform, values.shape, x, y)
    bg = values[background]

    y_true = np.concatenate([np.ones(len(pres), dtype=int), np.zeros(len(bg), dtype=int)])
    y_score = np.concatenate([pres, bg])
    return y_true, y_score


def auc(y_true, y_score):
    """ROC AUC, NaN when either class is empty."""
    y_true = np.asarray(y_true)
    if len(np.unique(y_true)) < 2:
        return np.nan
    return float(roc_auc_score(y_true, y_score))


def _confusion_counts(y_true, y_score, thresholds):
    """Vectorised tp, fp, fn, tn for predictions >= each threshold."""
    y_true = np.asarray(y_true)
    y_score = np.asarray(y_score, dtype=float)
    pos = np.sort(y_score[y_true == 1])
    neg = np.sort(y_score[y_true == 0])
    tp = len(pos) - np.searchsorted(pos, thresholds, side='left')
    fp = len(neg) - np.searchsorted(neg, thresholds, side='left')
    fn = len(pos) - tp
    tn = len(neg) - fp
    return tp.astype(float), fp.astype(float), fn.astype(float), tn.astype(float)


def _tss(tp, fp, fn, tn):
    with np.errstate(divide='ignore', invalid='ignore'):
        return tp / (tp + fn) + tn / (tn + fp) - 1.0


def _kappa(tp, fp, fn, tn):
    n = tp + fp + fn + tn
    with np.errstate(divide='ignore', invalid='ignore'):
        observed = (tp + tn) / n
        expected = ((tp + fp) * (tp + fn) + (fn + tn) * (fp + tn)) / n ** 2
        return (observed - expected) / (1.0 - expected)


_METRIC_FUNCS = {TSS: _tss, KAPPA: _kappa}


def candidate_thresholds(y_score, interval=0.01):
    """Evenly spaced thresholds covering [min, max] of the scores, spacing <= interval."""
    if not interval > 0:
        raise ValueError(f"interval must be positive, got {interval}")
    y_score = np.asarray(y_score, dtype=float)
    y_score = y_score[np.isfinite(y_score)]
    if y_score.size == 0:
        return np.zeros(0)
    lo, hi = float(y_score.min()), float(y_score.max())
    if hi == lo:
        return np.array([lo])
    n = int(np.ceil((hi - lo) / interval)) + 1
    return np.linspace(lo, hi, max(n, 2))


def threshold_curve(y_true, y_score, metric, interval=0.01):
    """
    Evaluate a threshold-based metric over candidate thresholds.

    Args:
        y_true: [N] binary labels
        y_score: [N] predicted scores
        metric: 'TSS' or 'Kappa'
        interval: maximum spacing between candidate thresholds

    Returns:
        thresholds, values: [K] arrays
    """
    metric = normalize_metric(metric)
    if metric not in THRESHOLD_METRICS:
        raise ValueError(f"{metric} is not a threshold-based metric")
    thresholds = candidate_thresholds(y_score, interval)
    counts = _confusion_counts(y_true, y_score, thresholds)
    return thresholds, _METRIC_FUNCS[metric](*counts)


def best_threshold(y_true, y_score, metric, interval=0.01):
    """
    Threshold maximising a metric (lowest one on ties).

    Returns NaN when there are no presences or no background.
    """
    y_true = np.asarray(y_true)
    if not ((y_true == 1).any() and (y_true == 0).any()):
        return np.nan
    thresholds, values = threshold_curve(y_true, y_score, metric, interval)
    if thresholds.size == 0 or not np.isfinite(values).any():
        return np.nan
    return float(thresholds[np.nanargmax(values)])


def compute_confusion_metrics(y_true, y_pred_prob, threshold):
    """
    Compute confusion matrix and derived metrics.

    Args:
        y_true: [N] binary labels (0/1)
        y_pred_prob: [N] predicted scores
        threshold: score threshold; predictions >= threshold count as presence

    Returns:
        dict with confusion matrix and metrics, or None if no valid data
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred_prob = np.asarray(y_pred_prob, dtype=float)
    valid = np.isfinite(y_true) & np.isfinite(y_pred_prob)
    y_true = y_true[valid].astype(int)
    y_pred_prob = y_pred_prob[valid]

    if len(y_true) == 0:
        return None

    y_pred_binary = (y_pred_prob >= threshold).astype(int)

    tn, fp, fn, tp = confusion_matrix(y_true, y_pred_binary, labels=[0, 1]).ravel()

    # Sensitivity = true positive rate
    sensitivity = tp / (tp + fn) if (tp + fn) > 0 else np.nan

    # Specificity = true negative rate
    specificity = tn / (tn + fp) if (tn + fp) > 0 else np.nan

    # Precision
    precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0

    # F1 Score
    f1 = 2 * tp / (2 * tp + fp + fn) if (2 * tp + fp + fn) > 0 else 0.0

    # Kappa is undefined when both vectors hold a single identical class
    if len(np.unique(np.concatenate([y_true, y_pred_binary]))) > 1:
        kappa = cohen_kappa_score(y_true, y_pred_binary, labels=[0, 1])
    else:
        kappa = np.nan

    return {
        'threshold': threshold,
        'n_samples': len(y_true),
        'n_presences': int(y_true.sum()),
        'tp': int(tp), 'fp': int(fp), 'tn': int(tn), 'fn': int(fn),
        'sensitivity': float(sensitivity),
        'specificity': float(specificity),
        'tss': float(sensitivity + specificity - 1),
        'kappa': float(kappa),
        'precision': float(precision),
        'f1': float(f1),
        'auc': auc(y_true, y_pred_prob),
    }


def metric_at(y_true, y_score, metric, threshold):
    """Value of a threshold-based metric at a given threshold (NaN if undefined)."""
    metric = normalize_metric(metric)
    if metric not in THRESHOLD_METRICS or not np.isfinite(threshold):
        return np.nan
    result = compute_confusion_metrics(y_true, y_score, threshold)
    if result is None:
        return np.nan
    return result['tss'] if metric == TSS else result['kappa']
