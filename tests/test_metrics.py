import numpy as np
import pytest

from ecotrends.evaluation.metrics import (
    auc, best_threshold, candidate_thresholds, compute_confusion_metrics,
    metric_at, normalize_metric, pbg_scores, threshold_curve,
)

from conftest import TRANSFORM


def test_confusion_metrics_by_hand():
    y_true = np.array([1, 1, 1, 1, 0, 0, 0, 0, 0, 0])
    y_score = np.array([0.9, 0.8, 0.7, 0.2, 0.75, 0.3, 0.2, 0.1, 0.1, 0.05])

    m = compute_confusion_metrics(y_true, y_score, threshold=0.5)

    # tp=3 fn=1 fp=1 tn=5
    assert (m['tp'], m['fn'], m['fp'], m['tn']) == (3, 1, 1, 5)
    assert m['sensitivity'] == pytest.approx(0.75)
    assert m['specificity'] == pytest.approx(5 / 6)
    assert m['tss'] == pytest.approx(0.75 + 5 / 6 - 1)
    po = 8 / 10
    pe = (4 * 4 + 6 * 6) / 100
    assert m['kappa'] == pytest.approx((po - pe) / (1 - pe))


def test_confusion_metrics_drops_invalid_values():
    m = compute_confusion_metrics([1, 0, np.nan], [0.9, np.nan, 0.1], threshold=0.5)

    assert m['n_samples'] == 1
    assert compute_confusion_metrics([np.nan], [0.5], threshold=0.5) is None


def test_auc_perfect_and_undefined():
    assert auc([1, 1, 0, 0], [0.9, 0.8, 0.2, 0.1]) == pytest.approx(1.0)
    assert np.isnan(auc([0, 0, 0], [0.9, 0.8, 0.2]))


@pytest.mark.parametrize("metric", ["TSS", "Kappa"])
def test_best_threshold_separates_perfectly(metric):
    y_true = np.array([1, 1, 1, 0, 0, 0, 0])
    y_score = np.array([0.9, 0.85, 0.8, 0.4, 0.3, 0.2, 0.1])

    threshold = best_threshold(y_true, y_score, metric, interval=0.01)

    assert 0.4 < threshold <= 0.8
    assert metric_at(y_true, y_score, metric, threshold) == pytest.approx(1.0)


@pytest.mark.parametrize("metric", ["TSS", "Kappa"])
def test_metric_at_best_threshold_is_curve_maximum(metric):
    rng = np.random.default_rng(3)
    y_true = np.r_[np.ones(30, dtype=int), np.zeros(200, dtype=int)]
    y_score = np.r_[rng.uniform(0.3, 1.0, 30), rng.uniform(0.0, 0.7, 200)]

    thresholds, values = threshold_curve(y_true, y_score, metric, interval=0.01)
    threshold = best_threshold(y_true, y_score, metric, interval=0.01)

    assert y_score.min() <= threshold <= y_score.max()
    assert metric_at(y_true, y_score, metric, threshold) == pytest.approx(np.nanmax(values))


def test_best_threshold_without_presences_is_nan():
    assert np.isnan(best_threshold([0, 0, 0], [0.1, 0.2, 0.3], 'TSS'))
    assert np.isnan(metric_at([0, 0, 0], [0.1, 0.2, 0.3], 'TSS', np.nan))


def test_candidate_thresholds_cover_score_range():
    scores = np.array([0.23, 0.5, 0.871, np.nan])

    thresholds = candidate_thresholds(scores, interval=0.01)

    assert thresholds[0] == pytest.approx(0.23)
    assert thresholds[-1] == pytest.approx(0.871)
    assert np.diff(thresholds).max() <= 0.01 + 1e-12
    np.testing.assert_array_equal(candidate_thresholds([0.4, 0.4]), [0.4])


def test_normalize_metric():
    assert normalize_metric('kappa') == 'Kappa'
    assert normalize_metric('auc') == 'AUC'
    with pytest.raises(ValueError):
        normalize_metric('F1')
    with pytest.raises(ValueError):
        threshold_curve([1, 0], [0.6, 0.1], 'AUC')


def test_pbg_scores_keep_presence_cells_in_background():
    values = np.full((10, 10), np.nan)
    values[0, :4] = [0.9, 0.8, 0.1, 0.2]
    x = np.array([0.5, 1.5])
    y = np.array([9.5, 9.5])

    y_true, y_score = pbg_scores(x, y, values, TRANSFORM, pbg=True)
    assert y_true.tolist() == [1, 1, 0, 0, 0, 0]
    assert y_score.tolist() == [0.9, 0.8, 0.9, 0.8, 0.1, 0.2]

    y_true, y_score = pbg_scores(x, y, values, TRANSFORM, pbg=False)
    assert y_true.tolist() == [1, 1, 0, 0]
    assert y_score.tolist() == [0.9, 0.8, 0.1, 0.2]


def test_pbg_scores_warn_on_points_off_surface():
    values = np.full((10, 10), 0.5)

    with pytest.warns(UserWarning, match="outside"):
        y_true, _ = pbg_scores(np.array([0.5, 50.0]), np.array([9.5, 9.5]), values, TRANSFORM)

    assert y_true.sum() == 1


def test_candidate_thresholds_need_positive_interval():
    with pytest.raises(ValueError):
        candidate_thresholds([0.1, 0.9], interval=0)
