"""
Score Providers
===============
Thin wrappers exposing trained models through a single predict(table) call.

Model fitting happens upstream; evaluation only needs a suitability score in
[0, 1] for each row of a predictor table.
"""

from typing import Mapping, Optional, Protocol, Sequence, Union

import numpy as np
import pandas as pd


class ScoreProvider(Protocol):
    """Anything with predict(DataFrame) -> [N] scores on a fixed [0, 1] scale."""

    def predict(self, table: pd.DataFrame) -> np.ndarray:
        ...


def cloglog(raw):
    """Complementary log-log link: 1 - exp(-exp(raw))."""
    return 1.0 - np.exp(-np.exp(np.asarray(raw, dtype=float)))


class EstimatorScoreProvider:
    """
    Adapt a fitted scikit-learn style estimator to the ScoreProvider interface.

    Each period has its own predictor columns (e.g. 'bio1_2000'), while a
    model is usually fitted on generic names (e.g. 'bio1'). ``columns`` maps or
    lists the names the estimator expects, in the order it expects them.

    Args:
        estimator: fitted estimator with predict_proba (link='proba') or
                   decision_function (link='cloglog')
        columns: None to pass the table through, a sequence of positional
                 names, or a mapping table column -> estimator feature name
        link: 'proba' or 'cloglog'
    """

    LINKS = ('proba', 'cloglog')

    def __init__(self, estimator, columns: Optional[Union[Sequence[str], Mapping[str, str]]] = None,
                 link: str = 'proba'):
        if link not in self.LINKS:
            raise ValueError(f"Unknown link '{link}', expected one of {self.LINKS}")
        self.estimator = estimator
        self.columns = columns
        self.link = link

    def _features(self, table):
        if self.columns is None:
            return table
        if isinstance(self.columns, Mapping):
            return table.rename(columns=dict(self.columns))[list(self.columns.values())]
        if len(self.columns) != table.shape[1]:
            raise ValueError(
                f"Expected {len(self.columns)} predictor columns, got {table.shape[1]}"
            )
        renamed = table.copy()
        renamed.columns = list(self.columns)
        return renamed

    def predict(self, table):
        X = self._features(table)
        if self.link == 'proba':
            return np.asarray(self.estimator.predict_proba(X))[:, 1]
        return cloglog(np.ravel(self.estimator.decision_function(X)))
