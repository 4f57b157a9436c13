"""
Model Set
=========
Trained models of every period and replicate, plus the shared observation table.

The observation table has one row per sample point (presences and background):
    x, y          - coordinates, in the CRS of the prediction surfaces
    presence      - 1 for presence records, 0 for background points
    pres_rep<id>  - optional, 1 for presences used to fit replicate <id>
    <var>_<period> - predictor values of each period

Which predictor columns belong to which period is resolved once, when the
ModelSet is built, and never looked up by name pattern afterwards.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import pandas as pd

from ecotrends.evaluation.errors import ShapeMismatchError

COORD_COLUMNS = ('x', 'y')
PRESENCE_COLUMN = 'presence'
REPLICATE_PREFIX = 'pres_rep'


def replicate_label(replicate):
    """Name used for a replicate in output tables, e.g. 'rep1'."""
    return f"rep{int(replicate)}"


def presence_column_name(replicate):
    """Observation-table column flagging the presences used by a replicate."""
    return f"{REPLICATE_PREFIX}{int(replicate)}"


def match_predictor_columns(columns, period):
    """
    Select the predictor columns of one period by substring match on its label.

    Coordinate, presence and replicate-flag columns are never predictors.
    """
    reserved = set(COORD_COLUMNS) | {PRESENCE_COLUMN}
    return [
        c for c in columns
        if str(period) in str(c) and c not in reserved and not str(c).startswith(REPLICATE_PREFIX)
    ]


@dataclass(frozen=True, eq=False)
class ModelSet:
    """
    Attributes:
        models: period -> {replicate id -> ScoreProvider}, periods in processing order
        data: shared observation table (read-only)
        predictor_columns: period -> ordered predictor column names
    """
    models: Mapping[str, Mapping[int, object]]
    data: pd.DataFrame
    predictor_columns: Mapping[str, List[str]] = field(default=None)

    def __post_init__(self):
        models = {}
        for period, reps in self.models.items():
            if not reps:
                raise ShapeMismatchError(f"Period {period} has no replicate models")
            models[str(period)] = {int(r): reps[r] for r in sorted(reps, key=int)}
        if not models:
            raise ShapeMismatchError("Model set has no periods")
        object.__setattr__(self, 'models', models)

        missing = [c for c in (*COORD_COLUMNS, PRESENCE_COLUMN) if c not in self.data.columns]
        if missing:
            raise ShapeMismatchError(f"Observation table lacks required columns: {missing}")

        if self.predictor_columns is None:
            schema = {p: match_predictor_columns(self.data.columns, p) for p in models}
        else:
            schema = {str(p): list(cols) for p, cols in self.predictor_columns.items()}

        for period in models:
            cols = schema.get(period)
            if not cols:
                raise ShapeMismatchError(f"No predictor columns for period {period}")
            absent = [c for c in cols if c not in self.data.columns]
            if absent:
                raise ShapeMismatchError(
                    f"Predictor columns of period {period} missing from observation table: {absent}"
                )
        object.__setattr__(self, 'predictor_columns', {p: schema[p] for p in models})

    @property
    def periods(self):
        return list(self.models)

    def replicates(self, period) -> List[int]:
        """Replicate ids of a period, ascending."""
        return list(self.models[str(period)])

    def predictors(self, period) -> pd.DataFrame:
        """Predictor table of one period (a copy, columns in schema order)."""
        return self.data[self.predictor_columns[str(period)]].copy()

    def presence_column(self, replicate) -> Optional[str]:
        """Column flagging the presences used by a replicate, or None if absent."""
        name = presence_column_name(replicate)
        return name if name in self.data.columns else None

    def split_presences(self, replicate) -> Dict[str, pd.DataFrame]:
        """
        Partition presence records into those used to fit a replicate and those withheld.

        Without a pres_rep<id> column every presence counts as used.

        Returns:
            dict with 'train' and 'test' coordinate DataFrames (columns x, y)
        """
        data = self.data
        is_pres = data[PRESENCE_COLUMN] == 1
        column = self.presence_column(replicate)
        used = data[column] if column is not None else data[PRESENCE_COLUMN]
        train = data.loc[is_pres & (used == 1), list(COORD_COLUMNS)]
        test = data.loc[is_pres & (used == 0), list(COORD_COLUMNS)]
        return {'train': train, 'test': test}


def coerce_period(labels):
    """Numeric period column when every label is numeric-like, else labels as given."""
    numeric = pd.to_numeric(labels, errors='coerce')
    if numeric.notna().all():
        return numeric
    return labels
