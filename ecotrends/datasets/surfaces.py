"""
Prediction Surfaces
===================
In-memory container for per-period prediction rasters.

A SurfaceStack holds one layer per model replicate, all on the same grid.
A prediction surface set is an ordered mapping period label -> SurfaceStack.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple

import numpy as np
from affine import Affine


@dataclass(frozen=True, eq=False)
class SurfaceStack:
    """
    Predicted scores of every replicate of one period over the study grid.

    Attributes:
        values: [n_layers, H, W] float array, NaN = NoData
        transform: Affine geotransform shared by all layers
        replicates: replicate id of each layer, or None if not known yet
        crs: coordinate reference system (passed through, never interpreted)
        nodata: NoData value of the source raster, if any
    """
    values: np.ndarray
    transform: Affine
    replicates: Optional[Tuple[int, ...]] = None
    crs: Any = None
    nodata: Optional[float] = None

    def __post_init__(self):
        values = np.asarray(self.values, dtype=float)
        if values.ndim == 2:
            values = values[np.newaxis, :, :]
        if values.ndim != 3:
            raise ValueError(f"Surface values must be 2-D or 3-D, got shape {values.shape}")
        if self.nodata is not None:
            values = np.where(values == self.nodata, np.nan, values)
        object.__setattr__(self, 'values', np.where(np.isfinite(values), values, np.nan))

        if self.replicates is not None:
            reps = tuple(int(r) for r in self.replicates)
            if len(reps) != values.shape[0]:
                raise ValueError(
                    f"{len(reps)} replicate ids given for {values.shape[0]} layers"
                )
            if len(set(reps)) != len(reps):
                raise ValueError(f"Duplicate replicate ids: {reps}")
            object.__setattr__(self, 'replicates', reps)

    @property
    def n_layers(self):
        return self.values.shape[0]

    @property
    def shape(self):
        """(height, width) of the grid."""
        return self.values.shape[1:]

    def layer(self, replicate):
        """Return the [H, W] surface of one replicate id."""
        if self.replicates is None:
            raise ValueError("Surface stack has no replicate ids; call with_replicates() first")
        try:
            index = self.replicates.index(int(replicate))
        except ValueError:
            raise KeyError(f"Replicate {replicate} not in surface stack {self.replicates}") from None
        return self.values[index]

    def with_replicates(self, replicates):
        """Copy of this stack with explicit replicate ids assigned to the layers."""
        return replace(self, replicates=tuple(replicates))

    def with_values(self, values):
        """Copy of this stack with new layer values on the same grid."""
        values = np.asarray(values, dtype=float)
        if values.shape != self.values.shape:
            raise ValueError(f"Expected values of shape {self.values.shape}, got {values.shape}")
        return replace(self, values=values)
