"""
Spatial Sampling
================
Point-in-raster lookups on prediction surfaces.

Points are matched to the grid cell that contains them (nearest-cell
sampling). Points outside the grid, or on NoData cells, yield NaN rather
than an error.
"""

import numpy as np
from rasterio.transform import rowcol


def cell_indices(transform, shape, x, y):
    """
    Locate the grid cell containing each point.

    Args:
        transform: Affine geotransform of the grid
        shape: (height, width) of the grid
        x, y: [N] point coordinates in the grid's CRS

    Returns:
        rows, cols: [N] integer cell indices (clipped into the grid)
        inside: [N] boolean, False for points falling outside the grid
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size == 0:
        empty = np.zeros(0, dtype=int)
        return empty, empty, np.zeros(0, dtype=bool)

    finite = np.isfinite(x) & np.isfinite(y)
    # rowcol cannot floor NaN; park those points at the origin and flag them
    xs = np.where(finite, x, transform.c)
    ys = np.where(finite, y, transform.f)

    rows, cols = rowcol(transform, xs, ys)
    rows = np.asarray(rows, dtype=int).reshape(x.shape)
    cols = np.asarray(cols, dtype=int).reshape(x.shape)

    height, width = shape
    inside = (rows >= 0) & (rows < height) & (cols >= 0) & (cols < width) & finite
    return np.clip(rows, 0, height - 1), np.clip(cols, 0, width - 1), inside


def sample_at(values, transform, x, y):
    """
    Extract surface values at point locations.

    Args:
        values: [H, W] surface array (NaN = NoData)
        transform: Affine geotransform of the surface
        x, y: [N] point coordinates

    Returns:
        [N] float array, NaN where the point is outside the grid or on NoData
    """
    values = np.asarray(values, dtype=float)
    rows, cols, inside = cell_indices(transform, values.shape, x, y)
    out = np.full(rows.shape, np.nan)
    out[inside] = values[rows[inside], cols[inside]]
    return out


def point_mask(transform, shape, x, y):
    """
    Boolean grid marking cells that contain at least one point.

    Args:
        transform: Affine geotransform of the grid
        shape: (height, width) of the grid
        x, y: [N] point coordinates

    Returns:
        [H, W] boolean array
    """
    rows, cols, inside = cell_indices(transform, shape, x, y)
    mask = np.zeros(shape, dtype=bool)
    mask[rows[inside], cols[inside]] = True
    return mask


def mask_to_points(stack, x, y):
    """
    Restrict a surface stack to the cells covered by background points.

    Every cell that does not contain at least one point is set to NaN in all
    layers. The input stack is not modified.

    Args:
        stack: SurfaceStack
        x, y: [N] background point coordinates

    Returns:
        New SurfaceStack with the same transform, CRS and replicate ids
    """
    keep = point_mask(stack.transform, stack.shape, x, y)
    masked = np.where(keep[np.newaxis, :, :], stack.values, np.nan)
    return stack.with_values(masked)
