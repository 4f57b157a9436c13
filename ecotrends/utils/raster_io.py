"""
Raster I/O Utilities
====================
GeoTIFF read/write for prediction surfaces and NoData cleaning.

A prediction file holds one period; each band is one model replicate and
is described as 'rep<id>'. A directory of such files is a prediction
surface set.
"""

import glob
import os
import re

import numpy as np
import rasterio

from ecotrends.datasets.surfaces import SurfaceStack

# Default NoData threshold (float32 minimum is ~-3.4e38)
NODATA_THRESHOLD = -1e30

_REP_PATTERN = re.compile(r'^rep(\d+)$')


def clean_nodata(arr, nodata_threshold=NODATA_THRESHOLD, fill_value=None):
    """
    Clean NoData values: replace extreme negatives, NaN, and Inf with NaN.

    Args:
        arr: numpy array
        nodata_threshold: Values below this are treated as NoData
        fill_value: If provided, fill NaN with this value after cleaning

    Returns:
        Cleaned copy of the array
    """
    arr = np.array(arr, dtype=float)
    arr[arr < nodata_threshold] = np.nan
    arr[np.isinf(arr)] = np.nan

    if fill_value is not None:
        arr = np.nan_to_num(arr, nan=fill_value, posinf=fill_value, neginf=fill_value)

    return arr


def _parse_replicates(descriptions):
    """Replicate ids from band descriptions, or None unless every band is 'rep<id>'."""
    ids = []
    for desc in descriptions:
        m = _REP_PATTERN.match(desc or '')
        if m is None:
            return None
        ids.append(int(m.group(1)))
    return tuple(ids)


def read_surface_stack(path):
    """
    Read a multi-band prediction GeoTIFF into a SurfaceStack.

    Args:
        path: Path to the raster file

    Returns:
        SurfaceStack with NoData replaced by NaN
    """
    with rasterio.open(path) as src:
        arr = src.read().astype(np.float64)
        nodata = src.nodata
        if nodata is not None:
            arr[arr == nodata] = np.nan
        return SurfaceStack(
            values=clean_nodata(arr),
            transform=src.transform,
            replicates=_parse_replicates(src.descriptions),
            crs=src.crs,
            nodata=nodata,
        )


def _period_sort_key(label):
    try:
        return (0, float(label), label)
    except ValueError:
        return (1, 0.0, label)


def load_prediction_surfaces(directory, pattern="*.tif"):
    """
    Load every prediction raster in a directory as a surface set.

    The period label of each file is its name without extension. Periods are
    ordered numerically when every label is a number, else alphabetically.

    Args:
        directory: Folder holding one raster per period
        pattern: Glob pattern selecting the raster files

    Returns:
        dict: period label -> SurfaceStack
    """
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Prediction directory not found: {directory}")

    files = glob.glob(os.path.join(directory, pattern))
    if not files:
        raise FileNotFoundError(
            f"No prediction rasters matching '{pattern}' in: {directory}"
        )

    by_period = {os.path.splitext(os.path.basename(f))[0]: f for f in files}
    return {
        period: read_surface_stack(by_period[period])
        for period in sorted(by_period, key=_period_sort_key)
    }


def write_surface_stack(stack, path, crs=None):
    """
    Write a SurfaceStack as a multi-band float32 GeoTIFF.

    Args:
        stack: SurfaceStack (replicate ids become band descriptions)
        path: Output file path
        crs: CRS to write if the stack carries none
    """
    n_layers, height, width = stack.values.shape
    profile = {
        'driver': 'GTiff',
        'dtype': rasterio.float32,
        'count': n_layers,
        'height': height,
        'width': width,
        'transform': stack.transform,
        'crs': stack.crs if stack.crs is not None else crs,
        'nodata': np.nan,
        'compress': 'lzw',
    }

    with rasterio.open(path, 'w', **profile) as dst:
        dst.write(stack.values.astype(np.float32))
        if stack.replicates is not None:
            for band, rep in enumerate(stack.replicates, start=1):
                dst.set_band_description(band, f"rep{rep}")

