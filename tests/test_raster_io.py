import numpy as np
import pytest

from ecotrends.datasets.surfaces import SurfaceStack
from ecotrends.utils.raster_io import (
    clean_nodata, load_prediction_surfaces, read_surface_stack, write_surface_stack,
)

from conftest import TRANSFORM


def _stack(replicates=(1, 2), fill=0.25):
    values = np.full((len(replicates), 10, 10), fill)
    values[0, 0, 0] = np.nan
    return SurfaceStack(values=values, transform=TRANSFORM, replicates=replicates)


def test_clean_nodata():
    out = clean_nodata(np.array([1.0, -3.4e38, np.inf, np.nan]))
    assert out[0] == 1.0
    assert np.isnan(out[1:]).all()

    filled = clean_nodata(np.array([1.0, -np.inf]), fill_value=0.0)
    np.testing.assert_array_equal(filled, [1.0, 0.0])


def test_write_then_read_keeps_replicates_and_grid(tmp_path):
    path = tmp_path / "2000.tif"
    write_surface_stack(_stack(replicates=(0,)), path, crs="EPSG:4326")

    stack = read_surface_stack(path)

    assert stack.replicates == (0,)
    assert stack.transform == TRANSFORM
    assert np.isnan(stack.values[0, 0, 0])
    assert stack.values[0, 5, 5] == pytest.approx(0.25)

    assert stack.values.shape == (1, 10, 10)


def test_load_prediction_surfaces_orders_numeric_periods(tmp_path):
    for period in ("2010", "1990", "2000"):
        write_surface_stack(_stack(), tmp_path / f"{period}.tif", crs="EPSG:4326")

    surfaces = load_prediction_surfaces(str(tmp_path))

    assert list(surfaces) == ["1990", "2000", "2010"]
    assert all(s.replicates == (1, 2) for s in surfaces.values())


def test_load_prediction_surfaces_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_prediction_surfaces(str(tmp_path / "nowhere"))
    with pytest.raises(FileNotFoundError):
        load_prediction_surfaces(str(tmp_path))
