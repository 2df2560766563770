import json

import pytest
import numpy as np

from neural_qsir.dataset import ObservationSeries, load_observations
from neural_qsir.errors import DataLoadError, DataShapeError


@pytest.fixture
def arrays():
    return dict(
        infected=[10.0, 20.0, 35.0, 50.0],
        recovered=[0.0, 2.0, 5.0, 9.0],
        dead=[0.0, 0.0, 1.0, 1.0],
        t=[0, 1, 2, 3],
    )


def test_valid_series(arrays):
    series = ObservationSeries(**arrays)
    assert len(series) == 4
    np.testing.assert_allclose(np.asarray(series.removed), [0.0, 2.0, 6.0, 10.0])
    assert series.targets.shape == (4, 2)
    np.testing.assert_allclose(np.asarray(series.targets[:, 0]), arrays["infected"])


@pytest.mark.parametrize(
    "field, values",
    [
        ("recovered", [0.0, 2.0, 5.0]),  # length mismatch
        ("t", [0, 1, 1, 3]),  # not strictly increasing
        ("t", [0, 2, 1, 3]),  # not monotonic
        ("infected", [10.0, np.nan, 35.0, 50.0]),  # non-finite
        ("dead", [0.0, -1.0, 1.0, 1.0]),  # negative counts
        ("infected", [[10.0, 20.0], [35.0, 50.0]]),  # wrong rank
        ("infected", ["a", "b", "c", "d"]),  # not numeric
    ],
)
def test_malformed_series(arrays, field, values):
    arrays[field] = values
    with pytest.raises(DataShapeError):
        ObservationSeries(**arrays)


def test_single_observation_is_rejected():
    with pytest.raises(DataShapeError):
        ObservationSeries(infected=[1.0], recovered=[0.0], dead=[0.0], t=[0])


def test_series_is_immutable(arrays):
    series = ObservationSeries(**arrays)
    with pytest.raises(AttributeError):
        series.infected = series.recovered


def test_load_npz(tmp_path, arrays):
    path = tmp_path / "region.npz"
    np.savez(path, **{key: np.asarray(value) for key, value in arrays.items()})
    series = load_observations(path)
    np.testing.assert_allclose(np.asarray(series.t), arrays["t"])


def test_load_json(tmp_path, arrays):
    path = tmp_path / "region.json"
    path.write_text(json.dumps(arrays))
    series = load_observations(str(path))
    np.testing.assert_allclose(np.asarray(series.dead), arrays["dead"])


def test_load_csv(tmp_path, arrays):
    path = tmp_path / "region.csv"
    rows = ["t,infected,recovered,dead"] + [
        f"{t},{i},{r},{d}"
        for t, i, r, d in zip(
            arrays["t"], arrays["infected"], arrays["recovered"], arrays["dead"]
        )
    ]
    path.write_text("\n".join(rows) + "\n")
    series = load_observations(path)
    np.testing.assert_allclose(np.asarray(series.infected), arrays["infected"])
    np.testing.assert_allclose(np.asarray(series.removed), [0.0, 2.0, 6.0, 10.0])


def test_load_missing_field(tmp_path, arrays):
    del arrays["dead"]
    path = tmp_path / "region.json"
    path.write_text(json.dumps(arrays))
    with pytest.raises(DataShapeError):
        load_observations(path)


def test_load_mismatched_lengths(tmp_path, arrays):
    arrays["recovered"] = arrays["recovered"][:2]
    path = tmp_path / "region.json"
    path.write_text(json.dumps(arrays))
    with pytest.raises(DataShapeError):
        load_observations(path)


def test_unsupported_format(tmp_path):
    path = tmp_path / "region.xlsx"
    path.write_text("")
    with pytest.raises(DataLoadError):
        load_observations(path)


@pytest.mark.parametrize("name", ["region.npz", "region.json", "region.csv"])
def test_missing_file(tmp_path, name):
    with pytest.raises(DataLoadError):
        load_observations(tmp_path / name)


def test_corrupt_json(tmp_path):
    path = tmp_path / "region.json"
    path.write_text("{not json")
    with pytest.raises(DataLoadError):
        load_observations(path)
