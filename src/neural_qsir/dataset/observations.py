import json
import logging
import typing as tp
from pathlib import Path

import numpy as np
import jax
import jax.numpy as jnp
import equinox as eqx

from ..errors import DataLoadError, DataShapeError

logger = logging.getLogger(__name__)

FIELDS = ("infected", "recovered", "dead", "t")


def _as_vector(name: str, values) -> np.ndarray:
    try:
        array = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise DataShapeError(f"'{name}' is not a numeric array: {e}") from e
    if array.ndim != 1:
        raise DataShapeError(f"'{name}' must be one-dimensional, got shape {array.shape}")
    return array


def validate_observations(infected, recovered, dead, t) -> tp.Dict[str, np.ndarray]:
    """
    Validate the four observation arrays of a region.

    Args:
        infected: Cumulative infected counts.
        recovered: Cumulative recovered counts.
        dead: Cumulative death counts.
        t: Time indices (day offsets), strictly increasing.

    Returns:
        dict: The arrays converted to float numpy vectors.

    Raises:
        DataShapeError: If the arrays are not 1-D, differ in length, contain
            fewer than two points, contain non-finite or negative values, or the
            time grid is not strictly increasing.
    """
    arrays = {
        name: _as_vector(name, values)
        for name, values in zip(FIELDS, (infected, recovered, dead, t))
    }

    lengths = {name: len(array) for name, array in arrays.items()}
    if len(set(lengths.values())) != 1:
        raise DataShapeError(f"Observation arrays differ in length: {lengths}")
    if lengths["t"] < 2:
        raise DataShapeError(
            f"At least two observations are required, got {lengths['t']}"
        )

    for name, array in arrays.items():
        if not np.all(np.isfinite(array)):
            raise DataShapeError(f"'{name}' contains non-finite values")
        if name != "t" and np.any(array < 0):
            raise DataShapeError(f"'{name}' contains negative counts")

    if not np.all(np.diff(arrays["t"]) > 0):
        raise DataShapeError("Time grid 't' must be strictly increasing")

    return arrays


class ObservationSeries(eqx.Module):
    """
    Immutable observed time series of one region.

    The recovered target used for fitting is ``recovered + dead``.
    """

    t: jax.Array
    infected: jax.Array
    recovered: jax.Array
    dead: jax.Array

    def __init__(self, infected, recovered, dead, t):
        arrays = validate_observations(infected, recovered, dead, t)
        dtype = jnp.result_type(float)
        self.t = jnp.asarray(arrays["t"], dtype=dtype)
        self.infected = jnp.asarray(arrays["infected"], dtype=dtype)
        self.recovered = jnp.asarray(arrays["recovered"], dtype=dtype)
        self.dead = jnp.asarray(arrays["dead"], dtype=dtype)

    def __len__(self) -> int:
        return self.t.shape[0]

    @property
    def removed(self) -> jax.Array:
        return self.recovered + self.dead

    @property
    def targets(self) -> jax.Array:
        """
        Observed (infected, removed), shape (len(t), 2).
        """
        return jnp.stack([self.infected, self.removed], axis=-1)

    def to_dict(self) -> tp.Dict[str, np.ndarray]:
        return {name: np.asarray(getattr(self, name)) for name in FIELDS}


def load_observations(path: tp.Union[str, Path]) -> ObservationSeries:
    """
    Load a region's observations from ``.npz``, ``.json`` or ``.csv``.

    Every format carries the keys / columns ``infected``, ``recovered``, ``dead`` and ``t``.

    Args:
        path (str | Path): File to read.

    Returns:
        ObservationSeries: The validated observations.

    Raises:
        DataLoadError: If the file is missing, unreadable or of an unsupported format.
        DataShapeError: If a field is missing or the arrays are malformed.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    try:
        if suffix == ".npz":
            with np.load(path) as data:
                raw = {name: data[name] for name in FIELDS if name in data}
        elif suffix == ".json":
            with open(path, "r") as file:
                raw = json.load(file)
        elif suffix == ".csv":
            table = np.genfromtxt(path, delimiter=",", names=True, dtype=float)
            names = table.dtype.names or ()
            raw = {name: np.atleast_1d(table[name]) for name in FIELDS if name in names}
        else:
            raise DataLoadError(f"Unsupported observation file format: {suffix}")
    except (OSError, ValueError) as e:
        raise DataLoadError(f"Cannot read observations from {path}: {e}") from e

    if not isinstance(raw, dict):
        raise DataLoadError(f"{path} does not hold a mapping of observation fields")

    missing = [name for name in FIELDS if name not in raw]
    if missing:
        raise DataShapeError(f"{path} is missing the fields {missing}")

    series = ObservationSeries(**{name: raw[name] for name in FIELDS})
    logger.info(f"Loaded {len(series)} observations from {path}")
    return series
