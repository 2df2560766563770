import os
import json
import logging
import typing as tp
from dataclasses import dataclass, field

import numpy as np
import jax.random as jr
import equinox as eqx

from ..configs import QSIRNeuralODECfg, RegionCfg
from ..models import QSIRNeuralODE
from .metrics import TransitionPoint

logger = logging.getLogger(__name__)

MODEL_FILE = "model.eqx"
SUMMARY_FILE = "summary.json"
SERIES_FILE = "series.npz"


@dataclass(frozen=True)
class FitResult:
    """
    Outcome of fitting one region.
    """

    region: str
    parameters: tp.Dict[str, float]
    losses: np.ndarray
    t: np.ndarray
    observed: np.ndarray  # (T, 2): infected, recovered + dead
    trajectory: np.ndarray  # (T, 4): S, I, R, Q
    quarantine: np.ndarray
    reproduction: np.ndarray
    transition: tp.Optional[TransitionPoint]
    model: QSIRNeuralODE = field(repr=False)

    def series(self) -> tp.Dict[str, np.ndarray]:
        """
        Arrays handed to the presentation layer: prediction vs. observation,
        R_e(t) with its transition marker, and Q(t).
        """
        transition_index = -1 if self.transition is None else self.transition.index
        return {
            "t": self.t,
            "observed_infected": self.observed[:, 0],
            "observed_removed": self.observed[:, 1],
            "predicted_infected": self.trajectory[:, 1],
            "predicted_removed": self.trajectory[:, 2],
            "trajectory": self.trajectory,
            "reproduction": self.reproduction,
            "transition_index": np.asarray(transition_index),
            "quarantine": self.quarantine,
        }

    def summary(self) -> tp.Dict[str, tp.Any]:
        transition = None
        if self.transition is not None:
            transition = {
                "index": self.transition.index,
                "time": self.transition.time,
                "multiple_crossings": self.transition.multiple_crossings,
            }
        return {
            "region": self.region,
            "parameters": self.parameters,
            "final_loss": float(self.losses[-1]) if len(self.losses) else None,
            "iterations": int(len(self.losses)),
            "transition_point": transition,
        }


def save_fit_result(result: FitResult, directory: str) -> str:
    """
    Persist the fitted model leaves, a JSON summary and the presentation series.

    Args:
        result (FitResult): The fit to store.
        directory (str): Output directory of the region, created if missing.

    Returns:
        str: Path of the serialised model.
    """
    os.makedirs(directory, exist_ok=True)
    model_path = os.path.join(directory, MODEL_FILE)
    eqx.tree_serialise_leaves(model_path, result.model)

    with open(os.path.join(directory, SUMMARY_FILE), "w") as file:
        json.dump(result.summary(), file, indent=4)

    np.savez(
        os.path.join(directory, SERIES_FILE),
        losses=result.losses,
        **result.series(),
    )
    logger.info(f"Saved fit of region {result.region} to {directory}")
    return model_path


def load_fitted_model(
    model_cfg: QSIRNeuralODECfg, region: RegionCfg, directory: str
) -> QSIRNeuralODE:
    """
    Rebuild a fitted model from its configuration and serialised leaves.

    Args:
        model_cfg (QSIRNeuralODECfg): Configuration the model was trained with.
        region (RegionCfg): Region the model was fitted to.
        directory (str): Directory written by ``save_fit_result``.

    Returns:
        QSIRNeuralODE: The model with the fitted rates and weights.
    """
    skeleton = model_cfg.build(region, jr.PRNGKey(0))
    return eqx.tree_deserialise_leaves(os.path.join(directory, MODEL_FILE), skeleton)


def load_summary(directory: str) -> tp.Dict[str, tp.Any]:
    with open(os.path.join(directory, SUMMARY_FILE), "r") as file:
        return json.load(file)
