import logging
import typing as tp

import numpy as np
import jax.numpy as jnp
import jax.random as jr

from ..models import QSIRNeuralODE, solve_trajectory
from ..models.vector_fields import ConstantQuarantine, QSIRVectorField
from .observations import ObservationSeries

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


class QSIRSyntheticDataset(object):
    """
    Observations simulated from the QSIR system with a known, constant quarantine strength.

    The generated series is used to check that the fitting engine recovers the
    rates it was generated with.
    """

    def __init__(self, cfg):
        self.population = cfg.population
        self.initial_state = tuple(cfg.initial_state)
        self.beta = cfg.beta
        self.gamma = cfg.gamma
        self.delta = cfg.delta
        self.quarantine = cfg.quarantine
        self.num_days = cfg.num_days
        self.noise_std = cfg.noise_std
        self.death_fraction = cfg.death_fraction
        self.seed = cfg.seed

        if not 0.0 <= self.death_fraction <= 1.0:
            raise ValueError(
                f"death_fraction must lie in [0, 1], got {self.death_fraction}"
            )

        self.t = self.gen_sampling_time()
        self.true_y = self.gen_all_data()  # shape = (num_days, 4)

    def gen_sampling_time(self) -> np.ndarray:
        """
        Daily sampling grid 0, 1, ..., num_days - 1.
        """
        return np.arange(self.num_days, dtype=float)

    def build_ground_truth(self) -> QSIRNeuralODE:
        vector_field = QSIRVectorField(
            beta=self.beta,
            gamma=self.gamma,
            delta=self.delta,
            quarantine=ConstantQuarantine(self.quarantine),
            population=self.population,
        )
        # float32 cannot resolve tolerances much below 1e-6
        tol = 1e-8 if jnp.result_type(float) == np.float64 else 1e-6
        return QSIRNeuralODE(
            vector_field, method="Tsit5", rtol=tol, atol=tol, max_steps=16384
        )

    def gen_all_data(self) -> np.ndarray:
        model = self.build_ground_truth()
        ys = solve_trajectory(model, self.t, jnp.asarray(self.initial_state))
        return np.asarray(ys)

    def observations(self) -> ObservationSeries:
        """
        Observed infected / recovered / dead series, optionally with multiplicative noise.

        Returns:
            ObservationSeries: The synthetic observations.
        """
        infected = self.true_y[:, 1]
        removed = self.true_y[:, 2]

        if self.noise_std > 0:
            key_infected, key_removed = jr.split(jr.PRNGKey(self.seed), 2)
            infected = infected * (
                1.0 + self.noise_std * np.asarray(jr.normal(key_infected, infected.shape))
            )
            removed = removed * (
                1.0 + self.noise_std * np.asarray(jr.normal(key_removed, removed.shape))
            )
            infected = np.clip(infected, 0.0, None)
            removed = np.clip(removed, 0.0, None)

        dead = self.death_fraction * removed
        recovered = removed - dead

        logger.info(
            f"Generated {len(self.t)} synthetic observations (beta={self.beta}, "
            f"gamma={self.gamma}, delta={self.delta}, Q={self.quarantine})"
        )
        return ObservationSeries(
            infected=infected, recovered=recovered, dead=dead, t=self.t
        )
