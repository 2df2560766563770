import os
import pydantic
import logging
import time
import typing as tp

import exca as xk
import numpy as np

import jax
import jax.numpy as jnp
import jax.random as jr
import equinox as eqx
import optax

from ..configs import (
    WandBConfig,
    RegionCfg,
    DataSetCfg,
    QSIRNeuralODECfg,
    OptimiserCfg,
    SSELossCfg,
    MSELossCfg,
)
from ..errors import IntegrationDivergenceError, OptimizationDivergenceError
from ..models import QSIRNeuralODE, solve_trajectory
from .metrics import (
    effective_reproduction_number,
    transition_point,
    loss_trend,
    is_non_increasing,
)
from .results import FitResult, save_fit_result
from .sensitivity import loss_and_gradients, max_abs

logging.basicConfig(level=logging.INFO)


class Trainer(pydantic.BaseModel):
    """
    Fits the neural QSIR model to the observations of one region.

    A Trainer is the run context of a single region: it owns the region presets,
    the data source and the model/optimiser/loss configuration. Nothing is shared
    between trainers.
    """

    wandb: WandBConfig = pydantic.Field(
        default_factory=WandBConfig, description="WandB configuration"
    )
    region: RegionCfg = pydantic.Field(..., description="Region presets")
    dataset: DataSetCfg = pydantic.Field(..., description="Dataset configuration")
    model: QSIRNeuralODECfg = pydantic.Field(
        default_factory=QSIRNeuralODECfg, description="Model configuration"
    )
    optimiser: OptimiserCfg = pydantic.Field(
        default_factory=OptimiserCfg, description="Optimiser configuration"
    )
    loss: SSELossCfg | MSELossCfg = pydantic.Field(
        default_factory=SSELossCfg, discriminator="name", description="Loss configuration"
    )

    seed: int = 1234
    log_freq: int = 100
    trend_window: int = pydantic.Field(
        100, ge=1, description="Window of the moving loss diagnostic"
    )
    enable_x64: bool = pydantic.Field(
        True, description="Run JAX in double precision"
    )

    checkpoint_dir: tp.Optional[str] = pydantic.Field(
        default=None, description="Directory to save fitted artifacts, per region"
    )

    infra: xk.TaskInfra = xk.TaskInfra()

    logger_name: str = pydantic.Field(
        default="neural_qsir.trainer", description="Name of Logger"
    )

    model_config = pydantic.ConfigDict(extra="forbid")

    def run_initialisations(self):
        """
        Set the numerical precision of the run.
        """
        jax.config.update("jax_enable_x64", self.enable_x64)

    @infra.apply
    def run(self) -> FitResult:
        """
        Run the training process.
        """
        return self.fit()

    def fit(self) -> FitResult:
        """
        Load the data, train for the region's iteration budget and derive the metrics.

        Returns:
            FitResult: Fitted rates, trajectory, Q(t), R_e(t) and transition point.

        Raises:
            DataLoadError: If the observation source cannot be read.
            DataShapeError: If the observations are malformed.
            IntegrationDivergenceError: If a forward solve fails or diverges.
            OptimizationDivergenceError: If the loss or a gradient becomes non-finite.
        """
        self.run_initialisations()

        logger = logging.getLogger(self.logger_name)
        logger.setLevel(logging.INFO)
        logger.info(self)

        trainer_key = jr.PRNGKey(self.seed)
        (model_key,) = jr.split(trainer_key, 1)

        observations = self.dataset.build()
        logger.info(f"Data loading done: {len(observations)} observations")

        ts = observations.t
        y0 = jnp.asarray(self.region.initial_state, dtype=jnp.result_type(float))
        data_i = (ts, y0, observations.targets)

        model = self.model.build(self.region, model_key)
        # Fails before any optimisation if the initial guess cannot be integrated.
        solve_trajectory(model, ts, y0)

        optimiser, schedule = self.optimiser.build(self.region.learning_rate)
        opt_state = optimiser.init(eqx.filter(model, eqx.is_inexact_array))
        loss = self.loss.build()

        losses = []
        with self.wandb.init(
            name=self.region.name, config=self.model_dump(exclude={"infra"})
        ) as wandb_run:
            for iteration in range(self.region.iterations):
                start_time = time.time()

                train_loss, valid, model, opt_state, max_grad, max_update = make_step(
                    model, optimiser, loss, data_i, opt_state
                )

                if not bool(valid):
                    raise IntegrationDivergenceError(
                        f"Region {self.region.name}: forward solve diverged at iteration {iteration + 1}"
                    )
                if not bool(jnp.isfinite(train_loss)):
                    raise OptimizationDivergenceError(
                        f"Region {self.region.name}: non-finite loss at iteration {iteration + 1}"
                    )
                if not bool(jnp.isfinite(max_grad)):
                    raise OptimizationDivergenceError(
                        f"Region {self.region.name}: non-finite gradient at iteration {iteration + 1}"
                    )

                end_time = time.time()
                losses.append(float(train_loss))

                wandb_run.log(
                    {
                        "train_loss": float(train_loss),
                        "train_step_time": end_time - start_time,
                        "max_grad": float(max_grad),
                        "max_update": float(max_update),
                    }
                )

                if iteration == 0 or (iteration + 1) % self.log_freq == 0:
                    logger.info(
                        f"Iteration: {iteration + 1:05d}, Train Loss: {train_loss}, Train Step Time: {end_time - start_time:.4f}s, Learning Rate: {schedule(iteration)}"
                    )

                if (iteration + 1) % self.trend_window == 0:
                    trend = loss_trend(losses, self.trend_window)
                    if not is_non_increasing(trend[-2:]):
                        logger.warning(
                            f"Mean loss increased over the last {self.trend_window} iterations: {trend[-2]} -> {trend[-1]}"
                        )

            result = self.evaluate(model, observations, y0, np.asarray(losses))
            wandb_run.log({"final_loss": losses[-1], **result.parameters})

        logger.info(
            f"Region {self.region.name}: final loss {losses[-1]}, parameters {result.parameters}, transition point {result.transition}"
        )

        if self.checkpoint_dir:
            save_fit_result(result, os.path.join(self.checkpoint_dir, self.region.name))

        return result

    def evaluate(
        self, model: QSIRNeuralODE, observations, y0: jax.Array, losses: np.ndarray
    ) -> FitResult:
        """
        Solve with the fitted model and derive Q(t), R_e(t) and the transition point.
        """
        ys = solve_trajectory(model, observations.t, y0)
        quarantine = model.quarantine_series(ys)
        parameters = model.vector_field.parameters

        reproduction = effective_reproduction_number(
            ys,
            quarantine,
            beta=parameters["beta"],
            gamma=parameters["gamma"],
            population=model.population,
        )
        t = np.asarray(observations.t)

        return FitResult(
            region=self.region.name,
            parameters=parameters,
            losses=losses,
            t=t,
            observed=np.asarray(observations.targets),
            trajectory=np.asarray(ys),
            quarantine=np.asarray(quarantine),
            reproduction=reproduction,
            transition=transition_point(t, reproduction),
            model=model,
        )


@eqx.filter_jit
def make_step(
    model: eqx.Module,
    optimiser: optax.GradientTransformation,
    loss: tp.Callable,
    data_i: tp.Tuple[jnp.ndarray, jnp.ndarray, jnp.ndarray],
    opt_state: optax.OptState,
) -> tp.Tuple[
    jnp.ndarray, jnp.ndarray, eqx.Module, optax.OptState, jnp.ndarray, jnp.ndarray
]:
    """
    Perform a single training step: forward solve, loss, adjoint backward pass, update.

    Args:
        model (eqx.Module): The model to train.
        optimiser (optax.GradientTransformation): The optimiser to use.
        loss (tp.Callable): The loss function, returning (loss, validity flag).
        data_i (tp.Tuple): Output times, initial state and observed targets.
        opt_state (optax.OptState): The optimiser state.

    Returns:
        tuple : The loss, the validity flag, updated model, updated optimiser state,
            max gradient, and max update.
    """
    loss_value, valid, grads = loss_and_gradients(model, loss, data_i)
    max_grad = max_abs(grads)

    params = eqx.filter(model, eqx.is_inexact_array)
    updates, opt_state = optimiser.update(grads, opt_state, params)
    model = eqx.apply_updates(model, updates)

    max_update = max_abs(updates)
    return loss_value, valid, model, opt_state, max_grad, max_update
