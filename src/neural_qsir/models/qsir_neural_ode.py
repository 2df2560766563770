import logging
import typing as tp

import equinox as eqx
import jax
import jax.numpy as jnp
import diffrax

from ..errors import IntegrationDivergenceError
from .vector_fields import QSIRVectorField

logger = logging.getLogger(__name__)


class QSIRNeuralODE(eqx.Module):
    """
    QSIR system whose quarantine term is a neural network, integrated with an
    adaptive Runge-Kutta method. Gradients flow through the solve via the
    configured diffrax adjoint.
    """

    vector_field: QSIRVectorField
    method: diffrax.AbstractSolver
    controller: diffrax.PIDController
    adjoint: diffrax.AbstractAdjoint
    max_steps: int = eqx.field(static=True)
    bound_tolerance: float = eqx.field(static=True)

    def __init__(
        self,
        vector_field: QSIRVectorField,
        method: str = "Tsit5",
        rtol: float = 1e-6,
        atol: float = 1e-6,
        adjoint: tp.Literal["backsolve", "recursive_checkpoint"] = "backsolve",
        max_steps: int = 4096,
        bound_tolerance: float = 1e-3,
        **kwargs,
    ):
        """
        Initialize the QSIRNeuralODE model.

        Args:
            vector_field (QSIRVectorField): QSIR dynamics holding the rates and the quarantine net.
            method (str): Name of the diffrax solver.
            rtol (float): Relative tolerance of the step-size controller.
            atol (float): Absolute tolerance of the step-size controller.
            adjoint (str): "backsolve" for continuous adjoint sensitivities,
                "recursive_checkpoint" to differentiate through the solver steps.
            max_steps (int): Maximum number of solver steps per solve.
            bound_tolerance (float): Allowed overshoot outside the compartment
                bounds, as a fraction of the population.
            **kwargs: Additional keyword arguments.
        """
        super().__init__(**kwargs)
        self.vector_field = vector_field
        self.method = getattr(diffrax, method)()
        self.controller = diffrax.PIDController(rtol=rtol, atol=atol)

        if adjoint == "backsolve":
            self.adjoint = diffrax.BacksolveAdjoint(
                solver=self.method, stepsize_controller=self.controller
            )
        elif adjoint == "recursive_checkpoint":
            self.adjoint = diffrax.RecursiveCheckpointAdjoint()
        else:
            raise ValueError(f"Adjoint {adjoint} not supported")

        self.max_steps = max_steps
        self.bound_tolerance = bound_tolerance

    @property
    def population(self) -> float:
        return self.vector_field.population

    def solve(self, ts: jax.Array, y0: jax.Array) -> diffrax.Solution:
        """
        Integrate the system from ``ts[0]`` and save one state per entry of ``ts``.

        Args:
            ts (jax.Array): Strictly increasing output times.
            y0 (jax.Array): Initial state (S, I, R, Q) at ``ts[0]``.

        Returns:
            diffrax.Solution: Solution with ``ys`` of shape (len(ts), 4).
        """
        term = diffrax.ODETerm(self.vector_field)
        saveat = diffrax.SaveAt(ts=ts)

        return diffrax.diffeqsolve(
            terms=term,
            solver=self.method,
            t0=ts[0],
            t1=ts[-1],
            dt0=None,
            y0=y0,
            saveat=saveat,
            stepsize_controller=self.controller,
            adjoint=self.adjoint,
            max_steps=self.max_steps,
            throw=False,
        )

    def is_valid(self, solution: diffrax.Solution) -> jax.Array:
        """
        True if the solve succeeded and every state is finite and within bounds.
        """
        ys = solution.ys
        N = self.population
        tol = self.bound_tolerance * N
        successful = solution.result == diffrax.RESULTS.successful
        finite = jnp.all(jnp.isfinite(ys))
        lower = jnp.all(ys >= -tol)
        upper = jnp.all(ys[:, :2] <= N + tol)
        return successful & finite & lower & upper

    def quarantine_series(self, ys: jax.Array) -> jax.Array:
        """
        Quarantine strength Q(t) evaluated along a trajectory.
        """
        return jax.vmap(self.vector_field.quarantine_strength)(ys)

    def __call__(self, ts: jax.Array, y0: jax.Array) -> tp.Tuple[jax.Array, jax.Array]:
        """
        Forward pass.

        Args:
            ts (jax.Array): Sequence of time points.
            y0 (jax.Array): Initial state.

        Returns:
            tuple: The trajectory of shape (len(ts), 4) and a boolean validity flag.
        """
        solution = self.solve(ts, y0)
        return solution.ys, self.is_valid(solution)


@eqx.filter_jit
def _checked_solve(
    model: QSIRNeuralODE, ts: jax.Array, y0: jax.Array
) -> tp.Tuple[jax.Array, jax.Array, jax.Array]:
    solution = model.solve(ts, y0)
    successful = solution.result == diffrax.RESULTS.successful
    return solution.ys, successful, model.is_valid(solution)


def solve_trajectory(model: QSIRNeuralODE, ts, y0) -> jax.Array:
    """
    Solve the system and fail loudly instead of returning a broken trajectory.

    Args:
        model (QSIRNeuralODE): Model with the current rates and weights.
        ts: Output times, strictly increasing.
        y0: Initial state (S, I, R, Q).

    Returns:
        jax.Array: Trajectory of shape (len(ts), 4).

    Raises:
        IntegrationDivergenceError: If the initial state is non-finite, the solver
            does not reach ``ts[-1]``, or the trajectory is non-finite or out of bounds.
    """
    ts = jnp.asarray(ts, dtype=jnp.result_type(float))
    y0 = jnp.asarray(y0, dtype=jnp.result_type(float))

    if y0.shape != (4,):
        raise IntegrationDivergenceError(
            f"Initial state must have shape (4,), got {y0.shape}"
        )
    if not bool(jnp.all(jnp.isfinite(y0))):
        raise IntegrationDivergenceError(f"Initial state is not finite: {y0}")

    ys, successful, valid = _checked_solve(model, ts, y0)

    if not bool(successful):
        raise IntegrationDivergenceError(
            f"Solver did not reach t={float(ts[-1])} (max_steps={model.max_steps})"
        )
    if not bool(valid):
        if not bool(jnp.all(jnp.isfinite(ys))):
            bad = int(jnp.argmax(~jnp.all(jnp.isfinite(ys), axis=-1)))
            raise IntegrationDivergenceError(
                f"Non-finite state at t={float(ts[bad])}: {ys[bad]}"
            )
        raise IntegrationDivergenceError(
            f"Compartments left [0, N] beyond tolerance {model.bound_tolerance}: "
            f"min={float(jnp.min(ys))}, max S/I={float(jnp.max(ys[:, :2]))}"
        )

    logger.debug(f"Solved trajectory over {len(ts)} time points")
    return ys
