import typing as tp

import jax
import jax.numpy as jnp
from jaxtyping import Array
import equinox as eqx


class QSIRVectorField(eqx.Module):
    """
    Right-hand side of the QSIR system with an externally supplied quarantine term.

        dS/dt = -beta * S * I / N
        dI/dt =  beta * S * I / N - gamma * I - Q_t * I
        dR/dt =  gamma * I
        dQ/dt =  Q_t * I - delta * Q

    ``Q_t`` is obtained by evaluating ``quarantine`` on the instantaneous (S, I, R).
    The compartments are not required to sum to N once Q is non-zero.
    """

    beta: Array
    gamma: Array
    delta: Array
    quarantine: eqx.Module
    population: float = eqx.field(static=True)

    def __init__(
        self,
        beta: float,
        gamma: float,
        delta: float,
        quarantine: eqx.Module,
        population: float,
    ):
        if population <= 0:
            raise ValueError(f"Population must be positive, got {population}")
        self.beta = jnp.asarray(beta, dtype=jnp.result_type(float))
        self.gamma = jnp.asarray(gamma, dtype=jnp.result_type(float))
        self.delta = jnp.asarray(delta, dtype=jnp.result_type(float))
        self.quarantine = quarantine
        self.population = float(population)

    @property
    def rates(self) -> tp.Tuple[jax.Array, jax.Array, jax.Array]:
        # The optimiser acts on unconstrained values, the dynamics see the magnitudes.
        return jnp.abs(self.beta), jnp.abs(self.gamma), jnp.abs(self.delta)

    @property
    def parameters(self) -> tp.Dict[str, float]:
        beta, gamma, delta = self.rates
        return {"beta": float(beta), "gamma": float(gamma), "delta": float(delta)}

    def clamp(self, y: jax.Array) -> jax.Array:
        """
        Clamp S, I into [0, N] and R, Q into [0, inf).
        """
        N = self.population
        S = jnp.clip(y[0], 0.0, N)
        I = jnp.clip(y[1], 0.0, N)
        R = jnp.maximum(y[2], 0.0)
        Q = jnp.maximum(y[3], 0.0)
        return jnp.stack([S, I, R, Q])

    def quarantine_strength(self, y: jax.Array) -> jax.Array:
        """
        Quarantine strength for a single state (S, I, R, Q).
        """
        y = self.clamp(y)
        return self.quarantine(y[:3])

    def __call__(self, t, y, args):
        """
        Compute the time-derivative of the state.

        Args:
            t: Time scalar (required by the diffrax interface, unused here).
            y: State (S, I, R, Q), shape (4,).
            args: Unused.

        Returns:
            dydt: Derivative (dS, dI, dR, dQ), shape (4,).
        """
        beta, gamma, delta = self.rates
        y = self.clamp(y)
        S, I, R, Q = y[0], y[1], y[2], y[3]
        q_t = self.quarantine(y[:3])

        infection = beta * S * I / self.population
        dS = -infection
        dI = infection - gamma * I - q_t * I
        dR = gamma * I
        dQ = q_t * I - delta * Q

        return jnp.stack([dS, dI, dR, dQ])
