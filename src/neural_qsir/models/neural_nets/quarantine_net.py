import typing as tp

import equinox as eqx
import jax
import jax.numpy as jnp


class QuarantineNet(eqx.Module):
    """
    Feed-forward approximator of the quarantine strength Q(S, I, R).

    The sub-state is divided by the population before entering the network and
    the output is squashed by ``q_max * sigmoid`` so that Q stays a
    non-negative, bounded rate.
    """

    input_dim: int = eqx.field(static=True)
    hidden_dim: int = eqx.field(static=True)
    population: float = eqx.field(static=True)
    q_max: float = eqx.field(static=True)

    linear_in: eqx.nn.Linear
    linear_out: eqx.nn.Linear

    def __init__(
        self,
        population: float,
        hidden_dim: int = 10,
        q_max: float = 1.0,
        initial_strength: tp.Optional[float] = None,
        *,
        key,
    ):
        self.input_dim = 3
        self.hidden_dim = hidden_dim
        self.population = float(population)
        self.q_max = float(q_max)

        key_linear_in, key_linear_out = jax.random.split(key, 2)

        # (S, I, R) -> hidden units
        self.linear_in = eqx.nn.Linear(
            in_features=self.input_dim,
            out_features=hidden_dim,
            key=key_linear_in,
        )
        # hidden units -> pre-activation of Q
        linear_out = eqx.nn.Linear(
            in_features=hidden_dim,
            out_features=1,
            key=key_linear_out,
        )

        if initial_strength is not None:
            if not 0.0 < initial_strength < self.q_max:
                raise ValueError(
                    f"initial_strength must lie in (0, {self.q_max}), got {initial_strength}"
                )
            p = initial_strength / self.q_max
            bias = jnp.full_like(linear_out.bias, jnp.log(p) - jnp.log1p(-p))
            linear_out = eqx.tree_at(
                lambda l: (l.weight, l.bias),
                linear_out,
                (jnp.zeros_like(linear_out.weight), bias),
            )
        self.linear_out = linear_out

    def __call__(self, sir: jax.Array) -> jax.Array:
        """
        Args:
            sir (jax.Array): Sub-state (S, I, R) in absolute counts, shape (3,).

        Returns:
            jax.Array: Scalar quarantine strength.
        """
        z = sir / self.population
        z = jax.nn.relu(self.linear_in(z))
        z = self.linear_out(z)
        return self.q_max * jax.nn.sigmoid(z[0])
