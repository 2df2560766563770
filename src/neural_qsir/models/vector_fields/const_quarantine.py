import jax
import jax.numpy as jnp
from jaxtyping import Array
import equinox as eqx


class ConstantQuarantine(eqx.Module):
    """
    Closed-form quarantine strength Q(t) = value, independent of the state.
    """

    value: Array

    def __init__(self, value: float):
        self.value = jnp.asarray(value, dtype=jnp.result_type(float))

    def __call__(self, sir: jax.Array) -> jax.Array:
        return self.value
