import typing as tp

import jax
import jax.numpy as jnp
import equinox as eqx

from ..models import QSIRNeuralODE

LossFn = tp.Callable[
    [eqx.Module, tp.Tuple[jnp.ndarray, jnp.ndarray, jnp.ndarray]],
    tp.Tuple[jax.Array, jax.Array],
]


def loss_and_gradients(
    model: QSIRNeuralODE,
    loss: LossFn,
    data_i: tp.Tuple[jnp.ndarray, jnp.ndarray, jnp.ndarray],
) -> tp.Tuple[jax.Array, jax.Array, QSIRNeuralODE]:
    """
    Loss and its gradient with respect to the rates and the quarantine net weights.

    The gradient is propagated through the ODE solve by the model's adjoint; with
    ``diffrax.BacksolveAdjoint`` this integrates the adjoint system backwards in
    time instead of storing the forward solver steps.

    Args:
        model (QSIRNeuralODE): The model to differentiate.
        loss (tp.Callable): Maps (model, data) to (loss, validity flag).
        data_i (tp.Tuple): Output times, initial state and observed targets.

    Returns:
        tuple : The loss, the validity flag of the forward solve, and the gradients
            as a pytree shaped like the model.
    """
    (value, valid), grads = eqx.filter_value_and_grad(loss, has_aux=True)(
        model, data_i
    )
    return value, valid, grads


def max_abs(tree) -> jax.Array:
    """
    Largest absolute entry over all array leaves of a pytree.
    """
    flat, _ = jax.tree_util.tree_flatten(eqx.filter(tree, eqx.is_inexact_array))
    return jnp.max(jnp.abs(jnp.concatenate([leaf.ravel() for leaf in flat])))


def rate_gradients(grads: QSIRNeuralODE) -> tp.Dict[str, float]:
    """
    Gradient entries of beta, gamma and delta.
    """
    vector_field = grads.vector_field
    return {
        "beta": float(vector_field.beta),
        "gamma": float(vector_field.gamma),
        "delta": float(vector_field.delta),
    }
