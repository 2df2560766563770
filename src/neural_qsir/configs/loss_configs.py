import pydantic
import typing as tp

import jax
import jax.numpy as jnp
import equinox as eqx


def _scaled_residuals(
    model: eqx.Module,
    data_i: tp.Tuple[jnp.ndarray, jnp.ndarray, jnp.ndarray],
    scale: str,
) -> tp.Tuple[jax.Array, jax.Array]:
    """
    Difference between predicted (I, R) and observed (infected, recovered + dead).
    """
    t_i, y0_i, label_i = data_i
    pred_y, valid = model(t_i, y0_i)
    residuals = pred_y[:, 1:3] - label_i
    if scale == "population":
        residuals = residuals / model.population
    return residuals, valid


class SSELossCfg(pydantic.BaseModel):
    """
    Configuration for the summed squared error between trajectory and observations.
    """

    name: tp.Literal["SSE"] = pydantic.Field("SSE")
    scale: tp.Literal["population", "none"] = pydantic.Field(
        "population", description="Divide counts by N before squaring"
    )

    model_config = pydantic.ConfigDict(extra="forbid")

    def build(self) -> tp.Callable:
        """
        Build the SSE loss function.

        Returns:
            tp.Callable: Maps (model, data) to (loss, solve validity flag).
        """
        scale = self.scale

        def sse_loss(
            model: eqx.Module,
            data_i: tp.Tuple[jnp.ndarray, jnp.ndarray, jnp.ndarray],
        ) -> tp.Tuple[jax.Array, jax.Array]:
            residuals, valid = _scaled_residuals(model, data_i, scale)
            return jnp.sum(residuals**2), valid

        return sse_loss


class MSELossCfg(pydantic.BaseModel):
    """
    Configuration for Mean Squared Error (MSE) loss.
    """

    name: tp.Literal["MSE"] = pydantic.Field("MSE")
    scale: tp.Literal["population", "none"] = "population"

    model_config = pydantic.ConfigDict(extra="forbid")

    def build(self) -> tp.Callable:
        """
        Build the MSE loss function.

        Returns:
            tp.Callable: Maps (model, data) to (loss, solve validity flag).
        """
        scale = self.scale

        def mse_loss(
            model: eqx.Module,
            data_i: tp.Tuple[jnp.ndarray, jnp.ndarray, jnp.ndarray],
        ) -> tp.Tuple[jax.Array, jax.Array]:
            residuals, valid = _scaled_residuals(model, data_i, scale)
            return jnp.mean(residuals**2), valid

        return mse_loss
