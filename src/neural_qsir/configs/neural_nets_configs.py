import typing as tp

import equinox as eqx
import jax.random as jr
import pydantic

from ..models import neural_nets


class QuarantineNetCfg(pydantic.BaseModel):
    """
    Configuration for the quarantine strength approximator.
    """

    name: tp.Literal["QuarantineNet"] = pydantic.Field(
        "QuarantineNet", description="Name of Model"
    )
    hidden_dim: int = pydantic.Field(10, ge=1, description="Number of hidden units")
    q_max: float = pydantic.Field(
        1.0, gt=0, description="Upper bound of the quarantine strength"
    )
    model_config = pydantic.ConfigDict(extra="forbid")

    def build(
        self,
        population: float,
        initial_strength: tp.Optional[float],
        nn_key: jr.PRNGKey,
    ) -> eqx.Module:
        """
        Builds and returns an instance of the approximator.

        Args:
            population (float): Population used to normalise the inputs.
            initial_strength (float | None): Constant initial guess of Q.
            nn_key (jr.PRNGKey): The key for the weights.

        Returns:
            eqx.Module: An instance of the approximator.
        """
        neural_net_cls = getattr(neural_nets, self.name)
        return neural_net_cls(
            population=population,
            hidden_dim=self.hidden_dim,
            q_max=self.q_max,
            initial_strength=initial_strength,
            key=nn_key,
        )
