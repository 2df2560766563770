import pydantic
import typing as tp

import jax.random as jr

from .neural_nets_configs import QuarantineNetCfg
from .region_configs import RegionCfg

from ..models import QSIRNeuralODE
from ..models.vector_fields import QSIRVectorField


class QSIRNeuralODECfg(pydantic.BaseModel):
    """
    Configuration for the neural-augmented QSIR model.
    """

    name: tp.Literal["qsir_neural_ode"] = pydantic.Field(
        "qsir_neural_ode", description="Name of Model"
    )
    quarantine_net: QuarantineNetCfg = pydantic.Field(default_factory=QuarantineNetCfg)
    method: tp.Literal[
        "Tsit5",
        "Dopri5",
        "Dopri8",
    ] = pydantic.Field(default="Tsit5")
    rtol: float = pydantic.Field(1e-6, gt=0)
    atol: float = pydantic.Field(1e-6, gt=0)
    adjoint: tp.Literal["backsolve", "recursive_checkpoint"] = pydantic.Field(
        default="backsolve",
        description="Continuous adjoint or discretise-then-optimise gradients",
    )
    max_steps: int = pydantic.Field(4096, ge=1)
    bound_tolerance: float = pydantic.Field(
        1e-3,
        ge=0,
        description="Allowed overshoot outside [0, N] as a fraction of N",
    )

    model_config = pydantic.ConfigDict(extra="forbid")

    def build(self, region: RegionCfg, model_key: jr.PRNGKey) -> QSIRNeuralODE:
        """
        Builds the QSIRNeuralODE model from the region's initial guesses.

        Args:
            region (RegionCfg): Population and initial parameter guesses.
            model_key (jr.PRNGKey): The random key for model initialization.

        Returns:
            QSIRNeuralODE: The initialized model.
        """
        (nn_key,) = jr.split(model_key, 1)
        quarantine = self.quarantine_net.build(
            region.population, region.initial_quarantine, nn_key
        )
        beta, gamma, delta = region.initial_parameters
        vector_field = QSIRVectorField(
            beta=beta,
            gamma=gamma,
            delta=delta,
            quarantine=quarantine,
            population=region.population,
        )
        return QSIRNeuralODE(
            vector_field,
            method=self.method,
            rtol=self.rtol,
            atol=self.atol,
            adjoint=self.adjoint,
            max_steps=self.max_steps,
            bound_tolerance=self.bound_tolerance,
        )
