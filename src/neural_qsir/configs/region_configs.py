import pydantic
import typing as tp


class RegionCfg(pydantic.BaseModel):
    """
    Per-region presets: population, initial conditions and initial guesses.
    """

    name: str = pydantic.Field(..., description="Name of the region")
    population: float = pydantic.Field(
        ..., gt=0, description="Population size N of the region"
    )
    initial_state: tp.Tuple[float, float, float, float] = pydantic.Field(
        ..., description="Initial (S0, I0, R0, Q0)"
    )
    initial_parameters: tp.Tuple[float, float, float] = pydantic.Field(
        ..., description="Initial guess of (beta, gamma, delta)"
    )
    iterations: int = pydantic.Field(
        ..., ge=1, description="Number of training iterations"
    )
    learning_rate: float = pydantic.Field(0.01, gt=0, description="Learning rate")
    initial_quarantine: tp.Optional[float] = pydantic.Field(
        default=None,
        description="Initial constant guess of Q(t); random initialisation if None",
    )

    model_config = pydantic.ConfigDict(extra="forbid")
