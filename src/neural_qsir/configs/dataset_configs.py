import pydantic
import typing as tp
import logging

from ..dataset import ObservationSeries, QSIRSyntheticDataset, load_observations

logger = logging.getLogger(__name__)


class FileDataSetCfg(pydantic.BaseModel):
    """
    Observations read from a ``.npz``, ``.json`` or ``.csv`` file.
    """

    name: tp.Literal["file"] = pydantic.Field(..., description="Kind of data source")
    path: str = pydantic.Field(..., description="File holding infected, recovered, dead, t")

    model_config = pydantic.ConfigDict(extra="forbid")

    def build(self) -> ObservationSeries:
        return load_observations(self.path)


class InlineDataSetCfg(pydantic.BaseModel):
    """
    Observations given directly in the configuration.
    """

    name: tp.Literal["inline"] = pydantic.Field(..., description="Kind of data source")
    infected: tp.List[float]
    recovered: tp.List[float]
    dead: tp.List[float]
    t: tp.List[float]

    model_config = pydantic.ConfigDict(extra="forbid")

    def build(self) -> ObservationSeries:
        return ObservationSeries(
            infected=self.infected, recovered=self.recovered, dead=self.dead, t=self.t
        )


class SyntheticDataSetCfg(pydantic.BaseModel):
    """
    Configuration of observations simulated from the QSIR system with constant Q.
    """

    name: tp.Literal["synthetic"] = pydantic.Field(
        ..., description="Kind of data source"
    )
    population: float = pydantic.Field(..., gt=0)
    initial_state: tp.Tuple[float, float, float, float] = pydantic.Field(
        ..., description="Initial (S0, I0, R0, Q0) of the simulation"
    )
    beta: float = pydantic.Field(0.5, ge=0, description="Transmission rate")
    gamma: float = pydantic.Field(0.1, ge=0, description="Recovery rate")
    delta: float = pydantic.Field(0.05, ge=0, description="Quarantine exit rate")
    quarantine: float = pydantic.Field(
        0.3, ge=0, description="Constant quarantine strength"
    )
    num_days: int = pydantic.Field(60, ge=2, description="Number of daily observations")
    noise_std: float = pydantic.Field(
        0.0, ge=0, description="Standard deviation of multiplicative noise"
    )
    death_fraction: float = pydantic.Field(
        0.0, ge=0, le=1, description="Share of removed individuals reported as dead"
    )
    seed: int = 1234

    model_config = pydantic.ConfigDict(extra="forbid")

    def build(self) -> ObservationSeries:
        return QSIRSyntheticDataset(self).observations()


DataSetCfg = tp.Annotated[
    tp.Union[FileDataSetCfg, InlineDataSetCfg, SyntheticDataSetCfg],
    pydantic.Field(discriminator="name"),
]
