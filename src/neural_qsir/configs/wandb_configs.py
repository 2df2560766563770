import typing as tp

import pydantic
import wandb


class WandBConfig(pydantic.BaseModel):
    """
    Configuration for Weights&Biases parameters and logging.
    """

    project: str = pydantic.Field(
        "neural-qsir", description="Name of Weights&Biases Project"
    )
    mode: tp.Literal["online", "offline", "disabled"] = pydantic.Field(
        "disabled", description="Disabled runs log nothing and need no account"
    )
    tags: tp.List[str] = pydantic.Field(default_factory=list)

    model_config = pydantic.ConfigDict(extra="forbid")

    def init(self, name: str, config: tp.Dict[str, tp.Any]):
        """Starts a run for one region."""
        return wandb.init(
            project=self.project,
            mode=self.mode,
            name=name,
            tags=self.tags,
            config=config,
        )
