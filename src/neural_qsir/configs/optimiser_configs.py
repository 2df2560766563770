import pydantic
import typing as tp

import optax


class OptimiserCfg(pydantic.BaseModel):
    """
    Configuration for the Optimiser in Optax. The learning rate is constant.
    """

    name: tp.Literal["adam", "adamw", "sgd"] = pydantic.Field(
        "adam", description="Name of the optimizer"
    )
    weight_decay: float = 0.0
    gradient_clipping: bool = pydantic.Field(False, description="Gradient clipping")
    max_norm: float = pydantic.Field(
        1.0, gt=0, description="Global norm used when clipping gradients"
    )

    model_config = pydantic.ConfigDict(extra="forbid")

    def build(
        self, learning_rate: float
    ) -> tp.Tuple[optax.GradientTransformation, optax.Schedule]:
        """Builds the optimizer and its constant schedule."""
        optimiser_cls = getattr(optax, self.name)
        schedule = optax.constant_schedule(learning_rate)
        if self.name == "adamw":
            optimiser = optimiser_cls(
                learning_rate=schedule, weight_decay=self.weight_decay
            )
        else:
            optimiser = optimiser_cls(learning_rate=schedule)
        if self.gradient_clipping:
            optimiser = optax.chain(
                optax.clip_by_global_norm(self.max_norm),
                optimiser,
            )
        return (
            optimiser,
            schedule,
        )
