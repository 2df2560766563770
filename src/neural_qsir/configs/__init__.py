from .wandb_configs import WandBConfig
from .region_configs import RegionCfg
from .neural_nets_configs import QuarantineNetCfg
from .model_configs import QSIRNeuralODECfg
from .optimiser_configs import OptimiserCfg
from .loss_configs import SSELossCfg, MSELossCfg
from .dataset_configs import (
    DataSetCfg,
    FileDataSetCfg,
    InlineDataSetCfg,
    SyntheticDataSetCfg,
)
