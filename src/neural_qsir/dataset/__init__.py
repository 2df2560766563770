from .observations import ObservationSeries, load_observations, validate_observations
from .ode_dataset import QSIRSyntheticDataset
