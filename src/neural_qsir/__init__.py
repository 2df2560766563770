from .errors import (
    QSIRFitError,
    DataShapeError,
    DataLoadError,
    IntegrationDivergenceError,
    OptimizationDivergenceError,
)
