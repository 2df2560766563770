class QSIRFitError(Exception):
    """
    Base class for errors that terminate the fit of a single region.
    """


class DataShapeError(QSIRFitError):
    """
    Observation arrays have mismatched lengths, wrong rank, non-finite values or
    a time grid that is not strictly increasing.
    """


class IntegrationDivergenceError(QSIRFitError):
    """
    The solver failed or produced non-finite / out-of-bounds compartment values.
    """


class OptimizationDivergenceError(QSIRFitError):
    """
    The training loss or its gradient became non-finite.
    """


class DataLoadError(QSIRFitError):
    """
    The observation source is missing, unreadable or in an unsupported format.
    """
