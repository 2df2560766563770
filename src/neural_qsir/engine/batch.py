import logging
import typing as tp
from concurrent.futures import ThreadPoolExecutor

import jax

from ..errors import QSIRFitError
from .results import FitResult
from .trainer import Trainer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def _fit_one(trainer: Trainer) -> tp.Union[FitResult, QSIRFitError]:
    try:
        return trainer.fit()
    except QSIRFitError as e:
        logger.error(f"Fit of region {trainer.region.name} aborted: {e!r}")
        return e


def fit_regions(
    trainers: tp.Sequence[Trainer], workers: int = 1
) -> tp.Dict[str, tp.Union[FitResult, QSIRFitError]]:
    """
    Fit independent regions, sequentially or in a thread pool.

    A numerical or data failure of one region is logged and recorded in the
    returned mapping; the other regions are still fitted.

    Args:
        trainers (tp.Sequence[Trainer]): One trainer per region.
        workers (int): Number of regions fitted concurrently.

    Returns:
        dict: Region name to its FitResult or to the error that ended its fit.
    """
    names = [trainer.region.name for trainer in trainers]
    if len(set(names)) != len(names):
        raise ValueError(f"Region names must be unique, got {names}")

    precisions = {trainer.enable_x64 for trainer in trainers}
    if len(precisions) > 1:
        raise ValueError("All regions of a batch must use the same precision")
    if precisions:
        # The precision flag is process-wide, set it before any worker starts.
        jax.config.update("jax_enable_x64", precisions.pop())

    if workers <= 1:
        outcomes = [_fit_one(trainer) for trainer in trainers]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(_fit_one, trainers))

    report = dict(zip(names, outcomes))
    failed = [name for name, outcome in report.items() if isinstance(outcome, QSIRFitError)]
    logger.info(
        f"Fitted {len(report) - len(failed)} of {len(report)} regions"
        + (f", failed: {failed}" if failed else "")
    )
    return report
