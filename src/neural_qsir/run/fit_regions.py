import sys
import yaml
import logging
import json
import typing as tp

from neural_qsir.engine.batch import fit_regions
from neural_qsir.engine.trainer import Trainer
from neural_qsir.errors import QSIRFitError


logger = logging.getLogger("fit_regions")
logger.setLevel(logging.INFO)


def build_trainers(config_yaml: tp.Dict[str, tp.Any]) -> tp.List[Trainer]:
    """
    One trainer per entry of ``regions``; top-level keys of ``defaults`` are
    overridden by the keys given for a region.
    """
    defaults = config_yaml.get("defaults", {})
    return [Trainer(**{**defaults, **entry}) for entry in config_yaml["regions"]]


def main(config_path: str):
    with open(config_path, "r") as file:
        config_yaml = yaml.safe_load(file)

    trainers = build_trainers(config_yaml)
    report = fit_regions(trainers, workers=config_yaml.get("workers", 1))

    for name, outcome in report.items():
        if isinstance(outcome, QSIRFitError):
            logger.error(f"{name}: {type(outcome).__name__}: {outcome}")
        else:
            logger.info(f"{name}: {json.dumps(outcome.summary())}")
    return report


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "configs/regions/batch.yaml")
