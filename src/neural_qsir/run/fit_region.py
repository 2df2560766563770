import sys
import yaml
import logging
import json

from neural_qsir.engine.trainer import Trainer


logger = logging.getLogger("fit_region")
logger.setLevel(logging.INFO)


def main(config_path: str):
    with open(config_path, "r") as file:
        config_yaml = yaml.safe_load(file)

    logger.info(json.dumps(config_yaml, indent=4))

    trainer = Trainer(**config_yaml)
    result = trainer.run()
    logger.info(json.dumps(result.summary(), indent=4))
    return result


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "configs/regions/synthetic.yaml")
