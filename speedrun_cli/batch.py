"""
Batch file loading for the ``transfers`` command.
"""
from pathlib import Path
from typing import List, Union

import yaml
from pydantic import ValidationError

from speedrun_e2e.exceptions import ConfigurationError
from speedrun_e2e.models import TransferSpec


def load_transfer_specs(path: Union[str, Path]) -> List[TransferSpec]:
    """
    Read a YAML list of ``{src, dst, asset, amount, fee}`` entries.

    Raises:
        ConfigurationError: If the file is missing, not a list, or has invalid entries
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read batch file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, list):
        raise ConfigurationError("YAML file must contain an array of transfer configurations")

    specs = []
    for position, entry in enumerate(data, start=1):
        try:
            specs.append(TransferSpec.model_validate(entry))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid transfer #{position} in {path}: {e}") from e
    return specs
