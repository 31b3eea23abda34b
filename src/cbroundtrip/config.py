import logging
from pathlib import Path
from typing import TypedDict

import yaml

# Get a logger with this module's name to help with debugging
logger = logging.getLogger(__name__)

REQUIRED_KEYS = ["cb_host", "cb_user", "cb_password"]

DEFAULTS = {
    "cb_bucket": "travel-sample",
    "cb_scope": "_default",
    "cb_collection": "_default",
    "cb_sasl_mechanisms": ["PLAIN"],
    "cb_wait_until_ready_seconds": 5,
}


class ClusterConfig(TypedDict):
    """Everything needed to reach the collection the airline is stored in"""

    cb_host: str
    cb_user: str
    cb_password: str
    cb_bucket: str
    cb_scope: str
    cb_collection: str
    cb_sasl_mechanisms: list[str]
    cb_wait_until_ready_seconds: float


def get_credentials(path: Path) -> ClusterConfig:
    """
    Loads a YAML config file from the given path.

    Returns a ClusterConfig with the optional values filled in from DEFAULTS
    """

    # Check the file exists
    if not path.is_file():
        raise FileNotFoundError(f"Credentials file can not be found: {path}")

    # Load the file
    with path.open() as file:
        try:
            data = yaml.load(file, yaml.SafeLoader) or {}
        except yaml.YAMLError as _e:
            raise ValueError(f"Credentials file {path} is not valid YAML: {_e}") from _e
    if not isinstance(data, dict):
        raise ValueError(
            f"Credentials file {path} must contain a mapping, got {type(data).__name__}"
        )

    # Check that nothing's missing
    for key in REQUIRED_KEYS:
        if key not in data:
            logger.error(f"Missing required field {key} in config file {path}")
            raise KeyError(key)

    config = {**DEFAULTS, **data}
    # yaml turns an all digit password into an int, the authenticator wants str
    for key in REQUIRED_KEYS:
        config[key] = str(config[key])
    config["cb_sasl_mechanisms"] = parse_sasl_mechanisms(config["cb_sasl_mechanisms"])
    config["cb_wait_until_ready_seconds"] = float(config["cb_wait_until_ready_seconds"])
    return ClusterConfig(**{key: config[key] for key in ClusterConfig.__annotations__})


def parse_sasl_mechanisms(mechanisms) -> list[str]:
    """Accepts a list or a comma separated string, e.g. "PLAIN,SCRAM-SHA512" """
    if isinstance(mechanisms, str):
        mechanisms = mechanisms.split(",")
    parsed = [str(m).strip().upper() for m in mechanisms if str(m).strip()]
    if not parsed:
        raise ValueError("cb_sasl_mechanisms must name at least one SASL mechanism")
    return parsed
