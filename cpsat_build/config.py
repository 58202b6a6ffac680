import copy
import os
from dataclasses import dataclass

import toml

from .cli_logger import logger
from .errors import InvalidConfiguration

CONFIG_FILE = "cpsat-build.toml"

DEFAULT_CONFIG = {
    "ortools": {
        "version": "9.12",
        "patch": "4544",
        "host": "github.com",
        "org": "google",
        "project": "or-tools",
        # seconds; 0 means wait forever
        "timeout": 0,
    },
    "shim": {
        "source": "src/cp_sat_wrapper.cpp",
        "library": "cp_sat_wrapper",
        "std": "c++20",
    },
    "schema": {
        "compiler": "protoc",
        "protos": ["src/cp_model.proto", "src/sat_parameters.proto"],
        "includes": ["src/"],
        "out_flag": "--python_out",
    },
}


@dataclass(frozen=True)
class BuildSettings:
    version: str
    patch: str
    host: str
    org: str
    project: str
    timeout: float
    shim_source: str
    shim_library: str
    cxx_std: str
    schema_compiler: str
    protos: tuple
    proto_includes: tuple
    schema_out_flag: str

    @classmethod
    def from_config(cls, conf):
        merged = merge_config(DEFAULT_CONFIG, conf)
        ortools, shim, schema = merged["ortools"], merged["shim"], merged["schema"]
        try:
            timeout = float(ortools["timeout"])
        except (TypeError, ValueError):
            raise InvalidConfiguration(f"ortools.timeout must be a number, got {ortools['timeout']!r}")
        return cls(
            version=str(ortools["version"]),
            patch=str(ortools["patch"]),
            host=ortools["host"],
            org=ortools["org"],
            project=ortools["project"],
            timeout=timeout,
            shim_source=shim["source"],
            shim_library=shim["library"],
            cxx_std=shim["std"],
            schema_compiler=schema["compiler"],
            protos=tuple(schema["protos"]),
            proto_includes=tuple(schema["includes"]),
            schema_out_flag=schema["out_flag"],
        )


def merge_config(defaults, overrides):
    """Return a deep copy of ``defaults`` with ``overrides`` applied table by table."""
    merged = copy.deepcopy(defaults)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    if not os.path.exists(config_path):
        logger.debug(f"No {CONFIG_FILE} at {config_path}, using defaults")
        return {}
    logger.info(f"Loading configuration from {config_path}")
    try:
        with open(config_path, "r") as f:
            return toml.load(f)
    except toml.TomlDecodeError as e:
        raise InvalidConfiguration(f"cannot parse {CONFIG_FILE}: {e}", path=config_path)
    except IOError as e:
        raise InvalidConfiguration(f"cannot read {CONFIG_FILE}: {e}", path=config_path)


def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False
    return True


def load_settings(path="."):
    return BuildSettings.from_config(load_config(path))
