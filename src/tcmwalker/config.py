"""Configuration for tcmwalker."""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

# Descriptor files expected in the config directory
HOST_DESCRIPTOR = "host.xml"
PROC_DESCRIPTOR = "proc.xml"
DEPLOY_DESCRIPTOR = "procdeploy.xml"
DESCRIPTOR_FILES = (DEPLOY_DESCRIPTOR, HOST_DESCRIPTOR, PROC_DESCRIPTOR)

# Store tables
HOSTS_TABLE = "hosts"
PROCS_TABLE = "procs"
DEPLOY_TABLE = "deploy"

# Address syntax
WILDCARD = "*"
SEPARATOR = "."
ADDRESS_SEGMENTS = 4
ALL_ADDRESS = SEPARATOR.join([WILDCARD] * ADDRESS_SEGMENTS)

# Host used by cluster-level deploy groups that name no host
BUILTIN_HOST_NAME = "TcmHost"
BUILTIN_HOST_IP = "127.0.0.1"

# Viewer
TAB_WIDTH = 2

ENV_CONFIG_PATH = "TCMWALKER_CONFIG_PATH"
ENV_DB_PATH = "TCMWALKER_DB_PATH"
ENV_LOG_FILE = "TCMWALKER_LOG_FILE"


def default_db_path() -> Path:
    """Temporary database file, removed again when the session ends."""
    return Path(tempfile.gettempdir()) / "tcmwalker.db"


def default_log_file() -> Path:
    """Get the default log file path."""
    return Path(tempfile.gettempdir()) / "tcmwalker.log"


@dataclass(slots=True, frozen=True)
class Settings:
    """Runtime settings resolved from the command line and environment."""

    config_path: Path = Path("./")
    db_path: Path = field(default_factory=default_db_path)
    log_file: Path = field(default_factory=default_log_file)
    debug: bool = False

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """
        Build settings from TCMWALKER_* environment variables.

        Keyword overrides that are not None take precedence.
        """
        values = {}
        env_map = {
            "config_path": ENV_CONFIG_PATH,
            "db_path": ENV_DB_PATH,
            "log_file": ENV_LOG_FILE,
        }
        for name, var in env_map.items():
            raw = os.environ.get(var)
            if raw:
                values[name] = Path(raw)
        for name, value in overrides.items():
            if value is not None:
                values[name] = Path(value) if name in env_map else value
        return cls(**values)
