"""
Configuration
=============
Loads environment variables from .env file using python-dotenv, then layers
an optional per-project YAML file and CLI overrides on top.

Environment Variables:
    TYPE_CHECK_COMMAND           — Explicit type-check command (default: auto-resolved)
    TYPE_CHECK_TIMEOUT           — First attempt timeout in seconds (default: 45)
    TYPE_CHECK_TIMEOUT_STEP      — Timeout added per retry (default: 15)
    TYPE_CHECK_RETRIES           — Max type-check attempts (default: 3)
    TYPE_CHECK_RETRY_DELAY       — Seconds to wait between attempts (default: 5)
    MAX_ALLOWED_INCREASE         — Tolerated diagnostic increase per run (default: 1)
    MAX_ITERATIONS_PER_STRATEGY  — Runs of one strategy before moving on (default: 3)
    STRATEGY_TIMEOUT             — Max seconds a single strategy run may take (default: 120)
    STRATEGY_DELAY               — Pause between strategy runs (default: 1.0)
    REPORT_FILENAME              — JSON report name at project root
    BACKUP_DIR                   — Backup directory relative to project root

Precedence:
    env defaults  <  YAML file (.tsheal.yml or --config)  <  CLI overrides

Retry Philosophy:
    The type checker is the slowest collaborator. Each retry gets a longer
    timeout (45s, 60s, 75s) so a cold compiler cache can still finish,
    while a hung process never blocks the loop forever.
"""
import os
import shlex
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from healer.core.errors import ConfigError

load_dotenv()

TYPE_CHECK_COMMAND = os.getenv("TYPE_CHECK_COMMAND", "")
TYPE_CHECK_TIMEOUT = float(os.getenv("TYPE_CHECK_TIMEOUT", 45))
TYPE_CHECK_TIMEOUT_STEP = float(os.getenv("TYPE_CHECK_TIMEOUT_STEP", 15))
TYPE_CHECK_RETRIES = int(os.getenv("TYPE_CHECK_RETRIES", 3))
TYPE_CHECK_RETRY_DELAY = float(os.getenv("TYPE_CHECK_RETRY_DELAY", 5))

# Rollback tolerance
MAX_ALLOWED_INCREASE = int(os.getenv("MAX_ALLOWED_INCREASE", 1))

# Loop bounds
MAX_ITERATIONS_PER_STRATEGY = int(os.getenv("MAX_ITERATIONS_PER_STRATEGY", 3))
STRATEGY_TIMEOUT = float(os.getenv("STRATEGY_TIMEOUT", 120))
STRATEGY_DELAY = float(os.getenv("STRATEGY_DELAY", 1.0))

# Output locations (relative to project root)
REPORT_FILENAME = os.getenv("REPORT_FILENAME", "error-resolution-report.json")
MARKDOWN_FILENAME = os.getenv("MARKDOWN_FILENAME", "error-resolution-report.md")
BACKUP_DIR = os.getenv("BACKUP_DIR", ".error-fix-backups")
LOG_DIR = os.getenv("LOG_DIR", "logs")

# Per-project YAML override file
PROJECT_CONFIG_FILENAME = ".tsheal.yml"


class Settings(BaseModel):
    """Resolved settings for one orchestration run."""

    model_config = ConfigDict(extra="forbid")

    project_root: str
    type_check_command: Optional[List[str]] = None
    type_check_timeout: float = Field(default=TYPE_CHECK_TIMEOUT, gt=0)
    type_check_timeout_step: float = Field(default=TYPE_CHECK_TIMEOUT_STEP, ge=0)
    type_check_retries: int = Field(default=TYPE_CHECK_RETRIES, ge=1)
    type_check_retry_delay: float = Field(default=TYPE_CHECK_RETRY_DELAY, ge=0)
    max_allowed_increase: int = Field(default=MAX_ALLOWED_INCREASE, ge=0)
    max_iterations_per_strategy: int = Field(default=MAX_ITERATIONS_PER_STRATEGY, ge=1)
    strategy_timeout: float = Field(default=STRATEGY_TIMEOUT, gt=0)
    strategy_delay: float = Field(default=STRATEGY_DELAY, ge=0)
    dry_run: bool = False
    create_backup: bool = True
    write_report: bool = True
    write_markdown: bool = False
    report_filename: str = REPORT_FILENAME
    markdown_filename: str = MARKDOWN_FILENAME
    backup_dir: str = BACKUP_DIR
    log_dir: str = LOG_DIR
    disabled_strategies: List[str] = Field(default_factory=list)

    @field_validator("type_check_command", mode="before")
    @classmethod
    def split_command(cls, v: Any) -> Any:
        if isinstance(v, str):
            return shlex.split(v) or None
        return v

    @field_validator("project_root")
    @classmethod
    def absolute_root(cls, v: str) -> str:
        return os.path.abspath(v)

    @property
    def report_path(self) -> str:
        return os.path.join(self.project_root, self.report_filename)

    @property
    def markdown_path(self) -> str:
        return os.path.join(self.project_root, self.markdown_filename)

    @property
    def excluded_paths(self) -> List[str]:
        """Paths git checkpoints must never stage or clean."""
        return [self.backup_dir, self.log_dir, self.report_filename, self.markdown_filename]


def _read_yaml_config(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_settings(
    project_root: str = ".",
    config_file: Optional[str] = None,
    **overrides: Any,
) -> Settings:
    """
    Build Settings for a project.

    Parameters
    ----------
    project_root : str
        Root of the TypeScript project (the git working tree).
    config_file : str | None
        Explicit YAML file. When None, ``.tsheal.yml`` in the project root
        is used if present.
    **overrides
        Values from the CLI / API. ``None`` values are ignored.

    Returns
    -------
    Settings

    Raises
    ------
    ConfigError
        If the YAML file is unreadable or any value fails validation.
    """
    values: dict = {}
    if TYPE_CHECK_COMMAND:
        values["type_check_command"] = TYPE_CHECK_COMMAND

    path = config_file or os.path.join(project_root, PROJECT_CONFIG_FILENAME)
    if config_file or os.path.isfile(path):
        values.update(_read_yaml_config(path))

    values.update({k: v for k, v in overrides.items() if v is not None})
    values["project_root"] = project_root

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
