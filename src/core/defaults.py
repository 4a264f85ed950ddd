"""
Default query keys.

Commands run without explicit ids fall back to the keys listed in a YAML
defaults file, or to the built-in lists when no file is present.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from src.core.errors import ConfigurationError
from src.observability.logger import get_logger

logger = get_logger(__name__)

BUILTIN_PAYROLL_RUN_IDS = ["payrun_d72ac493-2644-4824-a110-380b86314be5"]
BUILTIN_EMPLOYER_IDS = [
    "er_369feceb-bfb1-484b-b966-0a31fad6de3c",
    "er_ea769d6a-6b9f-425b-8b09-94f7c6762887",
]

DEFAULT_DEFAULTS_PATH = "config/defaults.yaml"


class RunDefaults(BaseModel):
    """Query keys used when a command is given no ids."""

    payroll_run_ids: list[str] = Field(default_factory=lambda: list(BUILTIN_PAYROLL_RUN_IDS))
    employer_ids: list[str] = Field(default_factory=lambda: list(BUILTIN_EMPLOYER_IDS))


class DefaultsLoader:
    """
    Loads default query keys from a YAML file.

    Expected YAML format:
    ```yaml
    defaults:
      payroll_run_ids:
        - payrun_...
      employer_ids:
        - er_...
    ```
    Lists omitted from the file keep their built-in values.
    """

    def __init__(self, config_path: str | Path = DEFAULT_DEFAULTS_PATH):
        self.config_path = Path(config_path)

    def load(self) -> RunDefaults:
        """
        Load defaults, falling back to built-in lists if the file is absent.

        Raises:
            ConfigurationError: If the file exists but is not valid
        """
        if not self.config_path.exists():
            logger.debug(f"Defaults file not found: {self.config_path}, using built-in defaults")
            return RunDefaults()

        try:
            with open(self.config_path) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not config or "defaults" not in config:
            raise ConfigurationError(
                f"Defaults file {self.config_path} must contain a 'defaults' section"
            )

        section = config["defaults"] or {}
        try:
            return RunDefaults(**section)
        except (TypeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid defaults in {self.config_path}: {e}") from e
