"""Configuration management for tinyfeed."""

import os
from dataclasses import dataclass, field

# Single tunable for the number of rendered items
DEFAULT_LIMIT = 49
DEFAULT_NAME = "tinyfeed"
DEFAULT_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class Config:
    """Run configuration threaded through the fetch, merge and render steps."""

    sources: list[str] = field(default_factory=list)
    name: str = DEFAULT_NAME
    limit: int = DEFAULT_LIMIT
    template_path: str = ""
    stylesheet: str = ""
    allow_images: bool = True
    timeout: float = DEFAULT_TIMEOUT
    parallel: int = 1
    output_path: str = ""
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration from environment variables.

        Unset variables fall back to the built-in defaults. Command line
        flags are applied on top of the returned object by the CLI.

        Raises:
            ValueError: If a variable is malformed or out of range
        """
        config = cls(
            name=os.getenv("TINYFEED_NAME", DEFAULT_NAME),
            limit=_int_env("TINYFEED_LIMIT", DEFAULT_LIMIT),
            template_path=os.getenv("TINYFEED_TEMPLATE", ""),
            stylesheet=os.getenv("TINYFEED_STYLESHEET", ""),
            timeout=_float_env("TINYFEED_TIMEOUT", DEFAULT_TIMEOUT),
            parallel=_int_env("TINYFEED_PARALLEL", 1),
            log_level=(
                os.getenv("LOG_LEVEL", "").strip().upper() or DEFAULT_LOG_LEVEL
            ),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ValueError: If a value is out of range
        """
        if self.limit < 1:
            raise ValueError(f"limit must be a positive integer, got {self.limit}")
        if self.parallel < 1:
            raise ValueError(
                f"parallel must be a positive integer, got {self.parallel}"
            )
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, "
                f"got {self.log_level!r}"
            )


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer: {value!r}") from e


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"{name} must be a number: {value!r}") from e
