"""
Base command class for nusgen CLI.

Provides abstract interface and shared functionality for CLI commands.
"""

from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace
import logging
from pathlib import Path
from typing import Optional, Dict, Any
import sys

LOG_FORMATS = {
    "plain": "%(levelname)s: %(message)s",
    "structured": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}


class CLICommand(ABC):
    """
    Abstract base class for CLI commands.

    Subclasses implement specific commands (generate, validate, presets).
    Uses Command pattern for clean separation and testability.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Command name (e.g., 'generate')."""
        pass

    @property
    @abstractmethod
    def help(self) -> str:
        """Short help text for command."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Detailed command description."""
        pass

    @abstractmethod
    def add_arguments(self, parser: ArgumentParser) -> None:
        """
        Add command-specific arguments to parser.

        Args:
            parser: ArgumentParser for this command
        """
        pass

    @abstractmethod
    def execute(self, args: Namespace) -> int:
        """
        Execute the command.

        Args:
            args: Parsed command-line arguments

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        pass

    def error(self, message: str, exit_code: int = 1) -> int:
        """Print error message to stderr and return exit code."""
        print(f"Error: {message}", file=sys.stderr)
        return exit_code

    def validate_file_exists(self, path: Path, description: str = "File") -> bool:
        """
        Validate that a file exists.

        Returns:
            True if file exists, False otherwise (with error printed)
        """
        if not path.exists():
            print(f"Error: {description} not found: {path}", file=sys.stderr)
            return False
        return True

    def setup_logging(self, level: str = "WARNING", fmt: str = "plain") -> None:
        """Configure root logging (always to stderr, stdout may carry a schedule)."""
        logging.basicConfig(
            level=getattr(logging, level),
            format=LOG_FORMATS[fmt],
            stream=sys.stderr,
            force=True,
        )


class ConfigurableCommand(CLICommand):
    """
    Base class for commands that load and apply configuration.

    Provides utilities for loading configs and applying CLI overrides.
    """

    def load_config(
        self,
        config_path: Path,
        runtime_params: Optional[Dict[str, Any]] = None,
        verbose: bool = False
    ) -> Optional[Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to configuration file
            runtime_params: Values for ${name} placeholders
            verbose: Print loading information

        Returns:
            Loaded ScheduleConfig or None on error
        """
        from nusgen.config import load_config

        if not self.validate_file_exists(config_path, "Configuration file"):
            return None

        if verbose:
            print(f"Loading configuration from: {config_path}", file=sys.stderr)

        try:
            return load_config(config_path, runtime_params)
        except ValueError as e:
            print(f"Error: Failed to load configuration: {e}", file=sys.stderr)
            return None

    def apply_overrides(
        self,
        config: Any,
        overrides: Dict[str, Any],
        verbose: bool = False
    ) -> Any:
        """
        Apply CLI overrides to configuration.

        The overridden configuration is validated again as a whole, so an
        override can never leave the config in an invalid state.

        Args:
            config: ScheduleConfig object
            overrides: Dictionary of override_path -> value (None values
                are skipped)
            verbose: Print applied overrides

        Returns:
            New validated ScheduleConfig

        Raises:
            ValueError: If a path is unknown or the result fails validation

        Example:
            >>> overrides = {
            ...     "output.path": Path("/tmp/schedule.txt"),
            ...     "grid.density": 0.1
            ... }
            >>> config = command.apply_overrides(config, overrides)
        """
        from nusgen.config import ScheduleConfig

        data = config.model_dump()

        for path, value in overrides.items():
            if value is None:
                continue

            # Split dotted path into components
            parts = path.split('.')
            obj = data

            # Navigate to parent mapping
            for part in parts[:-1]:
                if not isinstance(obj.get(part), dict):
                    raise ValueError(f"Unknown config path: {path}")
                obj = obj[part]

            if parts[-1] not in obj:
                raise ValueError(f"Unknown config attribute: {path}")
            obj[parts[-1]] = value

            if verbose:
                print(f"  Override: {path} = {value}", file=sys.stderr)

        try:
            return ScheduleConfig(**data)
        except ValueError as e:
            raise ValueError(f"Invalid configuration after overrides:\n{e}")
