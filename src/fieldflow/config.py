"""Configuration file support for FieldFlow.

Supports YAML config files for the well registry source, record storage,
export output and the attendant roster. CLI flags override config values.
"""

from dataclasses import asdict, dataclass, field, fields as dataclass_fields
import logging
from pathlib import Path
from typing import ClassVar, Literal

import yaml

from .data.registry import DEFAULT_ATTENDANTS, DEFAULT_SOURCE

logger = logging.getLogger(__name__)


@dataclass
class RegistryConfig:
    """Well registry settings.

    Attributes:
        source: Path or http(s) URL of the well master table
        timeout: HTTP timeout in seconds when the source is a URL
        duplicate_policy: 'last_wins' (repeated field/well rows: last one
            answers lookups) or 'reject' (repeated rows are dropped)
    """
    source: str = DEFAULT_SOURCE
    timeout: float = 30.0
    duplicate_policy: Literal["last_wins", "reject"] = "last_wins"


@dataclass
class StorageConfig:
    """Record storage settings.

    Attributes:
        backend: 'sqlite' for a persistent database or 'memory' for a
            throwaway in-process store
        path: SQLite database path (None = ~/.fieldflow/fieldflow.db)
    """
    backend: Literal["sqlite", "memory"] = "sqlite"
    path: str | None = None


@dataclass
class ExportConfig:
    """Export settings.

    Attributes:
        output_dir: Directory export files are written to
    """
    output_dir: str = "exports"


@dataclass
class RosterConfig:
    """Attendant roster offered on every form."""
    attendants: list[str] = field(default_factory=lambda: list(DEFAULT_ATTENDANTS))


@dataclass
class FieldFlowConfig:
    """Complete FieldFlow configuration.

    Attributes:
        registry: Well registry settings
        storage: Record storage settings
        export: Export settings
        roster: Attendant roster
    """
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    roster: RosterConfig = field(default_factory=RosterConfig)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid
        """
        errors = []

        if not str(self.registry.source).strip():
            errors.append("registry.source must not be empty")
        if self.registry.timeout <= 0:
            errors.append(
                f"registry.timeout ({self.registry.timeout}) must be greater than 0"
            )
        if self.registry.duplicate_policy not in ("last_wins", "reject"):
            errors.append(
                f"registry.duplicate_policy ({self.registry.duplicate_policy}) "
                "must be 'last_wins' or 'reject'"
            )

        if self.storage.backend not in ("sqlite", "memory"):
            errors.append(
                f"storage.backend ({self.storage.backend}) must be 'sqlite' or 'memory'"
            )

        if not str(self.export.output_dir).strip():
            errors.append("export.output_dir must not be empty")

        if not self.roster.attendants:
            errors.append("roster.attendants must list at least one attendant")

        if errors:
            raise ValueError("Invalid configuration:\n  - " + "\n  - ".join(errors))

    @classmethod
    def from_yaml(cls, filepath: Path | str) -> "FieldFlowConfig":
        """Load configuration from YAML file.

        Args:
            filepath: Path to YAML config file

        Returns:
            FieldFlowConfig instance

        Raises:
            ValueError: If configuration values are invalid
        """
        filepath = Path(filepath)
        with open(filepath) as f:
            data = yaml.safe_load(f) or {}

        config = cls.from_dict(data)
        config.validate()
        return config

    @staticmethod
    def _filter_unknown_keys(
        section_data: dict,
        dataclass_type: type,
        section_name: str,
    ) -> dict:
        """Filter unknown keys from a config section and warn about them."""
        known_keys = {f.name for f in dataclass_fields(dataclass_type)}
        unknown_keys = set(section_data) - known_keys
        if unknown_keys:
            logger.warning(
                f"Unknown key(s) in '{section_name}' config section: "
                f"{', '.join(sorted(unknown_keys))}. "
                f"Valid keys: {', '.join(sorted(known_keys))}"
            )
        return {k: v for k, v in section_data.items() if k in known_keys}

    _SECTION_TYPES: ClassVar[dict[str, type]] = {
        "registry": RegistryConfig,
        "storage": StorageConfig,
        "export": ExportConfig,
        "roster": RosterConfig,
    }

    @classmethod
    def from_dict(cls, data: dict) -> "FieldFlowConfig":
        """Create configuration from dictionary.

        Unknown sections and keys are logged as warnings and ignored.
        """
        config = cls()

        unknown_sections = set(data) - set(cls._SECTION_TYPES)
        if unknown_sections:
            logger.warning(
                f"Unknown top-level config section(s): {', '.join(sorted(unknown_sections))}. "
                f"Valid sections: {', '.join(sorted(cls._SECTION_TYPES))}"
            )

        for section, dtype in cls._SECTION_TYPES.items():
            if data.get(section):
                section_data = cls._filter_unknown_keys(data[section], dtype, section)
                if section == "roster" and "attendants" in section_data:
                    section_data["attendants"] = [str(a) for a in section_data["attendants"] or []]
                setattr(config, section, dtype(**section_data))

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return asdict(self)

    def to_yaml(self, filepath: Path | str) -> None:
        """Save configuration to YAML file."""
        filepath = Path(filepath)
        with open(filepath, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


def generate_default_config(filepath: Path | str) -> Path:
    """Generate a default configuration file.

    Args:
        filepath: Output file path

    Returns:
        Path to created file
    """
    filepath = Path(filepath)

    content = f"""# FieldFlow Configuration File

# Well master table (igs_id, well_name, field, orifice_size, is_obs)
registry:
  source: {DEFAULT_SOURCE}   # File path or http(s) URL
  timeout: 30.0                   # HTTP timeout (seconds)
  duplicate_policy: last_wins     # last_wins or reject repeated field/well rows

# Record storage
storage:
  backend: sqlite                 # sqlite or memory
  path: null                      # null = ~/.fieldflow/fieldflow.db

# CSV exports
export:
  output_dir: exports

# Attendants offered on every form
roster:
  attendants:
"""
    content += "".join(f"    - {name}\n" for name in DEFAULT_ATTENDANTS)

    with open(filepath, "w") as f:
        f.write(content)

    return filepath
