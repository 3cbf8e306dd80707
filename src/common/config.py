"""
Scanner Configuration

Settings are read from config/scanner.yaml (or the file named by
SMS_SCANNER_CONFIG) and then overridden by environment variables.
"""
import os
import yaml
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from src.common.models import DIRECTIONS, RECEIVED

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "scanner.yaml"

ENV_OVERRIDES = {
    'SMS_INBOX_LIMIT': 'inbox_limit',
    'SMS_GENERIC_DEFAULT_DIRECTION': 'generic_default_direction',
    'SMS_STORE_PATH': 'store_path',
    'SMS_LOG_LEVEL': 'log_level',
    'SMS_LOG_FILE': 'log_file',
}


class ConfigurationError(ValueError):
    """Raised when a setting is missing its expected type or allowed value."""


@dataclass(frozen=True)
class ScannerSettings:
    """
    Attributes:
        inbox_limit: How many of the most recent inbox messages a scan reads
        generic_default_direction: Direction given to generic bank messages
            without a debit/payment cue
        store_path: JSON file holding persisted transaction records
        log_level: Root logging level name
        log_file: JSON log file, or None for console only
    """
    inbox_limit: int = 200
    generic_default_direction: str = RECEIVED
    store_path: str = "data/transactions.json"
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/scanner.log"

    def __post_init__(self):
        if not isinstance(self.inbox_limit, int) or self.inbox_limit <= 0:
            raise ConfigurationError(f"inbox_limit must be a positive integer, got {self.inbox_limit!r}")
        if self.generic_default_direction not in DIRECTIONS:
            raise ConfigurationError(
                f"generic_default_direction must be one of {DIRECTIONS}, got {self.generic_default_direction!r}"
            )


def load_yaml_config(config_path: Path) -> dict:
    """Load the settings mapping from a YAML file. A missing file yields {}."""
    if not config_path.exists():
        return {}

    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping")
    return data.get('scanner', data)


def load_settings(config_path: Optional[Path] = None, environ: Optional[dict] = None) -> ScannerSettings:
    """
    Build settings from YAML then environment.

    Args:
        config_path: Explicit YAML path; defaults to SMS_SCANNER_CONFIG or config/scanner.yaml
        environ: Environment mapping, os.environ when omitted
    """
    environ = os.environ if environ is None else environ
    if config_path is None:
        config_path = Path(environ.get('SMS_SCANNER_CONFIG', DEFAULT_CONFIG_PATH))

    known = {f.name for f in fields(ScannerSettings)}
    values = {k: v for k, v in load_yaml_config(Path(config_path)).items() if k in known}

    for env_key, field_name in ENV_OVERRIDES.items():
        if env_key in environ:
            values[field_name] = environ[env_key]

    if 'inbox_limit' in values:
        try:
            values['inbox_limit'] = int(values['inbox_limit'])
        except (TypeError, ValueError):
            raise ConfigurationError(f"inbox_limit must be an integer, got {values['inbox_limit']!r}")

    if values.get('log_file') in ('', 'none', 'None'):
        values['log_file'] = None

    return replace(ScannerSettings(), **values)
