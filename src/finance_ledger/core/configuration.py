import os
from dataclasses import dataclass
from typing import Any, Literal

from finance_ledger.core import settings
from finance_ledger.logger import get_logger

ValueType = Literal["string", "int"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConfigField:
    key: str
    label: str
    description: str
    value_type: ValueType = "string"
    options: tuple[str, ...] | None = None
    min_value: int | None = None
    restart_required: bool = False


CONFIG_FIELDS: tuple[ConfigField, ...] = (
    ConfigField(
        key="MAX_IMPORT_BYTES",
        label="Max Import Size",
        description="Largest CSV upload accepted by the import endpoint, in bytes.",
        value_type="int",
        min_value=1,
    ),
    ConfigField(
        key="DATA_DIR",
        label="Data Directory",
        description="Directory holding profile.json and transactions.json.",
        restart_required=True,
    ),
    ConfigField(
        key="LOG_DIR",
        label="Log Directory",
        description="Directory for application logs (ledger.log).",
        restart_required=True,
    ),
    ConfigField(
        key="LOG_LEVEL",
        label="Log Level",
        description="Logging verbosity for the application.",
        options=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        restart_required=True,
    ),
)

CONFIG_TEMPLATE = """# Finance Ledger configuration
# These settings only take effect when the same environment variable is not set.

# Largest accepted CSV upload in bytes
# MAX_IMPORT_BYTES:

# Data directory (profile.json, transactions.json)
# DATA_DIR:

# Log directory (ledger.log)
# LOG_DIR:

# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
# LOG_LEVEL:
"""


def get_config_path() -> str:
    return settings.get_config_path() or os.path.join(os.getcwd(), "config", settings.CONFIG_FILENAME)


def build_config_context() -> dict[str, Any]:
    config_path = get_config_path()
    config_values = settings.read_config_file(config_path)
    fields: list[dict[str, Any]] = []
    for field in CONFIG_FIELDS:
        env_override = settings.is_env_override(field.key)
        value = os.getenv(field.key, "") if env_override else config_values.get(field.key, "")
        fields.append({
            "key": field.key,
            "label": field.label,
            "description": field.description,
            "value": value,
            "options": field.options,
            "env_override": env_override,
            "restart_required": field.restart_required,
        })
    return {"config_path": config_path, "fields": fields}


def _validate_value(field: ConfigField, raw_value: str) -> tuple[str, str | None]:
    value = raw_value.strip()
    if not value:
        return "", None
    if "\n" in value or "\r" in value:
        return value, "Value must be a single line."

    if field.options:
        normalized = value.upper()
        if normalized not in field.options:
            return value, f"Must be one of: {', '.join(field.options)}."
        return normalized, None

    if field.value_type == "int":
        try:
            parsed = int(value)
        except ValueError:
            return value, "Must be a whole number."
        if field.min_value is not None and parsed < field.min_value:
            return value, f"Must be at least {field.min_value}."
        return str(parsed), None

    return value, None


def apply_config_updates(values: dict[str, str]) -> tuple[dict[str, str], dict[str, str]]:
    """Validate and persist updates; returns ``(errors, applied)``.

    Keys set through the environment are skipped. Nothing is written when any
    value is invalid.
    """
    errors: dict[str, str] = {}
    updates: dict[str, str] = {}

    for field in CONFIG_FIELDS:
        if settings.is_env_override(field.key):
            continue
        raw_value = values.get(field.key)
        if raw_value is None:
            continue
        cleaned, error = _validate_value(field, raw_value)
        if error:
            errors[field.key] = error
            continue
        updates[field.key] = cleaned

    if errors:
        return errors, {}

    _write_config_file(updates)
    for key, value in updates.items():
        if value:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)
    return {}, updates


def _write_config_file(updates: dict[str, str]) -> None:
    config_path = get_config_path()
    config_dir = os.path.dirname(config_path)
    if config_dir:
        os.makedirs(config_dir, exist_ok=True)

    if os.path.exists(config_path):
        with open(config_path, encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    else:
        lines = CONFIG_TEMPLATE.splitlines()

    key_indexes: dict[str, int] = {}
    for index, line in enumerate(lines):
        candidate = line.strip().lstrip("#").strip()
        if ":" not in candidate:
            continue
        key = candidate.split(":", 1)[0].strip()
        if key in updates and key not in key_indexes:
            key_indexes[key] = index

    for key, value in updates.items():
        new_line = f"{key}: {_format_yaml_value(value)}" if value else f"# {key}:"
        if key in key_indexes:
            lines[key_indexes[key]] = new_line
        else:
            lines.append(new_line)

    with open(config_path, "w", encoding="utf-8") as handle:
        handle.write("\n".join(lines).rstrip("\n") + "\n")
    logger.info("[CONFIG] Wrote %d setting(s) to %s.", len(updates), config_path)


def _format_yaml_value(value: str) -> str:
    if value != value.strip() or any(marker in value for marker in (":", "#", '"', "'")):
        escaped = value.replace('"', "'")
        return f'"{escaped}"'
    return value


def apply_runtime_updates(app: Any, updates: dict[str, str]) -> None:
    if "MAX_IMPORT_BYTES" not in updates:
        return
    importer = getattr(getattr(app, "state", None), "importer", None)
    if importer is None:
        return
    importer.max_bytes = settings.get_max_import_bytes()
    logger.info("[CONFIG] Import size limit set to %s bytes.", importer.max_bytes)
