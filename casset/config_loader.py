"""Configuration loader for the casset asset pipeline."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv


DEFAULT_SEARCH_ROOTS = ("vendor", "workbench")


@dataclass(frozen=True)
class AssetConfig:
    """Resolved, immutable settings shared by every pipeline component."""

    public_path: Path
    assets_path: Path
    cache_path: Path
    base_path: Path
    combine: bool = True
    minify: bool = True
    search_roots: Tuple[Path, ...] = field(default_factory=tuple)
    default_container: str = "default"


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default locations.

    Returns:
        Dictionary with configuration values.
    """
    # Load environment variables first
    load_dotenv()

    # Find config file
    if config_path is None:
        locations = [
            "casset.yaml",
            "casset.yml",
            "config.yaml",
            "config.yml",
        ]
        for loc in locations:
            if Path(loc).exists():
                config_path = loc
                break

    if config_path is None or not Path(config_path).exists():
        raise FileNotFoundError("Configuration file not found. Please provide casset.yaml")

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")

    return _substitute_env_vars(config)


def _substitute_env_vars(obj: Any) -> Any:
    """Recursively substitute environment variables in config.

    Supports syntax: ${VAR_NAME} or ${VAR_NAME:default_value}
    """
    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return _substitute_env_string(obj)
    else:
        return obj


def _substitute_env_string(value: str) -> str:
    """Substitute environment variables in a string."""
    pattern = r'\$\{([^}]+)\}'

    def replace(match):
        var_expr = match.group(1)
        if ':' in var_expr:
            var_name, default = var_expr.split(':', 1)
            return os.getenv(var_name, default)
        else:
            return os.getenv(var_expr, match.group(0))

    return re.sub(pattern, replace, value)


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def _under(root: Path, value: Any, default: str) -> Path:
    relative = str(value if value is not None else default).strip().strip("/")
    return root / relative if relative else root


def get_asset_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get the ``casset`` section of the configuration."""
    section = config.get("casset", {})
    return section if isinstance(section, dict) else {}


def build_asset_config(config: Dict[str, Any], base_dir: Optional[str] = None) -> AssetConfig:
    """Build the immutable pipeline settings from a loaded configuration.

    Relative directories are anchored the same way the runtime expects them:
    ``public_dir`` and ``search_roots`` under the base directory, the assets
    and cache directories under the public directory.
    """
    settings = get_asset_settings(config)

    base_path = Path(os.path.abspath(str(base_dir or settings.get("base_dir") or ".")))
    public_dir = Path(str(settings.get("public_dir") or "public"))
    public_path = public_dir if public_dir.is_absolute() else base_path / public_dir
    public_path = Path(os.path.abspath(str(public_path)))

    roots = settings.get("search_roots")
    if roots is None:
        roots = list(DEFAULT_SEARCH_ROOTS)
    if not isinstance(roots, list):
        raise ValueError("casset.search_roots must be a list of directories")
    search_roots = tuple(
        Path(str(r)) if Path(str(r)).is_absolute() else base_path / str(r)
        for r in roots
        if str(r).strip()
    )

    default_container = str(settings.get("default_container") or "default").strip()

    return AssetConfig(
        public_path=public_path,
        assets_path=_under(public_path, settings.get("assets_dir"), "assets"),
        cache_path=_under(public_path, settings.get("cache_dir"), "assets/cache"),
        base_path=base_path,
        combine=_as_bool(settings.get("combine"), True),
        minify=_as_bool(settings.get("minify"), True),
        search_roots=search_roots,
        default_container=default_container,
    )


def get_container_declarations(config: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Get container name -> ordered list of ``{source, attributes}`` entries."""
    containers = config.get("containers", {}) or {}
    if not isinstance(containers, dict):
        raise ValueError("containers must map a container name to a list of assets")

    result: Dict[str, List[Dict[str, Any]]] = {}
    for name, entries in containers.items():
        rows = []
        for entry in entries or []:
            if isinstance(entry, str):
                rows.append({"source": entry, "attributes": {}})
            elif isinstance(entry, dict) and entry.get("source"):
                attributes = entry.get("attributes") or {}
                if not isinstance(attributes, dict):
                    raise ValueError(f"Attributes for {entry['source']} must be a mapping")
                rows.append({"source": str(entry["source"]), "attributes": attributes})
            else:
                raise ValueError(f"Invalid asset entry in container '{name}': {entry!r}")
        result[str(name)] = rows
    return result


def ensure_directories(config: Dict[str, Any]):
    """Ensure all required directories exist."""
    asset_config = build_asset_config(config)
    asset_config.cache_path.mkdir(parents=True, exist_ok=True)

    # Log directory
    log_path = (config.get("logging") or {}).get("file", "data/logs/casset.log")
    Path(log_path).parent.mkdir(parents=True, exist_ok=True)
