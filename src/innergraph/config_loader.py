"""
Configuration loader - YAML (innergraph.yaml) or [tool.innergraph] in pyproject.toml
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import yaml
except ImportError:
    yaml = None

try:  # py3.11+
    import tomllib as tomli
except ImportError:
    try:
        import tomli
    except ImportError:
        tomli = None

from .errors import ConfigError

logger = logging.getLogger(__name__)

RENDER_FORMATS = ("svg", "png", "pdf")
SOURCE_TYPES = ("module", "script")


@dataclass
class InnerGraphConfig:
    """Analysis configuration"""
    paths: List[str] = field(default_factory=lambda: ["src", "."])
    include: List[str] = field(default_factory=lambda: ["**/*.js", "**/*.mjs"])
    exclude: List[str] = field(default_factory=lambda: [
        "**/node_modules/**", "**/dist/**", "**/build/**", "**/.git/**"
    ])
    output: str = "innergraph_results"
    format: str = "svg"
    # render one usage graph per module
    render_graph: bool = False
    write_json: bool = True
    # esprima source type: module (ES import/export) or script
    source_type: str = "module"


def load_config(config_path: Optional[Path] = None) -> InnerGraphConfig:
    """
    Load the configuration.

    Args:
        config_path: explicit config file; looked up in the working directory if None

    Returns:
        InnerGraphConfig: the loaded (or default) configuration
    """
    if config_path:
        return _load_config_file(Path(config_path))

    found_config = find_config_file()
    if found_config:
        logger.info("using config file %s", found_config)
        return _load_config_file(found_config)

    logger.debug("no config file found, using defaults")
    return InnerGraphConfig()


def find_config_file() -> Optional[Path]:
    """
    Find a config file, in priority order.

    Returns:
        Path: the config file, or None
    """
    candidates = [
        Path('innergraph.yaml'),
        Path('innergraph.yml'),
        Path('.innergraph.yaml'),
        Path('.innergraph.yml'),
        Path('pyproject.toml'),  # [tool.innergraph]
    ]

    for candidate in candidates:
        if candidate.exists():
            if candidate.name == 'pyproject.toml':
                if _has_innergraph_config(candidate):
                    return candidate
                continue
            return candidate

    return None


def _load_config_file(config_path: Path) -> InnerGraphConfig:
    if not config_path.exists():
        raise ConfigError(f"config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()

    if suffix in ['.yaml', '.yml']:
        return _load_yaml_config(config_path)
    elif suffix == '.toml':
        return _load_toml_config(config_path)
    else:
        raise ConfigError(f"unsupported config file format: {suffix}")


def _load_yaml_config(config_path: Path) -> InnerGraphConfig:
    if yaml is None:
        raise ImportError("PyYAML is required to read YAML config files: pip install pyyaml")

    try:
        with config_path.open('r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {config_path}: {e}") from e

    if not data:
        return InnerGraphConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")

    return _parse_config_data(data)


def _load_toml_config(config_path: Path) -> InnerGraphConfig:
    if tomli is None:
        raise ImportError("tomli is required to read TOML config files: pip install tomli")

    try:
        with config_path.open('rb') as f:
            data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML in {config_path}: {e}") from e

    # pyproject.toml layout
    if 'tool' in data and 'innergraph' in data['tool']:
        config_data = data['tool']['innergraph']
    else:
        config_data = data

    return _parse_config_data(config_data)


def _has_innergraph_config(pyproject_path: Path) -> bool:
    if tomli is None:
        return False

    try:
        with pyproject_path.open('rb') as f:
            data = tomli.load(f)
        return 'tool' in data and 'innergraph' in data['tool']
    except (OSError, tomli.TOMLDecodeError):
        return False


def _str_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data[key]
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list of strings")
    return [str(v) for v in value]


def _parse_config_data(data: Dict[str, Any]) -> InnerGraphConfig:
    config = InnerGraphConfig()

    if 'paths' in data:
        config.paths = _str_list(data, 'paths')
    if 'include' in data:
        config.include = _str_list(data, 'include')
    if 'exclude' in data:
        config.exclude = _str_list(data, 'exclude')
    if 'output' in data:
        config.output = str(data['output'])
    if 'format' in data:
        fmt = str(data['format']).strip().lower()
        if fmt not in RENDER_FORMATS:
            raise ConfigError(f"unknown format {fmt!r}; expected one of {', '.join(RENDER_FORMATS)}")
        config.format = fmt
    if 'render_graph' in data:
        config.render_graph = bool(data['render_graph'])
    if 'write_json' in data:
        config.write_json = bool(data['write_json'])
    if 'source_type' in data:
        source_type = str(data['source_type']).strip().lower()
        if source_type not in SOURCE_TYPES:
            raise ConfigError(f"unknown source_type {source_type!r}; expected module or script")
        config.source_type = source_type

    return config
