"""
Config initialisation - write and display the configuration
"""

from __future__ import annotations

import importlib.resources as ir
from dataclasses import asdict
from pathlib import Path
from typing import Optional

try:
    import yaml
except ImportError:
    yaml = None

from .config_loader import InnerGraphConfig, load_config


def load_template() -> str:
    """The packaged innergraph.yaml template."""
    return (ir.files("innergraph") / "templates" / "innergraph.yaml").read_text(encoding="utf-8")


def init_config(output_path: Optional[Path] = None, force: bool = False) -> Path:
    """
    Write the configuration template.

    Args:
        output_path: target file, innergraph.yaml in the working directory by default
        force: overwrite an existing file

    Returns:
        Path: the written config file
    """
    if output_path is None:
        output_path = Path("innergraph.yaml")

    if output_path.exists() and not force:
        raise FileExistsError(f"config file already exists: {output_path} (use --force to overwrite)")

    output_path.write_text(load_template(), encoding="utf-8")
    print(f"✅ wrote config file: {output_path}")
    return output_path


def show_config(config_path: Optional[Path] = None) -> InnerGraphConfig:
    """Print the effective configuration as YAML."""
    config = load_config(config_path)
    data = asdict(config)
    if yaml is None:
        raise ImportError("PyYAML is required to show the config: pip install pyyaml")
    print(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), end="")
    return config
