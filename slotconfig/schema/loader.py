"""Configuration loader — YAML serialization for slot configurations.

Provides round-trip save/load so layouts and experiment variants can be
reviewed, version-controlled, and edited as human-readable YAML files.
Loading returns the raw document for configurations so callers can run it
through the transcoder, which validates and falls back to defaults.
"""

from pathlib import Path
from typing import Any

import yaml

from .models import SlotConfiguration, VariantOverride


def dump_yaml(data: Any, path: str | Path) -> None:
    """Write a plain document to *path*, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False,
                  allow_unicode=True, width=120)


def read_yaml(path: str | Path) -> Any:
    """Read a YAML document; an empty file yields ``None``."""
    with open(Path(path)) as f:
        return yaml.safe_load(f)


def save_configuration(config: SlotConfiguration, path: str | Path) -> None:
    """Serialize a SlotConfiguration to a YAML file."""
    dump_yaml(config.to_dict(), path)


def load_configuration_document(path: str | Path) -> Any:
    """Load the raw persisted configuration document from a YAML file."""
    return read_yaml(path)


def load_variants(path: str | Path) -> list[VariantOverride]:
    """Load experiment variants from a YAML file.

    The file holds either a single variant mapping or a list of them.
    """
    data = read_yaml(path)
    if data is None:
        return []
    if isinstance(data, dict):
        data = [data]
    return [VariantOverride.from_dict(d) for d in data]
