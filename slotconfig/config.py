"""Engine settings — tunables shared by the editor session and the CLI.

Settings are a plain dataclass that round-trips through YAML like every
other model in the package.  Anything not set in the file keeps its
default.

Example ``slotconfig.yaml``::

    debounce_seconds: 2.0
    column_unit_px: 50
    row_unit_px: 25
    store_root: var/layouts
    default_page_type: cart
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from slotconfig.processor.resize import COLUMN_UNIT_PX, ROW_UNIT_PX, GridGeometry
from slotconfig.schema.loader import dump_yaml, read_yaml

DEFAULT_DEBOUNCE_SECONDS = 2.0


@dataclass
class EngineSettings:
    """Runtime configuration for draft sessions and grid geometry."""
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    column_unit_px: float = COLUMN_UNIT_PX
    row_unit_px: float = ROW_UNIT_PX
    store_root: str | None = None        # directory for YamlFileStore, None = in-memory
    default_page_type: str = "cart"

    @property
    def geometry(self) -> GridGeometry:
        return GridGeometry(column_unit_px=self.column_unit_px, row_unit_px=self.row_unit_px)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "debounce_seconds": self.debounce_seconds,
            "column_unit_px": self.column_unit_px,
            "row_unit_px": self.row_unit_px,
            "default_page_type": self.default_page_type,
        }
        if self.store_root is not None:
            d["store_root"] = self.store_root
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "EngineSettings":
        debounce = float(d.get("debounce_seconds", DEFAULT_DEBOUNCE_SECONDS))
        if debounce < 0:
            raise ValueError(f"debounce_seconds must be >= 0, got {debounce}")
        return cls(
            debounce_seconds=debounce,
            column_unit_px=d.get("column_unit_px", COLUMN_UNIT_PX),
            row_unit_px=d.get("row_unit_px", ROW_UNIT_PX),
            store_root=d.get("store_root"),
            default_page_type=d.get("default_page_type", "cart"),
        )


def load_settings(path: str | Path | None = None) -> EngineSettings:
    """Load settings from a YAML file; no path (or an empty file) gives defaults."""
    if path is None:
        return EngineSettings()
    data = read_yaml(path)
    return EngineSettings.from_dict(data or {})


def save_settings(settings: EngineSettings, path: str | Path) -> None:
    dump_yaml(settings.to_dict(), path)
