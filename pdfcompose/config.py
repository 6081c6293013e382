"""Configuration for :mod:`pdfcompose` sessions."""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import Mapping

LOGGER = logging.getLogger("pdfcompose.config")

#: CSS pixels per PDF point at zoom 1.0 (96 dpi screen, 72 points per inch).
CSS_PIXELS_PER_POINT = 96.0 / 72.0

_ENV_PREFIX = "PDFCOMPOSE_"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclasses.dataclass(frozen=True)
class ComposeConfig:
    """Tunable constants shared by the composition engine."""

    resolution: float = CSS_PIXELS_PER_POINT
    min_scale: float = 0.3
    max_scale: float = 3.0
    scale_step: float = 0.1
    font_family: str = "Helvetica"
    underline_offset_ratio: float = 0.12
    underline_thickness_ratio: float = 0.06
    min_underline_thickness: float = 0.5
    copy_metadata: bool = True
    add_bookmarks: bool = False
    producer: str = "pdfcompose"
    export_filename: str = "edited.pdf"
    max_workers: int = 4

    def __post_init__(self) -> None:
        if self.resolution <= 0:
            raise ValueError("resolution must be positive")
        if not 0 < self.min_scale <= self.max_scale:
            raise ValueError("scale bounds must satisfy 0 < min_scale <= max_scale")
        if self.scale_step <= 0:
            raise ValueError("scale_step must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    def with_updates(self, **updates: object) -> "ComposeConfig":
        return dataclasses.replace(self, **{k: v for k, v in updates.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ComposeConfig":
        """Build a config from ``PDFCOMPOSE_*`` environment variables.

        Each field maps to the upper-cased field name, e.g.
        ``PDFCOMPOSE_FONT_FAMILY=Times``. Unknown or unparsable values are
        ignored with a warning.
        """

        env = os.environ if environ is None else environ
        updates: dict[str, object] = {}
        for field in dataclasses.fields(cls):
            raw = env.get(_ENV_PREFIX + field.name.upper())
            if raw is None:
                continue
            value = raw.strip()
            try:
                if field.type in ("bool", bool):
                    updates[field.name] = value.lower() in _TRUTHY
                elif field.type in ("int", int):
                    updates[field.name] = int(value)
                elif field.type in ("float", float):
                    updates[field.name] = float(value)
                else:
                    updates[field.name] = value
            except ValueError:
                LOGGER.warning("Ignoring invalid value %r for %s", raw, field.name)
        return cls(**updates)


DEFAULT_CONFIG = ComposeConfig()

__all__ = ["ComposeConfig", "DEFAULT_CONFIG", "CSS_PIXELS_PER_POINT"]
