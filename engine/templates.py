"""Event template catalog -- loads mild and extreme event templates from YAML."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from core.models.events import MarketEvent

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "event_templates.yaml"


class EventCatalog(BaseModel):
    """Immutable template pools. Spawning always works on a deep copy."""

    mild: list[MarketEvent] = Field(default_factory=list)
    extreme: list[MarketEvent] = Field(default_factory=list)

    def spawn(self, template: MarketEvent) -> MarketEvent:
        """Return a fresh event instance built from a template."""
        return template.model_copy(deep=True)


def load_catalog(path: str | Path | None = None) -> EventCatalog:
    """Load an event catalog from YAML.

    The file has two top-level lists, `mild` and `extreme`, each holding
    MarketEvent fields. `affected_stocks` is ignored in templates since it
    is assigned at spawn time.
    """
    catalog_path = Path(path) if path is not None else DEFAULT_CATALOG_PATH

    with open(catalog_path) as f:
        raw = yaml.safe_load(f) or {}

    for pool in ("mild", "extreme"):
        for entry in raw.get(pool) or []:
            if isinstance(entry, dict):
                entry.pop("affected_stocks", None)

    catalog = EventCatalog(**raw)
    logger.info(
        "Loaded event catalog from %s (%d mild, %d extreme)",
        catalog_path, len(catalog.mild), len(catalog.extreme),
    )
    return catalog
