from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from engine.generator import STOCK_FIELDS
from engine.templates import load_catalog


def test_bundled_catalog_loads() -> None:
    catalog = load_catalog()

    assert len(catalog.mild) >= 5
    assert len(catalog.extreme) >= 5
    titles = [t.title for t in catalog.mild + catalog.extreme]
    assert len(titles) == len(set(titles))


def test_bundled_templates_reference_known_fields() -> None:
    catalog = load_catalog()
    for template in catalog.mild + catalog.extreme:
        assert set(template.affected_fields) <= set(STOCK_FIELDS)
        assert template.affected_stocks == []
        assert template.duration_days is None or template.duration_days > 0


def test_mild_events_are_short_lived() -> None:
    catalog = load_catalog()
    assert all(t.duration_days is not None and t.duration_days <= 2 for t in catalog.mild)


def test_custom_catalog_drops_preassigned_stocks(tmp_path: Path) -> None:
    path = tmp_path / "events.yaml"
    path.write_text("""
mild:
  - title: Local Rumor
    event_type: Rumor
    affected_fields: [Energy]
    affected_stocks: [ABCD]
    drift_delta: 0.1
    duration_days: 1
extreme:
  - title: Forever Boom
    affected_fields: [Energy]
    sentiment_delta: 2.0
""")

    catalog = load_catalog(path)

    assert catalog.mild[0].affected_stocks == []
    assert catalog.mild[0].event_type == "Rumor"
    assert catalog.extreme[0].duration_days is None
    assert catalog.extreme[0].event_type == "General"


def test_empty_catalog_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    catalog = load_catalog(path)
    assert catalog.mild == [] and catalog.extreme == []


def test_spawn_returns_independent_copy() -> None:
    catalog = load_catalog()
    template = catalog.extreme[0]

    event = catalog.spawn(template)
    event.affected_stocks.append("ABCD")
    event.duration_days = 0

    assert template.affected_stocks == []
    assert template.duration_days != 0


def test_malformed_entry_fails_validation(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("mild:\n  - just a title\n")
    with pytest.raises(ValidationError):
        load_catalog(path)
