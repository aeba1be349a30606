from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from regions_model_graph import Location, RegionGraphBuilder
from regions_model_population import PopulationLedger

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture
def unity_dir() -> Path:
    return DATA_DIR / "unity"


@pytest.fixture
def unity_copy(tmp_path: Path, unity_dir: Path) -> Path:
    """Writable copy of the Unity dataset."""
    target = tmp_path / "unity"
    shutil.copytree(unity_dir, target)
    return target


def make_ledger(*cells) -> PopulationLedger:
    ledger = PopulationLedger()
    for segment, start, end, count in cells:
        ledger.put(segment, start, end, count)
    return ledger


@pytest.fixture
def builder() -> RegionGraphBuilder:
    """Builder with locations A, B, C, D and no edges."""
    b = RegionGraphBuilder()
    for location_id in ("A", "B", "C", "D"):
        b.add_location(Location(location_id, f"Location {location_id}"))
    return b
