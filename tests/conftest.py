from pathlib import Path
from typing import Optional

import pytest

from rigsmith.db import PartsRepository, load_prebuilt_configs
from rigsmith.schemas import Part
from rigsmith.service import BuildService
from rigsmith.storage import SavedBuildRepository


ROOT = Path(__file__).resolve().parents[1]


def make_part(
    part_id: str,
    category: str,
    price: float = 100,
    wattage: Optional[float] = None,
    **specs,
) -> Part:
    if wattage is not None:
        specs["wattage"] = wattage
    return Part(
        id=part_id,
        name=part_id.upper(),
        category=category,
        brand="Generic",
        price=price,
        specs=specs,
    )


@pytest.fixture
def repo():
    return PartsRepository(ROOT / "data" / "parts.json")


@pytest.fixture
def service(repo, tmp_path):
    return BuildService(
        repo,
        saved_builds=SavedBuildRepository(tmp_path / "saved.db"),
        prebuilt_configs=load_prebuilt_configs(ROOT / "data" / "prebuilt.json"),
    )
