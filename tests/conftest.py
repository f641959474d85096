from __future__ import annotations

import pytest

from fretpath.tab_engine.candidate_index import build_candidate_index
from fretpath.tab_engine.cost_model import FretboardCostModel
from fretpath.tab_engine.instrument import GUITAR, UKULELE


@pytest.fixture
def guitar():
    return GUITAR


@pytest.fixture
def ukulele():
    return UKULELE


@pytest.fixture(scope="session")
def cost_model():
    return FretboardCostModel()


@pytest.fixture(scope="session")
def guitar_index():
    return build_candidate_index(GUITAR, 24)
