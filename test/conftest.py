# test/conftest.py
import os
import random
import sys
from io import BytesIO
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# Add the project root directory to the Python path to allow importing leaf_scanner
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before leaf_scanner.config caches its settings
os.environ["DATABASE_URL"] = "sqlite://"

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from leaf_scanner.db import Base  # noqa: E402
from leaf_scanner.models import scan_record  # noqa: E402,F401
from leaf_scanner.models.plant_analysis import AnalysisResult, OverallCondition  # noqa: E402
from leaf_scanner.services.analyzer import PlantImageAnalyzer  # noqa: E402

GRAY = (128, 128, 128)
BLACK = (0, 0, 0)
YELLOW = (220, 200, 60)
# Matches both the browning and the wilting pattern
BROWN_WILTED = (150, 55, 75)


def make_pixels(size=100, base=GRAY, rows=None):
    """
    Build a size x size RGB array filled with ``base``.

    ``rows`` maps a colour to the number of full rows painted with it,
    starting from the top; each row is ``size`` pixels.
    """
    pixels = np.zeros((size, size, 3), dtype=np.uint8)
    pixels[:, :] = base
    top = 0
    for color, count in (rows or {}).items():
        pixels[top:top + count, :] = color
        top += count
    return pixels


def to_png(pixels) -> bytes:
    buffer = BytesIO()
    Image.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


def make_result(**overrides) -> AnalysisResult:
    """A healthy AnalysisResult with selected fields replaced."""
    values = dict(
        has_black_spots=False,
        black_spot_count=0,
        black_spot_percentage=0.0,
        has_damage=False,
        damage_percentage=0.0,
        health_score=100,
        overall_condition=OverallCondition.HEALTHY,
        detected_issues=[],
        confidence=94.0,
        image_quality=70.0,
        analysis_time=0.2,
        image_width=100,
        image_height=100,
    )
    values.update(overrides)
    return AnalysisResult(**values)


@pytest.fixture
def analyzer():
    return PlantImageAnalyzer(rng=random.Random(42))


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
