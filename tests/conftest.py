import random

import pytest

from lotomania.config import DEFAULT_LAST_RESULT, Settings
from lotomania.models import Draw


@pytest.fixture
def reference_draw():
    """Contest 2809 with its full prize table."""
    return Draw.from_dict(DEFAULT_LAST_RESULT)


@pytest.fixture
def history():
    """Thirty seeded draws, most recent first."""
    rng = random.Random(2809)
    return [sorted(rng.sample(range(100), 20)) for _ in range(30)]


@pytest.fixture
def fast_settings(tmp_path):
    """Small evolutionary search and paths inside the test's temp dir."""
    return Settings(
        db_file=str(tmp_path / "lotomania.db"),
        history_file=str(tmp_path / "history.csv"),
        output_dir=str(tmp_path / "outputs"),
        log_file=str(tmp_path / "logs" / "lotomania.log"),
        population_size=10,
        num_generations=3,
    )
