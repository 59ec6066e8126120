import pytest

from produtividade.types import TrackerConfig


@pytest.fixture
def cfg(tmp_path):
    return TrackerConfig(data_dir=tmp_path)
