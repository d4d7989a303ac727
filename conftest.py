import pytest

from library import Library
from ui_helpers import OUTPUT_MODE_ENV


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    # --output writes the mode into the environment; reset it for every test
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)


@pytest.fixture
def lib():
    return Library()


@pytest.fixture
def data_file(tmp_path):
    # Each test gets its own catalog file; it does not exist until something saves
    return str(tmp_path / "library_data.txt")
