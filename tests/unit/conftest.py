import pytest


@pytest.fixture(autouse=True)
def use_80_columns(monkeypatch):
    """Render rich tables at a fixed width of 80 columns."""
    monkeypatch.setenv("COLUMNS", "80")
