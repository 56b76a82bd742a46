"""Shared test fixtures."""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from config.settings import settings
from src.calculators.tax_data import reload_rule_years


@pytest.fixture
def use_rules_file(monkeypatch: pytest.MonkeyPatch) -> Iterator[Callable[[Path], None]]:
    """Point the rule loader at another rule file for one test.

    Rules are read once at import, so the fixture reloads them from the new
    file, then restores the shipped rules on the way out.
    """

    def _use(path: Path) -> None:
        monkeypatch.setattr(settings, "tax_rules_file", str(path))
        reload_rule_years()

    yield _use
    monkeypatch.undo()
    reload_rule_years()
