import sys
from pathlib import Path

import pytest

# Ensure project root is on PYTHONPATH
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def test_app_imports():
    # Smoke import test (validates no import-time crashes)
    import ui.app as _  # noqa: F401


def test_unconfigured_roster_is_not_built():
    # Submit only reaches the engine through RosterBuilder.build().
    from ui.utils.roster import RosterBuilder

    roster = RosterBuilder()
    roster.add_student("S1", "Maths")

    assert "General configuration is missing" in roster.validate()
    with pytest.raises(ValueError, match="General configuration is missing"):
        roster.build()
