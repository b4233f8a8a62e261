"""
Pytest configuration for rc-membrane tests.

Adds src/ to sys.path so tests can import rc_membrane without an install.
"""

import sys
import os

import pytest

repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
src_path = os.path.join(repo_root, 'src')

if src_path not in sys.path:
    sys.path.insert(0, src_path)


@pytest.fixture
def pv10_mcft():
    from rc_membrane.panels import make_panel
    return make_panel("PV10", "mcft")


@pytest.fixture
def pv10_dsfm_mcft_parameters():
    """DSFM element sharing the MCFT fcr/Ec formulas (comparable before cracking)."""
    from rc_membrane.panels import make_panel
    return make_panel("PV10", "dsfm", parameter_model="mcft")
