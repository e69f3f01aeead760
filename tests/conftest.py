# tests/conftest.py
"""Pytest configuration and shared fixtures for nicescales tests."""
from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest


def pytest_configure() -> None:
    # Ensure nicescales package is importable when running tests from repo root.
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240601)


@pytest.fixture
def cloud(rng: np.random.Generator) -> pd.DataFrame:
    """200 correlated (x, y) points in one group."""
    xy = rng.multivariate_normal([1.0, -2.0], [[2.0, 0.8], [0.8, 1.0]], size=200)
    return pd.DataFrame({"x": xy[:, 0], "y": xy[:, 1]})
