"""Statically imported dependency of the entry module."""

from pathlib import Path

DEP_URL = Path(__file__).absolute().as_uri()
