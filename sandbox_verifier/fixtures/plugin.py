"""Plugin loaded by file path at runtime."""

from pathlib import Path

PLUGIN_URL = Path(__file__).absolute().as_uri()
