"""Entry module that derives its own location and imports a dependency."""

import os
from pathlib import Path

from sandbox_verifier.fixtures import dep

ENTRY_URL = Path(__file__).absolute().as_uri()
ENTRY_DIR = os.path.dirname(__file__)
DEP_URL = dep.DEP_URL
