"""Runner module for the dynamic-import scenario.

Plugin systems and test runners locate their plugins relative to their
own directory and load them by path at runtime.
"""

import os

RUNNER_DIR = os.path.dirname(__file__)
PLUGIN_PATH = os.path.join(RUNNER_DIR, "plugin.py")
