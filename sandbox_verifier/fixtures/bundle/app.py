"""Application entry handed to an external tool."""

from sandbox_verifier.fixtures.bundle import util

MESSAGE = util.greet("world")
