"""Fixture modules probed by the built-in scenarios.

When the verifier is materialized inside a sandbox these files are
materialized with it, so their resolved locations show whether module
resolution stayed inside the sandbox. Importing this package has no side
effects; scenarios load the individual modules themselves.
"""
