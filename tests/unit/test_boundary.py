"""Unit tests for boundary resolution."""

import pytest

from sandbox_verifier.boundary import (
    Boundary,
    ExecutionMode,
    boundary_from_environment,
    normalize_path,
    resolve_boundary,
)
from sandbox_verifier.exceptions import BoundaryUndetermined
from sandbox_verifier.settings import Settings


class TestResolveBoundary:
    def test_absent_signal_selects_test_mode(self):
        boundary = resolve_boundary(None)
        assert boundary.mode is ExecutionMode.TEST
        assert boundary.landmarks == (".runfiles/", "/execroot/")
        assert boundary.source_tree is None

    def test_empty_signal_treated_as_absent(self):
        assert resolve_boundary("").mode is ExecutionMode.TEST

    def test_custom_landmarks(self):
        boundary = resolve_boundary(None, landmarks=[".sandbox/"])
        assert boundary.landmarks == (".sandbox/",)

    def test_present_signal_selects_run_mode(self):
        boundary = resolve_boundary("/home/user/src")
        assert boundary.mode is ExecutionMode.RUN
        assert boundary.source_tree == "/home/user/src"
        assert boundary.landmarks == ()

    def test_trailing_separator_normalized(self):
        assert resolve_boundary("/home/user/src/") == resolve_boundary("/home/user/src")

    def test_dot_segments_normalized_lexically(self):
        assert resolve_boundary("/home/./user/x/../src").source_tree == "/home/user/src"

    def test_relative_signal_is_fatal(self):
        with pytest.raises(BoundaryUndetermined) as exc:
            resolve_boundary("home/user/src")
        assert exc.value.signal == "home/user/src"

    def test_nul_byte_is_fatal(self):
        with pytest.raises(BoundaryUndetermined):
            resolve_boundary("/home/user\x00/src")

    def test_empty_landmarks_are_fatal(self):
        with pytest.raises(BoundaryUndetermined):
            resolve_boundary(None, landmarks=())

    def test_blank_landmark_is_fatal(self):
        with pytest.raises(BoundaryUndetermined):
            resolve_boundary(None, landmarks=(".runfiles/", ""))


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("/a/b/", "/a/b"),
            ("/a//b", "/a/b"),
            ("//a/b", "/a/b"),
            ("/a/b/../c", "/a/c"),
            ("/", "/"),
        ],
    )
    def test_lexical_normalization(self, raw, expected):
        assert normalize_path(raw) == expected


class TestBoundaryValue:
    def test_is_immutable(self):
        boundary = resolve_boundary("/src")
        with pytest.raises(AttributeError):
            boundary.source_tree = "/other"  # type: ignore[misc]

    def test_run_mode_requires_source_tree(self):
        with pytest.raises(ValueError, match="source tree"):
            Boundary(mode=ExecutionMode.RUN)

    def test_test_mode_requires_landmark(self):
        with pytest.raises(ValueError, match="landmark"):
            Boundary(mode=ExecutionMode.TEST)

    def test_describe(self):
        assert resolve_boundary("/src").describe() == "source tree /src"
        assert resolve_boundary(None, landmarks=(".runfiles/",)).describe() == "landmark '.runfiles/'"


class TestBoundaryFromEnvironment:
    def test_reads_default_variable(self, test_settings):
        boundary = boundary_from_environment(
            {"BUILD_WORKSPACE_DIRECTORY": "/work/repo"},
            settings=test_settings,
        )
        assert boundary.mode is ExecutionMode.RUN
        assert boundary.source_tree == "/work/repo"

    def test_missing_variable(self, test_settings):
        boundary = boundary_from_environment({}, settings=test_settings)
        assert boundary.mode is ExecutionMode.TEST
        assert boundary.landmarks == tuple(test_settings.sandbox_landmarks)

    def test_custom_variable_name(self):
        settings = Settings(_env_file=None, source_tree_env="SOURCE_ROOT")
        environ = {"SOURCE_ROOT": "/repo", "BUILD_WORKSPACE_DIRECTORY": "/ignored"}
        assert boundary_from_environment(environ, settings=settings).source_tree == "/repo"

    def test_defaults_to_process_environment(self, monkeypatch, test_settings):
        monkeypatch.setenv("BUILD_WORKSPACE_DIRECTORY", "/from/env")
        assert boundary_from_environment(settings=test_settings).source_tree == "/from/env"

    def test_malformed_variable_is_fatal(self, test_settings):
        with pytest.raises(BoundaryUndetermined):
            boundary_from_environment({"BUILD_WORKSPACE_DIRECTORY": "relative"}, settings=test_settings)
