"""Integration tests against a real symlinked sandbox.

The sandbox_tree fixture builds a runfiles-style symlink farm pointing
into a separate source tree. Lexical resolution must stay inside the
farm; canonicalization must land in the source tree.
"""

import os
import shutil
import sys

import pytest

from sandbox_verifier.boundary import resolve_boundary
from sandbox_verifier.classifier import Classification
from sandbox_verifier.probes import (
    CwdCanonicalizationProbe,
    DynamicImportProbe,
    ExternalToolProbe,
    ImportTracer,
    SelfIdentityProbe,
    ShellRealpathProbe,
    StaticImportProbe,
)
from sandbox_verifier.probes.cwd import working_directory
from sandbox_verifier.scenario import Scenario, run_scenario
from sandbox_verifier.scenarios import get_all_scenarios
from sandbox_verifier.verdict import Outcome

pytestmark = pytest.mark.integration

HAS_REALPATH = shutil.which("realpath") is not None


@pytest.fixture
def source_boundary(sandbox_tree):
    return resolve_boundary(str(sandbox_tree.source))


@pytest.fixture
def landmark_boundary():
    return resolve_boundary(None, landmarks=(".runfiles/",))


@pytest.fixture
def static_module(sandbox_tree, monkeypatch):
    """A uniquely named module reachable only through the sandbox."""
    name = "sbv_sandboxed_static"
    real = sandbox_tree.real(f"{name}.py")
    real.write_text("VALUE = 1\n", encoding="utf-8")
    sandbox_tree.sandboxed(f"{name}.py").symlink_to(real)
    monkeypatch.syspath_prepend(str(sandbox_tree.sandbox))
    yield name
    sys.modules.pop(name, None)


def _scenario(*probes):
    return Scenario(name="sandbox", description="symlinked sandbox", probes=probes)


class TestLexicalResolutionContained:
    def test_dynamic_import_through_file_symlink(self, sandbox_tree, source_boundary, test_settings):
        probe = DynamicImportProbe("plugin.py", relative_to=sandbox_tree.sandbox)
        verdict = run_scenario(_scenario(probe), source_boundary, settings=test_settings)

        assert verdict.outcome is Outcome.NO_ESCAPE
        assert [e.path for e in verdict.entries] == [str(sandbox_tree.sandboxed("plugin.py"))] * 2

    def test_dynamic_import_in_test_mode(self, sandbox_tree, landmark_boundary, test_settings):
        probe = DynamicImportProbe("plugin.py", relative_to=sandbox_tree.sandbox)
        verdict = run_scenario(_scenario(probe), landmark_boundary, settings=test_settings)
        assert verdict.outcome is Outcome.NO_ESCAPE

    def test_dynamic_import_from_linked_working_directory(self, sandbox_tree, source_boundary, test_settings):
        with working_directory(sandbox_tree.linked):
            verdict = run_scenario(
                _scenario(DynamicImportProbe("plugin.py")),
                source_boundary,
                settings=test_settings,
            )
        assert verdict.outcome is Outcome.NO_ESCAPE
        assert verdict.entries[0].path == os.path.join(str(sandbox_tree.linked), "plugin.py")

    def test_static_import_through_sys_path(self, sandbox_tree, static_module, source_boundary, test_settings):
        verdict = run_scenario(
            _scenario(StaticImportProbe(static_module)), source_boundary, settings=test_settings
        )
        assert verdict.outcome is Outcome.NO_ESCAPE
        assert verdict.entries[0].path == str(sandbox_tree.sandboxed(f"{static_module}.py"))

    def test_self_identity_of_sandboxed_file(self, sandbox_tree, landmark_boundary, test_settings):
        url = sandbox_tree.sandboxed("entry.py").as_uri()
        verdict = run_scenario(_scenario(SelfIdentityProbe(url=url)), landmark_boundary, settings=test_settings)
        assert verdict.outcome is Outcome.NO_ESCAPE

    def test_tool_traces_sandboxed_entry(self, sandbox_tree, source_boundary, test_settings):
        probe = ExternalToolProbe(ImportTracer(), [sandbox_tree.sandboxed("entry.py")])
        verdict = run_scenario(_scenario(probe), source_boundary, settings=test_settings)
        assert verdict.outcome is Outcome.NO_ESCAPE


class TestCanonicalizationEscapes:
    def test_cwd_in_linked_directory(self, sandbox_tree, source_boundary, test_settings):
        with working_directory(sandbox_tree.linked):
            verdict = run_scenario(_scenario(CwdCanonicalizationProbe()), source_boundary, settings=test_settings)

        assert verdict.outcome is Outcome.BUG_REPRODUCED
        assert verdict.escaped[0].path == str(sandbox_tree.source / "proj")

    def test_cwd_in_linked_directory_test_mode(self, sandbox_tree, landmark_boundary, test_settings):
        with working_directory(sandbox_tree.linked):
            verdict = run_scenario(
                _scenario(CwdCanonicalizationProbe()), landmark_boundary, settings=test_settings
            )
        assert verdict.outcome is Outcome.BUG_REPRODUCED

    @pytest.mark.skipif(not HAS_REALPATH, reason="realpath command not available")
    def test_oracle_resolves_sandboxed_file(self, sandbox_tree, source_boundary, test_settings):
        probe = ShellRealpathProbe([sandbox_tree.sandboxed("entry.py")])
        verdict = run_scenario(_scenario(probe), source_boundary, settings=test_settings)

        assert verdict.outcome is Outcome.BUG_REPRODUCED
        assert verdict.escaped[0].path == str(sandbox_tree.real("entry.py"))
        assert verdict.offending_strategies == ["shell-realpath"]

    @pytest.mark.skipif(not HAS_REALPATH, reason="realpath command not available")
    def test_oracle_checks_earlier_observations(self, sandbox_tree, source_boundary, test_settings):
        verdict = run_scenario(
            _scenario(
                DynamicImportProbe("plugin.py", relative_to=sandbox_tree.sandbox),
                ShellRealpathProbe(from_observed=True),
            ),
            source_boundary,
            settings=test_settings,
        )

        classifications = [e.classification for e in verdict.entries]
        assert classifications[:2] == [Classification.CONTAINED, Classification.CONTAINED]
        assert classifications[2:] == [Classification.ESCAPED, Classification.ESCAPED]
        assert verdict.offending_strategies == ["shell-realpath"]


class TestCatalogOutsideSandbox:
    def test_all_scenarios_clean_against_unrelated_tree(self, sandbox_tree, source_boundary, test_settings):
        before = os.getcwd()
        verdicts = [run_scenario(s, source_boundary, settings=test_settings) for s in get_all_scenarios()]

        assert all(v.outcome is Outcome.NO_ESCAPE for v in verdicts)
        assert os.getcwd() == before

    def test_catalog_idempotent(self, source_boundary, test_settings):
        first = [run_scenario(s, source_boundary, settings=test_settings) for s in get_all_scenarios()]
        second = [run_scenario(s, source_boundary, settings=test_settings) for s in get_all_scenarios()]
        assert first == second


class TestInProcessCanonicalizationCheck:
    @pytest.mark.skipif(not HAS_REALPATH, reason="realpath command not available")
    def test_patched_canonicalizer_noted(self, sandbox_tree, source_boundary, test_settings, monkeypatch):
        monkeypatch.setattr("sandbox_verifier.probes.cwd._native_realpath", lambda path, strict=False: path)

        with working_directory(sandbox_tree.linked):
            verdict = run_scenario(
                _scenario(CwdCanonicalizationProbe(), ShellRealpathProbe()),
                source_boundary,
                settings=test_settings,
            )

        cwd_entry, oracle_entry = verdict.entries
        assert cwd_entry.classification is Classification.CONTAINED
        assert oracle_entry.classification is Classification.ESCAPED
        assert len(oracle_entry.notes) == 1
        assert "patched" in oracle_entry.notes[0]

    @pytest.mark.skipif(not HAS_REALPATH, reason="realpath command not available")
    def test_native_canonicalizer_agrees(self, sandbox_tree, source_boundary, test_settings):
        with working_directory(sandbox_tree.linked):
            verdict = run_scenario(
                _scenario(CwdCanonicalizationProbe(), ShellRealpathProbe()),
                source_boundary,
                settings=test_settings,
            )
        assert all(e.notes == () for e in verdict.entries)


class TestToolTraceInTestMode:
    def test_standard_library_loads_not_escapes(self, tmp_path, landmark_boundary, test_settings):
        entry_dir = tmp_path / "x.runfiles" / "_main"
        entry_dir.mkdir(parents=True)
        entry = entry_dir / "app.py"
        entry.write_text("import tomllib\nimport wave\n", encoding="utf-8")

        verdict = run_scenario(
            _scenario(ExternalToolProbe(ImportTracer(), [entry])),
            landmark_boundary,
            settings=test_settings,
        )

        assert verdict.outcome is Outcome.NO_ESCAPE
        assert verdict.entries[0].path == str(entry)
