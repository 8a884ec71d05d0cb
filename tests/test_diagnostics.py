"""Tests for diagnostic normalization, placement and the collection."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.conftest import FakeCatalog, FakeDeployer, FakeUI, load_fixture
from ibmi_actions.diagnostics.extractor import (
    FULL_LINE_COLUMNS,
    DiagnosticCollection,
    DiagnosticsExtractor,
    to_diagnostic,
    to_diagnostics,
)
from ibmi_actions.models import (
    CompileError,
    ConnectionSettings,
    EvfEventInfo,
    Range,
    ResourceUri,
    Severity,
    StaticConfigStore,
    Workspace,
)


def _listing(file_name: str, *errors: str) -> list[str]:
    """Build a minimal one-processor listing for *file_name*."""
    lines = [
        "PROCESSOR  0 000 1",
        f"FILEID     0 001 000000 {len(file_name):03d} {file_name} 20230101000000 0",
        *errors,
        "FILEEND    0 001 000050",
    ]
    return [line.ljust(150) for line in lines]


def _error(line: int, column: int, to_column: int, sev: int, code: str = "RNF7030", text: str = "Problem.") -> str:
    return (
        f"ERROR      0 001 1 {line:06d} {line:06d} {column:03d} {line:06d} {to_column:03d} "
        f"{code} S {sev:02d} {len(text):03d} {text}"
    )


def _extractor(**kwargs) -> DiagnosticsExtractor:
    settings = kwargs.pop("settings", None) or ConnectionSettings()
    return DiagnosticsExtractor(DiagnosticCollection(), config=StaticConfigStore(settings), **kwargs)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


class TestToDiagnostic:
    def test_full_line_fallback(self):
        d = to_diagnostic(CompileError("SQL1001", 30, "Missing.", 10, 10, 0, 0))
        assert d.range == Range.of(9, 0, 9, FULL_LINE_COLUMNS)
        assert d.severity is Severity.ERROR
        assert d.message == "Missing. (30)"
        assert d.code == "SQL1001"

    def test_columns_converted(self):
        d = to_diagnostic(CompileError("RNF3312", 20, "Twice.", 6, 6, 7, 11))
        assert d.range == Range.of(5, 6, 5, 11)
        assert d.severity is Severity.WARNING

    def test_column_one_to_zero_still_falls_back(self):
        d = to_diagnostic(CompileError("X", 0, "t", 1, 1, 1, 0))
        assert d.range == Range.of(0, 0, 0, FULL_LINE_COLUMNS)

    def test_end_column_zero_kept_when_start_column_set(self):
        d = to_diagnostic(CompileError("X", 30, "t", 3, 3, 5, 0))
        assert d.range == Range.of(2, 4, 2, 0)

    def test_line_zero_clamped(self):
        d = to_diagnostic(CompileError("RNS9308", 50, "Stopped.", 0, 0, 0, 0))
        assert d.range.start.line == 0
        assert d.severity is Severity.ERROR

    @pytest.mark.parametrize(
        "sev,expected",
        [
            (0, Severity.INFORMATION),
            (10, Severity.INFORMATION),
            (20, Severity.WARNING),
            (30, Severity.ERROR),
            (40, Severity.ERROR),
            (50, Severity.ERROR),
            (99, Severity.INFORMATION),
        ],
    )
    def test_severity(self, sev, expected):
        assert Severity.from_compiler(sev) is expected

    def test_hidden_codes_dropped(self):
        errors = [
            CompileError("RNF7031", 0, "a", 1, 1, 1, 1),
            CompileError("RNF7030", 30, "b", 2, 2, 1, 1),
        ]
        assert [d.code for d in to_diagnostics(errors, ["RNF7031"])] == ["RNF7030"]


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


class TestDiagnosticCollection:
    def test_set_replaces(self):
        c = DiagnosticCollection()
        uri = ResourceUri("member", "/LIB/QSRC/A.RPGLE")
        first = to_diagnostics([CompileError("A", 30, "a", 1, 1, 1, 5)])
        second = to_diagnostics([CompileError("B", 30, "b", 2, 2, 1, 5)])
        c.set(uri, first)
        c.set(uri, second)
        assert [d.code for d in c.get(uri)] == ["B"]
        assert len(c) == 1

    def test_clear_range(self):
        c = DiagnosticCollection()
        uri = ResourceUri("member", "/LIB/QSRC/A.RPGLE")
        c.set(uri, to_diagnostics([CompileError("A", 30, "a", 1, 1, 1, 5), CompileError("B", 30, "b", 10, 10, 1, 5)]))
        c.clear_range(uri, Range.of(0, 0, 0, 3))
        assert [d.code for d in c.get(uri)] == ["B"]

    def test_delete_and_clear(self):
        c = DiagnosticCollection()
        a = ResourceUri("member", "/L/F/A.RPGLE")
        b = ResourceUri("member", "/L/F/B.RPGLE")
        c.set(a, [])
        c.set(b, [])
        c.delete(a)
        assert not c.has(a)
        assert c.has(b)
        c.clear()
        assert len(c) == 0


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


class TestPlacement:
    def test_member_identity(self):
        ex = _extractor()
        ex.handle_lines(_listing("LIB1/QRPGLESRC(PGM1)", _error(10, 0, 0, 30)), EvfEventInfo("LIB1", "PGM1", "RPGLE"))
        uri = ResourceUri("member", "/LIB1/QRPGLESRC/PGM1.RPGLE")
        [d] = ex.collection.get(uri)
        assert d.range == Range.of(9, 0, 9, 100)
        assert d.severity is Severity.ERROR

    def test_member_with_asp(self):
        ex = _extractor()
        ex.handle_lines(_listing("LIB1/QRPGLESRC(PGM1)", _error(1, 1, 5, 30)), EvfEventInfo("LIB1", "PGM1", "RPGLE", "IASP1"))
        assert ex.collection.has(ResourceUri("member", "/IASP1/LIB1/QRPGLESRC/PGM1.RPGLE"))

    def test_streamfile_identity(self):
        ex = _extractor()
        ex.handle_lines(_listing("/home/me/a.rpgle", _error(3, 2, 4, 20)), EvfEventInfo("DEV", "A", "RPGLE"))
        assert ex.collection.has(ResourceUri("streamfile", "/home/me/a.rpgle"))

    def test_open_document_reused(self):
        opened = ResourceUri("member", "/lib1/qrpglesrc/pgm1.rpgle")
        ex = _extractor(ui=FakeUI(documents=[opened]))
        ex.handle_lines(_listing("LIB1/QRPGLESRC(PGM1)", _error(1, 1, 5, 30)), EvfEventInfo("LIB1", "PGM1", "RPGLE"))
        assert ex.collection.has(opened)

    def test_workspace_file(self, tmp_path: Path):
        ws = Workspace("proj", tmp_path)
        deployer = FakeDeployer({"proj": "/home/me/builds/proj"})
        ex = _extractor(deployer=deployer)
        ex.handle_lines(
            _listing("/home/me/builds/proj/qrpglesrc/hello.rpgle", _error(1, 1, 5, 30)),
            EvfEventInfo("DEV", "HELLO", "RPGLE", None, ws),
        )
        assert ex.collection.has(ResourceUri.for_file(tmp_path / "qrpglesrc" / "hello.rpgle"))

    def test_workspace_file_under_iasp(self, tmp_path: Path):
        ws = Workspace("proj", tmp_path)
        ex = _extractor(deployer=FakeDeployer({"proj": "/build"}), catalog=FakeCatalog(iasps=["IASP1"]))
        ex.handle_lines(
            _listing("/IASP1/build/src/a.rpgle", _error(1, 1, 5, 30)),
            EvfEventInfo("DEV", "A", "RPGLE", None, ws),
        )
        assert ex.collection.has(ResourceUri.for_file(tmp_path / "src" / "a.rpgle"))

    def test_temporary_member_uses_open_document(self, tmp_path: Path):
        ws = Workspace("proj", tmp_path)
        opened = ResourceUri.for_file(tmp_path / "qrpglesrc" / "hello.rpgle")
        ex = _extractor(deployer=FakeDeployer({"proj": "/build"}), ui=FakeUI(documents=[opened]))
        ex.handle_lines(
            _listing("DEV/QTMPSRC(HELLO)", _error(1, 1, 5, 30)),
            EvfEventInfo("DEV", "HELLO", "RPGLE", None, ws),
        )
        assert ex.collection.has(opened)

    def test_hidden_codes_from_settings(self):
        ex = _extractor(settings=ConnectionSettings(hide_compile_errors=["RNF7030"]))
        ex.handle_lines(
            _listing("LIB1/QRPGLESRC(PGM1)", _error(1, 1, 5, 30), _error(2, 1, 5, 30, code="RNF5377")),
            EvfEventInfo("LIB1", "PGM1", "RPGLE"),
        )
        [d] = ex.collection.get(ResourceUri("member", "/LIB1/QRPGLESRC/PGM1.RPGLE"))
        assert d.code == "RNF5377"

    def test_empty_listing_clears(self):
        ex = _extractor()
        uri = ResourceUri("member", "/LIB1/QRPGLESRC/PGM1.RPGLE")
        ex.collection.set(uri, [])
        ex.handle_lines([], EvfEventInfo("LIB1", "PGM1", "RPGLE"))
        assert len(ex.collection) == 0

    def test_real_listing_placed(self):
        ex = _extractor()
        ex.handle_lines(load_fixture("employees_member.evfevent"), EvfEventInfo("LIAMA", "EMPLOYEES", "SQLRPGLE"))
        diagnostics = ex.collection.get(ResourceUri("member", "/LIAMA/QRPGLESRC/EMPLOYEES.SQLRPGLE"))
        assert len(diagnostics) == 10


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestRefresh:
    async def test_from_server(self):
        catalog = FakeCatalog({("LIB1", "PGM1"): _listing("LIB1/QRPGLESRC(PGM1)", _error(4, 1, 5, 30))})
        ex = _extractor(catalog=catalog)
        await ex.refresh_from_server(EvfEventInfo("LIB1", "PGM1", "RPGLE"))
        assert catalog.requests == [("LIB1", "PGM1")]
        assert ex.collection.has(ResourceUri("member", "/LIB1/QRPGLESRC/PGM1.RPGLE"))

    async def test_from_server_clears_first_when_configured(self):
        catalog = FakeCatalog({("LIB1", "PGM1"): _listing("LIB1/QRPGLESRC(PGM1)", _error(4, 1, 5, 30))})
        ex = _extractor(catalog=catalog, settings=ConnectionSettings(clear_errors_before_build=True))
        stale = ResourceUri("member", "/LIB1/QRPGLESRC/OTHER.RPGLE")
        ex.collection.set(stale, [])
        await ex.refresh_from_server(EvfEventInfo("LIB1", "PGM1", "RPGLE"))
        assert not ex.collection.has(stale)

    async def test_from_server_keeps_other_files(self):
        catalog = FakeCatalog({("LIB1", "PGM1"): _listing("LIB1/QRPGLESRC(PGM1)", _error(4, 1, 5, 30))})
        ex = _extractor(catalog=catalog)
        other = ResourceUri("member", "/LIB1/QRPGLESRC/OTHER.RPGLE")
        ex.collection.set(other, [])
        await ex.refresh_from_server(EvfEventInfo("LIB1", "PGM1", "RPGLE"))
        assert ex.collection.has(other)

    async def test_from_local(self, tmp_path: Path):
        ws = Workspace("proj", tmp_path)
        (tmp_path / ".evfevent").mkdir()
        (tmp_path / ".evfevent" / "hello.evfevent").write_text(
            "\n".join(_listing("/build/qrpglesrc/hello.rpgle", _error(2, 1, 5, 30))), encoding="utf-8"
        )
        ex = _extractor(deployer=FakeDeployer({"proj": "/build"}))
        await ex.refresh_from_local(EvfEventInfo("DEV", "HELLO", "RPGLE", None, ws))
        assert ex.collection.has(ResourceUri.for_file(tmp_path / "qrpglesrc" / "hello.rpgle"))

    async def test_from_local_without_files_clears(self, tmp_path: Path):
        ex = _extractor()
        ex.collection.set(ResourceUri("member", "/A/B/C.RPGLE"), [])
        await ex.refresh_from_local(EvfEventInfo("DEV", "HELLO", "RPGLE", None, Workspace("proj", tmp_path)))
        assert len(ex.collection) == 0
