"""Tests for per-target context derivation and generic variables."""

from __future__ import annotations

from pathlib import Path

import pytest

from ibmi_actions.engine.context import (
    build_library_list,
    derive_context,
    generic_variables,
    object_name_from_file,
    parse_member_path,
    qualify_path,
)
from ibmi_actions.exceptions import InvalidPathError
from ibmi_actions.models import ActionType, Target, Workspace


def _generic(**overrides):
    kwargs = dict(
        current_library="DEV",
        library_list=["A", "&CURLIB", "B", "A"],
        current_user="ME",
        current_host="box",
        home_directory="/home/ME",
    )
    kwargs.update(overrides)
    return generic_variables(**kwargs)


# ---------------------------------------------------------------------------
# Library list
# ---------------------------------------------------------------------------


class TestLibraryList:
    def test_placeholders_deduped_and_reversed(self):
        assert build_library_list(["A", "&CURLIB", "B"], "C") == ["B", "C", "A"]

    def test_duplicates_removed(self):
        assert build_library_list(["A", "B", "A", "*CURLIB", "&BUILDLIB"], "C") == ["C", "B", "A"]

    def test_empty_entries_skipped(self):
        assert build_library_list(["", "A"], "C") == ["A"]


class TestGenericVariables:
    def test_builtins(self):
        v = _generic()
        assert v.get("&CURLIB") == "DEV"
        assert v.get("*CURLIB") == "DEV"
        assert v.get("&BUILDLIB") == "DEV"
        assert v.get("&USERNAME") == "ME"
        assert v.get("{usrprf}") == "ME"
        assert v.get("&HOST") == "box"
        assert v.get("&HOME") == "/home/ME"
        assert v.get("&WORKDIR") == "/home/ME"

    def test_library_list_forms(self):
        v = _generic(library_list=["A", "&CURLIB", "B"], current_library="C")
        assert v.get("&LIBL") == "A &CURLIB B"
        assert v.get("&LIBLC") == "B,C,A"
        assert v.get("&LIBLS") == "B C A"

    def test_custom_variables_prefixed(self):
        v = _generic(custom_variables=[("target", "V7R4M0")])
        assert v.get("&TARGET") == "V7R4M0"

    def test_overrides_win(self):
        v = _generic(overrides={"&CURLIB": "ENVLIB", "&LIBL": "X Y", "&EXTRA": "1"})
        assert v.get("&CURLIB") == "ENVLIB"
        assert v.get("&LIBLS") == "Y X"
        assert v.get("&EXTRA") == "1"

    def test_default_library_when_blank(self):
        assert _generic(current_library="").get("&CURLIB") == "QGPL"


# ---------------------------------------------------------------------------
# Member paths
# ---------------------------------------------------------------------------


class TestMemberPath:
    def test_three_parts(self):
        m = parse_member_path("/lib1/qrpglesrc/pgm1.rpgle")
        assert (m.library, m.file, m.name, m.extension, m.asp) == ("LIB1", "QRPGLESRC", "PGM1", "RPGLE", None)
        assert m.basename == "PGM1.RPGLE"

    def test_with_asp(self):
        m = parse_member_path("/IASP1/LIB1/QRPGLESRC/PGM1.RPGLE")
        assert m.asp == "IASP1"

    def test_variant_characters(self):
        m = parse_member_path("/#LIB/$SRC/@PGM.RPGLE")
        assert (m.library, m.file, m.name) == ("#LIB", "$SRC", "@PGM")

    @pytest.mark.parametrize(
        "path",
        [
            "/LIB1/PGM1.RPGLE",
            "/LIB1/QRPGLESRC/PGM1",
            "/LIBRARYNAMEISTOOLONG/QRPGLESRC/PGM1.RPGLE",
            "/LIB1/QRPG LESRC/PGM1.RPGLE",
        ],
    )
    def test_invalid(self, path):
        with pytest.raises(InvalidPathError):
            parse_member_path(path)


class TestHelpers:
    @pytest.mark.parametrize(
        "basename,expected",
        [
            ("hello.rpgle", "hello"),
            ("hello.pgm.rpgle", "hello"),
            ("service.srvpgm.sqlrpgle", "service"),
            ("hello-display.rpgle", "hello"),
            ("noext", "noext"),
        ],
    )
    def test_object_name_from_file(self, basename, expected):
        assert object_name_from_file(basename) == expected

    def test_qualify_path(self):
        assert qualify_path("DEV", "QTMPSRC", "HELLO") == "/QSYS.LIB/DEV.LIB/QTMPSRC.FILE/HELLO.MBR"
        assert qualify_path("QSYS", "QCLSRC") == "/QSYS.LIB/QCLSRC.FILE"
        assert qualify_path("DEV", "F", asp="IASP1") == "/IASP1/QSYS.LIB/DEV.LIB/F.FILE"


# ---------------------------------------------------------------------------
# derive_context
# ---------------------------------------------------------------------------


class TestDeriveMember:
    def test_member_variables(self):
        target = Target.from_uri("member:/LIB1/QRPGLESRC/PGM1.RPGLE")
        ctx = derive_context(ActionType.MEMBER, target, command="", current_library="DEV", home_directory="/home")
        assert ctx.variables["&OPENLIB"] == "LIB1"
        assert ctx.variables["&OPENLIBL"] == "lib1"
        assert ctx.variables["&OPENSPF"] == "QRPGLESRC"
        assert ctx.variables["&OPENMBR"] == "PGM1"
        assert ctx.variables["&OPENMBRL"] == "pgm1"
        assert ctx.variables["&EXT"] == "RPGLE"
        assert ctx.variables["&EXTL"] == "rpgle"
        assert (ctx.evf_info.library, ctx.evf_info.object, ctx.evf_info.extension) == ("LIB1", "PGM1", "RPGLE")

    def test_member_invalid(self):
        target = Target.from_uri("member:/LIB1/PGM1.RPGLE")
        with pytest.raises(InvalidPathError):
            derive_context(ActionType.MEMBER, target, command="", current_library="DEV", home_directory="/home")


class TestDeriveStreamfile:
    def test_streamfile_variables(self):
        target = Target.from_uri("streamfile:/home/ME/src/hello.pgm.rpgle")
        ctx = derive_context(ActionType.STREAMFILE, target, command="CRTBNDRPG", current_library="dev", home_directory="/home/ME")
        assert ctx.variables["&RELATIVEPATH"] == "src/hello.pgm.rpgle"
        assert ctx.variables["&FULLPATH"] == "/home/ME/src/hello.pgm.rpgle"
        assert ctx.variables["&FILEDIR"] == "/home/ME/src"
        assert ctx.variables["&PARENT"] == "src"
        assert ctx.variables["&BASENAME"] == "hello.pgm.rpgle"
        assert ctx.variables["{filename}"] == "hello.pgm.rpgle"
        assert ctx.variables["&NAME"] == "hello"
        assert ctx.variables["&EXT"] == "RPGLE"
        assert "&SRCFILE" not in ctx.variables
        assert (ctx.evf_info.library, ctx.evf_info.object) == ("DEV", "HELLO")

    def test_event_info_keeps_extension_case(self):
        target = Target.from_uri("streamfile:/home/ME/src/hello.sqlRpgle")
        ctx = derive_context(ActionType.STREAMFILE, target, command="", current_library="DEV", home_directory="/home/ME")
        assert ctx.evf_info.extension == "sqlRpgle"
        assert ctx.variables["&EXT"] == "SQLRPGLE"

    def test_source_file_variables_when_referenced(self):
        target = Target.from_uri("streamfile:/home/ME/hello.rpgle")
        ctx = derive_context(
            ActionType.STREAMFILE, target, command="CRTBNDRPG SRCFILE(&SRCFILE)", current_library="DEV", home_directory="/home/ME"
        )
        assert ctx.variables["&SRCLIB"] == "DEV"
        assert ctx.variables["&SRCPF"] == "QTMPSRC"
        assert ctx.variables["&SRCFILE"] == "DEV/QTMPSRC"


class TestDeriveFile:
    def test_workspace_file(self, tmp_path: Path):
        root = tmp_path / "proj"
        (root / "qrpglesrc").mkdir(parents=True)
        source = root / "qrpglesrc" / "employees.pgm.sqlrpgle"
        source.write_text("", encoding="utf-8")
        ws = Workspace("proj", root)
        target = Target.from_uri(f"file://{source.as_posix()}", workspace=ws)

        ctx = derive_context(
            ActionType.FILE,
            target,
            command="",
            current_library="DEV",
            home_directory="/home/ME",
            deploy_directory="/home/ME/builds/proj",
            branch="feature/123-thing",
            branch_library="FEA123",
        )
        assert ctx.variables["&RELATIVEPATH"] == "qrpglesrc/employees.pgm.sqlrpgle"
        assert ctx.variables["&FULLPATH"] == "/home/ME/builds/proj/qrpglesrc/employees.pgm.sqlrpgle"
        assert ctx.variables["{path}"] == ctx.variables["&FULLPATH"]
        assert ctx.variables["&WORKDIR"] == "/home/ME/builds/proj"
        assert ctx.variables["&FILEDIR"] == "/home/ME/builds/proj/qrpglesrc"
        assert ctx.variables["&BRANCH"] == "feature/123-thing"
        assert ctx.variables["&BRANCHLIB"] == "FEA123"
        assert ctx.variables["&NAME"] == "employees"
        assert ctx.evf_info.object == "EMPLOYEES"
        assert ctx.evf_info.workspace == ws

    def test_file_outside_workspace(self, tmp_path: Path):
        ws = Workspace("proj", tmp_path / "proj")
        (tmp_path / "proj").mkdir()
        target = Target.from_uri(f"file://{(tmp_path / 'other.rpgle').as_posix()}", workspace=ws)
        with pytest.raises(InvalidPathError):
            derive_context(
                ActionType.FILE, target, command="", current_library="DEV", home_directory="/home", deploy_directory="/build"
            )


class TestDeriveObject:
    def test_object_variables(self):
        target = Target.from_uri("object:/LIB1/PGM1.PGM")
        ctx = derive_context(ActionType.OBJECT, target, command="", current_library="DEV", home_directory="/home")
        assert ctx.variables["&LIBRARY"] == "LIB1"
        assert ctx.variables["&NAME"] == "PGM1"
        assert ctx.variables["&TYPE"] == "PGM"
        assert ctx.variables["&EXTL"] == "pgm"
        assert (ctx.evf_info.library, ctx.evf_info.object) == ("LIB1", "PGM1")

    def test_object_invalid(self):
        target = Target.from_uri("object:/LIB1/QRPGLESRC/PGM1")
        with pytest.raises(InvalidPathError):
            derive_context(ActionType.OBJECT, target, command="", current_library="DEV", home_directory="/home")
