"""Tests for reading Go declarations into the model."""

from pathlib import Path

import pytest

from tracer.model import (
    CONTEXT,
    ArrayParam,
    Attr,
    BasicParam,
    InterfaceParam,
    MapParam,
    Method,
    NamedParam,
    PointerParam,
    SliceParam,
)
from tracer.reader import (
    ReadError,
    SourceReader,
    default_import_name,
    module_path,
    read_dir,
    read_source,
)

PKG_PATH = "example.com/app/svc"


def _read(source: str) -> SourceReader:
    reader = SourceReader(PKG_PATH)
    reader.add_source(source)
    return reader


# ============================================================
# DECLARATIONS
# ============================================================


def test_package_name_and_path(svc_source: str):
    pkg = read_source(svc_source, PKG_PATH)
    assert pkg.name == "svc"
    assert pkg.pkg_path == PKG_PATH


def test_interfaces_in_declaration_order(svc_source: str):
    pkg = read_source(svc_source, PKG_PATH)
    assert [i.name for i in pkg.interfaces] == ["noMethodsWithContext", "Client", "Timer"]
    assert [s.name for s in pkg.structs] == ["client", "Base"]


def test_interface_methods(svc_source: str):
    client = read_source(svc_source, PKG_PATH).find_interface("Client")
    assert client is not None
    string, integer = BasicParam("string"), BasicParam("int")
    assert client.methods == [
        Method("withoutContext"),
        Method("Get", (CONTEXT, string), (integer, BasicParam("error"))),
        Method("Put", (CONTEXT, string, SliceParam(BasicParam("byte"))), (BasicParam("error"),)),
        Method(
            "Buffer",
            (CONTEXT, NamedParam("bytes", "Buffer")),
            (PointerParam(NamedParam("net/http", "Request")),),
        ),
        Method(
            "Lookup",
            (CONTEXT, MapParam(integer, string), ArrayParam(integer, 10)),
            (InterfaceParam((Method("Foo", (string,), (integer,)),)),),
        ),
        Method("Close"),
    ]


def test_struct_attrs(svc_source: str):
    client = read_source(svc_source, PKG_PATH).find_struct("client")
    assert client is not None
    assert client.attrs == [
        Attr("http", PointerParam(NamedParam("net/http", "Client"))),
        Attr("a", BasicParam("int")),
        Attr("b", BasicParam("int")),
        Attr("timer", NamedParam(PKG_PATH, "Timer")),
        Attr("Base", PointerParam(NamedParam(PKG_PATH, "Base"))),
    ]


def test_unsupported_declarations_skipped(svc_source: str):
    reader = _read(svc_source)
    pkg = reader.package()
    assert pkg.find_interface("streamer") is None
    assert reader.skipped["streamer"].msg == "channel types are not supported"
    assert reader.skipped["Getter"].msg == "generic types are not supported"


def test_grouped_parameter_names():
    pkg = _read("package a\ntype I interface {\n\tF(a, b int, c string)\n}\n").package()
    assert pkg.interfaces[0].methods == [
        Method("F", (BasicParam("int"), BasicParam("int"), BasicParam("string")))
    ]


def test_embedded_error_and_any():
    source = "package a\ntype E interface {\n\terror\n\tany\n\tCode() int\n}\n"
    pkg = _read(source).package()
    assert [m.name for m in pkg.interfaces[0].methods] == ["Error", "Code"]


def test_embedded_interface_declared_later():
    source = "package a\ntype A interface {\n\tB\n\tX()\n}\ntype B interface {\n\tY()\n}\n"
    pkg = _read(source).package()
    assert [m.name for m in pkg.find_interface("A").methods] == ["Y", "X"]


def test_embedding_cycle_skipped():
    source = "package a\ntype A interface {\n\tB\n}\ntype B interface {\n\tA\n}\n"
    reader = _read(source)
    pkg = reader.package()
    assert pkg.interfaces == []
    assert "embeds itself" in reader.skipped["A"].msg
    assert "B" in reader.skipped


def test_cycle_through_inline_interface_skipped():
    reader = _read("package a\n\ntype A interface {\n\tM(interface{ A })\n}\n")
    pkg = reader.package()
    assert pkg.interfaces == []
    assert "embeds itself" in reader.skipped["A"].msg


def test_cycle_through_inline_result_skipped():
    source = "package a\ntype A interface {\n\tM() map[string]interface{ B }\n}\ntype B interface {\n\tA\n}\n"
    reader = _read(source)
    reader.package()
    assert "embeds itself" in reader.skipped["A"].msg
    assert "embeds itself" in reader.skipped["B"].msg


def test_foreign_embed_skipped():
    source = 'package a\nimport "io"\ntype R interface {\n\tio.Reader\n}\n'
    reader = _read(source)
    reader.package()
    assert "from another package" in reader.skipped["R"].msg


def test_variadic_skipped():
    reader = _read("package a\ntype I interface {\n\tF(xs ...int)\n}\n")
    reader.package()
    assert reader.skipped["I"].msg == "variadic parameters are not supported"


def test_function_type_skipped():
    reader = _read("package a\ntype I interface {\n\tF(cb func())\n}\n")
    reader.package()
    assert reader.skipped["I"].msg == "function types are not supported"


def test_unknown_qualifier_skipped():
    reader = _read("package a\ntype I interface {\n\tF(x foo.Bar)\n}\n")
    reader.package()
    assert reader.skipped["I"].msg == "unknown package foo"


def test_array_length_literals():
    source = "package a\ntype I interface {\n\tF([010]int, [0x10]int, [1_000]int, [0]int)\n}\n"
    method = _read(source).package().interfaces[0].methods[0]
    assert [p.length for p in method.params] == [8, 16, 1000, 0]


def test_non_type_declarations_ignored():
    source = "package a\ntype ID string\nvar x = 1\nfunc f() {}\n"
    pkg = _read(source).package()
    assert pkg.interfaces == [] and pkg.structs == []


# ============================================================
# ERRORS
# ============================================================


def test_syntax_error():
    with pytest.raises(ReadError) as exc:
        SourceReader().add_source("package a\nfunc (\n", "bad.go")
    assert exc.value.msg == "bad.go: syntax error"
    assert exc.value.line >= 1


def test_mismatched_package_names():
    reader = SourceReader()
    reader.add_source("package a\n", "a.go")
    with pytest.raises(ReadError) as exc:
        reader.add_source("package b\n", "b.go")
    assert "found packages a and b" in exc.value.msg


def test_empty_directory(tmp_path: Path):
    with pytest.raises(ReadError) as exc:
        read_dir(tmp_path)
    assert exc.value.msg.startswith("no Go files in")


# ============================================================
# PATHS
# ============================================================


def test_read_dir(svc_dir: Path):
    pkg = read_dir(svc_dir)
    assert pkg.name == "svc"
    assert pkg.pkg_path == PKG_PATH
    assert pkg.find_interface("Client") is not None


def test_read_dir_without_go_mod(tmp_path: Path):
    (tmp_path / "a.go").write_text("package a\n")
    pkg = read_dir(tmp_path)
    assert pkg.pkg_path == "a"


def test_module_path(tmp_path: Path):
    (tmp_path / "go.mod").write_text('module "example.com/m" // root\n')
    sub = tmp_path / "x" / "y"
    sub.mkdir(parents=True)
    assert module_path(tmp_path) == "example.com/m"
    assert module_path(sub) == "example.com/m/x/y"


def test_default_import_name():
    assert default_import_name("context") == "context"
    assert default_import_name("net/http") == "http"
    assert default_import_name("github.com/go-redis/redis/v8") == "redis"
    assert default_import_name("gopkg.in/yaml.v3") == "yaml"
    assert default_import_name("github.com/hashicorp/golang-lru") == "lru"
