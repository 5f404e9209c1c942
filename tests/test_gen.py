"""Tests for the tracing, timing and constructor generators."""

import shutil
import subprocess
from pathlib import Path

import pytest

from tracer import __version__
from tracer.builder import Builder
from tracer.cli import generate
from tracer.gen import GenerationError, Wrapper, constructor, timing, tracing, wrapper_name
from tracer.model import CONTEXT, Attr, BasicParam, Interface, Method, NamedParam, Package, Struct
from tracer.reader import read_dir

GET = Method("Get", (CONTEXT, BasicParam("string")), (BasicParam("int"), BasicParam("error")))
CLOSE = Method("Close")

EXPECTED = f"""\
// Code generated by tracer v{__version__}. DO NOT EDIT.

package svc

import i0 "context"
import i1 "example.com/trace"
import i2 "time"

type tracingClient struct {{
	next Client
}}

func (t tracingClient) Get(p0 i0.Context, p1 string) (int, error) {{
	ctx, span := i1.StartSpan(p0, "Client.Get")
	defer span.End()
	return t.next.Get(ctx, p1)
}}

func (t tracingClient) Close() {{
	t.next.Close()
}}

type timingClient struct {{
	next  Client
	timer interface {{
		Timing(p0 string, p1 i2.Duration)
	}}
}}

func (t timingClient) Get(p0 i0.Context, p1 string) (int, error) {{
	start := i2.Now()
	defer func() {{ t.timer.Timing("Client.Get", i2.Since(start)) }}()
	return t.next.Get(p0, p1)
}}

func (t timingClient) Close() {{
	start := i2.Now()
	defer func() {{ t.timer.Timing("Client.Close", i2.Since(start)) }}()
	t.next.Close()
}}

func NewClient(p0 Timer) Client {{
	base := &client{{
		timer: p0,
	}}
	var impl Client = base
	impl = tracingClient{{next: impl}}
	impl = timingClient{{next: impl, timer: base.timer}}
	return impl
}}
"""


def _svc(*methods: Method, attrs: list[Attr] | None = None) -> Package:
    if attrs is None:
        attrs = [Attr("timer", NamedParam("example.com/svc", "Timer"))]
    return Package(
        "svc",
        "example.com/svc",
        [Interface("Client", list(methods))],
        [Struct("client", attrs)],
    )


# ============================================================
# FULL OUTPUT
# ============================================================


def test_tracing_and_timing():
    pkg = _svc(GET, CLOSE)
    assert generate(pkg, "Client", "client", "example.com/trace", "timer") == EXPECTED


def test_constructor_only():
    out = generate(_svc(CLOSE, attrs=[]), "Client", "client")
    assert out.endswith(
        "\nfunc NewClient() Client {\n"
        "\tbase := &client{}\n"
        "\tvar impl Client = base\n"
        "\treturn impl\n"
        "}\n"
    )
    assert "import" not in out


def test_constructor_aligns_keyed_fields():
    attrs = [Attr("a", BasicParam("int")), Attr("longer", BasicParam("string"))]
    out = generate(_svc(CLOSE, attrs=attrs), "Client", "client")
    assert "func NewClient(p0 int, p1 string) Client {\n" in out
    assert "\tbase := &client{\n\t\ta:      p0,\n\t\tlonger: p1,\n\t}\n" in out


def test_tracing_skips_methods_without_context():
    out = generate(_svc(GET, CLOSE), "Client", "client", "example.com/trace")
    assert out.count("StartSpan") == 1
    assert "func (t tracingClient) Close() {\n\tt.next.Close()\n}\n" in out


def test_context_not_first():
    m = Method("Put", (BasicParam("string"), CONTEXT))
    out = generate(_svc(m), "Client", "client", "example.com/trace")
    assert 'ctx, span := i1.StartSpan(p1, "Client.Put")' in out
    assert "\tt.next.Put(p0, ctx)\n" in out


def _gofmt_lists(path: Path) -> str:
    """Files gofmt would reformat; empty when path is already canonical."""
    result = subprocess.run(["gofmt", "-e", "-l", str(path)], capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
    return result.stdout


@pytest.mark.skipif(shutil.which("gofmt") is None, reason="gofmt not installed")
def test_output_is_gofmt_canonical(tmp_path: Path):
    path = tmp_path / "wrap.go"
    path.write_text(generate(_svc(GET, CLOSE), "Client", "client", "example.com/trace", "timer"))
    assert _gofmt_lists(path) == ""


@pytest.mark.skipif(shutil.which("gofmt") is None, reason="gofmt not installed")
def test_read_package_output_is_gofmt_canonical(svc_dir: Path, tmp_path: Path):
    path = tmp_path / "wrap.go"
    pkg = read_dir(svc_dir)
    path.write_text(generate(pkg, "Client", "client", "example.com/trace", "timer"))
    assert _gofmt_lists(path) == ""


# ============================================================
# PRECONDITIONS
# ============================================================


def test_tracing_requires_context_method():
    with pytest.raises(GenerationError) as exc:
        generate(_svc(CLOSE), "Client", "client", "example.com/trace")
    assert exc.value.msg == "could not find any methods taking context in Client"


def test_timing_requires_attribute():
    with pytest.raises(GenerationError) as exc:
        generate(_svc(GET), "Client", "client", "", "nope")
    assert exc.value.msg == "struct client does not have timing attribute nope"


def test_unknown_names():
    with pytest.raises(GenerationError) as exc:
        generate(_svc(GET), "Nope", "client")
    assert exc.value.msg == "could not find interface: Nope"
    with pytest.raises(GenerationError) as exc:
        generate(_svc(GET), "Client", "nope")
    assert exc.value.msg == "could not find struct: nope"


def test_tracing_package_must_be_imported():
    pkg = _svc(GET)
    b = Builder(pkg, {"context": "i0"})
    with pytest.raises(GenerationError) as exc:
        tracing.gen(b, pkg.interfaces[0], b.import_map, "example.com/trace")
    assert exc.value.msg == "tracing package 'example.com/trace' is not imported"


def test_time_must_be_imported():
    pkg = _svc(GET)
    b = Builder(pkg, {"context": "i0"})
    with pytest.raises(GenerationError) as exc:
        timing.gen(b, pkg.interfaces[0], b.import_map, "timer")
    assert exc.value.msg == "package 'time' is not imported"


# ============================================================
# HELPERS
# ============================================================


def test_wrapper_construct():
    assert Wrapper("tracingClient").construct("impl", "base") == "tracingClient{next: impl}"
    assert (
        Wrapper("timingClient", ("timer",)).construct("impl", "base")
        == "timingClient{next: impl, timer: base.timer}"
    )


def test_names():
    iface = Interface("client")
    assert wrapper_name("tracing", iface) == "tracingClient"
    assert constructor.constructor_name(iface) == "NewClient"


def test_should_skip_interface():
    assert tracing.should_skip_interface(Interface("I", [CLOSE]))
    assert not tracing.should_skip_interface(Interface("I", [CLOSE, GET]))


def test_required_imports():
    assert tracing.required_imports("example.com/trace") == ["example.com/trace"]
    assert timing.required_imports("timer") == ["time"]


def test_timing_attribute_cannot_shadow_next():
    attrs = [Attr("next", NamedParam("example.com/svc", "Timer"))]
    with pytest.raises(GenerationError) as exc:
        generate(_svc(GET, attrs=attrs), "Client", "client", "", "next")
    assert exc.value.msg == "timing attribute cannot be named next"
    pkg = _svc(GET, attrs=attrs)
    b = Builder(pkg, {"context": "i0", "time": "i1"})
    with pytest.raises(GenerationError):
        timing.gen(b, pkg.interfaces[0], b.import_map, "next")
