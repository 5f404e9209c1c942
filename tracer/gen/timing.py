"""Timing wrapper: report each method's duration to a sink.

The sink is an attribute of the base struct; the wrapper carries a copy of it
typed as interface{ Timing(string, time.Duration) }.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..builder import RECEIVER, Builder
from ..model import (
    Attr,
    BasicParam,
    Interface,
    InterfaceParam,
    Method,
    NamedParam,
    Struct,
)
from . import (
    NEXT,
    GenerationError,
    Wrapper,
    arg_names,
    span_name,
    wrapper_name,
    write_delegate,
)

PREFIX = "timing"
TIME_PKG = "time"

SINK = InterfaceParam(
    (Method("Timing", (BasicParam("string"), NamedParam(TIME_PKG, "Duration"))),)
)


def required_imports(timing_attr: str) -> list[str]:
    return [TIME_PKG]


def struct_has_timing_attr(strct: Struct, timing_attr: str) -> bool:
    return strct.find_attr(timing_attr) is not None


def gen(
    b: Builder, iface: Interface, import_map: Mapping[str, str], timing_attr: str
) -> Wrapper:
    """Emit the timing wrapper for iface; returns its Wrapper."""
    if timing_attr == NEXT:
        raise GenerationError("timing attribute cannot be named " + NEXT)
    alias = import_map.get(TIME_PKG)
    if alias is None:
        raise GenerationError("package 'time' is not imported")
    name = wrapper_name(PREFIX, iface)
    strct = Struct(name, [Attr(NEXT, NamedParam("", iface.name)), Attr(timing_attr, SINK)])
    b.write_struct(strct)
    for method in iface.methods:
        b.write_method(strct, method, _body(iface, method, alias, timing_attr))
    return Wrapper(name, (timing_attr,))


def _body(iface: Interface, method: Method, alias: str, timing_attr: str):
    def body(b: Builder) -> None:
        b.write_line("start := %s.Now()", alias)
        b.write_line(
            'defer func() { %s.%s.Timing("%s", %s.Since(start)) }()',
            RECEIVER,
            timing_attr,
            span_name(iface, method),
            alias,
        )
        write_delegate(b, method, arg_names(method))

    return body
