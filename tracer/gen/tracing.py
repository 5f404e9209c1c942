"""Tracing wrapper: open a span around every context-taking method.

The tracing package must export

    StartSpan(ctx context.Context, name string) (context.Context, S)

where S has an End() method. Spans are named Interface.Method.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..builder import Builder
from ..model import Attr, Interface, Method, NamedParam, Struct, is_context
from . import (
    NEXT,
    GenerationError,
    Wrapper,
    arg_names,
    span_name,
    wrapper_name,
    write_delegate,
)

PREFIX = "tracing"


def required_imports(tracing_pkg: str) -> list[str]:
    return [tracing_pkg]


def should_skip_interface(iface: Interface) -> bool:
    """True when no method takes a context.Context."""
    for m in iface.methods:
        if context_index(m) is not None:
            return False
    return True


def context_index(method: Method) -> int | None:
    """Position of the first context.Context param, if any."""
    for i, p in enumerate(method.params):
        if is_context(p):
            return i
    return None


def gen(
    b: Builder, iface: Interface, import_map: Mapping[str, str], tracing_pkg: str
) -> Wrapper:
    """Emit the tracing wrapper for iface; returns its Wrapper."""
    if should_skip_interface(iface):
        raise GenerationError("could not find any methods taking context in " + iface.name)
    alias = import_map.get(tracing_pkg)
    if alias is None:
        raise GenerationError("tracing package '" + tracing_pkg + "' is not imported")
    name = wrapper_name(PREFIX, iface)
    strct = Struct(name, [Attr(NEXT, NamedParam("", iface.name))])
    b.write_struct(strct)
    for method in iface.methods:
        b.write_method(strct, method, _body(iface, method, alias))
    return Wrapper(name)


def _body(iface: Interface, method: Method, alias: str):
    def body(b: Builder) -> None:
        args = arg_names(method)
        idx = context_index(method)
        if idx is not None:
            b.write_line(
                'ctx, span := %s.StartSpan(%s, "%s")', alias, args[idx], span_name(iface, method)
            )
            b.write_line("defer span.End()")
            args[idx] = "ctx"
        write_delegate(b, method, args)

    return body
