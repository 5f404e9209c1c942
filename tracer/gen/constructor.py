"""Constructor: build the base struct and wrap it in each generated layer.

    func NewClient(p0 A, p1 B) Client {
        base := &client{
            a: p0,
            b: p1,
        }
        var impl Client = base
        impl = tracingClient{next: impl}
        return impl
    }
"""

from __future__ import annotations

from collections.abc import Mapping

from ..builder import Builder
from ..model import Interface, Method, NamedParam, Struct
from . import Wrapper

BASE = "base"
IMPL = "impl"


def constructor_name(iface: Interface) -> str:
    return "New" + iface.name[:1].upper() + iface.name[1:]


def gen(
    b: Builder,
    import_map: Mapping[str, str],
    iface: Interface,
    strct: Struct,
    wrappers: list[Wrapper],
) -> str:
    """Emit the constructor; wrappers are applied innermost first."""
    name = constructor_name(iface)
    method = Method(
        name,
        tuple(attr.type for attr in strct.attrs),
        (NamedParam("", iface.name),),
    )

    def body(b: Builder) -> None:
        if strct.attrs:
            b.write_line("%s := &%s{", BASE, strct.name)
            b.indent += 1
            for i, attr in enumerate(strct.attrs):
                b.write_line("%s: p%d,", attr.name, i)
            b.indent -= 1
            b.write_line("}")
        else:
            b.write_line("%s := &%s{}", BASE, strct.name)
        b.write_line("var %s %s = %s", IMPL, iface.name, BASE)
        for w in wrappers:
            b.write_line("%s = %s", IMPL, w.construct(IMPL, BASE))
        b.write_line("return %s", IMPL)

    b.write_method(None, method, body)
    return name
