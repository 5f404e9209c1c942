"""Decorator generators: one wrapper method per interface method.

Each generator writes its wrapper struct and methods through a Builder and
returns a Wrapper describing how the constructor builds that layer.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..builder import RECEIVER, Builder
from ..model import Interface, Method

NEXT = "next"


class GenerationError(Exception):
    """A generator's preconditions do not hold for the given input."""

    def __init__(self, msg: str):
        self.msg: str = msg
        super().__init__(msg)


@dataclass(frozen=True)
class Wrapper:
    """A generated wrapper type, composed by the constructor in order.

    carried lists base struct attributes copied into the wrapper.
    """

    name: str
    carried: tuple[str, ...] = ()

    def construct(self, inner: str, base: str) -> str:
        """Go expression wrapping inner; base names the base struct value."""
        fields = [NEXT + ": " + inner]
        for attr in self.carried:
            fields.append(attr + ": " + base + "." + attr)
        return self.name + "{" + ", ".join(fields) + "}"


def wrapper_name(prefix: str, iface: Interface) -> str:
    """tracing + Client -> tracingClient."""
    return prefix + iface.name[:1].upper() + iface.name[1:]


def span_name(iface: Interface, method: Method) -> str:
    return iface.name + "." + method.name


def arg_names(method: Method) -> list[str]:
    return [f"p{i}" for i in range(len(method.params))]


def write_delegate(b: Builder, method: Method, args: list[str]) -> None:
    """Forward the call to the next layer, returning its results if any."""
    call = f"{RECEIVER}.{NEXT}.{method.name}({', '.join(args)})"
    if method.returns:
        b.write_line("return " + call)
    else:
        b.write_line(call)
