"""Builder: accumulate generated Go text for one output file.

Generators drive the builder through four primitives: write_struct,
write_method, write_line/write, and finalize. Every type reference goes
through resolve_param, which qualifies foreign names with the aliases from
the import map the builder was constructed with.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import IO

from . import __version__
from .goformat import format_source
from .model import (
    UNSUPPORTED,
    ArrayParam,
    BasicParam,
    InterfaceParam,
    MapParam,
    Method,
    NamedParam,
    Package,
    Param,
    PointerParam,
    SliceParam,
    Struct,
)

RECEIVER = "t"


class Builder:
    """Emit Go declarations into an in-memory buffer."""

    def __init__(self, pkg: Package, import_map: Mapping[str, str]) -> None:
        self.output: list[str] = []
        self.indent = 0
        self._at_line_start = True
        self._import_map: dict[str, str] = dict(import_map)
        self.write_line("// Code generated by tracer v%s. DO NOT EDIT.", __version__)
        self.write_line("")
        self.write_line("package %s", pkg.name)
        self._write_imports()

    @property
    def import_map(self) -> dict[str, str]:
        """Copy of the import map used for qualification."""
        return dict(self._import_map)

    @property
    def source(self) -> str:
        """Raw accumulated text, before formatting."""
        return "".join(self.output)

    # ============================================================
    # PRIMITIVES
    # ============================================================

    def write_struct(self, strct: Struct) -> None:
        """Emit a struct type declaration."""
        self.write_line("")
        self.write_line("type %s struct {", strct.name)
        self.indent += 1
        for attr in strct.attrs:
            self.write_line("%s %s", attr.name, self.resolve_param(attr.type))
        self.indent -= 1
        self.write_line("}")

    def write_method(
        self,
        strct: Struct | None,
        method: Method,
        body: Callable[[Builder], None],
    ) -> None:
        """Emit a method on strct (or a plain function if None) with body."""
        self.write_line("")
        self.write("func ")
        if strct is not None:
            self.write("(%s %s) ", RECEIVER, strct.name)
        self.write(
            method_sig(
                method.name,
                self.resolve_params(method.params),
                self.resolve_params(method.returns),
            )
        )
        self.write_line(" {")
        self.indent += 1
        body(self)
        self.indent -= 1
        self.write_line("}")

    def write_line(self, text: str, *args: object) -> None:
        """Append text and a newline; %-substitute args when given."""
        if args:
            text = text % args
        self._append(text + "\n")

    def write(self, text: str, *args: object) -> None:
        """Append text without a newline; %-substitute args when given."""
        if args:
            text = text % args
        self._append(text)

    def finalize(self) -> str:
        """Format and validate the buffer. Raises MalformedOutputError."""
        return format_source(self.source)

    def write_to(self, out: IO[str]) -> int:
        """Finalize and write to out. Nothing is written if finalize fails."""
        text = self.finalize()
        return out.write(text)

    # ============================================================
    # TYPE RESOLUTION
    # ============================================================

    def resolve_params(self, params: tuple[Param, ...] | list[Param]) -> list[str]:
        return [self.resolve_param(p) for p in params]

    def resolve_param(self, p: Param) -> str:
        """Convert a type parameter to Go type text."""
        if isinstance(p, BasicParam):
            return p.name
        if isinstance(p, NamedParam):
            if p.pkg != "":
                alias = self._import_map.get(p.pkg)
                if alias is not None:
                    return f"{alias}.{p.name}"
            return p.name
        if isinstance(p, ArrayParam):
            return f"[{p.length}]{self.resolve_param(p.elem)}"
        if isinstance(p, SliceParam):
            return f"[]{self.resolve_param(p.elem)}"
        if isinstance(p, PointerParam):
            return f"*{self.resolve_param(p.elem)}"
        if isinstance(p, MapParam):
            return f"map[{self.resolve_param(p.key)}]{self.resolve_param(p.value)}"
        if isinstance(p, InterfaceParam):
            return self._resolve_interface(p)
        return UNSUPPORTED

    def _resolve_interface(self, p: InterfaceParam) -> str:
        if len(p.methods) == 0:
            return "interface{}"
        sigs = [
            method_sig(m.name, self.resolve_params(m.params), self.resolve_params(m.returns))
            for m in p.methods
        ]
        if len(sigs) == 1:
            return "interface{ " + sigs[0] + " }"
        return "interface {\n" + "\n".join(sigs) + "\n}"

    # ============================================================
    # OUTPUT HELPERS
    # ============================================================

    def _write_imports(self) -> None:
        """Emit one aliased import per entry, sorted by package path."""
        if not self._import_map:
            return
        self.write_line("")
        for path in sorted(self._import_map):
            self.write_line('import %s "%s"', self._import_map[path], path)

    def _append(self, text: str) -> None:
        """Append text, indenting each new line with the current depth."""
        for piece in text.splitlines(keepends=True):
            if self._at_line_start and piece.strip() != "":
                self.output.append("\t" * self.indent)
            self.output.append(piece)
            self._at_line_start = piece.endswith("\n")


def method_sig(name: str, params: list[str], returns: list[str]) -> str:
    """Render Name(p0 A, p1 B) R with positional parameter names.

    Zero returns omit the result, one is bare, two or more are parenthesized.
    """
    args = ", ".join(f"p{i} {typ}" for i, typ in enumerate(params))
    sig = f"{name}({args})"
    if len(returns) == 1:
        return sig + " " + returns[0]
    if len(returns) > 1:
        return sig + " (" + ", ".join(returns) + ")"
    return sig
