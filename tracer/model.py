"""Tracer model - declarative description of a Go package's API.

The source reader (or a JSON model) produces these; the import resolver and
the code builder consume them. Nothing here has behavior beyond construction
and inspection.

Architecture:
    Go source / JSON -> [model] -> imports -> builder -> gen/* -> Go source
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ============================================================
# TYPE PARAMETERS
#
# A closed set of variants. Every consumer dispatches with isinstance over
# exactly these seven classes; anything else is rendered as UNSUPPORTED.
# All are hashable so they can live inside InterfaceParam methods.
# ============================================================


@dataclass(unsafe_hash=True)
class Param:
    """Base for all type parameters. Abstract."""


@dataclass(unsafe_hash=True)
class BasicParam(Param):
    """Predeclared or otherwise unqualified type name.

    | Example  | Go        |
    |----------|-----------|
    | int      | int       |
    | error    | error     |
    """

    name: str


@dataclass(unsafe_hash=True)
class NamedParam(Param):
    """Type declared in a package.

    Invariants:
    - pkg is a full import path ("context", "github.com/x/y")
    - pkg == "" means the type lives in the output package
    """

    pkg: str
    name: str


@dataclass(unsafe_hash=True)
class ArrayParam(Param):
    """Fixed-size array: [length]elem.

    Invariants:
    - length >= 0
    """

    elem: Param
    length: int


@dataclass(unsafe_hash=True)
class SliceParam(Param):
    """Growable sequence: []elem."""

    elem: Param


@dataclass(unsafe_hash=True)
class PointerParam(Param):
    """Single-level pointer: *elem. Purely textual, no ownership."""

    elem: Param


@dataclass(unsafe_hash=True)
class MapParam(Param):
    """Associative type: map[key]value."""

    key: Param
    value: Param


@dataclass(unsafe_hash=True)
class InterfaceParam(Param):
    """Anonymous interface literal.

    | Methods | Go                          |
    |---------|-----------------------------|
    | 0       | interface{}                 |
    | 1       | interface{ M() }            |
    | 2+      | interface {\\n M()\\n N()\\n} |
    """

    methods: tuple[Method, ...] = ()


UNSUPPORTED = "<unsupported>"
"""Rendered for any Param outside the closed set. Never valid Go."""

# Predeclared Go types; identifiers outside this set are package-level names.
BUILTIN_TYPES = frozenset(
    {
        "any",
        "bool",
        "byte",
        "comparable",
        "complex64",
        "complex128",
        "error",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
    }
)

CONTEXT = NamedParam("context", "Context")


def is_context(p: Param) -> bool:
    """Check if p is context.Context."""
    return p == CONTEXT


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass(unsafe_hash=True)
class Method:
    """Method signature. Parameters are positional; no names survive."""

    name: str
    params: tuple[Param, ...] = ()
    returns: tuple[Param, ...] = ()


@dataclass
class Interface:
    """Named interface declaration.

    Invariants:
    - methods keep declaration order
    - embedded interfaces are already flattened into methods
    """

    name: str
    methods: list[Method] = field(default_factory=list)


@dataclass
class Attr:
    """Struct field."""

    name: str
    type: Param


@dataclass
class Struct:
    """Named struct declaration."""

    name: str
    attrs: list[Attr] = field(default_factory=list)

    def find_attr(self, name: str) -> Attr | None:
        for attr in self.attrs:
            if attr.name == name:
                return attr
        return None


@dataclass
class Package:
    """A Go package as seen by the generator. Root of the model."""

    name: str
    pkg_path: str = ""
    interfaces: list[Interface] = field(default_factory=list)
    structs: list[Struct] = field(default_factory=list)

    def find_interface(self, name: str) -> Interface | None:
        for iface in self.interfaces:
            if iface.name == name:
                return iface
        return None

    def find_struct(self, name: str) -> Struct | None:
        for strct in self.structs:
            if strct.name == name:
                return strct
        return None
