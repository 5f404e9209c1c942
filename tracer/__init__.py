"""Tracer: generate Go tracing/timing decorators and a composing constructor."""

from __future__ import annotations

__version__ = "0.1.0"

from .builder import Builder, method_sig
from .goformat import MalformedOutputError, format_source
from .imports import build_import_map
from .model import (
    UNSUPPORTED,
    ArrayParam,
    Attr,
    BasicParam,
    Interface,
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

__all__ = [
    "UNSUPPORTED",
    "ArrayParam",
    "Attr",
    "BasicParam",
    "Builder",
    "Interface",
    "InterfaceParam",
    "MalformedOutputError",
    "MapParam",
    "Method",
    "NamedParam",
    "Package",
    "Param",
    "PointerParam",
    "SliceParam",
    "Struct",
    "build_import_map",
    "format_source",
    "method_sig",
]
