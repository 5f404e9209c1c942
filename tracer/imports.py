"""Import resolution: assign short, collision-free aliases to foreign packages.

Walks every interface method's params and returns (recursively) and records
the package of each NamedParam in discovery order. Struct attributes are not
scanned.
"""

from __future__ import annotations

from collections.abc import Iterable

from .model import (
    ArrayParam,
    InterfaceParam,
    MapParam,
    Method,
    NamedParam,
    Package,
    Param,
    PointerParam,
    SliceParam,
)

ALIAS_PREFIX = "i"


def build_import_map(pkg: Package, extra: Iterable[str] = ()) -> dict[str, str]:
    """Map package path -> alias (i0, i1, ...) in first-discovery order.

    Paths in extra are appended after the interface packages, in the order
    given. The output package's own path is never imported and no alias
    equals the output package's name.
    """
    paths: list[str] = []
    for iface in pkg.interfaces:
        paths.extend(method_packages(iface.methods))
    paths.extend(extra)
    import_map: dict[str, str] = {}
    n = 0
    for path in paths:
        if path == "" or path == pkg.pkg_path or path in import_map:
            continue
        alias = ALIAS_PREFIX + str(n)
        while alias == pkg.name:
            n += 1
            alias = ALIAS_PREFIX + str(n)
        import_map[path] = alias
        n += 1
    return import_map


def method_packages(methods: Iterable[Method]) -> list[str]:
    """Packages referenced by methods, params before returns, with duplicates."""
    pkgs: list[str] = []
    for m in methods:
        for p in m.params:
            pkgs.extend(param_packages(p))
        for p in m.returns:
            pkgs.extend(param_packages(p))
    return pkgs


def param_packages(p: Param) -> list[str]:
    """Packages referenced by a single type parameter, in encounter order."""
    if isinstance(p, NamedParam):
        if p.pkg == "":
            return []
        return [p.pkg]
    if isinstance(p, (ArrayParam, SliceParam, PointerParam)):
        return param_packages(p.elem)
    if isinstance(p, MapParam):
        return param_packages(p.key) + param_packages(p.value)
    if isinstance(p, InterfaceParam):
        return method_packages(p.methods)
    return []
