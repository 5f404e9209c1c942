"""Serialization of the model to and from JSON-compatible dicts."""

from __future__ import annotations

import json

from .model import (
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


class ModelError(Exception):
    """A serialized model is malformed."""

    def __init__(self, msg: str):
        self.msg: str = msg
        super().__init__(msg)


# ============================================================
# TO DICT
# ============================================================


def package_to_dict(pkg: Package) -> dict[str, object]:
    return {
        "name": pkg.name,
        "pkg_path": pkg.pkg_path,
        "interfaces": [
            {"name": i.name, "methods": [method_to_dict(m) for m in i.methods]}
            for i in pkg.interfaces
        ],
        "structs": [
            {
                "name": s.name,
                "attrs": [{"name": a.name, "type": param_to_dict(a.type)} for a in s.attrs],
            }
            for s in pkg.structs
        ],
    }


def method_to_dict(m: Method) -> dict[str, object]:
    return {
        "name": m.name,
        "params": [param_to_dict(p) for p in m.params],
        "returns": [param_to_dict(p) for p in m.returns],
    }


def param_to_dict(p: Param) -> dict[str, object]:
    """Serialize a type parameter; unknown variants become {"_type": "Param"}."""
    if isinstance(p, BasicParam):
        return {"_type": "BasicParam", "name": p.name}
    if isinstance(p, NamedParam):
        return {"_type": "NamedParam", "pkg": p.pkg, "name": p.name}
    if isinstance(p, ArrayParam):
        return {"_type": "ArrayParam", "elem": param_to_dict(p.elem), "length": p.length}
    if isinstance(p, SliceParam):
        return {"_type": "SliceParam", "elem": param_to_dict(p.elem)}
    if isinstance(p, PointerParam):
        return {"_type": "PointerParam", "elem": param_to_dict(p.elem)}
    if isinstance(p, MapParam):
        return {
            "_type": "MapParam",
            "key": param_to_dict(p.key),
            "value": param_to_dict(p.value),
        }
    if isinstance(p, InterfaceParam):
        return {"_type": "InterfaceParam", "methods": [method_to_dict(m) for m in p.methods]}
    return {"_type": "Param"}


# ============================================================
# FROM DICT
# ============================================================


def package_from_dict(d: object) -> Package:
    obj = _obj(d, "package")
    pkg = Package(_str(obj, "name"), _str(obj, "pkg_path", ""))
    for i in _list(obj, "interfaces"):
        iobj = _obj(i, "interface")
        pkg.interfaces.append(
            Interface(_str(iobj, "name"), [method_from_dict(m) for m in _list(iobj, "methods")])
        )
    for s in _list(obj, "structs"):
        sobj = _obj(s, "struct")
        attrs: list[Attr] = []
        for a in _list(sobj, "attrs"):
            aobj = _obj(a, "attr")
            attrs.append(Attr(_str(aobj, "name"), param_from_dict(aobj.get("type"))))
        pkg.structs.append(Struct(_str(sobj, "name"), attrs))
    return pkg


def method_from_dict(d: object) -> Method:
    obj = _obj(d, "method")
    return Method(
        _str(obj, "name"),
        tuple(param_from_dict(p) for p in _list(obj, "params")),
        tuple(param_from_dict(p) for p in _list(obj, "returns")),
    )


def param_from_dict(d: object) -> Param:
    obj = _obj(d, "type")
    kind = obj.get("_type")
    if kind == "BasicParam":
        return BasicParam(_str(obj, "name"))
    if kind == "NamedParam":
        return NamedParam(_str(obj, "pkg", ""), _str(obj, "name"))
    if kind == "ArrayParam":
        length = obj.get("length")
        if not isinstance(length, int) or isinstance(length, bool) or length < 0:
            raise ModelError("ArrayParam length must be a non-negative integer")
        return ArrayParam(param_from_dict(obj.get("elem")), length)
    if kind == "SliceParam":
        return SliceParam(param_from_dict(obj.get("elem")))
    if kind == "PointerParam":
        return PointerParam(param_from_dict(obj.get("elem")))
    if kind == "MapParam":
        return MapParam(param_from_dict(obj.get("key")), param_from_dict(obj.get("value")))
    if kind == "InterfaceParam":
        return InterfaceParam(tuple(method_from_dict(m) for m in _list(obj, "methods")))
    raise ModelError("unknown type kind " + repr(kind))


def to_json(pkg: Package) -> str:
    return json.dumps(package_to_dict(pkg), indent=2)


def from_json(text: str) -> Package:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ModelError("invalid JSON: " + str(e)) from e
    return package_from_dict(data)


# ============================================================
# FIELD ACCESS
# ============================================================


def _obj(d: object, what: str) -> dict[str, object]:
    if not isinstance(d, dict):
        raise ModelError("expected " + what + " object, got " + type(d).__name__)
    return d


def _str(obj: dict[str, object], key: str, default: str | None = None) -> str:
    v = obj.get(key, default)
    if not isinstance(v, str):
        raise ModelError("field '" + key + "' must be a string")
    return v


def _list(obj: dict[str, object], key: str) -> list[object]:
    v = obj.get(key, [])
    if not isinstance(v, list):
        raise ModelError("field '" + key + "' must be a list")
    return v
