"""Source reader: Go declarations -> tracer model.

Reads the interface and struct declarations of one Go package with
tree-sitter. This is a syntactic reader: it never loads dependencies, so
qualified names are resolved through each file's import table and embedded
interfaces are only flattened when declared in the same package.

Declarations using constructs outside the model (channels, function types,
anonymous structs, generics, variadic parameters) are skipped and recorded
in SourceReader.skipped so callers can report why a requested name is
missing.
"""

from __future__ import annotations

import re
from pathlib import Path

from .model import (
    BUILTIN_TYPES,
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
from .parsing import Node, Tree, first_error, node_pos, node_text, parse_go

_MAJOR_VERSION_RE = re.compile(r"^v\d+$")
_DOT_VERSION_RE = re.compile(r"\.v\d+$")
# 0-prefixed literals without a base letter are octal in Go.
_LEGACY_OCTAL_RE = re.compile(r"^0[0-7_]+$")

# The predeclared error interface, flattened when embedded.
_ERROR_METHODS = [Method("Error", (), (BasicParam("string"),))]


class ReadError(Exception):
    """Go source uses a construct the reader cannot represent."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


def read_dir(path: str | Path) -> Package:
    """Read all non-test .go files of a directory into a Package."""
    reader = SourceReader()
    reader.read_dir(path)
    return reader.package()


def read_source(source: str, pkg_path: str = "") -> Package:
    """Read a single Go file's text into a Package."""
    reader = SourceReader(pkg_path)
    reader.add_source(source)
    return reader.package()


def module_path(directory: Path) -> str | None:
    """Import path of directory according to the nearest go.mod, if any."""
    directory = directory.resolve()
    for root in [directory, *directory.parents]:
        gomod = root / "go.mod"
        if not gomod.is_file():
            continue
        for line in gomod.read_text(encoding="utf-8").split("\n"):
            line = line.split("//")[0].strip()
            if line.startswith("module "):
                module = line[len("module ") :].strip().strip('"')
                rel = directory.relative_to(root).as_posix()
                if rel == ".":
                    return module
                return module + "/" + rel
        return None
    return None


def default_import_name(path: str) -> str:
    """Best guess at the package name an unaliased import binds."""
    parts = path.split("/")
    name = parts[-1]
    if _MAJOR_VERSION_RE.match(name) and len(parts) > 1:
        name = parts[-2]
    name = _DOT_VERSION_RE.sub("", name)
    if "-" in name:
        name = name.rsplit("-", 1)[1]
    return name


class _Decl:
    """A top-level type declaration awaiting conversion."""

    def __init__(self, name: str, node: Node, imports: dict[str, str]):
        self.name: str = name
        self.node: Node = node
        self.imports: dict[str, str] = imports


class SourceReader:
    """Accumulate Go files of one package, then convert to a Package."""

    def __init__(self, pkg_path: str = "") -> None:
        self.pkg_path: str = pkg_path
        self.name: str = ""
        self.skipped: dict[str, ReadError] = {}
        self._trees: list[Tree] = []
        self._interfaces: list[_Decl] = []
        self._structs: list[_Decl] = []
        self._iface_by_name: dict[str, _Decl] = {}
        self._flattened: dict[str, list[Method]] = {}

    def read_dir(self, path: str | Path) -> None:
        directory = Path(path)
        files = sorted(
            p for p in directory.glob("*.go") if not p.name.endswith("_test.go")
        )
        if not files:
            raise ReadError("no Go files in " + str(directory), 0, 0)
        if self.pkg_path == "":
            self.pkg_path = module_path(directory) or ""
        for f in files:
            self.add_source(f.read_text(encoding="utf-8"), str(f))

    def add_source(self, source: str, filename: str = "<source>") -> None:
        """Parse one file and collect its package, imports and type decls."""
        tree = parse_go(source)
        err = first_error(tree.root_node)
        if err is not None:
            line, col = node_pos(err)
            raise ReadError(filename + ": syntax error", line, col)
        self._trees.append(tree)
        imports: dict[str, str] = {}
        for node in tree.root_node.named_children:
            if node.type == "package_clause":
                self._set_name(node, filename)
            elif node.type == "import_declaration":
                _collect_imports(node, imports)
            elif node.type == "type_declaration":
                for spec in node.named_children:
                    if spec.type == "type_spec":
                        self._collect_type(spec, imports)

    def package(self) -> Package:
        """Convert everything collected so far."""
        if self.pkg_path == "":
            self.pkg_path = self.name
        pkg = Package(self.name, self.pkg_path)
        for decl in self._interfaces:
            try:
                methods = self._interface_methods(decl.name, [])
            except ReadError as e:
                self.skipped[decl.name] = e
                continue
            pkg.interfaces.append(Interface(decl.name, methods))
        for decl in self._structs:
            try:
                attrs = self._struct_attrs(decl)
            except ReadError as e:
                self.skipped[decl.name] = e
                continue
            pkg.structs.append(Struct(decl.name, attrs))
        return pkg

    # ============================================================
    # COLLECTION
    # ============================================================

    def _set_name(self, node: Node, filename: str) -> None:
        name = node_text(node.named_children[0])
        if self.name == "":
            self.name = name
        elif self.name != name:
            line, col = node_pos(node)
            raise ReadError(
                filename + ": found packages " + self.name + " and " + name, line, col
            )

    def _collect_type(self, spec: Node, imports: dict[str, str]) -> None:
        name = node_text(spec.child_by_field_name("name"))
        typ = spec.child_by_field_name("type")
        if typ is None or typ.type not in ("interface_type", "struct_type"):
            return
        decl = _Decl(name, spec, imports)
        if spec.child_by_field_name("type_parameters") is not None:
            line, col = node_pos(spec)
            self.skipped[name] = ReadError("generic types are not supported", line, col)
            return
        if typ.type == "interface_type":
            self._interfaces.append(decl)
            self._iface_by_name[name] = decl
        else:
            self._structs.append(decl)

    # ============================================================
    # CONVERSION
    # ============================================================

    def _interface_methods(self, name: str, visiting: list[str]) -> list[Method]:
        """Methods of a local interface, embedded interfaces flattened."""
        if name in self._flattened:
            return self._flattened[name]
        decl = self._iface_by_name[name]
        if name in visiting:
            line, col = node_pos(decl.node)
            raise ReadError("interface " + name + " embeds itself", line, col)
        typ = decl.node.child_by_field_name("type")
        methods = self._methods(typ, decl.imports, [*visiting, name])
        self._flattened[name] = methods
        return methods

    def _methods(self, iface: Node, imports: dict[str, str], visiting: list[str]) -> list[Method]:
        methods: list[Method] = []
        seen: set[str] = set()
        for child in iface.named_children:
            if child.type == "comment":
                continue
            if child.type == "method_spec_list":
                found = self._methods(child, imports, visiting)
            elif child.type in ("method_elem", "method_spec"):
                found = [self._method(child, imports, visiting)]
            else:
                found = self._embedded(child, imports, visiting)
            for m in found:
                if m.name not in seen:
                    seen.add(m.name)
                    methods.append(m)
        return methods

    def _embedded(self, node: Node, imports: dict[str, str], visiting: list[str]) -> list[Method]:
        """Methods contributed by an embedded interface element."""
        target = node
        if node.type in ("type_elem", "constraint_elem"):
            if node.named_child_count != 1:
                line, col = node_pos(node)
                raise ReadError("type constraints are not supported", line, col)
            target = node.named_children[0]
        line, col = node_pos(target)
        if target.type == "type_identifier":
            name = node_text(target)
            if name == "error":
                return list(_ERROR_METHODS)
            if name == "any":
                return []
            if name in self._iface_by_name:
                return self._interface_methods(name, visiting)
            raise ReadError("cannot embed non-interface type " + name, line, col)
        if target.type == "qualified_type":
            raise ReadError(
                "cannot flatten embedded interface " + node_text(target) + " from another package",
                line,
                col,
            )
        if target.type == "interface_type":
            return self._methods(target, imports, visiting)
        raise ReadError("type constraints are not supported", line, col)

    def _method(self, node: Node, imports: dict[str, str], visiting: list[str]) -> Method:
        name = node_text(node.child_by_field_name("name"))
        params = self._params(node.child_by_field_name("parameters"), imports, visiting)
        result = node.child_by_field_name("result")
        if result is None:
            returns: list[Param] = []
        elif result.type == "parameter_list":
            returns = self._params(result, imports, visiting)
        else:
            returns = [self._param(result, imports, visiting)]
        return Method(name, tuple(params), tuple(returns))

    def _params(
        self, plist: Node | None, imports: dict[str, str], visiting: list[str]
    ) -> list[Param]:
        params: list[Param] = []
        if plist is None:
            return params
        for decl in plist.named_children:
            if decl.type == "comment":
                continue
            if decl.type != "parameter_declaration":
                line, col = node_pos(decl)
                raise ReadError("variadic parameters are not supported", line, col)
            typ = self._param(decl.child_by_field_name("type"), imports, visiting)
            count = len(decl.children_by_field_name("name"))
            params.extend([typ] * max(count, 1))
        return params

    def _struct_attrs(self, decl: _Decl) -> list[Attr]:
        attrs: list[Attr] = []
        typ = decl.node.child_by_field_name("type")
        for flist in typ.named_children:
            if flist.type != "field_declaration_list":
                continue
            for field in flist.named_children:
                if field.type != "field_declaration":
                    continue
                ftype = field.child_by_field_name("type")
                names = field.children_by_field_name("name")
                if names:
                    param = self._param(ftype, decl.imports, [])
                    for n in names:
                        attrs.append(Attr(node_text(n), param))
                    continue
                attrs.append(self._embedded_field(field, ftype, decl.imports))
        return attrs

    def _embedded_field(self, field: Node, ftype: Node, imports: dict[str, str]) -> Attr:
        """Embedded struct field; the attribute is named after its type."""
        param = self._param(ftype, imports, [])
        if ftype.type == "qualified_type":
            name = node_text(ftype.child_by_field_name("name"))
        else:
            name = node_text(ftype)
        for c in field.children:
            if c.type == "*":
                param = PointerParam(param)
        return Attr(name, param)

    def _param(self, node: Node | None, imports: dict[str, str], visiting: list[str]) -> Param:
        """Convert a tree-sitter type node to a type parameter."""
        if node is None:
            raise ReadError("missing type", 0, 0)
        line, col = node_pos(node)
        kind = node.type
        if kind == "type_identifier":
            name = node_text(node)
            if name in BUILTIN_TYPES:
                return BasicParam(name)
            return NamedParam(self.pkg_path, name)
        if kind == "qualified_type":
            qualifier = node_text(node.child_by_field_name("package"))
            name = node_text(node.child_by_field_name("name"))
            if qualifier not in imports:
                raise ReadError("unknown package " + qualifier, line, col)
            return NamedParam(imports[qualifier], name)
        if kind == "pointer_type":
            return PointerParam(self._param(node.named_children[0], imports, visiting))
        if kind == "slice_type":
            return SliceParam(self._param(node.child_by_field_name("element"), imports, visiting))
        if kind == "array_type":
            size = _array_length(node_text(node.child_by_field_name("length")), line, col)
            elem = self._param(node.child_by_field_name("element"), imports, visiting)
            return ArrayParam(elem, size)
        if kind == "map_type":
            return MapParam(
                self._param(node.child_by_field_name("key"), imports, visiting),
                self._param(node.child_by_field_name("value"), imports, visiting),
            )
        if kind == "interface_type":
            return InterfaceParam(tuple(self._methods(node, imports, visiting)))
        if kind == "parenthesized_type":
            return self._param(node.named_children[0], imports, visiting)
        raise ReadError(kind.replace("_", " ") + "s are not supported", line, col)


def _array_length(text: str, line: int, col: int) -> int:
    """Value of a Go integer literal used as an array length."""
    try:
        if _LEGACY_OCTAL_RE.match(text):
            return int(text.replace("_", ""), 8)
        return int(text, 0)
    except ValueError:
        raise ReadError("array length must be an integer literal", line, col) from None


def _collect_imports(node: Node, imports: dict[str, str]) -> None:
    """Record alias -> path for every import spec under node."""
    for child in node.named_children:
        if child.type == "import_spec_list":
            _collect_imports(child, imports)
            continue
        if child.type != "import_spec":
            continue
        path = node_text(child.child_by_field_name("path"))[1:-1]
        alias = child.child_by_field_name("name")
        if alias is None:
            imports[default_import_name(path)] = path
        elif alias.type == "package_identifier":
            imports[node_text(alias)] = path
