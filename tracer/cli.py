"""Command-line entry point."""

from __future__ import annotations

import sys
from pathlib import Path

from .builder import Builder
from .gen import NEXT, GenerationError, Wrapper, constructor, timing, tracing
from .goformat import MalformedOutputError
from .imports import build_import_map
from .model import Package
from .reader import ReadError, SourceReader
from .serialize import ModelError, from_json, to_json

USAGE: str = """\
tracer [OPTIONS] INPUT

Generate Go decorator wrappers and a constructor for an interface.
INPUT is a package directory or a JSON model file (.json).

Options:
  --interface NAME    Interface to generate wrappers for (required)
  --struct NAME       Struct implementing the interface; the constructor
                      builds it and wraps it in the generated layers (required)
  --tracing PKG       Generate a tracing wrapper using package PKG
  --timing ATTR       Generate a timing wrapper using struct attribute ATTR
  --dump-model        Print the parsed model as JSON and exit
  -o, --output FILE   Write output to FILE instead of stdout
  -h, --help          Show this help message
"""


class Options:
    """Parsed command-line options."""

    def __init__(self) -> None:
        self.input: str = ""
        self.interface: str = ""
        self.struct: str = ""
        self.tracing: str = ""
        self.timing: str = ""
        self.output: str = ""
        self.dump_model: bool = False


def parse_args(args: list[str]) -> Options | int:
    """Parse arguments. Returns Options, or an exit code to stop with."""
    opts = Options()
    valued = {
        "--interface": "interface",
        "--struct": "struct",
        "--tracing": "tracing",
        "--timing": "timing",
        "-o": "output",
        "--output": "output",
    }
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        if arg == "--dump-model":
            opts.dump_model = True
            i += 1
        elif arg in valued:
            if i + 1 >= len(args):
                print("error: " + arg + " requires an argument", file=sys.stderr)
                return 2
            setattr(opts, valued[arg], args[i + 1])
            i += 2
        elif arg.startswith("-"):
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif opts.input == "":
            opts.input = arg
            i += 1
        else:
            print("error: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2
    if opts.input == "":
        print("error: missing input", file=sys.stderr)
        return 2
    if not opts.dump_model:
        if opts.interface == "":
            print("error: required flag --interface missing", file=sys.stderr)
            return 2
        if opts.struct == "":
            print("error: required flag --struct missing", file=sys.stderr)
            return 2
    return opts


def load_package(path: str) -> tuple[Package, dict[str, ReadError]]:
    """Load a model from a .json file or read a package directory."""
    if path.endswith(".json"):
        return from_json(Path(path).read_text(encoding="utf-8")), {}
    reader = SourceReader()
    reader.read_dir(path)
    return reader.package(), reader.skipped


def generate(
    pkg: Package,
    interface: str,
    struct: str,
    tracing_pkg: str = "",
    timing_attr: str = "",
    skipped: dict[str, ReadError] | None = None,
) -> str:
    """Generate wrappers and constructor; returns finalized Go source."""
    skipped = skipped or {}
    iface = pkg.find_interface(interface)
    if iface is None:
        raise GenerationError(_not_found("interface", interface, skipped))
    strct = pkg.find_struct(struct)
    if strct is None:
        raise GenerationError(_not_found("struct", struct, skipped))
    extra: list[str] = []
    if tracing_pkg != "":
        if tracing.should_skip_interface(iface):
            raise GenerationError("could not find any methods taking context in " + interface)
        extra.extend(tracing.required_imports(tracing_pkg))
    if timing_attr != "":
        if timing_attr == NEXT:
            raise GenerationError("timing attribute cannot be named " + NEXT)
        if not timing.struct_has_timing_attr(strct, timing_attr):
            raise GenerationError(
                "struct " + struct + " does not have timing attribute " + timing_attr
            )
        extra.extend(timing.required_imports(timing_attr))
    import_map = build_import_map(pkg, extra)
    b = Builder(pkg, import_map)
    wrappers: list[Wrapper] = []
    if tracing_pkg != "":
        wrappers.append(tracing.gen(b, iface, import_map, tracing_pkg))
    if timing_attr != "":
        wrappers.append(timing.gen(b, iface, import_map, timing_attr))
    constructor.gen(b, import_map, iface, strct, wrappers)
    return b.finalize()


def _not_found(kind: str, name: str, skipped: dict[str, ReadError]) -> str:
    msg = "could not find " + kind + ": " + name
    if name in skipped:
        msg += " (" + str(skipped[name]) + ")"
    return msg


def write_output(output: str, output_file: str) -> int:
    """Write output to file (creating directories) or stdout."""
    if output_file == "":
        sys.stdout.write(output)
        return 0
    dest = Path(output_file)
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(output, encoding="utf-8")
    except OSError as e:
        print("error: cannot write '" + output_file + "': " + str(e), file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    opts = parse_args(argv if argv is not None else sys.argv[1:])
    if isinstance(opts, int):
        return opts
    try:
        pkg, skipped = load_package(opts.input)
        if opts.dump_model:
            output = to_json(pkg) + "\n"
        else:
            output = generate(
                pkg, opts.interface, opts.struct, opts.tracing, opts.timing, skipped
            )
    except (ReadError, ModelError, GenerationError, MalformedOutputError) as e:
        print("error: " + str(e), file=sys.stderr)
        return 1
    except OSError as e:
        print("error: cannot read '" + opts.input + "': " + str(e), file=sys.stderr)
        return 1
    return write_output(output, opts.output)


if __name__ == "__main__":
    sys.exit(main())
