"""
TALA CLI Entrypoint.

Parses a TALA module and prints its syntax tree, or re-emits it as canonical source.

Features:
    - Read source from `.tala` files or inline strings.
    - Output the AST as JSON (default) or as formatted TALA source.
    - Write output to the console or to a file.
    - Report every collected parse error on stderr; the exit status is 1 if any.

Example usage:
    tala hello.tala
    tala -s "x = 1u8; y = x + 2u8" -p
    tala hello.tala -f source -o hello.fmt.tala
    tala hello.tala --verbose

Functions:
    run_tala(source: str, is_string: bool = False, fmt: str = "json", out: str | None = None,
             pretty: bool = False) -> int:
        Executes the pipeline (lex → parse → render → output) and returns an exit status.

    main() -> None:
        Parses CLI arguments and invokes `run_tala`.
"""

import argparse
import json
import logging
import sys

from tala.emitters.source_emitter import emit_source
from tala.tala_parser import parse_module
from tala.tala_source import SourceFile

logger = logging.getLogger(__name__)


def run_tala(
    source: str,
    is_string: bool = False,
    fmt: str = "json",
    out: str | None = None,
    pretty: bool = False,
) -> int:
    """
    Run the TALA front end: lex, parse, render and write output.

    Args:
        source (str): TALA source code, or a path to a `.tala` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        fmt (str): Output format, `json` for the AST or `source` for formatted TALA.
        out (str | None): Optional path to write the output to. If None, prints to stdout.
        pretty (bool): Indent JSON output and print a banner around it.

    Returns:
        int: 0 when the module parsed without errors, 1 otherwise.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.tala',
            or if `fmt` is not a supported format.
    """
    if fmt not in ("json", "source"):
        raise ValueError(f"Unknown output format: {fmt!r}")
    if not is_string and not source.endswith(".tala"):
        raise ValueError("Only .tala files are supported.")

    # 1. Read source
    if is_string:
        src = SourceFile(source, "<string>")
    else:
        with open(source, encoding="utf-8") as f:
            src = SourceFile(f.read(), source)

    # 2. Lex + parse
    module, errors = parse_module(src)
    logger.info("%s: %d definitions, %d errors", src.name, len(module.variables), len(errors))

    # 3. Render
    if fmt == "json":
        payload = {
            "module": module.to_dict(),
            "errors": [e.to_dict() for e in errors],
        }
        code = json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False)
    elif errors:
        # An Unknown placeholder has no source form.
        code = ""
    else:
        code = emit_source(module)

    # 4. Output
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(code)
        if pretty:
            print(f"(wrote to {out})")
    elif pretty:
        banner = "=" * 20
        print(f"{banner}\n{src.name}\n{banner}\n{code}\n{banner}")
    else:
        print(code)

    for error in errors:
        print(error, file=sys.stderr)
    return 1 if errors else 0


def main() -> None:
    """
    Entry point for the TALA CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-f`, `--format`: Output format ('json' or 'source'), default is 'json'.
        - `-o`, `--out`: Write output to a file.
        - `-p`, `--pretty`: Indented JSON and banners.
        - `--verbose`: Debug logging from the lexer and parser.
    """
    parser = argparse.ArgumentParser(prog="tala")
    parser.add_argument("source", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="fmt",
        choices=("json", "source"),
        default="json",
        help="Output format (default: json)",
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "-p", "--pretty", action="store_true", help="Indent JSON and show banners"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        status = run_tala(
            source=args.source,
            is_string=args.string,
            fmt=args.fmt,
            out=args.out,
            pretty=args.pretty,
        )
    except (OSError, ValueError) as e:
        print(f"tala: {e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(status)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
