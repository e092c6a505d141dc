"""CLI entry point: run `pycpbundle main.py` or `python -m pycpbundle main.py`."""

import logging
import sys
from pathlib import Path
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    from .analysis.module_system.stdlib import StandardLibrary
    from .compiler.driver import BundleDriver
    from .utils.config import (
        EXIT_FAILURE, EXIT_OK, PLACEMENT_END, PLACEMENTS, BundleOptions,
    )
    from .utils.io_utils import write_output_file

    parser = argparse.ArgumentParser(
        prog="pycpbundle",
        description="Bundle a multi-module Python program into a single source file.",
    )
    parser.add_argument("file", type=Path, help="Path to the entry .py file")
    parser.add_argument("-o", "--output", type=Path, help="Write the bundle here instead of stdout")
    parser.add_argument("--root", type=Path, action="append", default=[], metavar="DIR",
                        help="Extra directory searched for absolute imports (repeatable)")
    parser.add_argument("--assume-stdlib", action="append", default=[], metavar="NAME",
                        help="Top-level module the target provides; never inlined (repeatable)")
    parser.add_argument("--dedupe", action="store_true",
                        help="Append each declaration once (deviates from the default output)")
    parser.add_argument("--placement", choices=PLACEMENTS, default=PLACEMENT_END,
                        help="Where inlined declarations go (default: end)")
    parser.add_argument("--reformat", action="store_true",
                        help="Print every statement with ast.unparse instead of its original text")
    parser.add_argument("--no-shared-doc", action="store_true",
                        help="Only the first part of a split import keeps its comment block")
    parser.add_argument("--lenient", action="store_true",
                        help="Log unresolved names instead of failing")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    options = BundleOptions(
        search_roots=args.root,
        extra_stdlib=tuple(args.assume_stdlib),
        deduplicate=args.dedupe,
        placement=args.placement,
        preserve_source=not args.reformat,
        share_split_doc=not args.no_shared_doc,
        strict=not args.lenient,
    )
    driver = BundleDriver(options, StandardLibrary.load(options.extra_stdlib))
    result = driver.bundle(args.file)

    if not result.success:
        if result.reporter.has_errors():
            result.reporter.print_errors()
        else:
            sys.stderr.write("pycpbundle: bundling failed\n")
        return EXIT_FAILURE

    if args.output is None:
        sys.stdout.write(result.text)
        return EXIT_OK
    try:
        write_output_file(args.output, result.text)
    except OSError as e:
        sys.stderr.write(f"pycpbundle: error: could not write {args.output}: {e}\n")
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
