# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

import argparse
import os
import sys

import fsmlc
import fsmlc.diagram
import fsmlc.log


def write_output(filename, text):
    """
    Writes text to filename ('-' for standard output); a file left
    partly written is removed before the exception propagates.
    """
    if filename == "-":
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    try:
        with open(filename, "wt") as f:
            f.write(text)
    except Exception:
        if os.path.exists(filename):
            os.remove(filename)
        raise


def report(diagnostics):
    for d in diagnostics:
        print(d, file=sys.stderr)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="fsmlc",
        description="Translate an FSML state machine to C.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable trace-level messages",
    )
    parser.add_argument(
        "-o",
        "--output",
        default="-",
        help="Write generated C code to the given filename; default is standard output",
    )
    parser.add_argument(
        "--prefix",
        help="Prefix for generated C names; default is the fsm name",
    )
    parser.add_argument(
        "--yaml",
        help="Yaml filename to write",
    )
    parser.add_argument(
        "--plantuml",
        help="Plantuml state machine filename to write",
    )
    parser.add_argument(
        "input",
        help="input script; use '-' for standard input.",
    )
    args = parser.parse_args(argv)

    fsmlc.log.enable_trace = args.verbose

    if args.input == "-":
        filename = "<stdin>"
        source = sys.stdin.read()
    else:
        filename = args.input
        try:
            source = fsmlc.load(filename)
        except (IOError, OSError) as e:
            print("fsmlc: %s" % (e,), file=sys.stderr)
            return 1

    try:
        program, code = fsmlc.translate(source, filename, prefix=args.prefix)
    except fsmlc.CompileError as e:
        report(e.diagnostics)
        return 1
    except fsmlc.InternalError as e:
        fsmlc.log.error("internal compiler error: %s" % (e.message,))
        return 2
    report(program.diagnostics)

    write_output(args.output, code)

    if args.yaml:
        write_output(args.yaml, fsmlc.diagram.generate_yaml(program))

    if args.plantuml:
        write_output(args.plantuml, fsmlc.diagram.generate_plantuml(program))

    return 0


if __name__ == "__main__":
    sys.exit(main())
