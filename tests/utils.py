#

import os.path
import shutil
import subprocess

import fsmlc
import fsmlc.log as log
import pytest

HARNESS = r"""
#include <stdio.h>

int main(void)
{
%s
    return 0;
}
"""


def compile_fsml(filename, generated_source_filename="%(dirname)s/.generated.%(basename)s.c", **kwargs):
    """
    Compiles the '%%' delimited FSML in filename; returns (program, code).
    The C is also saved next to filename so a failing test can be
    looked at.
    """
    source = fsmlc.load_source(filename)
    program, code = fsmlc.translate(source, filename, **kwargs)
    if generated_source_filename:
        dirname, basename = os.path.split(filename)
        out_filename = generated_source_filename % locals()
        with open(out_filename, "wt") as f:
            f.write(code)
    return program, code


def compile_errors(source, filename="test.fsml"):
    """Returns the CompileError that translating source raises."""
    with pytest.raises(fsmlc.CompileError) as e:
        fsmlc.translate(source, filename)
    for d in e.value.diagnostics:
        log._debug("%s" % (d,))
    return e.value


def messages(diagnostics):
    return [d.message for d in diagnostics]


def line_of(filename, text):
    """1-based number of the first line in filename containing text."""
    with open(filename, "rt") as f:
        for n, line in enumerate(f, 1):
            if text in line:
                return n
    raise ValueError("%r not found in %s" % (text, filename))


def c_compiler():
    for name in ("cc", "gcc", "clang"):
        path = shutil.which(name)
        if path is not None:
            return path
    return None


requires_cc = pytest.mark.skipif(c_compiler() is None, reason="no C compiler found")


def run_c(code, main, directory):
    """
    Builds code with main (C statements) as the body of main() and runs
    it; returns the program's standard output as a list of lines.
    """
    c_filename = os.path.join(str(directory), "machine.c")
    exe_filename = os.path.join(str(directory), "machine")
    with open(c_filename, "wt") as f:
        f.write(code)
        f.write(HARNESS % main)
    build = subprocess.run(
        [c_compiler(), "-o", exe_filename, c_filename],
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        universal_newlines=True,
    )
    log._trace("cc: %s" % (build.stdout,))
    assert build.returncode == 0, build.stdout
    run = subprocess.run(
        [exe_filename],
        stdout=subprocess.PIPE,
        universal_newlines=True,
        check=True,
    )
    return run.stdout.splitlines()
