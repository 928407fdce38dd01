# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

# translate.py - The compiler pipeline: parse, analyze, generate.

import fsmlc.analyze as analyzer
import fsmlc.errors as errors
import fsmlc.generate
import fsmlc.log as log
import fsmlc.parser


class Compilation(object):
    """
    Everything one run of the compiler accumulates; each stage gets it
    passed in so that nothing is kept between runs.
    """

    def __init__(self, filename=None):
        self.filename = filename
        self.diagnostics = []

    def report(self, e):
        d = e.diagnostic(self.filename)
        log.debug("%s" % (d,))
        self.diagnostics.append(d)

    def error(self, message, node=None, kind="SemanticError"):
        self._add(errors.ERROR, kind, message, node)

    def warning(self, message, node=None, kind="SemanticWarning"):
        self._add(errors.WARNING, kind, message, node)

    def _add(self, severity, kind, message, node):
        line = getattr(node, "line", 0)
        column = getattr(node, "column", 0)
        d = errors.Diagnostic(severity, kind, message, self.filename, line, column)
        log.debug("%s" % (d,))
        self.diagnostics.append(d)

    def has_errors(self):
        for d in self.diagnostics:
            if d.is_error():
                return True
        return False

    def errors(self):
        return [d for d in self.diagnostics if d.is_error()]

    def warnings(self):
        return [d for d in self.diagnostics if not d.is_error()]

    def check(self):
        if self.has_errors():
            raise errors.CompileError(self.diagnostics)


def parse(source, filename=None, compilation=None):
    """
    Returns the unannotated Program for source; raises CompileError
    on lexical or syntax errors.
    """
    if compilation is None:
        compilation = Compilation(filename)
    program = fsmlc.parser.parse_source(source, compilation)
    compilation.check()
    program.diagnostics = compilation.diagnostics
    return program


def analyze(program, compilation=None):
    if compilation is None:
        compilation = Compilation(program.source_name)
    analyzer.analyze(program, compilation)
    compilation.check()
    program.diagnostics = compilation.diagnostics
    return program


def generate_c(program, **kwargs):
    return fsmlc.generate.generate_c(program, **kwargs)


def translate(source, filename=None, **kwargs):
    """
    Compiles FSML source text.  Returns (program, code) where program is
    the analyzed AST (its diagnostics holding any warnings) and code is
    the generated C; raises CompileError with every diagnostic otherwise.
    """
    compilation = Compilation(filename)
    program = parse(source, filename, compilation)
    analyze(program, compilation)
    code = generate_c(program, **kwargs)
    return program, code
