# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

# errors.py - Exceptions and diagnostics shared by the compiler stages.

ERROR = "error"
WARNING = "warning"


class Diagnostic(object):
    def __init__(self, severity, kind, message, filename=None, line=0, column=0):
        self.severity = severity
        self.kind = kind
        self.message = message
        self.filename = filename
        self.line = line
        self.column = column

    def is_error(self):
        return self.severity == ERROR

    def __str__(self):
        location = []
        if self.filename:
            location.append(self.filename)
        if self.line:
            location.append("%u" % self.line)
            location.append("%u" % self.column)
        prefix = ":".join(location)
        if prefix:
            return "%s: %s: %s" % (prefix, self.severity, self.message)
        return "%s: %s" % (self.severity, self.message)

    def __repr__(self):
        return "Diagnostic(%s, %s, %r, line=%s, column=%s)" % (
            self.severity,
            self.kind,
            self.message,
            self.line,
            self.column,
        )


class FsmlError(Exception):
    """
    Base class for problems found in an FSML source; carries the position
    the problem was found at.
    """

    def __init__(self, message, line=0, column=0):
        super(FsmlError, self).__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def diagnostic(self, filename=None):
        return Diagnostic(
            ERROR,
            self.__class__.__name__,
            self.message,
            filename,
            self.line,
            self.column,
        )


class LexError(FsmlError):
    pass


class SyntaxError(FsmlError):
    pass


class SemanticError(FsmlError):
    pass


class InternalError(FsmlError):
    """
    A compiler defect: an invariant that analysis guarantees was
    found broken during generation.
    """

    pass


class CompileError(Exception):
    """
    Raised once per failed compilation with every diagnostic (warnings
    included) that was collected up to the failing stage.
    """

    def __init__(self, diagnostics):
        self.diagnostics = list(diagnostics)
        errors = [d for d in self.diagnostics if d.is_error()]
        super(CompileError, self).__init__(
            "\n".join(str(d) for d in errors) or "compilation failed"
        )

    def errors(self):
        return [d for d in self.diagnostics if d.is_error()]

    def warnings(self):
        return [d for d in self.diagnostics if not d.is_error()]

    def kinds(self):
        return [d.kind for d in self.errors()]
