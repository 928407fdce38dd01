# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

from .__version__ import __version__  # noqa: F401
from .errors import (  # noqa: F401
    CompileError,
    Diagnostic,
    FsmlError,
    InternalError,
    LexError,
    SemanticError,
    SyntaxError,
)
from .parser import load_fsml, load_source  # noqa: F401
from .translate import (  # noqa: F401
    Compilation,
    analyze,
    generate_c,
    parse,
    translate,
)


def load(filename):
    """
    Reads FSML from filename: the '%%' delimited section when the file
    has one, otherwise the whole file.
    """
    source = load_source(filename)
    if source.strip():
        return source
    return load_fsml(filename)
