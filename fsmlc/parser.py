# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

import io
import pkgutil
import fsmlc.ast as ast
import fsmlc.errors as errors
import fsmlc.lexer as lexer
import fsmlc.log as log
import yapps.grammar
import yapps.parsetree
import yapps.runtime


def load_source(
    filename,
    delimiter="%%",
    start_delimiter=None,
    end_delimiter=None,
):
    """
    Loads a file, replacing all the sections outside the '%%' delimited area
    with blank lines.  For example,
    ...
    ...       (replaced with blank lines)
    ...
    %%        (replaced with a blank line)
    ...
    ...       (left in the output)
    ...
    %%        (replaced with a blank line)
    ...
    ...       (replaced with blank lines)
    ...
    This way, errors in the delimited section are reported with the
    right line numbers from the original source file.  A file without
    any delimiter line is FSML through and through: use load_fsml.

    You can change the delimiters: Pass a parameter 'delimiter="XY"' to use XY
    instead of %% as delimiters or 'start_delimiter="%{", end_delimiter="%}"'
    to use different delimiters to start and end.
    """
    if start_delimiter is None:
        start_delimiter = delimiter
    if end_delimiter is None:
        end_delimiter = delimiter
    log.trace("load_source filename=%s" % (filename,))
    with open(filename, "rt") as f:
        return load_file(f, start_delimiter, end_delimiter)


def load_fsml(filename):
    """Loads a plain FSML file."""
    log.trace("load_fsml filename=%s" % (filename,))
    with open(filename, "rt") as f:
        return f.read()


def load_file(f, start_delimiter="%%", end_delimiter="%%"):
    lines = []
    while True:
        while True:
            # replace with blanks
            line = f.readline()
            if len(line) == 0:
                break
            lines.append("")
            line = line.rstrip()
            if line == start_delimiter:
                break
        if len(line) == 0:
            break
        while True:
            # copy to the output.
            line = f.readline()
            if len(line) == 0:
                break
            line = line.rstrip()
            if line == end_delimiter:
                break
            lines.append(line)
        if len(line) == 0:
            break
        lines.append("")
    source = "\n".join(lines)
    return source


r"""  # noqa: E501
%%

parser fsml:

    # Lexer.peek and Lexer.scan supply the tokens (see Parser below), so
    # the patterns here only document the tokens.  BLOCK and EXPR are raw
    # fragments, brace or parenthesis balanced, which the lexer cuts out
    # whenever the grammar expects one.
    token BLOCK: "faking out the scanner with something that shouldnt ever match, part 1"
    token EXPR: "faking out the scanner with something that shouldnt ever match, part 2"
    token FSM: "fsm"
    token STATE: "state"
    token ON: "on"
    token GO: "go"
    token ERR: "err"
    token RETRY: "retry"
    token UNTIL: "until"
    token VAR: "var"
    token INPUT: "input"
    token OUTPUT: "output"
    token TIMER: "timer"
    token DECL: "decl"
    token TIME: "time"
    token PERIOD: "period"
    token START: "start"
    token TIMEOUT: "timeout"
    token OUT: "out"
    token LBRACE: r"\{"
    token RBRACE: r"\}"
    token LPAREN: r"\("
    token RPAREN: r"\)"
    token LBRACKET: r"\["
    token RBRACKET: r"\]"
    token COMMA: ","
    token SEMI: ";"
    token DOT: r"\."
    token INT: r"[0-9]+"
    token NAME: r"[A-Za-z_][A-Za-z0-9_]*"
    token EOF: "$"
    ignore: r"//.*"      # comments
    ignore: r"[ \r\t\n]+"

    # Parser.parse_program walks the same path as this rule but with
    # error recovery around each fsm_item.
    rule fsml_program<<program>>:
        prologue<<program>>
        fsm_header<<program>>
        ( fsm_item<<fsm_header>> )*
        RBRACE EOF
        {{ return program }}

    rule prologue<<program>>:
        [ DECL BLOCK {{ program.set_decl(BLOCK) }} ]
        [ clock<<program>> ]

    rule clock<<program>>:
        (   TIME BLOCK {{ program.set_clock(TIME, BLOCK) }}
        |   PERIOD BLOCK {{ program.set_clock(PERIOD, BLOCK) }}
        )

    rule fsm_header<<program>>:
        FSM NAME LBRACE
        {{ fsm = program.new_fsm(NAME) }}
        ( declaration<<fsm>> )*
        {{ return fsm }}

    rule declaration<<fsm>>:
        (   family NAME {{ words = [NAME] }}
                ( NAME {{ words.append(NAME) }} )*
                EXPR SEMI
                {{ fsm.variable(family, words, EXPR) }}
        |   TIMER NAME LPAREN constant RPAREN SEMI
                {{ fsm.timer(NAME, constant) }}
        )

    rule family:
        (   VAR {{ return VAR }}
        |   INPUT {{ return INPUT }}
        |   OUTPUT {{ return OUTPUT }}
        )

    rule constant:
        (   INT {{ return INT }}
        |   NAME {{ return NAME }}
        )

    rule fsm_item<<fsm>>:
        (   state_block<<fsm>>
        |   until_block<<fsm>>
        )

    rule state_block<<container>>:
        STATE {{ flags = [] }}
        [   LBRACKET flag {{ flags.append(flag) }}
            ( COMMA flag {{ flags.append(flag) }} )*
            RBRACKET
        ]
        NAME LBRACE
        {{ state = container.state(flags, NAME) }}
        [ BLOCK {{ state.set_entry(BLOCK) }} ]
        (   transition<<state>>
        |   outs<<state>>
        )*
        RBRACE
        {{ return state }}

    rule flag:
        (   START {{ return START }}
        |   ERR {{ return ERR }}
        |   NAME {{ return NAME }}
        )

    rule transition<<state>>:
        ON {{ t = state.transition(ON) }}
        (   EXPR {{ t.set_condition(EXPR) }}
        |   TIMEOUT LPAREN NAME RPAREN {{ t.set_timeout(NAME) }}
        )
        [ BLOCK {{ t.set_code(BLOCK) }} ]
        actuator<<t>>
        ( START LPAREN NAME RPAREN {{ t.start(NAME) }} )*
        SEMI

    rule actuator<<t>>:
        (   GO NAME {{ t.go(NAME) }}
        |   ERR NAME {{ t.err(NAME) }}
        |   RETRY {{ t.retry(RETRY) }}
        )

    rule outs<<state>>:
        OUT NAME EXPR {{ state.out(NAME, EXPR) }}
        ( COMMA NAME EXPR {{ state.out(NAME, EXPR) }} )*
        SEMI

    rule until_block<<fsm>>:
        UNTIL LPAREN constant RPAREN LBRACE
        {{ until = fsm.until(UNTIL, constant) }}
        ( state_block<<until>> )*
        RBRACE
        actuator<<until.overflow>>
        SEMI

%%
"""


class Buffer:
    def __init__(self):
        self._buffer = []

    def write(self, msg):
        self._buffer.append(msg)


def load_parser():
    source_data = pkgutil.get_data(__name__, "parser.py").decode("utf-8")
    source_file = io.StringIO(source_data)
    source = load_file(source_file)
    scanner = yapps.grammar.ParserDescriptionScanner(source, filename=__file__)
    parser = yapps.grammar.ParserDescription(scanner)
    # monkey-patch the writer so we catch the python code
    t = yapps.runtime.wrap_error_reporter(parser, "Parser")
    t.output = Buffer()
    t.postparser = "\n\n"
    t.generate_output()
    parser_python = "".join(t.output._buffer)
    # run the generated python code.
    exec(parser_python, globals())


load_parser()

# Errors the parser reports and then either recovers from or stops at.
recoverable = (errors.LexError, errors.SyntaxError, yapps.runtime.SyntaxError)


class Parser(fsml):  # noqa: F821
    """
    The yapps generated parser with its token reads answered by an
    fsmlc.lexer.Lexer.  The generated scanner is only kept around
    because the runtime's rule contexts refer to it.
    """

    def __init__(self, lex, context):
        super(Parser, self).__init__(
            fsmlScanner(lex.source, filename=lex.filename)  # noqa: F821
        )
        self._lexer = lex
        self._context = context

    def _peek(self, *types, **kwargs):
        return self._lexer.peek(*types)

    def _scan(self, type, **kwargs):
        return self._lexer.scan(type)

    def parse_program(self):
        """
        Returns the Program, or None when parsing had to give up.  Errors
        found go to the context; only those inside a state or until
        block are recovered from.
        """
        program = ast.Program(self._lexer.filename)
        try:
            self.prologue(program)
            fsm = self.fsm_header(program)
        except recoverable as e:
            self._report(e)
            return None
        if not self.fsm_items(fsm):
            return None
        try:
            self._scan("RBRACE")
            self._scan("EOF")
        except recoverable as e:
            self._report(e)
            return None
        return program

    def fsm_items(self, fsm):
        while True:
            start = self._lexer.mark()
            try:
                if self._peek("STATE", "UNTIL", "RBRACE") == "RBRACE":
                    return True
                self.fsm_item(fsm)
            except recoverable as e:
                self._report(e)
                self._lexer.recover(start)
                if self._lexer.at_eof():
                    return False

    def _report(self, e):
        if isinstance(e, yapps.runtime.SyntaxError):
            # Only reachable if the generated code turns down a token
            # that the lexer already accepted.
            e = errors.SyntaxError(getattr(e, "msg", str(e)))
        self._context.report(e)


def parse_source(source, context):
    """
    Parses source into a Program; returns None if any lexical or syntax
    error was found (they are all in context).
    """
    lex = lexer.Lexer(source, context.filename)
    p = Parser(lex, context)
    program = p.parse_program()
    if context.has_errors():
        return None
    return program
