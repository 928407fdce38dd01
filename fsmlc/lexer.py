# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

# lexer.py - Turns FSML source into tokens.  Tokens are produced on
# demand, one at a time, under the set of token types the parser
# expects next; that is how raw fragments get recognized: a '{' or '('
# where the grammar wants foreign code is consumed up to its matching
# close and handed back as a single BLOCK or EXPR token.

import bisect
import re

import fsmlc.errors as errors
import fsmlc.log as log

KEYWORDS = {
    "fsm": "FSM",
    "state": "STATE",
    "on": "ON",
    "go": "GO",
    "err": "ERR",
    "retry": "RETRY",
    "until": "UNTIL",
    "var": "VAR",
    "input": "INPUT",
    "output": "OUTPUT",
    "timer": "TIMER",
    "decl": "DECL",
    "time": "TIME",
    "period": "PERIOD",
    "start": "START",
    "timeout": "TIMEOUT",
    "out": "OUT",
}

PUNCTUATION = {
    "{": "LBRACE",
    "}": "RBRACE",
    "(": "LPAREN",
    ")": "RPAREN",
    "[": "LBRACKET",
    "]": "RBRACKET",
    ",": "COMMA",
    ";": "SEMI",
    ".": "DOT",
}

# Raw fragment token type -> (open, close) delimiters.
FRAGMENTS = {
    "BLOCK": ("{", "}"),
    "EXPR": ("(", ")"),
}

_skip = re.compile(r"(?:\s+|//[^\n]*)*")
_name = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_int = re.compile(r"[0-9]+")


class Token(object):
    def __init__(self, type, value, line, column, offset=0):
        self.type = type
        self.value = value
        self.line = line
        self.column = column
        self.offset = offset

    def __repr__(self):
        return "Token(%s, %r, %u:%u)" % (self.type, self.value, self.line, self.column)


def describe(type):
    if type in FRAGMENTS:
        open_, close = FRAGMENTS[type]
        return "'%s...%s'" % (open_, close)
    if type == "NAME":
        return "identifier"
    if type == "INT":
        return "integer"
    if type == "EOF":
        return "end of file"
    for text, t in PUNCTUATION.items():
        if t == type:
            return "'%s'" % text
    for text, t in KEYWORDS.items():
        if t == type:
            return "'%s'" % text
    return type


def describe_token(token):
    if token.type == "NAME":
        return "identifier '%s'" % token.value
    if token.type == "INT":
        return "integer %s" % token.value
    return describe(token.type)


class Lexer(object):
    def __init__(self, source, filename=None):
        self.source = source
        self.filename = filename
        self.pos = 0
        self._lookahead = None
        self._line_starts = [0]
        for m in re.finditer("\n", source):
            self._line_starts.append(m.end())

    def position(self, offset):
        """Returns the 1-based (line, column) of offset."""
        line = bisect.bisect_right(self._line_starts, offset)
        return line, offset - self._line_starts[line - 1] + 1

    def _skip(self):
        self.pos = _skip.match(self.source, self.pos).end()

    def at_eof(self):
        if self._lookahead is not None:
            return self._lookahead.type == "EOF"
        self._skip()
        return self.pos >= len(self.source)

    def mark(self):
        """Offset where the next token starts."""
        if self._lookahead is not None:
            return self._lookahead.offset
        self._skip()
        return self.pos

    def _next(self, expect):
        self._skip()
        start = self.pos
        line, column = self.position(start)
        if start >= len(self.source):
            return Token("EOF", "", line, column, start)
        c = self.source[start]
        for type, (open_, close) in FRAGMENTS.items():
            if c == open_ and type in expect:
                return self._fragment(type, open_, close, line, column)
        m = _name.match(self.source, start)
        if m:
            word = m.group(0)
            self.pos = m.end()
            return Token(KEYWORDS.get(word, "NAME"), word, line, column, start)
        m = _int.match(self.source, start)
        if m:
            self.pos = m.end()
            return Token("INT", m.group(0), line, column, start)
        if c in PUNCTUATION:
            self.pos += 1
            return Token(PUNCTUATION[c], c, line, column, start)
        raise errors.LexError("unrecognized character %r" % c, line, column)

    def _fragment(self, type, open_, close, line, column):
        start = self.pos
        depth = 0
        i = start
        while i < len(self.source):
            c = self.source[i]
            if c == open_:
                depth += 1
            elif c == close:
                depth -= 1
                if depth == 0:
                    text = self.source[start + 1 : i]
                    self.pos = i + 1
                    text_line, text_column = self.position(start + 1)
                    return Token(type, text, text_line, text_column, start)
            i += 1
        raise errors.LexError(
            "unterminated %s; no matching '%s' for this '%s'" % (
                "code block" if type == "BLOCK" else "expression",
                close,
                open_,
            ),
            line,
            column,
        )

    def peek(self, *types):
        """
        Returns the type of the next token.  When types are given the
        token is lexed under that expectation and must be one of them.
        """
        if self._lookahead is None:
            self._lookahead = self._next(types)
            log.trace("expect=%s token=%s." % (types, self._lookahead))
        token = self._lookahead
        if types and token.type not in types:
            expected = [describe(t) for t in types]
            if len(expected) > 1:
                expected = "one of %s" % ", ".join(expected)
            else:
                expected = expected[0]
            raise errors.SyntaxError(
                "expected %s, found %s" % (expected, describe_token(token)),
                token.line,
                token.column,
            )
        return token.type

    def scan(self, type):
        self.peek(type)
        token = self._lookahead
        self._lookahead = None
        return token

    def recover(self, start):
        """
        Skips from the item beginning at offset start to the next 'state'
        or 'until' at the item's own brace depth, or to the '}' that
        closes the enclosing block.  Braces are counted the way raw
        fragments are, so fragments are skipped whole.
        """
        self._lookahead = None
        self.pos = start
        depth = 0
        first = True
        while True:
            self._skip()
            if self.pos >= len(self.source):
                break
            c = self.source[self.pos]
            m = _name.match(self.source, self.pos)
            if m:
                if not first and depth == 0 and m.group(0) in ("state", "until"):
                    break
                self.pos = m.end()
            elif c == "{":
                depth += 1
                self.pos += 1
            elif c == "}":
                if depth == 0:
                    break
                depth -= 1
                self.pos += 1
            else:
                self.pos += 1
            first = False
        log.trace("recovered at %s:%s." % self.position(self.pos))


def tokenize(source, filename=None):
    """All ordinary tokens of source, ending with EOF; no raw fragments."""
    lexer = Lexer(source, filename)
    r = []
    while True:
        token = lexer.scan(lexer.peek())
        r.append(token)
        if token.type == "EOF":
            return r
