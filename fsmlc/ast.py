# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

# ast.py - Nodes of a parsed FSML program.  The grammar actions in
# parser.py build the tree through the methods here; analyze.py fills
# in the index fields afterwards.

import fsmlc.errors as errors
import fsmlc.log as log

FAMILIES = ("var", "input", "output")
FLAGS = ("start", "end", "err")


class Fragment(object):
    """
    Foreign (C) code copied verbatim; line and column give the position
    of the first character of text.
    """

    def __init__(self, text, line, column):
        self.text = text
        self.line = line
        self.column = column
        # declared variables the text refers to, set by the analyzer
        self.references = []

    def __str__(self):
        return self.text

    def position(self, offset):
        """Source position of text[offset]."""
        before = self.text[:offset]
        newlines = before.count("\n")
        if not newlines:
            return self.line, self.column + offset
        return self.line + newlines, offset - before.rfind("\n")


class Position(object):
    def __init__(self, line, column):
        self.line = line
        self.column = column


def fragment(token):
    return Fragment(token.value, token.line, token.column)


class Name(object):
    """
    A reference by name to a state, timer or error label; index is
    filled in once the name is resolved.
    """

    def __init__(self, token):
        self.name = token.value
        self.line = token.line
        self.column = token.column
        self.index = None

    def __str__(self):
        return self.name


class Variable(object):
    def __init__(self, family, type, name, init):
        self.family = family
        self.type = type
        self.name = name.value
        self.init = init
        self.line = name.line
        self.column = name.column


class Timer(object):
    def __init__(self, name, duration):
        self.name = name.value
        self.duration = duration.value
        self.line = name.line
        self.column = name.column
        self.index = None


class OutAssignment(object):
    def __init__(self, name, expr):
        self.name = name.value
        self.expr = expr
        self.line = name.line
        self.column = name.column


class Transition(object):
    def __init__(self, state, token, overflow=False):
        self._until = state.until() if state is not None else None
        self.overflow = overflow
        self.condition = None
        self.timeout = None
        self.code = None
        self.actuator = None
        self.target = None
        self.starts = []
        self.line = token.line
        self.column = token.column
        # filled in by the analyzer
        self.target_index = None
        self.error_index = None
        self.leaves = []

    def set_condition(self, token):
        self.condition = fragment(token)

    def set_timeout(self, token):
        self.timeout = Name(token)

    def set_code(self, token):
        self.code = fragment(token)

    def go(self, name):
        self.actuator = "go"
        self.target = Name(name)

    def err(self, label):
        self.actuator = "err"
        self.target = Name(label)

    def retry(self, token):
        if self.overflow:
            raise errors.SyntaxError(
                "retry cannot be used as an until-block's overflow action",
                token.line,
                token.column,
            )
        self.actuator = "retry"

    def start(self, name):
        self.starts.append(Name(name))


class State(object):
    def __init__(self, until, flags, name):
        self._until = until
        self.name = name.value
        self.line = name.line
        self.column = name.column
        self.flags = [flag.value for flag in flags]
        self.entry = None
        self.transitions = []
        self.outs = []
        self.index = None

    def is_start(self):
        return "start" in self.flags

    def is_end(self):
        return "end" in self.flags

    def is_err(self):
        return "err" in self.flags

    def until(self):
        return self._until

    def set_entry(self, token):
        self.entry = fragment(token)

    def transition(self, token):
        t = Transition(self, token)
        self.transitions.append(t)
        return t

    def out(self, name, expr):
        self.outs.append(OutAssignment(name, fragment(expr)))


def check_flags(flags):
    for flag in flags:
        if flag.value not in FLAGS:
            raise errors.SyntaxError(
                "unknown state type '%s' (expected one of %s)"
                % (flag.value, ", ".join(FLAGS)),
                flag.line,
                flag.column,
            )


class UntilBlock(object):
    def __init__(self, token, bound):
        self.bound = bound.value
        self.bound_is_literal = bound.type == "INT"
        self.line = token.line
        self.column = token.column
        self.states = []
        self.overflow = Transition(None, token, overflow=True)
        self.overflow._until = self
        self.index = None

    def state(self, flags, name):
        check_flags(flags)
        s = State(self, flags, name)
        log.trace("until state name=%s flags=%s." % (s.name, s.flags))
        self.states.append(s)
        return s

    def first_state(self):
        if not self.states:
            return None
        return self.states[0]


class Fsm(object):
    def __init__(self, name):
        self.name = name.value
        self.line = name.line
        self.column = name.column
        self.variables = []
        self.timers = []
        self.items = []
        # filled in by the analyzer
        self.states = []
        self.untils = []
        self.error_labels = []
        self.start_state = None
        self.err_state = None

    def variable(self, family, words, init):
        if len(words) < 2:
            name = words[-1]
            raise errors.SyntaxError(
                "%s %s needs a type before its name" % (family.value, name.value),
                name.line,
                name.column,
            )
        type = " ".join(w.value for w in words[:-1])
        v = Variable(family.value, type, words[-1], fragment(init))
        log.trace("new %s %s %s." % (v.family, v.type, v.name))
        self.variables.append(v)
        return v

    def timer(self, name, duration):
        t = Timer(name, duration)
        log.trace("new timer %s=%s." % (t.name, t.duration))
        self.timers.append(t)
        return t

    def state(self, flags, name):
        check_flags(flags)
        s = State(None, flags, name)
        log.trace("state name=%s flags=%s." % (s.name, s.flags))
        self.items.append(s)
        return s

    def until(self, token, bound):
        u = UntilBlock(token, bound)
        log.trace("until bound=%s." % (u.bound,))
        self.items.append(u)
        return u

    def all_states(self):
        r = []
        for item in self.items:
            if isinstance(item, UntilBlock):
                r.extend(item.states)
            else:
                r.append(item)
        return r

    def all_untils(self):
        return [item for item in self.items if isinstance(item, UntilBlock)]


class Program(object):
    def __init__(self, source_name):
        self.source_name = source_name
        self.decl = None
        self.clock = None
        self.clock_body = None
        self.fsm = None
        self.diagnostics = []

    def set_decl(self, block):
        self.decl = fragment(block)

    def set_clock(self, keyword, block):
        # 'time' returns the current time, 'period' the time since
        # the previous call.
        self.clock = keyword.value
        self.clock_body = fragment(block)

    def new_fsm(self, name):
        self.fsm = Fsm(name)
        return self.fsm
