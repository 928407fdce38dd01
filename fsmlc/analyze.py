# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

# analyze.py - Semantic checks on a parsed Program.  Every check runs,
# whatever the others found, so one compile reports all of the problems;
# names are then resolved to the integer indices the code generator
# works with.

import re

import fsmlc.ast as ast
import fsmlc.log as log

# Names the generated data layout and step function use for themselves.
RESERVED = ("fsm", "this", "state", "err", "timers", "running", "retries", "last_time")

# Suffixes the generated C already uses after <prefix>_state_ and
# <prefix>_err_: the enum typedefs, the name tables and their accessors.
GENERATED = ("t", "name", "names")

C_TYPES = (
    "char",
    "short",
    "int",
    "long",
    "float",
    "double",
    "signed",
    "unsigned",
    "_Bool",
    "bool",
    "const",
    "volatile",
    "static",
    "register",
)

# C tokens of interest when scanning a fragment for identifiers: string
# and character literals and comments are matched so they can be skipped.
_c_token = re.compile(
    r"""
    "(?:\\.|[^"\\\n])*"         # string literal
    | '(?:\\.|[^'\\\n])*'       # character literal
    | //[^\n]*                  # line comment
    | /\*.*?\*/                 # block comment
    | ->                        # member access
    | [A-Za-z_][A-Za-z0-9_]*    # identifier
    | [0-9][A-Za-z0-9_.]*       # number
    | \S                        # anything else
    """,
    re.VERBOSE | re.DOTALL,
)


def identifiers(text):
    """
    Yields (offset, name) for each identifier in the C text that could
    refer to an FSML declaration: not inside a literal or comment, not
    a member name following '.' or '->', and not part of this.state()
    or this.err().
    """
    for offset, name, previous in _identifiers(text):
        yield offset, name


def declarations(text):
    """
    Yields (offset, name) for identifiers the C text declares right
    after a type word, as in 'int count = 3;'.
    """
    for offset, name, previous in _identifiers(text):
        if previous in C_TYPES:
            yield offset, name


def _identifiers(text):
    previous = None
    for m in _c_token.finditer(text):
        token = m.group(0)
        if token[0].isalpha() or token[0] == "_":
            if previous not in (".", "->") and token != "this":
                yield m.start(), token, previous
        if token[0] not in "\"'/" or token == "/":
            previous = token


class Analyzer(object):
    def __init__(self, program, compilation):
        self._program = program
        self._compilation = compilation
        self._fsm = program.fsm
        self._variables = {}
        self._timers = {}
        self._states = {}

    def error(self, message, node):
        self._compilation.error(message, node)

    def warning(self, message, node):
        self._compilation.warning(message, node)

    def run(self):
        fsm = self._fsm
        fsm.states = fsm.all_states()
        fsm.untils = fsm.all_untils()
        for n, state in enumerate(fsm.states):
            state.index = n
        for n, until in enumerate(fsm.untils):
            until.index = n
        self.check_variables()
        self.check_timers()
        self.check_states()
        self.check_flags()
        self.check_untils()
        # Source order, so error labels are numbered by first use.
        for item in fsm.items:
            until = item if isinstance(item, ast.UntilBlock) else None
            for state in until.states if until else [item]:
                for t in state.transitions:
                    self.resolve(t)
                self.check_outs(state)
                self.check_fragments(state)
            if until:
                self.resolve(until.overflow)
        self.check_reachable()
        log.trace(
            "analyzed %s: states=%s, errors=%s."
            % (fsm.name, [s.name for s in fsm.states], fsm.error_labels)
        )

    def check_variables(self):
        for v in self._fsm.variables:
            if not v.init.text.strip():
                self.error("%s %s has an empty initializer" % (v.family, v.name), v)
            if v.name in RESERVED:
                self.error("variable name '%s' is reserved" % v.name, v)
                continue
            first = self._variables.get(v.name)
            if first is not None:
                self.error(
                    "duplicate variable '%s' (already declared as %s on line %u)"
                    % (v.name, first.family, first.line),
                    v,
                )
                continue
            self._variables[v.name] = v

    def check_timers(self):
        for n, t in enumerate(self._fsm.timers):
            t.index = n
            first = self._timers.get(t.name)
            if first is not None:
                self.error(
                    "duplicate timer '%s' (already declared on line %u)"
                    % (t.name, first.line),
                    t,
                )
                continue
            self._timers[t.name] = t

    def check_states(self):
        fsm = self._fsm
        for state in fsm.states:
            first = self._states.get(state.name)
            if first is not None:
                self.error(
                    "duplicate state '%s' (already declared on line %u)"
                    % (state.name, first.line),
                    state,
                )
                continue
            if state.name in GENERATED:
                self.error(
                    "state name '%s' clashes with the generated name %s_state_%s"
                    % (state.name, fsm.name, state.name),
                    state,
                )
            self._states[state.name] = state
        starts = [s for s in fsm.states if s.is_start()]
        if not starts:
            self.error("no start state; flag exactly one state [start]", fsm)
        else:
            fsm.start_state = starts[0]
            for s in starts[1:]:
                self.error(
                    "multiple start states: '%s' and '%s' (line %u)"
                    % (s.name, starts[0].name, starts[0].line),
                    s,
                )
        if not [s for s in fsm.states if s.is_end()]:
            self.error("no end state; flag at least one state [end]", fsm)
        err_states = [s for s in fsm.states if s.is_err()]
        if err_states:
            fsm.err_state = err_states[0]
            for s in err_states[1:]:
                self.warning(
                    "'%s' is also flagged err; err actions go to '%s'"
                    % (s.name, fsm.err_state.name),
                    s,
                )

    def check_flags(self):
        for state in self._fsm.states:
            seen = []
            for flag in state.flags:
                if flag in seen:
                    self.error(
                        "state '%s' is flagged %s more than once" % (state.name, flag),
                        state,
                    )
                seen.append(flag)

    def check_untils(self):
        for until in self._fsm.untils:
            if until.bound_is_literal and int(until.bound) <= 0:
                self.error(
                    "until bound must be a positive integer, not %s" % until.bound,
                    until,
                )
            if not until.states:
                self.error("until block has no states to retry", until)

    def find_state(self, name):
        state = self._states.get(name.name)
        if state is None:
            self.error("unknown state '%s'" % name.name, name)
            return None
        name.index = state.index
        return state

    def find_timer(self, name):
        timer = self._timers.get(name.name)
        if timer is None:
            self.error("unknown timer '%s'" % name.name, name)
            return None
        name.index = timer.index
        return timer

    def error_label(self, name):
        if name.name == "none":
            self.error("err none: 'none' means no error and cannot be a label", name)
        elif name.name in GENERATED:
            self.error(
                "err %s clashes with the generated name %s_err_%s"
                % (name.name, self._fsm.name, name.name),
                name,
            )
        labels = self._fsm.error_labels
        if name.name not in labels:
            labels.append(name.name)
        # 0 is reserved for "no error".
        name.index = labels.index(name.name) + 1
        return name.index

    def resolve(self, t):
        fsm = self._fsm
        until = t._until
        target = None
        if t.actuator == "go":
            target = self.find_state(t.target)
        elif t.actuator == "err":
            t.error_index = self.error_label(t.target)
            if fsm.err_state is None:
                self.error(
                    "err %s needs a state flagged err to go to" % t.target.name,
                    t.target,
                )
            target = fsm.err_state
        elif t.actuator == "retry":
            if until is None:
                self.error("retry is only allowed inside an until block", t)
            else:
                target = until.first_state()
        if t.timeout is not None:
            self.find_timer(t.timeout)
        for name in t.starts:
            self.find_timer(name)
        if target is None:
            return
        t.target_index = target.index
        if t.actuator == "retry":
            return
        if until is not None and (t.overflow or target.until() is not until):
            t.leaves.append(until.index)

    def check_outs(self, state):
        for out in state.outs:
            if not out.expr.text.strip():
                self.error("out %s has an empty expression" % out.name, out)
            v = self._variables.get(out.name)
            if v is None:
                self.error("unknown output '%s'" % out.name, out)
            elif v.family != "output":
                self.error(
                    "'%s' is declared %s, only outputs can be assigned by out"
                    % (out.name, v.family),
                    out,
                )

    def scan(self, fragment):
        """Declared variables referenced in fragment as (name, line, column)."""
        r = []
        for offset, name in identifiers(fragment.text):
            if name in self._variables:
                line, column = fragment.position(offset)
                r.append((name, line, column))
        fragment.references = sorted(set(n for n, line, column in r))
        return r

    def check_fragments(self, state):
        fragments = []
        if state.entry is not None:
            fragments.append(state.entry)
        for t in state.transitions:
            if t.code is not None:
                fragments.append(t.code)
            if t.condition is None:
                continue
            if not t.condition.text.strip():
                self.error("empty condition", t)
            for name, line, column in self.scan(t.condition):
                if self._variables[name].family == "output":
                    self._compilation.error(
                        "condition reads output '%s'; outputs are write-only"
                        % name,
                        ast.Position(line, column),
                    )
        for out in state.outs:
            fragments.append(out.expr)
        for f in fragments:
            self.scan(f)
            for offset, name in declarations(f.text):
                if name in self._variables:
                    line, column = f.position(offset)
                    self.error(
                        "local '%s' hides the %s of the same name"
                        % (name, self._variables[name].family),
                        ast.Position(line, column),
                    )

    def check_reachable(self):
        fsm = self._fsm
        if fsm.start_state is None:
            return
        edges = {}
        for state in fsm.states:
            edges[state.index] = [t.target_index for t in state.transitions]
            until = state.until()
            if until is not None:
                edges[state.index].append(until.overflow.target_index)
        reached = set()
        pending = [fsm.start_state.index]
        while pending:
            n = pending.pop()
            if n is None or n in reached:
                continue
            reached.add(n)
            pending.extend(edges[n])
        for state in fsm.states:
            if state.index not in reached:
                self.warning("state '%s' is unreachable" % state.name, state)


def analyze(program, compilation):
    """
    Checks program and annotates it with resolved indices; problems go
    to compilation.  Returns True if no errors were found.
    """
    Analyzer(program, compilation).run()
    return not compilation.has_errors()
