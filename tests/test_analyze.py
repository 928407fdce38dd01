# test_analyze.py - Semantic errors and warnings.  Every check runs, so
# a source with several problems reports all of them.

import fsmlc
import utils


def test_multiple_start_states():
    e = utils.compile_errors(
        """fsm m {
    state [start] a { on (1) go b; }
    state [start, end] b { }
}
"""
    )
    assert e.kinds() == ["SemanticError"]
    d = e.errors()[0]
    assert "multiple start states" in d.message
    assert d.line == 3


def test_no_start_or_end_state():
    e = utils.compile_errors("fsm m {\n    state a { }\n}\n")
    assert utils.messages(e.errors()) == [
        "no start state; flag exactly one state [start]",
        "no end state; flag at least one state [end]",
    ]


def test_unknown_target():
    e = utils.compile_errors(
        """fsm m {
    state [start] a {
        on (1) go nowhere;
    }
    state [end] b { }
}
"""
    )
    assert e.kinds() == ["SemanticError"]
    d = e.errors()[0]
    assert d.message == "unknown state 'nowhere'"
    assert (d.line, d.column) == (3, 19)
    assert str(d) == "test.fsml:3:19: error: unknown state 'nowhere'"


def test_unknown_timers():
    e = utils.compile_errors(
        """fsm m {
    timer t (10);
    state [start] a {
        on (1) go b start(u);
    }
    state [end] b {
        on timeout(v) go a;
    }
}
"""
    )
    assert utils.messages(e.errors()) == ["unknown timer 'u'", "unknown timer 'v'"]
    assert [d.line for d in e.errors()] == [4, 7]


def test_output_in_condition():
    e = utils.compile_errors(
        """fsm m {
    output int led (0);
    state [start] a {
        on (led == 1) go b;
    }
    state [end] b { }
}
"""
    )
    assert e.kinds() == ["SemanticError"]
    d = e.errors()[0]
    assert "output 'led'" in d.message
    assert (d.line, d.column) == (4, 13)


def test_out_needs_an_output():
    e = utils.compile_errors(
        """fsm m {
    input int button (0);
    state [start, end] a {
        out button (1), missing (2), button ();
    }
}
"""
    )
    assert utils.messages(e.errors()) == [
        "'button' is declared input, only outputs can be assigned by out",
        "unknown output 'missing'",
        "out button has an empty expression",
        "'button' is declared input, only outputs can be assigned by out",
    ]


def test_retry_outside_until():
    e = utils.compile_errors(
        """fsm m {
    state [start, end] a {
        on (1) retry;
    }
}
"""
    )
    assert utils.messages(e.errors()) == ["retry is only allowed inside an until block"]
    assert e.errors()[0].line == 3


def test_err_without_err_state():
    e = utils.compile_errors(
        """fsm m {
    state [start, end] a {
        on (1) err oops;
    }
}
"""
    )
    assert utils.messages(e.errors()) == ["err oops needs a state flagged err to go to"]


def test_until_bounds():
    e = utils.compile_errors(
        """fsm m {
    state [start] a { on (1) go b; }
    until (0) {
        state b { on (1) retry; on (1) go c; }
    } go c;
    until (3) {
    } go c;
    state [end] c { }
}
"""
    )
    assert utils.messages(e.errors()) == [
        "until bound must be a positive integer, not 0",
        "until block has no states to retry",
    ]


def test_all_problems_reported():
    e = utils.compile_errors(
        """fsm m {
    var int x (0);
    var int x (1);
    var int timers ();
    timer t (10);
    timer t (20);
    state [start, end] a { on (x) go b; }
    state a { }
}
"""
    )
    assert utils.messages(e.errors()) == [
        "duplicate variable 'x' (already declared as var on line 2)",
        "var timers has an empty initializer",
        "variable name 'timers' is reserved",
        "duplicate timer 't' (already declared on line 5)",
        "duplicate state 'a' (already declared on line 7)",
        "unknown state 'b'",
    ]
    assert set(e.kinds()) == set(["SemanticError"])
    assert utils.messages(e.warnings()) == ["state 'a' is unreachable"]


def test_warnings_do_not_stop_output():
    program, code = fsmlc.translate(
        """fsm m {
    state [start, end] a { }
    state [err] b { }
    state [err] c { on (1) go a; }
}
""",
        "test.fsml",
    )
    assert "void m_step(m_t *fsm)" in code
    assert utils.messages(program.diagnostics) == [
        "'c' is also flagged err; err actions go to 'b'",
        "state 'b' is unreachable",
        "state 'c' is unreachable",
    ]
    assert all(d.severity == "warning" for d in program.diagnostics)


def test_error_labels_numbered_by_first_use():
    program, code = fsmlc.translate(
        """fsm m {
    state [start] a {
        on (1) err second;
        on (2) err first;
        on (3) err second;
    }
    state [end, err] b { }
}
"""
    )
    fsm = program.fsm
    assert fsm.error_labels == ["second", "first"]
    assert [t.error_index for t in fsm.states[0].transitions] == [1, 2, 1]
    assert fsm.err_state.name == "b"


def test_duplicate_flag():
    e = utils.compile_errors("fsm m {\n    state [start, end, start] a { }\n}\n")
    assert utils.messages(e.errors()) == ["state 'a' is flagged start more than once"]
    assert e.errors()[0].line == 2


def test_names_the_generated_c_uses():
    e = utils.compile_errors(
        """fsm m {
    state [start] a {
        on (1) go t;
        on (2) go names;
        on (3) err t;
        on (4) err name;
    }
    state [end] t { }
    state names { }
    state [err] b { }
}
"""
    )
    assert utils.messages(e.errors()) == [
        "state name 't' clashes with the generated name m_state_t",
        "state name 'names' clashes with the generated name m_state_names",
        "err t clashes with the generated name m_err_t",
        "err name clashes with the generated name m_err_name",
    ]
    assert [d.line for d in e.errors()] == [8, 9, 5, 6]


def test_local_hiding_a_variable():
    e = utils.compile_errors(
        """fsm m {
    var int count (0);
    output int led (0);
    state [start, end] a {
        { int count = 3; unsigned char led; count++; }
        on (count > 1) { static long total; total += count; } go a;
    }
}
"""
    )
    assert utils.messages(e.errors()) == [
        "local 'count' hides the var of the same name",
        "local 'led' hides the output of the same name",
    ]
    assert [(d.line, d.column) for d in e.errors()] == [(5, 15), (5, 40)]
