# test_clock.py - With a 'time' function the timers count real elapsed
# time between steps rather than one unit per step.

import utils

r"""
%%

decl {
    static long now;
}
time {
    return now;
}

fsm kettle {
    input int on_ (0);
    timer boil (100);

    state [start] cold {
        on (on_) go heating start(boil);
    }
    state heating {
        on timeout(boil) go boiled;
    }
    state [end] boiled {
    }
}

%%
"""


def test_time_function():
    program, code = utils.compile_fsml(__file__)
    assert program.clock == "time"
    assert "static long kettle_time(void)\n{\n    return now;\n}\n" in code
    assert "    long last_time;\n" in code
    assert "kettle_period" not in code


@utils.requires_cc
def test_elapsed_time(tmp_path):
    program, code = utils.compile_fsml(__file__)
    output = utils.run_c(
        code,
        r"""
    kettle_t m;
    int steps;

    now = 1000;
    kettle_init(&m);
    m.on_ = 1;
    kettle_step(&m);
    for (steps = 1; steps <= 100; steps++) {
        now += 10;
        kettle_step(&m);
        if (kettle_done(&m)) {
            break;
        }
    }
    printf("%s %d\n", kettle_state_name(&m), steps);
""",
        tmp_path,
    )
    assert output == ["boiled 10"]
