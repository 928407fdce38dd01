# test_guards.py - Transitions are tested in the order they are
# written and the first one whose condition holds is taken; with none
# holding the state doesn't change.

import utils

r"""
%%

fsm guards {
    input int value (0);

    state [start] firstState {
        on (value > 0) go secondState;
        on (value == 0) go thirdState;
        on (value > -100) go fourthState;
    }
    state secondState {
        on (1) go firstState;
    }
    state thirdState {
        on (1) go firstState;
    }
    state [end] fourthState {
    }
}

%%
"""


@utils.requires_cc
def test_first_true_guard_wins(tmp_path):
    program, code = utils.compile_fsml(__file__)
    output = utils.run_c(
        code,
        r"""
    guards_t m;
    int values[] = {5, 0, -5, -500};
    int i;

    for (i = 0; i < 4; i++) {
        guards_init(&m);
        m.value = values[i];
        guards_step(&m);
        printf("%d %s\n", values[i], guards_state_name(&m));
    }
""",
        tmp_path,
    )
    assert output == [
        "5 secondState",
        "0 thirdState",
        "-5 fourthState",
        "-500 firstState",
    ]


@utils.requires_cc
def test_state_unchanged_without_a_guard(tmp_path):
    program, code = utils.compile_fsml(__file__)
    output = utils.run_c(
        code,
        r"""
    guards_t m;
    int i;

    guards_init(&m);
    m.value = -1000;
    for (i = 0; i < 10; i++) {
        guards_step(&m);
    }
    printf("%s %d\n", guards_state_name(&m), guards_done(&m));
    m.value = 1;
    guards_step(&m);
    printf("%s\n", guards_state_name(&m));
    m.value = -1;
    guards_step(&m);
    guards_step(&m);
    printf("%s %d\n", guards_state_name(&m), guards_done(&m));
""",
        tmp_path,
    )
    assert output == ["firstState 0", "secondState", "fourthState 1"]
