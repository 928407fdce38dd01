# test_until.py - Bounded retries: each until block counts its own
# retries, leaving a block resets its count, and reaching the bound
# takes the block's overflow action instead of retrying.

import utils

r"""
%%

fsm attempt {
    input int fail (1);
    var int attempts (0);

    state [start] idle {
        on (1) go first;
    }
    until (3) {
        state first {
            on (fail) { attempts = attempts + 1; } retry;
            on (1) go between;
        }
    } err tooManyRetries;
    state between {
        on (1) go second;
    }
    until (3) {
        state second {
            on (fail) retry;
            on (1) go first;
        }
    } err otherRetries;
    state [end, err] failed {
    }
}

%%
"""


@utils.requires_cc
def test_retries(tmp_path):
    program, code = utils.compile_fsml(__file__)
    output = utils.run_c(
        code,
        r"""
    attempt_t m;

    attempt_init(&m);
    attempt_step(&m);
    attempt_step(&m);
    attempt_step(&m);
    printf("%s %u %u\n", attempt_state_name(&m), m.retries[0], m.retries[1]);
    m.fail = 0;
    attempt_step(&m);
    printf("%s %u %u\n", attempt_state_name(&m), m.retries[0], m.retries[1]);
    attempt_step(&m);
    m.fail = 1;
    attempt_step(&m);
    printf("%s %u %u\n", attempt_state_name(&m), m.retries[0], m.retries[1]);
    m.fail = 0;
    attempt_step(&m);
    m.fail = 1;
    attempt_step(&m);
    attempt_step(&m);
    printf("%s %u %u %s\n", attempt_state_name(&m), m.retries[0], m.retries[1],
        attempt_err_name(&m));
    attempt_step(&m);
    printf("%s %u %s %d\n", attempt_state_name(&m), m.retries[0],
        attempt_err_name(&m), attempt_done(&m));
    printf("%d\n", m.attempts);
""",
        tmp_path,
    )
    assert output == [
        # two retries in the first block
        "first 2 0",
        # leaving the block resets its count
        "between 0 0",
        "second 0 1",
        # the first block starts counting from zero again
        "first 2 0 none",
        # the third retry overflows
        "failed 0 tooManyRetries 1",
        "5",
    ]


def test_error_enumeration():
    program, code = utils.compile_fsml(__file__)
    assert program.fsm.error_labels == ["tooManyRetries", "otherRetries"]
    assert "unsigned int retries[2]; /* per until block */" in code
