# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

# generate.py - Writes the C implementation of an analyzed Program.

import re
import textwrap

import jinja2

import fsmlc.analyze as analyzer
import fsmlc.errors as errors
import fsmlc.log as log

environment = jinja2.Environment(keep_trailing_newline=True)

_this = re.compile(r"\bthis\s*\.\s*(state|err)\s*\(\s*\)")


def unit(program, prefix):
    fsm = program.fsm
    t = environment.from_string(
        r"""/*
 * Generated by fsmlc from {{ program.source_name or "<input>" }}; do not edit.
 *
 * Call {{ prefix }}_init() once, then {{ prefix }}_step() from the polling
 * loop; each call performs at most one transition.
 */
{%- if program.decl %}

{{ program.decl|block(0) }}
{%- endif %}{# program.decl #}

typedef enum {{ prefix }}_state {
{%- for state in fsm.states %}
    {{ state|state_enum(fsm, prefix) }},{% if state.flags %} /* {{ state.flags|join(", ") }} */{% endif %}
{%- endfor %}{# state in fsm.states #}
} {{ prefix }}_state_t;

typedef enum {{ prefix }}_err {
    {{ prefix }}_err_none = 0,
{%- for label in fsm.error_labels %}
    {{ prefix }}_err_{{ label }},
{%- endfor %}{# label in fsm.error_labels #}
} {{ prefix }}_err_t;
{%- if fsm.timers %}

enum {{ prefix }}_timer {
{%- for timer in fsm.timers %}
    {{ prefix }}_timer_{{ timer.name }},
{%- endfor %}{# timer in fsm.timers #}
};
{%- endif %}{# fsm.timers #}

typedef struct {{ prefix }} {
    {{ prefix }}_state_t state;
    {{ prefix }}_err_t err;
{%- for v in fsm.variables %}
    {{ v.type }} {{ v.name }}; /* {{ v.family }} */
{%- endfor %}{# v in fsm.variables #}
{%- if fsm.timers %}
    long timers[{{ fsm.timers|length }}]; /* time left until timeout */
    unsigned char running[{{ fsm.timers|length }}];
{%- endif %}{# fsm.timers #}
{%- if fsm.untils %}
    unsigned int retries[{{ fsm.untils|length }}]; /* per until block */
{%- endif %}{# fsm.untils #}
{%- if program.clock == "time" %}
    long last_time;
{%- endif %}{# program.clock == "time" #}
} {{ prefix }}_t;

{% if program.clock == "time" -%}
static long {{ prefix }}_time(void)
{
{{ program.clock_body|block(4) }}
}
{%- elif program.clock == "period" -%}
static long {{ prefix }}_period(void)
{
{{ program.clock_body|block(4) }}
}
{%- else -%}
static long {{ prefix }}_period(void)
{
    return 1;
}
{%- endif %}{# program.clock #}

static const char *const {{ prefix }}_state_names[] = {
{%- for state in fsm.states %}
    "{{ state.name }}",
{%- endfor %}{# state in fsm.states #}
};

static const char *const {{ prefix }}_err_names[] = {
    "none",
{%- for label in fsm.error_labels %}
    "{{ label }}",
{%- endfor %}{# label in fsm.error_labels #}
};

const char *{{ prefix }}_state_name(const {{ prefix }}_t *fsm)
{
    return {{ prefix }}_state_names[fsm->state];
}

const char *{{ prefix }}_err_name(const {{ prefix }}_t *fsm)
{
    return {{ prefix }}_err_names[fsm->err];
}

int {{ prefix }}_done(const {{ prefix }}_t *fsm)
{
    switch (fsm->state) {
{%- for state in fsm.states if state.is_end() %}
    case {{ state|state_enum(fsm, prefix) }}:
{%- endfor %}{# state in fsm.states if state.is_end() #}
        return 1;
    default:
        return 0;
    }
}

void {{ prefix }}_init({{ prefix }}_t *fsm)
{
{%- if fsm.timers or fsm.untils %}
    int i;
{%- endif %}{# fsm.timers or fsm.untils #}
    fsm->state = {{ fsm.start_state|state_enum(fsm, prefix) }};
    fsm->err = {{ prefix }}_err_none;
{%- for v in fsm.variables %}
    fsm->{{ v.name }} = ({{ v.init|expr(fsm) }});
{%- endfor %}{# v in fsm.variables #}
{%- if fsm.timers %}
    for (i = 0; i < {{ fsm.timers|length }}; i++) {
        fsm->timers[i] = 0;
        fsm->running[i] = 0;
    }
{%- endif %}{# fsm.timers #}
{%- if fsm.untils %}
    for (i = 0; i < {{ fsm.untils|length }}; i++) {
        fsm->retries[i] = 0;
    }
{%- endif %}{# fsm.untils #}
{%- if program.clock == "time" %}
    fsm->last_time = {{ prefix }}_time();
{%- endif %}{# program.clock == "time" #}
}

void {{ prefix }}_step({{ prefix }}_t *fsm)
{
{%- if fsm.timers %}
    long elapsed;
    int i;
{%- if program.clock == "time" %}
    long now;

    now = {{ prefix }}_time();
    elapsed = now - fsm->last_time;
    fsm->last_time = now;
{%- else %}

    elapsed = {{ prefix }}_period();
{%- endif %}{# program.clock == "time" #}
    for (i = 0; i < {{ fsm.timers|length }}; i++) {
        if (fsm->running[i] && fsm->timers[i] > 0) {
            fsm->timers[i] -= elapsed;
        }
    }

{%- endif %}{# fsm.timers #}
    switch (fsm->state) {
{%- for state in fsm.states %}
    case {{ state|state_enum(fsm, prefix) }}:
{{- state|state_case(fsm, prefix)|indent(8) }}
        break;
{%- endfor %}{# state in fsm.states #}
    default:
        break;
    }
}
"""
    )
    return t.render(program=program, fsm=fsm, prefix=prefix)


def state_case(state, fsm, prefix):
    t = environment.from_string(
        r"""
{%- if state.entry and state.entry.text.strip() %}
{
{{ state.entry|block(4, fsm) }}
}
{%- endif %}{# state.entry #}
{%- for t in state.transitions %}
if ({{ t|condition(fsm, prefix) }}) {
{%- if t.code and t.code.text.strip() %}
    {
{{ t.code|block(8, fsm) }}
    }
{%- endif %}{# t.code #}
{{- state|outs(fsm)|indent(4) }}
{{- t|actuate(fsm, prefix)|indent(4) }}
    break;
}
{%- endfor %}{# t in state.transitions #}
{{- state|outs(fsm) }}"""
    )
    return t.render(state=state, fsm=fsm, prefix=prefix)


def outs(state, fsm):
    t = environment.from_string(
        r"""
{%- for out in state.outs %}
fsm->{{ out.name }} = ({{ out.expr|expr(fsm) }});
{%- endfor %}{# out in state.outs #}"""
    )
    return t.render(state=state, fsm=fsm)


def actuate(transition, fsm, prefix):
    """
    The C statements that carry out a transition once its condition
    and code have run: timer starts, retry bookkeeping and the change
    of state.
    """
    t = environment.from_string(
        r"""
{%- for name in transition.starts %}
fsm->timers[{{ name|timer_enum(fsm, prefix) }}] = {{ fsm.timers[name.index].duration }};
fsm->running[{{ name|timer_enum(fsm, prefix) }}] = 1;
{%- endfor %}{# name in transition.starts #}
{%- if transition.actuator == "retry" %}
if (++fsm->retries[{{ until.index }}] >= ({{ until.bound }})) {
{{- until.overflow|actuate(fsm, prefix)|indent(4) }}
} else {
    fsm->state = {{ transition.target_index|state_index(fsm, prefix) }};
}
{%- else %}{# transition.actuator == "retry" #}
{%- for n in transition.leaves %}
fsm->retries[{{ n }}] = 0;
{%- endfor %}{# n in transition.leaves #}
{%- if transition.actuator == "err" %}
fsm->err = {{ prefix }}_err_{{ transition.target.name }};
{%- endif %}{# transition.actuator == "err" #}
fsm->state = {{ transition.target_index|state_index(fsm, prefix) }};
{%- endif %}{# transition.actuator == "retry" #}"""
    )
    return t.render(
        transition=transition,
        until=transition._until,
        fsm=fsm,
        prefix=prefix,
    )


def condition(transition, fsm, prefix):
    if transition.timeout is not None:
        timer = timer_enum(transition.timeout, fsm, prefix)
        return "fsm->running[%s] && fsm->timers[%s] <= 0" % (timer, timer)
    return expr(transition.condition, fsm)


def expand(text, fsm):
    """
    Rewrites C text so FSML names reach the data layout: variables
    become fsm->name, this.state() and this.err() the current state and
    error fields.
    """
    text = _this.sub(r"(fsm->\1)", text)
    names = set(v.name for v in fsm.variables)
    r = []
    last = 0
    for offset, name in analyzer.identifiers(text):
        if name not in names:
            continue
        r.append(text[last:offset])
        r.append("fsm->%s" % name)
        last = offset + len(name)
    r.append(text[last:])
    return "".join(r)


def expr(fragment, fsm):
    return expand(fragment.text.strip(), fsm)


def block(fragment, indent, fsm=None):
    """Fragment text dedented, then indented by indent spaces."""
    text = fragment.text
    if fsm is not None:
        text = expand(text, fsm)
    lines = textwrap.dedent(text.expandtabs(4)).split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    prefix = " " * indent
    return "\n".join((prefix + line.rstrip()) if line.strip() else "" for line in lines)


def _checked(items, index, what):
    if index is None or not 0 <= index < len(items):
        raise errors.InternalError(
            "%s index %s out of range 0..%u" % (what, index, len(items) - 1)
        )
    return items[index]


def state_enum(state, fsm, prefix):
    _checked(fsm.states, state.index, "state")
    return "%s_state_%s" % (prefix, state.name)


def state_index(index, fsm, prefix):
    state = _checked(fsm.states, index, "state")
    return "%s_state_%s" % (prefix, state.name)


def timer_enum(name, fsm, prefix):
    timer = _checked(fsm.timers, name.index, "timer")
    return "%s_timer_%s" % (prefix, timer.name)


environment.filters["block"] = block
environment.filters["expr"] = expr
environment.filters["state_enum"] = state_enum
environment.filters["state_index"] = state_index
environment.filters["timer_enum"] = timer_enum
environment.filters["state_case"] = state_case
environment.filters["outs"] = outs
environment.filters["actuate"] = actuate
environment.filters["condition"] = condition


def generate_c(program, prefix=None):
    """
    Returns the C source implementing program's state machine.  The
    program must have been analyzed without errors; anything found
    inconsistent here is a compiler bug and raises InternalError.
    """
    fsm = program.fsm
    if fsm is None or fsm.start_state is None:
        raise errors.InternalError("program has not been analyzed")
    if prefix is None:
        prefix = fsm.name
    log.trace("generate_c fsm=%s prefix=%s." % (fsm.name, prefix))
    return unit(program, prefix)
