# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

# diagram.py - Renders an analyzed Program for people rather than
# compilers: PlantUML state diagrams and YAML dumps of the tree.

import yaml

import fsmlc.ast as ast


class Dumper(yaml.SafeDumper):
    pass


# When dumping to yaml, hide the fields
# beginning with underscore.
def hide_underscores(dumper, o):
    r = {}
    for k, v in o.__dict__.items():
        if k.startswith("_"):
            continue
        r[k] = v
    return dumper.represent_mapping(
        "tag:yaml.org,2002:python/object:%s" % (o.__class__.__name__), r
    )


Dumper.add_multi_representer(object, hide_underscores)


def generate_yaml(program):
    return yaml.dump(program, Dumper=Dumper, default_flow_style=False)


def label(transition):
    x = []
    if transition.timeout is not None:
        x.append("timeout(%s)" % transition.timeout.name)
    elif transition.condition is not None:
        x.append("[%s]" % " ".join(transition.condition.text.split()))
    if transition.actuator == "err":
        x.append("/ err %s" % transition.target.name)
    elif transition.actuator == "retry":
        x.append("/ retry")
    for name in transition.starts:
        x.append("/ start(%s)" % name.name)
    return " ".join(x)


def generate_plantuml(program):
    fsm = program.fsm
    r = [
        "@startuml",
        "title %s" % fsm.name,
    ]

    def edge(source, target, transition):
        x = [source, "-->", target]
        text = label(transition)
        if text:
            x.append(": %s" % text)
        r.append(" ".join(x))

    def state(s, indent=""):
        if s.is_start():
            r.append("%s[*] --> %s" % (indent, s.name))
        flags = [f for f in s.flags if f != "start"]
        if flags:
            r.append("%sstate %s : %s" % (indent, s.name, ", ".join(flags)))
        else:
            r.append("%sstate %s" % (indent, s.name))
        if s.is_end():
            r.append("%s%s --> [*]" % (indent, s.name))

    for item in fsm.items:
        if isinstance(item, ast.UntilBlock):
            r.append('state "until(%s)" as until_%u {' % (item.bound, item.index))
            for s in item.states:
                state(s, "    ")
            r.append("}")
        else:
            state(item)
    for s in fsm.states:
        for t in s.transitions:
            if t.target_index is None:
                continue
            edge(s.name, fsm.states[t.target_index].name, t)
    for until in fsm.untils:
        t = until.overflow
        if t.target_index is not None:
            edge("until_%u" % until.index, fsm.states[t.target_index].name, t)
    r.append("@enduml")
    return "\n".join(r) + "\n"
