"""Key classifier: maps an item key to measurement, tags and fields.

Item keys such as ``net.if.in[eth0,bytes]`` carry no formal grammar. The
decomposition is driven by syntactic cues only: how many bracket groups
the key has, how many dot-separated segments precede the first bracket,
what the bracket holds, and a few known measurement names.

The cues are encoded as an ordered rule table. The first rule whose
shape matches decides the outcome. When that rule cannot complete (a
comma-separated part it needs is missing) or would produce an empty
measurement, the key takes the fallback: the whole key becomes the
measurement and the value goes into a single ``value`` field. Every key
therefore classifies to a non-empty field set.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from zbxingest.core.models import FieldValue, StructuredKey

FALLBACK = "fallback"
WEB_SYSTEM = "ZabbixGUI"


@dataclass(frozen=True)
class KeyShape:
    """Syntactic view of an item key.

    Attributes:
        key: The raw key.
        bracket_parts: The key split on ``[``.
        segments: The text before the first ``[`` split on ``.``.
    """

    key: str
    bracket_parts: tuple[str, ...]
    segments: tuple[str, ...]

    @property
    def groups(self) -> int:
        """Number of bracket groups (0 for a plain dotted key)."""
        return len(self.bracket_parts) - 1

    @property
    def bracket_raw(self) -> str:
        """Text after the first ``[``, closing character included."""
        return self.bracket_parts[1] if self.groups else ""

    @property
    def bracket(self) -> str:
        """Bracket content with its closing character trimmed."""
        return self.bracket_raw[:-1]

    @property
    def items(self) -> list[str]:
        """Bracket content split on commas."""
        return self.bracket.split(",")

    def segment(self, index: int) -> str:
        return self.segments[index]


def shape_of(key: str) -> KeyShape:
    bracket_parts = tuple(key.split("["))
    return KeyShape(
        key=key,
        bracket_parts=bracket_parts,
        segments=tuple(bracket_parts[0].split(".")),
    )


def format_value(value: FieldValue) -> str:
    """Render a metric value the way Go's ``%v`` verb renders it.

    Floats use the shortest round-trip digits, drop a trailing ``.0`` and
    switch to exponent form when the decimal exponent is below -4 or at
    least 6 (``1e+06``).
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if not isinstance(value, float):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    point = len(digits) + exponent
    exp10 = point - 1

    if exp10 < -4 or exp10 >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        exp_sign = "-" if exp10 < 0 else "+"
        return f"{sign}{mantissa}e{exp_sign}{abs(exp10):02d}"
    if point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return f"{sign}{digits}{'0' * (point - len(digits))}"
    return f"{sign}{digits[:point]}.{digits[point:]}"


def _join(*parts: str) -> str:
    return ".".join(parts)


Action = Callable[[KeyShape, FieldValue], StructuredKey | None]


@dataclass(frozen=True)
class Rule:
    """One classification branch.

    Attributes:
        name: Identifier reported alongside the classification.
        groups: Required number of bracket groups.
        segments: Required number of dotted segments.
        when: Extra predicate over the key shape.
        action: Builds the result; returning None selects the fallback.
    """

    name: str
    groups: int
    segments: int
    when: Callable[[KeyShape], bool]
    action: Action

    def matches(self, shape: KeyShape) -> bool:
        return (
            shape.groups == self.groups
            and len(shape.segments) == self.segments
            and self.when(shape)
        )


def _always(shape: KeyShape) -> bool:
    return True


# --- plain dotted keys ---


def _measurement_field(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s = shape.segments
    return StructuredKey(s[0], {}, {s[1]: value})


def _measurement_two_part_field(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s = shape.segments
    return StructuredKey(s[0], {}, {_join(s[1], s[2]): value})


def _dotted_context(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s = shape.segments
    return StructuredKey(s[0], {"context": s[3]}, {_join(s[1], s[2]): value})


def _measurement_three_part_field(
    shape: KeyShape, value: FieldValue
) -> StructuredKey:
    s = shape.segments
    return StructuredKey(s[0], {}, {_join(s[1], s[2], s[3]): value})


# --- one bracket group, bare measurement ---


def _bare_value(shape: KeyShape, value: FieldValue) -> StructuredKey:
    return StructuredKey(shape.segment(0), {}, {"value": value})


def _bare_list(shape: KeyShape, value: FieldValue) -> StructuredKey:
    name = shape.bracket.replace(",", ".").replace(" ", ".")
    return StructuredKey(shape.segment(0), {}, {name: value})


# --- one bracket group, measurement.field ---


def _short_process(shape: KeyShape, value: FieldValue) -> StructuredKey:
    process = shape.bracket.replace(",", "")
    tags = {"process": process} if process else {}
    return StructuredKey(shape.segment(0), tags, {shape.segment(1): value})


def _medium_field_name(shape: KeyShape, value: FieldValue) -> StructuredKey:
    name = shape.bracket.replace('"', "").replace("{", "").replace("}", "")
    return StructuredKey(shape.segment(0), {}, {name: value})


def _long_status(shape: KeyShape, value: FieldValue) -> StructuredKey:
    # The command line is the field, the value is its exit/status code.
    return StructuredKey(
        shape.segment(0),
        {"status_code": format_value(value)},
        {shape.segment(1): shape.bracket},
    )


# --- one bracket group, three segments ---


def _bracket_context(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s = shape.segments
    return StructuredKey(s[0], {"context": shape.bracket}, {_join(s[1], s[2]): value})


def _bracket_path(shape: KeyShape, value: FieldValue) -> StructuredKey | None:
    s, items = shape.segments, shape.items
    if len(items) < 2:
        return None
    return StructuredKey(
        s[0], {"path": items[0]}, {_join(s[1], s[2], items[1]): value}
    )


def _leading_empty(shape: KeyShape, value: FieldValue) -> StructuredKey | None:
    items = shape.items
    if len(items) < 2:
        return None
    return StructuredKey(shape.segment(0), {}, {_join(shape.segment(1), items[1]): value})


def _net_interface(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s, items = shape.segments, shape.items
    if len(items) > 1:
        name = _join(s[1], s[2], items[1])
    else:
        name = _join(s[1], s[2])
    return StructuredKey(s[0], {"interface": items[0]}, {name: value})


def _vm_field(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s = shape.segments
    return StructuredKey(s[0], {}, {_join(s[1], s[2], shape.items[0]): value})


def _system_cpu(shape: KeyShape, value: FieldValue) -> StructuredKey | None:
    s, items = shape.segments, shape.items
    if len(items) < 2:
        return None
    return StructuredKey(s[0], {"cpu": items[1]}, {_join(s[1], s[2], items[0]): value})


def _system_check(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s = shape.segments
    return StructuredKey(s[0], {"system": shape.items[0]}, {_join(s[1], s[2]): value})


def _web_scenario(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s = shape.segments
    name = "value" if s[2] == "time" else s[2]
    return StructuredKey(_join(s[0], s[1]), {"system": WEB_SYSTEM}, {name: value})


# --- one bracket group, five segments ---


def _custom_drive(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s = shape.segments
    return StructuredKey(
        _join(s[0], s[1], s[2]), {"drive": shape.bracket}, {_join(s[3], s[4]): value}
    )


def _app_name(shape: KeyShape, value: FieldValue) -> StructuredKey:
    s = shape.segments
    return StructuredKey(s[0], {"name": _join(s[1], s[2])}, {_join(s[3], s[4]): value})


def _named(measurement: str) -> Callable[[KeyShape], bool]:
    return lambda shape: shape.segment(0) == measurement


# Order matters: first match wins.
RULES: tuple[Rule, ...] = (
    Rule("dotted.field", 0, 2, _always, _measurement_field),
    Rule("dotted.two_part", 0, 3, _always, _measurement_two_part_field),
    Rule("dotted.context", 0, 4, lambda k: "-" in k.segment(3), _dotted_context),
    Rule("dotted.three_part", 0, 4, _always, _measurement_three_part_field),
    Rule("bare.path", 1, 1, lambda k: "/" in k.bracket_raw, _bare_value),
    Rule("bare.list", 1, 1, lambda k: "," in k.bracket_raw, _bare_list),
    Rule("field.short", 1, 2, lambda k: len(k.bracket) < 10, _short_process),
    Rule("field.medium", 1, 2, lambda k: len(k.bracket) < 25, _medium_field_name),
    Rule("field.long", 1, 2, lambda k: 25 < len(k.bracket) < 150, _long_status),
    Rule("triple.context", 1, 3, lambda k: "-" in k.bracket, _bracket_context),
    Rule("triple.path", 1, 3, lambda k: "/" in k.bracket, _bracket_path),
    Rule("triple.leading_empty", 1, 3, lambda k: k.items[0] == "", _leading_empty),
    Rule("net.interface", 1, 3, _named("net"), _net_interface),
    Rule("vm", 1, 3, _named("vm"), _vm_field),
    Rule(
        "system.cpu",
        1,
        3,
        lambda k: k.segment(0) == "system" and k.segment(1) == "cpu",
        _system_cpu,
    ),
    Rule("system.check", 1, 3, _named("system"), _system_check),
    Rule("web.scenario", 1, 3, _named("web"), _web_scenario),
    Rule("custom.drive", 1, 5, _named("custom"), _custom_drive),
    Rule("app.name", 1, 5, _named("app"), _app_name),
)


def fallback(key: str, value: FieldValue) -> StructuredKey:
    """The whole key as measurement, the value in a ``value`` field."""
    return StructuredKey(key, {}, {"value": value})


def classify_with_rule(
    key: str, value: FieldValue, rules: tuple[Rule, ...] = RULES
) -> tuple[str, StructuredKey]:
    """Classify *key* and report which rule decided.

    Args:
        key: Item key, e.g. ``system.cpu.util[,idle]``.
        value: Metric value to embed in the fields.
        rules: Ordered rule table.

    Returns:
        Tuple of (rule name, StructuredKey). The rule name is ``fallback``
        when no rule applied.
    """
    shape = shape_of(key)
    for rule in rules:
        if not rule.matches(shape):
            continue
        result = rule.action(shape, value)
        if result is not None and result.measurement:
            return rule.name, result
        break
    return FALLBACK, fallback(key, value)


def classify(key: str, value: FieldValue) -> StructuredKey:
    """Decompose *key* into measurement, tags and fields."""
    return classify_with_rule(key, value)[1]
