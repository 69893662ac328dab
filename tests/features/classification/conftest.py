"""BDD step definitions for key classification."""

from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from zbxingest.core.classify import FALLBACK, classify_with_rule
from zbxingest.core.models import StructuredKey


@dataclass
class ClassificationContext:
    """State shared between the steps of one scenario."""

    key: str = ""
    value: float = 0.0
    rule: str = ""
    result: StructuredKey = field(default_factory=lambda: StructuredKey(""))


@pytest.fixture
def ctx() -> ClassificationContext:
    """Fresh scenario context for each test."""
    return ClassificationContext()


@given(parsers.parse('an item key "{key}" with value {value:g}'))
def step_item_key(ctx: ClassificationContext, key: str, value: float) -> None:
    ctx.key = key
    ctx.value = value


@when("the key is classified")
def step_classify(ctx: ClassificationContext) -> None:
    ctx.rule, ctx.result = classify_with_rule(ctx.key, ctx.value)


@then(parsers.parse('the measurement is "{measurement}"'))
def step_measurement(ctx: ClassificationContext, measurement: str) -> None:
    assert ctx.result.measurement == measurement


@then(parsers.parse('the field "{name}" holds the value'))
def step_field(ctx: ClassificationContext, name: str) -> None:
    assert ctx.result.fields == {name: ctx.value}


@then(parsers.parse('the tags are "{tags}"'))
def step_tags(ctx: ClassificationContext, tags: str) -> None:
    expected = {}
    if tags != "none":
        expected = dict(pair.split("=", 1) for pair in tags.split(";"))
    assert ctx.result.tags == expected


@then("the key falls back to the whole-key measurement")
def step_fallback(ctx: ClassificationContext) -> None:
    assert ctx.rule == FALLBACK
    assert ctx.result == StructuredKey(ctx.key, {}, {"value": ctx.value})
