"""Action interpretation: free-text step labels to interaction primitives.

Labels are matched case-insensitively by substring against an ordered
keyword table. First match wins, so "click and wait" is a click.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from storyrunner.models import Step


DEFAULT_WAIT_MS = 1000
DEFAULT_KEY = "Enter"


@dataclass
class Action:
    """An interpreted step, ready for the executor.

    `target` is the element to resolve (None for page-level actions).
    `value` carries the URL, fill text, option value or key name.
    """

    kind: str  # navigate, click, fill, select, check, uncheck, wait, scroll, hover, press, focus
    target: str | None = None
    value: str = ""
    amount: int = 0  # wait duration in ms


def _navigate(step: Step) -> Action:
    return Action(kind="navigate", value=step.value or step.element or "")


def _targeted(kind: str):
    def build(step: Step) -> Action:
        return Action(kind=kind, target=step.target)
    return build


def _with_value(kind: str):
    def build(step: Step) -> Action:
        return Action(kind=kind, target=step.target, value=step.value or "")
    return build


def _wait(step: Step) -> Action:
    return Action(kind="wait", amount=parse_wait_ms(step.value))


def _press(step: Step) -> Action:
    return Action(kind="press", value=step.value or DEFAULT_KEY)


# Ordered list of (keywords, action_factory) pairs.
# First match wins against the lowercased action label.
# "uncheck" sits after "check" and is therefore shadowed by it.
_TABLE: list[tuple[tuple[str, ...], Any]] = [
    (("navigate", "go to"), _navigate),
    (("click", "tap"), _targeted("click")),
    (("type", "enter", "fill"), _with_value("fill")),
    (("select", "choose"), _with_value("select")),
    (("check",), _targeted("check")),
    (("uncheck",), _targeted("uncheck")),
    (("wait",), _wait),
    (("scroll",), _targeted("scroll")),
    (("hover",), _targeted("hover")),
    (("press",), _press),
    (("focus",), _targeted("focus")),
]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_wait_ms(value: str | None) -> int:
    """Leading integer of `value` in milliseconds, DEFAULT_WAIT_MS otherwise."""
    if not value:
        return DEFAULT_WAIT_MS
    m = _LEADING_INT.match(value)
    if not m:
        return DEFAULT_WAIT_MS
    return max(int(m.group(1)), 0)


def interpret(step: Step) -> Action | None:
    """Classify a step. Returns None when there is nothing to do."""
    label = step.action.lower()
    for keywords, factory in _TABLE:
        if any(k in label for k in keywords):
            return factory(step)
    if step.target:
        return Action(kind="click", target=step.target)
    return None
