"""Ordered text rules for dimension issues and recommendations.

A dimension calculator computes its score and a dict of summary
statistics, then evaluates ordered ``TextRule`` lists against that
context to produce explanatory text. Scoring and wording stay
independently testable.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

RuleContext = Mapping[str, object]


@dataclass(frozen=True)
class TextRule:
    """A ``(predicate, message)`` pair.

    ``message`` is a ``str.format`` template rendered with the context.
    """

    predicate: Callable[[RuleContext], bool]
    message: str

    def applies(self, context: RuleContext) -> bool:
        return bool(self.predicate(context))

    def render(self, context: RuleContext) -> str:
        return self.message.format(**context)


def evaluate_rules(rules: Sequence[TextRule], context: RuleContext) -> list[str]:
    """Render every rule whose predicate holds, in declaration order."""
    return [rule.render(context) for rule in rules if rule.applies(context)]


def below(threshold_key: str) -> Callable[[RuleContext], bool]:
    """Predicate: ``context["score"] < context[threshold_key]``."""
    return lambda ctx: ctx["score"] < ctx[threshold_key]  # type: ignore[operator]


def at_least(threshold_key: str) -> Callable[[RuleContext], bool]:
    """Predicate: ``context["score"] >= context[threshold_key]``."""
    return lambda ctx: ctx["score"] >= ctx[threshold_key]  # type: ignore[operator]


def below_and(
    threshold_key: str, stat_key: str
) -> Callable[[RuleContext], bool]:
    """Predicate: score below threshold and ``context[stat_key]`` truthy."""
    return lambda ctx: (
        ctx["score"] < ctx[threshold_key] and bool(ctx[stat_key])  # type: ignore[operator]
    )
