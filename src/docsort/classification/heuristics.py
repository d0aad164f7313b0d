"""Keyword rules used when the language model cannot pick a category."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from docsort.config.models import HeuristicRuleSettings

from .models import CategoryMap

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeuristicRule:
    """Regular expression mapped to the category it implies."""

    pattern: str
    category: str
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", re.compile(self.pattern, re.IGNORECASE))

    @classmethod
    def from_settings(cls, settings: HeuristicRuleSettings) -> "HeuristicRule":
        return cls(pattern=settings.pattern, category=settings.category)

    def matches(self, text: str) -> bool:
        return self.regex.search(text) is not None


class HeuristicClassifier:
    """Apply ordered keyword rules; the first matching rule wins."""

    def __init__(self, rules: Iterable[HeuristicRule], category_map: CategoryMap) -> None:
        kept: list[HeuristicRule] = []
        for rule in rules:
            if rule.category not in category_map:
                LOGGER.warning(
                    "Ignoring heuristic rule %r: category %r is not configured.",
                    rule.pattern,
                    rule.category,
                )
                continue
            kept.append(rule)
        self._rules = tuple(kept)

    @classmethod
    def from_settings(
        cls, rules: Iterable[HeuristicRuleSettings], category_map: CategoryMap
    ) -> "HeuristicClassifier":
        return cls((HeuristicRule.from_settings(rule) for rule in rules), category_map)

    @property
    def rules(self) -> tuple[HeuristicRule, ...]:
        return self._rules

    def classify(self, text: str) -> Optional[str]:
        """Return the category of the first rule matching ``text``, if any."""
        if not text:
            return None
        for rule in self._rules:
            if rule.matches(text):
                return rule.category
        return None


__all__ = ["HeuristicClassifier", "HeuristicRule"]
