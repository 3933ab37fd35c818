"""Exclusion rules: drop a whole log call when a field carries a given value.

A rule is not a redaction. When the value read from the context for a field
equals the rule's sentinel, the emission is abandoned and nothing is written,
which is how noisy identities (a chatty request id, a health-check asset) get
silenced.

Equality is Python ``==``. Built-in containers compare by value, other objects
by whatever ``__eq__`` they define (identity by default). A comparison that
raises ``TypeError``/``ValueError`` or has no single truth value (array-like
results) never matches.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from .fields import Field


@dataclass(frozen=True, slots=True)
class ExcludeRule:
    """Suppress emissions whose ``field`` is equal to ``value``."""

    field: Field
    value: Any

    def matches(self, value: Any) -> bool:
        try:
            return bool(self.value == value)
        except (TypeError, ValueError):
            return False


class ExcludeRuleSet:
    """Thread-safe rule list with at most one rule per field (copy-on-write)."""

    __slots__ = ("_rules", "_lock")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rules: tuple[ExcludeRule, ...] = ()

    def skip(self, field: str, value: Any) -> None:
        """Upsert: replace the sentinel of an existing rule or append a new rule."""
        rule = ExcludeRule(Field(field), value)
        with self._lock:
            rules = list(self._rules)
            for i, existing in enumerate(rules):
                if existing.field == rule.field:
                    rules[i] = rule
                    break
            else:
                rules.append(rule)
            self._rules = tuple(rules)

    def clear(self) -> None:
        with self._lock:
            self._rules = ()

    def rules(self) -> list[ExcludeRule]:
        """Copy of the rules in insertion order."""
        return list(self._rules)

    def lookup(self) -> dict[Field, ExcludeRule]:
        """Field -> rule snapshot used by a single emission."""
        return {r.field: r for r in self._rules}

    def __len__(self) -> int:
        return len(self._rules)

    def __bool__(self) -> bool:
        return bool(self._rules)
