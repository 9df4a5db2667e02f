"""Named lookup of validation rules.

Rules are registered once at startup, keyed by ``type_name``.  A second
registration under the same name replaces the first (last write wins).
There is no removal; once population is complete the registry is only
read, so concurrent lookups need no locking.
"""

from __future__ import annotations

from inputguard.validation.rules import Rule


class RuleRegistry:
    """Mapping of rule type name to rule."""

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}

    def register(self, rule: Rule) -> None:
        """Store *rule* under its ``type_name``, replacing any existing entry."""
        self._rules[rule.type_name] = rule

    def lookup(self, name: str) -> Rule | None:
        """Return the rule registered under *name*, or ``None``."""
        return self._rules.get(name)

    def list_all(self) -> list[Rule]:
        """Return all registered rules."""
        return list(self._rules.values())

    def rule_names(self) -> set[str]:
        """Return the set of all registered rule names."""
        return set(self._rules.keys())

    def __len__(self) -> int:
        return len(self._rules)
