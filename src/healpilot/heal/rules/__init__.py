"""Registry of heal rules, in the order the engine runs them."""

from healpilot.heal.rules.acceptance_criteria import AcceptanceCriteriaRule
from healpilot.heal.rules.base import BaseRule
from healpilot.heal.rules.console_type_error import ConsoleTypeErrorRule
from healpilot.heal.rules.intent_guard import IntentGuardRule
from healpilot.heal.rules.locator_timeout import LocatorTimeoutRule
from healpilot.heal.rules.navigation_timeout import NavigationTimeoutRule

ALL_RULES: list[type[BaseRule]] = [
    LocatorTimeoutRule,
    NavigationTimeoutRule,
    ConsoleTypeErrorRule,
    IntentGuardRule,
    AcceptanceCriteriaRule,
]

__all__ = [
    "ALL_RULES",
    "AcceptanceCriteriaRule",
    "BaseRule",
    "ConsoleTypeErrorRule",
    "IntentGuardRule",
    "LocatorTimeoutRule",
    "NavigationTimeoutRule",
]
