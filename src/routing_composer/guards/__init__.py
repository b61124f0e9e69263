"""Built-in guards for Routing Composer.

Note: the guard interface and result types live in
``routing_composer.core.guards``; this package only holds ready-made guards.
"""

from .auth import AuthGuard
from .tags import CapabilityGuard, TagRuleGuard

__all__ = ["AuthGuard", "CapabilityGuard", "TagRuleGuard"]
