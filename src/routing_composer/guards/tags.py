# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tag and capability guards built on ``RuleBasedGuard``.

``TagRuleGuard`` protects routes declaring ``auth_rule`` against the tags of
the current user::

    reports = RouteDefinition(path="/reports", name="reports", metadata={"auth_rule": "admin|manager"})

    router.add_global_guard(TagRuleGuard(lambda: session.tags))

    # no tags                 -> GuardReject("not_authenticated")
    # tags="guest"            -> GuardReject("not_authorized")
    # tags="manager,internal" -> GuardAllow()

``CapabilityGuard`` protects routes declaring ``allow_rule`` against the
capabilities of the running system (``allow_rule="stripe|paypal"``).
"""

from __future__ import annotations

from ._rule_based import RuleBasedGuard

__all__ = ["TagRuleGuard", "CapabilityGuard"]


class TagRuleGuard(RuleBasedGuard):
    """Tag-based authorization on the ``auth_rule`` route metadata."""

    metadata_prefix = "auth_"
    no_values_reason = "not_authenticated"
    mismatch_reason = "not_authorized"


class CapabilityGuard(RuleBasedGuard):
    """Capability-based availability on the ``allow_rule`` route metadata."""

    metadata_prefix = "allow_"
    no_values_reason = "not_available"
    mismatch_reason = "not_available"
