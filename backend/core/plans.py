"""
Plan configuration for subscription tiers.

This module is the single source of truth for tier limits and features.
It lives in core/ so both service and API layers can import from it
without creating circular dependencies. Every function here is pure.
"""

from dataclasses import dataclass

VIEW_KANBAN = "kanban"
VIEW_CALENDAR = "calendar"

DEFAULT_AI_CREDITS_PER_MONTH = 500


@dataclass(frozen=True)
class TierLimits:
    """Entitlements of a tier. ``None`` means unlimited."""

    max_tasks: int | None
    max_templates: int | None
    max_case_studies: int | None
    allowed_views: frozenset[str]
    ai_credits_per_month: int | None


TIER_LIMITS: dict[str, TierLimits] = {
    "free": TierLimits(
        max_tasks=5,
        max_templates=2,
        max_case_studies=2,
        allowed_views=frozenset({VIEW_KANBAN}),
        ai_credits_per_month=DEFAULT_AI_CREDITS_PER_MONTH,
    ),
    "pro": TierLimits(
        max_tasks=None,
        max_templates=None,
        max_case_studies=None,
        allowed_views=frozenset({VIEW_KANBAN, VIEW_CALENDAR}),
        ai_credits_per_month=DEFAULT_AI_CREDITS_PER_MONTH,
    ),
    "admin": TierLimits(
        max_tasks=None,
        max_templates=None,
        max_case_studies=None,
        allowed_views=frozenset({VIEW_KANBAN, VIEW_CALENDAR}),
        ai_credits_per_month=None,
    ),
}


def get_tier_limits(tier: str | None) -> TierLimits:
    """Return limits for ``tier``; unknown or missing tiers get the free limits."""
    return TIER_LIMITS.get(tier or "free", TIER_LIMITS["free"])


def can_create_task(tier: str | None, current_count: int) -> bool:
    """Whether a user owning ``current_count`` non-case-study tasks may create another."""
    limits = get_tier_limits(tier)
    if limits.max_tasks is None:
        return True
    return current_count < limits.max_tasks


def get_remaining_tasks(tier: str | None, current_count: int) -> int | None:
    limits = get_tier_limits(tier)
    if limits.max_tasks is None:
        return None
    return max(0, limits.max_tasks - current_count)


def can_use_view(tier: str | None, view: str) -> bool:
    return view in get_tier_limits(tier).allowed_views


def can_view_case_study(tier: str | None, index: int) -> bool:
    """Whether the case study at position ``index`` of a shuffled list is visible."""
    limits = get_tier_limits(tier)
    if limits.max_case_studies is None:
        return True
    return index < limits.max_case_studies


def can_view_template(tier: str | None, index: int) -> bool:
    limits = get_tier_limits(tier)
    if limits.max_templates is None:
        return True
    return index < limits.max_templates


def monthly_ai_credits(tier: str | None, default: int = DEFAULT_AI_CREDITS_PER_MONTH) -> int | None:
    """Monthly AI ceiling for ``tier``.

    Tiers carrying the default ceiling follow ``default`` so it can be
    raised from configuration without touching the table.
    """
    limit = get_tier_limits(tier).ai_credits_per_month
    if limit == DEFAULT_AI_CREDITS_PER_MONTH:
        return default
    return limit


def task_limit_message(tier: str | None) -> str:
    """User-facing message for a rejected task creation."""
    limits = get_tier_limits(tier)
    return (
        f"Dostigli ste limit zadataka. Vaš {tier or 'free'} tier dozvoljava "
        f"maksimalno {limits.max_tasks} zadataka."
    )


def effective_tier(tier: str | None, is_admin: bool = False) -> str:
    """Tier used for limit checks; the admin role always gets admin limits."""
    if is_admin:
        return "admin"
    return tier or "free"
