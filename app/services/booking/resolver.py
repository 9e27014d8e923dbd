"""
Policy resolution.
Picks the single effective booking policy for a service/professional/date.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from .types import (
    BookingPolicy,
    PolicyContext,
    ScopeType,
    SCOPE_SPECIFICITY,
    InvariantViolation,
)
from .timeutils import date_in_range


logger = logging.getLogger(__name__)


def check_scope_invariant(policy: BookingPolicy) -> None:
    """Raise InvariantViolation if scope_id does not fit scope_type."""
    if policy.scope_type == ScopeType.COMPANY:
        if policy.scope_id is not None:
            raise InvariantViolation(
                f"Company policy {policy.id} must not have a scope_id (got {policy.scope_id})"
            )
        return
    if policy.scope_id is None or policy.scope_id <= 0:
        raise InvariantViolation(
            f"{policy.scope_type.value} policy {policy.id} requires a positive scope_id"
        )


def is_policy_in_effect(policy: BookingPolicy, ctx: PolicyContext) -> bool:
    """Active and the date falls inside the effective window."""
    return policy.active and date_in_range(ctx.on_date, policy.effective_from, policy.effective_to)


def scope_matches(policy: BookingPolicy, ctx: PolicyContext) -> bool:
    check_scope_invariant(policy)
    if policy.scope_type == ScopeType.COMPANY:
        return True
    if policy.scope_type == ScopeType.SERVICE:
        return policy.scope_id == ctx.service_id
    return policy.scope_id == ctx.professional_id


def _resolution_key(policy: BookingPolicy) -> tuple:
    # Sorted ascending, so negate everything that should win when larger
    updated = policy.updated_at.timestamp() if policy.updated_at else float("-inf")
    policy_id = policy.id if policy.id is not None else float("inf")
    return (
        -SCOPE_SPECIFICITY[policy.scope_type],
        -policy.priority,
        -updated,
        policy_id,
    )


def rank_policies(policies: Iterable[BookingPolicy], ctx: PolicyContext) -> list[BookingPolicy]:
    """
    All policies applicable to the context, best first.

    Order:
    - professional > service > company
    - higher priority within a tier
    - most recently updated (missing updated_at counts as oldest)
    - lowest id (missing id last)
    """
    applicable = [
        p for p in policies
        if is_policy_in_effect(p, ctx) and scope_matches(p, ctx)
    ]
    return sorted(applicable, key=_resolution_key)


def resolve_effective_policy(
    policies: Iterable[BookingPolicy],
    ctx: PolicyContext,
) -> Optional[BookingPolicy]:
    """
    Select the effective policy for a booking context.

    Returns:
        The winning BookingPolicy, or None when no policy applies. None means
        "no policy configured"; what that implies is the caller's decision.

    Raises:
        InvariantViolation: if an in-effect policy has an invalid scope_id
    """
    ranked = rank_policies(policies, ctx)
    if not ranked:
        logger.debug(
            f"No policy for service={ctx.service_id} professional={ctx.professional_id} on {ctx.on_date}"
        )
        return None

    winner = ranked[0]
    logger.debug(
        f"Policy {winner.id} ({winner.scope_type.value}, priority {winner.priority}) "
        f"wins among {len(ranked)} for service={ctx.service_id} "
        f"professional={ctx.professional_id} on {ctx.on_date}"
    )
    return winner


def filter_policies(
    policies: Iterable[BookingPolicy],
    scope_type: Optional[ScopeType] = None,
    scope_id: Optional[int] = None,
    active: Optional[bool] = None,
) -> list[BookingPolicy]:
    """Listing filter matching the policy store's query parameters. None = don't filter."""
    result = []
    for policy in policies:
        if scope_type is not None and policy.scope_type != scope_type:
            continue
        if scope_id is not None and policy.scope_id != scope_id:
            continue
        if active is not None and policy.active != active:
            continue
        result.append(policy)
    return result
