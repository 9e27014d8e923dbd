from typing import List
from fastapi import APIRouter, Depends

from app.api.deps import get_fallback, local_now, shift_end_or_default
from app.schemas.booking_policies import (
    AvailabilityRequest,
    DayAvailabilityResponse,
    EvaluateRequest,
    ResolveRequest,
    ResolveResponse,
    SlotsRequest,
    SlotsResponse,
    ValidateRequest,
    VerdictResponse,
    hhmm_to_time,
)
from app.services.booking import (
    BookingRequest,
    NoPolicyFallback,
    PolicyContext,
    RejectReason,
    SlotCandidate,
    evaluate_booking,
    generate_candidate_slots,
    list_available_slots,
    rank_policies,
    resolve_effective_policy,
    summarize_availability,
    validate_slot,
)
from app.services.booking.evaluator import params_for

router = APIRouter(prefix="/booking-policies", tags=["booking-policies"])


@router.post("/resolve", response_model=ResolveResponse)
def resolve_policy(payload: ResolveRequest):
    by_identity = {}
    domain = []
    for schema in payload.policies:
        policy = schema.to_domain()
        by_identity[id(policy)] = schema
        domain.append(policy)

    ctx = PolicyContext(payload.service_id, payload.professional_id, payload.on_date)
    ranked = rank_policies(domain, ctx)
    return ResolveResponse(
        policy=by_identity[id(ranked[0])] if ranked else None,
        ranked_ids=[p.id for p in ranked],
    )


@router.post("/slots", response_model=SlotsResponse)
def list_slots(
    payload: SlotsRequest,
    fallback: NoPolicyFallback = Depends(get_fallback),
):
    now = local_now(payload.now)
    policies = [p.to_domain() for p in payload.policies]
    policy = resolve_effective_policy(
        policies, PolicyContext(payload.service_id, payload.professional_id, payload.date)
    )
    params = params_for(policy, fallback)
    if params is None:
        return SlotsResponse(policy_id=None, candidates=[], available=[])

    candidates = generate_candidate_slots(params, payload.date, payload.service_duration, now)
    available = list_available_slots(
        params,
        payload.date,
        payload.service_duration,
        payload.professional_id,
        now,
        payload.domain_appointments(),
        shift_end_or_default(payload.shift_end),
        payload.domain_breaks(),
    )
    return SlotsResponse(
        policy_id=policy.id if policy else None,
        candidates=list(candidates),
        available=available,
    )


@router.post("/validate", response_model=VerdictResponse)
def validate_candidate(payload: ValidateRequest):
    candidate = SlotCandidate(
        date=payload.date,
        start=hhmm_to_time(payload.start),
        service_duration=payload.service_duration,
        professional_id=payload.professional_id,
    )
    decision = validate_slot(
        candidate,
        payload.params.to_domain(),
        payload.domain_appointments(),
        shift_end_or_default(payload.shift_end),
        payload.domain_breaks(),
    )
    return VerdictResponse(accepted=decision.accepted, reason=decision.reason)


@router.post("/evaluate", response_model=VerdictResponse)
def evaluate(
    payload: EvaluateRequest,
    fallback: NoPolicyFallback = Depends(get_fallback),
):
    request = BookingRequest(
        service_id=payload.service_id,
        professional_id=payload.professional_id,
        date=payload.date,
        start=hhmm_to_time(payload.start),
        service_duration=payload.service_duration,
    )
    verdict = evaluate_booking(
        request,
        [p.to_domain() for p in payload.policies],
        payload.domain_appointments(),
        now=local_now(payload.now),
        shift_end=shift_end_or_default(payload.shift_end),
        breaks=payload.domain_breaks(),
        fallback=fallback,
    )
    return VerdictResponse(
        accepted=verdict.accepted,
        reason=verdict.reason,
        policy_id=verdict.policy.id if verdict.policy else None,
    )


@router.post("/availability", response_model=List[DayAvailabilityResponse])
def availability(
    payload: AvailabilityRequest,
    fallback: NoPolicyFallback = Depends(get_fallback),
):
    days = summarize_availability(
        [p.to_domain() for p in payload.policies],
        payload.service_id,
        payload.professional_id,
        payload.start_date,
        payload.end_date,
        payload.service_duration,
        now=local_now(payload.now),
        appointments=payload.domain_appointments(),
        shift_end=shift_end_or_default(payload.shift_end),
        breaks=payload.domain_breaks(),
        fallback=fallback,
    )
    return [
        DayAvailabilityResponse(date=d.date, available=d.available, slots=d.slots, policy_id=d.policy_id)
        for d in days
    ]


@router.get("/reasons", response_model=List[str])
def list_reasons():
    """Reject reason codes, for the UI's message table."""
    return [r.value for r in RejectReason]
