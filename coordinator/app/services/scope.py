from __future__ import annotations

import logging

from opentelemetry import trace

from app.core.dates import parse_nominal_time
from app.schemas.actions import ActionRecord, format_action_id
from app.services.errors import InternalInconsistencyError, InvalidScopeFormatError, LookupFailureError
from app.services.lookup import ActionLookup, lookup_action
from app.services.scope_tokens import (
    DateParser,
    DateRange,
    IdRange,
    classify_date_token,
    classify_id_token,
    split_scope,
)
from app.services.store import StoreError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

SCOPE_TYPE_DATE = "date"
SCOPE_TYPE_ACTION = "action"


def resolve_scope(
    range_type: str,
    job_id: str,
    scope: str,
    *,
    lookup: ActionLookup,
    active: bool = False,
    parse_date: DateParser | None = None,
) -> list[ActionRecord]:
    """Return the coordinator actions of ``job_id`` selected by ``scope``.

    ``range_type`` picks the route up front: ``"date"`` reads the scope as
    nominal times and ``start::end`` ranges, ``"action"`` as action numbers and
    ``start-end`` ranges. ``active`` limits date ranges to non-terminal actions.
    """
    with tracer.start_as_current_span("coord.resolve_scope") as span:
        span.set_attribute("coord.job_id", job_id or "")
        span.set_attribute("coord.scope_type", range_type)
        if range_type == SCOPE_TYPE_DATE:
            actions = resolve_actions_from_dates(
                job_id,
                scope,
                lookup=lookup,
                active=active,
                parse_date=parse_date,
            )
        elif range_type == SCOPE_TYPE_ACTION:
            actions = resolve_actions_from_ids(job_id, scope, lookup=lookup)
        else:
            raise InvalidScopeFormatError(range_type, f"scope type must be one of: date, action; got '{range_type}'")
        span.set_attribute("coord.action_count", len(actions))
        return actions


def resolve_actions_from_dates(
    job_id: str,
    scope: str,
    *,
    lookup: ActionLookup,
    active: bool = False,
    parse_date: DateParser | None = None,
) -> list[ActionRecord]:
    _require_job_id(job_id)
    parser = parse_date or parse_nominal_time
    tokens = [classify_date_token(token, parser) for token in split_scope(scope)]

    collected: dict[str, ActionRecord] = {}
    for token in tokens:
        if isinstance(token, DateRange):
            try:
                records = lookup.actions_in_date_range(job_id, token, active=active)
            except StoreError as exc:
                raise LookupFailureError(job_id, exc) from exc
            for record in records:
                collected.setdefault(record.id, record)
            continue

        try:
            record = lookup.action_for_nominal_time(job_id, token.date)
        except StoreError as exc:
            raise LookupFailureError(job_id, exc) from exc
        if record is None:
            raise InternalInconsistencyError(job_id, token.date)
        collected.setdefault(record.id, record)

    return list(collected.values())


def expand_action_ids(job_id: str, scope: str) -> set[str]:
    _require_job_id(job_id)
    action_ids: set[str] = set()
    for token in split_scope(scope):
        classified = classify_id_token(token)
        if isinstance(classified, IdRange):
            action_ids.update(format_action_id(job_id, number) for number in classified.numbers())
        else:
            action_ids.add(format_action_id(job_id, classified.text))
    return action_ids


def resolve_actions_from_ids(job_id: str, scope: str, *, lookup: ActionLookup) -> list[ActionRecord]:
    actions: list[ActionRecord] = []
    for action_id in expand_action_ids(job_id, scope):
        outcome = lookup_action(lookup, action_id)
        if outcome.status == "found":
            actions.append(outcome.record)
        elif outcome.status == "not_found":
            logger.warning(
                "coord action num=%s of job=%s not yet materialized; skipping",
                action_id.rpartition("@")[2],
                job_id,
            )
        else:
            raise LookupFailureError(action_id, outcome.error) from outcome.error
    return actions


def _require_job_id(job_id: str | None) -> None:
    if not job_id or not job_id.strip():
        raise InvalidScopeFormatError("", "jobId cannot be empty")
