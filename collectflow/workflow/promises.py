"""Payment promise state derivation."""

from __future__ import annotations

from datetime import date
from typing import Protocol

from collectflow.core.enums import PromiseState


class PromiseLike(Protocol):
    fulfilled: bool | None
    is_partial: bool
    promised_date: date


def derive_state(promise: PromiseLike, today: date) -> PromiseState:
    """Derive the promise state for ``today``.

    A fulfilled flag wins over everything else, then the explicit partial
    marker. An explicitly failed promise is broken whatever its date; an
    undetermined one becomes broken once its promised date is strictly in the
    past, so a promise due today is still pending.
    """
    if promise.fulfilled is True:
        return PromiseState.FULFILLED
    if getattr(promise, "is_partial", False):
        return PromiseState.PARTIAL
    if promise.fulfilled is False:
        return PromiseState.BROKEN
    if promise.promised_date < today:
        return PromiseState.BROKEN
    return PromiseState.PENDING
