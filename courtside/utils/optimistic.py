"""
Optimistic local updates as a pure reducer.

A local write produces a Transition holding the state before and after it.
When the remote write succeeds the transition is reconciled against whatever
the local state has become; when it fails the state is restored to the
transition's ``before`` snapshot.
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

State = Mapping[str, object]


@dataclass(frozen=True)
class Transition:
    item_id: str
    before: State
    after: State


def apply_insert(state: State, item_id: str, item) -> Transition:
    after = dict(state)
    after[item_id] = item
    return Transition(item_id, dict(state), after)


def apply_replace(state: State, item_id: str, item) -> Transition:
    if item_id not in state:
        raise KeyError(item_id)
    after = dict(state)
    after[item_id] = item
    return Transition(item_id, dict(state), after)


def apply_remove(state: State, item_id: str) -> Transition:
    after = dict(state)
    after.pop(item_id, None)
    return Transition(item_id, dict(state), after)


def reconcile(state: State, transition: Transition, confirmed=None,
              confirmed_id: Optional[str] = None) -> Dict[str, object]:
    """
    Swap the optimistic entry for the server's record. Passing no
    ``confirmed`` record keeps the local state as is (e.g. a confirmed delete).
    """
    result = dict(state)
    if confirmed is None:
        return result
    result.pop(transition.item_id, None)
    result[confirmed_id or transition.item_id] = confirmed
    return result


def rollback(transition: Transition) -> Dict[str, object]:
    """Last known-good state before the failed write"""
    return dict(transition.before)
