"""
State channels and merge functions.

A channel is a named slot in thread state. When a node returns a partial
update, each updated key is combined with the current value through the
channel's merge function:

    replace       new value wins
    append        concatenate sequences
    union_latest  shallow-merge mappings, new keys/values win
"""
import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping

from archie.domain.exceptions import InvalidUpdateError

MergeFn = Callable[[Any, Any], Any]


def replace(current: Any, update: Any) -> Any:
    return update


def append(current: Any, update: Any) -> list:
    existing = list(current or [])
    if update is None:
        return existing
    if isinstance(update, (list, tuple)):
        return existing + list(update)
    return existing + [update]


def union_latest(current: Any, update: Any) -> dict:
    merged = dict(current or {})
    merged.update(update or {})
    return merged


@dataclass(frozen=True)
class Channel:
    """Merge function plus a factory for the channel's initial value."""
    merge: MergeFn = replace
    default_factory: Callable[[], Any] = lambda: None

    def default(self) -> Any:
        return self.default_factory()


def default_state(channels: Mapping[str, Channel]) -> Dict[str, Any]:
    return {name: channel.default() for name, channel in channels.items()}


def apply_update(
    channels: Mapping[str, Channel],
    state: Mapping[str, Any],
    update: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Merge a partial update into state, returning a new state dict.

    The input state is never mutated. Keys without a channel are rejected
    so a misspelled update cannot silently vanish.
    """
    unknown = [key for key in update if key not in channels]
    if unknown:
        raise InvalidUpdateError(unknown)

    new_state = copy.deepcopy(dict(state))
    for key, value in update.items():
        new_state[key] = channels[key].merge(new_state.get(key), copy.deepcopy(value))
    return new_state
