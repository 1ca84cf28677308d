"""
Protocol Layers
Splits a protocol snapshot into the views the calendar and metrics read
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from tools.records import Protocol


@dataclass(frozen=True)
class ProtocolLayers:
    clean: Tuple[Protocol, ...]
    trashed: Tuple[Protocol, ...]
    ordered: Tuple[Protocol, ...]
    lookup: Dict[str, Protocol]
    visible: Dict[str, bool]
    dose_map: Dict[str, float]
    active: Optional[Protocol]
    focus_active_enabled: bool

    def visible_protocols(self) -> Tuple[Protocol, ...]:
        return tuple(p for p in self.ordered if self.visible.get(p.id, False))


def resolve_protocol_layers(
    protocols: Iterable[Protocol],
    hidden_ids: Iterable[str] = (),
    focus_active_only: bool = False
) -> ProtocolLayers:
    """
    Derive clean/trashed sets, lookup, ordering, visibility and the
    active protocol from a full protocol snapshot.

    Focus mode only applies when an active protocol exists; it then
    narrows visibility to that protocol.
    """
    protocols = tuple(protocols)
    hidden = set(hidden_ids)

    clean = tuple(p for p in protocols if not p.is_trashed)
    trashed = tuple(p for p in protocols if p.is_trashed)

    active_first = [p for p in clean if p.is_active]
    rest = sorted(
        (p for p in clean if not p.is_active),
        key=lambda p: p.start_date,
        reverse=True
    )
    ordered = tuple(active_first + rest)
    active = active_first[0] if active_first else None

    focus_enabled = focus_active_only and active is not None
    if focus_enabled:
        visible = {p.id: p.id == active.id for p in clean}
    else:
        visible = {p.id: p.id not in hidden for p in clean}

    return ProtocolLayers(
        clean=clean,
        trashed=trashed,
        ordered=ordered,
        lookup={p.id: p for p in clean},
        visible=visible,
        dose_map={p.id: p.dose_mg for p in clean},
        active=active,
        focus_active_enabled=focus_enabled
    )
