"""Synthetic member state data for trying out palettes."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Sequence

from .member_states import MemberStateTable, default_member_states, resolve_membership


@dataclass(frozen=True, slots=True)
class SimulatedValue:
    member_state_id: int
    member_state: str
    value: float | None


def simulate_data(
    table: MemberStateTable | None = None,
    *,
    date: Any = None,
    value_min: float = 0.0,
    value_max: float = 1.0,
    missing: Sequence[str] | None = None,
    seed: int | None = None,
) -> list[SimulatedValue]:
    """Draw uniform values for every member state active on `date`.

    Names listed in `missing` get `None`.
    """
    if value_min > value_max:
        raise ValueError("value_min must not exceed value_max")
    table = default_member_states() if table is None else table
    missing_names = set(table.validate_names(missing, "missing"))
    rng = random.Random(seed)
    membership = resolve_membership(table, date)
    out: list[SimulatedValue] = []
    for row in membership.active:
        value = rng.uniform(value_min, value_max)
        out.append(
            SimulatedValue(
                member_state_id=row.member_state_id,
                member_state=row.name,
                value=None if row.name in missing_names else value,
            )
        )
    return out


def as_data_mapping(rows: Sequence[SimulatedValue]) -> dict[str, float | None]:
    return {row.member_state: row.value for row in rows}
