"""Member state table loading and date-based membership resolution."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence

import yaml

from .errors import EmptySelection, InvalidDateFormat, UnknownTerritory
from .models import MemberState

DEFAULT_MEMBER_STATES_PATH = Path(__file__).resolve().parent / "data" / "member_states.yaml"

_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

_LOGGER = logging.getLogger("eumaps.member_states")


class MemberStateTable:
    """Read-only, name-indexed view over the member state table."""

    def __init__(self, member_states: Iterable[MemberState]) -> None:
        self._rows = tuple(member_states)
        self._by_name = {row.name: row for row in self._rows}

    def __iter__(self) -> Iterator[MemberState]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(row.name for row in self._rows)

    def get(self, name: str) -> MemberState | None:
        return self._by_name.get(name)

    def validate_names(self, names: Iterable[str] | None, argument: str) -> tuple[str, ...]:
        """Return `names` as a tuple, failing on any name not in the table."""
        if names is None:
            return ()
        if isinstance(names, str):
            names = (names,)
        out = tuple(str(name) for name in names)
        unknown = [name for name in out if name not in self._by_name]
        if unknown:
            raise UnknownTerritory(unknown, argument)
        return out


@dataclass(frozen=True, slots=True)
class Membership:
    """Territories active on a date, and the subset used for framing."""

    date: date
    active: tuple[MemberState, ...]
    framing: tuple[MemberState, ...]

    @property
    def active_names(self) -> frozenset[str]:
        return frozenset(row.name for row in self.active)

    @property
    def framing_names(self) -> frozenset[str]:
        return frozenset(row.name for row in self.framing)


def load_member_states(path: Path | None = None) -> MemberStateTable:
    """Load and validate the member state table (packaged table by default)."""
    path = DEFAULT_MEMBER_STATES_PATH if path is None else path
    if not path.exists():
        raise FileNotFoundError(f"Member state table not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, list):
        raise ValueError(f"Expected list in {path}")

    rows: list[MemberState] = []
    seen_ids: set[int] = set()
    seen_names: set[str] = set()
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"Expected mapping at index {idx} in {path}")
        row = MemberState.from_mapping(item)
        if row.member_state_id in seen_ids:
            raise ValueError(f"Duplicate member_state_id '{row.member_state_id}' in {path}")
        if row.name in seen_names:
            raise ValueError(f"Duplicate member state '{row.name}' in {path}")
        seen_ids.add(row.member_state_id)
        seen_names.add(row.name)
        rows.append(row)
    _LOGGER.debug("Loaded %d member states from %s", len(rows), path)
    return MemberStateTable(rows)


@lru_cache(maxsize=1)
def default_member_states() -> MemberStateTable:
    return load_member_states()


def list_member_states(table: MemberStateTable | None = None) -> list[tuple[int, str]]:
    """List all current and former member states as `(id, name)` pairs."""
    table = default_member_states() if table is None else table
    return [(row.member_state_id, row.name) for row in table]


def parse_date(value: Any = None) -> date:
    """Coerce `value` to a date; `None` means today."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _DATE_PATTERN.fullmatch(value):
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise InvalidDateFormat(f"'{value}' is not a valid calendar date") from exc
    raise InvalidDateFormat(
        "The argument 'date' should be a string in the format 'YYYY-MM-DD' or a date, "
        f"got {value!r}"
    )


def resolve_membership(
    table: MemberStateTable,
    date: Any = None,
    subset: Sequence[str] | None = None,
) -> Membership:
    """Select member states active on `date` and the framing subset among them."""
    day = parse_date(date)
    subset_names = table.validate_names(subset, "subset") if subset is not None else None

    active = tuple(row for row in table if row.is_member_on(day))
    if not active:
        raise EmptySelection(f"There are no member states on {day.isoformat()}")

    if subset_names is None:
        framing = active
    else:
        wanted = set(subset_names)
        framing = tuple(row for row in active if row.name in wanted)
        ignored = sorted(wanted - {row.name for row in framing})
        if ignored:
            _LOGGER.debug(
                "Subset names not member states on %s ignored for framing: %s",
                day.isoformat(),
                ", ".join(ignored),
            )
        if not framing:
            raise EmptySelection(
                f"None of the subset member states are member states on {day.isoformat()}"
            )
    return Membership(date=day, active=active, framing=framing)
