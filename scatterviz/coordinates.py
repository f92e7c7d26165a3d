"""Gap-free display coordinates for plotting many groups on a single axis.

A Manhattan plot puts every chromosome side by side on one x-axis. Each
chromosome keeps its own base-pair spacing, but is shifted by a constant
offset so that the groups follow each other with no dead space:

    group 1 positions [10, 50, 90]  ->  display [1, 41, 81]
    group 2 positions [5, 30]       ->  display [82, 107]

The first display coordinate is always 1, and the last coordinate of one group
is exactly one below the first coordinate of the next.
"""

from collections import defaultdict
from dataclasses import dataclass
from numbers import Integral
from statistics import mean, median
from types import MappingProxyType
from typing import Callable, Hashable, Mapping, Sequence

import pandas as pd
from natsort import natsort_keygen


class InvalidInputError(ValueError):
    """Raised for empty input or malformed local positions."""


class AmbiguousOrderError(ValueError):
    """Raised when the group order does not rank every group uniquely."""


@dataclass(frozen=True)
class Record:
    group_id: Hashable
    local_position: int
    value: float
    label: str | None = None


@dataclass(frozen=True)
class AnnotatedRecord:
    record: Record
    display_coordinate: int

    @property
    def group_id(self):
        return self.record.group_id

    @property
    def local_position(self) -> int:
        return self.record.local_position

    @property
    def value(self) -> float:
        return self.record.value

    @property
    def label(self) -> str | None:
        return self.record.label


@dataclass(frozen=True)
class GroupSpan:
    group_id: Hashable
    min_local_position: int
    max_local_position: int
    offset: int

    @property
    def display_min(self) -> int:
        return self.min_local_position + self.offset

    @property
    def display_max(self) -> int:
        return self.max_local_position + self.offset


# None -> natural sort of group ids, a sequence -> explicit ranking,
# a callable -> sort key
GroupOrder = Sequence | Callable | None
TickStat = str | Callable

_natsort_key = natsort_keygen()


def _natural_key(group_id):
    # ids that natsort treats as equal ("chr1", "chr01") fall back to their text
    return _natsort_key(group_id), str(group_id), type(group_id).__name__


def _check_position(position, group_id) -> None:
    if isinstance(position, bool) or not isinstance(position, Integral):
        raise InvalidInputError(
            f"local_position must be an integer, got {position!r} (group {group_id!r})"
        )
    if position < 0:
        raise InvalidInputError(
            f"local_position must be >= 0, got {position} (group {group_id!r})"
        )


def _snapshot(records: Sequence[Record]) -> tuple:
    """Copy records into a tuple and validate every position."""
    records = tuple(records)
    if not records:
        raise InvalidInputError("No records to normalize")
    for r in records:
        _check_position(r.local_position, r.group_id)
    return records


def sort_groups(groups, group_order: GroupOrder = None) -> list:
    """Return the distinct groups sorted by group_order.

    Raises AmbiguousOrderError if any group is missing from an explicit order,
    listed twice, or shares a sort key with another group.
    """
    groups = list(dict.fromkeys(groups))

    if group_order is not None and not callable(group_order):
        rank = {}
        for i, g in enumerate(group_order):
            if g in rank:
                raise AmbiguousOrderError(f"Group {g!r} is listed more than once in group_order")
            rank[g] = i
        missing = [g for g in groups if g not in rank]
        if missing:
            raise AmbiguousOrderError(
                "group_order does not rank groups: " + ", ".join(repr(g) for g in missing)
            )
        return sorted(groups, key=rank.__getitem__)

    key = _natural_key if group_order is None else group_order
    try:
        keyed = sorted(((key(g), g) for g in groups), key=lambda kg: kg[0])
    except TypeError as exc:
        raise AmbiguousOrderError(f"Group sort keys cannot be compared: {exc}") from exc

    for (k1, g1), (k2, g2) in zip(keyed, keyed[1:]):
        if not k1 < k2:
            raise AmbiguousOrderError(f"Groups {g1!r} and {g2!r} have the same sort key")
    return [g for _, g in keyed]


def _spans_from_bounds(bounds: Mapping, group_order: GroupOrder) -> tuple:
    """Walk groups in order, placing each one right after the previous."""
    spans = []
    next_start = 1
    for g in sort_groups(bounds, group_order):
        lo, hi = bounds[g]
        span = GroupSpan(g, lo, hi, offset=next_start - lo)
        spans.append(span)
        next_start = span.display_max + 1
    return tuple(spans)


def _bounds(records: tuple) -> dict:
    bounds = {}
    for r in records:
        pos = r.local_position
        if r.group_id in bounds:
            lo, hi = bounds[r.group_id]
            bounds[r.group_id] = (min(lo, pos), max(hi, pos))
        else:
            bounds[r.group_id] = (pos, pos)
    return bounds


def _tick(tick_stat: TickStat, coords: list, span: GroupSpan) -> float:
    if callable(tick_stat):
        return tick_stat(coords)
    if tick_stat == "median":
        return median(coords)
    if tick_stat == "mean":
        return mean(coords)
    if tick_stat == "midpoint":
        return (span.display_min + span.display_max) / 2
    raise ValueError(f"Unknown tick statistic: {tick_stat!r}")


def compute_spans(records: Sequence[Record], group_order: GroupOrder = None) -> tuple:
    """Return the GroupSpan of every group, in display order."""
    records = _snapshot(records)
    return _spans_from_bounds(_bounds(records), group_order)


def normalize(
    records: Sequence[Record],
    group_order: GroupOrder = None,
    tick_stat: TickStat = "median",
):
    """Assign a gap-free display coordinate to every record.

    Args:
        records: Non-empty sequence of Record. A snapshot is taken first, so
            later changes to the caller's sequence do not affect the result.
        group_order: None for natural ordering of group ids (chr2 before
            chr10), a sequence listing every group in display order, or a
            key function.
        tick_stat: "median", "mean", "midpoint" or a callable applied to the
            display coordinates of each group.

    Returns:
        annotated_records: tuple of AnnotatedRecord, in input order.
        group_ticks: read-only mapping group_id -> tick position, iterating in
            display order.

    Raises:
        InvalidInputError: empty input or a negative / non-integer position.
        AmbiguousOrderError: group_order does not rank every group uniquely.
    """
    records = _snapshot(records)
    spans = _spans_from_bounds(_bounds(records), group_order)
    offsets = {s.group_id: s.offset for s in spans}

    annotated = tuple(
        AnnotatedRecord(r, r.local_position + offsets[r.group_id]) for r in records
    )

    coords = defaultdict(list)
    for a in annotated:
        coords[a.group_id].append(a.display_coordinate)
    ticks = {s.group_id: _tick(tick_stat, coords[s.group_id], s) for s in spans}

    return annotated, MappingProxyType(ticks)


def normalize_frame(
    df: pd.DataFrame,
    group_col: str = "chrom",
    pos_col: str = "pos",
    group_order: GroupOrder = None,
    tick_stat: TickStat = "median",
):
    """DataFrame version of normalize().

    Returns:
        out: copy of df with an added display_coordinate column.
        ticks: one row per group in display order, with columns group, tick,
            display_min, display_max, group_index.
    """
    missing = [c for c in (group_col, pos_col) if c not in df.columns]
    if missing:
        raise InvalidInputError(f"Missing column(s): {', '.join(missing)}")
    if df.empty:
        raise InvalidInputError("No records to normalize")
    if df[group_col].isna().any():
        raise InvalidInputError(f"Column '{group_col}' contains missing values")

    positions = df[pos_col]
    if positions.isna().any():
        raise InvalidInputError(f"Column '{pos_col}' contains missing values")
    if not pd.api.types.is_integer_dtype(positions):
        if not pd.api.types.is_numeric_dtype(positions) or pd.api.types.is_bool_dtype(positions):
            raise InvalidInputError(f"Column '{pos_col}' must hold integer positions")
        if not (positions % 1 == 0).all():
            raise InvalidInputError(f"Column '{pos_col}' must hold integer positions")
    positions = positions.astype("int64")
    if (positions < 0).any():
        raise InvalidInputError(f"Column '{pos_col}' contains negative positions")

    grouped = positions.groupby(df[group_col], sort=False, observed=True)
    lo, hi = grouped.min(), grouped.max()
    bounds = {g: (int(lo[g]), int(hi[g])) for g in lo.index.tolist()}
    spans = _spans_from_bounds(bounds, group_order)

    offsets = pd.Series({s.group_id: s.offset for s in spans}, dtype="int64")
    out = df.copy()
    out["display_coordinate"] = positions + df[group_col].map(offsets).astype("int64")

    coords = {
        g: v.tolist()
        for g, v in out["display_coordinate"].groupby(df[group_col], sort=False, observed=True)
    }
    ticks = pd.DataFrame({
        "group": [s.group_id for s in spans],
        "tick": [_tick(tick_stat, coords[s.group_id], s) for s in spans],
        "display_min": [s.display_min for s in spans],
        "display_max": [s.display_max for s in spans],
        "group_index": range(len(spans)),
    })
    return out, ticks
