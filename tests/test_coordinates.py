import pandas as pd
import pytest

from scatterviz.coordinates import (
    AmbiguousOrderError,
    InvalidInputError,
    Record,
    compute_spans,
    normalize,
    normalize_frame,
    sort_groups,
)


def _records(groups: dict) -> list:
    return [
        Record(group_id=g, local_position=pos, value=1.0)
        for g, positions in groups.items()
        for pos in positions
    ]


def _display(annotated, group):
    return [a.display_coordinate for a in annotated if a.group_id == group]


def test_worked_example():
    annotated, ticks = normalize(_records({1: [10, 50, 90], 2: [5, 30]}), group_order=[1, 2])
    assert _display(annotated, 1) == [1, 41, 81]
    assert _display(annotated, 2) == [82, 107]
    assert ticks[1] == 41
    assert ticks[2] == 94.5


def test_single_record_displays_at_one():
    annotated, ticks = normalize([Record("chr7", 123456, 3.2)])
    assert annotated[0].display_coordinate == 1
    assert ticks == {"chr7": 1}


def test_empty_input_raises():
    with pytest.raises(InvalidInputError):
        normalize([])


def test_negative_position_raises():
    with pytest.raises(InvalidInputError):
        normalize([Record(1, 10, 1.0), Record(1, -1, 1.0)])


@pytest.mark.parametrize("position", [1.5, "10", True])
def test_non_integer_position_raises(position):
    with pytest.raises(InvalidInputError):
        normalize([Record(1, position, 1.0)])


def test_no_gap_and_group_separation():
    groups = {"chr1": [100, 2000, 50], "chr2": [7], "chr10": [0, 3, 999], "chrX": [42, 42]}
    annotated, ticks = normalize(_records(groups))
    order = list(ticks)
    assert order == ["chr1", "chr2", "chr10", "chrX"]
    for a, b in zip(order, order[1:]):
        assert min(_display(annotated, b)) - max(_display(annotated, a)) == 1
    assert min(_display(annotated, "chr1")) == 1


def test_offset_constant_and_order_preserved_within_group():
    annotated, _ = normalize(_records({"a": [30, 10, 20], "b": [5, 1]}))
    for group in ("a", "b"):
        members = [a for a in annotated if a.group_id == group]
        assert len({a.display_coordinate - a.local_position for a in members}) == 1
        by_local = sorted(members, key=lambda a: a.local_position)
        by_display = sorted(members, key=lambda a: a.display_coordinate)
        assert by_local == by_display


def test_input_order_preserved_and_groups_resorted():
    records = _records({3: [1, 2], 1: [5], 2: [9]})
    annotated, ticks = normalize(records)
    assert [a.record for a in annotated] == records
    assert list(ticks) == [1, 2, 3]
    assert [a.display_coordinate for a in annotated] == [3, 4, 1, 2]


def test_idempotent():
    records = _records({"2": [4, 8], "1": [1, 100]})
    assert normalize(records) == normalize(records)


def test_snapshot_not_affected_by_caller_mutation():
    records = _records({1: [1, 2]})
    annotated, _ = normalize(records)
    records.append(Record(1, 500, 1.0))
    assert len(annotated) == 2


def test_ticks_are_read_only():
    _, ticks = normalize(_records({1: [1]}))
    with pytest.raises(TypeError):
        ticks[1] = 5


def test_single_coordinate_group_has_width_one():
    spans = compute_spans(_records({1: [7, 7, 7], 2: [3]}))
    assert [(s.display_min, s.display_max) for s in spans] == [(1, 1), (2, 2)]
    assert spans[0].offset == -6


def test_explicit_order():
    annotated, ticks = normalize(_records({"X": [1], "1": [1], "2": [1]}), group_order=["X", "2", "1"])
    assert list(ticks) == ["X", "2", "1"]
    assert _display(annotated, "1") == [3]


def test_explicit_order_ignores_absent_groups():
    _, ticks = normalize(_records({"2": [1], "1": [1]}), group_order=["1", "2", "3", "X"])
    assert list(ticks) == ["1", "2"]


def test_order_missing_group_raises():
    with pytest.raises(AmbiguousOrderError):
        normalize(_records({"1": [1], "2": [1]}), group_order=["1"])


def test_order_with_duplicates_raises():
    with pytest.raises(AmbiguousOrderError):
        normalize(_records({"1": [1], "2": [1]}), group_order=["1", "2", "1"])


def test_key_function_tie_raises():
    with pytest.raises(AmbiguousOrderError):
        normalize(_records({"chr1": [1], "CHR1": [1]}), group_order=str.lower)


def test_key_function_order():
    _, ticks = normalize(_records({"b": [1], "a": [1], "c": [1]}), group_order=lambda g: -ord(g))
    assert list(ticks) == ["c", "b", "a"]


def test_incomparable_keys_raise():
    with pytest.raises(AmbiguousOrderError):
        sort_groups([1, "a"], group_order=lambda g: g)


@pytest.mark.parametrize(
    "tick_stat, expected",
    [("median", 2), ("mean", 4), ("midpoint", 5), (max, 9)],
)
def test_tick_stats(tick_stat, expected):
    _, ticks = normalize(_records({1: [1, 2, 9]}), tick_stat=tick_stat)
    assert ticks[1] == expected


def test_unknown_tick_stat_raises():
    with pytest.raises(ValueError):
        normalize(_records({1: [1]}), tick_stat="mode")


def test_frame_matches_records():
    df = pd.DataFrame({
        "chrom": ["2", "1", "1", "2", "10"],
        "pos": [5, 10, 90, 30, 4],
        "score": [1.0, 2.0, 3.0, 4.0, 5.0],
    })
    out, ticks = normalize_frame(df)
    assert out["display_coordinate"].tolist() == [82, 1, 81, 107, 108]
    assert ticks["group"].tolist() == ["1", "2", "10"]
    assert ticks["display_min"].tolist() == [1, 82, 108]
    assert ticks["display_max"].tolist() == [81, 107, 108]
    assert ticks["group_index"].tolist() == [0, 1, 2]
    assert ticks["tick"].tolist() == [41, 94.5, 108]
    assert "display_coordinate" not in df.columns

    annotated, record_ticks = normalize(
        [Record(g, p, s) for g, p, s in zip(df["chrom"], df["pos"], df["score"])]
    )
    assert [a.display_coordinate for a in annotated] == out["display_coordinate"].tolist()
    assert list(record_ticks.values()) == ticks["tick"].tolist()


def test_frame_integer_groups_and_float_positions():
    df = pd.DataFrame({"chrom": [2, 1], "pos": [3.0, 8.0]})
    out, ticks = normalize_frame(df)
    assert out["display_coordinate"].tolist() == [2, 1]
    assert ticks["group"].tolist() == [1, 2]


def test_frame_errors():
    with pytest.raises(InvalidInputError):
        normalize_frame(pd.DataFrame({"chrom": [], "pos": []}))
    with pytest.raises(InvalidInputError):
        normalize_frame(pd.DataFrame({"chrom": ["1"], "bp": [1]}))
    with pytest.raises(InvalidInputError):
        normalize_frame(pd.DataFrame({"chrom": ["1"], "pos": [-3]}))
    with pytest.raises(InvalidInputError):
        normalize_frame(pd.DataFrame({"chrom": ["1"], "pos": [1.5]}))
    with pytest.raises(AmbiguousOrderError):
        normalize_frame(pd.DataFrame({"chrom": ["1", "2"], "pos": [1, 2]}), group_order=["2"])


def test_natural_order_breaks_ties_by_text():
    annotated, ticks = normalize([Record("chr1", 1, 1.0), Record("chr01", 5, 1.0), Record("chr2", 3, 1.0)])
    assert list(ticks) == ["chr01", "chr1", "chr2"]
    assert [a.display_coordinate for a in annotated] == [2, 1, 3]
