"""Tests for merge result aggregation."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from addressbook.core.summary import BatchSummary, SubOperationResult, summarize
from addressbook.models import Contact

pytestmark = pytest.mark.unit

# (removed count, error count, has survivor) per unit
_unit_shapes = st.tuples(
    st.integers(min_value=0, max_value=4),
    st.integers(min_value=0, max_value=3),
    st.booleans(),
)


def _build_units(shapes: list[tuple[int, int, bool]]) -> list[SubOperationResult]:
    results = []
    for unit, (removed_count, error_count, has_update) in enumerate(shapes):
        removed = [f"r{unit}-{i}" for i in range(removed_count)]
        errors = [f"e{unit}-{i}" for i in range(error_count)]
        updated = Contact(id=f"u{unit}") if has_update else None
        results.append(
            SubOperationResult(
                total=removed_count + error_count + (1 if has_update else 0),
                updated=updated,
                removed=removed,
                errors=errors,
            )
        )
    return results


unit_lists = st.lists(_unit_shapes, max_size=12).map(_build_units)
class TestSummarize:
    def test_empty_input_yields_zero_summary(self):
        assert summarize([]) == BatchSummary(updated=[], removed=[], errors=[], total=0)

    def test_concatenates_fields(self):
        survivor = Contact(id="c1")
        results = [
            SubOperationResult(total=2, updated=survivor, removed=["5"], errors=[]),
            SubOperationResult(total=2, updated=None, removed=["7"], errors=["nope"]),
        ]
        summary = summarize(results)
        assert summary.updated == [survivor]
        assert summary.removed == ["5", "7"]
        assert summary.errors == ["nope"]
        assert summary.total == 4

    def test_missing_updated_is_skipped(self):
        summary = summarize([SubOperationResult(total=1, errors=["conflict"])])
        assert summary.updated == []
        assert summary.errors == ["conflict"]

    def test_inputs_are_not_mutated(self):
        result = SubOperationResult(total=1, removed=["a"], errors=["x"])
        summarize([result, result])
        assert result.removed == ["a"]
        assert result.errors == ["x"]

    @given(results=unit_lists, data=st.data())
    def test_total_is_sum_of_unit_totals_in_any_order(self, results, data):
        expected = sum(r.total for r in results)
        shuffled = data.draw(st.permutations(results))

        assert summarize(results).total == expected
        assert summarize(shuffled).total == expected

    @given(results=unit_lists, data=st.data())
    def test_order_only_changes_concatenation_order(self, results, data):
        shuffled = data.draw(st.permutations(results))

        forward = summarize(results)
        permuted = summarize(shuffled)

        assert sorted(forward.removed) == sorted(permuted.removed)
        assert sorted(forward.errors) == sorted(permuted.errors)
        assert len(forward.updated) == len(permuted.updated)

    @given(results=unit_lists)
    def test_unit_order_is_preserved_within_each_unit(self, results):
        summary = summarize(results)
        for result in results:
            positions = [summary.removed.index(r) for r in result.removed]
            assert positions == sorted(positions)
            positions = [summary.errors.index(e) for e in result.errors]
            assert positions == sorted(positions)

    @given(results=unit_lists)
    def test_is_deterministic(self, results):
        assert summarize(results) == summarize(results)
