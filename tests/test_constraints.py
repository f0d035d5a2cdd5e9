import itertools

import pytest
from lazy import ElementLimitError, LazyStream


class TestConstraints:
    """Test edge cases of the intermediate operations"""

    def test_skip_five(self, numbers):
        result = numbers.skip(5).to_list()
        assert result == [6, 7, 8, 9, 10], f"Unexpected result: {result}"

    def test_skip_beyond_length_is_empty(self):
        assert LazyStream(range(5)).skip(10).to_list() == []
        assert LazyStream(range(5)).skip(100).count() == 0

    def test_negative_skip_treated_as_zero(self):
        assert LazyStream(range(5)).skip(-1).to_list() == [0, 1, 2, 3, 4]

    @pytest.mark.parametrize("n", [0, -1, -10])
    def test_non_positive_limit_is_empty(self, n):
        assert LazyStream(range(5)).limit(n).to_list() == []

    def test_limit_larger_than_stream(self):
        assert LazyStream(range(5)).skip(2).limit(10).to_list() == [2, 3, 4]

    def test_distinct_sorted_is_strictly_ascending(self):
        result = LazyStream([5, 3, 9, 3, 1, 5, 9, 9, 2]).distinct().sorted().to_list()

        assert result == [1, 2, 3, 5, 9]
        assert all(a < b for a, b in zip(result, result[1:]))

    def test_distinct_keeps_first_occurrence_order(self):
        assert LazyStream(["b", "a", "b", "c", "a"]).distinct().to_list() == ["b", "a", "c"]

    def test_distinct_with_unhashable_elements(self):
        result = LazyStream([[1], [2], [1]]).distinct().to_list()
        assert result == [[1], [2]]

    def test_sorted_strings_lexicographic(self):
        assert LazyStream(["Jane", "Doe", "John", "Jack"]).sorted().to_list() == ["Doe", "Jack", "Jane", "John"]

    def test_sorted_with_key_and_reverse(self):
        result = LazyStream(["ccc", "a", "bb"]).sorted(key=len, reverse=True).to_list()
        assert result == ["ccc", "bb", "a"]

    def test_empty_stream_terminals(self):
        empty = LazyStream([])

        assert empty.count() == 0
        assert empty.min().is_empty()
        assert empty.max().is_empty()
        assert empty.find_first().is_empty()
        assert empty.average().is_empty()
        assert empty.to_list() == []

    def test_empty_after_filtering(self, numbers):
        filtered = numbers.filter(lambda n: n > 100)
        assert filtered.max().or_else(-1) == -1
        assert filtered.sum() == 0

    def test_bounded_passes_small_streams(self):
        assert LazyStream(range(5)).bounded(5).to_list() == [0, 1, 2, 3, 4]

    def test_bounded_raises_past_limit(self):
        with pytest.raises(ElementLimitError):
            LazyStream(range(6)).bounded(5).count()

    def test_bounded_stops_infinite_expansion(self):
        stream = LazyStream([1]).flat_map(lambda n: itertools.count(n)).bounded(100)
        with pytest.raises(ElementLimitError):
            stream.count()
