"""Tests for closurekit.sequences."""

import math

import pytest

from closurekit.core.errors import ConfigError
from closurekit.sequences import flat, includes

NESTED = [1, [2, 3, 5], [3, [3, 5, 3]]]


class TestFlat:
    def test_default_depth_is_one(self):
        """Test one level is flattened by default."""
        assert flat(NESTED) == [1, 2, 3, 5, 3, [3, 5, 3]]

    def test_depth_one(self):
        """Test an explicit depth of one."""
        assert flat(NESTED, 1) == [1, 2, 3, 5, 3, [3, 5, 3]]

    def test_infinite_depth(self):
        """Test math.inf flattens completely."""
        assert flat(NESTED, math.inf) == [1, 2, 3, 5, 3, 3, 5, 3]

    def test_depth_beyond_nesting(self):
        """Test a depth larger than the nesting flattens completely."""
        assert flat(NESTED, 3) == [1, 2, 3, 5, 3, 3, 5, 3]

    def test_depth_zero_is_shallow_copy(self):
        """Test depth zero returns a new list sharing the nested items."""
        result = flat(NESTED, 0)
        assert result == NESTED
        assert result is not NESTED
        assert result[1] is NESTED[1]

    def test_negative_depth_behaves_as_zero(self):
        """Test negative depths are treated as zero."""
        assert flat([[1], 2], -2) == [[1], 2]

    def test_input_not_mutated(self):
        """Test the input sequence is left untouched."""
        data = [[1, [2]], 3]
        flat(data, math.inf)
        assert data == [[1, [2]], 3]

    def test_tuples_are_flattened(self):
        """Test tuples are descended into like lists."""
        assert flat((1, (2, (3,)))) == [1, 2, (3,)]

    def test_strings_and_dicts_pass_through(self):
        """Test str, bytes and dict values are never split."""
        assert flat(["ab", [b"cd", {"k": [1]}]], math.inf) == ["ab", b"cd", {"k": [1]}]

    def test_empty_nested(self):
        """Test empty nested lists disappear once flattened."""
        assert flat([[], [[]], 1], 1) == [[], 1]
        assert flat([[], [[]], 1], math.inf) == [1]

    def test_deep_nesting_does_not_recurse(self):
        """Test very deep nesting stays under the recursion limit."""
        deep: list = [0]
        for _ in range(5000):
            deep = [deep]
        assert flat(deep, math.inf) == [0]

    @pytest.mark.parametrize("bad", ["1", None, float("nan"), True])
    def test_invalid_depth(self, bad):
        """Test non-numeric, bool and NaN depths raise ConfigError."""
        with pytest.raises(ConfigError):
            flat([1], bad)


class TestIncludes:
    def test_found(self):
        """Test a present element is found."""
        assert includes([1, 2, 3, 4, 5], 3) is True

    def test_not_found(self):
        """Test an absent element is not found."""
        assert includes([1, 2, 3, 4, 5], 6) is False

    def test_strings(self):
        """Test string membership."""
        fruits = ["apple", "banana", "mango"]
        assert includes(fruits, "banana")
        assert includes(fruits, "mango")
        assert not includes(fruits, "grape")

    def test_empty(self):
        """Test an empty sequence includes nothing."""
        assert includes([], 1) is False

    def test_from_index_skips_earlier(self):
        """Test elements before from_index are ignored."""
        assert includes([1, 2, 3], 1, 1) is False
        assert includes([1, 2, 3], 3, 2) is True

    def test_from_index_at_or_past_length(self):
        """Test a from_index at or past the end finds nothing."""
        assert includes([1, 2, 3], 3, 3) is False
        assert includes([1, 2, 3], 3, 10) is False

    def test_negative_from_index(self):
        """Test negative from_index counts from the end."""
        assert includes([1, 2, 3], 1, -1) is False
        assert includes([1, 2, 3], 3, -1) is True
        assert includes([1, 2, 3], 2, -2) is True

    def test_negative_from_index_clamps_to_zero(self):
        """Test a negative from_index beyond the start searches everything."""
        assert includes([1, 2, 3], 1, -100) is True

    def test_strict_equality(self):
        """Test values of different types never match."""
        assert includes([1, 2, 3], "1") is False
        assert includes([1, 2, 3], True) is False
        assert includes([True], 1) is False
        assert includes([0], False) is False
        assert includes([None], 0) is False

    def test_int_and_float_compare_by_value(self):
        """Test int and float match when numerically equal."""
        assert includes([1, 2.0], 2) is True
        assert includes([1.0], 1) is True

    def test_nan_never_matches(self):
        """Test NaN is never found, even as the same object."""
        nan = float("nan")
        assert includes([nan], nan) is False

    def test_containers_compare_by_value(self):
        """Test equal lists match while a list never matches a tuple."""
        assert includes([[1, 2], {"a": 1}], [1, 2]) is True
        assert includes([[1, 2]], (1, 2)) is False

    def test_nested_bool_does_not_match_number(self):
        """Test strictness applies inside nested containers."""
        assert includes([[1]], [True]) is False
        assert includes([(0, "x")], (False, "x")) is False
        assert includes([[[1]]], [[True]]) is False

    def test_nested_numbers_compare_by_value(self):
        """Test nested int and float members still match by value."""
        assert includes([[1, [2]]], [1.0, [2.0]]) is True

    def test_nested_dicts_are_strict(self):
        """Test dict values and keys follow the strict rule."""
        assert includes([{"a": 1}], {"a": True}) is False
        assert includes([{1: "x"}], {True: "x"}) is False
        assert includes([{"a": [1]}], {"a": [1.0]}) is True
        assert includes([{"a": 1}], {"a": 1, "b": 2}) is False

    def test_same_container_object_matches(self):
        """Test a container always matches itself."""
        inner = [float("nan")]
        assert includes([inner], inner) is True

    def test_works_on_tuples(self):
        """Test tuples can be searched."""
        assert includes((1, 2), 2)

    @pytest.mark.parametrize("bad", [1.5, "0", None])
    def test_invalid_from_index(self, bad):
        """Test non-int from_index raises ConfigError."""
        with pytest.raises(ConfigError):
            includes([1], 1, bad)
