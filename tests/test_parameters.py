"""Unit tests for autoscript.core.parameters.

get_param must fold native values, strings, NumPy scalars, bytes and
single-element containers into the requested type, and fall back to
the default on anything else without raising.
"""

from __future__ import annotations

import json

import numpy as np
import pytest

from autoscript.core.parameters import coerce, get_param
from autoscript.models.script import ActionType, ConditionOperator


class TestMissingValues:
    """Absent keys and null values yield the default."""

    def test_missing_key(self) -> None:
        """A key that is not present returns the default."""
        assert get_param({}, "x", 7) == 7

    def test_none_bag(self) -> None:
        """A None bag behaves like an empty one."""
        assert get_param(None, "x", "d") == "d"

    def test_null_value(self) -> None:
        """A JSON null returns the default."""
        assert get_param({"x": None}, "x", 3) == 3

    def test_case_insensitive_key_fallback(self) -> None:
        """Keys differing only in case still match."""
        assert get_param({"TimeoutMs": 250}, "timeoutMs", 0) == 250


class TestIntCoercion:
    """Integer targets."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (5, 5),
            ("12", 12),
            (" 42 ", 42),
            (7.6, 8),
            ("3.0", 3),
            (np.int64(9), 9),
            (np.float32(2.0), 2),
            ([11], 11),
            (b"13", 13),
            (True, 1),
            ("0x10", 16),
        ],
    )
    def test_accepted_representations(self, raw: object, expected: int) -> None:
        """Each supported representation converts to an int."""
        assert get_param({"v": raw}, "v", 0) == expected

    @pytest.mark.parametrize(
        "raw", ["abc", {"a": 1}, [1, 2], float("nan"), b"\xff\xfe"]
    )
    def test_rejected_values_return_default(self, raw: object) -> None:
        """Unconvertible values fall back to the default."""
        assert get_param({"v": raw}, "v", -1) == -1


class TestFloatCoercion:
    """Float targets."""

    def test_int_to_float(self) -> None:
        """Integers widen to float."""
        result = get_param({"t": 1}, "t", 0.8)
        assert result == 1.0
        assert isinstance(result, float)

    def test_string_to_float(self) -> None:
        """Numeric strings parse."""
        assert get_param({"t": "0.95"}, "t", 0.8) == pytest.approx(0.95)

    def test_bad_string_returns_default(self) -> None:
        """Non-numeric strings fall back."""
        assert get_param({"t": "high"}, "t", 0.8) == 0.8


class TestBoolCoercion:
    """Boolean targets."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (True, True),
            ("true", True),
            ("False", False),
            ("yes", True),
            (0, False),
            (1, True),
            (np.bool_(True), True),
        ],
    )
    def test_accepted(self, raw: object, expected: bool) -> None:
        """Booleans, numbers and common words convert."""
        assert get_param({"b": raw}, "b", not expected) is expected

    def test_unknown_word_returns_default(self) -> None:
        """Unrecognised words fall back."""
        assert get_param({"b": "maybe"}, "b", True) is True


class TestStrCoercion:
    """String targets."""

    def test_number_to_string(self) -> None:
        """Numbers stringify."""
        assert get_param({"id": 5}, "id", "") == "5"

    def test_bytes_decode(self) -> None:
        """UTF-8 bytes decode to text."""
        assert get_param({"t": "héllo".encode()}, "t", "") == "héllo"

    def test_dict_returns_default(self) -> None:
        """Objects are not strings."""
        assert get_param({"t": {"a": 1}}, "t", "x") == "x"


class TestEnumCoercion:
    """Enum targets."""

    def test_value_string(self) -> None:
        """Enum values resolve."""
        assert get_param({"k": "double_click"}, "k", ActionType.CLICK) is (
            ActionType.DOUBLE_CLICK
        )

    def test_name_string_any_case(self) -> None:
        """Enum names resolve case-insensitively."""
        assert get_param({"op": "Or"}, "op", ConditionOperator.AND) is (
            ConditionOperator.OR
        )

    def test_unknown_returns_default(self) -> None:
        """Unknown members fall back."""
        assert get_param({"op": "XOR"}, "op", ConditionOperator.AND) is (
            ConditionOperator.AND
        )


class TestDecodedDocuments:
    """Values coming out of json.loads behave like native ones."""

    def test_json_document(self) -> None:
        """A decoded document yields typed values."""
        params = json.loads(
            '{"x": 100, "y": "200", "threshold": 0.9, "enabled": "true"}'
        )
        assert get_param(params, "x", 0) == 100
        assert get_param(params, "y", 0) == 200
        assert get_param(params, "threshold", 0.8) == 0.9
        assert get_param(params, "enabled", False) is True


class TestExplicitType:
    """as_type overrides the default's type."""

    def test_as_type_with_none_default(self) -> None:
        """A None default needs an explicit target type."""
        assert get_param({"v": "3"}, "v", None, as_type=int) == 3

    def test_none_default_without_type_returns_default(self) -> None:
        """Without a usable target type the default comes back."""
        assert get_param({"v": "3"}, "v", None) is None

    def test_coerce_raises_value_error(self) -> None:
        """The lower-level coerce reports failures as ValueError."""
        with pytest.raises(ValueError):
            coerce("nope", int)
