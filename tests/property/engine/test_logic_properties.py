# tests/property/engine/test_logic_properties.py
"""Property-based tests for logic node arithmetic.

Properties:
- add, multiply, min and max are commutative on finite inputs
- modulo follows the sign of the dividend and stays below the divisor
- compare operators are consistent with their mirrors
- xor is inequality; not is an involution
"""

from __future__ import annotations

import math

from hypothesis import given
from hypothesis import strategies as st

from animflow.contracts.enums import BooleanOperator, CompareOperator, MathOperator, NodeType
from animflow.engine.executors.logic import apply_boolean, compare_values, compute_math
from animflow.testing import make_node
from tests.property.settings import QUICK_SETTINGS, STANDARD_SETTINGS

MATH_NODE = make_node("m", NodeType.MATH_OP)

finite_numbers = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)

nonzero_divisors = st.one_of(
    st.floats(min_value=0.001, max_value=1e3),
    st.floats(min_value=-1e3, max_value=-0.001),
)

commutative_operators = st.sampled_from([MathOperator.ADD, MathOperator.MULTIPLY, MathOperator.MIN, MathOperator.MAX])


class TestMathProperties:
    @given(operator=commutative_operators, a=finite_numbers, b=finite_numbers)
    @STANDARD_SETTINGS
    def test_commutative(self, operator: MathOperator, a: float, b: float) -> None:
        """Property: operand order does not matter."""
        assert compute_math(MATH_NODE, operator, a, b) == compute_math(MATH_NODE, operator, b, a)

    @given(a=finite_numbers, b=nonzero_divisors)
    @STANDARD_SETTINGS
    def test_modulo_sign_and_magnitude(self, a: float, b: float) -> None:
        """Property: the remainder takes the dividend's sign."""
        result = compute_math(MATH_NODE, MathOperator.MODULO, a, b)

        assert abs(result) < abs(b)
        assert result == 0 or math.copysign(1.0, result) == math.copysign(1.0, a)


class TestCompareProperties:
    @given(a=finite_numbers, b=finite_numbers)
    @STANDARD_SETTINGS
    def test_mirrors(self, a: float, b: float) -> None:
        assert compare_values(CompareOperator.GT, a, b) == compare_values(CompareOperator.LT, b, a)
        assert compare_values(CompareOperator.GTE, a, b) == compare_values(CompareOperator.LTE, b, a)
        assert compare_values(CompareOperator.EQ, a, b) != compare_values(CompareOperator.NEQ, a, b)


class TestBooleanProperties:
    @given(a=st.booleans(), b=st.booleans())
    @QUICK_SETTINGS
    def test_xor_is_inequality(self, a: bool, b: bool) -> None:
        assert apply_boolean(BooleanOperator.XOR, a, b) is (a != b)

    @given(a=st.booleans())
    @QUICK_SETTINGS
    def test_not_involution(self, a: bool) -> None:
        assert apply_boolean(BooleanOperator.NOT, apply_boolean(BooleanOperator.NOT, a)) is a
