"""Tests for vector parsing, formatting and combination methods."""

import math

import pytest

from vset.engine.errors import DimensionMismatchError, ValidationError
from vset.engine.vector_math import (
    CombinationMethod,
    combine_vectors,
    describe_method,
    dot,
    format_vector,
    l2_norm,
    normalize_vector,
    parse_vector,
    try_parse_vector,
    validate_vector,
)

E1 = [1.0, 0.0, 0.0, 0.0, 0.0, 0.0]
E2 = [0.0, 1.0, 0.0, 0.0, 0.0, 0.0]


class TestParseVector:
    """Tests for parse_vector / try_parse_vector."""

    def test_comma_separated(self) -> None:
        """Plain comma-separated numbers are parsed."""
        assert parse_vector("0.1, 0.2, -3") == [0.1, 0.2, -3.0]

    def test_brackets_and_blank_tokens(self) -> None:
        """Surrounding brackets and empty tokens are tolerated."""
        assert parse_vector("[1, , 2,3, ]") == [1.0, 2.0, 3.0]

    def test_scientific_notation(self) -> None:
        """Exponent notation is accepted."""
        assert parse_vector("1e-3,2E2") == [0.001, 200.0]

    def test_invalid_token_raises(self) -> None:
        """A non-numeric token fails the whole parse."""
        with pytest.raises(ValidationError, match="position 1"):
            parse_vector("1, abc, 3")

    def test_non_finite_raises(self) -> None:
        """NaN and infinity are rejected."""
        with pytest.raises(ValidationError):
            parse_vector("1, nan")
        with pytest.raises(ValidationError):
            parse_vector("inf, 1")

    def test_empty_raises(self) -> None:
        """Text without numbers is not a vector."""
        with pytest.raises(ValidationError):
            parse_vector(" , ")

    def test_try_parse_returns_none(self) -> None:
        """try_parse_vector swallows parse failures."""
        assert try_parse_vector("a cat on a mat") is None
        assert try_parse_vector("1,2") == [1.0, 2.0]


class TestFormatVector:
    """Tests for format_vector."""

    def test_default_precision(self) -> None:
        """Six decimal places by default."""
        assert format_vector([1, 0.5]) == "1.000000, 0.500000"

    def test_custom_precision(self) -> None:
        """Precision is configurable."""
        assert format_vector([0.12345], precision=2) == "0.12"

    def test_round_trip(self) -> None:
        """Formatted text parses back to the same values."""
        vec = [0.25, -1.5, 3.0]
        assert parse_vector(format_vector(vec)) == vec


class TestBasicOperations:
    """Tests for dot, norms and normalization."""

    def test_dot(self) -> None:
        """Dot product of equal-length vectors."""
        assert dot([1, 2, 3], [4, 5, 6]) == 32.0

    def test_dot_dimension_mismatch(self) -> None:
        """Unequal lengths raise DimensionMismatchError."""
        with pytest.raises(DimensionMismatchError):
            dot([1, 2], [1, 2, 3])

    def test_l2_norm(self) -> None:
        """Euclidean length of a 3-4-5 vector."""
        assert l2_norm([3, 4]) == 5.0

    def test_normalize_unit_length(self) -> None:
        """Normalized vectors have unit length."""
        result = normalize_vector([3.0, 4.0, 12.0])
        assert math.isclose(l2_norm(result), 1.0)

    def test_normalize_zero_vector_unchanged(self) -> None:
        """The zero vector is returned as is."""
        assert normalize_vector([0.0, 0.0, 0.0]) == [0.0, 0.0, 0.0]

    def test_norm_of_large_components(self) -> None:
        """Squaring huge components does not overflow the norm."""
        assert l2_norm([3e200, 4e200]) == pytest.approx(5e200)

    def test_normalize_large_vector(self) -> None:
        """A large finite vector normalizes to unit length, not zeros."""
        result = normalize_vector([1e200, 1e200])
        assert result == pytest.approx([0.7071, 0.7071], abs=1e-4)


class TestValidateVector:
    """Tests for validate_vector."""

    def test_valid(self) -> None:
        """Numeric components come back as floats."""
        assert validate_vector([1, 2.5]) == [1.0, 2.5]

    def test_empty(self) -> None:
        """An empty vector is rejected."""
        with pytest.raises(ValidationError, match="empty"):
            validate_vector([])

    def test_non_finite(self) -> None:
        """NaN components are rejected."""
        with pytest.raises(ValidationError, match="not finite"):
            validate_vector([1.0, float("nan")])

    def test_non_numeric(self) -> None:
        """String components are rejected."""
        with pytest.raises(ValidationError, match="not numeric"):
            validate_vector([1.0, "2"])  # type: ignore[list-item]

    def test_bool_rejected(self) -> None:
        """Booleans are not numbers here."""
        with pytest.raises(ValidationError):
            validate_vector([True, 1.0])

    def test_string_rejected(self) -> None:
        """A string is not a vector."""
        with pytest.raises(ValidationError, match="not a sequence"):
            validate_vector("1,2,3")  # type: ignore[arg-type]

    def test_expected_dimensions(self) -> None:
        """A length mismatch carries expected and actual sizes."""
        with pytest.raises(DimensionMismatchError) as exc_info:
            validate_vector([1.0, 2.0], expected_dimensions=3)
        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2


class TestCombinationMethod:
    """Tests for CombinationMethod parsing."""

    def test_parse_wire_values(self) -> None:
        """Wire values map to enum members."""
        assert CombinationMethod.parse("power-weighted") is CombinationMethod.POWER_WEIGHTED
        assert CombinationMethod.parse("component-max") is CombinationMethod.COMPONENT_MAX

    def test_parse_defaults_to_linear(self) -> None:
        """Missing or blank method means linear."""
        assert CombinationMethod.parse(None) is CombinationMethod.LINEAR
        assert CombinationMethod.parse("") is CombinationMethod.LINEAR

    def test_parse_unknown(self) -> None:
        """Unknown method names raise ValidationError."""
        with pytest.raises(ValidationError, match="Unknown combination method"):
            CombinationMethod.parse("median")

    def test_every_method_described(self) -> None:
        """Each method has a description."""
        for method in CombinationMethod:
            assert describe_method(method)


class TestCombineVectors:
    """Tests for combine_vectors and each combination method."""

    def test_linear_sum(self) -> None:
        """Two unit vectors with weight 1 sum component-wise."""
        result = combine_vectors([E1, E2], [1.0, 1.0])
        assert result == [1.0, 1.0, 0.0, 0.0, 0.0, 0.0]

    def test_linear_negative_weight_subtracts(self) -> None:
        """Negative weights subtract."""
        result = combine_vectors([[1.0, 0.0], [0.0, 1.0]], [2.0, -1.0])
        assert result == [2.0, -1.0]

    def test_normalized_sum(self) -> None:
        """Normalizing the sum of two unit vectors gives 1/sqrt(2) components."""
        result = normalize_vector(combine_vectors([E1, E2], [1.0, 1.0]))
        assert result[0] == pytest.approx(0.7071, abs=1e-4)
        assert result[1] == pytest.approx(0.7071, abs=1e-4)
        assert result[2:] == [0.0, 0.0, 0.0, 0.0]

    def test_power_weighted_squares_weights(self) -> None:
        """Default power squares the weights."""
        result = combine_vectors(
            [[1.0, 0.0], [0.0, 1.0]], [2.0, 3.0], CombinationMethod.POWER_WEIGHTED
        )
        assert result == [4.0, 9.0]

    def test_power_weighted_preserves_sign(self) -> None:
        """Negative weights stay negative after the power is applied."""
        result = combine_vectors(
            [[1.0, 0.0], [0.0, 1.0]], [2.0, -3.0], CombinationMethod.POWER_WEIGHTED
        )
        assert result == [4.0, -9.0]

    def test_power_weighted_custom_power(self) -> None:
        """The power factor is the exponent."""
        result = combine_vectors(
            [[1.0], [1.0]], [2.0, 1.0], CombinationMethod.POWER_WEIGHTED, power_factor=3.0
        )
        assert result == [9.0]

    def test_weighted_average_divides_by_abs_weights(self) -> None:
        """The sum is divided by the absolute weight total."""
        result = combine_vectors(
            [[2.0, 0.0], [0.0, 4.0]], [1.0, -1.0], CombinationMethod.WEIGHTED_AVERAGE
        )
        assert result == [1.0, -2.0]

    def test_weighted_average_zero_weights(self) -> None:
        """With all-zero weights the undivided sum is returned."""
        result = combine_vectors(
            [[2.0, 0.0], [0.0, 4.0]], [0.0, 0.0], CombinationMethod.WEIGHTED_AVERAGE
        )
        assert result == [0.0, 0.0]

    def test_orthogonalize_parallel_inputs(self) -> None:
        """A vector parallel to an earlier one contributes nothing."""
        result = combine_vectors(
            [[1.0, 0.0], [2.0, 0.0]], [1.0, 5.0], CombinationMethod.ORTHOGONALIZE
        )
        assert result == pytest.approx([1.0, 0.0])

    def test_orthogonalize_keeps_own_weight(self) -> None:
        """Each residual is scaled by the weight of the vector it came from."""
        result = combine_vectors(
            [[1.0, 0.0], [1.0, 1.0]], [1.0, 2.0], CombinationMethod.ORTHOGONALIZE
        )
        assert result == pytest.approx([1.0, 2.0])

    def test_orthogonalize_skipped_residual_keeps_later_weights(self) -> None:
        """Dropping a zero residual does not shift later weights."""
        result = combine_vectors(
            [[1.0, 0.0], [3.0, 0.0], [0.0, 1.0]],
            [1.0, 10.0, 2.0],
            CombinationMethod.ORTHOGONALIZE,
        )
        assert result == pytest.approx([1.0, 2.0])

    def test_component_max_picks_largest_magnitude(self) -> None:
        """Each dimension keeps its largest magnitude."""
        result = combine_vectors(
            [[1.0, -3.0], [2.0, 1.0]], [1.0, 1.0], CombinationMethod.COMPONENT_MAX
        )
        assert result == [2.0, -3.0]

    def test_component_max_uses_weighted_values(self) -> None:
        """Magnitudes are compared after weighting."""
        result = combine_vectors(
            [[1.0, 1.0], [1.0, 1.0]], [1.0, -2.0], CombinationMethod.COMPONENT_MAX
        )
        assert result == [-2.0, -2.0]

    def test_component_max_first_wins_ties(self) -> None:
        """On equal magnitude the earlier vector wins."""
        result = combine_vectors(
            [[1.0], [-1.0]], [1.0, 1.0], CombinationMethod.COMPONENT_MAX
        )
        assert result == [1.0]

    def test_empty_raises(self) -> None:
        """Nothing to combine raises ValidationError."""
        with pytest.raises(ValidationError):
            combine_vectors([], [])

    def test_weight_count_mismatch(self) -> None:
        """One weight per vector is required."""
        with pytest.raises(ValidationError, match="must match"):
            combine_vectors([[1.0], [2.0]], [1.0])

    def test_dimension_mismatch(self) -> None:
        """Mixed dimensions raise DimensionMismatchError."""
        with pytest.raises(DimensionMismatchError):
            combine_vectors([[1.0, 2.0], [1.0]], [1.0, 1.0])

    def test_power_overflow_raises_validation_error(self) -> None:
        """A weight and power too large for a float is invalid input."""
        with pytest.raises(ValidationError, match="overflows"):
            combine_vectors(
                [[1.0, 0.0], [0.0, 1.0]], [10.0, 1.0], CombinationMethod.POWER_WEIGHTED, 400.0
            )

    def test_infinite_sum_rejected(self) -> None:
        """A sum that leaves the float range is rejected."""
        with pytest.raises(ValidationError, match="out of range"):
            combine_vectors([[1e308], [1e308]], [10.0, 10.0])

    def test_nan_weight_rejected(self) -> None:
        """A NaN weight never yields a NaN vector."""
        with pytest.raises(ValidationError):
            combine_vectors(
                [[1.0, 0.0], [0.0, 1.0]], [float("nan"), 1.0], CombinationMethod.WEIGHTED_AVERAGE
            )
