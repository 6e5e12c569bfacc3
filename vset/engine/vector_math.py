"""Vector math utilities.

Pure functions over plain lists of floats: parsing and formatting vector
text, norms, normalization, validation, and the weighted combination
methods used to merge several vectors into one query vector.
"""

import enum
import math
from collections.abc import Sequence

from .errors import DimensionMismatchError, ValidationError

# Residuals and weight sums at or below this are treated as zero.
_EPSILON = 1e-10


class CombinationMethod(enum.Enum):
    """Algorithms for merging weighted vectors."""

    LINEAR = "linear"
    POWER_WEIGHTED = "power-weighted"
    WEIGHTED_AVERAGE = "weighted-average"
    ORTHOGONALIZE = "orthogonalize"
    COMPONENT_MAX = "component-max"

    @classmethod
    def parse(cls, value: "str | CombinationMethod | None") -> "CombinationMethod":
        """Resolve a method from its wire value, defaulting to linear."""
        if value is None or value == "":
            return cls.LINEAR
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown combination method: {value}") from None


_METHOD_DESCRIPTIONS: dict[CombinationMethod, str] = {
    CombinationMethod.LINEAR: "Standard weighted sum of vectors (w1*V1 + w2*V2 + ...)",
    CombinationMethod.POWER_WEIGHTED: "Weights are raised to a power to emphasize higher weights",
    CombinationMethod.WEIGHTED_AVERAGE: (
        "Weighted sum divided by the sum of absolute weights, keeps magnitude similar to input"
    ),
    CombinationMethod.ORTHOGONALIZE: (
        "Makes vectors orthogonal before combining to capture unique directions"
    ),
    CombinationMethod.COMPONENT_MAX: (
        "Takes the largest-magnitude weighted value at each dimension"
    ),
}


def describe_method(method: CombinationMethod) -> str:
    """Return a human-readable description of a combination method."""
    return _METHOD_DESCRIPTIONS[method]


# ---------------------------------------------------------------------------
# Parsing & formatting
# ---------------------------------------------------------------------------


def parse_vector(text: str) -> list[float]:
    """Parse comma-separated numbers into a vector.

    Blank tokens are skipped and an optional pair of surrounding square
    brackets is accepted.

    Args:
        text: Vector text, e.g. "0.1, 0.2, 0.3".

    Returns:
        Parsed vector.

    Raises:
        ValidationError: If any token is not a finite number or no
            numbers are present.
    """
    stripped = text.strip()
    if stripped.startswith("[") and stripped.endswith("]"):
        stripped = stripped[1:-1]

    values: list[float] = []
    for position, token in enumerate(stripped.split(",")):
        token = token.strip()
        if not token:
            continue
        try:
            value = float(token)
        except ValueError:
            raise ValidationError(
                f"Invalid number at position {position}: {token[:20]!r}"
            ) from None
        if not math.isfinite(value):
            raise ValidationError(f"Non-finite value at position {position}: {token}")
        values.append(value)

    if not values:
        raise ValidationError("Vector text contains no numbers")
    return values


def try_parse_vector(text: str) -> list[float] | None:
    """Parse vector text, returning None instead of raising."""
    try:
        return parse_vector(text)
    except ValidationError:
        return None


def format_vector(vec: Sequence[float], precision: int = 6) -> str:
    """Format a vector as comma-separated fixed-precision numbers."""
    return ", ".join(f"{v:.{precision}f}" for v in vec)


# ---------------------------------------------------------------------------
# Basic operations
# ---------------------------------------------------------------------------


def _check_same_dimension(a: Sequence[float], b: Sequence[float]) -> None:
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Vectors must have the same dimension ({len(a)} != {len(b)})",
            expected=len(a),
            actual=len(b),
        )


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product of two equal-length vectors."""
    _check_same_dimension(a, b)
    return math.fsum(x * y for x, y in zip(a, b, strict=True))


def l2_norm(vec: Sequence[float]) -> float:
    """Euclidean length of a vector, without overflow for large components."""
    return math.hypot(*vec)


def add_vectors(a: Sequence[float], b: Sequence[float]) -> list[float]:
    """Element-wise sum of two equal-length vectors."""
    _check_same_dimension(a, b)
    return [x + y for x, y in zip(a, b, strict=True)]


def scale_vector(vec: Sequence[float], scalar: float) -> list[float]:
    """Multiply every component by a scalar."""
    return [x * scalar for x in vec]


def normalize_vector(vec: Sequence[float]) -> list[float]:
    """Rescale a vector to unit L2 norm.

    The zero vector has no direction and is returned unchanged.
    """
    norm = l2_norm(vec)
    if norm == 0:
        return list(vec)
    return [x / norm for x in vec]


def validate_vector(
    vec: Sequence[float],
    expected_dimensions: int | None = None,
) -> list[float]:
    """Check that a vector is usable as an embedding.

    Args:
        vec: Candidate vector.
        expected_dimensions: Required length, if known.

    Returns:
        The vector as a list of floats.

    Raises:
        ValidationError: If the vector is empty or has non-numeric or
            non-finite components.
        DimensionMismatchError: If the length differs from expected_dimensions.
    """
    if not isinstance(vec, Sequence) or isinstance(vec, (str, bytes)):
        raise ValidationError(f"Vector is not a sequence: {type(vec).__name__}")
    if len(vec) == 0:
        raise ValidationError("Vector is empty")

    values: list[float] = []
    for i, component in enumerate(vec):
        if isinstance(component, bool) or not isinstance(component, (int, float)):
            raise ValidationError(f"Vector component {i} is not numeric")
        value = float(component)
        if not math.isfinite(value):
            raise ValidationError(f"Vector component {i} is not finite")
        values.append(value)

    if expected_dimensions is not None and len(values) != expected_dimensions:
        raise DimensionMismatchError(
            f"Vector dimensions ({len(values)}) do not match "
            f"expected dimensions ({expected_dimensions})",
            expected=expected_dimensions,
            actual=len(values),
        )
    return values


# ---------------------------------------------------------------------------
# Combination methods
# ---------------------------------------------------------------------------


def combine_vectors(
    vectors: Sequence[Sequence[float]],
    weights: Sequence[float],
    method: CombinationMethod = CombinationMethod.LINEAR,
    power_factor: float = 2.0,
) -> list[float]:
    """Combine weighted vectors with the selected method.

    Args:
        vectors: Vectors to combine, all of the same dimension.
        weights: One signed weight per vector.
        method: Combination algorithm.
        power_factor: Exponent for power-weighted combination.

    Returns:
        The combined vector.

    Raises:
        ValidationError: If no vectors are given, counts differ, or the
            result has non-finite components.
        DimensionMismatchError: If the vectors differ in dimension.
    """
    if not vectors:
        raise ValidationError("No vectors to combine")
    if len(vectors) != len(weights):
        raise ValidationError(
            f"Number of vectors ({len(vectors)}) must match number of weights ({len(weights)})"
        )
    dimension = len(vectors[0])
    for i, vec in enumerate(vectors[1:], start=1):
        if len(vec) != dimension:
            raise DimensionMismatchError(
                f"Vector at index {i} has dimension {len(vec)}, expected {dimension}",
                expected=dimension,
                actual=len(vec),
            )

    match method:
        case CombinationMethod.LINEAR:
            combined = linear_combine(vectors, weights)
        case CombinationMethod.POWER_WEIGHTED:
            combined = power_weighted_combine(vectors, weights, power_factor)
        case CombinationMethod.WEIGHTED_AVERAGE:
            combined = weighted_average(vectors, weights)
        case CombinationMethod.ORTHOGONALIZE:
            combined = orthogonalize_combine(vectors, weights)
        case CombinationMethod.COMPONENT_MAX:
            combined = component_max(vectors, weights)
    try:
        return validate_vector(combined)
    except ValidationError as e:
        raise ValidationError(f"Combined vector is out of range: {e}") from e


def linear_combine(
    vectors: Sequence[Sequence[float]], weights: Sequence[float]
) -> list[float]:
    """Weighted sum: w1*v1 + w2*v2 + ..."""
    result = [0.0] * len(vectors[0])
    for vec, weight in zip(vectors, weights, strict=True):
        if weight == 0:
            continue
        for j, value in enumerate(vec):
            result[j] += value * weight
    return result


def power_weighted_combine(
    vectors: Sequence[Sequence[float]],
    weights: Sequence[float],
    power: float = 2.0,
) -> list[float]:
    """Raise each weight's magnitude to a power, keeping its sign, then sum."""
    try:
        powered = [math.copysign(abs(w) ** power, w) for w in weights]
    except OverflowError as e:
        raise ValidationError(f"Weight raised to power {power} overflows") from e
    return linear_combine(vectors, powered)


def weighted_average(
    vectors: Sequence[Sequence[float]], weights: Sequence[float]
) -> list[float]:
    """Weighted sum divided by the sum of absolute weights."""
    combined = linear_combine(vectors, weights)
    weight_sum = math.fsum(abs(w) for w in weights)
    if weight_sum <= _EPSILON:
        return combined
    return [x / weight_sum for x in combined]


def orthogonalize_combine(
    vectors: Sequence[Sequence[float]], weights: Sequence[float]
) -> list[float]:
    """Gram-Schmidt each vector against the ones before it, then sum.

    Every residual keeps the weight of the vector it came from. A vector
    lying entirely in the span of earlier ones leaves a zero residual and
    contributes nothing.
    """
    basis: list[list[float]] = []
    terms: list[tuple[list[float], float]] = []

    for vec, weight in zip(vectors, weights, strict=True):
        residual = [float(x) for x in vec]
        for prev in basis:
            scale = dot(residual, prev) / dot(prev, prev)
            residual = [r - scale * p for r, p in zip(residual, prev, strict=True)]
        if l2_norm(residual) > _EPSILON:
            basis.append(residual)
            terms.append((residual, weight))

    if not terms:
        return [0.0] * len(vectors[0])
    return linear_combine([t[0] for t in terms], [t[1] for t in terms])


def component_max(
    vectors: Sequence[Sequence[float]], weights: Sequence[float]
) -> list[float]:
    """Per dimension, keep the weighted value with the largest magnitude."""
    result = scale_vector(vectors[0], weights[0])
    for vec, weight in zip(vectors[1:], weights[1:], strict=True):
        for j, value in enumerate(vec):
            candidate = value * weight
            if abs(candidate) > abs(result[j]):
                result[j] = candidate
    return result
