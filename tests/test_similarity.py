"""Tests for cosine similarity, similarity matrices and vector comparison."""

import pytest

from vset.engine.errors import DimensionMismatchError
from vset.engine.similarity import compare_vectors, cosine_similarity, similarity_matrix


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical_vectors(self) -> None:
        """Identical vectors score 1."""
        assert cosine_similarity([0.3, 0.4, 0.5], [0.3, 0.4, 0.5]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self) -> None:
        """Orthogonal vectors score 0."""
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_opposite_vectors(self) -> None:
        """Opposite vectors score -1."""
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_symmetric(self) -> None:
        """Argument order does not matter."""
        a, b = [0.1, 0.9, -0.3], [0.7, 0.2, 0.4]
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_bounded(self) -> None:
        """Parallel vectors never exceed 1 through rounding."""
        a = [0.1] * 512
        b = [0.3] * 512
        result = cosine_similarity(a, b)
        assert -1.0 <= result <= 1.0

    def test_zero_vector(self) -> None:
        """A zero vector has similarity 0."""
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_dimension_mismatch(self) -> None:
        """Unequal lengths raise DimensionMismatchError."""
        with pytest.raises(DimensionMismatchError):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestSimilarityMatrix:
    """Tests for similarity_matrix."""

    def test_diagonal_and_symmetry(self) -> None:
        """Diagonal is 1 and the matrix is symmetric."""
        matrix = similarity_matrix([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        assert [matrix[i][i] for i in range(3)] == [1.0, 1.0, 1.0]
        assert matrix[0][1] == 0.0
        assert matrix[0][2] == pytest.approx(0.70710678)
        assert matrix[2][0] == matrix[0][2]

    def test_mismatched_pair_is_none(self) -> None:
        """Incomparable pairs are None while the rest is filled in."""
        matrix = similarity_matrix([[1.0, 0.0], [1.0, 0.0, 0.0], [1.0, 0.0]])
        assert matrix[0][1] is None
        assert matrix[1][2] is None
        assert matrix[0][2] == pytest.approx(1.0)

    def test_empty(self) -> None:
        """No vectors give an empty matrix."""
        assert similarity_matrix([]) == []


class TestCompareVectors:
    """Tests for compare_vectors."""

    def test_matching_dimensions(self) -> None:
        """Equal-length vectors report their similarity."""
        result = compare_vectors([1.0, 2.0, 3.0], [1.0, 2.0, 3.0])
        assert result["dimensionsMatch"] is True
        assert result["vector1Length"] == 3
        assert result["vector1Range"] == {"min": 1.0, "max": 3.0}
        assert result["similarity"] == pytest.approx(1.0)

    def test_samples_are_truncated(self) -> None:
        """Samples show the first five components."""
        result = compare_vectors(list(range(10)), list(range(10)))
        assert result["vector1Sample"] == [0, 1, 2, 3, 4]

    def test_mismatched_dimensions(self) -> None:
        """Different lengths report no similarity."""
        result = compare_vectors([1.0, 2.0], [1.0, 2.0, 3.0])
        assert result["dimensionsMatch"] is False
        assert result["similarity"] is None
        assert result["vector2Length"] == 3
