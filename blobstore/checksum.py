"""Streaming checksum calculation for payload writes."""

import hashlib

from common.constants import DEFAULT_CHECKSUM_ALGORITHM


def ensure_supported_algorithm(algorithm: str) -> str:
    """
    Check that hashlib can compute the given algorithm.

    Returns:
        The algorithm name, unchanged

    Raises:
        ValueError: If the algorithm is not supported by hashlib
    """
    try:
        hashlib.new(algorithm)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Unsupported checksum algorithm: {algorithm!r}") from e
    return algorithm


class IncrementalChecksumCalculator:
    """
    Calculate a checksum and byte count incrementally for streaming data.

    Usage:
        calculator = IncrementalChecksumCalculator()
        calculator.update(piece1)
        calculator.update(piece2)
        final_checksum = calculator.finalize()
    """

    def __init__(self, algorithm: str = DEFAULT_CHECKSUM_ALGORITHM):
        """
        Initialize a new incremental checksum calculator.

        Raises:
            ValueError: If the algorithm is not supported by hashlib
        """
        self.algorithm = algorithm
        self._hasher = hashlib.new(algorithm)
        self._size = 0
        self._finalized = False

    @property
    def size(self) -> int:
        """Number of bytes fed so far."""
        return self._size

    def update(self, data: bytes) -> None:
        """
        Update checksum with new data.

        Args:
            data: Bytes to add to checksum calculation
        """
        if self._finalized:
            raise ValueError("Cannot update after finalization")
        self._hasher.update(data)
        self._size += len(data)

    def finalize(self) -> str:
        """
        Finalize checksum calculation and return result.

        Returns:
            Hexadecimal digest string
        """
        self._finalized = True
        return self._hasher.hexdigest()
