"""Single-consumer byte stream over a stored payload."""

from typing import BinaryIO, Iterator, Optional

from common.constants import STREAM_PIECE_SIZE


class ContentStream:
    """
    Read-once view of a payload file.

    The stream owns the underlying file handle. Iterating yields pieces of
    ``piece_size`` bytes and closes the handle when the payload is drained
    or the consumer stops early. A stream that has been read from cannot be
    iterated again.
    """

    def __init__(self, fileobj: BinaryIO, size: Optional[int] = None, piece_size: int = STREAM_PIECE_SIZE):
        self._file = fileobj
        self.size = size
        self.piece_size = piece_size
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def closed(self) -> bool:
        return self._file.closed

    def read(self, size: int = -1) -> bytes:
        if self._file.closed:
            raise ValueError("Content stream is closed")
        self._consumed = True
        return self._file.read(size)

    def __iter__(self) -> Iterator[bytes]:
        if self._consumed:
            raise ValueError("Content stream has already been consumed")
        self._consumed = True
        return self._iter_pieces()

    def _iter_pieces(self) -> Iterator[bytes]:
        try:
            while True:
                piece = self._file.read(self.piece_size)
                if not piece:
                    break
                yield piece
        finally:
            self.close()

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> 'ContentStream':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ContentStream(size={self.size}, consumed={self._consumed}, closed={self.closed})"
