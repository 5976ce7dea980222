"""Project-wide constants (stream piece size, sentinels, default ports)."""

STREAM_PIECE_SIZE: int = 64 * 1024  # 64 KiB read/write unit for payload streams

UNSET_SIZE: int = -1  # size of a package whose content has not been written yet

DEFAULT_CHECKSUM_ALGORITHM: str = "md5"

DEFAULT_SERVER_PORT: int = 8000

DEFAULT_BLOB_STORAGE_PATH: str = "/app/data/blobs"

# Characters trimmed from a version id before the blank check: ASCII control characters and space
VERSION_TRIM_CHARS: str = "".join(chr(code) for code in range(0x21))
