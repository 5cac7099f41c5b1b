"""Project-wide constants (piece and segment sizing, remote API defaults)."""

PIECE_SIZE_BYTES: int = 25 * 1024 * 1024  # 25 MiB per-attachment limit
SEGMENT_CAP: int = 10  # pieces per finalized message
SEGMENT_SIZE_BYTES: int = PIECE_SIZE_BYTES * SEGMENT_CAP
READ_BUFFER_BYTES: int = 4 * 1024 * 1024

DEFAULT_API_BASE_URL: str = "https://discord.com/api/v9"
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 30.0
DEFAULT_RATE_LIMIT_MAX_ATTEMPTS: int = 50

CATALOG_FILENAME: str = "thunderspear.json"
