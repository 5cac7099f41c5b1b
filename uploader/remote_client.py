"""HTTP client for the remote channel store: negotiate, put, finalize, fetch."""

from typing import AsyncIterator, Optional

import httpx

from common.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    SEGMENT_CAP,
)
from common.logging_config import get_logger
from common.types import UploadSlot
from uploader.exceptions import (
    MissingCredentialsError,
    RateLimitedError,
    UnexpectedResponseError,
)
from uploader.reader import Chunk

logger = get_logger(__name__)


class RemoteStorageClient:
    """
    Async HTTP client for the three upload operations plus message lookup.

    Every call returns its success payload, raises RateLimitedError on 429,
    and raises UnexpectedResponseError on anything else. Nothing here retries.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        segment_cap: int = SEGMENT_CAP,
        session: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize remote client.

        Args:
            token: Value of the Authorization header
            base_url: API root (e.g., "https://discord.com/api/v9")
            timeout: Timeout for negotiate/finalize/lookup requests in seconds
            segment_cap: Pieces per segment, used to number piece filenames
            session: Pre-built httpx.AsyncClient (tests inject a MockTransport here)
        """
        self.token = token
        self.base_url = base_url
        self.timeout = timeout
        self.segment_cap = segment_cap
        self.session = session or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        logger.info(f"Initialized RemoteStorageClient [base_url={base_url}]")

    def _auth_headers(self) -> dict:
        if not self.token:
            raise MissingCredentialsError("No token configured. Please run: token <token>")
        return {
            'Authorization': self.token,
            'Content-Type': 'application/json',
        }

    def _parse_response(self, response: httpx.Response, operation: str) -> dict:
        """
        Map a response to its JSON payload or to the matching exception.

        Raises:
            RateLimitedError: On 429, carrying the server's retry_after
            UnexpectedResponseError: On any other non-200 status
        """
        if response.status_code == 429:
            try:
                retry_after = float(response.json().get('retry_after', 1.0))
            except ValueError:
                retry_after = 1.0
            logger.debug(f"{operation} rate limited, retry after {retry_after}s")
            raise RateLimitedError(retry_after)

        if response.status_code != 200:
            logger.error(f"{operation} failed: status={response.status_code}")
            raise UnexpectedResponseError(response.status_code, response.text)

        return response.json()

    def piece_filename(self, segment_index: int, piece_index: int) -> str:
        return str(segment_index * self.segment_cap + piece_index)

    async def negotiate_upload_slots(
        self, channel: str, segment_index: int, piece_sizes: list[int]
    ) -> list[UploadSlot]:
        """
        Request one upload destination per piece of a segment.

        Args:
            channel: Target channel id
            segment_index: Index of the segment within the file
            piece_sizes: Byte size of every piece, in order

        Returns:
            One UploadSlot per piece, in the same order
        """
        body = {
            'files': [
                {
                    'file_size': size,
                    'filename': self.piece_filename(segment_index, i),
                    'id': '0',
                    'is_clip': False,
                }
                for i, size in enumerate(piece_sizes)
            ]
        }

        response = await self.session.post(
            f'/channels/{channel}/attachments',
            json=body,
            headers=self._auth_headers(),
        )
        data = self._parse_response(response, f"Negotiate segment {segment_index}")

        return [
            UploadSlot(
                upload_url=attachment['upload_url'],
                upload_filename=attachment['upload_filename'],
            )
            for attachment in data['attachments']
        ]

    async def put_piece(self, upload_url: str, chunk: Chunk) -> None:
        """
        Stream one chunk to its negotiated destination.

        Transport errors propagate unchanged; a non-2xx answer raises
        UnexpectedResponseError.
        """
        response = await self.session.put(
            upload_url,
            content=chunk,
            headers={
                'Content-Type': 'application/octet-stream',
                'Content-Length': str(chunk.size),
            },
            timeout=None,
        )
        if not response.is_success:
            logger.error(f"Piece upload failed: status={response.status_code}")
            raise UnexpectedResponseError(response.status_code, response.text)

    async def finalize_segment(
        self, channel: str, slots: list[UploadSlot], segment_index: int
    ) -> str:
        """
        Post an empty message referencing every uploaded slot of a segment.

        Returns:
            Remote message id of the new message
        """
        body = {
            'attachments': [
                {
                    'filename': self.piece_filename(segment_index, i),
                    'uploaded_filename': slot.upload_filename,
                    'id': str(i),
                }
                for i, slot in enumerate(slots)
            ],
            'channel_id': channel,
            'content': '',
            'type': 0,
            'sticker_ids': [],
        }

        response = await self.session.post(
            f'/channels/{channel}/messages',
            json=body,
            headers=self._auth_headers(),
        )
        data = self._parse_response(response, f"Finalize segment {segment_index}")
        return data['id']

    async def fetch_segment_urls(self, channel: str, message_id: str) -> list[str]:
        """
        Look up a finalized segment message and return its attachment URLs in piece order.
        """
        response = await self.session.get(
            f'/channels/{channel}/messages/{message_id}',
            headers=self._auth_headers(),
        )
        data = self._parse_response(response, f"Fetch message {message_id}")

        def piece_order(attachment: dict) -> int:
            try:
                return int(attachment.get('filename', ''))
            except ValueError:
                return 0

        attachments = sorted(data.get('attachments', []), key=piece_order)
        return [attachment['url'] for attachment in attachments]

    async def stream_attachment(self, url: str) -> AsyncIterator[bytes]:
        """Yield the bytes of one attachment as they arrive."""
        async with self.session.stream('GET', url, timeout=None) as response:
            if response.status_code != 200:
                await response.aread()
                raise UnexpectedResponseError(response.status_code, response.text)
            async for data in response.aiter_bytes():
                yield data

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()
