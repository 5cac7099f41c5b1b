"""Single-use cancellation token shared by the tasks of one upload."""

import asyncio

from uploader.exceptions import UploadCancelledError


class CancellationToken:
    """
    Fires once; every segment task and chunk of an upload holds the same token.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """
        Fire the token.

        Returns:
            True if this call fired it, False if it had already fired
        """
        if self._event.is_set():
            return False
        self._event.set()
        return True

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise UploadCancelledError("Upload cancelled")
