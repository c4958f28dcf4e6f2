"""
Protocols (Interfaces) for Dependency Inversion.

The folder upload core only knows these shapes; the HTTP services in
``bunny_uploader.services`` are one implementation of them.
"""
from pathlib import Path
from typing import Protocol, runtime_checkable

from .utils.cancellation import CancellationToken


@runtime_checkable
class IUploader(Protocol):
    """Performs one file transfer."""

    async def upload(
        self,
        token: CancellationToken,
        local_path: Path,
        relative_path: str,
    ) -> None:
        """
        Upload ``local_path`` to ``relative_path`` on the remote side.

        Raises on failure. Must give up promptly when cancelled.
        """
        ...


@runtime_checkable
class ICachePurger(Protocol):
    """Invalidates CDN caches."""

    async def purge_pull_zone(self, pull_zone_id: str) -> None:
        """Purge the whole cache of a pull zone."""
        ...

    async def purge_url(self, url: str) -> None:
        """Purge one cached URL."""
        ...
