from __future__ import annotations

from typing import Protocol


class MediaStore(Protocol):
    async def upload(self, data: str) -> str:
        """Store a data-URI encoded blob and return its public URL."""
        ...
