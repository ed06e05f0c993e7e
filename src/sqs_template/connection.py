"""SQS client management."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiobotocore.session import AioSession

logger = logging.getLogger("sqs_template.connection")


class SQSConnectionManager:
    """Owns one shared aiobotocore SQS client, created on first use."""

    def __init__(
        self,
        region_name: str = "us-east-1",
        *,
        session: AioSession | None = None,
        **client_kwargs: Any,
    ) -> None:
        """Configure region and optional session/client kwargs.

        ``client_kwargs`` are passed to ``create_client`` (e.g. ``endpoint_url``
        for LocalStack, or a botocore ``config``).
        """
        self._region = region_name
        self._session = session or AioSession()
        self._client_kwargs = client_kwargs
        self._client: Any = None
        self._client_cm: Any = None
        self._lock = asyncio.Lock()

    async def get_client(self) -> Any:
        """Return shared SQS client; create if needed."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    logger.debug("Creating SQS client for region %s", self._region)
                    client_cm = self._session.create_client(
                        "sqs",
                        region_name=self._region,
                        **self._client_kwargs,
                    )
                    self._client = await client_cm.__aenter__()
                    self._client_cm = client_cm
        return self._client

    async def close(self) -> None:
        """Close the client if open."""
        if self._client_cm is not None:
            await self._client_cm.__aexit__(None, None, None)
            self._client_cm = None
            self._client = None

    async def health_check(self) -> bool:
        """Return True if we can list queues (lightweight check)."""
        try:
            client = await self.get_client()
            await client.list_queues(MaxResults=1)
            return True
        except Exception:  # noqa: BLE001
            logger.debug("SQS health check failed", exc_info=True)
            return False
