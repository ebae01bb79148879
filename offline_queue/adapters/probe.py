"""TCP reachability probe used to feed the connectivity monitor."""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class TcpProbe:
    """Reports the network as reachable if a TCP connection opens in time.

    Example:
        probe = TcpProbe("1.1.1.1", 443, timeout=3.0)
        online = await probe()
    """

    def __init__(self, host: str, port: int, timeout: float = 3.0) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.host = host
        self.port = port
        self.timeout = timeout

    async def __call__(self) -> bool:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug("Probe %s:%d unreachable: %s", self.host, self.port, e)
            return False

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug("Probe connection close failed: %s", e)
        return True

    def __repr__(self) -> str:
        return f"TcpProbe(host={self.host!r}, port={self.port}, timeout={self.timeout})"
