import asyncio
from typing import Any, AsyncGenerator, Mapping

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential
)
from web3 import AsyncWeb3, AsyncHTTPProvider, WebSocketProvider
from web3.exceptions import ProviderConnectionError
from websockets.exceptions import ConnectionClosedError

from seawatch.shared.core.config import ChainConfig
from seawatch.shared.core.exceptions import ChainClientError
from seawatch.shared.core.models import ChainLog
from seawatch.shared.utils.logger import LoggerSetup


def to_hex(value: Any) -> str:
    """Render bytes-like or hex string values as 0x-prefixed lower-case hex"""
    if isinstance(value, str):
        return value.lower() if value.startswith("0x") else f"0x{value.lower()}"
    return AsyncWeb3.to_hex(value)


def normalize_log(raw: Mapping[str, Any]) -> ChainLog:
    """Convert a provider log receipt into a ChainLog"""
    return ChainLog(
        address=AsyncWeb3.to_checksum_address(raw["address"]),
        topics=tuple(to_hex(t) for t in raw.get("topics") or ()),
        data=to_hex(raw.get("data") or b""),
        block_number=int(raw["blockNumber"]),
        tx_hash=to_hex(raw["transactionHash"]),
        log_index=int(raw["logIndex"])
    )


class Web3ChainClient:
    """
    Ledger node client built on AsyncWeb3.

    Handles:
    - Connection setup with retries (startup only)
    - Chain head lookup
    - Paged eth_getLogs queries streamed as normalized ChainLog models

    Request deadlines come from the provider, calls are never retried here.
    """

    def __init__(self, config: ChainConfig):
        self._config = config
        self._w3: AsyncWeb3 | None = None
        self.logger = LoggerSetup.setup(__class__.__name__)

    @property
    def is_connected(self) -> bool:
        return self._w3 is not None

    async def connect(self) -> None:
        """
        Open the provider connection.

        Raises:
            ChainClientError: If the node stays unreachable after all retries.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._config.connect_retries),
                wait=wait_exponential(multiplier=1, min=1, max=30),
                retry=retry_if_exception_type((
                    ProviderConnectionError,
                    ConnectionClosedError,
                    ConnectionError,
                    asyncio.TimeoutError
                )),
                reraise=True
            ):
                with attempt:
                    await self._open()
        except Exception as e:
            self.logger.error(f"Failed to connect to node {self._config.ws_url}: {e}")
            raise ChainClientError(f"Node connection failed: {str(e)}") from e

        self.logger.info(f"Connected to node {self._config.ws_url}")

    async def _open(self) -> None:
        if self._config.is_websocket:
            w3 = AsyncWeb3(WebSocketProvider(self._config.ws_url))
            await w3.provider.connect()
        else:
            w3 = AsyncWeb3(AsyncHTTPProvider(self._config.ws_url))
            if not await w3.is_connected():
                raise ProviderConnectionError(f"Node at {self._config.ws_url} is not reachable")
        self._w3 = w3

    def _require(self) -> AsyncWeb3:
        if self._w3 is None:
            raise ChainClientError("Chain client not connected")
        return self._w3

    async def get_block_number(self) -> int:
        """
        Get the current chain head height.

        Raises:
            ChainClientError: On any transport failure.
        """
        w3 = self._require()
        try:
            return int(await w3.eth.block_number)
        except Exception as e:
            self.logger.error(f"Error fetching chain head: {e}")
            raise ChainClientError(f"Failed to fetch chain head: {str(e)}") from e

    async def iter_logs(self,
                        address: str,
                        topic: str,
                        from_block: int,
                        to_block: int) -> AsyncGenerator[ChainLog, None]:
        """
        Stream logs for one event signature over an inclusive block range.

        The range is queried in pages of at most `max_block_range` blocks; each
        page is yielded in (block number, log index) order.

        Args:
            address: Emitting contract address
            topic: Topic-0 (event signature hash)
            from_block: First block, inclusive
            to_block: Last block, inclusive

        Raises:
            ChainClientError: If any page query fails.
        """
        w3 = self._require()
        checksum = AsyncWeb3.to_checksum_address(address)
        page = self._config.max_block_range

        current = from_block
        while current <= to_block:
            end = min(current + page - 1, to_block)
            try:
                raw_logs = await w3.eth.get_logs({
                    "address": checksum,
                    "fromBlock": current,
                    "toBlock": end,
                    "topics": [topic]
                })
            except Exception as e:
                self.logger.error(
                    f"Error querying logs for {checksum} topic {topic} in [{current}, {end}]: {e}"
                )
                raise ChainClientError(f"Failed to query logs: {str(e)}") from e

            logs = sorted(
                self._normalize_page(raw_logs),
                key=lambda log: (log.block_number, log.log_index)
            )
            self.logger.debug(f"Fetched {len(logs)} logs for topic {topic[:10]} in [{current}, {end}]")

            for log in logs:
                yield log

            current = end + 1

    def _normalize_page(self, raw_logs: list[Any]) -> list[ChainLog]:
        """Normalize a page of raw logs, skipping removed or malformed entries"""
        logs = []
        for raw in raw_logs:
            if raw.get("removed", False):
                continue
            try:
                logs.append(normalize_log(raw))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.warning(f"Skipping malformed log {raw.get('transactionHash')}: {e}")
        return logs

    async def close(self) -> None:
        """Disconnect the provider"""
        if self._w3 is None:
            return
        try:
            if self._config.is_websocket:
                await self._w3.provider.disconnect()
        except Exception as e:
            self.logger.warning(f"Error closing node connection: {e}")
        finally:
            self._w3 = None
