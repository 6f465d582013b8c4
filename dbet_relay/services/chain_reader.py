"""
Read-only access to dBet prediction market contracts.

Wraps the market contract and its position NFT. Every call is time-bounded
and any failure surfaces as ChainReadError; nothing falls back to a zero or
default value.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Optional

from web3 import AsyncWeb3, Web3

from dbet_relay.errors import ChainReadError, UpstreamTimeoutError
from dbet_relay.utils.logging import LoggerMixin

PREDICTION_MARKET_ABI = [
    {
        "inputs": [{"name": "", "type": "uint256"}],
        "name": "options",
        "outputs": [
            {"name": "name", "type": "bytes32"},
            {"name": "totalPool", "type": "uint256"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "totalPool",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "isResolved",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "winningOptionIndex",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "positionNFT",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]

POSITION_NFT_ABI = [
    {
        "inputs": [{"name": "", "type": "uint256"}],
        "name": "tokenOption",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT256 = 2**256 - 1


@dataclass(frozen=True)
class MarketOption:
    """One option of a market and its pooled stake."""
    index: int
    name: str
    total_pool: int


@dataclass(frozen=True)
class PositionView:
    """Live chain state relevant to one position NFT. Never cached."""
    market_address: str
    token_id: int
    position_nft: str
    option_index: int
    options: tuple[MarketOption, ...]
    total_pool: int
    is_resolved: bool
    winning_option_index: Optional[int]

    @property
    def option(self) -> MarketOption:
        """The option this position backs."""
        for option in self.options:
            if option.index == self.option_index:
                return option
        raise ChainReadError(f"Position backs unknown option {self.option_index}")

    @property
    def option_stake(self) -> int:
        return self.option.total_pool


def is_valid_address(address: str) -> bool:
    """Check an EVM address the way ethers.isAddress does.

    Single-case hex is accepted as-is; mixed case must carry a valid
    EIP-55 checksum.
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        return False
    body = address[2:] if address[:2].lower() == "0x" else address
    if body == body.lower() or body == body.upper():
        return True
    return Web3.is_checksum_address(address)


def decode_option_name(raw: bytes) -> str:
    """Decode a bytes32 option label, dropping NUL padding."""
    if isinstance(raw, str):
        return raw
    return bytes(raw).rstrip(b"\x00").decode("utf-8", errors="replace")


def _require_uint(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ChainReadError(f"Malformed {what} returned by contract: {value!r}")
    return value


class ChainReader(LoggerMixin):
    """Read-only client for a market contract and its position NFT."""

    def __init__(
        self,
        web3: AsyncWeb3,
        timeout: float = 10.0,
        option_count: int = 2,
    ):
        self.web3 = web3
        self.timeout = timeout
        self.option_count = option_count

    @classmethod
    def from_rpc_url(cls, rpc_url: str, timeout: float = 10.0, option_count: int = 2) -> "ChainReader":
        """Build a reader with its own async HTTP provider."""
        web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        return cls(web3, timeout=timeout, option_count=option_count)

    # ===================
    # Contracts
    # ===================

    def _market(self, market_address: str):
        if not is_valid_address(market_address):
            raise ChainReadError(f"Invalid market address: {market_address}")
        return self.web3.eth.contract(
            address=Web3.to_checksum_address(market_address),
            abi=PREDICTION_MARKET_ABI,
        )

    def _position_nft(self, nft_address: str):
        if not is_valid_address(nft_address) or nft_address.lower() == ZERO_ADDRESS:
            raise ChainReadError(f"Market has no position NFT: {nft_address}")
        return self.web3.eth.contract(
            address=Web3.to_checksum_address(nft_address),
            abi=POSITION_NFT_ABI,
        )

    async def _call(self, awaitable: Awaitable[Any], what: str) -> Any:
        """Await a contract call within the timeout, normalizing failures."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(f"Timed out reading {what} after {self.timeout}s") from e
        except ChainReadError:
            raise
        except Exception as e:
            raise ChainReadError(f"Failed to read {what}: {type(e).__name__}: {e}") from e

    # ===================
    # Individual reads
    # ===================

    async def get_position_nft(self, market_address: str) -> str:
        """Address of the position NFT contract linked to a market."""
        market = self._market(market_address)
        address = await self._call(market.functions.positionNFT().call(), "positionNFT")
        if not is_valid_address(address):
            raise ChainReadError(f"Malformed positionNFT returned by contract: {address!r}")
        return address

    async def get_position_option(self, nft_address: str, token_id: int) -> int:
        """Option index a position token backs."""
        nft = self._position_nft(nft_address)
        value = await self._call(nft.functions.tokenOption(token_id).call(), f"tokenOption({token_id})")
        return _require_uint(value, "tokenOption")

    async def get_option(self, market_address: str, index: int) -> MarketOption:
        market = self._market(market_address)
        result = await self._call(market.functions.options(index).call(), f"options({index})")
        try:
            raw_name, pool = result
        except (TypeError, ValueError) as e:
            raise ChainReadError(f"Malformed options({index}) returned by contract: {result!r}") from e
        return MarketOption(
            index=index,
            name=decode_option_name(raw_name),
            total_pool=_require_uint(pool, f"options({index}).totalPool"),
        )

    async def get_total_pool(self, market_address: str) -> int:
        market = self._market(market_address)
        value = await self._call(market.functions.totalPool().call(), "totalPool")
        return _require_uint(value, "totalPool")

    async def is_resolved(self, market_address: str) -> bool:
        market = self._market(market_address)
        value = await self._call(market.functions.isResolved().call(), "isResolved")
        if not isinstance(value, bool):
            raise ChainReadError(f"Malformed isResolved returned by contract: {value!r}")
        return value

    async def get_winning_option_index(self, market_address: str) -> int:
        market = self._market(market_address)
        value = await self._call(market.functions.winningOptionIndex().call(), "winningOptionIndex")
        return _require_uint(value, "winningOptionIndex")

    # ===================
    # Position view
    # ===================

    async def read_position_view(self, market_address: str, token_id: int) -> PositionView:
        """Read everything needed to render a position.

        Independent reads run concurrently; the tokenOption lookup waits on
        positionNFT. A single failing read fails the whole view.
        """
        async def position_lookup() -> tuple[str, int]:
            nft_address = await self.get_position_nft(market_address)
            option_index = await self.get_position_option(nft_address, token_id)
            return nft_address, option_index

        option_reads = [self.get_option(market_address, i) for i in range(self.option_count)]
        (nft_address, option_index), total_pool, resolved, *options = await asyncio.gather(
            position_lookup(),
            self.get_total_pool(market_address),
            self.is_resolved(market_address),
            *option_reads,
        )

        winning_index = None
        if resolved:
            winning_index = await self.get_winning_option_index(market_address)

        if option_index not in {option.index for option in options}:
            raise ChainReadError(
                f"Position {token_id} backs option {option_index}, "
                f"market exposes {self.option_count} options"
            )

        view = PositionView(
            market_address=market_address,
            token_id=token_id,
            position_nft=nft_address,
            option_index=option_index,
            options=tuple(options),
            total_pool=total_pool,
            is_resolved=resolved,
            winning_option_index=winning_index,
        )
        self.log.debug(
            "position_view_read",
            market=market_address,
            token_id=token_id,
            option_index=option_index,
            total_pool=str(total_pool),
            is_resolved=resolved,
        )
        return view

    async def close(self) -> None:
        """Close the underlying provider session."""
        provider = self.web3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
