"""
Whirlpool account fetcher

Reads pools, tick array existence and owner token accounts through the RPC
client. Every read takes an explicit use_cache flag: False always goes to the
network (and refreshes the cache), True may serve an entry younger than the
configured TTL.
"""

import logging
import threading
import time
from typing import Any, Dict, Iterable, List, Optional, Set

from ...infra import RpcClient, CancelToken, check_cancelled
from ...types import Whirlpool
from ...errors import PoolNotFoundError, RpcError
from ...config import config as global_config
from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    WHIRLPOOL_ACCOUNT_SIZE,
    WHIRLPOOL_CONFIG_OFFSET,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
)
from .pool_parser import parse_whirlpool_account, decode_account_data

logger = logging.getLogger(__name__)

# getMultipleAccounts accepts at most 100 keys per request
MAX_MULTIPLE_ACCOUNTS = 100

_MISSING = object()


class _CacheEntry:
    """Cached account value with TTL"""
    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, ttl: float):
        self.value = value
        self.expires_at = time.monotonic() + ttl

    @property
    def expired(self) -> bool:
        return time.monotonic() > self.expires_at


class AccountCache:
    """
    Thread-safe TTL cache keyed by account address

    Expired entries are swept whenever the cache reaches max_entries; if it is
    still full after the sweep the oldest insertions are evicted.
    """

    def __init__(self, ttl_seconds: float, max_entries: int = 10_000):
        self._ttl = ttl_seconds
        self._max_entries = max(1, max_entries)
        self._entries: Dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        """Cached value, or _MISSING when absent or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return _MISSING
            if entry.expired:
                del self._entries[key]
                return _MISSING
            return entry.value

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries.pop(key, None)
            if len(self._entries) >= self._max_entries:
                self._sweep_locked()
                while len(self._entries) >= self._max_entries:
                    del self._entries[next(iter(self._entries))]
            self._entries[key] = _CacheEntry(value, self._ttl)

    def purge_expired(self) -> int:
        """Drop every expired entry, returning how many were removed"""
        with self._lock:
            return self._sweep_locked()

    def _sweep_locked(self) -> int:
        stale = [key for key, entry in self._entries.items() if entry.expired]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def invalidate(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class WhirlpoolFetcher:
    """
    Whirlpool state reader

    Usage:
        fetcher = WhirlpoolFetcher(rpc)
        pool = fetcher.get_pool(address)                      # always fresh
        pools = fetcher.get_all_pools_for_config(config_id)   # getProgramAccounts
    """

    def __init__(
        self,
        rpc: RpcClient,
        program_id: str = WHIRLPOOL_PROGRAM_ID,
        cache_ttl_seconds: Optional[float] = None,
    ):
        self._rpc = rpc
        self._program_id = program_id
        ttl = cache_ttl_seconds if cache_ttl_seconds is not None else global_config.cache.ttl_seconds
        self._cache = AccountCache(ttl, global_config.cache.max_entries)

    @property
    def program_id(self) -> str:
        return self._program_id

    @property
    def cache(self) -> AccountCache:
        return self._cache

    def get_pool(
        self,
        address: str,
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Whirlpool:
        """
        Fetch and parse one Whirlpool

        Raises:
            PoolNotFoundError: Missing or non-Whirlpool account
            RpcError: Transport failure
        """
        if use_cache:
            cached = self._cache.get(address)
            if cached is not _MISSING:
                return cached

        check_cancelled(cancel, "pool fetch")
        account = self._rpc.get_account_info(address)
        pool = parse_whirlpool_account(address, account, self._program_id)
        self._cache.put(address, pool)
        return pool

    def get_pools(
        self,
        addresses: Iterable[str],
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Whirlpool]:
        """
        Fetch several Whirlpools

        Missing or invalid accounts are logged and left out of the result.
        """
        result: Dict[str, Whirlpool] = {}
        to_fetch: List[str] = []
        for address in dict.fromkeys(addresses):
            cached = self._cache.get(address) if use_cache else _MISSING
            if cached is _MISSING:
                to_fetch.append(address)
            else:
                result[address] = cached

        for chunk in _chunks(to_fetch, MAX_MULTIPLE_ACCOUNTS):
            check_cancelled(cancel, "pool fetch")
            accounts = self._rpc.get_multiple_accounts(chunk)
            for address, account in zip(chunk, accounts):
                try:
                    pool = parse_whirlpool_account(address, account, self._program_id)
                except PoolNotFoundError as e:
                    logger.warning(f"Skipping pool {address}: {e.message}")
                    continue
                self._cache.put(address, pool)
                result[address] = pool

        return result

    def get_all_pools_for_config(
        self,
        config_id: str,
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> List[Whirlpool]:
        """
        All Whirlpools belonging to a WhirlpoolsConfig

        Uses getProgramAccounts filtered by account size and the config pubkey.
        """
        cache_key = f"config:{config_id}"
        if use_cache:
            cached = self._cache.get(cache_key)
            if cached is not _MISSING:
                return list(cached)

        check_cancelled(cancel, "pool discovery")
        filters = [
            {"dataSize": WHIRLPOOL_ACCOUNT_SIZE},
            {"memcmp": {"offset": WHIRLPOOL_CONFIG_OFFSET, "bytes": config_id}},
        ]
        accounts = self._rpc.get_program_accounts(self._program_id, filters=filters)

        pools = []
        for item in accounts:
            address = item.get("pubkey")
            account = item.get("account")
            try:
                pool = parse_whirlpool_account(address, account, self._program_id)
            except PoolNotFoundError as e:
                logger.debug(f"Ignoring account {address}: {e.message}")
                continue
            self._cache.put(address, pool)
            pools.append(pool)

        logger.info(f"Found {len(pools)} whirlpools for config {config_id}")
        self._cache.put(cache_key, tuple(pools))
        return pools

    def accounts_exist(
        self,
        addresses: Iterable[str],
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Dict[str, bool]:
        """Existence of each account, one getMultipleAccounts call per 100 keys"""
        result: Dict[str, bool] = {}
        to_fetch: List[str] = []
        for address in dict.fromkeys(addresses):
            cached = self._cache.get(f"exists:{address}") if use_cache else _MISSING
            if cached is _MISSING:
                to_fetch.append(address)
            else:
                result[address] = cached

        for chunk in _chunks(to_fetch, MAX_MULTIPLE_ACCOUNTS):
            check_cancelled(cancel, "account lookup")
            accounts = self._rpc.get_multiple_accounts(chunk)
            for address, account in zip(chunk, accounts):
                exists = account is not None
                self._cache.put(f"exists:{address}", exists)
                result[address] = exists

        return result

    def get_owner_token_accounts(
        self,
        owner: str,
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Set[str]:
        """Addresses of all token accounts held by owner (Token and Token-2022)"""
        cache_key = f"token_accounts:{owner}"
        if use_cache:
            cached = self._cache.get(cache_key)
            if cached is not _MISSING:
                return set(cached)

        accounts: Set[str] = set()
        for program_id in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
            check_cancelled(cancel, "token account lookup")
            try:
                items = self._rpc.get_token_accounts_by_owner(owner, program_id)
            except RpcError as e:
                # Token-2022 is not deployed on every cluster
                if program_id == TOKEN_PROGRAM_ID:
                    raise
                logger.debug(f"Token-2022 account lookup failed: {e}")
                continue
            accounts.update(item["pubkey"] for item in items if item.get("pubkey"))

        self._cache.put(cache_key, frozenset(accounts))
        return accounts

    def get_account_data(self, address: str, use_cache: bool = False) -> Optional[bytes]:
        """Raw data of any account, None if it does not exist"""
        cache_key = f"data:{address}"
        if use_cache:
            cached = self._cache.get(cache_key)
            if cached is not _MISSING:
                return cached

        data = decode_account_data(self._rpc.get_account_info(address))
        self._cache.put(cache_key, data)
        return data

    def invalidate(self, address: Optional[str] = None) -> None:
        """Drop one cached entry, or the whole cache"""
        self._cache.invalidate(address)


def _chunks(items: List[str], size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]
