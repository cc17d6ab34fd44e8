"""
Address lookup table fetcher

The router asks a LookupTableFetcher for tables covering a route's accounts
when the legacy transaction does not fit in one packet.
"""

import logging
import struct
import threading
from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.pubkey import Pubkey

from ...infra import RpcClient
from .constants import LOOKUP_TABLE_META_SIZE, ADDRESS_LOOKUP_TABLE_PROGRAM_ID, U64_MAX
from .pool_parser import decode_account_data

logger = logging.getLogger(__name__)


@runtime_checkable
class LookupTableFetcher(Protocol):
    """Source of address lookup tables for v0 transactions"""

    def get_lookup_tables(
        self,
        addresses: Sequence[str],
        use_cache: bool = False,
    ) -> List[AddressLookupTableAccount]:
        """Tables that together cover as many of `addresses` as possible"""
        ...


def parse_lookup_table(data: bytes) -> List[str]:
    """
    Addresses stored in a lookup table account

    Layout:
    - u32: type index (offset 0)
    - u64: deactivation_slot (offset 4), u64::MAX while active
    - u64: last_extended_slot (offset 12)
    - u8: last_extended_slot_start_index (offset 20)
    - Option<Pubkey>: authority (offset 21)
    - padding to 56, then 32-byte addresses
    """
    if len(data) < LOOKUP_TABLE_META_SIZE:
        raise ValueError(f"lookup table data too short: {len(data)} bytes")
    body = data[LOOKUP_TABLE_META_SIZE:]
    return [str(Pubkey.from_bytes(body[i:i + 32])) for i in range(0, len(body) - len(body) % 32, 32)]


def is_active_lookup_table(data: bytes) -> bool:
    deactivation_slot = struct.unpack_from("<Q", data, 4)[0]
    return deactivation_slot == U64_MAX


class RpcLookupTableFetcher:
    """
    Loads a known set of lookup tables through RPC

    Usage:
        fetcher = RpcLookupTableFetcher(rpc, ["ALT address", ...])
        tables = fetcher.get_lookup_tables(route_accounts)
    """

    def __init__(self, rpc: RpcClient, table_addresses: Sequence[str]):
        self._rpc = rpc
        self._table_addresses = list(dict.fromkeys(table_addresses))
        self._tables: Optional[Dict[str, List[str]]] = None
        self._lock = threading.Lock()

    @property
    def table_addresses(self) -> List[str]:
        return list(self._table_addresses)

    def load(self, use_cache: bool = False) -> Dict[str, List[str]]:
        """Fetch and parse all configured tables (table address -> addresses)"""
        with self._lock:
            if use_cache and self._tables is not None:
                return self._tables

            tables: Dict[str, List[str]] = {}
            accounts = self._rpc.get_multiple_accounts(self._table_addresses)
            for address, account in zip(self._table_addresses, accounts):
                if not account:
                    logger.warning(f"Lookup table {address} not found")
                    continue
                if account.get("owner") not in (None, ADDRESS_LOOKUP_TABLE_PROGRAM_ID):
                    logger.warning(f"Account {address} is not a lookup table")
                    continue
                data = decode_account_data(account)
                try:
                    if not is_active_lookup_table(data):
                        logger.warning(f"Lookup table {address} is deactivated")
                        continue
                    tables[address] = parse_lookup_table(data)
                except (TypeError, ValueError, struct.error) as e:
                    logger.warning(f"Cannot parse lookup table {address}: {e}")

            self._tables = tables
            return tables

    def get_lookup_tables(
        self,
        addresses: Sequence[str],
        use_cache: bool = False,
    ) -> List[AddressLookupTableAccount]:
        """
        Tables covering the requested addresses, chosen greedily

        Repeatedly picks the table covering the most still-uncovered
        addresses until no table adds coverage.
        """
        tables = self.load(use_cache=use_cache)
        uncovered = set(addresses)
        chosen: List[str] = []

        while uncovered:
            best, best_cover = None, 0
            for table, entries in tables.items():
                if table in chosen:
                    continue
                cover = len(uncovered.intersection(entries))
                if cover > best_cover:
                    best, best_cover = table, cover
            if best is None:
                break
            chosen.append(best)
            uncovered.difference_update(tables[best])

        logger.debug(f"Selected {len(chosen)} lookup tables, {len(uncovered)} accounts uncovered")
        return [
            AddressLookupTableAccount(
                key=Pubkey.from_string(table),
                addresses=[Pubkey.from_string(a) for a in tables[table]],
            )
            for table in chosen
        ]
