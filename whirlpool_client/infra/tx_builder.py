"""
Transaction builder and sender

Provides utilities for:
- Building legacy and v0 transactions (optionally with lookup tables)
- Adding compute budget instructions
- Measuring serialized size against the packet limit
- Sending once and confirming
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message, MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from .rpc import RpcClient
from .solana_signer import Signer
from .cancel import CancelToken, check_cancelled
from ..types import TxResult, LEGACY
from ..errors import TransactionError, TransactionSubmissionError, RpcError
from ..config import config as global_config

logger = logging.getLogger(__name__)

# Maximum serialized transaction size accepted by the cluster
PACKET_DATA_SIZE = 1232


@dataclass
class TxBuilderConfig:
    """
    Transaction builder runtime configuration

    Allows per-builder overrides while pulling defaults from the global
    config (whirlpool_client.config.TxConfig).

    Usage:
        builder = TxBuilder(rpc, signer)

        config = TxBuilderConfig(compute_units=600_000, skip_preflight=True)
        builder = TxBuilder(rpc, signer, config=config)
    """
    compute_units: int = None
    compute_unit_price: int = None
    skip_preflight: bool = None
    preflight_commitment: str = None
    confirm_commitment: str = None
    confirmation_timeout: float = None
    poll_interval: float = None
    node_max_retries: int = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.compute_units is None:
            self.compute_units = global_config.tx.compute_units
        if self.compute_unit_price is None:
            self.compute_unit_price = global_config.tx.compute_unit_price
        if self.skip_preflight is None:
            self.skip_preflight = global_config.tx.skip_preflight
        if self.preflight_commitment is None:
            self.preflight_commitment = global_config.tx.preflight_commitment
        if self.confirm_commitment is None:
            self.confirm_commitment = global_config.tx.confirm_commitment
        if self.confirmation_timeout is None:
            self.confirmation_timeout = global_config.tx.confirmation_timeout
        if self.poll_interval is None:
            self.poll_interval = global_config.tx.poll_interval
        if self.node_max_retries is None:
            self.node_max_retries = global_config.tx.node_max_retries


class TxBuilder:
    """
    Transaction builder and sender

    Handles:
    - Building legacy or v0 transactions with compute budget
    - Signing via the configured signer
    - Sending exactly once (rebroadcast is left to the node)
    - Confirmation polling

    Usage:
        builder = TxBuilder(rpc, signer)

        # Build and send
        result = builder.build_and_send(instructions)

        # Or step by step
        info = rpc.get_latest_blockhash()
        tx_bytes = builder.build(instructions, recent_blockhash=info["blockhash"])
        signed_bytes, sig = builder.sign(tx_bytes)
        result = builder.send(signed_bytes, last_valid_block_height=info["lastValidBlockHeight"])
    """

    def __init__(
        self,
        rpc: RpcClient,
        signer: Signer,
        config: Optional[TxBuilderConfig] = None,
    ):
        self._rpc = rpc
        self._signer = signer
        self._config = config or TxBuilderConfig()

    @property
    def pubkey(self) -> str:
        """Signer's public key"""
        return self._signer.pubkey

    @property
    def config(self) -> TxBuilderConfig:
        return self._config

    def _with_compute_budget(
        self,
        instructions: Sequence[Instruction],
        compute_units: Optional[int],
        compute_unit_price: Optional[int],
    ) -> List[Instruction]:
        cu_limit = compute_units if compute_units is not None else self._config.compute_units
        cu_price = compute_unit_price if compute_unit_price is not None else self._config.compute_unit_price

        all_instructions = []
        if cu_limit > 0:
            all_instructions.append(set_compute_unit_limit(cu_limit))
        if cu_price > 0:
            all_instructions.append(set_compute_unit_price(cu_price))
        all_instructions.extend(instructions)
        return all_instructions

    def _compile(
        self,
        instructions: Sequence[Instruction],
        payer: Optional[str],
        compute_units: Optional[int],
        compute_unit_price: Optional[int],
        blockhash: Hash,
        lookup_tables: Optional[Sequence[AddressLookupTableAccount]],
        version: Union[int, str],
    ) -> VersionedTransaction:
        all_instructions = self._with_compute_budget(instructions, compute_units, compute_unit_price)
        payer_pubkey = Pubkey.from_string(payer or self.pubkey)

        if version == LEGACY:
            if lookup_tables:
                raise TransactionError("Lookup tables require a v0 transaction")
            message = Message.new_with_blockhash(all_instructions, payer_pubkey, blockhash)
        else:
            message = MessageV0.try_compile(
                payer_pubkey,
                all_instructions,
                list(lookup_tables or []),
                blockhash,
            )

        # Placeholder signatures; the array must match num_required_signatures
        num_signers = message.header.num_required_signatures
        return VersionedTransaction.populate(message, [Signature.default()] * num_signers)

    def build(
        self,
        instructions: Sequence[Instruction],
        payer: Optional[str] = None,
        compute_units: Optional[int] = None,
        compute_unit_price: Optional[int] = None,
        recent_blockhash: Optional[str] = None,
        lookup_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
        version: Union[int, str] = 0,
    ) -> bytes:
        """
        Build unsigned transaction

        Args:
            instructions: List of instructions
            payer: Fee payer pubkey (defaults to signer)
            compute_units: Compute unit limit (0 omits the instruction)
            compute_unit_price: Priority fee in microlamports per CU (0 omits the instruction)
            recent_blockhash: Optional blockhash (fetched if not provided)
            lookup_tables: Address lookup tables for a v0 transaction
            version: "legacy" or 0

        Returns:
            Unsigned transaction bytes

        Raises:
            TransactionError: If the transaction exceeds PACKET_DATA_SIZE
        """
        if recent_blockhash is None:
            recent_blockhash = self._rpc.get_latest_blockhash().get("blockhash")

        if not recent_blockhash:
            raise TransactionSubmissionError.send_failed("Failed to get recent blockhash")

        tx = self._compile(
            instructions,
            payer,
            compute_units,
            compute_unit_price,
            Hash.from_string(recent_blockhash),
            lookup_tables,
            version,
        )
        tx_bytes = bytes(tx)
        if len(tx_bytes) > PACKET_DATA_SIZE:
            raise TransactionError.too_large(len(tx_bytes), PACKET_DATA_SIZE)
        return tx_bytes

    def estimate_size(
        self,
        instructions: Sequence[Instruction],
        payer: Optional[str] = None,
        lookup_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
        version: Union[int, str] = LEGACY,
        compute_units: Optional[int] = None,
        compute_unit_price: Optional[int] = None,
    ) -> int:
        """
        Serialized size of the transaction these instructions would produce

        Uses a placeholder blockhash, so no RPC call is made.
        """
        tx = self._compile(
            instructions,
            payer,
            compute_units,
            compute_unit_price,
            Hash.default(),
            lookup_tables,
            version,
        )
        return len(bytes(tx))

    def fits(self, instructions: Sequence[Instruction], **kwargs) -> bool:
        """Whether the transaction fits in a single packet"""
        return self.estimate_size(instructions, **kwargs) <= PACKET_DATA_SIZE

    def sign(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign transaction

        Returns:
            (signed_tx_bytes, signature_base58)
        """
        return self._signer.sign_transaction(unsigned_tx)

    def send(
        self,
        signed_tx: bytes,
        last_valid_block_height: Optional[int] = None,
        skip_preflight: Optional[bool] = None,
        wait_confirmation: bool = True,
        cancel: Optional[CancelToken] = None,
    ) -> TxResult:
        """
        Send signed transaction once and wait for confirmation

        Args:
            signed_tx: Signed transaction bytes
            last_valid_block_height: Expiry height of the transaction's blockhash
            skip_preflight: Skip simulation (default from config)
            wait_confirmation: Wait for confirmation
            cancel: Optional cancel token

        Returns:
            TxResult (SUCCESS, or PENDING when not waiting)

        Raises:
            TransactionSubmissionError: The node rejected the transaction
            TransactionError: The transaction landed and failed on-chain
            ConfirmationTimeoutError: No confirmation in time or blockhash expired
        """
        check_cancelled(cancel, "submission")

        skip = skip_preflight if skip_preflight is not None else self._config.skip_preflight
        node_retries = self._config.node_max_retries if self._config.node_max_retries >= 0 else None
        version = _transaction_version(signed_tx)

        try:
            signature = self._rpc.send_transaction(
                signed_tx,
                skip_preflight=skip,
                preflight_commitment=self._config.preflight_commitment,
                max_retries=node_retries,
            )
        except RpcError as e:
            logger.error(f"Transaction submission failed: {e}")
            raise TransactionSubmissionError.send_failed(e.message, original_error=e) from e

        logger.info(f"Transaction sent: {signature}")

        if not wait_confirmation:
            return TxResult.pending(signature, version=version)

        status = self._rpc.confirm_transaction(
            signature,
            commitment=self._config.confirm_commitment,
            timeout_seconds=self._config.confirmation_timeout,
            last_valid_block_height=last_valid_block_height,
            poll_interval=self._config.poll_interval,
            cancel=cancel,
        )

        if status.get("err"):
            raise TransactionError.failed_on_chain(signature, status["err"])

        logger.info(f"Transaction confirmed: {signature} (slot {status.get('slot')})")
        return TxResult.success(
            signature,
            slot=status.get("slot"),
            confirmation_status=status.get("confirmationStatus"),
            version=version,
        )

    def build_and_send(
        self,
        instructions: Sequence[Instruction],
        compute_units: Optional[int] = None,
        compute_unit_price: Optional[int] = None,
        lookup_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
        version: Union[int, str] = 0,
        skip_preflight: Optional[bool] = None,
        wait_confirmation: bool = True,
        cancel: Optional[CancelToken] = None,
    ) -> TxResult:
        """
        Build, sign, and send transaction in one call

        The blockhash's lastValidBlockHeight bounds the confirmation wait.
        """
        check_cancelled(cancel, "build")

        blockhash_info = self._rpc.get_latest_blockhash()

        unsigned_tx = self.build(
            instructions,
            compute_units=compute_units,
            compute_unit_price=compute_unit_price,
            recent_blockhash=blockhash_info.get("blockhash"),
            lookup_tables=lookup_tables,
            version=version,
        )

        signed_tx, _ = self.sign(unsigned_tx)

        return self.send(
            signed_tx,
            last_valid_block_height=blockhash_info.get("lastValidBlockHeight"),
            skip_preflight=skip_preflight,
            wait_confirmation=wait_confirmation,
            cancel=cancel,
        )


def _transaction_version(tx_bytes: bytes) -> Union[int, str]:
    message = VersionedTransaction.from_bytes(tx_bytes).message
    return 0 if isinstance(message, MessageV0) else LEGACY
