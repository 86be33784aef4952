"""Account state as stored on chain and as sent to subscribers."""

from __future__ import annotations

from dataclasses import dataclass

from .compression import CompressionKind, CompressionType
from .primitives import Pubkey, SlotIdentifier
from .wire import Decoder, Encoder


@dataclass(frozen=True)
class SolanaAccount:
    """An account's full, uncompressed state."""

    lamports: int
    data: bytes
    owner: Pubkey
    executable: bool
    rent_epoch: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def encode(self, encoder: Encoder) -> None:
        encoder.write_u64(self.lamports)
        encoder.write_bytes(self.data)
        self.owner.encode(encoder)
        encoder.write_bool(self.executable)
        encoder.write_u64(self.rent_epoch)

    @classmethod
    def decode(cls, decoder: Decoder) -> "SolanaAccount":
        return cls(
            lamports=decoder.read_u64(),
            data=decoder.read_bytes(),
            owner=Pubkey.decode(decoder),
            executable=decoder.read_bool(),
            rent_epoch=decoder.read_u64(),
        )


@dataclass(frozen=True)
class AccountData:
    """An account update as produced by the validator."""

    pubkey: Pubkey
    account: SolanaAccount
    write_version: int


@dataclass(frozen=True, order=True)
class Account:
    """An account update as sent to subscribers, data possibly compressed."""

    slot_identifier: SlotIdentifier
    pubkey: Pubkey
    owner: Pubkey
    lamports: int
    executable: bool
    rent_epoch: int
    write_version: int
    data: bytes
    compression_type: CompressionType
    data_length: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def new(
        cls,
        pubkey: Pubkey,
        solana_account: SolanaAccount,
        compression_type: CompressionType,
        slot_identifier: SlotIdentifier,
        write_version: int,
    ) -> "Account":
        """Build an update, compressing the account data as asked."""
        return cls(
            slot_identifier=slot_identifier,
            pubkey=pubkey,
            owner=solana_account.owner,
            lamports=solana_account.lamports,
            executable=solana_account.executable,
            rent_epoch=solana_account.rent_epoch,
            write_version=write_version,
            data=compression_type.compress(solana_account.data),
            compression_type=compression_type,
            data_length=len(solana_account.data),
        )

    def solana_account(self) -> SolanaAccount:
        """Return the account state with its data uncompressed."""
        if self.compression_type.kind == CompressionKind.NONE:
            data = self.data
        elif self.data_length > 0:
            data = self.compression_type.decompress(self.data)
        else:
            data = b""
        return SolanaAccount(
            lamports=self.lamports,
            data=data,
            owner=self.owner,
            executable=self.executable,
            rent_epoch=self.rent_epoch,
        )

    def encode(self, encoder: Encoder) -> None:
        self.slot_identifier.encode(encoder)
        self.pubkey.encode(encoder)
        self.owner.encode(encoder)
        encoder.write_u64(self.lamports)
        encoder.write_bool(self.executable)
        encoder.write_u64(self.rent_epoch)
        encoder.write_u64(self.write_version)
        encoder.write_bytes(self.data)
        self.compression_type.encode(encoder)
        encoder.write_u64(self.data_length)

    @classmethod
    def decode(cls, decoder: Decoder) -> "Account":
        return cls(
            slot_identifier=SlotIdentifier.decode(decoder),
            pubkey=Pubkey.decode(decoder),
            owner=Pubkey.decode(decoder),
            lamports=decoder.read_u64(),
            executable=decoder.read_bool(),
            rent_epoch=decoder.read_u64(),
            write_version=decoder.read_u64(),
            data=decoder.read_bytes(),
            compression_type=CompressionType.decode(decoder),
            data_length=decoder.read_u64(),
        )