"""Transactions, their messages and execution metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, ClassVar, FrozenSet, Iterable, List, Optional, TypeVar, Union

from .block_meta import Reward
from .primitives import Hash, Pubkey, Signature, SlotIdentifier
from .wire import Decoder, Encoder, WireError

T = TypeVar("T")

_SHORT_LEN_MAX = 0xFFFF


def _write_short_len(encoder: Encoder, length: int) -> None:
    if length > _SHORT_LEN_MAX:
        raise WireError(f"sequence too long for a short length: {length}")
    remaining = length
    while True:
        byte = remaining & 0x7F
        remaining >>= 7
        if remaining == 0:
            encoder.write_u8(byte)
            return
        encoder.write_u8(byte | 0x80)


def _read_short_len(decoder: Decoder) -> int:
    value = 0
    for position in range(3):
        byte = decoder.read_u8()
        if position > 0 and byte == 0:
            raise WireError("non-canonical short length")
        if position == 2 and byte > 0x03:
            raise WireError("short length overflows 16 bits")
        value |= (byte & 0x7F) << (7 * position)
        if not byte & 0x80:
            return value
    raise WireError("short length too long")


def _write_short_seq(
    encoder: Encoder, items: Iterable[T], write_item: Callable[[T], None]
) -> None:
    items = list(items)
    _write_short_len(encoder, len(items))
    for item in items:
        write_item(item)


def _read_short_seq(decoder: Decoder, read_item: Callable[[], T]) -> List[T]:
    return [read_item() for _ in range(_read_short_len(decoder))]


def _write_short_bytes(encoder: Encoder, data: bytes) -> None:
    _write_short_len(encoder, len(data))
    encoder.write_raw(data)


def _read_short_bytes(decoder: Decoder) -> bytes:
    return decoder.read_raw(_read_short_len(decoder))


@dataclass(frozen=True)
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int


@dataclass
class CompiledInstruction:
    program_id_index: int
    accounts: bytes = b""
    data: bytes = b""

    def __post_init__(self) -> None:
        self.accounts = bytes(self.accounts)
        self.data = bytes(self.data)


@dataclass
class MessageAddressTableLookup:
    account_key: Pubkey
    writable_indexes: bytes = b""
    readonly_indexes: bytes = b""

    def __post_init__(self) -> None:
        self.writable_indexes = bytes(self.writable_indexes)
        self.readonly_indexes = bytes(self.readonly_indexes)


@dataclass
class V0Message:
    """A versioned transaction message."""

    header: MessageHeader
    account_keys: List[Pubkey]
    recent_blockhash: Hash
    instructions: List[CompiledInstruction] = field(default_factory=list)
    address_table_lookups: List[MessageAddressTableLookup] = field(default_factory=list)

    def encode(self, encoder: Encoder) -> None:
        encoder.write_u8(self.header.num_required_signatures)
        encoder.write_u8(self.header.num_readonly_signed_accounts)
        encoder.write_u8(self.header.num_readonly_unsigned_accounts)
        _write_short_seq(encoder, self.account_keys, lambda key: key.encode(encoder))
        self.recent_blockhash.encode(encoder)

        def write_instruction(instruction: CompiledInstruction) -> None:
            encoder.write_u8(instruction.program_id_index)
            _write_short_bytes(encoder, instruction.accounts)
            _write_short_bytes(encoder, instruction.data)

        def write_lookup(lookup: MessageAddressTableLookup) -> None:
            lookup.account_key.encode(encoder)
            _write_short_bytes(encoder, lookup.writable_indexes)
            _write_short_bytes(encoder, lookup.readonly_indexes)

        _write_short_seq(encoder, self.instructions, write_instruction)
        _write_short_seq(encoder, self.address_table_lookups, write_lookup)

    @classmethod
    def decode(cls, decoder: Decoder) -> "V0Message":
        header = MessageHeader(decoder.read_u8(), decoder.read_u8(), decoder.read_u8())
        account_keys = _read_short_seq(decoder, lambda: Pubkey.decode(decoder))
        recent_blockhash = Hash.decode(decoder)
        instructions = _read_short_seq(
            decoder,
            lambda: CompiledInstruction(
                program_id_index=decoder.read_u8(),
                accounts=_read_short_bytes(decoder),
                data=_read_short_bytes(decoder),
            ),
        )
        lookups = _read_short_seq(
            decoder,
            lambda: MessageAddressTableLookup(
                account_key=Pubkey.decode(decoder),
                writable_indexes=_read_short_bytes(decoder),
                readonly_indexes=_read_short_bytes(decoder),
            ),
        )
        return cls(header, account_keys, recent_blockhash, instructions, lookups)


@dataclass
class LoadedAddresses:
    writable: List[Pubkey] = field(default_factory=list)
    readonly: List[Pubkey] = field(default_factory=list)


_TRANSACTION_ERROR_KINDS = 38
_INSTRUCTION_ERROR_KINDS = 53


@dataclass(frozen=True)
class TransactionError:
    """Why a transaction failed.

    ``kind`` is the error variant number. Variants that carry an instruction
    or account index keep it in ``index``. For an instruction error,
    ``instruction_error`` is the instruction error variant number and
    ``detail`` holds its custom code or I/O error text.
    """

    kind: int
    index: Optional[int] = None
    instruction_error: Optional[int] = None
    detail: Union[int, str, None] = None

    INSTRUCTION_ERROR: ClassVar[int] = 8
    DUPLICATE_INSTRUCTION: ClassVar[int] = 30
    INSUFFICIENT_FUNDS_FOR_RENT: ClassVar[int] = 31
    PROGRAM_EXECUTION_TEMPORARILY_RESTRICTED: ClassVar[int] = 35
    CUSTOM: ClassVar[int] = 24
    BORSH_IO_ERROR: ClassVar[int] = 43
    INDEXED_KINDS: ClassVar[FrozenSet[int]] = frozenset({8, 30, 31, 35})

    def __post_init__(self) -> None:
        if not 0 <= self.kind < _TRANSACTION_ERROR_KINDS:
            raise ValueError(f"unknown transaction error kind {self.kind}")
        if self.kind in self.INDEXED_KINDS and not isinstance(self.index, int):
            raise ValueError(f"transaction error kind {self.kind} needs an index")
        if self.kind == self.INSTRUCTION_ERROR:
            if self.instruction_error is None or not (
                0 <= self.instruction_error < _INSTRUCTION_ERROR_KINDS
            ):
                raise ValueError(f"unknown instruction error {self.instruction_error}")
            if self.instruction_error == self.CUSTOM and not isinstance(self.detail, int):
                raise ValueError("custom instruction error needs an integer code")
            if self.instruction_error == self.BORSH_IO_ERROR and not isinstance(
                self.detail, str
            ):
                raise ValueError("I/O instruction error needs a message")


def _write_transaction_error(encoder: Encoder, error: TransactionError) -> None:
    encoder.write_u32(error.kind)
    if error.kind in TransactionError.INDEXED_KINDS:
        encoder.write_u8(error.index)
    if error.kind == TransactionError.INSTRUCTION_ERROR:
        encoder.write_u32(error.instruction_error)
        if error.instruction_error == TransactionError.CUSTOM:
            encoder.write_u32(error.detail)
        elif error.instruction_error == TransactionError.BORSH_IO_ERROR:
            encoder.write_str(error.detail)


def _read_transaction_error(decoder: Decoder) -> TransactionError:
    kind = decoder.read_u32()
    if kind >= _TRANSACTION_ERROR_KINDS:
        raise WireError(f"invalid transaction error tag {kind}")
    index = decoder.read_u8() if kind in TransactionError.INDEXED_KINDS else None
    instruction_error = None
    detail: Union[int, str, None] = None
    if kind == TransactionError.INSTRUCTION_ERROR:
        instruction_error = decoder.read_u32()
        if instruction_error >= _INSTRUCTION_ERROR_KINDS:
            raise WireError(f"invalid instruction error tag {instruction_error}")
        if instruction_error == TransactionError.CUSTOM:
            detail = decoder.read_u32()
        elif instruction_error == TransactionError.BORSH_IO_ERROR:
            detail = decoder.read_str()
    return TransactionError(kind, index, instruction_error, detail)


@dataclass
class TransactionReturnData:
    program_id: Pubkey
    data: bytes = b""

    def __post_init__(self) -> None:
        self.data = bytes(self.data)


@dataclass
class CompiledInstructionSerializable:
    program_id_index: int
    accounts: bytes = b""
    data: bytes = b""

    def __post_init__(self) -> None:
        self.accounts = bytes(self.accounts)
        self.data = bytes(self.data)


@dataclass
class InnerInstructionSerializable:
    stack_height: Optional[int]
    instruction: CompiledInstructionSerializable


@dataclass
class InnerInstructionsSerializable:
    index: int
    instructions: List[InnerInstructionSerializable] = field(default_factory=list)


@dataclass
class TransactionTokenBalanceSerializable:
    account_index: int
    mint: str
    token_amount: int
    owner: str
    program_id: str


def _write_token_balance(
    encoder: Encoder, balance: TransactionTokenBalanceSerializable
) -> None:
    encoder.write_u8(balance.account_index)
    encoder.write_str(balance.mint)
    encoder.write_u64(balance.token_amount)
    encoder.write_str(balance.owner)
    encoder.write_str(balance.program_id)


def _read_token_balance(decoder: Decoder) -> TransactionTokenBalanceSerializable:
    return TransactionTokenBalanceSerializable(
        account_index=decoder.read_u8(),
        mint=decoder.read_str(),
        token_amount=decoder.read_u64(),
        owner=decoder.read_str(),
        program_id=decoder.read_str(),
    )


def _write_inner_instructions(
    encoder: Encoder, inner: InnerInstructionsSerializable
) -> None:
    def write_one(item: InnerInstructionSerializable) -> None:
        encoder.write_option(item.stack_height, encoder.write_u32)
        encoder.write_u8(item.instruction.program_id_index)
        encoder.write_bytes(item.instruction.accounts)
        encoder.write_bytes(item.instruction.data)

    encoder.write_u8(inner.index)
    encoder.write_seq(inner.instructions, write_one)


def _read_inner_instructions(decoder: Decoder) -> InnerInstructionsSerializable:
    def read_one() -> InnerInstructionSerializable:
        stack_height = decoder.read_option(decoder.read_u32)
        instruction = CompiledInstructionSerializable(
            program_id_index=decoder.read_u8(),
            accounts=decoder.read_bytes(),
            data=decoder.read_bytes(),
        )
        return InnerInstructionSerializable(stack_height, instruction)

    index = decoder.read_u8()
    return InnerInstructionsSerializable(index, decoder.read_seq(read_one))


@dataclass
class TransactionMeta:
    """The outcome of executing a transaction."""

    error: Optional[TransactionError] = None
    fee: int = 0
    pre_balances: List[int] = field(default_factory=list)
    post_balances: List[int] = field(default_factory=list)
    pre_token_balances: Optional[List[TransactionTokenBalanceSerializable]] = None
    post_token_balances: Optional[List[TransactionTokenBalanceSerializable]] = None
    inner_instructions: Optional[List[InnerInstructionsSerializable]] = None
    log_messages: Optional[List[str]] = None
    rewards: Optional[List[Reward]] = None
    loaded_addresses: LoadedAddresses = field(default_factory=LoadedAddresses)
    return_data: Optional[TransactionReturnData] = None
    compute_units_consumed: Optional[int] = None

    def encode(self, encoder: Encoder) -> None:
        def write_seq_of(write_item):
            return lambda items: encoder.write_seq(items, write_item)

        def write_return_data(data: TransactionReturnData) -> None:
            data.program_id.encode(encoder)
            encoder.write_bytes(data.data)

        encoder.write_option(
            self.error, lambda error: _write_transaction_error(encoder, error)
        )
        encoder.write_u64(self.fee)
        encoder.write_seq(self.pre_balances, encoder.write_u64)
        encoder.write_seq(self.post_balances, encoder.write_u64)
        token_balances = write_seq_of(lambda b: _write_token_balance(encoder, b))
        encoder.write_option(self.pre_token_balances, token_balances)
        encoder.write_option(self.post_token_balances, token_balances)
        encoder.write_option(
            self.inner_instructions,
            write_seq_of(lambda inner: _write_inner_instructions(encoder, inner)),
        )
        encoder.write_option(self.log_messages, write_seq_of(encoder.write_str))
        encoder.write_option(
            self.rewards, write_seq_of(lambda reward: reward.encode(encoder))
        )
        encoder.write_seq(self.loaded_addresses.writable, lambda key: key.encode(encoder))
        encoder.write_seq(self.loaded_addresses.readonly, lambda key: key.encode(encoder))
        encoder.write_option(self.return_data, write_return_data)
        encoder.write_option(self.compute_units_consumed, encoder.write_u64)

    @classmethod
    def decode(cls, decoder: Decoder) -> "TransactionMeta":
        def read_seq_of(read_item):
            return lambda: decoder.read_seq(read_item)

        def read_key() -> Pubkey:
            return Pubkey.decode(decoder)

        error = decoder.read_option(lambda: _read_transaction_error(decoder))
        fee = decoder.read_u64()
        pre_balances = decoder.read_seq(decoder.read_u64)
        post_balances = decoder.read_seq(decoder.read_u64)
        token_balances = read_seq_of(lambda: _read_token_balance(decoder))
        pre_token_balances = decoder.read_option(token_balances)
        post_token_balances = decoder.read_option(token_balances)
        inner_instructions = decoder.read_option(
            read_seq_of(lambda: _read_inner_instructions(decoder))
        )
        log_messages = decoder.read_option(read_seq_of(decoder.read_str))
        rewards = decoder.read_option(read_seq_of(lambda: Reward.decode(decoder)))
        loaded_addresses = LoadedAddresses(
            writable=decoder.read_seq(read_key), readonly=decoder.read_seq(read_key)
        )
        return_data = decoder.read_option(
            lambda: TransactionReturnData(Pubkey.decode(decoder), decoder.read_bytes())
        )
        compute_units_consumed = decoder.read_option(decoder.read_u64)
        return cls(
            error=error,
            fee=fee,
            pre_balances=pre_balances,
            post_balances=post_balances,
            pre_token_balances=pre_token_balances,
            post_token_balances=post_token_balances,
            inner_instructions=inner_instructions,
            log_messages=log_messages,
            rewards=rewards,
            loaded_addresses=loaded_addresses,
            return_data=return_data,
            compute_units_consumed=compute_units_consumed,
        )


@dataclass
class Transaction:
    """An executed transaction and where it landed."""

    slot_identifier: SlotIdentifier
    signatures: List[Signature]
    message: V0Message
    is_vote: bool
    transaction_meta: TransactionMeta
    index: int

    def encode(self, encoder: Encoder) -> None:
        self.slot_identifier.encode(encoder)
        encoder.write_seq(self.signatures, lambda signature: signature.encode(encoder))
        self.message.encode(encoder)
        encoder.write_bool(self.is_vote)
        self.transaction_meta.encode(encoder)
        encoder.write_u64(self.index)

    @classmethod
    def decode(cls, decoder: Decoder) -> "Transaction":
        return cls(
            slot_identifier=SlotIdentifier.decode(decoder),
            signatures=decoder.read_seq(lambda: Signature.decode(decoder)),
            message=V0Message.decode(decoder),
            is_vote=decoder.read_bool(),
            transaction_meta=TransactionMeta.decode(decoder),
            index=decoder.read_u64(),
        )