"""Result and value types exchanged with the contracts runtime API."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import Any, Generic, TypeVar

AccountId = TypeVar("AccountId")
CodeHashT = TypeVar("CodeHashT")
R = TypeVar("R")


@dataclass(frozen=True)
class Weight:
    """Computation time and proof size consumed by an execution."""

    ref_time: int = 0
    proof_size: int = 0


class ReturnFlags(IntFlag):
    """Flags passed along by a contract when it returns."""

    REVERT = 0x0000_0001


class ContractAccessError(Enum):
    """The possible errors when querying the storage of a contract."""

    DOESNT_EXIST = "DoesntExist"
    """The given address doesn't point to a contract."""
    KEY_DECODING_FAILED = "KeyDecodingFailed"
    """Storage key cannot be decoded from the provided input data."""
    MIGRATION_IN_PROGRESS = "MigrationInProgress"
    """Storage is migrating. Try again later."""


@dataclass(frozen=True)
class ExecReturnValue:
    """Output of a contract call or instantiation which ran to completion."""

    flags: ReturnFlags = ReturnFlags(0)
    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "flags", ReturnFlags(self.flags))
        object.__setattr__(self, "data", bytes(self.data))

    def did_revert(self) -> bool:
        """Whether the contract reverted all storage changes."""
        return ReturnFlags.REVERT in self.flags


@dataclass(frozen=True)
class InstantiateReturnValue(Generic[AccountId]):
    """The result of a successful contract instantiation."""

    result: ExecReturnValue
    account_id: AccountId


@dataclass(frozen=True)
class CodeUploadReturnValue(Generic[CodeHashT]):
    """The result of successfully uploading contract code."""

    code_hash: CodeHashT
    deposit: int


class CodeKind(Enum):
    """Whether code is given as raw bytes or as a reference to on-chain code."""

    UPLOAD = "Upload"
    EXISTING = "Existing"


@dataclass(frozen=True)
class Code:
    """Reference to an existing code hash or a new Wasm module."""

    kind: CodeKind
    value: Any

    @classmethod
    def upload(cls, wasm: bytes) -> "Code":
        """A Wasm module as raw bytes."""
        return cls(CodeKind.UPLOAD, bytes(wasm))

    @classmethod
    def existing(cls, code_hash: Any) -> "Code":
        """The code hash of an on-chain Wasm blob."""
        return cls(CodeKind.EXISTING, code_hash)


class DepositKind(IntEnum):
    """Direction of a storage deposit; refunds order before charges."""

    REFUND = 0
    CHARGE = 1


@dataclass(frozen=True, order=True)
class StorageDeposit:
    """Balance charged or refunded to pay for storage."""

    kind: DepositKind
    amount: int

    @classmethod
    def refund(cls, amount: int) -> "StorageDeposit":
        """Storage consumption was reduced and balance returned to the origin."""
        return cls(DepositKind.REFUND, amount)

    @classmethod
    def charge(cls, amount: int) -> "StorageDeposit":
        """Storage consumption grew and balance was taken from the origin."""
        return cls(DepositKind.CHARGE, amount)


@dataclass(frozen=True)
class ContractResult(Generic[R]):
    """Execution result of a dry-run call or instantiation with gas information."""

    gas_consumed: Weight
    gas_required: Weight
    storage_deposit: StorageDeposit
    debug_message: bytes = b""
    result: R = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "debug_message", bytes(self.debug_message))