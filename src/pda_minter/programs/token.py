"""
SPL Token Program: instructions and account layouts

The token program owns two kinds of data accounts:
- Mint (82 bytes): supply, decimals and the optional mint/freeze authorities
- Token account (165 bytes): one holder's balance of one mint

Decoding is strict. Wrong owner, wrong size, an out-of-range option tag or
an uninitialized account all raise ParseError instead of yielding a
half-filled record.

Based on: https://github.com/solana-program/token (state.rs)
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from ..core.accounts import AccountMeta, SolanaAccount
from ..core.keys import address_to_bytes, bytes_to_address
from ..core.transactions import Instruction
from ..errors import ParseError

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

MINT_SIZE = 82
ACCOUNT_SIZE = 165
MAX_DECIMALS = 9
U64_MAX = 2 ** 64 - 1

INITIALIZE_MINT2 = 20

# COption<Pubkey> is a u32 tag followed by 32 bytes, always present on disk
_OPTION_PUBKEY = struct.Struct("<I32s")
_OPTION_U64 = struct.Struct("<IQ")


class AccountState(IntEnum):
    UNINITIALIZED = 0
    INITIALIZED = 1
    FROZEN = 2


@dataclass(frozen=True)
class Mint:
    """Decoded mint account."""
    address: str
    decimals: int
    supply: int
    mint_authority: Optional[str]
    freeze_authority: Optional[str]
    owning_program: str
    is_initialized: bool = True


@dataclass(frozen=True)
class TokenAccount:
    """
    Decoded token account.

    The account layout does not store decimals; they are copied from the
    mint so that amount can be displayed.
    """
    address: str
    mint: str
    owner: str
    amount: int
    decimals: int
    state: AccountState = AccountState.INITIALIZED
    owning_program: str = TOKEN_PROGRAM_ID

    @property
    def ui_amount_string(self) -> str:
        return format_ui_amount(self.amount, self.decimals)


def initialize_mint2(mint: str, decimals: int, mint_authority: str,
                     freeze_authority: Optional[str]) -> Instruction:
    """InitializeMint2: no rent sysvar account, authorities in the data."""
    data = bytes([INITIALIZE_MINT2, decimals]) + address_to_bytes(mint_authority)
    if freeze_authority is None:
        data += b"\x00"
    else:
        data += b"\x01" + address_to_bytes(freeze_authority)
    return Instruction(
        program_id=TOKEN_PROGRAM_ID,
        accounts=(AccountMeta(mint, is_signer=False, is_writable=True),),
        data=data,
    )


def format_ui_amount(amount: int, decimals: int) -> str:
    """
    Render base units the way the ledger's uiAmountString does.

    1_500_000 with 6 decimals -> "1.5"; trailing zeros and a bare point are trimmed.
    """
    if decimals == 0:
        return str(amount)
    digits = str(amount).rjust(decimals + 1, "0")
    whole, frac = digits[:-decimals], digits[-decimals:].rstrip("0")
    return f"{whole}.{frac}" if frac else whole


def _unpack_option_pubkey(address: str, raw: bytes, field: str) -> Optional[str]:
    tag, key = _OPTION_PUBKEY.unpack(raw)
    if tag == 0:
        return None
    if tag == 1:
        return bytes_to_address(key)
    raise ParseError(address, f"invalid option tag {tag} for {field}")


def _pack_option_pubkey(key: Optional[str]) -> bytes:
    if key is None:
        return _OPTION_PUBKEY.pack(0, bytes(32))
    return _OPTION_PUBKEY.pack(1, address_to_bytes(key))


def _check_owner_and_size(address: str, account: SolanaAccount, size: int, kind: str) -> None:
    if account.owner != TOKEN_PROGRAM_ID:
        raise ParseError(address, f"owned by {account.owner}, not the token program")
    if len(account.data) != size:
        raise ParseError(address, f"{kind} data is {len(account.data)} bytes, expected {size}")


def decode_mint(address: str, account: SolanaAccount) -> Mint:
    """Decode a raw mint account."""
    _check_owner_and_size(address, account, MINT_SIZE, "mint")
    data = bytes(account.data)

    mint_authority = _unpack_option_pubkey(address, data[0:36], "mint_authority")
    supply, decimals, is_initialized = struct.unpack_from("<QBB", data, 36)
    freeze_authority = _unpack_option_pubkey(address, data[46:82], "freeze_authority")

    if is_initialized not in (0, 1):
        raise ParseError(address, f"invalid is_initialized flag {is_initialized}")
    if not is_initialized:
        raise ParseError(address, "mint is not initialized")

    return Mint(
        address=address,
        decimals=decimals,
        supply=supply,
        mint_authority=mint_authority,
        freeze_authority=freeze_authority,
        owning_program=account.owner,
    )


def encode_mint(mint: Mint) -> bytes:
    return (
        _pack_option_pubkey(mint.mint_authority)
        + struct.pack("<QBB", mint.supply, mint.decimals, int(mint.is_initialized))
        + _pack_option_pubkey(mint.freeze_authority)
    )


def decode_token_account_fields(address: str, account: SolanaAccount) -> Tuple[str, str, int, AccountState]:
    """Decode (mint, owner, amount, state) from a raw token account."""
    _check_owner_and_size(address, account, ACCOUNT_SIZE, "token account")
    data = bytes(account.data)

    mint = bytes_to_address(data[0:32])
    owner = bytes_to_address(data[32:64])
    (amount,) = struct.unpack_from("<Q", data, 64)
    _unpack_option_pubkey(address, data[72:108], "delegate")
    state = data[108]
    native_tag, _ = _OPTION_U64.unpack_from(data, 109)
    _unpack_option_pubkey(address, data[129:165], "close_authority")

    if native_tag not in (0, 1):
        raise ParseError(address, f"invalid option tag {native_tag} for is_native")
    try:
        state = AccountState(state)
    except ValueError:
        raise ParseError(address, f"invalid account state {state}")
    if state == AccountState.UNINITIALIZED:
        raise ParseError(address, "token account is not initialized")

    return mint, owner, amount, state


def encode_token_account(mint: str, owner: str, amount: int,
                         state: AccountState = AccountState.INITIALIZED) -> bytes:
    return (
        address_to_bytes(mint)
        + address_to_bytes(owner)
        + struct.pack("<Q", amount)
        + _pack_option_pubkey(None)
        + bytes([state])
        + _OPTION_U64.pack(0, 0)
        + struct.pack("<Q", 0)
        + _pack_option_pubkey(None)
    )


def parse_token_amount(address: str, parsed: Dict[str, Any]) -> Tuple[str, str, str, int]:
    """
    Validate a jsonParsed token account and return (mint, owner, uiAmountString, decimals).

    Expected shape:
        {"program": "spl-token", "parsed": {"type": "account", "info": {
            "mint": ..., "owner": ..., "tokenAmount": {
                "amount": "...", "decimals": N, "uiAmountString": "..."}}}}
    """
    try:
        if parsed["program"] != "spl-token":
            raise ParseError(address, f"parsed by {parsed['program']!r}, not spl-token")
        body = parsed["parsed"]
        if body["type"] != "account":
            raise ParseError(address, f"parsed type is {body['type']!r}, not account")
        info = body["info"]
        token_amount = info["tokenAmount"]
        mint, owner = info["mint"], info["owner"]
        ui_amount, decimals = token_amount["uiAmountString"], token_amount["decimals"]
        raw_amount = token_amount["amount"]
    except (KeyError, TypeError) as e:
        raise ParseError(address, f"unexpected parsed account shape: missing {e}")

    if not all(isinstance(v, str) for v in (mint, owner, ui_amount, raw_amount)):
        raise ParseError(address, "non-string field in parsed token account")
    if not isinstance(decimals, int) or isinstance(decimals, bool):
        raise ParseError(address, f"decimals is not an integer: {decimals!r}")
    if not raw_amount.isdigit():
        raise ParseError(address, f"amount is not a decimal string: {raw_amount!r}")
    return mint, owner, ui_amount, decimals
