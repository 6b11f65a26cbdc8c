"""Metaplex metadata account address derivation and manual decoding"""
import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from solders.pubkey import Pubkey


METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")
METADATA_SEED = b"metadata"

# key (1) + update authority (32) + mint (32)
HEADER_SIZE = 1 + 32 + 32
LENGTH_PREFIX = struct.Struct("<I")


def find_metadata_pda(mint_address: str) -> Pubkey:
    """Derive the Metaplex metadata account address for a mint"""
    mint_pubkey = Pubkey.from_string(mint_address)
    seeds = [
        METADATA_SEED,
        bytes(METADATA_PROGRAM_ID),
        bytes(mint_pubkey)
    ]
    metadata_account, _ = Pubkey.find_program_address(seeds, METADATA_PROGRAM_ID)
    return metadata_account


def clean_string(value: str) -> str:
    """Strip the NUL padding Metaplex stores in fixed-width fields"""
    return value.replace("\x00", "").strip()


@dataclass(frozen=True)
class RawMetadataAccount:
    """Fields recovered from a metadata account by the manual decoder"""
    key: int
    update_authority: Pubkey
    mint: Pubkey
    name: str
    symbol: str
    uri: str


def _read_string(data: bytes, offset: int) -> Optional[Tuple[str, int]]:
    if offset + LENGTH_PREFIX.size > len(data):
        return None
    (length,) = LENGTH_PREFIX.unpack_from(data, offset)
    offset += LENGTH_PREFIX.size

    end = offset + length
    if end > len(data):
        return None

    try:
        value = data[offset:end].decode("utf-8")
    except UnicodeDecodeError:
        return None

    return clean_string(value), end


def decode_metadata_account(data: bytes) -> Optional[RawMetadataAccount]:
    """
    Decode name, symbol and uri from raw metadata account bytes

    Every length prefix is checked against the buffer; a field that
    would read past the end fails the whole decode.

    Args:
        data: Raw account data

    Returns:
        RawMetadataAccount, or None if the data is malformed
    """
    if len(data) < HEADER_SIZE:
        return None

    key = data[0]
    update_authority = Pubkey.from_bytes(data[1:33])
    mint = Pubkey.from_bytes(data[33:65])

    offset = HEADER_SIZE
    fields = []
    for _ in range(3):
        result = _read_string(data, offset)
        if result is None:
            return None
        value, offset = result
        fields.append(value)

    name, symbol, uri = fields
    return RawMetadataAccount(
        key=key,
        update_authority=update_authority,
        mint=mint,
        name=name,
        symbol=symbol,
        uri=uri,
    )
