"""Metaplex Token Metadata program client"""
from dataclasses import dataclass

from construct import Struct, Int8ul, Int16ul, Int32ul, Bytes, PascalString, ConstructError
from solders.pubkey import Pubkey

from .errors import AccountNotFoundError, MetadataDecodeError
from .metadata_layout import find_metadata_pda, clean_string


METADATA_V1_KEY = 4

METADATA_LAYOUT = Struct(
    "key" / Int8ul,
    "update_authority" / Bytes(32),
    "mint" / Bytes(32),
    "name" / PascalString(Int32ul, "utf8"),
    "symbol" / PascalString(Int32ul, "utf8"),
    "uri" / PascalString(Int32ul, "utf8"),
    "seller_fee_basis_points" / Int16ul,
)


@dataclass(frozen=True)
class MetadataAccount:
    """Decoded Metaplex metadata account"""
    address: Pubkey
    update_authority: Pubkey
    mint: Pubkey
    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int


def decode_metadata(address: Pubkey, data: bytes) -> MetadataAccount:
    """
    Decode a metadata account with the declarative layout

    Raises:
        MetadataDecodeError: if the bytes do not match a MetadataV1 account
    """
    try:
        parsed = METADATA_LAYOUT.parse(data)
    except (ConstructError, UnicodeDecodeError) as e:
        raise MetadataDecodeError(f"Invalid metadata account {address}: {e}") from e

    if parsed.key != METADATA_V1_KEY:
        raise MetadataDecodeError(
            f"Account {address} has key {parsed.key}, expected {METADATA_V1_KEY}"
        )

    return MetadataAccount(
        address=address,
        update_authority=Pubkey.from_bytes(parsed.update_authority),
        mint=Pubkey.from_bytes(parsed.mint),
        name=clean_string(parsed.name),
        symbol=clean_string(parsed.symbol),
        uri=clean_string(parsed.uri),
        seller_fee_basis_points=parsed.seller_fee_basis_points,
    )


class MetaplexMetadataClient:
    """Locate and fetch Metaplex metadata accounts for a mint"""

    def __init__(self, rpc):
        """
        Args:
            rpc: SolanaRPCClient (or anything with get_account_data)
        """
        self.rpc = rpc

    def find_metadata_pda(self, mint_address: str) -> Pubkey:
        return find_metadata_pda(mint_address)

    async def fetch_metadata(self, mint_address: str) -> MetadataAccount:
        """
        Fetch and decode the metadata account of a mint

        Raises:
            AccountNotFoundError: if the metadata account does not exist
            MetadataDecodeError: if the account data is not valid metadata
        """
        address = self.find_metadata_pda(mint_address)
        data = await self.rpc.get_account_data(str(address))

        if data is None:
            raise AccountNotFoundError(str(address))

        return decode_metadata(address, data)
