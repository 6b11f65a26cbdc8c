"""Exception types for the metadata enrichment pipeline"""


class EnricherError(Exception):
    """Base class for all enrichment errors"""


class ConfigurationError(EnricherError):
    """Required configuration is missing or invalid"""


class OffchainFetchError(EnricherError):
    """Off-chain JSON metadata could not be fetched or decoded"""


class MetadataDecodeError(EnricherError):
    """A metadata account's bytes do not match the expected layout"""


class AccountNotFoundError(EnricherError):
    """The requested on-chain account does not exist"""

    def __init__(self, address: str):
        super().__init__(f"Account not found: {address}")
        self.address = address


class TokenStoreError(EnricherError):
    """The token store rejected a read or write"""


class TokenNotFoundError(TokenStoreError):
    """No token row exists for the given address"""

    def __init__(self, address: str):
        super().__init__(f"No token row for address {address}")
        self.address = address


class DuneAPIError(EnricherError):
    """The Dune API returned an error response"""

    def __init__(self, status: int, reason: str = ""):
        super().__init__(f"Dune API error: {status} {reason}".strip())
        self.status = status
