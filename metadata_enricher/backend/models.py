"""Data records shared across the enrichment pipeline"""
from dataclasses import dataclass
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class TokenMetadata:
    """Normalized token metadata produced by a resolver"""
    name: str
    symbol: str
    description: Optional[str] = None
    image: Optional[str] = None  # None means "checked, absent"
    twitter: Optional[str] = None
    website: Optional[str] = None
    telegram: Optional[str] = None
    show_name: Optional[bool] = None
    created_on: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'symbol': self.symbol,
            'description': self.description,
            'image': self.image,
            'twitter': self.twitter,
            'website': self.website,
            'telegram': self.telegram,
            'showName': self.show_name,
            'createdOn': self.created_on,
        }

    def socials_json(self) -> Dict[str, Any]:
        """Fields persisted in the token row's metadata_json column"""
        return {
            'twitter': self.twitter,
            'website': self.website,
            'telegram': self.telegram,
            'showName': self.show_name,
            'createdOn': self.created_on,
        }


@dataclass(frozen=True)
class OffchainMetadata:
    """Fields extracted from an off-chain metadata JSON document"""
    name: Optional[str] = None
    symbol: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    twitter: Optional[str] = None
    website: Optional[str] = None
    telegram: Optional[str] = None
    show_name: Optional[bool] = None
    created_on: Optional[str] = None

    def merge(self, name: str, symbol: str) -> TokenMetadata:
        """Build a TokenMetadata using the given name and symbol"""
        return TokenMetadata(
            name=name,
            symbol=symbol,
            description=self.description,
            image=self.image,
            twitter=self.twitter,
            website=self.website,
            telegram=self.telegram,
            show_name=self.show_name,
            created_on=self.created_on,
        )


@dataclass(frozen=True)
class TokenRecord:
    """One row of a token page: the input of the batch driver"""
    address: str
    launch_date: Optional[str]
    symbol: Optional[str] = None


@dataclass
class BatchResult:
    """Aggregate outcome of one enrichment batch"""
    processed: int
    succeeded: int
    failed: int
    offset: int
    only_unenriched: bool = False

    @property
    def next_offset(self) -> int:
        """
        Offset of the following page

        With the unenriched filter, written rows leave the filtered set,
        so only the failed rows are stepped over.
        """
        if self.only_unenriched:
            return self.offset + self.failed
        return self.offset + self.processed

    def to_response(self) -> Dict[str, Any]:
        if self.processed == 0:
            message = 'No tokens need metadata enrichment'
        else:
            message = 'Metadata enrichment completed'

        return {
            'success': True,
            'message': message,
            'tokensProcessed': self.processed,
            'successCount': self.succeeded,
            'failCount': self.failed,
            'offset': self.offset,
            'nextOffset': self.next_offset,
        }
