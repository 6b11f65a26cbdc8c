# Metadata resolution strategies
from .base import MetadataResolver, onchain_only
from .extension import ExtensionMetadataResolver
from .legacy import LegacyMetadataResolver
from .sdk import SDKMetadataResolver
