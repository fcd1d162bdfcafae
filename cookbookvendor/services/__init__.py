"""
Service layer for cookbookvendor.

Contains business logic that orchestrates domain objects and infrastructure:
- SnapshotFetcher: Clone a ref into scratch space without git metadata
- VendorRepository: Vendor-branch protocol over the cookbook repo
- InstallService: One install from resolve to merge, with rollback

Services are the primary API for commands to use.
"""

from .fetcher import SnapshotFetcher
from .vendor_repository import VendorRepository
from .install_service import InstallService, InstallOptions

__all__ = [
    'SnapshotFetcher',
    'VendorRepository',
    'InstallService',
    'InstallOptions',
]
