"""
cookbookvendor - Install Chef cookbooks from GitHub with a vendor branch.

A cookbook is fetched at a branch or tag, committed onto a per-cookbook
vendor branch of your cookbook repository, tagged with the upstream sha and
merged into your main line. Local edits survive updates; conflicts are left
for a manual merge of the vendor branch.

Quick Start:
    from cookbookvendor import GitHubClient, InstallService, PackageIdentity

    service = InstallService(GitHubClient(local_user="me"))
    identity = PackageIdentity.parse("jnewland/chef_ipmi")
    result = service.install(identity, "~/chef-repo/cookbooks")
    print(result.status, result.sha)

Domain Objects:
    PackageIdentity - OWNER/REPO[/REF] and the local cookbook name
    RemoteRef - A ref resolved to a commit
    InstallResult - Outcome of one install

Services:
    InstallService - Resolve, fetch, import, merge, roll back on failure
    VendorRepository - Vendor-branch protocol over the cookbook repo
    SnapshotFetcher - Unversioned snapshots of a remote ref
"""

__version__ = "0.1.0"

# Domain objects
from .domain import (
    PackageIdentity,
    RemoteRef,
    RefKind,
    InstallTarget,
    InstallResult,
    InstallStatus,
    RepoState,
    strip_affixes,
)

# Infrastructure
from .infra import GitHubClient

# Services
from .services import (
    InstallService,
    InstallOptions,
    VendorRepository,
    SnapshotFetcher,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "PackageIdentity",
    "RemoteRef",
    "RefKind",
    "InstallTarget",
    "InstallResult",
    "InstallStatus",
    "RepoState",
    "strip_affixes",
    # Infrastructure
    "GitHubClient",
    # Services
    "InstallService",
    "InstallOptions",
    "VendorRepository",
    "SnapshotFetcher",
    # Configuration
    "load_config",
    "save_config",
]
