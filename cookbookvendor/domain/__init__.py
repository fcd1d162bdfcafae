"""
Domain layer for cookbookvendor.

Contains plain domain objects with no I/O beyond creating the install root:
- PackageIdentity: OWNER/REPO[/REF] with the derived local cookbook name
- RemoteRef: a ref resolved to a commit on the remote
- InstallTarget / ScratchClone: where snapshots are staged and installed
- RepoState / InstallResult: vendor-branch protocol state and install outcome
"""

from .package import PackageIdentity, RemoteRef, RefKind, strip_affixes, DEFAULT_REF
from .install import InstallTarget, ScratchClone, RepoState, InstallStatus, InstallResult

__all__ = [
    'PackageIdentity',
    'RemoteRef',
    'RefKind',
    'strip_affixes',
    'DEFAULT_REF',
    'InstallTarget',
    'ScratchClone',
    'RepoState',
    'InstallStatus',
    'InstallResult',
]
