"""
Install domain objects for cookbookvendor.

Where things land on disk (InstallTarget, ScratchClone), the states of the
vendor-branch repository, and the outcome of one install (InstallResult).
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .package import PackageIdentity, RemoteRef

SCRATCH_PREFIX = "_tmp_chef_"


class RepoState(Enum):
    """States of the vendor-branch repository protocol."""
    UNINITIALIZED = "uninitialized"
    CLEAN = "clean"
    IMPORT_PREPARED = "import_prepared"
    IMPORT_FINALIZED = "import_finalized"
    MERGED = "merged"
    ROLLED_BACK = "rolled_back"


class InstallStatus(Enum):
    """Outcome of an install."""
    INSTALLED = "installed"
    UP_TO_DATE = "up_to_date"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class InstallTarget:
    """The cookbook directory (a git working copy) and the package inside it."""
    root_path: Path
    package_name: str

    def __post_init__(self):
        object.__setattr__(self, 'root_path', Path(self.root_path).expanduser().absolute())

    @property
    def package_path(self) -> Path:
        return self.root_path / self.package_name

    def ensure_root(self) -> bool:
        """Create the root directory if absent. Returns True if it was created."""
        if self.root_path.is_dir():
            return False
        self.root_path.mkdir(parents=True, exist_ok=True)
        return True


@dataclass(frozen=True)
class ScratchClone:
    """A fetched, unversioned snapshot waiting to be moved into place."""
    path: Path
    ref: RemoteRef

    @staticmethod
    def path_for(scratch_root: Path, package_name: str) -> Path:
        """Scratch directories are keyed by package name."""
        return Path(scratch_root) / f"{SCRATCH_PREFIX}{package_name}"


@dataclass
class InstallResult:
    """Outcome of one install, serializable for JSONL output."""
    identity: PackageIdentity
    target: InstallTarget
    status: InstallStatus
    sha: str
    uri: str
    ref_kind: Optional[str] = None
    tag: Optional[str] = None
    vendor_branch: Optional[str] = None
    conflicts: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status != InstallStatus.CONFLICT

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'package': self.identity.local_name,
            'owner': self.identity.owner,
            'repo': self.identity.repo,
            'ref': self.identity.ref,
            'ref_kind': self.ref_kind,
            'sha': self.sha,
            'uri': self.uri,
            'root': str(self.target.root_path),
            'path': str(self.target.package_path),
            'status': self.status.value,
        }
        if self.tag:
            result['tag'] = self.tag
        if self.vendor_branch:
            result['vendor_branch'] = self.vendor_branch
        if self.conflicts:
            result['conflicts'] = list(self.conflicts)
        return result
