"""
Snapshot fetcher for cookbookvendor.

Materializes an unversioned copy of a remote repository at a ref into a
scratch directory: clone, check out, drop the .git directory.
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

import git

from ..domain.install import ScratchClone
from ..domain.package import RemoteRef
from ..exit_codes import FetchError
from ..infra.filesystem import delete_path

logger = logging.getLogger(__name__)


class SnapshotFetcher:
    """
    Fetches plain file trees from git remotes.

    Example:
        fetcher = SnapshotFetcher()
        scratch = fetcher.fetch(uri, ref, fetcher.scratch_path("widget"))
        ...
        fetcher.discard(scratch)
    """

    def __init__(self, scratch_root: Optional[Union[str, Path]] = None):
        """
        Initialize SnapshotFetcher.

        Args:
            scratch_root: Directory scratch clones are created in
                (the system temp directory if None)
        """
        self.scratch_root = Path(scratch_root or tempfile.gettempdir())

    def scratch_path(self, package_name: str) -> Path:
        return ScratchClone.path_for(self.scratch_root, package_name)

    def fetch(self, clone_uri: str, ref: RemoteRef, scratch_dir: Union[str, Path]) -> ScratchClone:
        """
        Clone ``clone_uri`` into ``scratch_dir`` and check out ``ref``.

        Any directory already at ``scratch_dir`` is removed first; it can
        only be left over from an earlier failed run.

        Args:
            clone_uri: URI to clone from
            ref: Ref to check out (its sha is used to detect a moved ref)
            scratch_dir: Where to put the snapshot

        Returns:
            ScratchClone pointing at a tree without version control metadata

        Raises:
            FetchError: if cloning or checking out fails
        """
        scratch_dir = Path(scratch_dir)
        if delete_path(scratch_dir):
            logger.info(f"Removed stale scratch directory {scratch_dir}")
        scratch_dir.parent.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Cloning {clone_uri} into {scratch_dir}")
        try:
            clone = git.Repo.clone_from(clone_uri, str(scratch_dir))
        except git.exc.GitCommandError as error:
            delete_path(scratch_dir)
            raise FetchError(f"Failed to clone {clone_uri}: {error.stderr.strip() or error}") from error

        try:
            clone.git.checkout(ref.name)
            head_sha = clone.head.commit.hexsha
        except (git.exc.GitCommandError, ValueError) as error:
            clone.close()
            delete_path(scratch_dir)
            raise FetchError(f"Failed to check out '{ref.name}' from {clone_uri}: {error}") from error
        clone.close()

        if ref.sha and head_sha != ref.sha:
            logger.warning(
                f"'{ref.name}' of {clone_uri} is at {head_sha[:10]}, "
                f"but resolved to {ref.sha[:10]}; it probably moved in between"
            )

        delete_path(scratch_dir / '.git')
        logger.debug(f"Fetched {clone_uri}@{ref.name} ({head_sha[:10]}) into {scratch_dir}")
        return ScratchClone(path=scratch_dir, ref=ref)

    def discard(self, scratch: Union[ScratchClone, str, Path]) -> bool:
        """Remove a scratch clone. Returns True if something was removed."""
        path = scratch.path if isinstance(scratch, ScratchClone) else Path(scratch)
        return delete_path(path)
