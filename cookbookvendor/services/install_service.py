"""
Install service for cookbookvendor.

Sequences one install: resolve the ref, fetch a snapshot, stage it on the
vendor branch, merge into the main line. Errors after the repository has
been touched trigger a best-effort rollback before they propagate; merge
conflicts are reported as a result, not raised.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from ..domain.install import InstallResult, InstallStatus, InstallTarget
from ..domain.package import PackageIdentity
from ..exit_codes import CommandError, MergeConflictError
from ..infra.filesystem import delete_path, move_tree
from ..infra.github_client import GitHubClient
from .fetcher import SnapshotFetcher
from .vendor_repository import (
    DEFAULT_MAIN_BRANCH,
    DEFAULT_VENDOR_PREFIX,
    VendorRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallOptions:
    """Options for one install."""
    use_ssh: bool = False
    main_branch: str = DEFAULT_MAIN_BRANCH
    vendor_branch_prefix: str = DEFAULT_VENDOR_PREFIX
    use_current_branch: bool = False


RepositoryFactory = Callable[[Path, InstallOptions], VendorRepository]


def default_repository_factory(root: Path, options: InstallOptions) -> VendorRepository:
    return VendorRepository(
        root,
        main_branch=options.main_branch,
        vendor_branch_prefix=options.vendor_branch_prefix,
        use_current_branch=options.use_current_branch,
    )


class InstallService:
    """
    Installs cookbooks from GitHub into a vendor-branch git repository.

    Example:
        service = InstallService(GitHubClient(local_user="me"))
        identity = PackageIdentity.parse("acme/chef-widget")
        result = service.install(identity, "/opt/cookbooks")
        print(result.status)  # InstallStatus.INSTALLED
    """

    def __init__(
        self,
        resolver: GitHubClient,
        fetcher: Optional[SnapshotFetcher] = None,
        repository_factory: Optional[RepositoryFactory] = None
    ):
        """
        Initialize InstallService.

        Args:
            resolver: Resolves refs and builds clone URIs
            fetcher: Fetches snapshots (system temp scratch space if None)
            repository_factory: Builds the VendorRepository for an install root
        """
        self.resolver = resolver
        self.fetcher = fetcher or SnapshotFetcher()
        self.repository_factory = repository_factory or default_repository_factory
        self.last_repository: Optional[VendorRepository] = None

    def install(
        self,
        identity: PackageIdentity,
        install_root: Union[str, Path],
        options: Optional[InstallOptions] = None
    ) -> InstallResult:
        """
        Install or update one cookbook.

        Args:
            identity: What to install
            install_root: Cookbook directory (root of the git working copy)
            options: Install options

        Returns:
            InstallResult with status installed, up_to_date or conflict

        Raises:
            RefNotFoundError, APIError: before anything is touched
            RepoStateError: if the install root is unusable
            FetchError: if the snapshot cannot be fetched (after rollback)
        """
        options = options or InstallOptions()
        name = identity.local_name
        target = InstallTarget(install_root, name)

        remote_ref = self.resolver.resolve(identity.owner, identity.repo, identity.ref)
        uri = self.resolver.clone_uri(identity.owner, identity.repo, options.use_ssh)
        sha = remote_ref.sha
        logger.info(f"Installing {name} from {uri} to {target.root_path}")

        if target.ensure_root():
            logger.info(f"Created cookbook directory {target.root_path}")

        repo = self.repository_factory(target.root_path, options)
        self.last_repository = repo
        result = InstallResult(
            identity=identity,
            target=target,
            status=InstallStatus.UP_TO_DATE,
            sha=sha,
            uri=uri,
            ref_kind=remote_ref.kind.value if remote_ref.kind else None,
            vendor_branch=repo.vendor_branch(name),
        )

        try:
            repo.sanity_check()
            repo.reset_to_default_state()
        except BaseException:
            repo.close()
            raise

        scratch_dir = self.fetcher.scratch_path(name)
        try:
            repo.prepare_to_import(name)
            scratch = self.fetcher.fetch(uri, remote_ref, scratch_dir)
            self._clear_existing_files(target.package_path)
            move_tree(scratch.path, target.package_path)

            source_ref = f"{identity.full_name}@{identity.ref}"
            if repo.finalize_updates_from_remote(name, source_ref, sha):
                repo.reset_to_default_state()
                target.ensure_root()
                repo.merge_updates_from(name, sha)
                result.status = InstallStatus.INSTALLED
            else:
                repo.reset_to_default_state()
            result.tag = repo.last_import_tag
        except MergeConflictError as conflict:
            self._rollback(repo)
            result.status = InstallStatus.CONFLICT
            result.tag = repo.last_import_tag
            result.conflicts = conflict.conflicts
            logger.warning(
                f"Merge conflicts in {', '.join(conflict.conflicts) or name}; "
                f"{conflict.branch} holds the new import. Resolve with "
                f"`git merge {conflict.branch}` in {target.root_path}"
            )
        except BaseException:
            self._rollback(repo)
            raise
        finally:
            self.fetcher.discard(scratch_dir)
            repo.close()

        return result

    def _clear_existing_files(self, package_path: Path) -> None:
        if package_path.is_dir():
            logger.info("Removing pre-existing version.")
        delete_path(package_path)

    @staticmethod
    def _rollback(repo: VendorRepository) -> None:
        """Best-effort reset; a failure is logged, never raised over the original error."""
        try:
            repo.rollback()
        except (CommandError, OSError) as error:
            logger.error(f"Could not reset {repo.repo_path} after a failed install: {error}")
