"""
Vendor-branch repository for cookbookvendor.

The cookbook directory is a git working copy. Each cookbook imported from
upstream gets its own vendor branch holding nothing but pristine upstream
snapshots; snapshots are committed and tagged there, then merged into the
main line so local edits and upstream changes are reconciled by git.

Protocol (one import):

    sanity_check -> reset_to_default_state -> prepare_to_import
      -> (caller copies the snapshot into place)
      -> finalize_updates_from_remote
      -> reset_to_default_state -> merge_updates_from   (new content)
      -> reset_to_default_state                         (nothing new)

Any failure after prepare_to_import is followed by rollback(), which is
reset_to_default_state recorded as a rollback.
"""

import logging
from pathlib import Path
from typing import List, Optional, Set, Union

import git

from ..domain.install import RepoState
from ..exit_codes import MergeConflictError, RepoStateError
from ..infra.filesystem import delete_path, make_dir

logger = logging.getLogger(__name__)

DEFAULT_MAIN_BRANCH = "master"
DEFAULT_VENDOR_PREFIX = "chef-vendor-"


class VendorRepository:
    """
    State machine over the git repository rooted at the cookbook path.

    Example:
        repo = VendorRepository("/opt/cookbooks")
        repo.sanity_check()
        repo.reset_to_default_state()
        repo.prepare_to_import("widget")
        ...  # copy the snapshot to /opt/cookbooks/widget
        if repo.finalize_updates_from_remote("widget", "acme/chef-widget@master", sha):
            repo.reset_to_default_state()
            repo.merge_updates_from("widget", sha)
        else:
            repo.reset_to_default_state()
    """

    def __init__(
        self,
        repo_path: Union[str, Path],
        main_branch: str = DEFAULT_MAIN_BRANCH,
        vendor_branch_prefix: str = DEFAULT_VENDOR_PREFIX,
        use_current_branch: bool = False
    ):
        """
        Initialize VendorRepository.

        Args:
            repo_path: Root of the cookbook directory (the working tree)
            main_branch: Branch imports are merged into
            vendor_branch_prefix: Prefix of per-cookbook vendor branches
            use_current_branch: Use whatever branch is checked out as the
                main line instead of main_branch
        """
        self.repo_path = Path(repo_path).expanduser().absolute()
        self.main_branch = main_branch
        self.vendor_branch_prefix = vendor_branch_prefix
        self.use_current_branch = use_current_branch
        self.state = RepoState.UNINITIALIZED
        self.history: List[RepoState] = [RepoState.UNINITIALIZED]
        self.last_import_tag: Optional[str] = None
        self._repo: Optional[git.Repo] = None
        self._touched: Set[str] = set()

    @property
    def repo(self) -> git.Repo:
        if self._repo is None:
            raise RepoStateError(f"The cookbook repo {self.repo_path} has not been checked yet")
        return self._repo

    def vendor_branch(self, package: str) -> str:
        return f"{self.vendor_branch_prefix}{package}"

    def import_tag(self, package: str, sha: str) -> str:
        return f"{self.vendor_branch(package)}-{sha}"

    def branch_exists(self, name: str) -> bool:
        return any(head.name == name for head in self.repo.heads)

    def _transition(self, state: RepoState) -> None:
        logger.debug(f"{self.repo_path}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _require(self, action: str, *states: RepoState) -> None:
        if self.state not in states:
            expected = ' or '.join(s.value for s in states)
            raise RepoStateError(
                f"Cannot {action} while the cookbook repo is {self.state.value} (expected {expected})"
            )

    def _merge_in_progress(self) -> bool:
        return (Path(self.repo.git_dir) / 'MERGE_HEAD').exists()

    def _initialize(self) -> git.Repo:
        logger.info(f"Initializing git repository in {self.repo_path}")
        make_dir(self.repo_path)
        repo = git.Repo.init(str(self.repo_path))
        repo.git.symbolic_ref('HEAD', f'refs/heads/{self.main_branch}')
        repo.index.commit("Initialize cookbook repository")
        return repo

    def _open(self) -> git.Repo:
        if not self.repo_path.is_dir():
            raise RepoStateError(
                f"The cookbook repo path {self.repo_path} does not exist or is not a directory"
            )
        try:
            repo = git.Repo(str(self.repo_path))
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as error:
            raise RepoStateError(
                f"The cookbook repo {self.repo_path} is not a git repository.",
                hint="Use `git init` to initialize a git repo"
            ) from error

        if repo.bare or repo.working_tree_dir is None:
            repo.close()
            raise RepoStateError(f"The cookbook repo {self.repo_path} is a bare repository")
        if Path(repo.working_tree_dir).resolve() != self.repo_path.resolve():
            repo.close()
            raise RepoStateError(
                f"The cookbook repo {self.repo_path} is not the top of its git working tree "
                f"({repo.working_tree_dir})"
            )
        return repo

    def sanity_check(self) -> bool:
        """
        Verify the cookbook path is a usable git working copy.

        An absent or empty directory is initialized with an empty commit on
        the main line.

        Raises:
            RepoStateError: if the path is not a directory, not the top of a
                git working tree, has no main-line branch, or has uncommitted
                changes to tracked files
        """
        if not self.repo_path.exists() or (self.repo_path.is_dir() and not any(self.repo_path.iterdir())):
            repo = self._initialize()
        else:
            repo = self._open()
        self._repo = repo

        try:
            if self.use_current_branch:
                if repo.head.is_detached:
                    raise RepoStateError(
                        f"The cookbook repo {self.repo_path} has a detached HEAD; "
                        "cannot use the current branch"
                    )
                current = repo.active_branch.name
                if current.startswith(self.vendor_branch_prefix):
                    raise RepoStateError(
                        f"The current branch {current} is a vendor branch, not a main line",
                        hint=f"Check out your main branch in {self.repo_path} first"
                    )
                self.main_branch = current

            if not self.branch_exists(self.main_branch):
                raise RepoStateError(
                    f"The default branch '{self.main_branch}' does not exist",
                    hint="If this is a new git repo, make sure you have at least one "
                         "commit before installing cookbooks"
                )

            if repo.is_dirty(index=True, working_tree=True, untracked_files=False):
                raise RepoStateError(
                    f"You have uncommitted changes to your cookbook repo ({self.repo_path}):\n"
                    f"{repo.git.status('--porcelain', '--untracked-files=no')}",
                    hint="Commit or stash your changes before importing cookbooks"
                )
        except (git.exc.GitCommandError, ValueError) as error:
            raise RepoStateError(f"The cookbook repo {self.repo_path} is unreadable: {error}") from error

        self._transition(RepoState.CLEAN)
        return True

    def reset_to_default_state(self) -> None:
        """
        Discard uncommitted changes and check out the main line.

        Valid from any state once the repository has been opened. A failure
        here leaves the working copy in an unknown state and is fatal.

        Raises:
            RepoStateError: if git refuses
        """
        repo = self.repo
        logger.info(f"Checking out the {self.main_branch} branch.")
        try:
            if self._merge_in_progress():
                repo.git.merge('--abort')
            repo.head.reset(index=True, working_tree=True)
            repo.git.checkout('-f', self.main_branch)
            for package in sorted(self._touched):
                repo.git.clean('-f', '-d', '--', package)
        except git.exc.GitCommandError as error:
            raise RepoStateError(
                f"Could not reset {self.repo_path} to the {self.main_branch} branch: {error}"
            ) from error
        self._transition(RepoState.CLEAN)

    def rollback(self) -> None:
        """Reset after a failed import, recording the rollback."""
        self._transition(RepoState.ROLLED_BACK)
        self.reset_to_default_state()

    def prepare_to_import(self, package: str) -> None:
        """
        Switch to the package's vendor branch and clear the package.

        The vendor branch is created from the main line the first time a
        package is imported.
        """
        self._require("prepare an import", RepoState.CLEAN)
        repo = self.repo
        branch = self.vendor_branch(package)
        self._touched.add(package)

        try:
            if self.branch_exists(branch):
                logger.info(f"Pristine copy branch ({branch}) exists, switching to it.")
                repo.heads[branch].checkout()
            else:
                logger.info(f"Creating pristine copy branch {branch}")
                repo.create_head(branch, repo.heads[self.main_branch].commit).checkout()

            repo.git.rm('-r', '-q', '--ignore-unmatch', '--', package)
        except (git.exc.GitCommandError, ValueError) as error:
            raise RepoStateError(f"Could not prepare {branch} for an import: {error}") from error

        # Untracked leftovers are not touched by git rm
        delete_path(self.repo_path / package)
        self._transition(RepoState.IMPORT_PREPARED)

    def finalize_updates_from_remote(self, package: str, source_ref: str, sha: str) -> bool:
        """
        Commit and tag the imported snapshot on the vendor branch.

        Args:
            package: Cookbook directory name
            source_ref: Where the snapshot came from (owner/repo@ref)
            sha: Commit the snapshot was taken at

        Returns:
            True if the vendor branch holds content the main line has not
            merged yet, False if the import changes nothing
        """
        self._require("finalize an import", RepoState.IMPORT_PREPARED)
        repo = self.repo
        branch = self.vendor_branch(package)

        try:
            package_path = self.repo_path / package
            # git rm already staged the deletions when nothing was imported
            if package_path.is_dir() and any(p.is_file() for p in package_path.rglob('*')):
                repo.git.add('--all', '--force', '--', package)
            updated = repo.git.diff('--cached', '--name-only', '--', package).splitlines()

            if updated:
                logger.info(f"{len(updated)} files updated, committing changes")
                commit = repo.index.commit(f"Import {source_ref} version {sha}")
                tag = self.import_tag(package, sha)
                logger.info(f"Creating tag {tag}")
                repo.create_tag(
                    tag,
                    ref=commit,
                    message=f"Import of {package} from {source_ref} at {sha}",
                    force=True
                )
                self.last_import_tag = tag
            else:
                logger.info(f"No changes made to {package}")

            vendor_commit = repo.heads[branch].commit
            main_commit = repo.heads[self.main_branch].commit
            has_new_content = (
                not repo.is_ancestor(vendor_commit, main_commit)
                and self._package_tree(vendor_commit, package) != self._package_tree(main_commit, package)
            )
        except git.exc.GitCommandError as error:
            raise RepoStateError(f"Could not commit the import of {package} on {branch}: {error}") from error

        if has_new_content and not updated:
            logger.info(f"{branch} has changes not yet merged into {self.main_branch}")
        self._transition(RepoState.IMPORT_FINALIZED)
        return has_new_content

    @staticmethod
    def _package_tree(commit: git.Commit, package: str) -> Optional[str]:
        try:
            return (commit.tree / package).hexsha
        except KeyError:
            return None

    def merge_updates_from(self, package: str, sha: str) -> None:
        """
        Merge the package's vendor branch into the main line.

        Must follow a fresh reset_to_default_state().

        Raises:
            MergeConflictError: if the merge conflicts; the merge is aborted
                and the vendor branch keeps the import
            RepoStateError: if git fails for any other reason
        """
        self._require("merge an import", RepoState.CLEAN)
        repo = self.repo
        branch = self.vendor_branch(package)
        if not self.branch_exists(branch):
            raise RepoStateError(f"There is no vendor branch {branch} to merge")

        try:
            repo.git.merge('--no-edit', '-m', f"Merge {package} version {sha}", branch)
        except git.exc.GitCommandError as error:
            conflicts = sorted(repo.index.unmerged_blobs().keys())
            self._abort_merge()
            if conflicts:
                logger.error("You have merge conflicts - please resolve manually")
                raise MergeConflictError(package, branch, [str(path) for path in conflicts]) from error
            raise RepoStateError(f"Merging {branch} into {self.main_branch} failed: {error}") from error

        self._transition(RepoState.MERGED)
        logger.info(f"Cookbook {package} version {sha} successfully installed")

    def _abort_merge(self) -> None:
        repo = self.repo
        try:
            if self._merge_in_progress():
                repo.git.merge('--abort')
        except git.exc.GitCommandError as error:
            logger.warning(f"git merge --abort failed ({error}), resetting instead")
            repo.head.reset(index=True, working_tree=True)

    def close(self) -> None:
        if self._repo is not None:
            self._repo.close()
