"""
Shared fixtures: throwaway git repositories standing in for GitHub.
"""

from pathlib import Path

import git
import pytest

from cookbookvendor.domain.package import RefKind, RemoteRef
from cookbookvendor.exit_codes import RefNotFoundError


@pytest.fixture(autouse=True)
def git_identity(monkeypatch, tmp_path):
    """Commits, merges and annotated tags need an identity; keep user config out."""
    monkeypatch.setenv('GIT_AUTHOR_NAME', 'Test Author')
    monkeypatch.setenv('GIT_AUTHOR_EMAIL', 'author@example.com')
    monkeypatch.setenv('GIT_COMMITTER_NAME', 'Test Committer')
    monkeypatch.setenv('GIT_COMMITTER_EMAIL', 'committer@example.com')
    monkeypatch.setenv('GIT_CONFIG_NOSYSTEM', '1')
    monkeypatch.setenv('GIT_CONFIG_GLOBAL', str(tmp_path / 'gitconfig'))
    monkeypatch.setenv('COOKBOOKVENDOR_CONFIG', str(tmp_path / 'config' / 'config.json'))


def write_files(root: Path, files):
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def commit_files(repo: git.Repo, files, message="Update"):
    """Write files into a repo's working tree and commit them. Returns the sha."""
    root = Path(repo.working_tree_dir)
    write_files(root, files)
    repo.index.add(list(files))
    return repo.index.commit(message).hexsha


def init_repo(path: Path, branch="master") -> git.Repo:
    path.mkdir(parents=True, exist_ok=True)
    repo = git.Repo.init(str(path))
    repo.git.symbolic_ref('HEAD', f'refs/heads/{branch}')
    return repo


class LocalResolver:
    """Resolver that serves refs and clone URIs from a local upstream repo."""

    def __init__(self, upstream: git.Repo):
        self.upstream = upstream
        self.resolved = []

    def resolve(self, owner, repo, ref):
        self.resolved.append((owner, repo, ref))
        if ref in [head.name for head in self.upstream.heads]:
            return RemoteRef(ref, RefKind.BRANCH, self.upstream.heads[ref].commit.hexsha)
        if ref in [tag.name for tag in self.upstream.tags]:
            return RemoteRef(ref, RefKind.TAG, self.upstream.tags[ref].commit.hexsha)
        raise RefNotFoundError(owner, repo, ref)

    def clone_uri(self, owner, repo, use_ssh=False):
        return self.upstream.working_tree_dir


WIDGET_FILES = {
    'metadata.rb': "name 'widget'\nversion '1.0.0'\n",
    'recipes/default.rb': "package 'widget'\n",
    'README.md': "# widget\n",
}


@pytest.fixture
def upstream(tmp_path):
    """An upstream cookbook repo (acme/chef-widget) with one commit on master."""
    repo = init_repo(tmp_path / 'upstream' / 'chef-widget')
    commit_files(repo, WIDGET_FILES, "Initial widget cookbook")
    yield repo
    repo.close()


@pytest.fixture
def resolver(upstream):
    return LocalResolver(upstream)


@pytest.fixture
def cookbook_root(tmp_path):
    return tmp_path / 'cookbooks'


@pytest.fixture
def scratch_root(tmp_path):
    path = tmp_path / 'scratch'
    path.mkdir()
    return path
