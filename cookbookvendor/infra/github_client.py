"""
GitHub API client infrastructure for cookbookvendor.

Resolves a branch or tag name to a commit sha through the git refs API and
builds the URI a repository is cloned from. Anonymous access only.
"""

import logging
from typing import Optional, Dict, Any, Tuple
from urllib.parse import quote

import requests

from ..domain.package import RemoteRef, RefKind
from ..exit_codes import APIError, RefNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_HOST = "github.com"


class GitHubClient:
    """
    Resolves refs on GitHub and builds clone URIs.

    The local account name used by the SSH heuristic is passed in rather
    than read from the environment, so resolution is deterministic.

    Example:
        client = GitHubClient(local_user="jnewland")
        ref = client.resolve("jnewland", "chef_ipmi", "master")
        uri = client.clone_uri("jnewland", "chef_ipmi")  # git@github.com:...
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        host: str = DEFAULT_HOST,
        anonymous_protocol: str = "https",
        local_user: Optional[str] = None,
        ssh_for_own_repos: bool = True,
        timeout: float = 30,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize GitHubClient.

        Args:
            api_url: Base URL of the GitHub REST API
            host: Host name used in clone URIs
            anonymous_protocol: Scheme for read-only clone URIs (https or git)
            local_user: Account name of the invoking user (SSH heuristic)
            ssh_for_own_repos: Use SSH when the owner equals local_user
            timeout: Timeout in seconds for each API request
            session: requests session to use (a module-level get if None)
        """
        self.api_url = api_url.rstrip('/')
        self.host = host
        self.anonymous_protocol = anonymous_protocol
        self.local_user = local_user
        self.ssh_for_own_repos = ssh_for_own_repos
        self.timeout = timeout
        self.session = session

    def _get(self, url: str) -> requests.Response:
        headers = {
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'cookbookvendor'
        }
        getter = self.session.get if self.session is not None else requests.get
        try:
            return getter(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise APIError(f"GitHub API request failed for {url}: {e}") from e

    def _ref_sha(self, owner: str, repo: str, namespace: str, ref: str) -> Tuple[Optional[str], int]:
        """
        Query one ref namespace (heads or tags).

        Returns:
            Tuple of (sha or None, HTTP status code)
        """
        url = (f"{self.api_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
               f"/git/refs/{namespace}/{quote(ref, safe='/')}")
        logger.debug(f"GET {url}")
        response = self._get(url)

        if not 200 <= response.status_code < 300:
            logger.debug(f"GitHub API returned {response.status_code} for {url}")
            return None, response.status_code

        try:
            data: Dict[str, Any] = response.json()
        except ValueError:
            logger.warning(f"GitHub API returned invalid JSON for {url}")
            return None, response.status_code

        # A list means GitHub matched several refs by prefix, not this exact one
        if not isinstance(data, dict):
            return None, response.status_code
        obj = data.get('object')
        sha = obj.get('sha') if isinstance(obj, dict) else None
        return sha, response.status_code

    def resolve(self, owner: str, repo: str, ref: str) -> RemoteRef:
        """
        Resolve a ref name to a commit, trying branches before tags.

        Each namespace is queried once; the tag query is a fallback, not a
        retry.

        Args:
            owner: Repository owner
            repo: Repository name
            ref: Branch or tag name

        Returns:
            Resolved RemoteRef

        Raises:
            RefNotFoundError: if neither a branch nor a tag matches
            APIError: if the API cannot be reached
        """
        sha, status = self._ref_sha(owner, repo, 'heads', ref)
        if sha:
            logger.debug(f"Resolved branch {ref} of {owner}/{repo} to {sha}")
            return RemoteRef(name=ref, kind=RefKind.BRANCH, sha=sha)

        logger.info(f"No branch '{ref}' in {owner}/{repo} (HTTP {status}), trying tags")
        sha, status = self._ref_sha(owner, repo, 'tags', ref)
        if sha:
            logger.debug(f"Resolved tag {ref} of {owner}/{repo} to {sha}")
            return RemoteRef(name=ref, kind=RefKind.TAG, sha=sha)

        raise RefNotFoundError(owner, repo, ref)

    def uses_ssh(self, owner: str, use_ssh: bool = False) -> bool:
        """
        Whether to clone over SSH.

        The explicit flag always wins. Otherwise, when enabled, a repository
        owned by the local account name is assumed to be the user's own fork.
        This is a convenience guess, not an access check.
        """
        if use_ssh:
            return True
        return bool(self.ssh_for_own_repos and self.local_user and owner == self.local_user)

    def clone_uri(self, owner: str, repo: str, use_ssh: bool = False) -> str:
        """
        Build the URI to clone a repository from.

        Args:
            owner: Repository owner
            repo: Repository name
            use_ssh: Force the git@ style URI

        Returns:
            ``git@host:owner/repo.git`` or ``protocol://host/owner/repo.git``
        """
        if self.uses_ssh(owner, use_ssh):
            return f"git@{self.host}:{owner}/{repo}.git"
        return f"{self.anonymous_protocol}://{self.host}/{owner}/{repo}.git"
