"""
Package identity domain objects for cookbookvendor.

PackageIdentity is parsed once from the OWNER/REPO[/REF] argument and is
immutable afterwards. RemoteRef is what the resolver turns a ref name into.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..exit_codes import UsageError

DEFAULT_REF = "master"

# "chef" is decorative unless it names chef-client, chef-server or chef_handler
_CHEF_AFFIX = re.compile(r"[_-]?chef(?!-client|-server|_handler)[-_]?")
_COOKBOOK_AFFIX = re.compile(r"[_-]?cookbook[-_]?")


def strip_affixes(name: str) -> str:
    """
    Strip decorative "chef"/"cookbook" affixes from a repository name.

    Stripping is applied until nothing changes, so the result is stable
    under re-stripping. A name made only of affixes is returned unchanged.

    Examples:
        chef-widget       -> widget
        widget-cookbook   -> widget
        chef_handler-foo  -> chef_handler-foo
    """
    current = name
    while True:
        stripped = _COOKBOOK_AFFIX.sub('', _CHEF_AFFIX.sub('', current))
        if stripped == current:
            break
        current = stripped
    return current or name


@dataclass(frozen=True)
class PackageIdentity:
    """A cookbook on GitHub, identified by owner, repository and ref."""
    owner: str
    repo: str
    ref: str = DEFAULT_REF
    local_name: str = ""

    def __post_init__(self):
        if not self.owner or not self.repo:
            raise UsageError(
                "Expected a github user and a repo to download from: jnewland/chef_ipmi"
            )
        if not self.ref:
            object.__setattr__(self, 'ref', DEFAULT_REF)
        if not self.local_name:
            object.__setattr__(self, 'local_name', strip_affixes(self.repo))
        if self.local_name in ('.', '..') or any(sep in self.local_name for sep in '/\\'):
            raise UsageError(
                f"'{self.local_name}' is not a usable cookbook directory name (from {self.owner}/{self.repo})"
            )

    @classmethod
    def parse(cls, argument: str, default_ref: str = DEFAULT_REF) -> 'PackageIdentity':
        """
        Parse an ``OWNER/REPO[/REF]`` argument.

        Everything after the second slash is the ref, so refs such as
        ``release/1.0`` survive.

        Raises:
            UsageError: if owner or repo is missing
        """
        parts = (argument or '').strip().split('/', 2)
        owner = parts[0] if parts else ''
        repo = parts[1] if len(parts) > 1 else ''
        ref = parts[2] if len(parts) > 2 and parts[2] else default_ref
        return cls(owner=owner, repo=repo, ref=ref or DEFAULT_REF)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'owner': self.owner,
            'repo': self.repo,
            'ref': self.ref,
            'name': self.local_name,
        }

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}/{self.ref}"


class RefKind(Enum):
    """Namespace a ref was found in."""
    BRANCH = "branch"
    TAG = "tag"


@dataclass(frozen=True)
class RemoteRef:
    """A ref name resolved (or not) to a commit on the remote."""
    name: str
    kind: Optional[RefKind] = None
    sha: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.kind is not None and bool(self.sha)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'kind': self.kind.value if self.kind else None,
            'sha': self.sha,
        }
