"""
Handles the 'install' command for installing cookbooks from GitHub.

This command follows our design principles:
- Default output is JSONL
- --table flag for human-readable table output
- The install itself lives in InstallService; this module only wires
  configuration and options into it
"""

import getpass
import logging
import sys
from typing import Any, Dict, Optional

import click

from ..config import load_config, split_path_list
from ..domain.install import InstallStatus
from ..domain.package import PackageIdentity
from ..exit_codes import MergeConflictError, UsageError
from ..infra.github_client import GitHubClient
from ..render import render_install_table
from ..services.fetcher import SnapshotFetcher
from ..services.install_service import InstallOptions, InstallService
from ..cli_utils import standard_command, add_common_options

USAGE = "USAGE: cookbookvendor install USER/REPO[/REF] [options]"


def build_service(config: Dict[str, Any], local_user: Optional[str] = None) -> InstallService:
    """Build an InstallService from the loaded configuration."""
    github = config.get("github", {})
    general = config.get("general", {})
    resolver = GitHubClient(
        api_url=github.get("api_url", "https://api.github.com"),
        host=github.get("host", "github.com"),
        anonymous_protocol=github.get("anonymous_protocol", "https"),
        local_user=local_user,
        ssh_for_own_repos=github.get("ssh_for_own_repos", True),
        timeout=github.get("timeout_seconds", 30),
    )
    fetcher = SnapshotFetcher(general.get("scratch_dir") or None)
    return InstallService(resolver, fetcher=fetcher)


def current_user() -> Optional[str]:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return None


def install_root(config: Dict[str, Any], cookbook_path: Optional[str]) -> str:
    """The first entry of the cookbook path is where cookbooks are installed."""
    if cookbook_path:
        paths = split_path_list(cookbook_path)
    else:
        paths = config.get("general", {}).get("cookbook_path", [])
        if isinstance(paths, str):
            paths = split_path_list(paths)
    if not paths:
        raise UsageError("No cookbook path configured; pass --cookbook-path PATH:PATH")
    return paths[0]


@click.command("install")
@click.argument("package", metavar="USER/REPO[/REF]", nargs=-1)
@click.option("-S", "--ssh", "use_ssh", is_flag=True,
              help="Use the git@ style url. Defaults to true if $USER matches user/repo")
@click.option("-o", "--cookbook-path", metavar="PATH:PATH",
              help="A colon-separated path to look for cookbooks in; the first entry is the install root")
@click.option("-B", "--branch", "main_branch", metavar="BRANCH",
              help="Default branch of the cookbook repository to work with")
@click.option("--use-current-branch", is_flag=True, default=None,
              help="Merge into whatever branch is checked out instead of the default branch")
@click.option("--table/--no-table", default=None, help="Display as formatted table (auto-detected by default)")
@add_common_options('verbose', 'quiet')
@standard_command
def install_handler(package, use_ssh, cookbook_path, main_branch, use_current_branch, table,
                    progress, quiet, verbose=False, **kwargs):
    """
    Install a cookbook from GitHub.

    USER/REPO[/REF] names the cookbook on GitHub; REF is a branch or
    tag and defaults to master. The cookbook is imported on a
    chef-vendor-NAME branch of the cookbook repository, tagged with the
    upstream sha and merged into the default branch, so local changes
    survive updates.

    \b
    Examples:
        cookbookvendor install jnewland/chef_ipmi
        cookbookvendor install acme/chef-widget/v1.2.0 -o ~/chef/cookbooks
        cookbookvendor install me/chef-widget --ssh --branch main
    """
    if len(package) != 1:
        raise UsageError(f"Expected exactly one USER/REPO argument\n{USAGE}")

    config = load_config()
    if verbose:
        logging.getLogger("cookbookvendor").setLevel(logging.DEBUG)

    repository = config.get("repository", {})
    identity = PackageIdentity.parse(package[0], config.get("install", {}).get("default_ref") or "master")
    options = InstallOptions(
        use_ssh=use_ssh,
        main_branch=main_branch or repository.get("default_branch", "master"),
        vendor_branch_prefix=repository.get("vendor_branch_prefix", "chef-vendor-"),
        use_current_branch=(use_current_branch if use_current_branch is not None
                            else repository.get("use_current_branch", False)),
    )
    root = install_root(config, cookbook_path)

    if table is None:
        table = sys.stdout.isatty()

    service = build_service(config, current_user())
    with progress.spinner(f"Installing {identity.local_name} from {identity}"):
        result = service.install(identity, root, options)

    if result.status == InstallStatus.INSTALLED:
        progress.success(f"Installed {identity.local_name} at {result.sha[:10]}")
    elif result.status == InstallStatus.UP_TO_DATE:
        progress.success(f"{identity.local_name} is up to date at {result.sha[:10]}")

    if table:
        if not quiet:
            render_install_table([result.to_dict()])
    else:
        yield result.to_dict()

    if result.status == InstallStatus.CONFLICT:
        raise MergeConflictError(identity.local_name, result.vendor_branch, result.conflicts)
