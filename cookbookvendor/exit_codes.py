"""
Standard exit codes and error taxonomy for cookbookvendor commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import List, Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors (also bad command-line input)
USAGE_ERROR = 2          # Misuse of shell command (reported by click itself)
MERGE_CONFLICT = 3       # Vendor branch conflicts with local edits (knife compatible)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # GitHub API call failed or ref could not be resolved
CONFIG_ERROR = 66        # Configuration file error
REPO_STATE_ERROR = 67    # Install root is not a usable git working copy
NETWORK_ERROR = 68       # Clone/checkout of the remote repository failed
PERMISSION_ERROR = 77    # Insufficient permissions
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'GitCommandError': GENERAL_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class UsageError(CommandError):
    """Raised for bad command-line input. Nothing has been touched yet."""
    def __init__(self, message: str):
        super().__init__(message, GENERAL_ERROR)


class APIError(CommandError):
    """Raised when an external API call fails."""
    def __init__(self, message: str):
        super().__init__(message, API_ERROR)


class RefNotFoundError(APIError):
    """Raised when a ref resolves neither as a branch nor as a tag."""
    def __init__(self, owner: str, repo: str, ref: str):
        super().__init__(
            f"Could not find branch or tag '{ref}' in {owner}/{repo}"
        )
        self.owner = owner
        self.repo = repo
        self.ref = ref


class FetchError(CommandError):
    """Raised when cloning or checking out the remote repository fails."""
    def __init__(self, message: str):
        super().__init__(message, NETWORK_ERROR)


class RepoStateError(CommandError):
    """Raised when the install root is not a usable git working copy."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, REPO_STATE_ERROR)
        self.hint = hint


class MergeConflictError(CommandError):
    """
    Raised when the vendor branch cannot be merged cleanly.

    Recoverable: the working copy is reset and the vendor branch keeps the
    imported content for a manual merge.
    """
    def __init__(self, package: str, branch: str, conflicts: Optional[List[str]] = None):
        super().__init__(
            f"Merging {branch} into the main line conflicts with local changes to {package}",
            MERGE_CONFLICT
        )
        self.package = package
        self.branch = branch
        self.conflicts = conflicts or []


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)
