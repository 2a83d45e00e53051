"""User-facing errors with actionable context.

Every error here is fatal: the CLI logs it and exits non-zero. Each error
should say what went wrong and, where possible, what the user can do about it.
"""

import dataclasses
import pathlib

import beartype


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class InstallerError(Exception):
    """Base error with structured context for user-facing messages."""

    message: str
    """What went wrong."""

    hint: str | None = None
    """What the user can do about it."""

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return "\n".join(parts)


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class DetectionError(InstallerError):
    """OS identity metadata is missing or unreadable."""

    fpath: pathlib.Path | None = None
    """The os-release file that was read, if any."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class UnsupportedArchitectureError(InstallerError):
    """Machine architecture has no PowerShell package."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class UnsupportedDistributionError(InstallerError):
    """Distribution has no known package manager profile."""

    @staticmethod
    def make(distribution_id: str) -> "UnsupportedDistributionError":
        """Create an UnsupportedDistributionError with default hint."""
        return UnsupportedDistributionError(
            message=f"Unsupported distribution: {distribution_id or '(empty)'}",
            hint="Supported distributions: ubuntu, debian, rhel, centos, fedora.",
        )


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class PrivilegeError(InstallerError):
    """Elevated privileges could not be obtained."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class ReleaseApiError(InstallerError):
    """The release API could not be queried."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class AssetNotFoundError(InstallerError):
    """No release asset matches this system."""

    pattern: str | None = dataclasses.field(default=None, kw_only=True)
    """Filename pattern used for matching."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class DownloadError(InstallerError):
    """Package download failed."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class VerificationFailedError(InstallerError):
    """pwsh is not invocable after installation."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class LockError(InstallerError):
    """Another installer process is running."""

    lock_fpath: pathlib.Path = dataclasses.field(kw_only=True)
    """Path to the lock file."""

    @staticmethod
    def make(lock_fpath: pathlib.Path) -> "LockError":
        """Create a LockError with default message and hint."""
        return LockError(
            message=f"Another installation is running (lock: {lock_fpath})",
            hint=f"Wait for it to finish, or delete {lock_fpath} if stale.",
            lock_fpath=lock_fpath,
        )
