"""Installer steps: privileges, package manager calls, cleanup and verification."""

import logging
import os
import pathlib
import shutil
import subprocess

import beartype

import pwshinstall.errors
import pwshinstall.managers

PWSH = "pwsh"

logger = logging.getLogger(__name__)


@beartype.beartype
def is_root() -> bool:
    return os.geteuid() == 0


@beartype.beartype
def elevate(argv: tuple[str, ...]) -> tuple[str, ...]:
    """Prefix argv with sudo unless already running as root."""
    if is_root():
        return argv
    return ("sudo", *argv)


@beartype.beartype
def run_command(argv: tuple[str, ...]) -> int:
    """Run a command with inherited stdio and return its exit code."""
    logger.debug("Running: %s", " ".join(argv))
    try:
        completed = subprocess.run(list(argv), check=False)
    except OSError as err:
        logger.warning("Could not run %s: %s", argv[0], err)
        return 127
    return completed.returncode


@beartype.beartype
def check_privileges() -> None:
    """Ensure elevated privileges are available for package manager calls."""
    if is_root():
        return
    if shutil.which("sudo") is None:
        raise pwshinstall.errors.PrivilegeError(
            message="This installer requires sudo privileges",
            hint="Install sudo, or run the installer as root.",
        )
    if run_command(("sudo", "-v")) != 0:
        raise pwshinstall.errors.PrivilegeError(
            message="This installer requires sudo privileges",
            hint="Make sure your user is allowed to run sudo.",
        )


@beartype.beartype
def refresh_index(manager: pwshinstall.managers.PackageManagerProfile) -> bool:
    """Refresh the package index. Failure is reported but not fatal."""
    code = run_command(elevate(manager.refresh_cmd))
    if code in manager.refresh_ok_codes:
        return True
    logger.warning("Package index refresh failed (exit code %d)", code)
    return False


@beartype.beartype
def find_pwsh() -> pathlib.Path | None:
    """Return the path to pwsh on PATH, if any."""
    found = shutil.which(PWSH)
    if found is None:
        return None
    return pathlib.Path(found)


@beartype.beartype
def get_pwsh_version(pwsh_fpath: pathlib.Path) -> str | None:
    """Return `pwsh --version` output, or None if it cannot be run."""
    try:
        completed = subprocess.run(
            [str(pwsh_fpath), "--version"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return None
    if completed.returncode != 0:
        return None
    return completed.stdout.strip() or None


@beartype.beartype
def get_download_fpath(
    temp_dpath: pathlib.Path, version: str, arch: str, package_format: str
) -> pathlib.Path:
    return temp_dpath / f"powershell_{version}_{arch}.{package_format}"


@beartype.beartype
def install_package(
    manager: pwshinstall.managers.PackageManagerProfile,
    package_fpath: pathlib.Path,
) -> bool:
    """Install a package file, falling back to dependency repair once.

    Returns True if the direct install succeeded. A failed repair is only
    logged; verification decides whether the installation worked.
    """
    if run_command(elevate(manager.get_install_argv(package_fpath))) == 0:
        return True

    logger.info("Attempting to fix dependencies")
    code = run_command(elevate(manager.get_repair_argv(package_fpath)))
    if code != 0:
        logger.warning("Dependency repair failed (exit code %d)", code)
    return False


@beartype.beartype
def cleanup(package_fpath: pathlib.Path) -> None:
    """Remove the downloaded package file."""
    try:
        package_fpath.unlink(missing_ok=True)
    except OSError as err:
        logger.warning("Could not remove %s: %s", package_fpath, err)


@beartype.beartype
def verify() -> pathlib.Path:
    """Check that pwsh is invocable after installation."""
    pwsh_fpath = find_pwsh()
    if pwsh_fpath is None:
        raise pwshinstall.errors.VerificationFailedError(
            message="PowerShell installation verification failed",
            hint=f"'{PWSH}' was not found on PATH; check the package manager output above.",
        )
    return pwsh_fpath
