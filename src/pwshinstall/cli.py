"""CLI definition using tyro."""

import dataclasses
import logging
import os
import pathlib
import sys
import typing as tp

import beartype
import tyro

import pwshinstall.errors
import pwshinstall.github
import pwshinstall.install
import pwshinstall.locate
import pwshinstall.lock
import pwshinstall.managers
import pwshinstall.platform

LOG_FORMAT = "[%(asctime)s] [PowerShell Install] %(levelname)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class Install:
    """Detect this Linux system and install the matching PowerShell package."""

    os_release_fpath: pathlib.Path = pwshinstall.platform.OS_RELEASE_FPATH
    """OS identity metadata file."""

    temp_dpath: pathlib.Path = pathlib.Path("/tmp")
    """Directory for the downloaded package."""

    repo: str = "PowerShell/PowerShell"
    """GitHub repository to fetch releases from."""

    timeout: float = 30.0
    """Per-request network timeout in seconds."""

    refresh_index: bool = True
    """Refresh the package index before installing."""

    verbose: bool = False
    """Show debug output."""


@beartype.beartype
def configure_logging(verbose: bool = False) -> None:
    """Install the single timestamped log line format on stdout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stdout,
        force=True,
    )


@beartype.beartype
def run_install(cmd: Install) -> tp.Literal["installed", "cancelled"]:
    """Run the installation flow from detection to verification."""
    logger.info("Starting PowerShell installation")

    logger.info("Detecting system information")
    system = pwshinstall.platform.detect_system(cmd.os_release_fpath)
    manager = pwshinstall.managers.resolve(system.distro)
    logger.info("Detected: %s (%s)", system.pretty_name, system.arch)

    pwshinstall.install.check_privileges()

    with pwshinstall.lock.acquire_lock(cmd.temp_dpath):
        if cmd.refresh_index:
            logger.info("Refreshing %s package index", manager.name)
            pwshinstall.install.refresh_index(manager)

        existing_fpath = pwshinstall.install.find_pwsh()
        if existing_fpath is not None:
            version = pwshinstall.install.get_pwsh_version(existing_fpath)
            logger.info("PowerShell is already installed: %s", version or existing_fpath)
            if not _confirm("Continue with new installation?"):
                logger.info("Installation cancelled by user")
                return "cancelled"

        token = os.environ.get("GITHUB_TOKEN")
        if not token:
            logger.debug("No GITHUB_TOKEN set; API rate limited to 60 requests/hour")
        client = pwshinstall.github.GitHubClient(token=token, timeout=cmd.timeout)
        located = pwshinstall.locate.locate_asset(
            client, cmd.repo, manager.package_format, system.arch
        )

        logger.info("Found PowerShell version: %s", located.version)
        _print_located(located)
        if not _confirm("Continue with this version?"):
            logger.info("Installation cancelled by user")
            return "cancelled"

        package_fpath = pwshinstall.install.get_download_fpath(
            cmd.temp_dpath, located.version, system.arch, manager.package_format
        )
        try:
            logger.info("Downloading PowerShell package")
            client.download_asset(located.url, package_fpath)

            logger.info("Installing PowerShell")
            pwshinstall.install.install_package(manager, package_fpath)
        finally:
            logger.info("Cleaning up temporary files")
            pwshinstall.install.cleanup(package_fpath)

    pwsh_fpath = pwshinstall.install.verify()
    logger.info("PowerShell installation successful!")
    version = pwshinstall.install.get_pwsh_version(pwsh_fpath)
    if version:
        logger.info("Installed: %s", version)
    logger.info("You can now start PowerShell by typing 'pwsh'")
    return "installed"


@beartype.beartype
def main() -> None:
    """Main entry point."""
    cmd = tyro.cli(Install)
    configure_logging(verbose=cmd.verbose)

    try:
        run_install(cmd)
    except pwshinstall.errors.InstallerError as err:
        for line in str(err).splitlines():
            logger.error(line)
        sys.exit(1)


@beartype.beartype
def _confirm(question: str) -> bool:
    """Ask a y/n question; only an answer starting with y or Y is a yes."""
    try:
        answer = input(f"{question} (y/n) ")
    except EOFError:
        print()
        return False
    return answer[:1] in {"y", "Y"}


@beartype.beartype
def _print_located(located: pwshinstall.locate.LocatedAsset) -> None:
    print("")
    print(f"{'URL':<50} {'VERSION':<15}")
    print(f"{located.url:<50} {located.version:<15}")
