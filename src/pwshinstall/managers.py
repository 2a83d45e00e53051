"""Package manager profiles per distribution."""

import dataclasses
import pathlib

import beartype

import pwshinstall.platform


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class PackageManagerProfile:
    """How to install a local package file on one family of distributions.

    Commands are argv tuples without privilege escalation; the caller adds
    `sudo` when needed.
    """

    name: str
    """Package manager name ('apt' or 'dnf')."""

    package_format: str
    """Package file extension ('deb' or 'rpm')."""

    install_cmd: tuple[str, ...]
    """Direct install command; the package path is appended."""

    repair_cmd: tuple[str, ...]
    """Dependency repair command run after a failed direct install."""

    repair_takes_package: bool
    """Whether the package path is appended to repair_cmd."""

    refresh_cmd: tuple[str, ...]
    """Package index refresh command."""

    refresh_ok_codes: frozenset[int] = frozenset({0})
    """Exit codes of refresh_cmd that mean success."""

    def get_install_argv(self, package_fpath: pathlib.Path) -> tuple[str, ...]:
        return (*self.install_cmd, str(package_fpath))

    def get_repair_argv(self, package_fpath: pathlib.Path) -> tuple[str, ...]:
        if self.repair_takes_package:
            return (*self.repair_cmd, str(package_fpath))
        return self.repair_cmd


APT = PackageManagerProfile(
    name="apt",
    package_format="deb",
    install_cmd=("dpkg", "-i"),
    repair_cmd=("apt-get", "install", "-f", "-y"),
    repair_takes_package=False,
    refresh_cmd=("apt-get", "update"),
)

# `dnf check-update` exits 100 when updates are available.
DNF = PackageManagerProfile(
    name="dnf",
    package_format="rpm",
    install_cmd=("rpm", "-i"),
    repair_cmd=("dnf", "install", "-y"),
    repair_takes_package=True,
    refresh_cmd=("dnf", "check-update"),
    refresh_ok_codes=frozenset({0, 100}),
)

_PROFILES = {
    pwshinstall.platform.Distro.UBUNTU: APT,
    pwshinstall.platform.Distro.DEBIAN: APT,
    pwshinstall.platform.Distro.RHEL: DNF,
    pwshinstall.platform.Distro.CENTOS: DNF,
    pwshinstall.platform.Distro.FEDORA: DNF,
}


@beartype.beartype
def resolve(distro: pwshinstall.platform.Distro) -> PackageManagerProfile:
    """Get the package manager profile for a distribution."""
    return _PROFILES[distro]


@beartype.beartype
def resolve_id(distribution_id: str) -> PackageManagerProfile:
    """Get the package manager profile for a raw os-release ID."""
    return resolve(pwshinstall.platform.get_distro(distribution_id))
