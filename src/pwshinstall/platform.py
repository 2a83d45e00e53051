"""Distribution and architecture detection."""

import dataclasses
import enum
import pathlib
import platform
import shlex

import beartype

import pwshinstall.errors

OS_RELEASE_FPATH = pathlib.Path("/etc/os-release")

_ARCH_TAGS = {"x86_64": "amd64", "aarch64": "arm64"}


class Distro(enum.Enum):
    """Distributions with a known package manager profile."""

    UBUNTU = "ubuntu"
    DEBIAN = "debian"
    RHEL = "rhel"
    CENTOS = "centos"
    FEDORA = "fedora"


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class SystemProfile:
    """Detected system identity, populated once at startup."""

    distro: Distro
    """Distribution (os-release ID)."""

    version: str
    """Distribution version (os-release VERSION_ID), possibly empty."""

    pretty_name: str
    """Human-readable name (os-release PRETTY_NAME)."""

    arch: str
    """Normalized architecture tag, 'amd64' or 'arm64'."""


@beartype.beartype
def read_os_release(fpath: pathlib.Path = OS_RELEASE_FPATH) -> dict[str, str]:
    """Parse an os-release file into a key/value dict."""
    if not fpath.is_file():
        raise pwshinstall.errors.DetectionError(
            message="Cannot detect OS information",
            hint=f"{fpath} does not exist; only Linux with os-release is supported.",
            fpath=fpath,
        )

    try:
        text = fpath.read_text()
    except OSError as err:
        raise pwshinstall.errors.DetectionError(
            message=f"Cannot read {fpath}: {err}",
            fpath=fpath,
        ) from None

    fields = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, raw = line.split("=", maxsplit=1)
        try:
            tokens = shlex.split(raw)
        except ValueError:
            # Unbalanced quotes; keep the raw value.
            tokens = [raw.strip("\"'")]
        fields[key.strip()] = " ".join(tokens)
    return fields


@beartype.beartype
def get_distro(distribution_id: str) -> Distro:
    """Map an os-release ID to a supported distribution."""
    try:
        return Distro(distribution_id)
    except ValueError:
        raise pwshinstall.errors.UnsupportedDistributionError.make(
            distribution_id
        ) from None


@beartype.beartype
def get_arch(machine: str | None = None) -> str:
    """Get normalized architecture tag for the machine's hardware name."""
    if machine is None:
        machine = platform.machine()
    arch = _ARCH_TAGS.get(machine)
    if arch is None:
        raise pwshinstall.errors.UnsupportedArchitectureError(
            message=f"Unsupported architecture: {machine}",
            hint="PowerShell packages are available for x86_64 and aarch64 only.",
        )
    return arch


@beartype.beartype
def detect_system(
    fpath: pathlib.Path = OS_RELEASE_FPATH, machine: str | None = None
) -> SystemProfile:
    """Detect distribution and architecture."""
    fields = read_os_release(fpath)
    distribution_id = fields.get("ID")
    if not distribution_id:
        raise pwshinstall.errors.DetectionError(
            message=f"Missing ID in {fpath}",
            hint="The os-release file must name the distribution with ID=.",
            fpath=fpath,
        )

    distro = get_distro(distribution_id)
    arch = get_arch(machine)
    return SystemProfile(
        distro=distro,
        version=fields.get("VERSION_ID", ""),
        pretty_name=fields.get("PRETTY_NAME") or distribution_id,
        arch=arch,
    )
