"""Tests for installer steps."""

import logging
import pathlib

import pytest

import pwshinstall.errors
import pwshinstall.install
import pwshinstall.managers


def test_elevate_adds_sudo_when_not_root(monkeypatch) -> None:
    """elevate prefixes sudo for unprivileged users."""
    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: False)
    assert pwshinstall.install.elevate(("dpkg", "-i", "x.deb")) == (
        "sudo",
        "dpkg",
        "-i",
        "x.deb",
    )


def test_elevate_as_root(monkeypatch) -> None:
    """elevate leaves argv alone for root."""
    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: True)
    assert pwshinstall.install.elevate(("dpkg", "-i", "x.deb")) == ("dpkg", "-i", "x.deb")


def test_check_privileges_root_skips_sudo(monkeypatch) -> None:
    """check_privileges does nothing for root."""
    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: True)

    def fail(argv: tuple[str, ...]) -> int:
        raise AssertionError("should not run commands")

    monkeypatch.setattr(pwshinstall.install, "run_command", fail)
    pwshinstall.install.check_privileges()


def test_check_privileges_missing_sudo(monkeypatch) -> None:
    """check_privileges raises PrivilegeError when sudo is unavailable."""
    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: False)
    monkeypatch.setattr(pwshinstall.install.shutil, "which", lambda name: None)
    with pytest.raises(pwshinstall.errors.PrivilegeError, match="sudo"):
        pwshinstall.install.check_privileges()


def test_check_privileges_sudo_denied(monkeypatch) -> None:
    """check_privileges raises PrivilegeError when sudo -v fails."""
    calls: list[tuple[str, ...]] = []

    def fake_run_command(argv: tuple[str, ...]) -> int:
        calls.append(argv)
        return 1

    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: False)
    monkeypatch.setattr(pwshinstall.install.shutil, "which", lambda name: "/usr/bin/sudo")
    monkeypatch.setattr(pwshinstall.install, "run_command", fake_run_command)
    with pytest.raises(pwshinstall.errors.PrivilegeError):
        pwshinstall.install.check_privileges()
    assert calls == [("sudo", "-v")]


def test_refresh_index_accepts_dnf_updates_available(monkeypatch) -> None:
    """refresh_index treats dnf check-update exit 100 as success."""
    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: True)
    monkeypatch.setattr(pwshinstall.install, "run_command", lambda argv: 100)
    assert pwshinstall.install.refresh_index(pwshinstall.managers.DNF) is True


def test_refresh_index_failure_is_warning(monkeypatch, caplog) -> None:
    """refresh_index logs a warning instead of failing."""
    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: True)
    monkeypatch.setattr(pwshinstall.install, "run_command", lambda argv: 100)
    with caplog.at_level(logging.WARNING):
        assert pwshinstall.install.refresh_index(pwshinstall.managers.APT) is False
    assert "refresh failed" in caplog.text


def test_install_package_success_skips_repair(monkeypatch, tmp_path: pathlib.Path) -> None:
    """install_package does not repair after a successful install."""
    calls: list[tuple[str, ...]] = []

    def fake_run_command(argv: tuple[str, ...]) -> int:
        calls.append(argv)
        return 0

    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: True)
    monkeypatch.setattr(pwshinstall.install, "run_command", fake_run_command)
    package_fpath = tmp_path / "powershell_7.4.0_amd64.deb"

    assert pwshinstall.install.install_package(pwshinstall.managers.APT, package_fpath)
    assert calls == [("dpkg", "-i", str(package_fpath))]


def test_install_package_failure_repairs_once(monkeypatch, tmp_path: pathlib.Path) -> None:
    """install_package runs the repair command exactly once after a failure."""
    calls: list[tuple[str, ...]] = []
    codes = [1, 0]

    def fake_run_command(argv: tuple[str, ...]) -> int:
        calls.append(argv)
        return codes.pop(0)

    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: False)
    monkeypatch.setattr(pwshinstall.install, "run_command", fake_run_command)
    package_fpath = tmp_path / "powershell_7.4.0_amd64.rpm"

    assert not pwshinstall.install.install_package(
        pwshinstall.managers.DNF, package_fpath
    )
    assert calls == [
        ("sudo", "rpm", "-i", str(package_fpath)),
        ("sudo", "dnf", "install", "-y", str(package_fpath)),
    ]


def test_install_package_repair_failure_not_fatal(
    monkeypatch, tmp_path: pathlib.Path, caplog
) -> None:
    """install_package logs a failed repair and returns."""
    calls: list[tuple[str, ...]] = []

    def fake_run_command(argv: tuple[str, ...]) -> int:
        calls.append(argv)
        return 1

    monkeypatch.setattr(pwshinstall.install, "is_root", lambda: True)
    monkeypatch.setattr(pwshinstall.install, "run_command", fake_run_command)

    with caplog.at_level(logging.WARNING):
        result = pwshinstall.install.install_package(
            pwshinstall.managers.APT, tmp_path / "pkg.deb"
        )
    assert result is False
    assert len(calls) == 2
    assert "Dependency repair failed" in caplog.text


def test_cleanup_removes_file(tmp_path: pathlib.Path) -> None:
    """cleanup deletes the package file and tolerates a missing one."""
    package_fpath = tmp_path / "powershell_7.4.0_amd64.deb"
    package_fpath.write_bytes(b"pkg")

    pwshinstall.install.cleanup(package_fpath)
    assert not package_fpath.exists()
    pwshinstall.install.cleanup(package_fpath)


def test_get_download_fpath(tmp_path: pathlib.Path) -> None:
    """get_download_fpath names the file after version, arch and format."""
    fpath = pwshinstall.install.get_download_fpath(tmp_path, "7.4.0", "amd64", "deb")
    assert fpath == tmp_path / "powershell_7.4.0_amd64.deb"


def test_verify_missing_pwsh(monkeypatch) -> None:
    """verify raises VerificationFailedError when pwsh is not on PATH."""
    monkeypatch.setattr(pwshinstall.install, "find_pwsh", lambda: None)
    with pytest.raises(pwshinstall.errors.VerificationFailedError):
        pwshinstall.install.verify()


def test_verify_found(monkeypatch) -> None:
    """verify returns the pwsh path."""
    pwsh_fpath = pathlib.Path("/usr/bin/pwsh")
    monkeypatch.setattr(pwshinstall.install, "find_pwsh", lambda: pwsh_fpath)
    assert pwshinstall.install.verify() == pwsh_fpath


def test_run_command_missing_executable(caplog) -> None:
    """run_command reports a missing executable as exit code 127."""
    with caplog.at_level(logging.WARNING):
        code = pwshinstall.install.run_command(("definitely-not-a-real-command-xyz",))
    assert code == 127
