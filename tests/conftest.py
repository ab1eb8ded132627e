"""
Pytest configuration and shared fixtures for binwrapper tests.
"""

import sys
import tarfile
import zipfile
from pathlib import Path

import pytest

from binwrapper.core.platform import PlatformInfo


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def linux_x64() -> PlatformInfo:
    return PlatformInfo("Linux", "x86_64", "6.1.0")


@pytest.fixture
def macos_arm64() -> PlatformInfo:
    return PlatformInfo("Darwin", "arm64", "23.1.0")


@pytest.fixture(autouse=True)
def isolated_state_dir(tmp_path, monkeypatch) -> Path:
    """Keep lock files and other state out of the real home directory."""
    state_dir = tmp_path / "state"
    monkeypatch.setenv("BINWRAPPER_HOME", str(state_dir))
    monkeypatch.delenv("BINWRAPPER_LOCK_DIR", raising=False)
    monkeypatch.delenv("BINWRAPPER_DOWNLOAD_TIMEOUT", raising=False)
    return state_dir


@pytest.fixture
def make_script():
    """Factory writing an executable Python script for the running interpreter."""

    def _make(path: Path, body: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"#!{sys.executable}\n{body}\n")
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def echo_args_script() -> str:
    """Script body printing one argument per line."""
    return "import sys\nprint('\\n'.join(sys.argv[1:]))"


@pytest.fixture
def tar_gz_bytes(tmp_path):
    """Factory building .tar.gz bytes from {arcname: text}."""
    counter = iter(range(1000))

    def _build(members: dict) -> bytes:
        n = next(counter)
        staging = tmp_path / f"tar-staging-{n}"
        archive_path = tmp_path / f"built-{n}.tar.gz"
        with tarfile.open(archive_path, "w:gz") as tar:
            for i, (arcname, content) in enumerate(members.items()):
                member_file = staging / f"member{i}"
                member_file.parent.mkdir(parents=True, exist_ok=True)
                member_file.write_text(content)
                member_file.chmod(0o755)
                tar.add(member_file, arcname=arcname)
        data = archive_path.read_bytes()
        archive_path.unlink()
        return data

    return _build


@pytest.fixture
def zip_bytes(tmp_path):
    """Factory building .zip bytes from {arcname: text} with Unix permission bits."""
    counter = iter(range(1000))

    def _build(members: dict, mode: int = 0o755) -> bytes:
        archive_path = tmp_path / f"built-{next(counter)}.zip"
        with zipfile.ZipFile(archive_path, "w") as zf:
            for arcname, content in members.items():
                info = zipfile.ZipInfo(arcname)
                info.external_attr = mode << 16
                zf.writestr(info, content)
        data = archive_path.read_bytes()
        archive_path.unlink()
        return data

    return _build
