"""
Unit tests for acquisition orchestration.

HTTP is mocked with responses; extraction and stripping run on real files.
"""

import os
import sys
from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest
import responses

from binwrapper.core.exceptions import (
    BinWrapperError,
    FilesystemError,
    LockTimeout,
    NoMatchingSourceError,
    TransportError,
)
from binwrapper.core.locking import LockManager
from binwrapper.wrapper.acquisition import binary_exists, ensure_binary
from binwrapper.wrapper.builder import BinWrapper
from binwrapper.wrapper.source import Source

TOOL_URL = "https://example.com/download/tool"
TARBALL_URL = "https://example.com/download/tool-1.2.3-linux-x64.tar.gz"
ZIP_URL = "https://example.com/download/tool-1.2.3-macos.zip"


@pytest.fixture
def dest(tmp_path):
    return str(tmp_path / "vendor" / "bin")


class TestBinaryExists:
    """Tests for binary_exists."""

    def test_existing_file(self, tmp_path):
        (tmp_path / "tool").write_text("x")
        assert binary_exists(str(tmp_path / "tool")) is True

    def test_missing_file(self, tmp_path):
        assert binary_exists(str(tmp_path / "tool")) is False

    def test_other_stat_error(self, tmp_path):
        (tmp_path / "file.txt").write_text("not a directory")

        with pytest.raises(FilesystemError, match="Failed to check"):
            binary_exists(str(tmp_path / "file.txt" / "tool"))


class TestEnsureBinary:
    """Tests for ensure_binary."""

    @responses.activate
    def test_skip_download_returns_configured_path(self, dest, linux_x64):
        config = BinWrapper().dest(dest).exec_path("tool")

        assert ensure_binary(config, platform=linux_x64) == os.path.join(dest, "tool")
        assert len(responses.calls) == 0

    @responses.activate
    def test_existing_binary_is_not_downloaded(self, dest, linux_x64):
        os.makedirs(dest)
        with open(os.path.join(dest, "tool"), "wb") as f:
            f.write(b"already here")
        config = BinWrapper().src(Source(TOOL_URL)).dest(dest).exec_path("tool")

        path = ensure_binary(config, platform=linux_x64)

        assert path == os.path.join(dest, "tool")
        assert len(responses.calls) == 0

    @responses.activate
    def test_second_call_does_no_work(self, dest, linux_x64):
        responses.add(responses.GET, TOOL_URL, body=b"binary", status=200)
        config = BinWrapper().src(Source(TOOL_URL)).dest(dest).exec_path("tool")

        ensure_binary(config, platform=linux_x64)
        ensure_binary(config, platform=linux_x64)

        assert len(responses.calls) == 1

    @responses.activate
    def test_universal_source_non_archive(self, dest, linux_x64):
        """A plain file is kept unmodified at destination/exec_name."""
        content = b"\x7fELF\x02\x01\x01 plain executable"
        responses.add(responses.GET, TOOL_URL, body=content, status=200)
        config = BinWrapper().src(Source(TOOL_URL)).dest(dest).exec_path("tool")

        path = ensure_binary(config, platform=linux_x64)

        with open(path, "rb") as f:
            assert f.read() == content
        assert os.listdir(dest) == ["tool"]

    @responses.activate
    def test_no_matching_source(self, dest, linux_x64):
        config = (
            BinWrapper()
            .src(Source(ZIP_URL, os="Darwin"))
            .src(Source(TOOL_URL, os="Windows"))
            .dest(dest)
            .exec_path("tool")
        )

        with pytest.raises(NoMatchingSourceError, match="No binary found"):
            ensure_binary(config, platform=linux_x64)

        assert len(responses.calls) == 0

    def test_selected_source_without_url(self, dest, linux_x64):
        config = BinWrapper().src(Source(os="Linux")).dest(dest).exec_path("tool")

        with pytest.raises(TransportError, match="no URL"):
            ensure_binary(config, platform=linux_x64)

    @responses.activate
    def test_download_failure_propagates(self, dest, linux_x64):
        responses.add(responses.GET, TOOL_URL, status=500)
        config = BinWrapper().src(Source(TOOL_URL)).dest(dest).exec_path("tool")

        with pytest.raises(TransportError):
            ensure_binary(config, platform=linux_x64)

    @responses.activate
    @pytest.mark.skipif(sys.platform == "win32", reason="Unix permission bits")
    def test_tarball_extracted_and_stripped(self, dest, linux_x64, tar_gz_bytes):
        body = tar_gz_bytes(
            {
                "tool-1.2.3/tool": "#!/bin/sh\necho hi\n",
                "tool-1.2.3/README": "docs",
            }
        )
        responses.add(responses.GET, TARBALL_URL, body=body, status=200)
        config = (
            BinWrapper()
            .src(Source(TARBALL_URL, os="Linux", arch="x86_64"))
            .dest(dest)
            .exec_path("tool")
            .strip(1)
        )

        path = ensure_binary(config, platform=linux_x64)

        assert path == os.path.join(dest, "tool")
        assert os.access(path, os.X_OK)
        assert sorted(os.listdir(dest)) == ["README", "tool"]

    @responses.activate
    def test_tarball_without_strip_keeps_layout(self, dest, linux_x64, tar_gz_bytes):
        body = tar_gz_bytes({"tool-1.2.3/bin/tool": "binary"})
        responses.add(responses.GET, TARBALL_URL, body=body, status=200)
        config = (
            BinWrapper()
            .src(Source(TARBALL_URL, exec_path="tool-1.2.3/bin/tool"))
            .dest(dest)
        )

        path = ensure_binary(config, platform=linux_x64)

        assert path == os.path.join(dest, "tool-1.2.3/bin/tool")
        assert os.path.isfile(path)
        assert not os.path.exists(os.path.join(dest, "tool-1.2.3-linux-x64.tar.gz"))

    @responses.activate
    def test_source_exec_path_override(self, dest, macos_arm64, zip_bytes):
        responses.add(
            responses.GET, ZIP_URL, body=zip_bytes({"bin/tool-mac": "binary"}), status=200
        )
        config = (
            BinWrapper()
            .src(Source(TARBALL_URL, os="Linux"))
            .src(Source(ZIP_URL, os="Darwin", exec_path="tool-mac"))
            .dest(dest)
            .exec_path("tool")
            .strip(1)
        )

        path = ensure_binary(config, platform=macos_arm64)

        assert path == os.path.join(dest, "tool-mac")
        assert os.path.isfile(path)
        # The configuration itself is unchanged
        assert config.exec_name == "tool"

    @responses.activate
    def test_strip_skipped_for_non_archive(self, dest, linux_x64):
        os.makedirs(os.path.join(dest, "keep", "nested"))
        responses.add(responses.GET, TOOL_URL, body=b"binary", status=200)
        config = BinWrapper().src(Source(TOOL_URL)).dest(dest).exec_path("tool").strip(1)

        ensure_binary(config, platform=linux_x64)

        assert os.path.isdir(os.path.join(dest, "keep", "nested"))
        assert os.path.isfile(os.path.join(dest, "tool"))

    @responses.activate
    def test_default_destination_is_current_directory(
        self, tmp_path, monkeypatch, linux_x64
    ):
        monkeypatch.chdir(tmp_path)
        responses.add(responses.GET, TOOL_URL, body=b"binary", status=200)
        config = BinWrapper().src(Source(TOOL_URL)).exec_path("tool")

        path = ensure_binary(config, platform=linux_x64)

        assert path == "." + os.sep + "tool"
        assert (tmp_path / "tool").read_bytes() == b"binary"


class TestEnsureBinaryLocking:
    """Tests for opt-in destination locking."""

    @responses.activate
    def test_lock_is_taken_for_download(self, dest, tmp_path, linux_x64):
        responses.add(responses.GET, TOOL_URL, body=b"binary", status=200)
        lock_manager = LockManager(lock_dir=tmp_path / "locks")
        config = BinWrapper().src(Source(TOOL_URL)).dest(dest).exec_path("tool").lock(5)

        ensure_binary(config, platform=linux_x64, lock_manager=lock_manager)

        assert lock_manager.lock_path(dest).exists()
        assert os.path.isfile(os.path.join(dest, "tool"))

    @responses.activate
    def test_rechecks_after_lock(self, dest, linux_x64):
        """Another process finishing while we wait means no download here."""

        @contextmanager
        def finished_by_other_process(destination, timeout):
            os.makedirs(destination, exist_ok=True)
            with open(os.path.join(destination, "tool"), "wb") as f:
                f.write(b"from another process")
            yield

        lock_manager = MagicMock()
        lock_manager.destination_lock.side_effect = finished_by_other_process
        config = BinWrapper().src(Source(TOOL_URL)).dest(dest).exec_path("tool").lock(5)

        path = ensure_binary(config, platform=linux_x64, lock_manager=lock_manager)

        assert path == os.path.join(dest, "tool")
        assert len(responses.calls) == 0
        lock_manager.destination_lock.assert_called_once_with(dest, timeout=5)

    @responses.activate
    def test_no_lock_without_opt_in(self, dest, linux_x64):
        responses.add(responses.GET, TOOL_URL, body=b"binary", status=200)
        lock_manager = MagicMock()
        config = BinWrapper().src(Source(TOOL_URL)).dest(dest).exec_path("tool")

        ensure_binary(config, platform=linux_x64, lock_manager=lock_manager)

        lock_manager.destination_lock.assert_not_called()

    @responses.activate
    def test_lock_timeout_is_a_binwrapper_error(self, dest, tmp_path, linux_x64):
        lock_manager = LockManager(lock_dir=tmp_path / "locks")
        wrapper = BinWrapper().src(Source(TOOL_URL)).dest(dest).exec_path("tool").lock(0.1)

        with lock_manager.destination_lock(dest, timeout=5):
            with pytest.raises(BinWrapperError) as exc_info:
                wrapper.run(platform=linux_x64, lock_manager=lock_manager)

        assert isinstance(exc_info.value, LockTimeout)
        assert len(responses.calls) == 0
