"""Tests for the cleanup ledger."""

import threading
from pathlib import Path

import pytest

from framelapse.core.ledger import CleanupLedger


class TestCleanupLedger:
    def test_cleanup_removes_registered_dirs(self, tmp_path: Path):
        ledger = CleanupLedger()
        dirs = []
        for i in range(3):
            d = tmp_path / f"ws{i}"
            d.mkdir()
            (d / "video000_frame0000000.jpg").write_bytes(b"x")
            ledger.register(d)
            dirs.append(d)

        removed = ledger.cleanup()
        assert removed == dirs
        assert not any(d.exists() for d in dirs)

    def test_drained_once(self, tmp_path: Path):
        ledger = CleanupLedger()
        ledger.register(tmp_path / "a")
        assert ledger.drain() == [tmp_path / "a"]
        assert ledger.drain() == []
        assert ledger.cleanup() == []

    def test_register_after_drain_rejected(self, tmp_path: Path):
        ledger = CleanupLedger()
        ledger.drain()
        with pytest.raises(RuntimeError):
            ledger.register(tmp_path / "late")

    def test_missing_workspace_is_logged_not_raised(self, tmp_path: Path, caplog):
        ledger = CleanupLedger()
        present = tmp_path / "present"
        present.mkdir()
        ledger.register(tmp_path / "already_gone")
        ledger.register(present)

        removed = ledger.cleanup()
        assert removed == [present]
        assert not present.exists()
        assert "Failed to remove temporary directory" in caplog.text

    def test_concurrent_register(self, tmp_path: Path):
        ledger = CleanupLedger()

        def worker(n: int) -> None:
            for i in range(50):
                ledger.register(tmp_path / f"w{n}_{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(ledger) == 400
        assert len(set(ledger.pending())) == 400
