"""
Unit tests for the environment snapshot & filter stage.
"""

import logging
import os
import threading

import pytest

from envlayer.core.snapshot import (
    EnvironmentSnapshot,
    read_process_environment,
    take_snapshot,
    to_text,
)


def accept(_suffix: str) -> bool:
    return True


class TestToText:
    """Tests for lossless text conversion."""

    def test_utf8_bytes_decode(self) -> None:
        assert to_text("héllo".encode("utf-8")) == "héllo"

    def test_invalid_bytes_return_none(self) -> None:
        assert to_text(b"\xff\xfe") is None

    def test_plain_str_passes_through(self) -> None:
        assert to_text("plain") == "plain"

    def test_lone_surrogate_returns_none(self) -> None:
        assert to_text("bad\udcff") is None


class TestTakeSnapshot:
    """Tests for prefix/predicate filtering over an injected environment."""

    def test_keeps_prefixed_entries_with_original_case(self) -> None:
        snap = take_snapshot(
            "PFX",
            accept,
            {"PFX_Foo__Bar": "1", "PFX_BAZ": "hello", "OTHER_X": "y"},
        )
        assert dict(snap) == {"PFX_Foo__Bar": "1", "PFX_BAZ": "hello"}

    def test_prefix_requires_underscore(self) -> None:
        snap = take_snapshot("PFX", accept, {"PFXFOO": "1", "PFX": "2", "PFX_": "3"})
        # "PFX_" has an empty suffix but still carries the "<prefix>_" marker
        assert dict(snap) == {"PFX_": "3"}

    def test_prefix_match_is_case_sensitive(self) -> None:
        snap = take_snapshot("PFX", accept, {"pfx_foo": "1"})
        assert len(snap) == 0

    def test_predicate_sees_suffix_only(self) -> None:
        seen: list[str] = []

        def predicate(suffix: str) -> bool:
            seen.append(suffix)
            return suffix.startswith("RPC")

        snap = take_snapshot(
            "ZALLET",
            predicate,
            {"ZALLET_RPC__BIND": "127.0.0.1:28232", "ZALLET_NOTE": "x", "HOME": "/root"},
        )
        assert sorted(seen) == ["NOTE", "RPC__BIND"]
        assert dict(snap) == {"ZALLET_RPC__BIND": "127.0.0.1:28232"}

    def test_non_unicode_entries_are_dropped(self) -> None:
        snap = take_snapshot(
            "PFX",
            accept,
            {
                b"PFX_BAD\xffKEY": b"value",
                b"PFX_BAD_VALUE": b"\xc3\x28",
                b"PFX_GOOD": b"ok",
                "PFX_SURROGATE": "x\udcff",
            },
        )
        assert dict(snap) == {"PFX_GOOD": "ok"}

    def test_predicate_not_called_for_non_unicode_key(self) -> None:
        calls: list[str] = []
        take_snapshot("PFX", lambda s: calls.append(s) or True, {b"PFX_\xff": b"1"})
        assert calls == []

    def test_predicate_called_before_value_check(self) -> None:
        calls: list[str] = []
        snap = take_snapshot("PFX", lambda s: calls.append(s) or True, {b"PFX_A": b"\xff"})
        assert calls == ["A"]
        assert len(snap) == 0

    def test_predicate_exception_propagates(self) -> None:
        def explode(_suffix: str) -> bool:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            take_snapshot("PFX", explode, {"PFX_A": "1"})

    def test_input_mapping_is_not_mutated(self) -> None:
        environ = {"PFX_A": "1", "OTHER": "2"}
        take_snapshot("PFX", accept, environ)
        assert environ == {"PFX_A": "1", "OTHER": "2"}

    def test_logs_counts_without_values(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="envlayer.core.snapshot")
        take_snapshot(
            "PFX",
            lambda s: s != "SKIP",
            {"PFX_A": "s3cr3t", "PFX_SKIP": "1", "NOPE": "2", b"PFX_B": b"\xff"},
        )
        records = [r for r in caplog.records if r.msg == "env_snapshot_taken"]
        assert len(records) == 1
        record = records[0]
        assert record.entries_seen == 4
        assert record.entries_kept == 1
        assert record.dropped == {
            "non_unicode_key": 0,
            "prefix": 1,
            "predicate": 1,
            "non_unicode_value": 1,
        }
        assert "s3cr3t" not in caplog.text


class TestProcessEnvironment:
    """Tests against the real process environment."""

    def test_reads_from_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVLAYERTEST_VALUE", "42")
        snap = take_snapshot("ENVLAYERTEST", accept)
        assert snap["ENVLAYERTEST_VALUE"] == "42"

    def test_snapshot_is_not_refreshed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVLAYERTEST_A", "before")
        snap = take_snapshot("ENVLAYERTEST", lambda s: s in {"A", "B"})
        monkeypatch.setenv("ENVLAYERTEST_A", "after")
        monkeypatch.setenv("ENVLAYERTEST_B", "new")
        assert dict(snap) == {"ENVLAYERTEST_A": "before"}

    def test_read_process_environment_is_a_copy(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVLAYERTEST_COPY", "1")
        raw = read_process_environment()
        monkeypatch.delenv("ENVLAYERTEST_COPY")
        keys = {k.decode() if isinstance(k, bytes) else k for k in raw}
        assert "ENVLAYERTEST_COPY" in keys

    @pytest.mark.skipif(not os.supports_bytes_environ, reason="no raw bytes environment")
    def test_raw_non_utf8_process_entries_are_dropped(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setitem(os.environb, b"ENVLAYERTEST_BADVAL", b"\xff\xfe")
        monkeypatch.setitem(os.environb, b"ENVLAYERTEST_BAD\xffKEY", b"1")
        monkeypatch.setitem(os.environb, b"ENVLAYERTEST_OK", b"fine")
        snap = take_snapshot("ENVLAYERTEST", lambda s: s.startswith(("BAD", "OK")))
        assert dict(snap) == {"ENVLAYERTEST_OK": "fine"}

    def test_concurrent_writers_do_not_break_snapshot(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVLAYERTEST_STABLE", "yes")
        stop = threading.Event()

        def churn() -> None:
            i = 0
            while not stop.is_set():
                os.environ[f"ENVLAYERTEST_CHURN_{i % 50}"] = str(i)
                os.environ.pop(f"ENVLAYERTEST_CHURN_{(i + 25) % 50}", None)
                i += 1

        writer = threading.Thread(target=churn)
        writer.start()
        try:
            for _ in range(200):
                snap = take_snapshot("ENVLAYERTEST", lambda s: s == "STABLE")
                assert dict(snap) == {"ENVLAYERTEST_STABLE": "yes"}
        finally:
            stop.set()
            writer.join()
            for i in range(50):
                os.environ.pop(f"ENVLAYERTEST_CHURN_{i}", None)


class TestEnvironmentSnapshot:
    """Tests for the read-only snapshot mapping."""

    def test_is_read_only(self) -> None:
        snap = EnvironmentSnapshot({"A": "1"})
        with pytest.raises(TypeError):
            snap["B"] = "2"  # type: ignore[index]

    def test_copies_input(self) -> None:
        source = {"A": "1"}
        snap = EnvironmentSnapshot(source)
        source["A"] = "changed"
        assert snap["A"] == "1"

    def test_repr_hides_values(self) -> None:
        snap = EnvironmentSnapshot({"PFX_TOKEN": "hunter2"})
        assert "hunter2" not in repr(snap)
        assert "PFX_TOKEN" in repr(snap)
