"""Unit tests for flake_shells.resolver.transcript.Transcript."""
from __future__ import annotations

import threading
from pathlib import Path

from flake_shells.resolver.transcript import BANNER_RULE, Transcript


class TestTranscript:
    def test_append_keeps_text_verbatim(self) -> None:
        transcript = Transcript()
        transcript.append("partial ")
        transcript.append("line\n")
        assert transcript.text() == "partial line\n"

    def test_append_line_adds_newline(self) -> None:
        transcript = Transcript()
        transcript.append_line("one")
        transcript.append_line()
        assert transcript.text() == "one\n\n"

    def test_banner_layout(self) -> None:
        transcript = Transcript()
        transcript.banner("Activating", flake_path="/ws/flake.nix")
        lines = transcript.lines()
        assert lines[1] == BANNER_RULE
        assert lines[2] == "Activating"
        assert lines[3] == "Flake path: /ws/flake.nix"
        assert lines[4].startswith("Time: ")
        assert lines[5] == BANNER_RULE

    def test_timestamped_prefix(self) -> None:
        transcript = Transcript()
        transcript.timestamped("hello")
        (line,) = transcript.lines()
        assert line.startswith("[")
        assert line.endswith("] hello")

    def test_concurrent_appends_are_not_lost(self) -> None:
        transcript = Transcript()

        def _writer(tag: str) -> None:
            for index in range(200):
                transcript.append_line(f"{tag}{index}")

        threads = [threading.Thread(target=_writer, args=(tag,)) for tag in "abcd"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        lines = transcript.lines()
        assert len(lines) == 800
        a_lines = [line for line in lines if line.startswith("a")]
        assert a_lines == [f"a{index}" for index in range(200)]


class TestTranscriptLogFile:
    def test_mirrors_to_file_and_creates_parent(self, tmp_path: Path) -> None:
        log = tmp_path / "nested" / "dir" / "out.log"
        transcript = Transcript(log_path=log)
        transcript.append_line("recorded")
        assert log.read_text(encoding="utf-8") == "recorded\n"
        assert transcript.read_log() == "recorded\n"

    def test_log_accumulates_across_instances(self, tmp_path: Path) -> None:
        log = tmp_path / "out.log"
        Transcript(log_path=log).append_line("first")
        second = Transcript(log_path=log)
        second.append_line("second")
        assert second.read_log() == "first\nsecond\n"
        assert second.text() == "second\n"

    def test_read_log_without_file(self, tmp_path: Path) -> None:
        assert Transcript().read_log() == ""
        assert Transcript(log_path=tmp_path / "missing.log").read_log() == ""

    def test_unwritable_log_does_not_raise(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        transcript = Transcript(log_path=blocker / "out.log")
        transcript.append_line("kept in memory")
        assert transcript.text() == "kept in memory\n"

    def test_log_rotates_at_size_limit(self, tmp_path: Path) -> None:
        log = tmp_path / "out.log"
        transcript = Transcript(log_path=log, max_log_bytes=50)
        transcript.append_line("a" * 30)
        transcript.append_line("b" * 30)
        assert transcript.read_log() == "b" * 30 + "\n"
        assert Transcript.backup_path(log).read_text(encoding="utf-8") == "a" * 30 + "\n"

    def test_log_size_stays_bounded_across_sessions(self, tmp_path: Path) -> None:
        log = tmp_path / "out.log"
        for session in range(20):
            transcript = Transcript(log_path=log, max_log_bytes=1000)
            transcript.banner("Activating", flake=f"/ws/{session}/flake.nix")
        assert log.stat().st_size <= 1000
        assert Transcript.backup_path(log).stat().st_size <= 1000
        assert "/ws/19/flake.nix" in Transcript(log_path=log).read_log()

    def test_oversized_first_write_is_kept(self, tmp_path: Path) -> None:
        log = tmp_path / "out.log"
        Transcript(log_path=log, max_log_bytes=4).append_line("longer than the limit")
        assert log.read_text(encoding="utf-8") == "longer than the limit\n"
        assert not Transcript.backup_path(log).exists()
