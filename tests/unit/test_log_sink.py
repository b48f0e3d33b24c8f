"""Tests for the append-only pipeline log."""

import asyncio
import logging
import re

import pytest

from flowline.orchestration.log_sink import (
    LogSink,
    failure_footer,
    section_header,
    success_footer,
)


class TestBlockFormat:
    """Tests for the header and footer builders."""

    def test_section_header(self):
        lines = section_header("STEP", "fetch", {"page": 1})

        assert lines[0] == ""
        assert lines[1] == "-------------- STEP: fetch --------------"
        assert re.match(r"^\[TIME\] \d{4}-\d{2}-\d{2}T.*\+00:00$", lines[2])
        assert lines[3] == '[INPUT] {\n  "page": 1\n}'
        assert lines[4] == ""

    def test_success_footer(self):
        assert success_footer("PARALLEL", "enrich", [1], 12) == [
            "",
            "[OUTPUT] [\n  1\n]",
            "-------------- END PARALLEL: enrich (12ms) --------------",
            "",
        ]

    def test_failure_footer(self):
        assert failure_footer("FALLBACK", "publish", RuntimeError("down")) == [
            "",
            "[ERROR] down",
            "-------------- END FALLBACK: publish (FAILED) --------------",
            "",
        ]

    def test_undefined_input_serializes_as_null(self):
        assert section_header("STEP", "s", None)[3] == "[INPUT] null"


class TestLogSink:
    """Tests for LogSink."""

    @pytest.mark.asyncio
    async def test_disabled_sink_discards(self):
        sink = LogSink()
        assert sink.enabled is False
        assert await sink.append(["line"]) is False
        assert sink.failures == 0

    @pytest.mark.asyncio
    async def test_appends_and_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "pipeline.log"
        sink = LogSink(path)

        assert await sink.append(["one", "two"]) is True
        assert await sink.append(["three"]) is True
        assert path.read_text(encoding="utf-8") == "one\ntwo\nthree\n"

    @pytest.mark.asyncio
    async def test_concurrent_blocks_do_not_interleave(self, tmp_path):
        path = tmp_path / "pipeline.log"
        sink = LogSink(path)
        blocks = [[f"block {n} line {i}" for i in range(50)] for n in range(10)]

        await asyncio.gather(*(sink.append(block) for block in blocks))

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 500
        for offset in range(0, 500, 50):
            owner = lines[offset].split()[1]
            assert all(line.startswith(f"block {owner} ") for line in lines[offset : offset + 50])

    @pytest.mark.asyncio
    async def test_write_failure_is_counted_not_raised(self, tmp_path, caplog):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file", encoding="utf-8")
        sink = LogSink(blocker / "pipeline.log")

        with caplog.at_level(logging.ERROR, logger="flowline.orchestration.log_sink"):
            assert await sink.append(["lost"]) is False

        assert sink.failures == 1
        assert any("Failed to write pipeline log" in m for m in caplog.messages)

    @pytest.mark.asyncio
    async def test_invalid_path_is_counted_not_raised(self, tmp_path):
        sink = LogSink(tmp_path / "bad\x00dir" / "pipeline.log")

        assert await sink.append(["lost"]) is False
        assert sink.failures == 1

    @pytest.mark.asyncio
    async def test_unencodable_text_is_escaped(self, tmp_path):
        path = tmp_path / "pipeline.log"
        sink = LogSink(path)

        assert await sink.append(["bad \udcff name"]) is True
        assert path.read_text(encoding="utf-8") == "bad \\udcff name\n"
