"""Tests for the incremental extractor."""

import os
import shutil
import tempfile
import unittest
from unittest import mock

from archiver.src.extractor import Extractor
from archiver.src.position_store import MemoryPositionStore, PositionStore


class TestExtractor(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.mkdtemp()
        self._source = os.path.join(self._tmpdir, "access.log")
        self._buffer = os.path.join(self._tmpdir, "buffer.log")

    def tearDown(self):
        shutil.rmtree(self._tmpdir)

    def _append(self, data: bytes) -> None:
        with open(self._source, "ab") as f:
            f.write(data)

    def _buffer_content(self) -> bytes:
        if not os.path.exists(self._buffer):
            return b""
        with open(self._buffer, "rb") as f:
            return f.read()

    def test_first_run_extracts_all_lines(self):
        self._append(b"line 1\nline 2\nline 3\n")
        store = PositionStore(os.path.join(self._tmpdir, "position.txt"))
        result = Extractor(self._source, self._buffer, store).extract()

        self.assertEqual(result.lines, 3)
        self.assertEqual(result.bytes_copied, os.path.getsize(self._source))
        self.assertEqual(self._buffer_content(), b"line 1\nline 2\nline 3\n")
        self.assertEqual(store.load(), os.path.getsize(self._source))

    def test_incremental_runs_copy_only_new_bytes(self):
        store = MemoryPositionStore()
        extractor = Extractor(self._source, self._buffer, store)

        self._append(b"a\nb\n")
        self.assertEqual(extractor.extract().lines, 2)
        self._append(b"c\n")
        self.assertEqual(extractor.extract().lines, 1)
        result = extractor.extract()
        self.assertEqual(result.lines, 0)
        self.assertEqual(result.bytes_copied, 0)

        self.assertEqual(self._buffer_content(), b"a\nb\nc\n")
        self.assertEqual(store.offset, 6)

    def test_interleaved_appends_have_no_duplication_or_loss(self):
        store = MemoryPositionStore()
        extractor = Extractor(self._source, self._buffer, store)
        chunks = [b"GET /a 200\n", b"GET /b 404\nGET /c", b" 500\n", b"", b"GET /d 200\n" * 50]
        expected = b""
        for chunk in chunks:
            self._append(chunk)
            expected += chunk
            extractor.extract()
            extractor.extract()
        self.assertEqual(self._buffer_content(), expected)

    def test_unterminated_line_is_completed_by_next_run(self):
        store = MemoryPositionStore()
        extractor = Extractor(self._source, self._buffer, store)

        self._append(b"full\npart")
        result = extractor.extract()
        self.assertEqual(result.lines, 2)
        self._append(b"ial\n")
        extractor.extract()
        self.assertEqual(self._buffer_content(), b"full\npartial\n")

    def test_truncation_restarts_from_zero(self):
        store = MemoryPositionStore(offset=1000)
        self._append(b"new 1\nnew 2\n")
        result = Extractor(self._source, self._buffer, store).extract()

        self.assertTrue(result.truncated)
        self.assertEqual(result.lines, 2)
        self.assertEqual(store.offset, os.path.getsize(self._source))
        self.assertEqual(self._buffer_content(), b"new 1\nnew 2\n")

    def test_truncation_to_empty_persists_zero(self):
        store = MemoryPositionStore(offset=50)
        open(self._source, "wb").close()
        result = Extractor(self._source, self._buffer, store).extract()
        self.assertTrue(result.truncated)
        self.assertEqual(store.offset, 0)
        self.assertEqual(self._buffer_content(), b"")

    def test_no_new_data_still_persists_offset(self):
        self._append(b"x\n")
        store = MemoryPositionStore(offset=2)
        result = Extractor(self._source, self._buffer, store).extract()
        self.assertEqual(result.bytes_copied, 0)
        self.assertEqual(store.saves, 1)
        self.assertFalse(os.path.exists(self._buffer))

    def test_missing_source_is_fatal(self):
        store = MemoryPositionStore(offset=5)
        with self.assertRaises(FileNotFoundError):
            Extractor(self._source, self._buffer, store).extract()
        self.assertEqual(store.saves, 0)

    def test_copy_failure_keeps_old_offset(self):
        self._append(b"a\nb\n")
        store = MemoryPositionStore()
        extractor = Extractor(self._source, self._buffer, store)
        with mock.patch.object(extractor, "_copy_range", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                extractor.extract()
        self.assertEqual(store.offset, 0)
        self.assertEqual(store.saves, 0)

    def test_bytes_past_stat_size_left_for_next_run(self):
        self._append(b"first\n")
        store = MemoryPositionStore()
        extractor = Extractor(self._source, self._buffer, store)
        real_stat = os.stat

        def stat_then_grow(path, *args, **kwargs):
            st = real_stat(path, *args, **kwargs)
            if path == self._source:
                with open(self._source, "ab") as f:
                    f.write(b"late\n")
            return st

        with mock.patch("archiver.src.extractor.os.stat", side_effect=stat_then_grow):
            extractor.extract()
        self.assertEqual(self._buffer_content(), b"first\n")
        self.assertEqual(store.offset, 6)

        extractor.extract()
        self.assertEqual(self._buffer_content(), b"first\nlate\n")

    def test_partial_copy_failure_leaves_buffer_unchanged(self):
        with open(self._buffer, "wb") as f:
            f.write(b"earlier\n")
        self._append(b"x" * 100 + b"\n")
        store = MemoryPositionStore()
        extractor = Extractor(self._source, self._buffer, store)
        real_stat = os.stat

        def stat_then_shrink(path, *args, **kwargs):
            st = real_stat(path, *args, **kwargs)
            if path == self._source:
                os.truncate(self._source, 50)
            return st

        with mock.patch("archiver.src.extractor.CHUNK_SIZE", 10), \
                mock.patch("archiver.src.extractor.os.stat", side_effect=stat_then_shrink):
            with self.assertRaises(OSError):
                extractor.extract()
        self.assertEqual(self._buffer_content(), b"earlier\n")
        self.assertEqual(store.offset, 0)
        self.assertEqual(store.saves, 0)

        result = extractor.extract()
        self.assertEqual(result.bytes_copied, 50)
        self.assertEqual(self._buffer_content(), b"earlier\n" + b"x" * 50)
        self.assertEqual(store.offset, 50)


if __name__ == "__main__":
    unittest.main()
