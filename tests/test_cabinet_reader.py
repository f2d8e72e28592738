"""Tests for CabinetReader and Container."""

import struct

import pytest

from pfc_explorer.core.cabinet_reader import CabinetReader
from pfc_explorer.core.errors import (
    CabinetError,
    InvalidContainerError,
    ReadCancelledError,
    TruncatedReadError,
)
from pfc_explorer.core.favorite import Favorite
from pfc_explorer.core.mail_message import MailMessage
from pfc_explorer.core.record import RecordType

from tests.builders import cabinet_bytes, sample_records, write_cabinet


@pytest.fixture
def cabinet_path(tmp_path):
    """Sample cabinet written to disk."""
    return write_cabinet(tmp_path / "main.pfc", sample_records())


@pytest.fixture
def container(cabinet_path):
    return CabinetReader(str(cabinet_path)).read()


class TestRead:
    """Test reading a well-formed cabinet."""

    def test_record_count_and_types(self, container):
        assert len(container) == len(sample_records())
        assert container.get_type(1) == RecordType.FOLDER
        assert container.get_type(3) == RecordType.MAIL_ENVELOPE
        assert container.get_type(4) == RecordType.MAIL_DATA
        assert container.get_type(8) == RecordType.FAVORITE_ENVELOPE

    def test_indices_are_sequential(self, container):
        assert [record.index for record in container] == list(range(len(container)))

    def test_empty_slot_is_placeholder(self, container):
        slot = container[0]
        assert slot.address == 0
        assert slot.content == bytes(4)
        assert slot.record_type == RecordType.UNKNOWN

    def test_root_and_geometry(self, container, cabinet_path):
        assert container.root.label == "Main"
        assert container.root_address == container.root.address
        assert container.index_count == len(sample_records())
        assert container.index_length == 4 + 4 * len(sample_records())
        assert container.file_path == str(cabinet_path)

    def test_addresses_point_at_records(self, container, cabinet_path):
        data = cabinet_path.read_bytes()
        record = container[4]
        length = struct.unpack_from('<I', data, record.address + 4)[0]
        assert data[record.address + 8:record.address + 8 + length] == record.content

    def test_accessors(self, container):
        assert container.get_pointers(2).child == 3
        assert container.get_raw_content(9).startswith(b'http://')
        assert container.item_count == len(container)
        assert [r.index for r in container.records_of_type(RecordType.MAIL_DATA)] == [4, 6]

    def test_get_record_out_of_range(self, container):
        with pytest.raises(IndexError):
            container.get_record(len(container))
        assert not container.has_record(-1)

    def test_reconstruct_through_envelope(self, container):
        message = container.reconstruct(container[3])
        assert isinstance(message, MailMessage)
        assert message.subject == "Hello"
        assert container.reconstruct(container[8]) == Favorite("http://example.com/?a=1&b=2")

    def test_data_record(self, container):
        assert container.data_record(container[5]).index == 6
        assert container.data_record(container[2]) is None


class TestProgress:
    """Test progress reporting."""

    def test_progress_non_decreasing_and_complete(self, cabinet_path):
        seen = []
        reader = CabinetReader(str(cabinet_path))
        reader.read(progress_callback=lambda p: seen.append(p.percent))

        assert seen == sorted(seen)
        assert seen[-1] == 100
        assert seen.count(100) == 1
        assert reader.progress.is_complete
        assert reader.progress.records_read == len(sample_records())

    def test_empty_index(self, tmp_path):
        """Test a cabinet with no index entries reads as empty, not an error."""
        path = write_cabinet(tmp_path / "empty.pfc", [])
        reader = CabinetReader(str(path))
        container = reader.read()
        assert len(container) == 0
        assert container.root is None
        assert reader.progress.percent == 100


class TestFailures:
    """Test failed reads."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CabinetReader(str(tmp_path / "nope.pfc")).read()

    def test_bad_identity(self, tmp_path):
        data = bytearray(cabinet_bytes(sample_records()))
        data[:8] = b'NOTACAB!'
        path = tmp_path / "bad.pfc"
        path.write_bytes(bytes(data))

        reader = CabinetReader(str(path))
        with pytest.raises(InvalidContainerError) as info:
            reader.read()
        assert info.value.percent == 0
        assert reader.progress.records_read == 0

    def test_truncated_file(self, tmp_path):
        data = cabinet_bytes(sample_records())
        path = tmp_path / "short.pfc"
        path.write_bytes(data[:12])

        with pytest.raises(TruncatedReadError):
            CabinetReader(str(path)).read()

    def test_record_length_past_end(self, tmp_path):
        records = sample_records()
        data = bytearray(cabinet_bytes(records))
        # Record 1 starts right after the 20-byte header
        struct.pack_into('<I', data, 24, 0x7FFFFFF0)
        path = tmp_path / "overrun.pfc"
        path.write_bytes(bytes(data))

        reader = CabinetReader(str(path))
        with pytest.raises(TruncatedReadError) as info:
            reader.read()
        assert info.value.percent < 100
        assert not reader.progress.is_complete
        assert reader.progress.error

    def test_huge_record_length_checked_before_reading(self, tmp_path, monkeypatch):
        """Test a 4 GiB record length fails without a read of that size."""
        data = bytearray(cabinet_bytes(sample_records()))
        struct.pack_into('<I', data, 24, 0xFFFFFFFF)
        path = tmp_path / "huge.pfc"
        path.write_bytes(bytes(data))

        reader = CabinetReader(str(path))
        sizes = []
        original = reader._read_exact

        def tracking_read(f, offset, size):
            sizes.append(size)
            return original(f, offset, size)

        monkeypatch.setattr(reader, "_read_exact", tracking_read)
        with pytest.raises(TruncatedReadError, match="4294967295 bytes") as info:
            reader.read()
        assert max(sizes) == 4
        assert info.value.percent < 100
        assert reader.progress.records_read == 1
        assert "4294967295" in reader.progress.error

    def test_cancel_check(self, cabinet_path):
        reader = CabinetReader(str(cabinet_path))
        with pytest.raises(ReadCancelledError):
            reader.read(cancel_check=lambda: reader.progress.records_read >= 3)
        assert reader.progress.records_read == 3
        assert not reader.progress.is_complete

    def test_errors_share_base_class(self, tmp_path):
        path = tmp_path / "junk.pfc"
        path.write_bytes(b'junk')
        with pytest.raises(CabinetError):
            CabinetReader(str(path)).read()


class TestInfo:
    """Test reading index geometry without records."""

    def test_valid(self, cabinet_path):
        info = CabinetReader(str(cabinet_path)).get_info()
        assert info.is_valid
        assert info.index_count == len(sample_records())
        assert info.file_size == cabinet_path.stat().st_size

    def test_invalid(self, tmp_path):
        path = tmp_path / "junk.pfc"
        path.write_bytes(b'junk')
        info = CabinetReader(str(path)).get_info()
        assert not info.is_valid
        assert info.error_message

    def test_missing(self, tmp_path):
        info = CabinetReader(str(tmp_path / "nope.pfc")).get_info()
        assert not info.is_valid
        assert info.error_message == "File not found"
