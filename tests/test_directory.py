import zipfile
from dataclasses import replace

import pytest

from remote_zip_index.archive import list_entries
from remote_zip_index.directory import decode_entries, parse_entry, read_central_directory
from remote_zip_index.eocd import locate_eocd
from remote_zip_index.errors import ErrorKind, SignatureMismatchError
from remote_zip_index.records import ArchiveHandle
from ziputil import FakeRangeFetcher, build_zip, central_entry_offsets


def load(data):
    f = FakeRangeFetcher(data)
    _, eocd = locate_eocd(ArchiveHandle(f.url), f)
    return f, eocd


def test_entries_in_directory_order(sample_zip):
    data, infos = sample_zip
    f, eocd = load(data)
    directory = read_central_directory(f, eocd)

    assert directory.complete
    assert [e.name for e in directory.entries] == [i.filename for i in infos]
    for entry, info in zip(directory.entries, infos):
        assert entry.compressed_size == entry.uncompressed_size == info.file_size
        assert entry.local_header_offset == info.header_offset
        assert entry.crc32 == info.CRC
        assert entry.is_stored
        assert entry.data_offset is None
    assert f.reads[-1] == (eocd.central_dir_offset, eocd.central_dir_offset + eocd.central_dir_size - 1)


def test_classification(sample_zip):
    f, eocd = load(sample_zip[0])
    by_name = {e.name: e for e in read_central_directory(f, eocd).entries}

    assert by_name["tiles/"].is_directory
    assert not by_name["tiles/"].is_image
    assert by_name["tiles/0/0_0.jpg"].is_image
    assert by_name["tiles/0/0_1.PNG"].is_image
    assert by_name["tiles/1/big.jpeg"].is_image
    assert not by_name["image.dzi"].is_image
    assert not by_name["image.dzi"].is_directory


def test_image_suffix_on_directory_is_not_image():
    data, _ = build_zip([("photos.jpg/", b""), ("photos.jpg/a.gif", b"GIF89a")])
    f, eocd = load(data)
    d, gif = read_central_directory(f, eocd).entries
    assert d.is_directory and not d.is_image
    assert not gif.is_image


def test_next_offset_skips_extra_and_comment():
    info = zipfile.ZipInfo("notes.txt")
    info.comment = b"per-file comment"
    info.extra = b"\xfe\xca\x04\x00abcd"
    data, _ = build_zip([(info, b"hello"), ("after.png", b"png")])
    f, eocd = load(data)
    buf = f.read_range(eocd.central_dir_offset, eocd.central_dir_end - 1)

    entry, nxt = parse_entry(buf, 0)
    assert entry.name == "notes.txt"
    assert entry.extra_field_length == 8
    assert entry.comment_length == 16
    assert nxt == 46 + 9 + 8 + 16
    assert parse_entry(buf, nxt, 1)[0].name == "after.png"


def test_utf8_names():
    data, _ = build_zip([("tuile_é.jpg", b"x"), ("目录/", b"")])
    f, eocd = load(data)
    first, second = read_central_directory(f, eocd).entries
    assert first.name == "tuile_é.jpg"
    assert first.name_length == len("tuile_é.jpg".encode("utf-8"))
    assert second.name == "目录/" and second.is_directory


@pytest.mark.parametrize("k", [1, 2, 3, 5])
def test_corrupt_entry_keeps_earlier_ones(sample_zip, k):
    data, infos = sample_zip
    corrupt = bytearray(data)
    pos = central_entry_offsets(data)[k - 1]
    corrupt[pos:pos + 4] = b"PK\x09\x09"

    listing = list_entries(ArchiveHandle("mem://fake.zip"), FakeRangeFetcher(bytes(corrupt)))

    assert [e.name for e in listing.entries] == [i.filename for i in infos[:k - 1]]
    err = listing.directory_error
    assert isinstance(err, SignatureMismatchError)
    assert err.kind is ErrorKind.SIGNATURE_MISMATCH
    assert err.index == k - 1


def test_corruption_is_logged(sample_zip, caplog):
    data, _ = sample_zip
    corrupt = bytearray(data)
    pos = central_entry_offsets(data)[2]
    corrupt[pos] = 0
    f, eocd = load(bytes(corrupt))
    with caplog.at_level("WARNING", logger="remote_zip_index.directory"):
        directory = read_central_directory(f, eocd)
    assert len(directory.entries) == 2
    assert not directory.complete
    assert "after 2 entries" in caplog.text


def test_entry_count_larger_than_directory(sample_zip):
    data, infos = sample_zip
    f, eocd = load(data)
    buf = f.read_range(eocd.central_dir_offset, eocd.central_dir_end - 1)

    directory = decode_entries(buf, replace(eocd, total_entry_count=len(infos) + 1))

    assert len(directory.entries) == len(infos)
    assert directory.error is not None and directory.error.index == len(infos)


def test_entry_count_smaller_than_directory(sample_zip):
    data, infos = sample_zip
    f, eocd = load(data)
    buf = f.read_range(eocd.central_dir_offset, eocd.central_dir_end - 1)

    directory = decode_entries(buf, replace(eocd, total_entry_count=2))

    assert [e.name for e in directory.entries] == [i.filename for i in infos[:2]]
    assert directory.complete


def test_truncated_name_stops_decoding(sample_zip):
    data, _ = sample_zip
    f, eocd = load(data)
    buf = f.read_range(eocd.central_dir_offset, eocd.central_dir_end - 1)
    with pytest.raises(SignatureMismatchError):
        parse_entry(buf[:50], 0)


def test_empty_archive_reads_no_directory():
    data, _ = build_zip([])
    f, eocd = load(data)
    assert eocd.total_entry_count == 0
    assert read_central_directory(f, eocd).entries == ()
    assert len(f.reads) == 1
