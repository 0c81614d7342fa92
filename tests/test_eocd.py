import pytest

from remote_zip_index.eocd import discover_size, find_eocd, locate_eocd, parse_eocd
from remote_zip_index.errors import ErrorKind, RecordNotFoundError
from remote_zip_index.records import EOCD_SEARCH_WINDOW, ArchiveHandle, ArchiveState
from ziputil import SAMPLE_MEMBERS, FakeRangeFetcher, build_zip


@pytest.mark.parametrize("comment_len", [0, 1, 65535])
def test_locate_eocd_with_comment(comment_len):
    data, infos = build_zip(SAMPLE_MEMBERS, comment=b"c" * comment_len)
    f = FakeRangeFetcher(data)

    handle, eocd = locate_eocd(ArchiveHandle(f.url), f)

    assert handle.length == len(data)
    assert eocd.position == len(data) - 22 - comment_len
    assert eocd.comment_length == comment_len
    assert eocd.total_entry_count == eocd.disk_entry_count == len(infos)
    assert eocd.disk_number == eocd.central_dir_disk == 0
    assert eocd.central_dir_end == eocd.position
    # one HEAD, one trailing window read
    assert f.size_calls == 1
    start = max(0, len(data) - EOCD_SEARCH_WINDOW)
    assert f.reads == [(start, len(data) - 1)]


def test_window_capped_at_archive_length():
    data, _ = build_zip([("a.txt", b"a")])
    assert len(data) < EOCD_SEARCH_WINDOW
    f = FakeRangeFetcher(data)
    locate_eocd(ArchiveHandle(f.url), f)
    assert f.reads == [(0, len(data) - 1)]


def test_known_length_skips_size_query():
    data, _ = build_zip(SAMPLE_MEMBERS)
    f = FakeRangeFetcher(data)
    handle = ArchiveHandle(f.url, length=len(data))
    assert locate_eocd(handle, f)[0] is handle
    assert f.size_calls == 0


def test_discover_size_returns_new_handle():
    f = FakeRangeFetcher(b"\x00" * 40)
    unsized = ArchiveHandle(f.url)
    sized = discover_size(unsized, f)
    assert unsized.length is None and unsized.state is ArchiveState.UNSIZED
    assert sized.length == 40 and sized.state is ArchiveState.SIZED
    assert sized.last_byte == 39
    assert discover_size(sized, f) is sized
    assert f.size_calls == 1


def test_no_signature():
    f = FakeRangeFetcher(b"PK\x00\x01" * 100)
    with pytest.raises(RecordNotFoundError) as info:
        locate_eocd(ArchiveHandle(f.url), f)
    assert info.value.kind is ErrorKind.RECORD_NOT_FOUND


def test_signature_too_close_to_end_is_ignored():
    # a signature without 18 bytes behind it cannot be a record
    with pytest.raises(RecordNotFoundError):
        find_eocd(b"\x00" * 30 + b"PK\x05\x06" + b"\x00" * 10, 0)


def test_tiny_and_empty_archives():
    with pytest.raises(RecordNotFoundError):
        find_eocd(b"PK\x05\x06", 0)
    f = FakeRangeFetcher(b"")
    with pytest.raises(RecordNotFoundError):
        locate_eocd(ArchiveHandle(f.url), f)
    assert f.reads == []


def test_parse_eocd_fields():
    raw = bytes.fromhex("504b0506" "0000" "0000" "0300" "0300" "a0000000" "10270000" "0500")
    eocd = parse_eocd(raw, 12345)
    assert eocd.total_entry_count == 3
    assert eocd.central_dir_size == 0xA0
    assert eocd.central_dir_offset == 10000
    assert eocd.comment_length == 5
    assert eocd.position == 12345


def test_signature_inside_comment_wins():
    # accepted false positive: a record-shaped comment is taken for the real one
    forged = b"PK\x05\x06" + b"\x00" * 18
    data, _ = build_zip(SAMPLE_MEMBERS, comment=forged)
    f = FakeRangeFetcher(data)
    _, eocd = locate_eocd(ArchiveHandle(f.url), f)
    assert eocd.position == len(data) - 22
    assert eocd.total_entry_count == 0
