import io

import pytest

from convingest.core.errors import EmptyFileError, PathNotFoundError
from convingest.infrastructure.stream import StreamFormat, detect_format, sniff_format


@pytest.mark.parametrize(
    "content, expected",
    [
        (b"[]", StreamFormat.ARRAY),
        (b"\n\n   \t[{\"a\": 1}]", StreamFormat.ARRAY),
        (b"{\"a\": 1}\n", StreamFormat.NDJSON),
        (b"   42", StreamFormat.NDJSON),
        (b"not json at all", StreamFormat.NDJSON),
        (b"\xef\xbb\xbf[1]", StreamFormat.ARRAY),
        (b"\xef\xbb\xbf  {\"a\": 1}", StreamFormat.NDJSON),
    ],
)
def test_detects_by_first_significant_byte(tmp_path, content, expected):
    path = tmp_path / "export.json"
    path.write_bytes(content)
    assert detect_format(path) is expected


def test_leading_whitespace_longer_than_one_read(tmp_path):
    path = tmp_path / "padded.json"
    path.write_bytes(b" " * 10000 + b"[1]")
    assert detect_format(path) is StreamFormat.ARRAY


def test_empty_file(tmp_path):
    path = tmp_path / "empty.json"
    path.write_bytes(b"")
    with pytest.raises(EmptyFileError):
        detect_format(path)


def test_whitespace_only_file_is_empty(tmp_path):
    path = tmp_path / "blank.ndjson"
    path.write_bytes(b"  \n\t\n")
    with pytest.raises(EmptyFileError):
        detect_format(path)


def test_missing_path(tmp_path):
    with pytest.raises(PathNotFoundError):
        detect_format(tmp_path / "nope.json")


def test_sniff_reads_only_the_prefix():
    fh = io.BytesIO(b"  [" + b"x" * 100000)
    assert sniff_format(fh) is StreamFormat.ARRAY
    assert fh.tell() <= 4096
