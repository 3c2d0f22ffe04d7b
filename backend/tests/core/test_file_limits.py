"""File Limits: size check boundaries and link building."""

from kvdesk.core.file_limits import (
    MAX_FILE_SIZE, check_file_size, download_url, preview_url,
)


def test_check_file_size_accepts_up_to_limit():
    assert check_file_size(0)
    assert check_file_size(MAX_FILE_SIZE)


def test_check_file_size_rejects_over_limit():
    assert not check_file_size(MAX_FILE_SIZE + 1)
    assert not check_file_size(11, limit=10)


def test_check_file_size_rejects_unknown_size():
    assert not check_file_size(None)


def test_download_url_encodes_file_name():
    assert (
        download_url("https://kv.example.com/", "my file.txt")
        == "https://kv.example.com/api/download?file=my%20file.txt"
    )


def test_preview_url_includes_store():
    assert (
        preview_url("http://test", "FILES", "a/b.png")
        == "http://test/FILES/static/a%2Fb.png"
    )
