import pytest

from onlyfans_downloader.src.application.download_queue.filename import (
    base_filename,
    fallback_filename,
    synthesize_filename,
)
from onlyfans_downloader.src.domain.download import DownloadRequest


def fixed_clock() -> float:
    return 1700000000.123


@pytest.mark.parametrize(
    ('url', 'expected'),
    [
        ('https://cdn/x/y/clip.mp4', 'clip.mp4'),
        ('https://cdn/x/y/clip.mp4?Policy=abc&Signature=def', 'clip.mp4'),
        ('https://cdn/a.jpg#frag', 'a.jpg'),
        ('a.jpg', 'a.jpg'),
    ],
)
def test_base_filename(url, expected):
    assert base_filename(url) == expected


def test_base_filename_without_name():
    with pytest.raises(ValueError, match='No file name'):
        base_filename('https://cdn/dir/')


def test_fallback_filename_uses_milliseconds():
    assert fallback_filename(fixed_clock) == 'download_1700000000123.file'


def test_filename_with_creator_folder():
    request = DownloadRequest(url='https://cdn/a/b.mp4?x=1', creator='Jane Doe#1')

    assert synthesize_filename(request, create_folder=True) == 'Jane_Doe_1/b.mp4'


def test_filename_without_creator_folder():
    request = DownloadRequest(url='https://cdn/a/b.mp4?x=1', creator='Jane Doe#1')

    assert synthesize_filename(request, create_folder=False) == 'b.mp4'


def test_unnamable_url_falls_back_to_timestamp():
    request = DownloadRequest(url='https://cdn/a/', creator='bob')

    result = synthesize_filename(request, create_folder=True, clock=fixed_clock)

    assert result == 'download_1700000000123.file'


def test_broken_request_never_raises():
    request = DownloadRequest(url=None, creator='bob')  # type: ignore[arg-type]

    result = synthesize_filename(request, create_folder=True, clock=fixed_clock)

    assert result == 'download_1700000000123.file'
