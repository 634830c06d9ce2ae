import pytest

from deckflix.models import StreamCandidate
from deckflix.scoring import QUALITY_TIERS, extract_quality, parse_size_to_gb, rank, score


def candidate(**kwargs) -> StreamCandidate:
    defaults = {"title": "x", "url": "https://cdn.test/x.mp4"}
    defaults.update(kwargs)
    return StreamCandidate(**defaults)


@pytest.mark.parametrize("title, expected", [
    ("Movie.2019.2160p.WEB-DL.x265", "2160P"),
    ("Movie 4K HDR", "4K"),
    ("Movie.UHD.BluRay", "UHD"),
    ("Movie.2019.1080p.BluRay.x264", "1080P BLURAY"),
    ("Movie 1080p REMUX", "1080P REMUX"),
    ("Movie.1080p.WEBRip", "1080P"),
    ("Movie.720p.BluRay", "720P BLURAY"),
    ("Movie 720p HDTV", "720P"),
    ("Movie.BluRay.x264", "BLURAY"),
    ("Movie.WEB-DL.AAC", "WEBDL"),
    ("Movie.WEBDL", "WEBDL"),
    ("Movie.WEBRip", "WEBRIP"),
    ("Movie.HDRip", "HDRIP"),
    ("Movie.BRRip", "BRRIP"),
    ("Movie 480p", "480P"),
    ("Movie.DVDRip.XviD", "DVDRIP"),
    ("Movie.2024.HDCAM", "CAM"),
    ("Movie.2024.CAM", "CAM"),
    ("Movie.2024.HDTS", "HDTS"),
    ("Movie.2024.TS.AAC", "TS"),
    ("Movie.SCREENER", "SCREENER"),
    ("Movie.x265-GROUP", "H265"),
    ("Movie HEVC", "H265"),
    ("Movie.H264", "H264"),
    ("Plain title", None),
])
def test_extract_quality(title, expected):
    assert extract_quality(title) == expected


def test_extract_quality_ignores_ts_inside_words():
    assert extract_quality("Hits and Shorts Collection") is None


def test_tiers_are_ordered_by_specificity():
    tags = [tag for tag, _, _ in QUALITY_TIERS]
    assert tags.index("1080P BLURAY") < tags.index("1080P") < tags.index("BLURAY")
    assert tags.index("HDTS") < tags.index("TS")


def test_every_tier_has_its_own_score():
    for tag, _, points in QUALITY_TIERS:
        assert score(candidate(quality=tag)) == points


@pytest.mark.parametrize("better, worse", [
    ("4K", "1080P"),
    ("1080P BLURAY", "1080P"),
    ("1080P", "720P BLURAY"),
    ("720P", "BLURAY"),
    ("BLURAY", "WEBRIP"),
    ("WEBRIP", "480P"),
    ("480P", "CAM"),
])
def test_score_follows_tier_order(better, worse):
    assert score(candidate(quality=better)) > score(candidate(quality=worse))


def test_4k_beats_720p():
    assert score(candidate(quality="4K")) > score(candidate(quality="720P"))


def test_unknown_tag_and_missing_tag():
    assert score(candidate(quality="SOMETHING")) == 20.0
    assert score(candidate()) == 0.0


def test_size_term():
    good = candidate(quality="1080P", size="4.5 GB")
    tiny = candidate(quality="1080P", size="0.1 GB")

    assert score(good) - score(tiny) == 10.0
    assert score(candidate(size="10 GB")) == 2.0
    assert score(candidate(size="20 GB")) == 0.0
    assert score(candidate(size="0.7 GB")) == 0.0
    assert score(candidate(size="not a size")) == 0.0


def test_peer_term():
    assert score(candidate(seeders=30, leechers=10)) == 3.0
    assert score(candidate(seeders=500, leechers=2)) == 10.0
    assert score(candidate(seeders=5, leechers=0)) == 10.0
    assert score(candidate(seeders=0, leechers=0)) == 0.0
    assert score(candidate(seeders=50)) == 0.0


@pytest.mark.parametrize("size, expected", [
    ("4.5 GB", 4.5),
    ("512 MB", 0.5),
    ("2 TB", 2048.0),
    ("1.5 GiB", 1.5),
    ("1073741824", 1.0),
    (1073741824, 1.0),
    ("garbage", None),
    (None, None),
])
def test_parse_size_to_gb(size, expected):
    assert parse_size_to_gb(size) == expected


def test_rank_is_descending_and_stable():
    a = candidate(title="a", quality="720P")
    b = candidate(title="b", quality="1080P")
    c = candidate(title="c", quality="720P")

    assert [s.title for s in rank([a, b, c])] == ["b", "a", "c"]
