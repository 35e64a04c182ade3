# tests/test_images.py

from datetime import datetime, timezone

import pytest
import requests

from card_table_pipeline.images import ImageDownloader, ImageDownloadError, resolve_image_url
from card_table_pipeline.models import CandidateCard, CardImage, ExtractionReport, FinalCard

PAGE = "https://www.example.com/m/credit-cards/best"


class _Resp:

    def __init__(self, status_code, content=b""):
        self.status_code = status_code
        self.content = content


class _Session:

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def downloader(monkeypatch):
    d = ImageDownloader(max_retries=2, backoff_factor=0)
    monkeypatch.setattr("card_table_pipeline.images.time.sleep", lambda s: None)
    return d


@pytest.mark.parametrize(
    "src, expected",
    [
        ("//cdn.example.com/a.png", "https://cdn.example.com/a.png"),
        ("/art/a.png", "https://www.example.com/art/a.png"),
        ("a.png", "https://www.example.com/m/credit-cards/a.png"),
        ("https://img.example.org/a.png", "https://img.example.org/a.png"),
    ],
)
def test_resolve_image_url(src, expected):
    assert resolve_image_url(src, PAGE) == expected


def test_saves_bytes_under_card_filename(downloader, tmp_path):
    downloader.session = _Session([_Resp(200, b"\x89PNG")])
    image = CardImage(src="//cdn.example.com/csp.png", alt="", filename="chase_sapphire.jpg")

    result = downloader.download(image, PAGE, tmp_path / "images")

    assert result.error is None
    assert result.path == tmp_path / "images" / "chase_sapphire.jpg"
    assert result.path.read_bytes() == b"\x89PNG"


def test_retries_transient_errors(downloader, tmp_path):
    downloader.session = _Session([requests.ConnectionError("reset"), _Resp(503), _Resp(200, b"ok")])
    image = CardImage(src="/a.png", alt="", filename="a.jpg")

    result = downloader.download(image, PAGE, tmp_path)

    assert result.status_code == 200
    assert len(downloader.session.urls) == 3


def test_gives_up_after_max_retries(downloader, tmp_path):
    downloader.session = _Session([_Resp(500), _Resp(500), _Resp(500)])

    result = downloader.download(CardImage(src="/a.png", alt="", filename="a.jpg"), PAGE, tmp_path)

    assert result.path is None
    assert result.error == "HTTP 500"


def test_client_errors_are_not_retried(downloader, tmp_path):
    downloader.session = _Session([_Resp(404)])

    result = downloader.download(CardImage(src="/a.png", alt="", filename="a.jpg"), PAGE, tmp_path)

    assert result.status_code == 404
    assert len(downloader.session.urls) == 1


def test_unexpected_request_error_raises(downloader, tmp_path):
    downloader.session = _Session([requests.exceptions.InvalidURL("bad")])

    with pytest.raises(ImageDownloadError):
        downloader.download(CardImage(src="/a.png", alt="", filename="a.jpg"), PAGE, tmp_path)


def test_report_images_skip_cards_without_art(downloader, tmp_path):
    downloader.session = _Session([_Resp(200, b"img")])
    report = ExtractionReport(
        url=PAGE,
        credit_cards=[
            FinalCard(CandidateCard(name="A", row_index=0, image=CardImage("/a.png", "", "a.jpg"))),
            FinalCard(CandidateCard(name="B", row_index=1)),
        ],
        timestamp=datetime.now(timezone.utc),
    )

    results = downloader.download_report_images(report, tmp_path)

    assert [r.path.name for r in results] == ["a.jpg"]
