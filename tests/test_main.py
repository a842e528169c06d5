"""
Test suite for the conversion endpoints.
"""

import io
from urllib.parse import quote

from fastapi.testclient import TestClient
from pptx import Presentation

import main

SAMPLE = "---\nmarp: true\n---\n# Title A\ncontent A\n---\n## Title B\ncontent B\n"


def upload(client: TestClient, filename: str, content: bytes):
    return client.post("/convert/", files={"file": (filename, content, "text/markdown")})


class TestRootEndpoint:
    def test_root(self, test_client: TestClient) -> None:
        response = test_client.get("/")
        assert response.status_code == 200
        assert "running" in response.json()["message"]


class TestConvertEndpoint:
    def test_converts_markdown_upload(self, test_client: TestClient) -> None:
        response = upload(test_client, "deck.md", SAMPLE.encode("utf-8"))

        assert response.status_code == 200
        assert response.headers["content-type"] == main.PPTX_MEDIA_TYPE
        assert 'filename="deck.pptx"' in response.headers["content-disposition"]

        prs = Presentation(io.BytesIO(response.content))
        assert len(prs.slides) == 3

    def test_non_ascii_filename(self, test_client: TestClient) -> None:
        response = upload(test_client, "資料.md", SAMPLE.encode("utf-8"))

        assert response.status_code == 200
        assert f"filename*=UTF-8''{quote('資料.pptx')}" in response.headers["content-disposition"]

    def test_missing_file(self, test_client: TestClient) -> None:
        response = test_client.post("/convert/")
        assert response.status_code == 400

    def test_wrong_extension(self, test_client: TestClient) -> None:
        response = upload(test_client, "notes.txt", b"# Title\nbody")
        assert response.status_code == 400
        assert ".md" in response.json()["detail"]

    def test_empty_upload(self, test_client: TestClient) -> None:
        response = upload(test_client, "empty.md", b"")
        assert response.status_code == 400

    def test_no_slides_found(self, test_client: TestClient) -> None:
        response = upload(test_client, "meta.md", b"---\nmarp: true\n---\n<!-- nothing -->\n")
        assert response.status_code == 400
        assert "No valid slides" in response.json()["detail"]

    def test_invalid_utf8(self, test_client: TestClient) -> None:
        response = upload(test_client, "binary.md", b"\xff\xfe\xfa# Title")
        assert response.status_code == 400

    def test_upload_too_large(self, test_client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(main, "MAX_UPLOAD_BYTES", 10)
        response = upload(test_client, "big.md", b"# Title\n" + b"x" * 100)
        assert response.status_code == 413

    def test_renderer_failure(self, test_client: TestClient, monkeypatch) -> None:
        def broken_renderer(*args, **kwargs):
            raise RuntimeError("renderer exploded")

        monkeypatch.setattr(main.ppt_generator, "render_presentation", broken_renderer)
        response = upload(test_client, "deck.md", SAMPLE.encode("utf-8"))

        assert response.status_code == 500
        assert "renderer exploded" not in response.text


class TestSlidesEndpoint:
    def test_preview(self, test_client: TestClient) -> None:
        response = test_client.post("/slides/", json={"text": SAMPLE, "filename": "deck.md"})

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "deck"
        assert data["slides"] == [
            {"title": "Title A", "body": "content A", "headingLevel": 1},
            {"title": "Title B", "body": "content B", "headingLevel": 2},
        ]

    def test_blank_text(self, test_client: TestClient) -> None:
        response = test_client.post("/slides/", json={"text": "   "})
        assert response.status_code == 400

    def test_no_slides(self, test_client: TestClient) -> None:
        response = test_client.post("/slides/", json={"text": "<br>"})
        assert response.status_code == 400


class TestHelpers:
    def test_pptx_filename(self) -> None:
        assert main.pptx_filename("notes.md") == "notes.pptx"
        assert main.pptx_filename("dir/Deck.MARKDOWN") == "Deck.pptx"
        assert main.pptx_filename(".md") == "presentation.pptx"
