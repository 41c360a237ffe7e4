"""Tests for file_handler.py -- encoding-aware artifact reads and writes."""

from webengine_sync.file_handler import (
    LocalArtifact,
    read_artifact,
    read_artifact_text,
    write_artifact,
)

LATIN1_CSS = "/* Résumé des styles: café, façade, français */\n" * 5


class TestReadArtifact:
    def test_utf8_file(self, tmp_path):
        path = tmp_path / "home"
        path.write_text("<h1>Café – menü</h1>\n", encoding="utf-8")

        artifact = read_artifact(path)

        assert artifact.text == "<h1>Café – menü</h1>\n"
        assert artifact.encoding in ("utf-8", "utf_8")

    def test_ascii_reported_as_utf8(self, tmp_path):
        path = tmp_path / "site.css"
        path.write_bytes(b"body { margin: 0; }\n")

        assert read_artifact(path).encoding in ("utf-8", "utf_8")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.js"
        path.write_bytes(b"")

        assert read_artifact(path) == LocalArtifact("", "utf-8")

    def test_latin1_file_decoded(self, tmp_path):
        path = tmp_path / "legacy.css"
        path.write_bytes(LATIN1_CSS.encode("latin-1"))

        assert read_artifact_text(path) == LATIN1_CSS


class TestWriteArtifact:
    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "webengine" / "views" / "about"

        written = write_artifact(path, "<p>About</p>")

        assert path.read_text(encoding="utf-8") == "<p>About</p>"
        assert written == len("<p>About</p>")

    def test_new_file_is_utf8(self, tmp_path):
        path = tmp_path / "x.css"

        assert write_artifact(path, "é") == 2
        assert path.read_bytes() == "é".encode("utf-8")

    def test_explicit_encoding(self, tmp_path):
        path = tmp_path / "x.css"

        assert write_artifact(path, "é", encoding="latin-1") == 1
        assert path.read_bytes() == b"\xe9"

    def test_overwrite_keeps_existing_encoding(self, tmp_path):
        path = tmp_path / "legacy.css"
        path.write_bytes(LATIN1_CSS.encode("latin-1"))
        updated = LATIN1_CSS + "/* déjà */\n"

        write_artifact(path, updated)

        assert read_artifact_text(path) == updated
        assert b"\xc3" not in path.read_bytes()

    def test_overwrite_falls_back_to_utf8(self, tmp_path):
        path = tmp_path / "legacy.css"
        path.write_bytes(LATIN1_CSS.encode("latin-1"))

        write_artifact(path, "/* ☃ */\n")

        assert path.read_bytes() == "/* ☃ */\n".encode("utf-8")
