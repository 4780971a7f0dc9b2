"""Unit tests for docvault.documents.paths - PathResolver."""

from pathlib import Path

from docvault.documents.paths import PathResolver, sidecar


class TestDocumentPaths:

    def test_current_path(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.document_path("a.txt") == tmp_path / "Documents" / "a.txt"

    def test_version_path(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.document_path("a.txt", "3") == tmp_path / "Documents" / "a v3.txt"
        assert r.document_path("a.txt", 3) == tmp_path / "Documents" / "a v3.txt"

    def test_empty_version_is_current(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.document_path("a.txt", "") == r.document_path("a.txt")

    def test_wildcard(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.version_pattern("report.docx").name == "report v*.docx"

    def test_no_extension(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.document_path("notes", 1).name == "notes v1"

    def test_subdirectory_kept_for_versions(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.document_path("sub/a.txt", 2) == tmp_path / "Documents" / "sub" / "a v2.txt"

    def test_empty_ref_is_blank(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.document_path("") == tmp_path / "Documents" / "blank"
        assert r.document_path(None) == tmp_path / "Documents" / "blank"

    def test_sidecars(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.lock_path("a.txt").name == "a.txt.lock"
        assert r.baseline_path("a.txt").name == "a.txt.base"
        assert sidecar(Path("x/y.docx"), ".lock") == Path("x/y.docx.lock")

    def test_resolution_does_not_touch_disk(self, tmp_path):
        r = PathResolver(tmp_path / "missing")
        r.document_path("a.txt", 5)
        assert not (tmp_path / "missing").exists()


class TestTemplatePaths:

    def test_neutral(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.template_path("letter.docx") == tmp_path / "Templates" / "letter.docx"
        assert r.template_path("letter.docx", "") == r.template_path("letter.docx")

    def test_language_inserted_before_extension(self, tmp_path):
        r = PathResolver(tmp_path)
        assert r.template_path("letter.docx", "fr").name == "letterfr.docx"


class TestDirectories:

    def test_ensure_directories(self, tmp_path):
        r = PathResolver(tmp_path / "root")
        r.ensure_directories()
        assert r.documents_dir.is_dir()
        assert r.templates_dir.is_dir()

    def test_to_url(self, tmp_path):
        url = PathResolver.to_url(tmp_path / "a.txt")
        assert url.startswith("file://")
        assert url.endswith("/a.txt")
