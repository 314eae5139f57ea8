"""End-to-end tests for the archive pipeline."""

import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from conftest import RSS_A, RSS_B, URL_A, URL_B, make_transport
from feed_archiver.config import ArchiveConfig, Config, FetcherConfig
from feed_archiver.core.naming import resolve, url_hash
from feed_archiver.core.pipeline import ArchivePipeline, create_pipeline
from feed_archiver.exceptions import ConfigError, WriteError

ROUTES = {URL_A: RSS_A, URL_B: RSS_B}


def _config(tmp_path: Path, **archive) -> Config:
    archive.setdefault("output_dir", str(tmp_path / "out"))
    archive.setdefault("feeds_file", str(tmp_path / "feeds.txt"))
    archive.setdefault("repo_identifier", "octo")
    return Config(archive=ArchiveConfig(**archive), fetcher=FetcherConfig(max_workers=4))


def _titles(path: Path) -> list[str]:
    return [item.findtext("title") for item in ET.parse(path).getroot().findall("channel/item")]


class TestArchivePipeline:
    """Tests for ArchivePipeline.run."""

    def test_full_run(self, tmp_path):
        config = _config(tmp_path, max_items=2)
        out = Path(config.archive.output_dir)

        report = ArchivePipeline(config, transport=make_transport(ROUTES)).run([URL_A, URL_B])

        id_a = resolve(URL_A, "A Blog")
        id_b = resolve(URL_B, "")
        assert id_b.startswith("b-example-")

        assert report.sources_total == 2
        assert report.sources_used == 2
        assert report.sources_failed == 0
        assert report.items_aggregated == 2
        assert sorted(report.files_written) == sorted(
            ["master_feed.xml", f"{id_a}.xml", f"{id_b}.xml", "feeds.opml"]
        )

        assert _titles(out / "master_feed.xml") == ["Fifth", "Third"]
        # Per-source cap keeps feed order, no re-sorting
        assert _titles(out / f"{id_a}.xml") == ["First", "Second"]
        assert _titles(out / f"{id_b}.xml") == ["Fifth"]
        assert (out / ".gitkeep").exists()

        outlines = ET.parse(out / "feeds.opml").getroot().findall("body/outline")
        xml_urls = {outline.get("htmlUrl"): outline.get("xmlUrl") for outline in outlines}
        assert xml_urls == {
            URL_A: f"https://octo.github.io/feeds/{id_a}.xml",
            URL_B: f"https://octo.github.io/feeds/{id_b}.xml",
        }

    def test_unlimited_cap(self, tmp_path):
        config = _config(tmp_path, max_items=0)

        report = ArchivePipeline(config, transport=make_transport(ROUTES)).run([URL_A, URL_B])

        out = Path(config.archive.output_dir)
        assert report.items_aggregated == 4
        assert _titles(out / "master_feed.xml") == ["Fifth", "Third", "Second", "First"]
        assert len(_titles(out / f"{resolve(URL_A, 'A Blog')}.xml")) == 3

    def test_removes_stale_archive(self, tmp_path):
        config = _config(tmp_path)
        out = Path(config.archive.output_dir)
        out.mkdir()
        (out / "old-source-1a2b3c4d.xml").write_text("old")
        (out / ".gitkeep").write_text("")

        report = ArchivePipeline(config, transport=make_transport(ROUTES)).run([URL_A, URL_B])

        assert report.files_removed == ["old-source-1a2b3c4d.xml"]
        assert not (out / "old-source-1a2b3c4d.xml").exists()
        assert (out / "master_feed.xml").exists()
        assert (out / "feeds.opml").exists()
        assert (out / ".gitkeep").exists()

    def test_failed_source_keeps_previous_archive(self, tmp_path):
        config = _config(tmp_path)
        out = Path(config.archive.output_dir)
        out.mkdir()
        previous = out / f"{resolve(URL_B, '')}.xml"
        previous.write_text("previous run")

        report = ArchivePipeline(config, transport=make_transport({URL_A: RSS_A})).run(
            [URL_A, URL_B]
        )

        assert report.sources_used == 1
        assert [error.url for error in report.fetch_errors] == [URL_B]
        assert report.files_removed == []
        assert previous.read_text() == "previous run"

    def test_all_sources_fail(self, tmp_path):
        config = _config(tmp_path)
        out = Path(config.archive.output_dir)

        report = ArchivePipeline(config, transport=make_transport({})).run([URL_A, URL_B])

        assert report.sources_used == 0
        assert report.items_aggregated == 0
        assert sorted(report.files_written) == ["feeds.opml", "master_feed.xml"]
        assert _titles(out / "master_feed.xml") == []
        assert sorted(p.name for p in out.iterdir()) == [".gitkeep", "feeds.opml", "master_feed.xml"]

    def test_empty_source_list_writes_nothing(self, tmp_path):
        config = _config(tmp_path)
        Path(config.archive.feeds_file).write_text("\n  \n", encoding="utf-8")

        report = ArchivePipeline(config, transport=make_transport(ROUTES)).run()

        assert report.sources_total == 0
        assert report.files_written == []
        assert not Path(config.archive.output_dir).exists()

    def test_reads_source_list_file(self, tmp_path):
        config = _config(tmp_path)
        Path(config.archive.feeds_file).write_text(f"{URL_A}\n\n{URL_B}\n", encoding="utf-8")

        report = ArchivePipeline(config, transport=make_transport(ROUTES)).run()

        assert report.sources_used == 2

    def test_missing_source_list_is_fatal(self, tmp_path):
        config = _config(tmp_path)

        with pytest.raises(ConfigError):
            ArchivePipeline(config, transport=make_transport(ROUTES)).run()

    def test_unwritable_output_is_fatal(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        config = _config(tmp_path, output_dir=str(blocker))

        with pytest.raises(WriteError):
            ArchivePipeline(config, transport=make_transport(ROUTES)).run([URL_A])

    def test_archive_write_failure_is_recovered(self, tmp_path, monkeypatch):
        config = _config(tmp_path)
        failing_name = f"{resolve(URL_A, 'A Blog')}.xml"
        original_write = ArchivePipeline._write

        def flaky_write(path, content):
            if path.name == failing_name:
                raise WriteError(str(path), "Cannot write: disk full")
            original_write(path, content)

        monkeypatch.setattr(ArchivePipeline, "_write", staticmethod(flaky_write))

        report = ArchivePipeline(config, transport=make_transport(ROUTES)).run([URL_A, URL_B])

        assert [error.path for error in report.write_errors] == [
            str(Path(config.archive.output_dir) / failing_name)
        ]
        assert failing_name not in report.files_written
        assert "master_feed.xml" in report.files_written
        assert f"{resolve(URL_B, '')}.xml" in report.files_written

    def test_archive_names_share_url_hash(self, tmp_path):
        config = _config(tmp_path)

        create_pipeline(config, transport=make_transport(ROUTES)).run([URL_A])

        names = [p.name for p in Path(config.archive.output_dir).glob("*.xml")]
        assert f"a-blog-{url_hash(URL_A)}.xml" in names

    def test_control_characters_yield_well_formed_xml(self, tmp_path):
        config = _config(tmp_path)
        out = Path(config.archive.output_dir)
        dirty = RSS_A.replace(b"<title>First</title>", b"<title>bad &#x1b; char</title>")

        report = ArchivePipeline(config, transport=make_transport({URL_A: dirty})).run([URL_A])

        assert report.sources_used == 1
        assert report.write_errors == []
        # Every written document parses back
        for name in report.files_written:
            ET.parse(out / name)
        titles = _titles(out / "master_feed.xml")
        assert len(titles) == 3
        assert all("\x1b" not in title for title in titles)
        assert any(title.startswith("bad") for title in titles)
