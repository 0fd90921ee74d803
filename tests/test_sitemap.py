"""Tests for sitemap classification."""

import pytest

from newsdelta.discovery.sitemap import (
    analyze_sitemap,
    count_distinct_lastmod_days,
    detect_mode,
    detect_namespaces,
    looks_date_sharded,
    parse_lastmod,
)
from newsdelta.models import SitemapStats


def _urlset(*entries: tuple[str, str | None], extra_ns: str = "") -> str:
    """Build a urlset document from (loc, lastmod) pairs."""
    body = []
    for loc, lastmod in entries:
        lastmod_xml = f"<lastmod>{lastmod}</lastmod>" if lastmod else ""
        body.append(f"<url><loc>{loc}</loc>{lastmod_xml}</url>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"{extra_ns}>'
        + "".join(body)
        + "</urlset>"
    )


class TestKindDetection:
    """Tests for document kind and extraction."""

    def test_sitemap_index(self, index_xml: str):
        """Test that an index yields its children in document order."""
        analysis = analyze_sitemap("https://example.com/sitemap_index.xml", index_xml)
        assert analysis.kind == "index"
        assert analysis.mode == "index"
        assert analysis.children == [
            "https://example.com/sitemap/2025/07/22_1.xml",
            "https://example.com/sitemap/2025/07/22_2.xml",
        ]
        assert analysis.urls is None
        assert analysis.stats is None
        assert analysis.reasons == ["sitemapindex found"]

    def test_index_skips_non_http_children(self):
        """Test that relative or empty child locs are dropped."""
        xml = (
            "<sitemapindex>"
            "<sitemap><loc> https://example.com/a.xml </loc></sitemap>"
            "<sitemap><loc>/relative.xml</loc></sitemap>"
            "<sitemap><loc></loc></sitemap>"
            "</sitemapindex>"
        )
        analysis = analyze_sitemap("https://example.com/index.xml", xml)
        assert analysis.children == ["https://example.com/a.xml"]

    def test_urlset_entries(self, shard_xml: str):
        """Test that urlset entries are extracted with lastmod."""
        analysis = analyze_sitemap("https://example.com/sitemap/2025/07/22_1.xml", shard_xml)
        assert analysis.kind == "urlset"
        assert [u.loc for u in analysis.urls or []] == [
            "https://example.com/story/one",
            "https://example.com/story/two",
            "https://example.com/story/three",
        ]
        assert analysis.urls is not None
        assert analysis.urls[2].lastmod == "2025-07-22"
        assert analysis.children is None

    def test_urlset_filters_bad_locs(self):
        """Test that entries without an http loc are skipped."""
        xml = (
            "<urlset>"
            "<url><loc>https://example.com/ok</loc></url>"
            "<url><loc>mailto:someone@example.com</loc></url>"
            "<url><lastmod>2025-01-01</lastmod></url>"
            "<url><loc>   </loc></url>"
            "<url><loc>http://example.com/plain-http</loc><lastmod>  </lastmod></url>"
            "</urlset>"
        )
        analysis = analyze_sitemap("https://example.com/x.xml", xml)
        assert [u.loc for u in analysis.urls or []] == [
            "https://example.com/ok",
            "http://example.com/plain-http",
        ]
        assert analysis.urls is not None
        assert analysis.urls[1].lastmod is None
        assert analysis.stats is not None
        assert analysis.stats.has_lastmod is False

    def test_first_loc_wins(self):
        """Test that only the first loc of an entry is used."""
        xml = "<urlset><url><loc>https://example.com/first</loc><loc>https://example.com/second</loc></url></urlset>"
        analysis = analyze_sitemap("https://example.com/x.xml", xml)
        assert [u.loc for u in analysis.urls or []] == ["https://example.com/first"]

    def test_extension_locs_are_not_page_locs(self):
        """Test that image:loc inside an entry does not replace the page loc."""
        xml = (
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9" '
            'xmlns:image="http://www.google.com/schemas/sitemap-image/1.1">'
            "<url><image:image><image:loc>https://cdn.example.com/i.jpg</image:loc></image:image>"
            "<loc>https://example.com/page</loc></url>"
            "</urlset>"
        )
        analysis = analyze_sitemap("https://example.com/x.xml", xml)
        assert [u.loc for u in analysis.urls or []] == ["https://example.com/page"]

    def test_unknown_root(self):
        """Test that an unrelated XML document is unknown."""
        analysis = analyze_sitemap("https://example.com/feed.xml", "<rss><channel/></rss>")
        assert analysis.kind == "unknown"
        assert analysis.mode == "unknown"
        assert analysis.reasons == ["unrecognized XML structure"]
        assert analysis.children is None
        assert analysis.urls is None

    @pytest.mark.parametrize(
        "raw",
        ["", "not xml at all", "<urlset><url><loc>https://x", "<<<>>>", "<html><body>404</body></html"],
    )
    def test_malformed_xml_never_raises(self, raw: str):
        """Test graceful degradation on malformed input."""
        analysis = analyze_sitemap("https://example.com/broken.xml", raw)
        assert analysis.kind == "unknown"
        assert analysis.reasons[0] == "unrecognized XML structure"

    def test_leading_whitespace_and_bom(self):
        """Test that a BOM and blank lines before the declaration are tolerated."""
        xml = "\ufeff\n\n  " + _urlset(("https://example.com/a", None))
        analysis = analyze_sitemap("https://example.com/x.xml", xml)
        assert analysis.kind == "urlset"

    def test_bytes_input(self, shard_xml: str):
        """Test that raw bytes are accepted."""
        analysis = analyze_sitemap("https://example.com/x.xml", shard_xml.encode("utf-8"))
        assert analysis.kind == "urlset"
        assert analysis.stats is not None
        assert analysis.stats.url_count == 3


class TestStats:
    """Tests for urlset statistics."""

    def test_stats_for_single_day(self, shard_xml: str):
        analysis = analyze_sitemap("https://example.com/x.xml", shard_xml)
        assert analysis.stats == SitemapStats(url_count=3, lastmod_days=1, has_lastmod=True)

    def test_unparseable_lastmods_excluded(self):
        xml = _urlset(
            ("https://example.com/a", "yesterday"),
            ("https://example.com/b", "2025-13-45"),
        )
        analysis = analyze_sitemap("https://example.com/x.xml", xml)
        assert analysis.stats == SitemapStats(url_count=2, lastmod_days=0, has_lastmod=True)

    def test_out_of_range_lastmods_excluded(self):
        """Test that lastmods at the calendar limits do not break classification."""
        xml = _urlset(
            ("https://example.com/a", "0001-01-01T00:00:00+05:00"),
            ("https://example.com/b", "9999-12-31T23:00:00-05:00"),
            ("https://example.com/c", "2025-07-22"),
        )
        analysis = analyze_sitemap("https://example.com/2025/07/22_1.xml", xml)
        assert analysis.kind == "urlset"
        assert analysis.stats == SitemapStats(url_count=3, lastmod_days=1, has_lastmod=True)
        assert analysis.mode == "sharded"

    def test_distinct_days_use_utc(self):
        """Test that offsets are converted before taking the calendar date."""
        values = [
            "2025-07-22T23:30:00-03:00",  # 2025-07-23 UTC
            "2025-07-23T01:00:00Z",
            "2025-07-22T10:00:00Z",
        ]
        assert count_distinct_lastmod_days(values) == 2

    def test_empty_lastmods(self):
        assert count_distinct_lastmod_days([]) == 0


class TestParseLastmod:
    """Tests for parse_lastmod."""

    @pytest.mark.parametrize(
        ("value", "expected_date"),
        [
            ("2025-07-22", "2025-07-22"),
            ("2025-07-22T10:00:00Z", "2025-07-22"),
            ("2025-07-22T10:00:00.123+02:00", "2025-07-22"),
            ("2025-07-22T01:00:00+05:00", "2025-07-21"),
            ("Tue, 22 Jul 2025 10:00:00 GMT", "2025-07-22"),
        ],
    )
    def test_parses_common_formats(self, value: str, expected_date: str):
        parsed = parse_lastmod(value)
        assert parsed is not None
        assert parsed.date().isoformat() == expected_date

    @pytest.mark.parametrize(
        "value",
        ["", "   ", "soon", "22/07/2025", "0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"],
    )
    def test_rejects_garbage(self, value: str):
        assert parse_lastmod(value) is None


class TestModeDetection:
    """Tests for refresh-mode heuristics."""

    def test_date_shard_single_day_is_sharded(self, shard_xml: str):
        """Test the canonical sharded case."""
        analysis = analyze_sitemap("https://example.com/2025/07/22_1.xml", shard_xml)
        assert analysis.mode == "sharded"
        assert analysis.reasons == ["URL matches a date/shard pattern", "lastmod concentrated on a single day"]

    def test_date_path_segment_is_sharded(self):
        """Test YYYY/MM/DD path segments."""
        xml = _urlset(("https://example.com/a", "2025-07-22"))
        analysis = analyze_sitemap("https://example.com/sitemaps/2025/07/22/news.xml", xml)
        assert analysis.mode == "sharded"

    def test_shard_url_with_unparseable_lastmods_is_sharded(self):
        """Test has_lastmod with zero parseable days still counts as sharded."""
        xml = _urlset(("https://example.com/a", "garbage"))
        analysis = analyze_sitemap("https://example.com/posts_3.xml.gz", xml)
        assert analysis.mode == "sharded"

    def test_shard_url_without_lastmod_is_not_sharded(self):
        """Test that a shard-looking URL alone is not enough."""
        xml = _urlset(("https://example.com/a", None))
        analysis = analyze_sitemap("https://example.com/posts_3.xml", xml)
        assert analysis.mode == "unknown"
        assert analysis.reasons == ["no strong pattern matched"]

    def test_shard_url_spanning_days_is_rolling(self):
        """Test that lastmods over several days override a shard URL."""
        xml = _urlset(("https://example.com/a", "2025-07-21"), ("https://example.com/b", "2025-07-22"))
        analysis = analyze_sitemap("https://example.com/2025/07/22_1.xml", xml)
        assert analysis.mode == "rolling"

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/sitemap.xml",
            "https://example.com/news-sitemap.xml",
            "https://example.com/sitemap_news.xml",
            "https://example.com/SITEMAP_INDEX.XML",
            "https://example.com/sitemap.xml.gz",
        ],
    )
    def test_generic_names_are_rolling(self, url: str):
        xml = _urlset(("https://example.com/a", None))
        analysis = analyze_sitemap(url, xml)
        assert analysis.mode == "rolling"
        assert analysis.reasons == ["generic sitemap name or lastmod spread over multiple days"]

    def test_multi_day_lastmods_are_rolling(self):
        xml = _urlset(("https://example.com/a", "2025-07-20"), ("https://example.com/b", "2025-07-22"))
        analysis = analyze_sitemap("https://example.com/feeds/latest.xml", xml)
        assert analysis.mode == "rolling"

    def test_nothing_matches_is_unknown(self):
        xml = _urlset(("https://example.com/a", "2025-07-22"))
        analysis = analyze_sitemap("https://example.com/feeds/latest.xml", xml)
        assert analysis.mode == "unknown"

    def test_detect_mode_directly(self):
        stats = SitemapStats(url_count=0, lastmod_days=0, has_lastmod=False)
        assert detect_mode("https://example.com/2025/07/22_1.xml", stats)[0] == "unknown"
        assert detect_mode("https://example.com/sitemap.xml", stats)[0] == "rolling"

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://example.com/2025/07/22_1.xml", True),
            ("https://example.com/sitemap/2025/07/22/index.xml", True),
            ("https://example.com/articles_12.xml.gz", True),
            ("https://example.com/ARTICLES_12.XML", True),
            ("https://example.com/sitemap.xml", False),
            ("https://example.com/2025/07.xml", False),
            ("https://example.com/a.xml?page=2025/07/22", False),
        ],
    )
    def test_looks_date_sharded(self, url: str, expected: bool):
        assert looks_date_sharded(url) is expected


class TestNamespaces:
    """Tests for news/video namespace detection."""

    def test_news_namespace(self):
        xml = _urlset(
            ("https://example.com/a", None),
            extra_ns=' xmlns:news="http://www.google.com/schemas/sitemap-news/0.9"',
        )
        analysis = analyze_sitemap("https://example.com/news-sitemap.xml", xml)
        assert analysis.namespaces.news is True
        assert analysis.namespaces.video is False
        assert analysis.reasons[-1] == "news namespace present"

    def test_both_namespaces_on_unknown_document(self):
        raw = "<feed><NEWS:NEWS/><video:video></feed>"
        analysis = analyze_sitemap("https://example.com/x.xml", raw)
        assert analysis.kind == "unknown"
        assert analysis.reasons == [
            "unrecognized XML structure",
            "news namespace present",
            "video namespace present",
        ]

    def test_detect_namespaces_tolerates_whitespace(self):
        ns = detect_namespaces('<urlset xmlns : video = "x">')
        assert ns.video is True
        assert ns.news is False

    def test_no_namespaces(self, shard_xml: str):
        ns = detect_namespaces(shard_xml)
        assert ns.news is False
        assert ns.video is False
