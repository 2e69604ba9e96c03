from pathlib import Path

from teaser.extractors import CompositeMetadataExtractor, TitleExtractor
from teaser.protocols import ContentRenderer, MetadataExtractor
from teaser.renderers import HTMLRenderer, MarkdownRenderer, RendererRegistry


def test_renderers_implement_protocol():
    assert isinstance(MarkdownRenderer(), ContentRenderer)
    assert isinstance(HTMLRenderer(), ContentRenderer)
    assert isinstance(TitleExtractor(), MetadataExtractor)


def test_registry_picks_renderer_by_suffix():
    registry = RendererRegistry()
    assert registry.get_renderer(Path("post.md")).source_type == "markdown"
    assert registry.get_renderer(Path("post.markdown")).source_type == "markdown"
    assert registry.get_renderer(Path("post.html")).source_type == "html"
    assert registry.get_renderer(Path("post.txt")) is None


def test_heading_ids_are_unique_per_document():
    renderer = MarkdownRenderer()
    html = renderer.render("## Setup\n\ntext\n\n## Setup\n")
    assert '<h2 id="setup">Setup</h2>' in html
    assert '<h2 id="setup-1">Setup</h2>' in html
    # ids restart for the next document
    assert '<h2 id="setup">Setup</h2>' in renderer.render("## Setup\n")


def test_code_blocks():
    renderer = MarkdownRenderer()
    highlighted = renderer.render("```powershell\nGet-Item .\n```\n")
    assert '<div class="highlight">' in highlighted

    unknown = renderer.render("```nosuchlang\na < b\n```\n")
    assert '<pre><code class="language-nosuchlang">a &lt; b\n</code></pre>' in unknown

    plain = renderer.render("```\nx & y\n```\n")
    assert "<pre><code>x &amp; y\n</code></pre>" in plain


def test_markdown_plugins():
    html = MarkdownRenderer().render("~~old~~ and https://example.com\n\n| a | b |\n|---|---|\n| 1 | 2 |\n")
    assert "<del>old</del>" in html
    assert '<a href="https://example.com">https://example.com</a>' in html
    assert "<table>" in html


def test_html_renderer_passes_through():
    assert HTMLRenderer().render("<p>{{ x }}</p>") == "<p>{{ x }}</p>"


def test_composite_extractor_accepts_custom_extractors():
    class WordCount:
        def extract(self, body, path, frontmatter):
            return {"words": len(body.split())}

    extractor = CompositeMetadataExtractor([TitleExtractor()])
    extractor.add_extractor(WordCount())
    meta = extractor.extract("---\ntitle: Hi\n---\none two three\n", Path("x.md"))
    assert meta["title"] == "Hi"
    assert meta["words"] == 3
