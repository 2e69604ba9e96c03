import yaml
from click.testing import CliRunner

import teaser.cli as cli_module
from teaser import __version__
from teaser.cli import cli


def read_frontmatter(path):
    text = path.read_text(encoding="utf-8")
    assert text.startswith("---\n")
    return yaml.safe_load(text.split("---\n")[1])


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_new_then_build(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["new", "site"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "site" / "_config.yml").exists()

    monkeypatch.chdir(tmp_path / "site")
    result = runner.invoke(cli, ["build"])
    assert result.exit_code == 0, result.output
    assert "Built 1 posts and 3 pages" in result.output
    index = (tmp_path / "site" / "_site" / "index.html").read_text()
    assert "Hello World" in index
    assert "Read more..." in index


def test_new_refuses_non_empty_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "site").mkdir()
    (tmp_path / "site" / "keep.txt").write_text("x")
    result = CliRunner().invoke(cli, ["new", "site"])
    assert result.exit_code != 0
    assert "non-empty" in result.output


def test_build_with_root_url(blog, monkeypatch):
    monkeypatch.chdir(blog)
    result = CliRunner().invoke(cli, ["build", "--root-url", "/blog"])
    assert result.exit_code == 0, result.output
    index = (blog / "_site" / "index.html").read_text()
    assert 'href="/blog/2017/04/13/hello-world.html"' in index


def test_build_failure_exits_with_error(blog, monkeypatch, write_file):
    write_file(blog / "broken.html", "---\nlayout: missing\n---\nHi\n")
    monkeypatch.chdir(blog)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "File: broken.html" in result.output
    assert "Layout not found: missing" in result.output


def test_post_command(blog, monkeypatch):
    monkeypatch.chdir(blog)
    runner = CliRunner()
    result = runner.invoke(cli, ["post", "My Second Post", "--tags", "news misc"])
    assert result.exit_code == 0, result.output
    created = [p for p in (blog / "_posts").glob("*-my-second-post.md")]
    assert len(created) == 1
    assert read_frontmatter(created[0]) == {
        "layout": "post",
        "title": "My Second Post",
        "tags": ["news", "misc"],
    }

    result = runner.invoke(cli, ["post", "My Second Post"])
    assert result.exit_code != 0
    assert "already exists" in result.output


def test_post_rejects_existing_slug(blog, monkeypatch):
    monkeypatch.chdir(blog)
    result = CliRunner().invoke(cli, ["post", "Hello World"])
    assert result.exit_code != 0
    assert "hello-world" in result.output


def test_post_draft(blog, monkeypatch):
    monkeypatch.chdir(blog)
    result = CliRunner().invoke(cli, ["post", "Half Done", "--draft"])
    assert result.exit_code == 0, result.output
    assert (blog / "_drafts" / "half-done.md").exists()


class _Prompt:
    def __init__(self, answer):
        self.answer = answer

    def ask(self):
        return self.answer


def test_post_prompts_for_title(blog, monkeypatch):
    monkeypatch.chdir(blog)
    monkeypatch.setattr(cli_module.questionary, "text", lambda *a, **kw: _Prompt("Asked Title"))
    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code == 0, result.output
    assert list((blog / "_posts").glob("*-asked-title.md"))


def test_post_prompt_cancelled(blog, monkeypatch):
    monkeypatch.chdir(blog)
    monkeypatch.setattr(cli_module.questionary, "text", lambda *a, **kw: _Prompt(None))
    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code == 1
    assert "Aborted" in result.output


def test_page_command(blog, monkeypatch):
    monkeypatch.chdir(blog)
    runner = CliRunner()
    result = runner.invoke(cli, ["page", "about-me"])
    assert result.exit_code == 0, result.output
    target = blog / "about-me" / "index.html"
    assert read_frontmatter(target) == {"layout": "page", "title": "About Me"}

    result = runner.invoke(cli, ["page", "contact.md", "--title", "Say Hi"])
    assert result.exit_code == 0, result.output
    assert read_frontmatter(blog / "contact.md")["title"] == "Say Hi"

    result = runner.invoke(cli, ["page", "contact.md"])
    assert result.exit_code != 0
    assert "File already exists" in result.output


def test_serve_starts_preview_server(blog, monkeypatch):
    started = {}

    class DummyServer:
        def __init__(self, project_root, port=None):
            started["root"] = project_root
            started["port"] = port

        def start(self, include_drafts=False):
            started["drafts"] = include_drafts

    monkeypatch.chdir(blog)
    monkeypatch.setattr("teaser.server.PreviewServer", DummyServer)
    result = CliRunner().invoke(cli, ["serve", "--drafts", "--port", "8080"])
    assert result.exit_code == 0, result.output
    assert started == {"root": blog, "port": 8080, "drafts": True}
