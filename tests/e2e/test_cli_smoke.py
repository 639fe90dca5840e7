from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from clipcss.cli import app
from clipcss.models import FetchResult

runner = CliRunner()


class FakeFetcher:
    texts = {
        "https://example.com/css/site.css": (
            "@import 'parts/nav.css';\n.hero { background: url(../img/hero.jpg); }"
        ),
        "https://example.com/css/parts/nav.css": "body > nav { color: red; }",
    }

    def __enter__(self) -> FakeFetcher:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        return None

    def fetch(self, url, *, headers, timeout, max_tries):  # type: ignore[no-untyped-def]
        return FetchResult(text=self.texts[url])


def test_cli_capture_remote_sheet_dry_run(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr("clipcss.cli.HttpTextFetcher", FakeFetcher)

    result = runner.invoke(
        app,
        [
            "capture",
            "https://example.com/css/site.css",
            "--doc-url",
            "https://example.com/index.html",
            "--fix-style",
            "on",
            "--dry-run",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "imageFileTask\tassets/clip-" in result.stdout
    assert "https://example.com/img/hero.jpg" in result.stdout
    assert "Tasks: 1" in result.stdout
    assert "body > .clip-main > nav" in result.stdout


def test_cli_capture_link_mode_lists_style_tasks(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr("clipcss.cli.HttpTextFetcher", FakeFetcher)

    result = runner.invoke(
        app,
        ["capture", "https://example.com/css/site.css", "--link-css", "--dry-run"],
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.count("styleFileTask") == 2
    assert "Tasks: 3" in result.stdout


def test_cli_capture_local_file_writes_index(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr("clipcss.cli.HttpTextFetcher", FakeFetcher)
    css = tmp_path / "page.css"
    css.write_text(".a { background: url(a.png); color: red; }", encoding="utf-8")
    out = tmp_path / "out"

    result = runner.invoke(
        app,
        [
            "capture",
            str(css),
            "--base-url",
            "https://example.com/",
            "--save-css-image",
            "off",
            "--output",
            str(out),
        ],
    )
    assert result.exit_code == 0, result.output
    assert (out / "index.css").read_text(encoding="utf-8") == '.a { background: url(""); color: red; }'
    assert "Tasks: 0" in result.stdout


def test_cli_capture_local_file_with_separate_base_keeps_asset_paths(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr("clipcss.cli.HttpTextFetcher", FakeFetcher)
    css = tmp_path / "page.css"
    css.write_text(".a { background: url(../img/a.png); }", encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "capture",
            str(css),
            "--doc-url",
            "https://example.com/index.html",
            "--base-url",
            "https://example.com/css/style.css",
            "--save-css-image",
            "on",
            "--dry-run",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "https://example.com/img/a.png" in result.stdout
    assert '.a { background: url("assets/clip-' in result.stdout


def test_cli_capture_rejects_bad_switch(tmp_path: Path) -> None:
    css = tmp_path / "page.css"
    css.write_text("p{}", encoding="utf-8")
    result = runner.invoke(
        app,
        ["capture", str(css), "--base-url", "https://example.com/", "--fix-style", "maybe"],
    )
    assert result.exit_code != 0


def test_cli_inspect_lists_references(tmp_path: Path) -> None:
    css = tmp_path / "page.css"
    css.write_text("@import 'a.css';\n.x { background-image: url(b.png); }", encoding="utf-8")
    result = runner.invoke(app, ["inspect", str(css), "--base-url", "https://example.com/"])
    assert result.exit_code == 0, result.output
    assert "import\tresolved\thttps://example.com/a.css" in result.stdout
    assert "image\tresolved\thttps://example.com/b.png" in result.stdout
    assert "References: 2" in result.stdout
