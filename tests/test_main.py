import asyncio
import logging

import pytest

from conftest import Page, html
from treefetch.main import main
from treefetch.storage.persister import file_name_for


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "logging:\n"
        f"  file: \"{tmp_path / 'logs' / 'treefetch.log'}\"\n"
        "download:\n"
        "  show_progress: false\n"
    )
    return str(path)


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


async def run_main(*argv):
    # main() owns its event loop, so it runs beside the test server's loop
    return await asyncio.to_thread(main, list(argv))


@pytest.mark.asyncio
async def test_get_writes_outfile(make_site, config_file, tmp_path):
    site = await make_site({"/": Page("hello", content_type="text/plain")})
    outfile = tmp_path / "page.txt"

    status = await run_main("--config", config_file, "get", site.url("/"), "-o", str(outfile))

    assert status == 0
    assert outfile.read_text() == "hello"


@pytest.mark.asyncio
async def test_get_depth_saves_every_node(make_site, config_file, tmp_path):
    site = await make_site({
        "/": Page(html("/a", "/b")),
        "/a": Page("a", content_type="text/plain"),
        "/b": Page("b", content_type="text/plain"),
    })
    out = tmp_path / "out"

    status = await run_main(
        "--config", config_file, "get-depth", site.url("/"),
        "--depth", "1", "--output-dir", str(out)
    )

    assert status == 0
    assert len(list(out.iterdir())) == 3
    assert (out / file_name_for(site.url("/b"))).read_text() == "b"


@pytest.mark.asyncio
async def test_root_fetch_failure_exits_1(make_site, config_file, tmp_path):
    site = await make_site({})

    status = await run_main(
        "--config", config_file, "get-depth", site.url("/missing"),
        "--output-dir", str(tmp_path / "out")
    )

    assert status == 1
    assert not (tmp_path / "out").exists()


@pytest.mark.asyncio
async def test_failed_download_exits_1(make_site, config_file, tmp_path):
    site = await make_site({
        "/": Page(html("/ok", "/missing")),
        "/ok": Page("ok", content_type="text/plain"),
    })
    out = tmp_path / "out"

    status = await run_main(
        "--config", config_file, "get-depth", site.url("/"),
        "--depth", "1", "--output-dir", str(out)
    )

    assert status == 1
    # Siblings of the failed download still completed
    assert (out / file_name_for(site.url("/ok"))).read_text() == "ok"
    assert (out / file_name_for(site.url("/"))).exists()


@pytest.mark.parametrize("yaml_text", [
    "crawler:\n  max_depth: two\n",
    "logging:\n  level: 10\n",
    "crawler:\n  max_depth: -1\n",
])
def test_config_error_exits_2(tmp_path, yaml_text, capsys):
    path = tmp_path / "config.yaml"
    path.write_text(yaml_text)

    status = main(["--config", str(path), "get-depth", "https://example.invalid/"])

    assert status == 2
    assert "Configuration error" in capsys.readouterr().err


def test_missing_config_file_exits_2(tmp_path):
    assert main(["--config", str(tmp_path / "absent.yaml"), "get", "https://example.invalid/"]) == 2
