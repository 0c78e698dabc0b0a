import pytest

from treefetch.errors import ConfigError
from treefetch.main import apply_overrides, build_parser
from treefetch.utils.config import load_config


def test_defaults_without_file():
    config = load_config(None)
    assert config.crawler.max_depth == 1
    assert config.crawler.request_timeout is None
    assert config.download.max_concurrent_downloads == 10
    assert config.download.default_outfile == "treefetch.out"


def test_partial_yaml_keeps_other_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("crawler:\n  max_depth: 3\ndownload:\n  output_dir: out\n")

    config = load_config(str(path))

    assert config.crawler.max_depth == 3
    assert config.download.output_dir == "out"
    assert config.download.chunk_size == 8192
    assert config.logging.level == "INFO"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "nope.yaml"))


def test_unknown_key(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("crawler:\n  politeness_delay: 1\n")
    with pytest.raises(ConfigError):
        load_config(str(path))


@pytest.mark.parametrize("yaml_text", [
    "crawler:\n  max_depth: -1\n",
    "download:\n  max_concurrent_downloads: 0\n",
    "download:\n  chunk_size: 0\n",
    "logging:\n  level: LOUD\n",
    "crawler:\n  request_timeout: 0\n",
])
def test_invalid_values(tmp_path, yaml_text):
    path = tmp_path / "config.yaml"
    path.write_text(yaml_text)
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("crawler: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_cli_flags_override_config():
    args = build_parser().parse_args([
        "--no-progress", "--max-downloads", "4",
        "get-depth", "https://a/", "--depth", "0", "--output-dir", "out",
    ])

    config = apply_overrides(load_config(None), args)

    assert config.crawler.max_depth == 0
    assert config.download.output_dir == "out"
    assert config.download.max_concurrent_downloads == 4
    assert config.download.show_progress is False


def test_cli_override_is_validated():
    args = build_parser().parse_args(["--max-downloads", "0", "get", "https://a/"])
    with pytest.raises(ConfigError):
        apply_overrides(load_config(None), args)


@pytest.mark.parametrize("yaml_text", [
    "crawler:\n  max_depth: two\n",
    "crawler:\n  max_depth: true\n",
    "crawler:\n  request_timeout: soon\n",
    "logging:\n  level: 10\n",
    "download:\n  show_progress: maybe\n",
])
def test_wrongly_typed_values(tmp_path, yaml_text):
    path = tmp_path / "config.yaml"
    path.write_text(yaml_text)
    with pytest.raises(ConfigError) as excinfo:
        load_config(str(path))
    assert "Invalid value" in str(excinfo.value)


def test_typed_values_accepted(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "crawler:\n  request_timeout: 5\n"
        "logging:\n  file: null\n"
        "monitoring:\n  metrics_file: metrics.json\n"
    )

    config = load_config(str(path))

    assert config.crawler.request_timeout == 5
    assert config.logging.file is None
    assert config.monitoring.metrics_file == "metrics.json"
