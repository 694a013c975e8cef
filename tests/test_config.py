import json

import pytest

from core.config import (
    MIRROR_HOST_ENV,
    SEGMENT_CDN_HOST,
    SEGMENT_TRACKING_API_HOST,
    Config,
    apply_cli_overrides,
    load_config,
    parse_target,
    resolve_targets,
)
from core.exceptions import ConfigurationError
from core.request_types import RouteTarget


class TestParseTarget:
    def test_bare_host_has_empty_base_path(self):
        assert parse_target("http://cdn.segment.com") == RouteTarget(
            scheme="http", host="cdn.segment.com", path="", raw_query=""
        )

    def test_port_path_and_query_are_kept(self):
        target = parse_target("https://api.example.com:8443/base/?key=1")
        assert target.scheme == "https"
        assert target.host == "api.example.com:8443"
        assert target.path == "/base/"
        assert target.raw_query == "key=1"
        assert target.base_url == "https://api.example.com:8443/base/"

    @pytest.mark.parametrize(
        "url",
        ["ftp://cdn.example.com", "cdn.example.com", "http://", "http://cdn.example.com:notaport", ""],
    )
    def test_malformed_urls_raise(self, url):
        with pytest.raises(ConfigurationError):
            parse_target(url)


class TestLoadConfig:
    def test_creates_default_file(self, tmp_path):
        config_file = tmp_path / "segment-proxy" / "config.json"

        config = load_config(config_file, env={})

        assert config_file.exists()
        assert config.proxy.port == 8080
        assert config.proxy.debug is False
        assert config.upstreams.cdn_url == SEGMENT_CDN_HOST
        assert config.upstreams.tracking_api_url == SEGMENT_TRACKING_API_HOST
        assert config.mirror.url is None

    def test_reads_existing_file(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(
            json.dumps({"upstreams": {"cdn_url": "http://cdn.internal"}, "mirror": {"detached": True}})
        )

        config = load_config(config_file, env={})

        assert config.upstreams.cdn_url == "http://cdn.internal"
        assert config.upstreams.tracking_api_url == SEGMENT_TRACKING_API_HOST
        assert config.mirror.detached is True

    def test_mirror_host_comes_from_env(self, tmp_path):
        config = load_config(tmp_path / "config.json", env={MIRROR_HOST_ENV: "http://mirror.example.com"})
        assert config.mirror.url == "http://mirror.example.com"

    def test_empty_env_leaves_mirror_disabled(self, tmp_path):
        config = load_config(tmp_path / "config.json", env={MIRROR_HOST_ENV: ""})
        assert config.mirror.url is None

    def test_malformed_mirror_is_fatal(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Failed to parse url"):
            load_config(tmp_path / "config.json", env={MIRROR_HOST_ENV: "mirror.example.com"})

    def test_malformed_upstream_is_fatal(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"upstreams": {"tracking_api_url": "::not a url::"}}))

        with pytest.raises(ConfigurationError):
            load_config(config_file, env={})

    def test_corrupt_file_is_backed_up(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")

        config = load_config(config_file, env={})

        assert config == Config()
        assert (tmp_path / "config.json.bak").read_text() == "{not json"


class TestCliOverrides:
    def test_port_and_debug(self):
        config = apply_cli_overrides(Config(), ["--port", "9090", "--debug"])
        assert config.proxy.port == 9090
        assert config.proxy.debug is True

    def test_port_with_equals(self):
        assert apply_cli_overrides(Config(), ["--port=8181"]).proxy.port == 8181

    def test_no_arguments_keep_defaults(self):
        config = apply_cli_overrides(Config(), [])
        assert config.proxy.port == 8080
        assert config.proxy.debug is False

    @pytest.mark.parametrize("argv", [["--port", "http"], ["--port", "0"], ["--port"], ["--verbose"]])
    def test_bad_arguments_raise(self, argv):
        with pytest.raises(ConfigurationError):
            apply_cli_overrides(Config(), argv)


def test_resolve_targets(mirrored_config):
    targets = resolve_targets(mirrored_config)
    assert targets.cdn.host == "cdn.example.com"
    assert targets.tracking_api.host == "api.example.com"
    assert targets.mirror_url == "http://mirror.example.com"
