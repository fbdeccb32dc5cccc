# test_config_loader.py
# =============================================================================
# ConfigLoader 测试 / ConfigLoader tests
# - 三层优先级：代码 > 文件 > 环境变量 / three-tier priority
# - ${VAR} 展开 / env var expansion
# - 凭证缺失以错误值返回 / missing credential returned as an error value
# =============================================================================

import pytest

from vendorscope.config import ConfigLoader, GatewayConfig, load_config
from vendorscope.errors import ConfigurationError


def _write(tmp_path, text):
    path = tmp_path / "vendorscope.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestGatewayConfig:
    def test_validate_returns_error_without_key(self):
        error = GatewayConfig().validate()
        assert isinstance(error, ConfigurationError)

    def test_validate_ok(self):
        assert GatewayConfig(api_key="sk-test").validate() is None

    def test_defaults(self):
        cfg = GatewayConfig(api_key="k")
        assert cfg.url == "https://api.openai.com/v1"
        assert cfg.model == "gpt-5-turbo"
        assert cfg.analysis_sample_cap == 20
        assert (cfg.analysis_temperature, cfg.analysis_max_tokens) == (0.3, 2000)
        assert (cfg.report_temperature, cfg.report_max_tokens) == (0.2, 1500)

    def test_unexpanded_placeholder_counts_as_missing(self):
        cfg = GatewayConfig.from_dict({"api_key": "${VENDORSCOPE_API_KEY}"})
        assert cfg.api_key is None
        assert cfg.validate() is not None


class TestConfigLoader:
    def test_env_only(self, tmp_path):
        loader = ConfigLoader(
            config_file=str(tmp_path / "absent.yaml"),
            environ={
                "VENDORSCOPE_API_KEY": "sk-env",
                "VENDORSCOPE_MODEL": "gpt-env",
                "VENDORSCOPE_DATA_URL": "https://data.test",
                "VENDORSCOPE_SEED": "42",
            },
        )
        config = loader.resolve()
        assert config.gateway.api_key == "sk-env"
        assert config.gateway.model == "gpt-env"
        assert config.enrichment_seed == 42
        assert len(config.sources) == 3
        assert config.sources[0].mandatory

    def test_no_gateway_when_nothing_configured(self, tmp_path):
        loader = ConfigLoader(config_file=str(tmp_path / "absent.yaml"), environ={})
        config = loader.resolve()
        assert config.gateway is None
        assert config.sources == []

    def test_file_overrides_env_and_expands_vars(self, tmp_path):
        path = _write(tmp_path, (
            "gateway:\n"
            "  api_key: ${MY_KEY}\n"
            "  model: gpt-file\n"
            "  timeout: 15\n"
            "data:\n"
            "  sources:\n"
            "    - ${DATA_DIR:-/srv}/a.json\n"
            "    - /srv/b.json\n"
            "  enrichment_seed: 3\n"
            "  top_n: 4\n"
        ))
        loader = ConfigLoader(
            config_file=path,
            environ={"MY_KEY": "sk-file", "VENDORSCOPE_MODEL": "gpt-env"},
        )
        config = loader.resolve()
        assert config.gateway.api_key == "sk-file"
        assert config.gateway.model == "gpt-file"
        assert config.gateway.timeout == 15.0
        assert [s.location for s in config.sources] == ["/srv/a.json", "/srv/b.json"]
        assert [s.mandatory for s in config.sources] == [True, False]
        assert config.enrichment_seed == 3
        assert config.top_n == 4

    def test_code_overrides_file(self, tmp_path):
        path = _write(tmp_path, "gateway:\n  api_key: sk-file\n  model: gpt-file\n")
        loader = ConfigLoader(
            config={"gateway": {"model": "gpt-code"}},
            config_file=path,
            environ={},
        )
        gateway = loader.resolve().gateway
        assert gateway.model == "gpt-code"
        assert gateway.api_key == "sk-file"

    def test_invalid_seed(self, tmp_path):
        loader = ConfigLoader(
            config={"data": {"enrichment_seed": "abc"}},
            config_file=str(tmp_path / "absent.yaml"),
            environ={},
        )
        with pytest.raises(ConfigurationError):
            loader.resolve()

    def test_invalid_sources(self, tmp_path):
        loader = ConfigLoader(
            config={"data": {"sources": [1, 2]}},
            config_file=str(tmp_path / "absent.yaml"),
            environ={},
        )
        with pytest.raises(ConfigurationError):
            loader.resolve()

    def test_summary_masks_key(self, tmp_path):
        loader = ConfigLoader(
            config={"gateway": {"api_key": "sk-abcdefghijklmnop"}},
            config_file=str(tmp_path / "absent.yaml"),
            environ={},
        )
        summary = loader.summary()
        assert summary["api_key"] == "sk-abcde...mnop"
        assert "abcdefghijkl" not in summary["api_key"]

    def test_load_config_helper(self, tmp_path, monkeypatch):
        monkeypatch.delenv("VENDORSCOPE_API_KEY", raising=False)
        monkeypatch.delenv("VENDORSCOPE_DATA_URL", raising=False)
        config = load_config(
            config={"data": {"sources": ["a.json"]}},
            config_file=str(tmp_path / "absent.yaml"),
        )
        assert [s.location for s in config.sources] == ["a.json"]
