# config.py
# =============================================================================
# 配置加载与合并模块 / Config loading & merging module
#
# 职责 / Responsibilities:
#   - 定义分析网关与数据集的配置结构（GatewayConfig / DashboardConfig）
#     / Define config structures for the analysis gateway and datasets
#   - 三层优先级加载：代码传入 > 配置文件 > 环境变量
#     / Three-tier priority loading: code > config file > env vars
#   - 凭证缺失以 ConfigurationError 值的形式返回（validate()），
#     由调用方决定何时抛出
#     / A missing credential is returned as a ConfigurationError value
#       (validate()); callers decide when to raise it
#
# 配置文件格式 / Config file format (vendorscope.yaml):
#   gateway:
#     api_key: ${VENDORSCOPE_API_KEY}
#     url: https://api.openai.com/v1
#     model: gpt-5-turbo
#   data:
#     base_url: https://example.com/data
#     sources: [...]          # 可选，显式列表；首个为必需 / optional; first is mandatory
#     enrichment_seed: 7
#     top_n: 5
# =============================================================================

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from vendorscope.data.loader import SourceSpec, default_sources, sources_from_locations
from vendorscope.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-5-turbo"

ENV_API_KEY = "VENDORSCOPE_API_KEY"
ENV_API_URL = "VENDORSCOPE_API_URL"
ENV_MODEL = "VENDORSCOPE_MODEL"
ENV_DATA_URL = "VENDORSCOPE_DATA_URL"
ENV_SEED = "VENDORSCOPE_SEED"


# =============================================================================
# 数据结构 / Data Structures
# =============================================================================


@dataclass
class GatewayConfig:
    """分析服务端点配置。 / Analysis service endpoint config.

    温度与 token 上限是配置常量，不接受用户输入。
    / Temperatures and token caps are configuration constants, never user input.
    """

    api_key: Optional[str] = None
    url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    timeout: float = 60.0
    max_retries: int = 2

    # 单次查询分析 / Per-query analysis
    analysis_sample_cap: int = 20
    analysis_temperature: float = 0.3
    analysis_max_tokens: int = 2000

    # 合规报告（全量样本） / Compliance report (full collection)
    report_temperature: float = 0.2
    report_max_tokens: int = 1500

    def validate(self) -> Optional[ConfigurationError]:
        """返回配置错误（若有），不直接抛出。 / Return the configuration error, if any, without raising."""
        if not self.api_key:
            return ConfigurationError(
                f"分析服务 API Key 缺失 / analysis service API key is missing: "
                f"set gateway.api_key in the config file or {ENV_API_KEY}"
            )
        if not self.url:
            return ConfigurationError(
                f"分析服务 URL 缺失 / analysis service URL is missing: "
                f"set gateway.url or {ENV_API_URL}"
            )
        if self.analysis_sample_cap <= 0:
            return ConfigurationError(
                f"analysis_sample_cap must be positive, got {self.analysis_sample_cap}"
            )
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GatewayConfig:
        _known_keys = {
            "api_key", "url", "model", "timeout", "max_retries",
            "analysis_sample_cap", "analysis_temperature", "analysis_max_tokens",
            "report_temperature", "report_max_tokens",
        }
        unknown = set(data) - _known_keys
        if unknown:
            logger.warning("忽略未知的 gateway 配置项: %s", sorted(unknown))

        api_key = data.get("api_key") or None
        # 未展开的 ${VAR} 视为缺失 / an unexpanded ${VAR} counts as missing
        if api_key and _ENV_REF_RE.fullmatch(str(api_key)):
            api_key = None

        defaults = cls()
        return cls(
            api_key=api_key,
            url=data.get("url") or defaults.url,
            model=data.get("model") or defaults.model,
            timeout=float(data.get("timeout", defaults.timeout)),
            max_retries=int(data.get("max_retries", defaults.max_retries)),
            analysis_sample_cap=int(
                data.get("analysis_sample_cap", defaults.analysis_sample_cap)
            ),
            analysis_temperature=float(
                data.get("analysis_temperature", defaults.analysis_temperature)
            ),
            analysis_max_tokens=int(
                data.get("analysis_max_tokens", defaults.analysis_max_tokens)
            ),
            report_temperature=float(
                data.get("report_temperature", defaults.report_temperature)
            ),
            report_max_tokens=int(
                data.get("report_max_tokens", defaults.report_max_tokens)
            ),
        )


@dataclass
class DashboardConfig:
    """一个会话所需的完整配置。 / Everything one dashboard session needs.

    gateway 为 None 表示未启用 AI 分析。 / gateway=None disables AI analysis.
    """

    sources: List[SourceSpec] = field(default_factory=list)
    gateway: Optional[GatewayConfig] = None
    enrichment_seed: int = 0
    top_n: int = 5
    timeout: float = 30.0


# =============================================================================
# 配置加载器 / Config Loader
# =============================================================================


class ConfigLoader:
    """三层优先级配置合并。 / Three-tier priority config merging.

    优先级（高→低） / Priority (high→low):
    1. 代码传入（config 字典参数） / Code-level config dict
    2. 配置文件（YAML） / Config file (YAML)
    3. 环境变量 / Environment variables
    """

    _CONFIG_SEARCH_PATHS = [
        "vendorscope.yaml",
        "vendorscope.yml",
        "config/vendorscope.yaml",
        "config/vendorscope.yml",
    ]

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        config_file: Optional[str] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        self._code_config = config or {}
        self._file_config: Dict[str, Any] = {}
        self._environ = dict(os.environ) if environ is None else dict(environ)
        self._load_config_file(config_file)

    def _load_config_file(self, config_file: Optional[str]) -> None:
        if config_file:
            path = Path(config_file)
            if path.exists():
                self._file_config = self._read_yaml(path)
                logger.info("配置文件已加载: %s", path)
            else:
                logger.warning("指定的配置文件不存在: %s", path)
            return

        for search_path in self._CONFIG_SEARCH_PATHS:
            path = Path(search_path)
            if path.exists():
                self._file_config = self._read_yaml(path)
                logger.info("自动发现配置文件: %s", path)
                return

        logger.debug("未发现配置文件，将依赖代码配置与环境变量")

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"配置文件顶层必须是映射 / config root must be a mapping: {path}")
        return _expand_env_vars(raw, self._environ)

    def _section(self, name: str) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for layer in (self._file_config, self._code_config):
            section = layer.get(name, {})
            if isinstance(section, dict):
                merged.update({k: v for k, v in section.items() if v is not None})
        return merged

    def resolve_gateway(self) -> Optional[GatewayConfig]:
        """解析网关配置；三层均未提供 API Key 与 gateway 节时返回 None。

        / Returns None when no layer mentions the gateway at all.
        """
        section = self._section("gateway")
        env_layer = {
            "api_key": self._environ.get(ENV_API_KEY),
            "url": self._environ.get(ENV_API_URL),
            "model": self._environ.get(ENV_MODEL),
        }
        if not section and not env_layer["api_key"]:
            return None
        merged = {k: v for k, v in env_layer.items() if v}
        merged.update(section)
        return GatewayConfig.from_dict(merged)

    def resolve_sources(self) -> List[SourceSpec]:
        data = self._section("data")
        locations = data.get("sources")
        if locations:
            if not isinstance(locations, list) or not all(
                isinstance(loc, str) for loc in locations
            ):
                raise ConfigurationError("data.sources 必须是字符串列表 / must be a list of strings")
            return sources_from_locations(locations)

        base_url = data.get("base_url") or self._environ.get(ENV_DATA_URL)
        if base_url:
            return default_sources(base_url)
        return []

    def resolve(self) -> DashboardConfig:
        data = self._section("data")
        seed_raw = data.get("enrichment_seed", self._environ.get(ENV_SEED, 0))
        try:
            seed = int(seed_raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"enrichment_seed 必须是整数: {seed_raw!r}") from e

        return DashboardConfig(
            sources=self.resolve_sources(),
            gateway=self.resolve_gateway(),
            enrichment_seed=seed,
            top_n=int(data.get("top_n", 5)),
            timeout=float(data.get("timeout", 30.0)),
        )

    def summary(self) -> Dict[str, str]:
        """配置摘要（隐藏 API Key），用于日志。 / Config summary with the API key masked."""
        config = self.resolve()
        gateway = config.gateway
        return {
            "sources": ", ".join(s.location for s in config.sources) or "(none)",
            "model": gateway.model if gateway else "(disabled)",
            "url": gateway.url if gateway else "(disabled)",
            "api_key": _mask_key(gateway.api_key if gateway else None),
            "enrichment_seed": str(config.enrichment_seed),
        }


def load_config(
    config: Optional[Dict[str, Any]] = None,
    config_file: Optional[str] = None,
) -> DashboardConfig:
    return ConfigLoader(config=config, config_file=config_file).resolve()


# =============================================================================
# 工具函数 / Utility Functions
# =============================================================================

_ENV_REF_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(obj: Any, environ: Dict[str, str]) -> Any:
    """递归展开 ${VAR} 与 ${VAR:-default}。 / Recursively expand ${VAR} and ${VAR:-default}."""
    if isinstance(obj, str):

        def _replace(match):
            var_expr = match.group(1)
            if ":-" in var_expr:
                var_name, default = var_expr.split(":-", 1)
                return environ.get(var_name.strip(), default.strip())
            return environ.get(var_expr.strip(), match.group(0))

        return _ENV_REF_RE.sub(_replace, obj)

    if isinstance(obj, dict):
        return {k: _expand_env_vars(v, environ) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item, environ) for item in obj]
    return obj


def _mask_key(key: Optional[str]) -> str:
    if not key:
        return "(missing)"
    if len(key) <= 12:
        return key[:3] + "***"
    return key[:8] + "..." + key[-4:]
