# errors.py
# =============================================================================
# 错误类型定义 / Error taxonomy
#
# 传播策略 / Propagation policy:
#   - SourceUnavailable      可选数据源失败，降级为空 / optional source failed, degrades to empty
#   - MandatorySourceFailure 主数据源失败，本轮加载终止 / primary source failed, load cycle aborts
#   - ConfigurationError     凭证/端点缺失，构造时抛出 / missing credential or endpoint, raised at construction
#   - TransportFailure       分析服务网络/HTTP 失败 / network or HTTP failure calling the analysis service
#   - ResponseShapeInvalid   响应无法解析，网关内部降级，不外抛 / unparseable response, recovered inside the gateway
# =============================================================================

from __future__ import annotations

from typing import Optional


class VendorScopeError(Exception):
    """所有 vendorscope 异常的基类。 / Base class for all vendorscope errors."""


class SourceUnavailable(VendorScopeError):
    """可选数据源加载失败。 / An optional dataset source could not be loaded."""

    def __init__(self, location: str, reason: str) -> None:
        self.location = location
        self.reason = reason
        super().__init__(f"数据源不可用 / source unavailable: {location} ({reason})")


class MandatorySourceFailure(VendorScopeError):
    """主数据源加载失败，本轮加载无法继续。 / The primary dataset source failed."""

    def __init__(self, location: str, reason: str) -> None:
        self.location = location
        self.reason = reason
        super().__init__(f"主数据源加载失败 / mandatory source failed: {location} ({reason})")


class ConfigurationError(VendorScopeError):
    """分析服务配置缺失或不完整。 / Analysis service configuration is missing or incomplete."""


class TransportFailure(VendorScopeError):
    """调用分析服务时的网络或 HTTP 错误。 / Network or HTTP failure talking to the analysis service."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ResponseShapeInvalid(VendorScopeError, ValueError):
    """分析服务返回内容不是预期结构的 JSON。 / Service content is not JSON of the expected shape."""
