# analysis.py
# =============================================================================
# 分析网关 / Analysis gateway
#
# 职责 / Responsibilities:
#   - 由自然语言查询 + 有界供应商样本构造请求
#     / Build a request from a free-text query plus a bounded vendor sample
#   - 解析 choices[0].message.content 为 AnalysisResult / ComplianceReport
#     / Parse the message content into AnalysisResult / ComplianceReport
#   - 解析或结构校验失败 → 记录日志并走确定性降级，绝不外抛
#     / Parse or shape failures are logged and resolved by a deterministic
#       fallback; they never reach the caller
#   - 网络/HTTP 失败（TransportFailure）原样外抛
#     / TransportFailure propagates unchanged
#
# 不做缓存：相同 (query, sample) 不保证相同输出。
# / No caching: identical (query, sample) pairs may yield different output.
# =============================================================================

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional, Protocol, Sequence

from vendorscope.analytics.aggregator import rank_locations
from vendorscope.config import GatewayConfig
from vendorscope.errors import ResponseShapeInvalid
from vendorscope.llm.chat_completions_adapter import ChatCompletionsAdapter
from vendorscope.primitives.models import (
    COMPLIANT,
    AnalysisResult,
    ComplianceEntry,
    ComplianceReport,
    LocationCount,
    VendorRecord,
)
from vendorscope.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    ANALYSIS_USER_PROMPT,
    REPORT_FALLBACK_SUMMARY,
    REPORT_SYSTEM_PROMPT,
    REPORT_USER_PROMPT,
)
from vendorscope.utils.json_parser import parse_json_object

logger = logging.getLogger(__name__)

# 降级常量 / Fallback constants
FALLBACK_ENVIRONMENTAL_IMPACT_KG = 0.5
FALLBACK_COST_USD = 0.02
# 历史估算占位值，仅在样本完全没有 compliance_status 时使用
# / Historical placeholder, used only when no record in the sample carries a status
FALLBACK_COMPLIANCE_RATIO = 0.772
FALLBACK_RISK_FACTORS = (
    "Supply chain transparency",
    "Environmental compliance",
    "Pricing volatility",
)


class AnalysisBackend(Protocol):
    async def call(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float,
        max_tokens: Optional[int] = None,
    ) -> str:
        ...


# =============================================================================
# 结构校验 / Shape validation
# =============================================================================


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ResponseShapeInvalid(f"missing field '{key}'")
    return data[key]


def _as_str(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise ResponseShapeInvalid(f"{where}: expected string, got {type(value).__name__}")
    return value


def _as_number(
    value: Any,
    where: str,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ResponseShapeInvalid(f"{where}: expected number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ResponseShapeInvalid(f"{where}: not finite")
    if minimum is not None and value < minimum:
        raise ResponseShapeInvalid(f"{where}: {value} < {minimum}")
    if maximum is not None and value > maximum:
        raise ResponseShapeInvalid(f"{where}: {value} > {maximum}")
    return value


def _as_count(value: Any, where: str) -> int:
    number = _as_number(value, where, minimum=0)
    if isinstance(number, float):
        if not number.is_integer():
            raise ResponseShapeInvalid(f"{where}: expected integer, got {number}")
        return int(number)
    return number


def _as_str_list(value: Any, where: str) -> List[str]:
    if not isinstance(value, list):
        raise ResponseShapeInvalid(f"{where}: expected list, got {type(value).__name__}")
    return [_as_str(item, f"{where}[{i}]") for i, item in enumerate(value)]


def _as_dict(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ResponseShapeInvalid(f"{where}: expected object, got {type(value).__name__}")
    return value


def parse_compliance_entry(raw: Any, where: str = "compliance") -> ComplianceEntry:
    data = _as_dict(raw, where)
    carbon = data.get("carbon_score")
    return ComplianceEntry(
        vendor_name=_as_str(_require(data, "vendor"), f"{where}.vendor"),
        score=_as_number(_require(data, "score"), f"{where}.score", 0, 100),
        issues=_as_str_list(data.get("issues", []), f"{where}.issues"),
        carbon_score=(
            None if carbon is None
            else _as_number(carbon, f"{where}.carbon_score", 0, 100)
        ),
    )


def parse_analysis_payload(data: Dict[str, Any]) -> AnalysisResult:
    """校验单次分析 JSON 并逐字段映射，不做截断或修正。

    / Validate an analysis payload and map it field for field, with no
    clamping or correction.

    Raises:
        ResponseShapeInvalid: 缺字段或类型/范围不符。
    """
    entries = _require(data, "compliance")
    if not isinstance(entries, list):
        raise ResponseShapeInvalid("compliance: expected list")

    return AnalysisResult(
        analysis_text=_as_str(_require(data, "analysis"), "analysis"),
        compliance_entries=[
            parse_compliance_entry(entry, f"compliance[{i}]")
            for i, entry in enumerate(entries)
        ],
        recommendations=_as_str_list(
            _require(data, "recommendations"), "recommendations"
        ),
        environmental_impact_kg_co2e=_as_number(
            _require(data, "environmentalImpact"), "environmentalImpact", minimum=0
        ),
        estimated_cost_usd=_as_number(_require(data, "cost"), "cost", minimum=0),
    )


def parse_location(raw: Any, where: str) -> LocationCount:
    data = _as_dict(raw, where)
    return LocationCount(
        location=_as_str(_require(data, "location"), f"{where}.location"),
        count=_as_count(_require(data, "count"), f"{where}.count"),
        percentage=_as_number(
            _require(data, "percentage"), f"{where}.percentage", 0, 100
        ),
    )


def parse_compliance_report_payload(data: Dict[str, Any]) -> ComplianceReport:
    total = _as_count(_require(data, "totalVendors"), "totalVendors")
    compliant = _as_count(_require(data, "compliantVendors"), "compliantVendors")
    if compliant > total:
        raise ResponseShapeInvalid(
            f"compliantVendors ({compliant}) exceeds totalVendors ({total})"
        )

    locations = _require(data, "topLocations")
    if not isinstance(locations, list):
        raise ResponseShapeInvalid("topLocations: expected list")

    return ComplianceReport(
        summary=_as_str(_require(data, "summary"), "summary"),
        total_vendors=total,
        compliant_vendors=compliant,
        compliance_rate=_as_number(
            _require(data, "complianceRate"), "complianceRate", 0, 100
        ),
        top_locations=[
            parse_location(loc, f"topLocations[{i}]")
            for i, loc in enumerate(locations)
        ],
        risk_factors=_as_str_list(_require(data, "riskFactors"), "riskFactors"),
    )


# =============================================================================
# 降级结果 / Fallback results
# =============================================================================


def fallback_analysis(raw_content: str) -> AnalysisResult:
    return AnalysisResult(
        analysis_text=raw_content,
        compliance_entries=[],
        recommendations=[],
        environmental_impact_kg_co2e=FALLBACK_ENVIRONMENTAL_IMPACT_KG,
        estimated_cost_usd=FALLBACK_COST_USD,
        from_fallback=True,
    )


def fallback_compliance_report(
    vendors: Sequence[VendorRecord], top_n: int = 5
) -> ComplianceReport:
    """本地重算合规报告。 / Recompute the compliance report locally.

    合规数取自样本自身的 compliance_status；仅当所有记录都没有该字段时，
    才使用 FALLBACK_COMPLIANCE_RATIO 占位比例。
    / The compliant count comes from the sample's own compliance_status; the
    placeholder ratio applies only when no record carries a status at all.
    """
    total = len(vendors)
    if any(v.compliance_status is not None for v in vendors):
        compliant = sum(1 for v in vendors if v.compliance_status == COMPLIANT)
    else:
        compliant = math.floor(total * FALLBACK_COMPLIANCE_RATIO)

    return ComplianceReport(
        summary=REPORT_FALLBACK_SUMMARY.format(total=total, compliant=compliant),
        total_vendors=total,
        compliant_vendors=compliant,
        compliance_rate=(compliant / total * 100) if total else None,
        top_locations=rank_locations(vendors, top_n),
        risk_factors=list(FALLBACK_RISK_FACTORS),
        from_fallback=True,
    )


# =============================================================================
# 网关 / Gateway
# =============================================================================


def serialize_sample(vendors: Sequence[VendorRecord]) -> str:
    return json.dumps([v.to_dict() for v in vendors], indent=2, ensure_ascii=False)


class AnalysisGateway:
    """外部分析服务边界。 / Boundary to the external LLM analysis service.

    每个逻辑操作至多一个在途请求；并发的重复调用不去重，后到的结果覆盖先到的
    由调用方负责。
    / At most one outstanding request per logical operation; concurrent
    re-invocations are not deduplicated.
    """

    def __init__(
        self,
        backend: AnalysisBackend,
        config: Optional[GatewayConfig] = None,
        top_n: int = 5,
    ):
        self._backend = backend
        self._config = config or GatewayConfig()
        self._top_n = top_n

    @classmethod
    def from_config(
        cls,
        config: GatewayConfig,
        transport=None,
        top_n: int = 5,
    ) -> AnalysisGateway:
        """Raises:
            ConfigurationError: 凭证或端点缺失。 / missing credential or endpoint.
        """
        backend = ChatCompletionsAdapter.from_gateway_config(config, transport=transport)
        return cls(backend, config=config, top_n=top_n)

    @property
    def config(self) -> GatewayConfig:
        return self._config

    def build_analysis_prompt(self, query: str, vendors: Sequence[VendorRecord]) -> str:
        sample = list(vendors)[: self._config.analysis_sample_cap]
        return ANALYSIS_USER_PROMPT.format(
            query=query, vendors_json=serialize_sample(sample)
        )

    def build_report_prompt(self, query: str, vendors: Sequence[VendorRecord]) -> str:
        return REPORT_USER_PROMPT.format(
            query=query, vendors_json=serialize_sample(vendors)
        )

    async def analyze_vendors(
        self, query: str, vendors: Sequence[VendorRecord]
    ) -> AnalysisResult:
        """针对查询分析供应商样本（至多 analysis_sample_cap 条）。

        Raises:
            TransportFailure: 分析服务不可达或返回非 2xx。
        """
        logger.info(
            "分析网关: 查询分析, 样本 %d/%d 条",
            min(len(vendors), self._config.analysis_sample_cap),
            len(vendors),
        )
        raw = await self._backend.call(
            ANALYSIS_SYSTEM_PROMPT,
            self.build_analysis_prompt(query, vendors),
            temperature=self._config.analysis_temperature,
            max_tokens=self._config.analysis_max_tokens,
        )
        try:
            return parse_analysis_payload(parse_json_object(raw))
        except ResponseShapeInvalid as e:
            logger.warning("分析结果结构无效，使用降级结果 / invalid analysis shape, using fallback: %s", e)
            return fallback_analysis(raw)

    async def generate_compliance_report(
        self, vendors: Sequence[VendorRecord], query: str
    ) -> ComplianceReport:
        """基于完整集合生成合规报告。

        Raises:
            TransportFailure: 分析服务不可达或返回非 2xx。
        """
        logger.info("分析网关: 合规报告, 样本 %d 条", len(vendors))
        raw = await self._backend.call(
            REPORT_SYSTEM_PROMPT,
            self.build_report_prompt(query, vendors),
            temperature=self._config.report_temperature,
            max_tokens=self._config.report_max_tokens,
        )
        try:
            return parse_compliance_report_payload(parse_json_object(raw))
        except ResponseShapeInvalid as e:
            logger.warning("合规报告结构无效，本地重算 / invalid report shape, recomputing locally: %s", e)
            return fallback_compliance_report(vendors, self._top_n)
