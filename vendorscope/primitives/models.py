# models.py
# =============================================================================
# 本模块定义 vendorscope 的核心数据模型。 / Core data models for vendorscope.
# 包含：VendorRecord、AnalyticsSummary、AnalysisResult、ComplianceReport、
#       FinalReport 及其组成部分。全部为不可变 dataclass。
# / All models are frozen dataclasses; to_dict() yields the keys consumed by
#   the presentation layer.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

COMPLIANT = "compliant"
PARTIAL = "partial"
NON_COMPLIANT = "non-compliant"

COMPLIANCE_STATUSES = (COMPLIANT, PARTIAL, NON_COMPLIANT)


@dataclass(frozen=True)
class VendorRecord:
    """单个供应商。 / One procurement candidate.

    enrichment 字段（compliance_status / carbon_score / transparency_score）
    在规范化阶段一次性写入，本轮加载内不可变。
    / Enrichment fields are attached once per load cycle by the normalizer.
    """

    name: str
    geography: str
    pricing: str  # 自由文本，如 "$30/gal" / free text, e.g. "$30/gal"
    average_rating: float  # 约定 0.0-5.0，不做硬截断 / conventionally 0.0-5.0, not clamped
    media_mentions: Tuple[str, ...] = ()
    highlight_reviews: Tuple[str, ...] = ()
    compliance_status: Optional[str] = None
    carbon_score: Optional[int] = None
    transparency_score: Optional[int] = None

    @property
    def is_enriched(self) -> bool:
        return (
            self.compliance_status is not None
            and self.carbon_score is not None
            and self.transparency_score is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "vendor_name": self.name,
            "geography": self.geography,
            "pricing": self.pricing,
            "average_rating": self.average_rating,
            "media_mentions": list(self.media_mentions),
            "highlight_reviews": list(self.highlight_reviews),
        }
        if self.compliance_status is not None:
            data["compliance_status"] = self.compliance_status
        if self.carbon_score is not None:
            data["carbon_score"] = self.carbon_score
        if self.transparency_score is not None:
            data["transparency_score"] = self.transparency_score
        return data


@dataclass(frozen=True)
class LocationCount:
    """地理分布条目。percentage 相对于完整集合计算。 / percentage is against the full collection."""

    location: str
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "count": self.count,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class CategoryCount:
    category: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.category, "count": self.count}


@dataclass(frozen=True)
class ComplianceSlice:
    label: str
    percentage: float
    display_color: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.label,
            "value": self.percentage,
            "color": self.display_color,
        }


@dataclass(frozen=True)
class AnalyticsSummary:
    """单轮加载的汇总统计。 / Per-load-cycle summary statistics.

    空集合时 average_rating 与 compliance_rate 为 None（"无数据"），
    不得被静默替换为 0。
    / For the empty collection average_rating and compliance_rate are None
      ("no data"), never a silent 0 or NaN.
    """

    total_vendors: int
    average_rating: Optional[float]
    compliance_rate: Optional[float]
    top_category: str
    category_data: List[CategoryCount] = field(default_factory=list)
    compliance_data: List[ComplianceSlice] = field(default_factory=list)
    top_locations: List[LocationCount] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.total_vendors > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalVendors": self.total_vendors,
            "averageRating": self.average_rating,
            "complianceRate": self.compliance_rate,
            "topCategory": self.top_category,
            "categoryData": [c.to_dict() for c in self.category_data],
            "complianceData": [c.to_dict() for c in self.compliance_data],
            "topLocations": [loc.to_dict() for loc in self.top_locations],
        }


@dataclass(frozen=True)
class ComplianceEntry:
    """分析服务给出的单个供应商合规评估。 / Per-vendor compliance assessment from the service."""

    vendor_name: str
    score: float  # 0-100
    issues: List[str] = field(default_factory=list)
    carbon_score: Optional[float] = None  # 0-100，服务可能省略 / may be omitted by the service

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vendor": self.vendor_name,
            "score": self.score,
            "issues": list(self.issues),
            "carbon_score": self.carbon_score,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """单次自然语言查询的分析结果。 / Analysis of one free-text query.

    from_fallback 为 True 表示由确定性降级路径生成。
    / from_fallback marks results produced by the deterministic fallback path.
    """

    analysis_text: str
    compliance_entries: List[ComplianceEntry]
    recommendations: List[str]
    environmental_impact_kg_co2e: float
    estimated_cost_usd: float
    from_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis": self.analysis_text,
            "compliance": [e.to_dict() for e in self.compliance_entries],
            "recommendations": list(self.recommendations),
            "environmentalImpact": self.environmental_impact_kg_co2e,
            "cost": self.estimated_cost_usd,
        }


@dataclass(frozen=True)
class ComplianceReport:
    """批量合规报告。 / Batch compliance report scoped to a query."""

    summary: str
    total_vendors: int
    compliant_vendors: int
    compliance_rate: Optional[float]
    top_locations: List[LocationCount]
    risk_factors: List[str]
    from_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "totalVendors": self.total_vendors,
            "compliantVendors": self.compliant_vendors,
            "complianceRate": self.compliance_rate,
            "topLocations": [loc.to_dict() for loc in self.top_locations],
            "riskFactors": list(self.risk_factors),
        }


# =============================================================================
# 最终报告 / Final report
# =============================================================================


@dataclass(frozen=True)
class BasicInfo:
    nodes: int
    runtime_seconds: float
    data_volume: int


@dataclass(frozen=True)
class RejectedVendor:
    name: str
    reason: str


@dataclass(frozen=True)
class VendorComplianceView:
    """合规分桶后的展示条目。 / Bucketed compliance entry for display."""

    vendor: str
    status: str
    carbon_score: Optional[float]
    transparency: str
    pricing: str
    violations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConstraintWeights:
    """评分约束权重（静态元数据）。 / Static scoring-constraint metadata."""

    compliance: float = 0.8
    climate_friendly: float = 0.1
    budget: float = 0.1
    formula: str = (
        "score = 0.8*compliance + 0.1*normalized_climate + 0.1*normalized_budget"
    )


@dataclass(frozen=True)
class EnvironmentalCost:
    footprint_kg_co2e: float
    cost_usd: float


@dataclass(frozen=True)
class FinalReport:
    """一次分析调用的完整报告视图，不含行为。 / Pure view object for one analysis run."""

    user_query: str
    basic_info: BasicInfo
    selected: List[str]
    rejected: List[RejectedVendor]
    compliance_analysis: List[VendorComplianceView]
    constraints: ConstraintWeights
    environmental: EnvironmentalCost

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userQuery": self.user_query,
            "basicInfo": {
                "nodes": self.basic_info.nodes,
                "runtime": self.basic_info.runtime_seconds,
                "dataVolume": self.basic_info.data_volume,
            },
            "resultsAnalysis": {
                "selected": list(self.selected),
                "rejected": [
                    {"name": r.name, "reason": r.reason} for r in self.rejected
                ],
            },
            "complianceAnalysis": [
                {
                    "vendor": v.vendor,
                    "status": v.status,
                    "carbonScore": v.carbon_score,
                    "transparency": v.transparency,
                    "pricing": v.pricing,
                    "violations": list(v.violations),
                }
                for v in self.compliance_analysis
            ],
            "constraints": {
                "compliance": self.constraints.compliance,
                "climateFriendly": self.constraints.climate_friendly,
                "budget": self.constraints.budget,
                "formula": self.constraints.formula,
            },
            "environmental": {
                "footprint": self.environmental.footprint_kg_co2e,
                "cost": self.environmental.cost_usd,
            },
        }
