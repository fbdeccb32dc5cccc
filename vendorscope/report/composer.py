"""最终报告组装。 / Final report assembly.

纯组装：无网络、无随机。合规分数按固定阈值分桶：
/ Pure assembly with no network or randomness. Scores are bucketed with
fixed thresholds:

    score > 70        -> compliant
    40 < score <= 70  -> partial
    score <= 40       -> non-compliant
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from vendorscope.primitives.models import (
    COMPLIANT,
    NON_COMPLIANT,
    PARTIAL,
    AnalysisResult,
    AnalyticsSummary,
    BasicInfo,
    ComplianceEntry,
    ConstraintWeights,
    EnvironmentalCost,
    FinalReport,
    RejectedVendor,
    VendorComplianceView,
    VendorRecord,
)

COMPLIANT_THRESHOLD = 70
PARTIAL_THRESHOLD = 40

# 分析流程的节点数（加载 → 规范化 → 统计/过滤 → 网关 → 报告）
# / Pipeline stages: load, normalize, aggregate/filter, gateway, report
DEFAULT_PIPELINE_NODES = 5

UNKNOWN_PRICING = "n/a"


def bucket_compliance_score(score: float) -> str:
    if score > COMPLIANT_THRESHOLD:
        return COMPLIANT
    if score > PARTIAL_THRESHOLD:
        return PARTIAL
    return NON_COMPLIANT


def _rejection_reason(entry: ComplianceEntry, status: str) -> str:
    detail = entry.issues[0] if entry.issues else f"score {entry.score:g}"
    if status == PARTIAL:
        return f"Partially compliant ({detail})"
    return f"Non-compliant ({detail})"


def _compliance_view(
    entry: ComplianceEntry, vendor: Optional[VendorRecord]
) -> VendorComplianceView:
    status = bucket_compliance_score(entry.score)
    carbon = entry.carbon_score
    if carbon is None and vendor is not None:
        carbon = vendor.carbon_score
    return VendorComplianceView(
        vendor=entry.vendor_name,
        status=status,
        carbon_score=carbon,
        transparency="Transparent" if status == COMPLIANT else "Partial",
        pricing=vendor.pricing if vendor is not None else UNKNOWN_PRICING,
        violations=list(entry.issues),
    )


def compose_final_report(
    query: str,
    analysis: AnalysisResult,
    analytics: AnalyticsSummary,
    vendors: Sequence[VendorRecord] = (),
    weights: Optional[ConstraintWeights] = None,
    runtime_seconds: float = 0.0,
    nodes: int = DEFAULT_PIPELINE_NODES,
    selected: Optional[Sequence[str]] = None,
    rejected: Optional[Sequence[RejectedVendor]] = None,
) -> FinalReport:
    """组装 FinalReport。 / Assemble a FinalReport.

    Args:
        query: 用户原始查询。
        analysis: 网关输出，或调用方手工提供的替代结果。
            / Gateway output or a manually supplied override.
        analytics: 当前加载周期的汇总统计；data_volume 取其 total_vendors。
        vendors: 规范化集合，用于按名称补全定价与碳分。
            / Normalized collection, used to look up pricing and carbon score by name.
        selected / rejected: 手工覆盖；缺省时由分桶结果推导。
            / Manual overrides; derived from the buckets when omitted.
    """
    by_name: Dict[str, VendorRecord] = {}
    for vendor in vendors:
        by_name.setdefault(vendor.name, vendor)

    views: List[VendorComplianceView] = []
    derived_selected: List[str] = []
    derived_rejected: List[RejectedVendor] = []
    for entry in analysis.compliance_entries:
        view = _compliance_view(entry, by_name.get(entry.vendor_name))
        views.append(view)
        if view.status == COMPLIANT:
            derived_selected.append(entry.vendor_name)
        else:
            derived_rejected.append(
                RejectedVendor(entry.vendor_name, _rejection_reason(entry, view.status))
            )

    return FinalReport(
        user_query=query,
        basic_info=BasicInfo(
            nodes=nodes,
            runtime_seconds=runtime_seconds,
            data_volume=analytics.total_vendors,
        ),
        selected=list(selected) if selected is not None else derived_selected,
        rejected=list(rejected) if rejected is not None else derived_rejected,
        compliance_analysis=views,
        constraints=weights or ConstraintWeights(),
        environmental=EnvironmentalCost(
            footprint_kg_co2e=analysis.environmental_impact_kg_co2e,
            cost_usd=analysis.estimated_cost_usd,
        ),
    )
