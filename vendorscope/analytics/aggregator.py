"""供应商汇总统计。 / Vendor analytics aggregation.

纯函数：规范化集合 → AnalyticsSummary。空集合不抛异常，比率类字段返回 None。
/ Pure function from the normalized collection to an AnalyticsSummary. The
empty collection never raises; rate fields come back as None.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from vendorscope.primitives.models import (
    COMPLIANT,
    AnalyticsSummary,
    CategoryCount,
    ComplianceSlice,
    LocationCount,
    VendorRecord,
)

DEFAULT_TOP_N = 5
TOP_CATEGORY = "paint"

COMPLIANT_COLOR = "#10B981"
NON_COMPLIANT_COLOR = "#EF4444"


def rank_locations(
    vendors: Sequence[VendorRecord], top_n: int = DEFAULT_TOP_N
) -> List[LocationCount]:
    """按供应商数量降序返回前 N 个地区。 / Top-N locations by descending vendor count.

    分组按 geography 精确匹配（区分大小写）；并列时按首次出现顺序。
    percentage 相对完整集合计算，而不是截取后的切片。
    / Exact, case-sensitive grouping on geography; ties keep first-seen order;
      percentages are computed against the full collection, not the slice.
    """
    total = len(vendors)
    if total == 0 or top_n <= 0:
        return []

    # dict 保留插入顺序，即首次出现顺序 / dict insertion order is first-seen order
    counts: Dict[str, int] = {}
    for vendor in vendors:
        counts[vendor.geography] = counts.get(vendor.geography, 0) + 1

    # sorted 是稳定排序 / sorted is stable
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        LocationCount(location=loc, count=count, percentage=count / total * 100)
        for loc, count in ranked[:top_n]
    ]


def average_rating(vendors: Sequence[VendorRecord]) -> Optional[float]:
    if not vendors:
        return None
    return sum(v.average_rating for v in vendors) / len(vendors)


def compliance_rate(vendors: Sequence[VendorRecord]) -> Optional[float]:
    if not vendors:
        return None
    compliant = sum(1 for v in vendors if v.compliance_status == COMPLIANT)
    return compliant / len(vendors) * 100


def summarize_vendors(
    vendors: Sequence[VendorRecord], top_n: int = DEFAULT_TOP_N
) -> AnalyticsSummary:
    total = len(vendors)
    rate = compliance_rate(vendors)

    compliance_data: List[ComplianceSlice] = []
    if rate is not None:
        compliance_data = [
            ComplianceSlice("Compliant", rate, COMPLIANT_COLOR),
            ComplianceSlice("Non-compliant", 100 - rate, NON_COMPLIANT_COLOR),
        ]

    return AnalyticsSummary(
        total_vendors=total,
        average_rating=average_rating(vendors),
        compliance_rate=rate,
        top_category=TOP_CATEGORY,
        category_data=[CategoryCount(TOP_CATEGORY, total)],
        compliance_data=compliance_data,
        top_locations=rank_locations(vendors, top_n),
    )
