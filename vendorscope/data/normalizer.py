# normalizer.py
# =============================================================================
# 供应商规范化 / Vendor normalization
#
# 职责 / Responsibilities:
#   - 将各数据源的原始记录按"源顺序 → 源内顺序"展平为单一集合
#     / Flatten per-source raw records, source order then intra-source order
#   - 在边界处把无类型 dict 校验为 VendorRecord，畸形记录丢弃并计数
#     / Validate untyped dicts into VendorRecord at the boundary; drop and count malformed ones
#   - 通过注入的 EnrichmentPolicy 附加合规/碳/透明度字段
#     / Attach compliance/carbon/transparency fields via the injected policy
# =============================================================================

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from vendorscope.data.enrichment import EnrichmentPolicy
from vendorscope.primitives.models import VendorRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationResult:
    """规范化输出；dropped 供诊断使用。 / Normalized collection plus drop count for diagnostics."""

    vendors: Tuple[VendorRecord, ...]
    dropped: int = 0


def _coerce_rating(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _string_items(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def parse_vendor(raw: Any) -> Optional[VendorRecord]:
    """把单条原始记录转为 VendorRecord；缺少必填描述字段时返回 None。

    / Convert one raw record; returns None when a required descriptive field
    (vendor_name, geography, pricing, average_rating) is missing or mistyped.
    """
    if not isinstance(raw, dict):
        return None

    name = raw.get("vendor_name")
    geography = raw.get("geography")
    pricing = raw.get("pricing")
    if not isinstance(name, str) or not name.strip():
        return None
    if not isinstance(geography, str) or not isinstance(pricing, str):
        return None

    rating = _coerce_rating(raw.get("average_rating"))
    if rating is None:
        return None

    return VendorRecord(
        name=name,
        geography=geography,
        pricing=pricing,
        average_rating=rating,
        media_mentions=_string_items(raw.get("media_mentions")),
        highlight_reviews=_string_items(raw.get("highlight_reviews")),
    )


def enrich_vendor(record: VendorRecord, policy: EnrichmentPolicy) -> VendorRecord:
    enrichment = policy.enrich(record)
    return dataclasses.replace(
        record,
        compliance_status=enrichment.compliance_status,
        carbon_score=enrichment.carbon_score,
        transparency_score=enrichment.transparency_score,
    )


def normalize_vendors(
    batches: Iterable[Sequence[Any]],
    policy: EnrichmentPolicy,
) -> NormalizationResult:
    """合并并 enrich 所有数据源的原始记录。 / Merge and enrich raw records from every source."""
    vendors: List[VendorRecord] = []
    dropped = 0

    for batch in batches:
        for raw in batch:
            record = parse_vendor(raw)
            if record is None:
                dropped += 1
                continue
            vendors.append(enrich_vendor(record, policy))

    if dropped:
        logger.warning("规范化丢弃 %d 条畸形供应商记录 / dropped %d malformed vendor records", dropped, dropped)
    logger.debug("规范化完成: %d 条供应商 / normalized %d vendors", len(vendors), len(vendors))

    return NormalizationResult(vendors=tuple(vendors), dropped=dropped)
