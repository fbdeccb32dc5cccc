# filtering.py
# =============================================================================
# 供应商过滤 / Vendor filtering
#
# 所有维度均可选，逻辑 AND 组合；结果保持输入顺序，不修改源集合。
# / Every dimension is optional and ANDed; output preserves input order and
#   never touches the source collection.
#
# 价格策略 / Price policy:
#   pricing 为自由文本，取第一个数值 token。无数值的供应商不受 max_price 约束
#   （仍保留在结果中）。
#   / pricing is free text; the first numeric token is used. A vendor whose
#   pricing holds no number is not excluded by max_price.
# =============================================================================

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from vendorscope.primitives.models import COMPLIANT, VendorRecord

_PRICE_RE = re.compile(r"\d[\d,]*(?:\.\d+)?|\.\d+")


def parse_price(pricing: str) -> Optional[float]:
    """提取 pricing 中第一个数值。 / First numeric token in a pricing string.

    >>> parse_price("$30/gal")
    30.0
    >>> parse_price("approx. $1,250.50 per lot")
    1250.5
    >>> parse_price("call for quote") is None
    True
    """
    match = _PRICE_RE.search(pricing or "")
    if not match:
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        return None


@dataclass(frozen=True)
class VendorFilter:
    """可组合的供应商过滤条件。默认值即最宽松设置。 / Composable criteria; defaults are the most permissive."""

    search_term: str = ""
    min_rating: Optional[float] = None
    max_price: Optional[float] = None
    location: str = ""
    compliant_only: bool = False

    def matches(self, vendor: VendorRecord) -> bool:
        term = self.search_term.strip().lower()
        if term and term not in vendor.name.lower() and term not in vendor.geography.lower():
            return False

        if self.min_rating is not None and vendor.average_rating < self.min_rating:
            return False

        if self.max_price is not None:
            price = parse_price(vendor.pricing)
            if price is not None and price > self.max_price:
                return False

        location = self.location.strip().lower()
        if location and location not in vendor.geography.lower():
            return False

        if self.compliant_only and vendor.compliance_status != COMPLIANT:
            return False

        return True

    def apply(self, vendors: Iterable[VendorRecord]) -> List[VendorRecord]:
        return [v for v in vendors if self.matches(v)]


def filter_vendors(
    vendors: Iterable[VendorRecord], criteria: Optional[VendorFilter] = None
) -> List[VendorRecord]:
    return (criteria or VendorFilter()).apply(vendors)
