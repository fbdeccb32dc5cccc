# enrichment.py
# =============================================================================
# 供应商 enrichment 策略 / Vendor enrichment policies
#
# enrichment 必须是 (record, seed) 的确定性函数：随机源显式注入并按记录身份
# 派生种子，同一 seed 下结果与记录在集合中的位置无关。
# / Enrichment is a deterministic function of (record, seed): the random source
#   is seeded from the seed plus the record's identity, so results do not depend
#   on where the record sits in the collection.
# =============================================================================

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol

from vendorscope.primitives.models import (
    COMPLIANT,
    NON_COMPLIANT,
    PARTIAL,
    VendorRecord,
)

# 历史分布：77% compliant，13% partial，其余 non-compliant
# / Historical split: 77% compliant, 13% partial, remainder non-compliant
DEFAULT_COMPLIANT_RATIO = 0.77
DEFAULT_PARTIAL_RATIO = 0.13


@dataclass(frozen=True)
class Enrichment:
    compliance_status: str
    carbon_score: int
    transparency_score: int


class EnrichmentPolicy(Protocol):
    def enrich(self, record: VendorRecord) -> Enrichment:
        ...


class SeededEnrichmentPolicy:
    """按种子派生的伪随机 enrichment。 / Seeded pseudo-random enrichment."""

    def __init__(
        self,
        seed: int = 0,
        compliant_ratio: float = DEFAULT_COMPLIANT_RATIO,
        partial_ratio: float = DEFAULT_PARTIAL_RATIO,
    ):
        if compliant_ratio < 0 or partial_ratio < 0 or compliant_ratio + partial_ratio > 1:
            raise ValueError(
                f"invalid compliance ratios: compliant={compliant_ratio}, "
                f"partial={partial_ratio}"
            )
        self.seed = seed
        self._compliant_ratio = compliant_ratio
        self._partial_ratio = partial_ratio

    def _rng_for(self, record: VendorRecord) -> random.Random:
        # 字符串种子在 CPython 中经 sha512 派生，跨进程稳定
        # / str seeds are hashed with sha512, stable across processes
        return random.Random(f"{self.seed}\x1f{record.name}\x1f{record.geography}")

    def enrich(self, record: VendorRecord) -> Enrichment:
        rng = self._rng_for(record)
        draw = rng.random()
        if draw < self._compliant_ratio:
            status = COMPLIANT
        elif draw < self._compliant_ratio + self._partial_ratio:
            status = PARTIAL
        else:
            status = NON_COMPLIANT
        return Enrichment(
            compliance_status=status,
            carbon_score=rng.randrange(100),
            transparency_score=rng.randrange(100),
        )
