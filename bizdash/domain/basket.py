"""Market-basket (co-purchase) analysis over invoice line items."""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from itertools import combinations
from typing import Sequence

from .models import InvoiceItem, Product, parse_timestamp
from .results import MarketBasketResult


def build_baskets(
    items: Sequence[InvoiceItem],
    product_names: dict[str, str],
    start: datetime | None = None,
    end: datetime | None = None,
) -> dict[str, dict[str, None]]:
    """Group distinct named item codes by document number.

    Date filtering on the item's own date only applies when both bounds are set.
    """
    filter_dates = start is not None and end is not None
    baskets: dict[str, dict[str, None]] = {}
    for item in items:
        if item.document_number is None or item.item_code is None:
            continue
        if item.item_code not in product_names:
            continue
        if filter_dates:
            moment = parse_timestamp(item.issued_at)
            if moment is None or moment < start or moment > end:
                continue
        baskets.setdefault(item.document_number, {})[item.item_code] = None
    return baskets


class MarketBasketAnalyzer:
    """Finds item pairs that are frequently bought together."""

    def __init__(
        self,
        min_confidence: float = 0.1,
        min_support: float = 0.01,
        max_results: int = 20,
    ) -> None:
        self._min_confidence = min_confidence
        self._min_support = min_support
        self._max_results = max_results

    def analyze(
        self,
        items: Sequence[InvoiceItem],
        products: Sequence[Product],
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[MarketBasketResult]:
        names = {
            product.code: product.description
            for product in products
            if product.code is not None and product.description is not None
        }
        baskets = build_baskets(items, names, start, end)
        total_baskets = len(baskets)
        if total_baskets == 0:
            return []

        item_counts: Counter[str] = Counter()
        pair_counts: Counter[tuple[str, str]] = Counter()
        for basket in baskets.values():
            codes = list(basket)
            item_counts.update(codes)
            for first, second in combinations(codes, 2):
                pair_counts[(first, second)] += 1
                pair_counts[(second, first)] += 1

        results: list[MarketBasketResult] = []
        for (item_a, item_b), count in pair_counts.items():
            support = count / total_baskets
            confidence = count / item_counts[item_a]
            if confidence > self._min_confidence and support > self._min_support:
                results.append(
                    MarketBasketResult(
                        item_a=names[item_a],
                        item_b=names[item_b],
                        confidence=confidence,
                        support=support,
                    )
                )

        results.sort(key=lambda result: result.confidence, reverse=True)
        return results[: self._max_results]
