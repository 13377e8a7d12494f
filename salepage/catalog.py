"""商品CSV (dl-normal-item.csv) の読込と商品データ解決モジュール.

同じ商品管理番号の行が複数ある場合 (SKU・価格行) は 1 商品にマージする。
各項目は「後の行の空でない値」が優先される。
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from salepage.config import (
    COL_CODE,
    COL_IMAGE_PATH,
    COL_NAME,
    COL_PRICE,
    COL_PRICE_FALLBACK,
    COL_REF_PRICE,
    CSV_ENCODING,
    DEFAULT_PRODUCT_NAME,
    IMAGE_URL_TEMPLATE,
    ITEM_URL_TEMPLATE,
    PLACEHOLDER_IMAGE_URL,
    RAKUTEN_DOMAIN,
)
from salepage.models import Product
from salepage.pricing import calc_tax

logger = logging.getLogger(__name__)

Row = Mapping[str, str]


def load_price_list(path: str | Path, encoding: str = CSV_ENCODING) -> list[dict[str, str]]:
    """RMS の商品CSVを読み込み、列名→値の dict のリストで返す.

    空行は読み飛ばす。
    """
    with open(path, encoding=encoding, newline="") as f:
        rows = [
            {k: (v or "") for k, v in row.items() if k is not None}
            for row in csv.DictReader(f)
            if any((v or "").strip() for v in row.values() if isinstance(v, str))
        ]
    logger.info("CSV 読み込み完了: %s (%d 行)", path, len(rows))
    return rows


def _cell(row: Row, column: str) -> str:
    return row.get(column) or ""


def resolve_image_url(image_path: str, shop_id: str) -> str:
    """画像パスを絶対 URL に変換する. 空ならプレースホルダー画像."""
    if image_path.startswith("http"):
        return image_path
    if image_path:
        return IMAGE_URL_TEMPLATE.format(domain=RAKUTEN_DOMAIN, shop_id=shop_id, path=image_path)
    return PLACEHOLDER_IMAGE_URL


def item_url(shop_id: str, code: str) -> str:
    """商品ページ URL を組み立てる."""
    return ITEM_URL_TEMPLATE.format(domain=RAKUTEN_DOMAIN, shop_id=shop_id, code=code)


def find_product_data(code: str, rows: Iterable[Row], shop_id: str) -> Product | None:
    """商品管理番号に一致する行をマージして Product を作る.

    Args:
        code: 商品管理番号
        rows: CSV の行
        shop_id: 店舗ID (URL 組み立てに使う)

    Returns:
        Product。店舗未選択・該当行なしの場合は None。
        comment は常に空。
    """
    if not shop_id or not rows:
        return None
    matched = [row for row in rows if _cell(row, COL_CODE) == code]
    if not matched:
        return None

    name = price = ref_price = image_path = ""
    for row in matched:
        if _cell(row, COL_NAME).strip():
            name = _cell(row, COL_NAME)
        p = _cell(row, COL_PRICE) or _cell(row, COL_PRICE_FALLBACK)
        if p.strip():
            price = p
        if _cell(row, COL_REF_PRICE).strip():
            ref_price = _cell(row, COL_REF_PRICE)
        if _cell(row, COL_IMAGE_PATH).strip():
            image_path = _cell(row, COL_IMAGE_PATH)
    if not price:
        price = "0"

    return Product(
        code=code,
        name=name or DEFAULT_PRODUCT_NAME,
        price=calc_tax(price),
        ref_price=calc_tax(ref_price) if ref_price else "",
        image_url=resolve_image_url(image_path, shop_id),
        url=item_url(shop_id, code),
        comment="",
    )


def redact_name(name: str, name_filter: str | None) -> str:
    """商品名から除去ワード (カンマ区切り) をすべて取り除く.

    各ワードは指定順に元の商品名に対して文字列一致で探す。
    先のワードで除去済みの文字を含む一致は無視するため、
    あるワードを除去した結果が別のワードに一致しても除去されない。
    """
    if not name_filter:
        return name
    terms = [t.strip() for t in name_filter.split(",") if t.strip()]
    if not terms:
        return name

    removed = [False] * len(name)
    for term in terms:
        start = name.find(term)
        while start != -1:
            end = start + len(term)
            if any(removed[start:end]):
                start = name.find(term, start + 1)
                continue
            for i in range(start, end):
                removed[i] = True
            start = name.find(term, end)
    return "".join(ch for ch, gone in zip(name, removed) if not gone)
