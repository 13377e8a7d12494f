"""ブロック編集操作モジュール.

すべての操作は新しい Document を返し、引数の Document は変更しない。
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Sequence

from salepage.catalog import Row, find_product_data
from salepage.models import (
    BLOCK_CLASSES,
    Block,
    Document,
    ImageItem,
    Product,
    ProductGridBlock,
    TimerBannerItem,
)

logger = logging.getLogger(__name__)

HERO = "hero_products"
GRID = "grid_products"
_PRODUCT_SLOTS = (HERO, GRID)

# 画像リストを持つブロックのフィールド → 要素の型
_IMAGE_LIST_FIELDS = {
    ("banner_list", "banners"): ImageItem,
    ("coupon_list", "coupons"): ImageItem,
    ("product_grid", "hero_banners"): ImageItem,
    ("timer_banner", "banners"): TimerBannerItem,
}


class ProductLookupError(ValueError):
    """商品検索が必要な操作で、商品を特定できなかった."""


def search_product(code: str, rows: Sequence[Row], shop_id: str) -> Product:
    """CSV から商品を検索する. 見つからなければ ProductLookupError."""
    if not shop_id:
        raise ProductLookupError("店舗を選択してください")
    if not rows:
        raise ProductLookupError("CSVを読み込んでください")
    product = find_product_data(code, rows, shop_id)
    if product is None:
        logger.warning("商品が見つかりません: code=%s, shop=%s", code, shop_id)
        raise ProductLookupError(f"商品管理番号「{code}」が見つかりません")
    return product


# --- ブロック操作 ---


def add_block(doc: Document, block_type: str) -> Document:
    """指定タイプの新規ブロックを末尾に追加する."""
    try:
        cls = BLOCK_CLASSES[block_type]
    except KeyError:
        raise ValueError(f"unknown block type: {block_type}") from None
    return dataclasses.replace(doc, blocks=doc.blocks + (cls(),))


def remove_block(doc: Document, block_id: str) -> Document:
    """ID のブロックを削除する. 存在しなければ何もしない."""
    return dataclasses.replace(doc, blocks=tuple(b for b in doc.blocks if b.id != block_id))


def _swap(items: tuple, index: int, direction: int) -> tuple:
    target = index + direction
    if not (0 <= index < len(items)) or not (0 <= target < len(items)):
        return items
    swapped = list(items)
    swapped[index], swapped[target] = swapped[target], swapped[index]
    return tuple(swapped)


def move_block(doc: Document, index: int, direction: int) -> Document:
    """index のブロックを direction (±1) 方向の隣と入れ替える. 範囲外なら何もしない."""
    return dataclasses.replace(doc, blocks=_swap(doc.blocks, index, direction))


def get_block(doc: Document, block_id: str) -> Block | None:
    for block in doc.blocks:
        if block.id == block_id:
            return block
    return None


def update_block(doc: Document, block_id: str, mutator: Callable[[Block], Block]) -> Document:
    """ID のブロックを mutator の戻り値で差し替える.

    mutator はブロックの種類と ID を変えてはならない。
    """
    blocks = []
    for block in doc.blocks:
        if block.id == block_id:
            updated = mutator(block)
            if type(updated) is not type(block) or updated.id != block.id:
                raise TypeError("mutator must keep the block type and id")
            block = updated
        blocks.append(block)
    return dataclasses.replace(doc, blocks=tuple(blocks))


def _update_products(
    doc: Document,
    block_id: str,
    slot: str,
    change: Callable[[tuple[Product, ...]], tuple[Product, ...]],
) -> Document:
    if slot not in _PRODUCT_SLOTS:
        raise ValueError(f"unknown product slot: {slot}")

    def mutate(block: Block) -> Block:
        if not isinstance(block, ProductGridBlock):
            return block
        return dataclasses.replace(block, **{slot: change(getattr(block, slot))})

    return update_block(doc, block_id, mutate)


# --- 商品カテゴリ内の商品操作 (slot は HERO または GRID) ---


def add_product(doc: Document, block_id: str, slot: str, code: str, rows: Sequence[Row]) -> Document:
    """商品管理番号で検索した商品を末尾に追加する (コメントは空)."""
    product = search_product(code, rows, doc.shop_id)
    return _update_products(doc, block_id, slot, lambda items: items + (product,))


def remove_product(doc: Document, block_id: str, slot: str, index: int) -> Document:
    return _update_products(
        doc, block_id, slot, lambda items: tuple(p for i, p in enumerate(items) if i != index)
    )


def update_product_comment(doc: Document, block_id: str, slot: str, index: int, comment: str) -> Document:
    """吹き出しコメントを書き換える."""

    def change(items: tuple[Product, ...]) -> tuple[Product, ...]:
        if not 0 <= index < len(items):
            return items
        return items[:index] + (dataclasses.replace(items[index], comment=comment),) + items[index + 1:]

    return _update_products(doc, block_id, slot, change)


def replace_product(
    doc: Document, block_id: str, slot: str, index: int, new_code: str, rows: Sequence[Row]
) -> Document:
    """別の商品管理番号で再検索して差し替える. コメントは引き継ぐ."""
    product = search_product(new_code, rows, doc.shop_id)

    def change(items: tuple[Product, ...]) -> tuple[Product, ...]:
        if not 0 <= index < len(items):
            return items
        kept = dataclasses.replace(product, comment=items[index].comment)
        return items[:index] + (kept,) + items[index + 1:]

    return _update_products(doc, block_id, slot, change)


def move_product(doc: Document, block_id: str, index: int, direction: int) -> Document:
    """通常グリッド内で商品を隣と入れ替える. 範囲外なら何もしない."""
    return _update_products(doc, block_id, GRID, lambda items: _swap(items, index, direction))


# --- 画像リスト操作 (バナー・クーポン・目玉バナー・期間限定バナー) ---


def _update_image_list(doc: Document, block_id: str, field_name: str, change: Callable) -> Document:
    def mutate(block: Block) -> Block:
        if (block.TYPE, field_name) not in _IMAGE_LIST_FIELDS:
            raise ValueError(f"{block.TYPE} has no image list '{field_name}'")
        return dataclasses.replace(block, **{field_name: change(getattr(block, field_name), block.TYPE)})

    return update_block(doc, block_id, mutate)


def add_image_item(doc: Document, block_id: str, field_name: str) -> Document:
    """空の画像項目を末尾に追加する."""
    return _update_image_list(
        doc, block_id, field_name,
        lambda items, kind: items + (_IMAGE_LIST_FIELDS[(kind, field_name)](),),
    )


def set_image_item(doc: Document, block_id: str, field_name: str, index: int, item) -> Document:
    """画像項目を差し替える. 範囲外なら何もしない."""

    def change(items, kind):
        if not 0 <= index < len(items):
            return items
        if not isinstance(item, _IMAGE_LIST_FIELDS[(kind, field_name)]):
            raise TypeError(f"unexpected item for {kind}.{field_name}: {item!r}")
        return items[:index] + (item,) + items[index + 1:]

    return _update_image_list(doc, block_id, field_name, change)


def remove_image_item(doc: Document, block_id: str, field_name: str, index: int) -> Document:
    return _update_image_list(
        doc, block_id, field_name,
        lambda items, kind: tuple(x for i, x in enumerate(items) if i != index),
    )


# --- 一括更新 ---


def refresh_products(doc: Document, rows: Sequence[Row], shop_id: str | None = None) -> Document:
    """新しい CSV で配置済み商品を再解決する.

    コメントは常に引き継ぐ。CSV に見つからない商品はそのまま残す。
    """
    shop_id = doc.shop_id if shop_id is None else shop_id
    updated = kept = 0

    def refresh(product: Product) -> Product:
        nonlocal updated, kept
        found = find_product_data(product.code, rows, shop_id)
        if found is None:
            kept += 1
            return product
        updated += 1
        return dataclasses.replace(found, comment=product.comment)

    blocks = []
    for block in doc.blocks:
        if isinstance(block, ProductGridBlock):
            block = dataclasses.replace(
                block,
                hero_products=tuple(refresh(p) for p in block.hero_products),
                grid_products=tuple(refresh(p) for p in block.grid_products),
            )
        blocks.append(block)

    logger.info("商品情報を更新: 更新=%d 件, 据え置き=%d 件", updated, kept)
    return dataclasses.replace(doc, blocks=tuple(blocks))
