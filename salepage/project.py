"""プロジェクトファイル (JSON) の保存形式と商品一覧レポート.

保存形式:
    {"shopId", "blocks", "popupImage", "popupLink", "savedAt"}

読込時は旧形式を現行形式に変換する:
  - product_grid.heroProduct (単数) → heroProducts
  - product_grid.heroBanner (単数) → heroBanners
  - timer_banner のトップレベル imageUrl/linkUrl/startTime/endTime → banners
  - 欠けている項目は初期値で補う (保存時には補わない)
"""

from __future__ import annotations

import csv
import io
import json
import logging
from datetime import date, datetime
from typing import Any

from salepage.config import BANNER_LAYOUTS, PROJECT_FILE_PREFIX
from salepage.models import (
    BLOCK_CLASSES,
    BannerListBlock,
    Block,
    CouponListBlock,
    CustomHtmlBlock,
    Document,
    ImageItem,
    Product,
    ProductGridBlock,
    SpacerBlock,
    TimerBannerBlock,
    TimerBannerItem,
    TopImageBlock,
)

logger = logging.getLogger(__name__)

REPORT_HEADER = ["ブロック名", "種別", "商品管理番号", "商品名", "価格(税込)", "URL"]


class ProjectLoadError(ValueError):
    """プロジェクトファイルを解釈できない."""


def project_filename(day: date | None = None) -> str:
    """保存ファイル名 (rakuten-sale-project_YYYY-MM-DD.json)."""
    day = day or date.today()
    return f"{PROJECT_FILE_PREFIX}{day.isoformat()}.json"


# --- 保存 ---


def _product_to_dict(p: Product) -> dict:
    return {
        "code": p.code,
        "name": p.name,
        "price": p.price,
        "refPrice": p.ref_price,
        "imageUrl": p.image_url,
        "url": p.url,
        "comment": p.comment,
    }


def _image_to_dict(item: ImageItem) -> dict:
    return {"imageUrl": item.image_url, "linkUrl": item.link_url}


def _timer_item_to_dict(item: TimerBannerItem) -> dict:
    return {
        "imageUrl": item.image_url,
        "linkUrl": item.link_url,
        "startTime": item.start_time,
        "endTime": item.end_time,
    }


def block_to_dict(block: Block) -> dict:
    data: dict[str, Any] = {"id": block.id, "type": block.TYPE}
    if isinstance(block, TopImageBlock):
        data.update(imageUrl=block.image_url, linkUrl=block.link_url)
    elif isinstance(block, BannerListBlock):
        data.update(
            banners=[_image_to_dict(b) for b in block.banners],
            layout=block.layout,
            headerHtml=block.header_html,
        )
    elif isinstance(block, CouponListBlock):
        data.update(coupons=[_image_to_dict(c) for c in block.coupons])
    elif isinstance(block, CustomHtmlBlock):
        data.update(content=block.content)
    elif isinstance(block, SpacerBlock):
        data.update(height=block.height)
    elif isinstance(block, TimerBannerBlock):
        data.update(banners=[_timer_item_to_dict(b) for b in block.banners])
    elif isinstance(block, ProductGridBlock):
        data.update(
            title=block.title,
            bgColor=block.bg_color,
            heroMode=block.hero_mode,
            heroProducts=[_product_to_dict(p) for p in block.hero_products],
            heroBanners=[_image_to_dict(b) for b in block.hero_banners],
            gridProducts=[_product_to_dict(p) for p in block.grid_products],
            bottomButtonText=block.bottom_button_text,
            bottomButtonLink=block.bottom_button_link,
            bottomButtonBgColor=block.bottom_button_bg_color,
            bottomButtonTextColor=block.bottom_button_text_color,
            nameFilter=block.name_filter,
            mobileCommentShow=block.mobile_comment_show,
            mobileCommentDuration=block.mobile_comment_duration,
            mobileCommentInterval=block.mobile_comment_interval,
        )
    else:
        raise TypeError(f"unsupported block: {type(block).__name__}")
    return data


def dump_project(doc: Document, saved_at: str | None = None) -> dict:
    """Document を保存用 dict に変換する."""
    return {
        "shopId": doc.shop_id,
        "blocks": [block_to_dict(b) for b in doc.blocks],
        "popupImage": doc.popup_image,
        "popupLink": doc.popup_link,
        "savedAt": saved_at or datetime.now().isoformat(timespec="seconds"),
    }


def to_json(doc: Document, saved_at: str | None = None) -> str:
    return json.dumps(dump_project(doc, saved_at), ensure_ascii=False, indent=2)


# --- 読込 ---


def _text(data: dict, key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    return str(value)


def _product_from_dict(data: dict) -> Product:
    if not isinstance(data, dict):
        raise ProjectLoadError(f"商品データが不正です: {data!r}")
    return Product(
        code=_text(data, "code"),
        name=_text(data, "name"),
        price=_text(data, "price"),
        ref_price=_text(data, "refPrice"),
        image_url=_text(data, "imageUrl"),
        url=_text(data, "url"),
        comment=_text(data, "comment"),
    )


def _image_from_dict(data: dict) -> ImageItem:
    if not isinstance(data, dict):
        raise ProjectLoadError(f"画像データが不正です: {data!r}")
    return ImageItem(image_url=_text(data, "imageUrl"), link_url=_text(data, "linkUrl"))


def _timer_item_from_dict(data: dict) -> TimerBannerItem:
    if not isinstance(data, dict):
        raise ProjectLoadError(f"バナーデータが不正です: {data!r}")
    return TimerBannerItem(
        image_url=_text(data, "imageUrl"),
        link_url=_text(data, "linkUrl"),
        start_time=_text(data, "startTime"),
        end_time=_text(data, "endTime"),
    )


def _list(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ProjectLoadError(f"{key} はリストである必要があります")
    return value


def _number(data: dict, key: str, default: float) -> float:
    value = data.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value) if "." in str(value) else int(value)
    except (TypeError, ValueError):
        raise ProjectLoadError(f"{key} が数値ではありません: {value!r}") from None


def _migrate_block(data: dict) -> dict:
    """旧形式のブロックを現行形式に変換する."""
    data = dict(data)
    kind = data.get("type")
    if kind == "product_grid":
        if "heroProducts" not in data and "heroProduct" in data:
            legacy = data.pop("heroProduct")
            data["heroProducts"] = [legacy] if legacy else []
            logger.info("旧形式を変換: heroProduct → heroProducts (block=%s)", data.get("id"))
        if "heroBanners" not in data and "heroBanner" in data:
            legacy = data.pop("heroBanner")
            data["heroBanners"] = [legacy] if legacy else []
            logger.info("旧形式を変換: heroBanner → heroBanners (block=%s)", data.get("id"))
    elif kind == "timer_banner" and "banners" not in data:
        legacy_keys = ("imageUrl", "linkUrl", "startTime", "endTime")
        if any(k in data for k in legacy_keys):
            data["banners"] = [{k: data.pop(k, "") for k in legacy_keys}]
            logger.info("旧形式を変換: timer_banner 単体 → banners (block=%s)", data.get("id"))
    return data


def block_from_dict(data: dict) -> Block:
    if not isinstance(data, dict):
        raise ProjectLoadError(f"ブロックデータが不正です: {data!r}")
    data = _migrate_block(data)
    kind = data.get("type")
    if kind not in BLOCK_CLASSES:
        raise ProjectLoadError(f"不明なブロック種別です: {kind!r}")

    block_id = _text(data, "id")
    common = {"id": block_id} if block_id else {}

    if kind == "top_image":
        return TopImageBlock(**common, image_url=_text(data, "imageUrl"), link_url=_text(data, "linkUrl"))
    if kind == "banner_list":
        layout = _text(data, "layout", "1")
        return BannerListBlock(
            **common,
            banners=tuple(_image_from_dict(b) for b in _list(data, "banners")),
            layout=layout if layout in BANNER_LAYOUTS else "1",
            header_html=_text(data, "headerHtml"),
        )
    if kind == "coupon_list":
        return CouponListBlock(**common, coupons=tuple(_image_from_dict(c) for c in _list(data, "coupons")))
    if kind == "custom_html":
        return CustomHtmlBlock(**common, content=_text(data, "content"))
    if kind == "spacer":
        return SpacerBlock(**common, height=int(_number(data, "height", SpacerBlock.height)))
    if kind == "timer_banner":
        return TimerBannerBlock(
            **common, banners=tuple(_timer_item_from_dict(b) for b in _list(data, "banners"))
        )

    defaults = ProductGridBlock
    show = data.get("mobileCommentShow")
    if not isinstance(show, bool):
        if show is not None:
            logger.warning("mobileCommentShow が真偽値ではないため初期値を使います: %r (block=%s)", show, block_id)
        show = defaults.mobile_comment_show
    return ProductGridBlock(
        **common,
        title=_text(data, "title", defaults.title),
        bg_color=_text(data, "bgColor", defaults.bg_color),
        hero_mode="banner" if data.get("heroMode") == "banner" else "product",
        hero_products=tuple(_product_from_dict(p) for p in _list(data, "heroProducts")),
        hero_banners=tuple(_image_from_dict(b) for b in _list(data, "heroBanners")),
        grid_products=tuple(_product_from_dict(p) for p in _list(data, "gridProducts")),
        bottom_button_text=_text(data, "bottomButtonText"),
        bottom_button_link=_text(data, "bottomButtonLink"),
        bottom_button_bg_color=_text(data, "bottomButtonBgColor") or defaults.bottom_button_bg_color,
        bottom_button_text_color=_text(data, "bottomButtonTextColor") or defaults.bottom_button_text_color,
        name_filter=_text(data, "nameFilter"),
        mobile_comment_show=show,
        mobile_comment_duration=_number(data, "mobileCommentDuration", defaults.mobile_comment_duration),
        mobile_comment_interval=_number(data, "mobileCommentInterval", defaults.mobile_comment_interval),
    )


def load_project(source: str | bytes | dict) -> Document:
    """JSON 文字列 (または dict) から Document を復元する.

    Raises:
        ProjectLoadError: JSON として読めない、または形式が不正な場合
    """
    if isinstance(source, dict):
        data = source
    else:
        try:
            data = json.loads(source)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProjectLoadError(f"ファイルの読み込みに失敗しました: {e}") from e
    if not isinstance(data, dict):
        raise ProjectLoadError("プロジェクトファイルの形式が不正です")

    blocks = tuple(block_from_dict(b) for b in _list(data, "blocks"))
    ids = [b.id for b in blocks]
    if len(set(ids)) != len(ids):
        raise ProjectLoadError("ブロックIDが重複しています")

    return Document(
        shop_id=_text(data, "shopId"),
        blocks=blocks,
        popup_image=_text(data, "popupImage"),
        popup_link=_text(data, "popupLink"),
    )


# --- 商品一覧レポート ---


def export_product_report(doc: Document) -> str:
    """全商品カテゴリの配置商品を CSV 文字列で返す."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(REPORT_HEADER)
    for block in doc.blocks:
        if not isinstance(block, ProductGridBlock):
            continue
        for kind, products in (("hero", block.hero_products), ("normal", block.grid_products)):
            for p in products:
                writer.writerow([block.title, kind, p.code, p.name, p.price, p.url])
    return buf.getvalue()
