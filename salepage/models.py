"""データモデル定義.

ブロックは 7 種類の固定バリアント。すべて frozen dataclass で、
更新は dataclasses.replace による差し替えで行う。
"""

import uuid
from dataclasses import dataclass, field
from typing import ClassVar, Union

from salepage.config import (
    DEFAULT_BG_COLOR,
    DEFAULT_BUTTON_BG_COLOR,
    DEFAULT_BUTTON_TEXT_COLOR,
    DEFAULT_COMMENT_DURATION,
    DEFAULT_COMMENT_INTERVAL,
    DEFAULT_GRID_TITLE,
    DEFAULT_SPACER_HEIGHT,
)


def new_block_id() -> str:
    """ブロック ID を払い出す."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Product:
    """ブロックに配置される1商品 (値コピーで保持)."""

    code: str  # 商品管理番号
    name: str
    price: str  # 税込
    ref_price: str = ""  # 税込の比較価格。空なら比較価格なし
    image_url: str = ""
    url: str = ""
    comment: str = ""  # 吹き出しコメント (CSV 由来ではない)


@dataclass(frozen=True)
class ImageItem:
    """バナー・クーポン等の画像1枚."""

    image_url: str = ""
    link_url: str = ""


@dataclass(frozen=True)
class TimerBannerItem:
    """期間限定バナー1枚. 日時は datetime-local 形式の文字列."""

    image_url: str = ""
    link_url: str = ""
    start_time: str = ""
    end_time: str = ""


@dataclass(frozen=True)
class TopImageBlock:
    TYPE: ClassVar[str] = "top_image"

    id: str = field(default_factory=new_block_id)
    image_url: str = ""
    link_url: str = ""


@dataclass(frozen=True)
class BannerListBlock:
    TYPE: ClassVar[str] = "banner_list"

    id: str = field(default_factory=new_block_id)
    banners: tuple[ImageItem, ...] = ()
    layout: str = "1"  # 列数 "1"〜"4"
    header_html: str = ""


@dataclass(frozen=True)
class CouponListBlock:
    TYPE: ClassVar[str] = "coupon_list"

    id: str = field(default_factory=new_block_id)
    coupons: tuple[ImageItem, ...] = ()


@dataclass(frozen=True)
class CustomHtmlBlock:
    TYPE: ClassVar[str] = "custom_html"

    id: str = field(default_factory=new_block_id)
    content: str = ""


@dataclass(frozen=True)
class SpacerBlock:
    TYPE: ClassVar[str] = "spacer"

    id: str = field(default_factory=new_block_id)
    height: int = DEFAULT_SPACER_HEIGHT


@dataclass(frozen=True)
class TimerBannerBlock:
    TYPE: ClassVar[str] = "timer_banner"

    id: str = field(default_factory=new_block_id)
    banners: tuple[TimerBannerItem, ...] = ()


@dataclass(frozen=True)
class ProductGridBlock:
    """商品カテゴリブロック (目玉エリア + 通常グリッド)."""

    TYPE: ClassVar[str] = "product_grid"

    id: str = field(default_factory=new_block_id)
    title: str = DEFAULT_GRID_TITLE
    bg_color: str = DEFAULT_BG_COLOR
    hero_mode: str = "product"  # "product" or "banner"
    hero_products: tuple[Product, ...] = ()
    hero_banners: tuple[ImageItem, ...] = ()
    grid_products: tuple[Product, ...] = ()
    bottom_button_text: str = ""
    bottom_button_link: str = ""
    bottom_button_bg_color: str = DEFAULT_BUTTON_BG_COLOR
    bottom_button_text_color: str = DEFAULT_BUTTON_TEXT_COLOR
    name_filter: str = ""  # カンマ区切りの除去ワード
    mobile_comment_show: bool = True
    mobile_comment_duration: float = DEFAULT_COMMENT_DURATION
    mobile_comment_interval: float = DEFAULT_COMMENT_INTERVAL


Block = Union[
    TopImageBlock,
    BannerListBlock,
    CouponListBlock,
    CustomHtmlBlock,
    SpacerBlock,
    TimerBannerBlock,
    ProductGridBlock,
]

BLOCK_CLASSES: dict[str, type] = {
    cls.TYPE: cls
    for cls in (
        TopImageBlock,
        BannerListBlock,
        CouponListBlock,
        CustomHtmlBlock,
        SpacerBlock,
        TimerBannerBlock,
        ProductGridBlock,
    )
}


@dataclass(frozen=True)
class Document:
    """編集中のページ全体. 保存・読込の単位."""

    shop_id: str = ""
    blocks: tuple[Block, ...] = ()
    popup_image: str = ""
    popup_link: str = ""
