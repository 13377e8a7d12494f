"""特設ページ HTML 生成モジュール.

Document を 1 枚の自己完結した HTML (インライン CSS / JS のみ) に変換する。
同じ入力からは常に同じ文字列を返す。時刻依存の処理 (期間限定バナー・
ポップアップ表示回数) は出力するスクリプト側で閲覧時に評価する。
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from html import escape

from salepage.catalog import redact_name
from salepage.config import (
    BANNER_LAYOUTS,
    DEFAULT_BUTTON_BG_COLOR,
    DEFAULT_BUTTON_TEXT,
    DEFAULT_BUTTON_TEXT_COLOR,
    DEFAULT_COMMENT_DURATION,
    DEFAULT_COMMENT_INTERVAL,
    MOBILE_BREAKPOINT,
    PAGE_TITLE,
    POPUP_MAX_VIEWS,
    SPACER_MAX_HEIGHT,
    SPACER_MIN_HEIGHT,
    TEXT_FIT_STEPS,
)
from salepage.models import (
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
    TopImageBlock,
)
from salepage.pricing import format_yen, price_off_label
from salepage.styles import (
    BASE_CSS,
    NAV_SCRIPT,
    POPUP_CSS,
    POPUP_SCRIPT,
    TEXT_FIT_SCRIPT,
    TIMER_SCRIPT,
)

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_TOP_IMG_ATTRS = 'alt="Top"'
_HERO_BANNER_IMG_ATTRS = 'class="hero-banner-img" alt="Featured" style="width:100%"'
_POPUP_IMG_ATTRS = 'border="0"'


def _linked_image(image_url: str, link_url: str, img_attrs: str = 'style="width:100%"') -> str:
    img = f'<img src="{escape(image_url)}" {img_attrs}>'
    if not link_url:
        return img
    return f'<a href="{escape(link_url)}" target="_blank">{img}</a>'


def _css_key(block_id: str) -> str:
    """ブロック ID を CSS の識別子として使える形にする.

    置換が発生した ID には元の ID のハッシュを付け、別 ID との衝突を避ける。
    """
    key = re.sub(r"[^A-Za-z0-9_-]", "_", block_id)
    if key != block_id:
        key = f"{key}-{hashlib.sha1(block_id.encode('utf-8')).hexdigest()[:8]}"
    return key


def _fmt(value: float) -> str:
    return f"{round(value, 2):.2f}".rstrip("0").rstrip(".")


def is_dark_color(color: str) -> bool:
    """背景色が暗色 (白文字にすべき) かどうか."""
    m = _HEX_COLOR.match(color.strip()) if color else None
    if not m:
        return False
    digits = m.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
    return (r * 299 + g * 587 + b * 114) / 1000 < 128


# --- ブロック別 CSS ---


def comment_bubble_css(block: ProductGridBlock) -> str:
    """スマホ幅での吹き出し表示を制御するブロック専用 CSS."""
    key = _css_key(block.id)
    selector = f"#section-{key} .comment-bubble"
    media = f"@media screen and (max-width: {MOBILE_BREAKPOINT}px)"

    if not block.mobile_comment_show:
        return f"  {media} {{ {selector} {{ display: none !important; }} }}\n"

    duration = max(float(block.mobile_comment_duration), 0.0)
    interval = max(float(block.mobile_comment_interval), 0.0)
    if duration + interval <= 0:
        duration, interval = DEFAULT_COMMENT_DURATION, DEFAULT_COMMENT_INTERVAL
    total = duration + interval

    name = f"bubbleLoop-{key}"
    visible = "opacity: 1; visibility: visible;"
    hidden = "opacity: 0; visibility: hidden;"
    if interval <= 0:
        frames = f"0%, 100% {{ {visible} }}"
    else:
        visible_end = round(duration / total * 100, 2)
        hidden_start = min(round(visible_end + 0.01, 2), 100)
        frames = (
            f"0%, {_fmt(visible_end)}% {{ {visible} }} "
            f"{_fmt(hidden_start)}%, 100% {{ {hidden} }}"
        )
    return (
        f"  @keyframes {name} {{ {frames} }}\n"
        f"  {media} {{ {selector} {{ animation: {name} {_fmt(total)}s infinite !important; }} }}\n"
    )


# --- ブロック別 HTML ---


def _render_top_image(block: TopImageBlock) -> str:
    if not block.image_url:
        return ""
    return f'<div class="top-image">{_linked_image(block.image_url, block.link_url, _TOP_IMG_ATTRS)}</div>'


def _image_items(items: tuple[ImageItem, ...], item_class: str) -> str:
    return "".join(
        f'<div class="{item_class}">{_linked_image(item.image_url, item.link_url)}</div>'
        for item in items
    )


def _render_banner_list(block: BannerListBlock) -> str:
    banners = tuple(b for b in block.banners if b.image_url)
    if not banners:
        return ""
    parts = []
    if block.header_html:
        parts.append(f'<div class="banner-header">{block.header_html}</div>')
    layout = str(block.layout) if str(block.layout) in BANNER_LAYOUTS else "1"
    if layout == "1":
        parts.append(f'<div class="banner-stack">{_image_items(banners, "banner-item")}</div>')
    else:
        parts.append(
            f'<div class="banner-grid" style="grid-template-columns: repeat({layout}, 1fr);">'
            f'{_image_items(banners, "banner-item")}</div>'
        )
    return "\n".join(parts)


def _render_coupon_list(block: CouponListBlock) -> str:
    coupons = tuple(c for c in block.coupons if c.image_url)
    if not coupons:
        return ""
    return f'<div class="coupon-grid">{_image_items(coupons, "coupon-item")}</div>'


def _render_custom_html(block: CustomHtmlBlock) -> str:
    return f'<div class="custom-html">{block.content}</div>'


def _render_spacer(block: SpacerBlock) -> str:
    height = max(SPACER_MIN_HEIGHT, min(SPACER_MAX_HEIGHT, int(block.height)))
    return f'<div class="spacer" style="height: {height}px;"></div>'


def _render_timer_banner(block: TimerBannerBlock) -> str:
    return "\n".join(
        f'<div class="timer-banner" data-start="{escape(item.start_time)}" data-end="{escape(item.end_time)}">'
        f"{_linked_image(item.image_url, item.link_url)}</div>"
        for item in block.banners
        if item.image_url
    )


def _price_off_badge(product: Product) -> str:
    label = price_off_label(product.price, product.ref_price)
    if not label:
        return '<span class="price-off is-hidden" aria-hidden="true"></span>'
    return f'<span class="price-off">{escape(label)}</span>'


def _price_box(product: Product) -> str:
    ref = ""
    if product.ref_price:
        ref = (
            f'<span class="price-ref">{escape(format_yen(product.ref_price))}円</span>'
            '<span class="price-arrow">➡</span>'
        )
    return f'<div class="price-box">{ref}<span class="price-sale">{escape(format_yen(product.price))}円</span></div>'


def _comment_bubble(product: Product) -> str:
    if not product.comment:
        return ""
    return f'<div class="comment-bubble">{escape(product.comment)}</div>'


def _render_hero_product(product: Product, name_filter: str) -> str:
    name = escape(redact_name(product.name, name_filter))
    return (
        '<div class="hero-area">'
        '<div class="hero-img-container">'
        f'<img src="{escape(product.image_url)}" alt="{name}">'
        f"{_comment_bubble(product)}"
        "</div>"
        '<div class="hero-info">'
        f'<div class="hero-name">{name}</div>'
        f"{_price_off_badge(product)}"
        f"{_price_box(product)}"
        f'<a href="{escape(product.url)}" target="_blank" class="btn-buy">商品ページへ</a>'
        "</div>"
        "</div>"
    )


def _render_grid_card(product: Product, name_filter: str) -> str:
    name = escape(redact_name(product.name, name_filter))
    return (
        '<div class="item-card">'
        f'<a href="{escape(product.url)}" target="_blank">'
        '<div class="img-wrap">'
        f'<img src="{escape(product.image_url)}" alt="{name}">'
        f"{_comment_bubble(product)}"
        "</div>"
        f'<div class="grid-name">{name}</div>'
        f"{_price_off_badge(product)}"
        f"{_price_box(product)}"
        '<span class="grid-btn">商品ページへ</span>'
        "</a>"
        "</div>"
    )


def _render_product_grid(block: ProductGridBlock) -> str:
    parts = [f'<div id="cat-{escape(block.id)}" class="cat-title">{escape(block.title)}</div>']

    if block.hero_mode == "banner":
        parts.extend(
            f'<div class="hero-banner">'
            f'{_linked_image(b.image_url, b.link_url, _HERO_BANNER_IMG_ATTRS)}'
            "</div>"
            for b in block.hero_banners
            if b.image_url
        )
    else:
        parts.extend(_render_hero_product(p, block.name_filter) for p in block.hero_products)

    if block.grid_products:
        cards = "".join(_render_grid_card(p, block.name_filter) for p in block.grid_products)
        parts.append(f'<div class="grid-area">{cards}</div>')

    if block.bottom_button_link:
        bg = block.bottom_button_bg_color or DEFAULT_BUTTON_BG_COLOR
        fg = block.bottom_button_text_color or DEFAULT_BUTTON_TEXT_COLOR
        text = block.bottom_button_text or DEFAULT_BUTTON_TEXT
        parts.append(
            '<div class="section-bottom">'
            f'<a href="{escape(block.bottom_button_link)}" class="section-bottom-btn" target="_blank" data-fit-text '
            f'style="background-color: {escape(bg)}; color: {escape(fg)} !important;">{escape(text)}</a>'
            "</div>"
        )
    return "\n".join(parts)


_RENDERERS = {
    TopImageBlock: _render_top_image,
    BannerListBlock: _render_banner_list,
    CouponListBlock: _render_coupon_list,
    CustomHtmlBlock: _render_custom_html,
    SpacerBlock: _render_spacer,
    TimerBannerBlock: _render_timer_banner,
    ProductGridBlock: _render_product_grid,
}


def render_block(block: Block) -> str:
    """ブロック 1 つ分の HTML (外枠込み). 出力なしなら空文字."""
    try:
        renderer = _RENDERERS[type(block)]
    except KeyError:
        raise TypeError(f"unsupported block: {type(block).__name__}") from None

    inner = renderer(block)
    if isinstance(block, ProductGridBlock):
        text_color = "#fff" if is_dark_color(block.bg_color) else "#333"
        return (
            f'<div class="cat-section-wrapper" id="section-{_css_key(block.id)}" '
            f'style="background-color: {escape(block.bg_color)}; color: {text_color}">'
            f'<div class="sale-content-inner">\n{inner}\n</div></div>'
        )
    if isinstance(block, SpacerBlock):
        return inner
    if not inner:
        return ""
    return f'<div class="sale-content-inner">\n{inner}\n</div>'


# --- ページ全体 ---


def _render_popup(doc: Document) -> str:
    if not doc.popup_image:
        return ""
    return (
        '<div class="overlay" id="popup">'
        '<div class="popup-banner">'
        f'{_linked_image(doc.popup_image, doc.popup_link, _POPUP_IMG_ATTRS)}'
        '<div class="close-btn" id="closeBtn">× 閉じる</div>'
        "</div>"
        "</div>"
    )


def _render_nav(doc: Document) -> str:
    links = "".join(
        f'<a href="#cat-{escape(b.id)}">{escape(b.title)}</a>'
        for b in doc.blocks
        if isinstance(b, ProductGridBlock)
    )
    return (
        '<div class="sale-nav-container">'
        '<div class="sale-nav-trigger">MENU</div>'
        '<div class="sale-nav-list">'
        f'<div class="sale-nav-heading">INDEX</div>{links}'
        "</div>"
        "</div>"
    )


def _js_string(value: str) -> str:
    return json.dumps(value).replace("</", "<\\/")


def _render_scripts(doc: Document) -> str:
    scripts = [TIMER_SCRIPT]
    if doc.popup_image:
        scripts.append(POPUP_SCRIPT.format(
            storage_key=_js_string(f"popupShown_{doc.shop_id}"),
            max_views=POPUP_MAX_VIEWS,
        ))
    scripts.append(NAV_SCRIPT)
    scripts.append(TEXT_FIT_SCRIPT.format(steps=json.dumps([list(s) for s in TEXT_FIT_STEPS])))
    return "".join(scripts)


def generate_css(doc: Document) -> str:
    """固定 CSS + ブロック専用 CSS."""
    css = BASE_CSS
    if doc.popup_image:
        css += POPUP_CSS
    css += "".join(comment_bubble_css(b) for b in doc.blocks if isinstance(b, ProductGridBlock))
    return css


def generate_html(doc: Document) -> str:
    """Document から特設ページの HTML を生成する."""
    body = "\n".join(
        part
        for part in [_render_popup(doc), _render_nav(doc), *(render_block(b) for b in doc.blocks)]
        if part
    )
    html = f"""<!DOCTYPE html>
<html lang="ja">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{PAGE_TITLE}</title>
<style>{generate_css(doc)}</style>
</head>
<body>
<div id="rakuten-sale-app">
{body}
</div>
{_render_scripts(doc)}
</body>
</html>"""
    logger.info("HTML 生成: ブロック=%d 件, %d 文字", len(doc.blocks), len(html))
    return html
