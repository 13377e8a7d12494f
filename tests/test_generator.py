"""generator モジュールのユニットテスト."""

import pytest
from bs4 import BeautifulSoup

from salepage.generator import comment_bubble_css, generate_html, is_dark_color, render_block
from salepage.models import (
    BannerListBlock,
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


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _product(code="abc", price="900", ref_price="1000", name="【送料無料】サンダル", comment=""):
    return Product(
        code=code,
        name=name,
        price=price,
        ref_price=ref_price,
        image_url=f"https://image.rakuten.co.jp/shop/cabinet/{code}.jpg",
        url=f"https://item.rakuten.co.jp/shop/{code}/",
        comment=comment,
    )


@pytest.fixture
def full_doc():
    grid = ProductGridBlock(
        id="g1",
        title="半額セール",
        hero_products=(_product("hero", comment="イチオシ"),),
        grid_products=(_product("a"), _product("b", price="1,000", ref_price="")),
        name_filter="【送料無料】",
        bottom_button_link="https://example.com/more",
    )
    return Document(
        shop_id="goodlifeshop",
        blocks=(
            TopImageBlock(id="t1", image_url="https://img/top.jpg", link_url="https://link/top"),
            BannerListBlock(id="b1", banners=(ImageItem("https://img/b1.jpg"),), layout="3", header_html="<h2>特集</h2>"),
            CouponListBlock(id="c1", coupons=(ImageItem("https://img/c1.jpg", "https://coupon"),)),
            CustomHtmlBlock(id="h1", content="<p class='raw'>自由<b>HTML</b></p>"),
            SpacerBlock(id="s1", height=80),
            TimerBannerBlock(id="tb1", banners=(
                TimerBannerItem("https://img/t1.jpg", "", "2026-11-01T00:00", ""),
            )),
            grid,
        ),
        popup_image="https://img/popup.jpg",
        popup_link="https://link/popup",
    )


class TestGenerateHtml:
    """generate_html のテスト."""

    def test_deterministic(self, full_doc):
        assert generate_html(full_doc) == generate_html(full_doc)

    def test_self_contained(self, full_doc):
        soup = _soup(generate_html(full_doc))
        assert soup.find("link") is None
        assert all(not s.get("src") for s in soup.find_all("script"))
        assert soup.find("style") is not None

    def test_block_order(self, full_doc):
        html = generate_html(full_doc)
        body = html[html.index("<body>"):]
        positions = [
            body.index('class="top-image"'),
            body.index('class="banner-grid"'),
            body.index('class="coupon-grid"'),
            body.index('class="custom-html"'),
            body.index('class="spacer"'),
            body.index('class="timer-banner"'),
            body.index('id="cat-g1"'),
        ]
        assert positions == sorted(positions)

    def test_nav_index(self, full_doc):
        soup = _soup(generate_html(full_doc))
        links = soup.select(".sale-nav-list a")
        assert [(a["href"], a.get_text()) for a in links] == [("#cat-g1", "半額セール")]

    def test_popup(self, full_doc):
        html = generate_html(full_doc)
        soup = _soup(html)
        popup = soup.find(id="popup")
        assert popup.find("a")["href"] == "https://link/popup"
        assert '"popupShown_goodlifeshop"' in html
        assert "shownCount < 3" in html

    def test_no_popup_when_image_unset(self):
        html = generate_html(Document(shop_id="goodlifeshop"))
        assert 'id="popup"' not in html
        assert "popupShown_" not in html

    def test_custom_html_verbatim(self, full_doc):
        assert "<p class='raw'>自由<b>HTML</b></p>" in generate_html(full_doc)

    def test_timer_attributes(self, full_doc):
        soup = _soup(generate_html(full_doc))
        banner = soup.select_one(".timer-banner")
        assert banner["data-start"] == "2026-11-01T00:00"
        assert banner["data-end"] == ""
        assert "data-start" in generate_html(full_doc)

    def test_scripts_present(self, full_doc):
        html = generate_html(full_doc)
        assert "querySelectorAll('.timer-banner')" in html
        assert "classList.toggle('is-open')" in html
        assert "[data-fit-text]" in html

    def test_text_escaped(self):
        grid = ProductGridBlock(id="g", title="<セール>&")
        html = generate_html(Document(blocks=(grid,)))
        assert "&lt;セール&gt;&amp;" in html


class TestProductGrid:
    """商品カテゴリブロックのテスト."""

    def test_name_redaction(self, full_doc):
        soup = _soup(generate_html(full_doc))
        assert soup.select_one(".hero-name").get_text() == "サンダル"
        assert [n.get_text() for n in soup.select(".grid-name")] == ["サンダル", "サンダル"]

    def test_price_off_badge(self, full_doc):
        soup = _soup(generate_html(full_doc))
        badges = soup.select(".item-card .price-off")
        assert badges[0].get_text() == "100円OFF"
        assert "is-hidden" not in badges[0]["class"]
        assert "is-hidden" in badges[1]["class"]
        assert badges[1].get_text() == ""

    def test_badge_hidden_when_ref_not_higher(self):
        grid = ProductGridBlock(id="g", grid_products=(_product(price="1000", ref_price="900"),))
        soup = _soup(render_block(grid))
        badge = soup.select_one(".price-off")
        assert "is-hidden" in badge["class"]
        assert "-" not in badge.get_text()

    def test_hero_price_box(self, full_doc):
        soup = _soup(generate_html(full_doc))
        hero = soup.select_one(".hero-area")
        assert hero.select_one(".price-ref").get_text() == "1,000円"
        assert hero.select_one(".price-sale").get_text() == "900円"
        assert hero.select_one(".price-off").get_text() == "100円OFF"
        assert hero.select_one(".comment-bubble").get_text() == "イチオシ"
        assert hero.select_one("a.btn-buy")["href"] == "https://item.rakuten.co.jp/shop/hero/"

    def test_hero_banner_mode(self):
        grid = ProductGridBlock(
            id="g",
            hero_mode="banner",
            hero_products=(_product(),),
            hero_banners=(ImageItem("https://img/h1.jpg", "https://l/1"), ImageItem("https://img/h2.jpg")),
        )
        soup = _soup(render_block(grid))
        assert soup.select(".hero-area") == []
        assert [img["src"] for img in soup.select(".hero-banner img")] == ["https://img/h1.jpg", "https://img/h2.jpg"]

    def test_title_always_shown(self):
        soup = _soup(render_block(ProductGridBlock(id="g", title="空のカテゴリ")))
        assert soup.select_one(".cat-title").get_text() == "空のカテゴリ"
        assert soup.select(".grid-area") == []

    def test_bottom_button_default_text(self, full_doc):
        soup = _soup(generate_html(full_doc))
        btn = soup.select_one(".section-bottom-btn")
        assert btn.get_text() == "もっと見る"
        assert btn["href"] == "https://example.com/more"
        assert "background-color: #bf0000" in btn["style"]
        assert btn.has_attr("data-fit-text")

    def test_no_bottom_button_without_link(self):
        soup = _soup(render_block(ProductGridBlock(id="g", bottom_button_text="見る")))
        assert soup.select(".section-bottom-btn") == []

    def test_dark_background_white_text(self):
        soup = _soup(render_block(ProductGridBlock(id="g", bg_color="#333333")))
        assert "color: #fff" in soup.select_one(".cat-section-wrapper")["style"]
        soup = _soup(render_block(ProductGridBlock(id="g", bg_color="#fffef0")))
        assert "color: #333" in soup.select_one(".cat-section-wrapper")["style"]


class TestCommentBubbleCss:
    """吹き出しアニメーション CSS のテスト."""

    def test_default_phases(self):
        css = comment_bubble_css(ProductGridBlock(id="g1"))
        assert "@keyframes bubbleLoop-g1 { 0%, 75% {" in css
        assert "75.01%, 100% { opacity: 0;" in css
        assert "animation: bubbleLoop-g1 4s infinite" in css
        assert "#section-g1 .comment-bubble" in css

    def test_custom_phases(self):
        css = comment_bubble_css(ProductGridBlock(id="g1", mobile_comment_duration=1, mobile_comment_interval=1))
        assert "0%, 50% {" in css
        assert "2s infinite" in css

    def test_hidden_on_mobile(self):
        css = comment_bubble_css(ProductGridBlock(id="g1", mobile_comment_show=False))
        assert "display: none !important" in css
        assert "@keyframes" not in css

    def test_unique_per_block(self):
        doc = Document(blocks=(ProductGridBlock(id="g1"), ProductGridBlock(id="g2", mobile_comment_duration=5)))
        html = generate_html(doc)
        assert "@keyframes bubbleLoop-g1" in html
        assert "@keyframes bubbleLoop-g2" in html

    def test_sanitized_ids_do_not_collide(self):
        doc = Document(blocks=(ProductGridBlock(id="a.b"), ProductGridBlock(id="a_b")))
        html = generate_html(doc)
        soup = _soup(html)
        section_ids = [s["id"] for s in soup.select(".cat-section-wrapper")]
        assert len(set(section_ids)) == 2
        assert "section-a_b" in section_ids
        assert html.count("@keyframes bubbleLoop-a_b ") == 1

    def test_large_duration_not_exponent(self):
        css = comment_bubble_css(ProductGridBlock(id="g1", mobile_comment_duration=1234567, mobile_comment_interval=0))
        assert "bubbleLoop-g1 1234567s infinite" in css
        assert "e+" not in css

    def test_fractional_duration(self):
        css = comment_bubble_css(ProductGridBlock(id="g1", mobile_comment_duration=1.5, mobile_comment_interval=1))
        assert "2.5s infinite" in css
        assert "0%, 60% {" in css


class TestSimpleBlocks:
    """画像・スペーサー等のブロックのテスト."""

    def test_top_image_empty(self):
        assert render_block(TopImageBlock(id="t")) == ""

    def test_top_image_link_optional(self):
        soup = _soup(render_block(TopImageBlock(id="t", image_url="https://img/top.jpg")))
        assert soup.find("a") is None
        assert soup.find("img")["src"] == "https://img/top.jpg"

    def test_banner_list_empty(self):
        assert render_block(BannerListBlock(id="b", header_html="<h2>x</h2>")) == ""

    def test_banner_list_single_column(self):
        soup = _soup(render_block(BannerListBlock(id="b", banners=(ImageItem("https://img/1.jpg"),))))
        assert soup.select_one(".banner-stack") is not None
        assert soup.select_one(".banner-grid") is None

    def test_banner_list_columns_and_header(self):
        html = render_block(BannerListBlock(id="b", banners=(ImageItem("https://img/1.jpg"),), layout="4", header_html="<h2>特集</h2>"))
        assert html.index("<h2>特集</h2>") < html.index("banner-grid")
        assert "repeat(4, 1fr)" in html

    def test_coupon_list_empty(self):
        assert render_block(CouponListBlock(id="c")) == ""

    def test_timer_banner_empty(self):
        assert render_block(TimerBannerBlock(id="t")) == ""

    def test_spacer_unwrapped(self):
        html = render_block(SpacerBlock(id="s", height=30))
        assert html == '<div class="spacer" style="height: 30px;"></div>'

    def test_spacer_height_clamped(self):
        assert "height: 200px" in render_block(SpacerBlock(id="s", height=999))
        assert "height: 10px" in render_block(SpacerBlock(id="s", height=1))


class TestIsDarkColor:
    """is_dark_color のテスト."""

    @pytest.mark.parametrize(
        ("color", "expected"),
        [("#333333", True), ("#000", True), ("#ffffff", False), ("#f5f5f5", False), ("", False), ("red", False)],
    )
    def test_colors(self, color, expected):
        assert is_dark_color(color) is expected
