"""project モジュールのユニットテスト."""

import json
from datetime import date
from pathlib import Path

import pytest

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
from salepage.project import (
    ProjectLoadError,
    dump_project,
    export_product_report,
    load_project,
    project_filename,
    to_json,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def _product(code, comment=""):
    return Product(code=code, name=f"商品{code}", price="1100", ref_price="2200",
                   image_url="https://img", url=f"https://item/{code}/", comment=comment)


@pytest.fixture
def doc():
    return Document(
        shop_id="goodlifeshop",
        blocks=(
            TopImageBlock(id="t", image_url="https://img/top.jpg"),
            BannerListBlock(id="b", banners=(ImageItem("https://img/1.jpg", "https://l"),), layout="2", header_html="<h2>x</h2>"),
            CouponListBlock(id="c", coupons=(ImageItem("https://img/c.jpg"),)),
            CustomHtmlBlock(id="h", content="<p>hi</p>"),
            SpacerBlock(id="s", height=120),
            TimerBannerBlock(id="tb", banners=(TimerBannerItem("https://img/t.jpg", "", "2026-01-01T00:00", ""),)),
            ProductGridBlock(
                id="g",
                title="半額",
                hero_products=(_product("h1", comment="目玉"),),
                grid_products=(_product("a"), _product("b", comment="人気")),
                name_filter="【送料無料】",
                mobile_comment_show=False,
                mobile_comment_duration=2.5,
            ),
        ),
        popup_image="https://img/popup.jpg",
        popup_link="https://l/popup",
    )


class TestRoundTrip:
    """保存 → 読込のテスト."""

    def test_round_trip(self, doc):
        assert load_project(to_json(doc, saved_at="2026-10-19T10:00:00")) == doc

    def test_dump_shape(self, doc):
        data = dump_project(doc, saved_at="2026-10-19T10:00:00")
        assert list(data) == ["shopId", "blocks", "popupImage", "popupLink", "savedAt"]
        assert data["savedAt"] == "2026-10-19T10:00:00"
        assert [b["type"] for b in data["blocks"]] == [
            "top_image", "banner_list", "coupon_list", "custom_html", "spacer", "timer_banner", "product_grid",
        ]
        grid = data["blocks"][-1]
        assert grid["heroProducts"][0]["refPrice"] == "2200"
        assert grid["mobileCommentShow"] is False

    def test_json_keeps_japanese(self, doc):
        assert "半額" in to_json(doc)


class TestMigration:
    """旧形式の読込のテスト."""

    def test_legacy_fixture(self):
        doc = load_project(_load_fixture("legacy_project.json"))

        timer, grid, banner = doc.blocks
        assert timer.banners == (
            TimerBannerItem(
                image_url="https://image.rakuten.co.jp/marumoto/cabinet/timer.jpg",
                link_url="https://item.rakuten.co.jp/marumoto/",
                start_time="2025-12-04T20:00",
                end_time="2025-12-11T01:59",
            ),
        )
        assert [p.code for p in grid.hero_products] == ["sandal-01"]
        assert grid.hero_products[0].comment == "人気No.1"
        assert grid.hero_banners == (ImageItem("https://image.rakuten.co.jp/marumoto/cabinet/hero.jpg", ""),)
        assert banner.layout == "1"
        assert banner.header_html == ""

    def test_defaults_backfilled(self):
        doc = load_project(_load_fixture("legacy_project.json"))
        grid = doc.blocks[1]

        assert grid.name_filter == ""
        assert grid.mobile_comment_show is True
        assert grid.mobile_comment_duration == 3
        assert grid.mobile_comment_interval == 1
        assert grid.bottom_button_bg_color == "#bf0000"
        assert grid.bottom_button_text_color == "#ffffff"

    @pytest.mark.parametrize("value", ["false", "0", 0, 1, "yes"])
    def test_non_boolean_comment_show_uses_default(self, value):
        doc = load_project({"blocks": [{"id": "g", "type": "product_grid", "mobileCommentShow": value}]})
        assert doc.blocks[0].mobile_comment_show is True

    def test_boolean_comment_show_kept(self):
        doc = load_project({"blocks": [{"id": "g", "type": "product_grid", "mobileCommentShow": False}]})
        assert doc.blocks[0].mobile_comment_show is False

    def test_null_hero_product(self):
        data = {"blocks": [{"id": "g", "type": "product_grid", "heroProduct": None}]}
        assert load_project(data).blocks[0].hero_products == ()

    def test_ids_kept(self):
        doc = load_project(_load_fixture("legacy_project.json"))
        assert [b.id for b in doc.blocks] == ["timer-1", "grid-1", "banner-1"]

    def test_missing_id_assigned(self):
        doc = load_project({"blocks": [{"type": "spacer"}, {"type": "spacer"}]})
        assert doc.blocks[0].id and doc.blocks[0].id != doc.blocks[1].id


class TestLoadErrors:
    """読込エラーのテスト."""

    def test_invalid_json(self):
        with pytest.raises(ProjectLoadError):
            load_project("{not json")

    def test_not_object(self):
        with pytest.raises(ProjectLoadError):
            load_project("[1, 2]")

    def test_unknown_block_type(self):
        with pytest.raises(ProjectLoadError):
            load_project(json.dumps({"blocks": [{"id": "x", "type": "video"}]}))

    def test_duplicate_ids(self):
        with pytest.raises(ProjectLoadError):
            load_project({"blocks": [{"id": "x", "type": "spacer"}, {"id": "x", "type": "spacer"}]})


class TestReport:
    """商品一覧レポートのテスト."""

    def test_rows(self, doc):
        lines = export_product_report(doc).splitlines()

        assert lines[0] == "ブロック名,種別,商品管理番号,商品名,価格(税込),URL"
        assert lines[1] == "半額,hero,h1,商品h1,1100,https://item/h1/"
        assert lines[2] == "半額,normal,a,商品a,1100,https://item/a/"
        assert len(lines) == 4

    def test_empty(self):
        assert export_product_report(Document()).splitlines() == ["ブロック名,種別,商品管理番号,商品名,価格(税込),URL"]


class TestProjectFilename:
    def test_filename(self):
        assert project_filename(date(2026, 10, 19)) == "rakuten-sale-project_2026-10-19.json"
