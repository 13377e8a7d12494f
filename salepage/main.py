"""楽天セール特設ページ作成ツール — メインエントリーポイント.

コマンド:
  build   プロジェクトJSON → 特設ページHTML (--csv 指定時は商品情報を更新してから生成)
  refresh プロジェクトJSON + 商品CSV → 商品情報を更新したプロジェクトJSON
  report  プロジェクトJSON → 配置商品一覧CSV
  lookup  商品管理番号 → 商品検索APIの結果 (JSON)

-o 省略時は標準出力に書き出す。
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from salepage.catalog import load_price_list
from salepage.config import LOG_DIR, SHOPS
from salepage.document import ProductLookupError, refresh_products
from salepage.generator import generate_html
from salepage.item_api import fetch_item
from salepage.models import Document
from salepage.project import ProjectLoadError, export_product_report, load_project, to_json

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """ロギングの初期設定."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / f"salepage_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def _read_project(path: str) -> Document:
    doc = load_project(Path(path).read_text(encoding="utf-8"))
    shop_name = SHOPS.get(doc.shop_id)
    if doc.shop_id and shop_name is None:
        logger.warning("未登録の店舗IDです: %s", doc.shop_id)
    logger.info("プロジェクト読込: %s (店舗=%s, ブロック=%d 件)",
                path, shop_name or doc.shop_id or "未選択", len(doc.blocks))
    return doc


def _refresh(doc: Document, csv_path: str) -> Document:
    rows = load_price_list(csv_path)
    if not doc.shop_id:
        raise ProductLookupError("店舗を選択してください")
    return refresh_products(doc, rows)


def _write(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        logger.info("書き出し完了: %s", output)
    else:
        sys.stdout.write(text)


def cmd_build(args: argparse.Namespace) -> None:
    doc = _read_project(args.project)
    if args.csv:
        doc = _refresh(doc, args.csv)
    _write(generate_html(doc), args.output)


def cmd_refresh(args: argparse.Namespace) -> None:
    doc = _refresh(_read_project(args.project), args.csv)
    _write(to_json(doc), args.output)


def cmd_report(args: argparse.Namespace) -> None:
    _write(export_product_report(_read_project(args.project)), args.output)


def cmd_lookup(args: argparse.Namespace) -> None:
    item = fetch_item(args.code, app_id=args.app_id)
    if item is None:
        raise ProductLookupError(f"商品が見つかりませんでした: {args.code}")
    _write(json.dumps(item, ensure_ascii=False, indent=2) + "\n", args.output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="salepage", description="楽天セール特設ページ作成ツール")
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="特設ページHTMLを生成する")
    build.add_argument("project", help="プロジェクトJSON")
    build.add_argument("--csv", help="商品CSV (dl-normal-item.csv)。指定時は商品情報を更新してから生成")
    build.add_argument("-o", "--output", help="出力先 (省略時は標準出力)")
    build.set_defaults(func=cmd_build)

    refresh = sub.add_parser("refresh", help="配置済み商品の情報を商品CSVで更新する")
    refresh.add_argument("project", help="プロジェクトJSON")
    refresh.add_argument("--csv", required=True, help="商品CSV (dl-normal-item.csv)")
    refresh.add_argument("-o", "--output", help="出力先 (省略時は標準出力)")
    refresh.set_defaults(func=cmd_refresh)

    report = sub.add_parser("report", help="配置商品一覧CSVを出力する")
    report.add_argument("project", help="プロジェクトJSON")
    report.add_argument("-o", "--output", help="出力先 (省略時は標準出力)")
    report.set_defaults(func=cmd_report)

    lookup = sub.add_parser("lookup", help="商品検索APIで商品情報を取得する")
    lookup.add_argument("code", help="商品管理番号")
    lookup.add_argument("--app-id", help="アプリケーションID (省略時は環境変数 RAKUTEN_APP_ID)")
    lookup.add_argument("-o", "--output", help="出力先 (省略時は標準出力)")
    lookup.set_defaults(func=cmd_lookup)

    return parser


def run(argv: list[str] | None = None) -> int:
    """メイン処理."""
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        args.func(args)
    except (ProductLookupError, ProjectLoadError, OSError, UnicodeDecodeError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(run())
