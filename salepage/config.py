"""設定モジュール — 環境変数・定数定義."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- 店舗 ---
SHOPS = {
    "goodlifeshop": "グットライフショップ",
    "marumoto": "まるげん",
}

# --- 楽天 ---
RAKUTEN_DOMAIN: str = os.getenv("RAKUTEN_DOMAIN") or "rakuten.co.jp"
IMAGE_URL_TEMPLATE = "https://image.{domain}/{shop_id}/cabinet{path}"
ITEM_URL_TEMPLATE = "https://item.{domain}/{shop_id}/{code}/"
PLACEHOLDER_IMAGE_URL = "https://placehold.jp/150x150.png?text=NoImage"
DEFAULT_PRODUCT_NAME = "名称未設定"

# --- 商品API (任意) ---
RAKUTEN_APP_ID: str = os.getenv("RAKUTEN_APP_ID", "")
ITEM_SEARCH_URL = "https://app.rakuten.co.jp/services/api/IchibaItem/Search/20170706"
REQUEST_TIMEOUT = 15  # 秒

# --- 税計算 ---
TAX_RATE = 1.1
TAX_THRESHOLD = 1
TAX_EPSILON = 0.00001

# --- CSV 列名 (dl-normal-item.csv) ---
COL_CODE = "商品管理番号（商品URL）"
COL_NAME = "商品名"
COL_PRICE = "通常購入販売価格"
COL_PRICE_FALLBACK = "販売価格"
COL_REF_PRICE = "表示価格"
COL_IMAGE_PATH = "商品画像パス1"
CSV_ENCODING = "cp932"

# --- ブロック初期値 ---
DEFAULT_GRID_TITLE = "カテゴリ名"
DEFAULT_BG_COLOR = "#ffffff"
DEFAULT_BUTTON_BG_COLOR = "#bf0000"
DEFAULT_BUTTON_TEXT_COLOR = "#ffffff"
DEFAULT_BUTTON_TEXT = "もっと見る"
DEFAULT_COMMENT_DURATION = 3  # 秒
DEFAULT_COMMENT_INTERVAL = 1  # 秒
DEFAULT_SPACER_HEIGHT = 50
SPACER_MIN_HEIGHT = 10
SPACER_MAX_HEIGHT = 200
BANNER_LAYOUTS = ("1", "2", "3", "4")

# --- 生成HTML ---
PAGE_TITLE = "楽天スーパーセール特設ページ"
POPUP_MAX_VIEWS = 3
MOBILE_BREAKPOINT = 1024  # px
# (文字数の下限, フォントサイズ) — 上から順に判定
TEXT_FIT_STEPS = (
    (20, "14px"),
    (14, "18px"),
    (10, "20px"),
)

# --- プロジェクトファイル ---
PROJECT_FILE_PREFIX = "rakuten-sale-project_"

# --- ログ ---
LOG_DIR = Path(os.getenv("SALEPAGE_LOG_DIR") or _PROJECT_ROOT / "logs")
