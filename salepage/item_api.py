"""楽天市場 商品検索API クライアント.

商品管理番号から商品名・価格・URL・画像を引く補助機能。
ページ生成には使わない。RAKUTEN_APP_ID が未設定なら何もしない。
"""

from __future__ import annotations

import logging

import requests

from salepage.config import ITEM_SEARCH_URL, RAKUTEN_APP_ID, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


def fetch_item(item_code: str, app_id: str | None = None) -> dict | None:
    """商品検索APIで最初にヒットした商品を返す.

    Args:
        item_code: 商品管理番号
        app_id: アプリケーションID (省略時は環境変数 RAKUTEN_APP_ID)

    Returns:
        {"name", "price", "url", "imageUrl"}。見つからない・失敗時は None。
    """
    app_id = app_id or RAKUTEN_APP_ID
    if not item_code:
        return None
    if not app_id:
        logger.error("RAKUTEN_APP_ID が設定されていません")
        return None

    params = {"applicationId": app_id, "keyword": item_code, "hits": 1, "format": "json"}
    try:
        resp = requests.get(ITEM_SEARCH_URL, params=params, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("商品検索API 失敗: code=%s, error=%s", item_code, e)
        return None

    items = data.get("Items") or []
    if not items:
        logger.info("商品検索API 該当なし: code=%s", item_code)
        return None

    item = items[0].get("Item", items[0])
    images = item.get("mediumImageUrls") or []
    image = images[0] if images else {}
    return {
        "name": item.get("itemName", ""),
        "price": item.get("itemPrice", ""),
        "url": item.get("itemUrl", ""),
        "imageUrl": image.get("imageUrl", "") if isinstance(image, dict) else str(image),
    }
