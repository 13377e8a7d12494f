"""価格計算モジュール — 税込価格・値引きバッジ."""

from __future__ import annotations

import math

from salepage.config import TAX_EPSILON, TAX_RATE, TAX_THRESHOLD


def to_number(price_str: str) -> float | None:
    """カンマ区切りの価格文字列を数値に変換する. 数値でなければ None."""
    if price_str is None:
        return None
    text = str(price_str).replace(",", "").strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def calc_tax(price_str: str) -> str:
    """税抜価格文字列を税込の整数価格文字列に変換する.

    小数第1位 (誤差吸収のため +0.00001) が TAX_THRESHOLD 以上なら切り上げ、
    それ未満なら切り捨てる。数値として解釈できない文字列はそのまま返す。

    Args:
        price_str: 税抜価格 (例: "1,000")

    Returns:
        税込価格 (例: "1100")
    """
    if not price_str:
        return ""
    num = to_number(price_str)
    if num is None:
        return price_str

    tax_in = num * TAX_RATE
    integer_part = math.floor(tax_in)
    decimal_part = tax_in - integer_part
    if math.floor(decimal_part * 10 + TAX_EPSILON) >= TAX_THRESHOLD:
        return str(integer_part + 1)
    return str(integer_part)


def format_number(value: float) -> str:
    """3桁区切りで整形する (小数は最大3桁)."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_yen(price_str: str) -> str:
    """表示用に 3 桁区切りへ変換する. 数値でなければそのまま."""
    num = to_number(price_str)
    if num is None:
        return price_str
    return format_number(num)


def price_off(price: str, ref_price: str) -> float | None:
    """値引き額 (比較価格 − 販売価格) を返す. 値引きがなければ None."""
    sale = to_number(price)
    ref = to_number(ref_price)
    if sale is None or ref is None or ref <= sale:
        return None
    return ref - sale


def price_off_label(price: str, ref_price: str) -> str:
    """値引きバッジの文言. 値引きがなければ空文字."""
    amount = price_off(price, ref_price)
    if amount is None:
        return ""
    return f"{format_number(amount)}円OFF"
