"""表示用住所の整形"""
import re

_DOUBLE_COMMA = re.compile(r",(?:\s*,)+")
_LEADING_COMMA = re.compile(r"^\s*,\s*")
_TRAILING_COMMA = re.compile(r"\s*,\s*$")

SEPARATOR = ", "
MAX_PARTS = 4


def condense_parts(parts: list[str]) -> str:
    """
    住所要素を "{先頭}, {末尾から3番目}, {末尾}" に縮約

    「通り, 市, 国」のおおよその近似であり、ロケールや
    プロバイダーの形式によっては意味的に正しくならない。
    """
    return SEPARATOR.join((parts[0], parts[-3], parts[-1]))


def format_address(address: str) -> str:
    """
    逆ジオコーディング結果の住所を整形

    - 連続したカンマ、先頭・末尾のカンマを除去
    - 要素が4つを超える場合は3要素に縮約

    同じ文字列に繰り返し適用しても結果は変わらない。

    Args:
        address: 住所文字列

    Returns:
        str: 整形済み住所
    """
    formatted = _DOUBLE_COMMA.sub(",", address)
    formatted = _LEADING_COMMA.sub("", formatted)
    formatted = _TRAILING_COMMA.sub("", formatted).strip()

    parts = formatted.split(SEPARATOR)
    if len(parts) > MAX_PARTS:
        return condense_parts(parts)

    return formatted
