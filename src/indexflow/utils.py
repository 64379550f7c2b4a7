"""通用工具函数模块.

提供 OpenSearch 时间/大小格式的校验与解析，以及索引通配模式到正则表达式的转换。
"""

import re


# 时间格式正则：数字 + 时间单位（s, m, h, d, w, M, y）
_TIME_PATTERN = re.compile(r"^(\d+)(s|m|h|d|w|M|y)$")

# 大小格式正则：数字 + 大小单位（b, kb, mb, gb, tb, pb）不区分大小写
_SIZE_PATTERN = re.compile(r"^(\d+)(b|kb|mb|gb|tb|pb)$", re.IGNORECASE)

# 可换算为固定秒数的时间单位；M（月）与 y（年）长度不固定，不参与换算
_TIME_UNIT_TO_SECONDS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def validate_time_format(value: str) -> bool:
    """校验值是否符合时间格式.

    Args:
        value: 待校验的时间格式字符串，如 "30d", "1h", "7d", "1M"

    Returns:
        True 表示格式合法，False 表示格式不合法

    Examples:
        >>> validate_time_format("30d")
        True
        >>> validate_time_format("ww5s")
        False
    """
    if not isinstance(value, str) or not value:
        return False
    return _TIME_PATTERN.match(value) is not None


def validate_size_format(value: str) -> bool:
    """校验值是否符合大小格式.

    支持的大小单位（不区分大小写）：b、kb、mb、gb、tb、pb。

    Args:
        value: 待校验的大小格式字符串，如 "10GB", "500mb"

    Returns:
        True 表示格式合法，False 表示格式不合法

    Examples:
        >>> validate_size_format("1gb")
        True
        >>> validate_size_format("abc")
        False
    """
    if not isinstance(value, str) or not value:
        return False
    return _SIZE_PATTERN.match(value) is not None


def parse_time_to_seconds(value: str) -> int:
    """将时间格式转换为秒数.

    用于计算迁移时的保留时间窗口。月（M）与年（y）虽能通过格式校验，
    但无法换算为固定秒数，因此视为不支持的单位。

    Args:
        value: 时间格式字符串，如 "6d", "120m", "1w"

    Returns:
        对应的秒数

    Raises:
        ValueError: 当格式不合法、单位不支持或结果为 0 时抛出

    Examples:
        >>> parse_time_to_seconds("6d")
        518400
        >>> parse_time_to_seconds("120m")
        7200
    """
    match = _TIME_PATTERN.match(value) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"无法解析的时间格式: {value!r}")

    amount = int(match.group(1))
    unit = match.group(2)
    if unit not in _TIME_UNIT_TO_SECONDS:
        raise ValueError(f"时间单位 {unit!r} 不支持换算为秒: {value!r}")

    seconds = amount * _TIME_UNIT_TO_SECONDS[unit]
    if seconds < 1:
        raise ValueError(f"时间 {value!r} 换算结果小于 1 秒")
    return seconds


def glob_to_regexp(pattern: str) -> str:
    """将索引通配模式转换为首尾锚定的正则表达式.

    仅 ``*`` 视为通配符，其余字符按字面量转义。

    Examples:
        >>> glob_to_regexp("verrazzano-*")
        '^verrazzano\\\\-.*$'
    """
    return "^" + ".*".join(re.escape(literal) for literal in pattern.split("*")) + "$"


def glob_matches(pattern: str, name: str) -> bool:
    """判断名称是否匹配索引通配模式."""
    return re.match(glob_to_regexp(pattern), name) is not None
