"""indexflow 类型定义模块."""

from typing import Any, Dict, List

# JSON 对象类型
JSONDict = Dict[str, Any]

# ISM 策略动作类型
# 格式: [{动作名: 动作参数}, ...]，如 [{"rollover": {"min_index_age": "1d"}}]
ActionList = List[Dict[str, Any]]

# 请求查询参数类型
QueryParams = Dict[str, Any]

# 请求头类型
HeaderDict = Dict[str, str]
