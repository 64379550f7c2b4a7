"""旧索引分类与保留时间计算工具函数模块."""

from __future__ import annotations

import logging
import re

from ..config import ReindexConfig
from ..models import IndexManagementPolicy
from ..utils import glob_to_regexp, parse_time_to_seconds
from .exceptions import RetentionParseError
from .models import IndexClass, LegacyIndex

logger = logging.getLogger(__name__)


def is_system_index(index: str, config: ReindexConfig) -> bool:
    """判断旧索引是否为系统索引.

    以下三类均为系统索引：
    - ``<prefix>-namespace-<ns>`` 且 ns 在系统命名空间白名单中
    - 名称以 ``<prefix>-systemd-journal`` 开头
    - 名称以 ``<prefix>-logstash-`` 开头

    命名空间索引只按白名单判断。
    """
    if index.startswith(config.namespace_index_prefix):
        return index[len(config.namespace_index_prefix):] in config.system_namespaces
    return index.startswith(config.journal_index) or index.startswith(
        config.logstash_index_prefix
    )


def classify_index(index: str, config: ReindexConfig) -> IndexClass | None:
    """对旧索引分类，不属于任何旧索引形式时返回 None."""
    if is_system_index(index, config):
        return IndexClass.SYSTEM
    if index.startswith(config.namespace_index_prefix):
        return IndexClass.APPLICATION
    return None


def get_system_indices(indices: list[str], config: ReindexConfig) -> list[str]:
    system_indices = [index for index in indices if is_system_index(index, config)]
    logger.debug(f"找到系统索引: {system_indices}")
    return system_indices


def get_application_indices(indices: list[str], config: ReindexConfig) -> list[str]:
    app_indices = [
        index
        for index in indices
        if classify_index(index, config) is IndexClass.APPLICATION
    ]
    logger.debug(f"找到应用索引: {app_indices}")
    return app_indices


def data_stream_for(index: str, index_class: IndexClass, config: ReindexConfig) -> str:
    """计算旧索引的目标数据流名称.

    Examples:
        >>> data_stream_for("verrazzano-namespace-bobs-books", IndexClass.APPLICATION, ReindexConfig())
        'verrazzano-application-bobs-books'
    """
    if index_class is IndexClass.SYSTEM:
        return config.data_stream_name
    return index.replace(
        config.namespace_index_prefix, config.application_stream_prefix, 1
    )


def to_legacy_index(index: str, config: ReindexConfig) -> LegacyIndex | None:
    index_class = classify_index(index, config)
    if index_class is None:
        return None
    return LegacyIndex(
        name=index,
        index_class=index_class,
        data_stream=data_stream_for(index, index_class, config),
    )


def get_retention_seconds(
    policies: list[IndexManagementPolicy], data_stream: str
) -> int | None:
    """计算迁移到数据流时的保留时间窗口.

    取第一个索引模式匹配数据流名称的策略，将其 min_index_age 换算为秒数；
    没有匹配的策略时返回 None，表示迁移全部文档。

    Raises:
        RetentionParseError: 当匹配策略的 min_index_age 无法换算时抛出

    Examples:
        >>> get_retention_seconds(
        ...     [IndexManagementPolicy("p", "verrazzano-*", min_index_age="6d")],
        ...     "verrazzano-system",
        ... )
        518400
    """
    for policy in policies:
        if re.match(glob_to_regexp(policy.index_pattern), data_stream) is None:
            continue
        try:
            return parse_time_to_seconds(policy.effective_min_index_age)
        except ValueError as e:
            raise RetentionParseError(
                f"计算策略 '{policy.policy_name}' 的保留时间失败: {e}"
            ) from e
    return None
