"""可视化服务索引模式改写工具模块.

旧索引迁移到数据流后，把已保存索引模式中指向旧索引的子模式改写为对应的数据流：
- 系统索引子模式改写为系统数据流名称
- ``<prefix>-namespace-<ns>`` 形式的应用索引子模式改写为 ``<prefix>-application-<ns>``
- 不带共享前缀的子模式、通配全部的 ``<prefix>-*`` 以及不对应任何旧索引形式的子模式保持不变
"""

from __future__ import annotations

import logging
import re

from ..config import ReindexConfig
from ..gateway import ClusterGateway, GatewayTransportError
from ..migration.utils import is_system_index
from ..utils import glob_to_regexp
from .exceptions import (
    PatternCreateError,
    PatternDeleteError,
    PatternQueryError,
    PatternUpdateError,
)
from .models import INDEX_PATTERN_TYPE, IndexPatternAttributes, SavedObject, SavedObjectPage

logger = logging.getLogger(__name__)

SAVED_OBJECTS_PATH = "/api/saved_objects"
XSRF_HEADERS = {"osd-xsrf": "true"}
DEFAULT_PAGE_SIZE = 100


def is_system_pattern(regexp: str, config: ReindexConfig) -> bool:
    """判断锚定正则是否匹配任一系统旧索引名称."""
    candidates = [config.logstash_index_prefix, config.journal_index]
    candidates.extend(
        f"{config.namespace_index_prefix}{namespace}" for namespace in config.system_namespaces
    )
    return any(re.match(regexp, candidate) for candidate in candidates)


def construct_updated_pattern(original: str, config: ReindexConfig) -> str:
    """计算索引模式标题改写后的结果.

    Args:
        original: 原标题，逗号分隔的通配子模式
        config: 迁移配置

    Returns:
        改写后的标题；所有子模式都被吸收时返回空字符串

    Examples:
        >>> construct_updated_pattern("verrazzano-namespace-bobs-books", ReindexConfig())
        'verrazzano-application-bobs-books'
        >>> construct_updated_pattern("verrazzano-namespace-*", ReindexConfig())
        'verrazzano-system,verrazzano-application-*'
    """
    prefix = f"{config.index_prefix}-"
    universal = f"{config.index_prefix}-*"
    namespace_prefix = config.namespace_index_prefix
    application_prefix = config.application_stream_prefix

    updated: list[str] = []

    def add(pattern: str) -> None:
        if pattern not in updated:
            updated.append(pattern)

    for pattern in original.split(","):
        if not pattern.startswith(prefix) or pattern == universal:
            updated.append(pattern)
            continue

        regexp = glob_to_regexp(pattern)
        system_match = is_system_pattern(regexp, config) or is_system_index(pattern, config)
        if system_match:
            add(config.data_stream_name)

        if re.match(regexp, namespace_prefix):
            add(f"{application_prefix}*")
        elif pattern.startswith(namespace_prefix):
            # 不含通配符且命中系统索引时，只对应系统数据流
            if system_match and "*" not in pattern:
                continue
            add(pattern.replace(namespace_prefix, application_prefix, 1))
        elif not system_match:
            # 不对应任何旧索引形式的前缀子模式原样保留，不丢弃
            updated.append(pattern)

    return ",".join(updated)


class DashboardsPatternRewriter:
    """已保存索引模式改写器.

    Args:
        gateway: 可视化服务网关
        config: 迁移配置，默认从环境变量读取
        page_size: 分页查询的每页数量

    Example:
        >>> rewriter = DashboardsPatternRewriter(gateway)
        >>> rewriter.rewrite_patterns()
    """

    def __init__(
        self,
        gateway: ClusterGateway,
        config: ReindexConfig | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        if page_size < 1:
            raise ValueError(f"page_size 必须 >= 1，当前值: {page_size}")
        self.gateway = gateway
        self.config = config or ReindexConfig.from_env()
        self.page_size = page_size

    @property
    def default_index_patterns(self) -> list[str]:
        return [self.config.data_stream_name, f"{self.config.index_prefix}-application*"]

    # ============================================================
    # 查询
    # ============================================================

    def find_patterns(self, search: str | None = None, per_page: int | None = None) -> list[SavedObject]:
        """分页获取全部索引模式，直到累计数量达到服务端报告的总数.

        Raises:
            PatternQueryError: 查询失败时抛出
        """
        saved_objects: list[SavedObject] = []
        page = 1
        while True:
            params = {
                "type": INDEX_PATTERN_TYPE,
                "fields": "title",
                "per_page": per_page or self.page_size,
                "page": page,
            }
            if search:
                params["search"] = search
            try:
                response = self.gateway.request(
                    "GET", f"{SAVED_OBJECTS_PATH}/_find", params=params
                )
            except GatewayTransportError as e:
                raise PatternQueryError(f"查询索引模式失败: {e}") from e
            if response.status != 200:
                raise PatternQueryError(f"查询索引模式失败，状态码: {response.status}")

            result = SavedObjectPage.from_dict(response.json_object())
            saved_objects.extend(result.saved_objects)
            if len(saved_objects) >= result.total or not result.saved_objects:
                break
            page += 1
        return saved_objects

    # ============================================================
    # 改写
    # ============================================================

    def rewrite_patterns(self) -> int:
        """改写所有指向旧索引的索引模式.

        改写后的标题已被其他对象占用时删除当前对象，否则原地更新标题。

        Returns:
            被更新或删除的对象数量

        Raises:
            PatternQueryError / PatternUpdateError / PatternDeleteError: 任一请求失败时抛出
        """
        saved_objects = self.find_patterns()
        existing_titles = {saved_object.title: saved_object for saved_object in saved_objects}
        changed = 0
        for saved_object in saved_objects:
            updated_pattern = construct_updated_pattern(saved_object.title, self.config)
            if not updated_pattern or updated_pattern == saved_object.title:
                continue
            if updated_pattern in existing_titles:
                self.delete_pattern(saved_object)
            else:
                self.update_pattern(saved_object, updated_pattern)
                existing_titles[updated_pattern] = saved_object
            changed += 1
        return changed

    def update_pattern(self, saved_object: SavedObject, title: str) -> None:
        logger.info(f"将可视化服务中的索引模式 '{saved_object.title}' 替换为 '{title}'")
        try:
            response = self.gateway.request(
                "PUT",
                f"{SAVED_OBJECTS_PATH}/{INDEX_PATTERN_TYPE}/{saved_object.id}",
                body={"attributes": {"title": title}},
                headers=XSRF_HEADERS,
            )
        except GatewayTransportError as e:
            raise PatternUpdateError(f"更新索引模式 '{saved_object.title}' 失败: {e}") from e
        if response.status != 200:
            raise PatternUpdateError(
                f"更新索引模式 '{saved_object.title}' 失败，状态码: {response.status}"
            )
        logger.debug(f"更新索引模式响应: {response.body}")
        saved_object.title = title

    def delete_pattern(self, saved_object: SavedObject) -> None:
        logger.info(f"删除可视化服务中的重复索引模式 '{saved_object.title}'")
        try:
            response = self.gateway.request(
                "DELETE",
                f"{SAVED_OBJECTS_PATH}/{INDEX_PATTERN_TYPE}/{saved_object.id}",
                headers=XSRF_HEADERS,
            )
        except GatewayTransportError as e:
            raise PatternDeleteError(f"删除索引模式 '{saved_object.title}' 失败: {e}") from e
        if response.status != 200:
            raise PatternDeleteError(
                f"删除索引模式 '{saved_object.title}' 失败，状态码: {response.status}"
            )

    # ============================================================
    # 默认索引模式
    # ============================================================

    def create_default_index_patterns(self) -> list[str]:
        """创建缺失的默认索引模式.

        Returns:
            新创建的索引模式标题列表

        Raises:
            PatternQueryError: 查询已有索引模式失败时抛出
            PatternCreateError: 批量创建失败时抛出
        """
        defaults = self.default_index_patterns
        search = " or ".join(pattern.replace("*", "\\*") for pattern in defaults)
        existing = {
            saved_object.title
            for saved_object in self.find_patterns(search=search, per_page=50)
            if saved_object.title in defaults
        }
        missing = [pattern for pattern in defaults if pattern not in existing]
        if not missing:
            return []

        logger.info(f"创建默认索引模式: {missing}")
        payload = [IndexPatternAttributes(title).to_saved_object() for title in missing]
        try:
            response = self.gateway.request(
                "POST",
                f"{SAVED_OBJECTS_PATH}/_bulk_create",
                body=payload,
                headers=XSRF_HEADERS,
            )
        except GatewayTransportError as e:
            logger.error(f"批量创建索引模式失败: {e}")
            raise PatternCreateError(f"批量创建默认索引模式失败: {e}") from e
        if response.status != 200:
            raise PatternCreateError(
                f"批量创建默认索引模式失败，状态码: {response.status}"
            )
        return missing
