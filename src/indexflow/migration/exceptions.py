"""数据流迁移异常定义模块."""

from ..exceptions import IndexFlowError


class MigrationError(IndexFlowError):
    """数据流迁移基础异常类."""

    pass


class TemplateWaitTimeoutError(MigrationError):
    """等待数据流索引模板超时异常."""

    pass


class RetentionParseError(MigrationError):
    """保留时间解析异常.

    当匹配策略的 min_index_age 无法换算为秒数时抛出。
    """

    pass


class IndexListError(MigrationError):
    """获取索引列表失败时抛出."""

    pass


class ReindexError(MigrationError):
    """重建索引到数据流失败时抛出."""

    pass


class IndexDeleteError(MigrationError):
    """删除旧索引失败时抛出."""

    pass
