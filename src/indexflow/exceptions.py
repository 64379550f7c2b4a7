"""indexflow 异常定义模块."""


class IndexFlowError(Exception):
    """indexflow 基础异常类."""

    pass


class ConfigurationError(IndexFlowError):
    """配置校验异常.

    当实例声明或运行配置不合法时抛出，例如数据流名称为空、副本数为负数等。
    """

    pass
