"""ISM 策略管理异常定义模块."""

from ..exceptions import IndexFlowError


class PolicyError(IndexFlowError):
    """ISM 策略管理基础异常类."""

    pass


class PolicyValidationError(PolicyError):
    """策略文档校验异常.

    当策略文档缺少必需字段或结构不合法时抛出。
    """

    pass


class PolicyFetchError(PolicyError):
    """获取策略异常.

    当按名称获取策略返回 200/404 以外的状态码时抛出。
    """

    pass


class PolicyConflictError(PolicyError):
    """乐观并发冲突异常.

    更新策略时 seq_no/primary_term 前置条件不满足时抛出，调用方应重新读取后再试。
    """

    pass


class PolicyWriteError(PolicyError):
    """写入策略异常."""

    pass


class PolicyAttachError(PolicyError):
    """将策略应用到已有索引失败时抛出."""

    pass


class DefaultPolicyError(PolicyError):
    """默认策略加载或同步异常."""

    pass
