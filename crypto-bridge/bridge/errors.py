# -*- coding: utf-8 -*-
"""
errors.py
异常分类。请求边界（web.py）统一捕获并翻译成 HTTP 状态码 + JSON。
"""

from typing import Optional


class BridgeError(RuntimeError):
    """所有业务异常的基类"""


class UpstreamError(BridgeError):
    """上游新闻接口相关的失败；读路径据此走降级"""


class RateLimited(UpstreamError):
    """当日配额用完，未发起请求"""


class UpstreamUnavailable(UpstreamError):
    """网络错误 / 超时 / 非 2xx"""


class UpstreamMalformed(UpstreamError):
    """响应体不是可用的 JSON"""


class MalformedWebhook(BridgeError):
    """webhook payload 里没有任何可用字段"""


class ValidationError(BridgeError):
    """请求参数不合法（如币种超过上限），无副作用"""


class ServiceUnavailable(BridgeError):
    """既没有缓存也没有链上事件可返回"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
