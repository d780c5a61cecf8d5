"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
HTTP 层按 http_status 统一转换为 {"error": message} 响应。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "BAD_REQUEST"）。
        message: 用户可读错误信息，会原样返回给调用方。
        http_status: 映射到 HTTP 时使用的状态码。
        extra: 其他补充字段（例如上游原始响应）。
    """

    default_status = 400

    def __init__(self, code: str, message: str, http_status: Optional[int] = None, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status if http_status is not None else self.default_status
        self.extra = extra
        super().__init__(message)


class ConfigurationError(BusinessError):
    """服务端缺少必要配置（如 API 密钥），只影响当前请求。"""

    default_status = 500


class BadRequest(BusinessError):
    """客户端请求体格式错误或字段不合法。"""

    default_status = 400


class PayloadTooLarge(BusinessError):
    default_status = 413


class Forbidden(BusinessError):
    """静态路径试图逃逸根目录。"""

    default_status = 403


class NotFound(BusinessError):
    default_status = 404


class MethodNotAllowed(BusinessError):
    default_status = 405


class LengthRequired(BusinessError):
    """请求体没有 Content-Length（例如 chunked 编码），无法按上限读取。"""

    default_status = 411


class UpstreamTimeout(BusinessError):
    """上游接口在硬超时内未返回。"""

    default_status = 504


class UpstreamError(BusinessError):
    """上游返回非 2xx，http_status 为上游原始状态码。"""

    default_status = 502


class BadGateway(BusinessError):
    """上游不可达或返回了无法解析的响应体。"""

    default_status = 502


class InternalError(BusinessError):
    default_status = 500


class RelayClientError(BusinessError):
    """客户端访问中继失败（网络错误、非 2xx 或响应格式错误）。"""

    default_status = 502
