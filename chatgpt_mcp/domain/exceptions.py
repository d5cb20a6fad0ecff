"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在工具分发层统一捕获并转换为 "Error: ..." 文本结果。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "TARGET_UNREACHABLE"）。
        message: 用户可读错误信息。
        extra: 其他补充字段（例如 script、returncode 等）。
    """

    def __init__(self, code: str, message: str, **extra):
        self.code = code
        self.message = message
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """工具参数校验失败。"""


class AutomationError(BusinessError):
    """AppleScript / System Events 调用失败（脚本报错、超时、osascript 不存在）。"""


class UnreachableTargetError(AutomationError):
    """目标应用无法找到、启动或激活，本次调用直接失败。"""


class InputDeliveryError(AutomationError):
    """聚焦输入框、粘贴或提交失败。剪贴板仍会被恢复。"""


class EnumerationError(AutomationError):
    """读取会话列表失败，由 ConversationLister 降级为哨兵结果。"""
