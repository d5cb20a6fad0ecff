"""领域层模型与异常。

包含：
- models: Request 以及回复检测状态机的 WatchState / WatchSample / WatchResult。
- exceptions: 业务异常类型定义。
"""
