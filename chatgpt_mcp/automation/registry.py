"""目标应用的 UI 元素定位配置。

本模块将“流程中使用的逻辑元素”与“System Events 中的具体元素路径”解耦：

- 逻辑元素：输入框、输出区域、会话按钮所在的容器。
- 元素路径：例如 "text field 1"、"group 1 of group 1 of window 1"。

应用升级导致窗口结构变化时，只需要在这里调整路径。"""

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class TargetConfig:
    """单个目标应用的元素定位配置。"""

    app_name: str
    process_name: str
    container: str
    input_element: str
    output_element: str

    @property
    def input_path(self) -> str:
        return f"{self.input_element} of {self.container}"

    @property
    def output_path(self) -> str:
        return f"{self.output_element} of {self.container}"


# ChatGPT macOS 桌面版
CHATGPT_CONFIG = TargetConfig(
    app_name="ChatGPT",
    process_name="ChatGPT",
    container="group 1 of group 1 of window 1",
    input_element="text field 1",
    output_element="text area 2",
)


TARGET_REGISTRY: Mapping[str, TargetConfig] = {
    "chatgpt": CHATGPT_CONFIG,
}


def get_target_config(name: str) -> TargetConfig:
    """根据名称获取 TargetConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in TARGET_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown target application: {name!r}")
