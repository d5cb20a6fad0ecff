"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
所有时间相关的配置项统一使用毫秒（osascript 超时除外，单位为秒）。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHATGPT_MCP_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 目标应用 ----
    app_name: str = Field(default="ChatGPT", description="被自动化的桌面应用名称（同时也是进程名）")
    new_chat_label: str = Field(
        default="New chat",
        description="侧边栏中“新建会话”按钮的标签，列出会话时会被排除",
    )

    # ---- 限流 ----
    rate_limit_interval_ms: int = Field(
        default=120000,
        ge=0,
        description="两次 ask 请求之间的最小间隔（毫秒），可被 delay_ms 覆盖",
    )

    # ---- 回复完成检测 ----
    poll_interval_ms: int = Field(default=3000, ge=1, description="轮询输出区域的间隔（毫秒）")
    stable_samples: int = Field(
        default=3,
        ge=1,
        le=100,
        description="输出长度连续不变多少次后视为回复完成",
    )
    max_wait_ms: int = Field(default=120000, ge=0, description="等待回复的最长时间（毫秒）")
    response_grace_ms: int = Field(default=2000, ge=0, description="发送后开始轮询前的等待时间（毫秒）")

    # ---- UI 自动化等待 ----
    launch_settle_ms: int = Field(default=2000, ge=0, description="启动应用后的等待时间（毫秒）")
    activate_settle_ms: int = Field(default=1000, ge=0, description="激活窗口后的等待时间（毫秒）")
    selection_settle_ms: int = Field(default=1000, ge=0, description="点击会话后的等待时间（毫秒）")
    focus_settle_ms: int = Field(default=500, ge=0, description="点击输入框后的等待时间（毫秒）")
    osascript_timeout_s: float = Field(default=30.0, ge=1.0, description="单次 osascript 调用超时（秒）")

    # ---- 日志 ----
    log_dir: str = Field(
        default_factory=lambda: str(Path.home() / "Library" / "Logs" / "chatgpt_mcp"),
        description="日志目录（MCP 宿主的工作目录可能只读，默认使用用户目录下的绝对路径）",
    )
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("app_name")
    @classmethod
    def validate_app_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("app_name must not be blank")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = (v or "INFO").upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v!r}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
