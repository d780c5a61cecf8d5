"""配置管理模块。

加载顺序：进程环境变量 > .env（启动时写入环境变量，不覆盖已有值）> config.yaml。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_relay.config.env_utils import load_env_file


PACKAGE_DIR = Path(__file__).resolve().parents[1]


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("RELAY_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        PACKAGE_DIR.parent / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if path in seen:
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
    """中继服务端与桌面客户端共用的配置。"""

    # ---- 上游 OpenAI 接口 ----
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API 密钥")
    openai_model: str = Field(default="gpt-3.5-turbo", description="转发时使用的固定模型名")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI 兼容接口的基础 URL",
    )
    http_timeout: float = Field(default=60.0, gt=0, description="上游请求硬超时（秒）")

    # ---- HTTP 服务 ----
    host: str = Field(default="0.0.0.0", description="监听地址")
    port: int = Field(default=3000, ge=0, le=65535, description="监听端口")
    max_body_bytes: int = Field(default=1_000_000, ge=1, description="请求体大小上限（字节）")
    public_dir: str = Field(
        default_factory=lambda: str(PACKAGE_DIR / "public"),
        description="静态文件根目录",
    )

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否截断日志内容")

    # ---- 桌面客户端 ----
    relay_url: str = Field(default="http://localhost:3000", description="客户端访问的中继地址")
    client_timeout: float = Field(default=90.0, gt=0, description="客户端请求超时（秒）")
    state_file: str = Field(default=".storage/chat_state.json", description="客户端本地状态文件")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("openai_api_key")
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        # OPENAI_API_KEY= 这样的空值视为未配置
        if v is not None and not v.strip():
            return None
        return v

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
            cls._config_source,
            file_secret_settings,
        )


load_env_file()
settings = Settings()
