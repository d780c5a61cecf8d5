import json
import os
from pathlib import Path
from typing import Dict, Optional
from uuid import uuid4

from chat_relay.config.settings import settings
from chat_relay.domain.conversation import StateStore
from chat_relay.domain.exceptions import BusinessError


class JsonStateStore(StateStore):
    """客户端本地存储：一个 JSON 文件保存 键 -> 字符串 映射（对应浏览器 localStorage）。"""

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path or settings.state_file).resolve()

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)

    def _read_all(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except Exception as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e))
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, str]) -> None:
        tmp_path = self._path.parent / f"{self._path.name}.{uuid4().hex}.tmp"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except Exception as e:
            tmp_path.unlink(missing_ok=True)
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))


class MemoryStateStore(StateStore):
    """进程内存储，用于测试或不需要落盘的场景。"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value
