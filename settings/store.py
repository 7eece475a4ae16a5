# settings/store.py

import logging
import os
import yaml
from typing import Any, Dict, Optional

import config # 绝对导入 config 模块

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


class SettingsUnavailable(Exception):
    """设置后端不可用，或缺少必需的设置项。"""


def _to_setting_value(value: Any) -> Optional[str]:
    """把 YAML / dict 中的值统一成字符串，列表按行拼接。"""
    if value is None:
        return None
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return "\n".join(str(item) for item in value)
    return str(value)


class SettingsStore:
    """
    运营方设置的读取接口：get(name) 返回字符串或 None。
    """
    async def get(self, name: str) -> Optional[str]:
        raise NotImplementedError


class MemorySettingsStore(SettingsStore):
    """直接从字典读取设置。"""
    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values = dict(values or {})

    async def get(self, name: str) -> Optional[str]:
        return _to_setting_value(self.values.get(name))


class YamlSettingsStore(SettingsStore):
    """
    从 YAML 文件读取设置，文件在第一次读取时加载。
    """
    def __init__(self, path: str = config.SETTINGS_FILE):
        self.path = path
        self._values: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._values is None:
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                raise SettingsUnavailable(f"无法读取设置文件 {self.path}: {e}") from e
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise SettingsUnavailable(f"设置文件 {self.path} 不是 YAML 映射。")
            self._values = data
            logger.debug(f"已加载设置文件 {self.path}，共 {len(data)} 项。")
        return self._values

    async def get(self, name: str) -> Optional[str]:
        return _to_setting_value(self._load().get(name))


class EnvSettingsStore(SettingsStore):
    """
    从环境变量读取设置，例如 SUB_MaxConfigs。值中的字面量 \\n 表示换行。
    """
    def __init__(self, prefix: str = config.SETTINGS_ENV_PREFIX, environ: Optional[Dict[str, str]] = None):
        self.prefix = prefix
        self.environ = environ if environ is not None else os.environ

    async def get(self, name: str) -> Optional[str]:
        value = self.environ.get(f"{self.prefix}{name}")
        if value is None:
            return None
        return value.replace("\\n", "\n")
