# utils/helpers.py

import base64
import binascii
import logging
import random
import re
from typing import List, Optional, Sequence, TypeVar

from models.config_model import ProxyConfig

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)

T = TypeVar('T')

# 只包含 base64 字符集（允许换行等空白）
BASE64_PATTERN = re.compile(r'^[A-Za-z0-9+/=_\-\s]+$')


def get_multiple_random_elements(items: Sequence[T], count: int, rng: Optional[random.Random] = None) -> List[T]:
    """
    无放回地随机抽取 count 个元素；元素不足时返回全部（顺序随机）。
    Args:
        items (Sequence[T]): 候选序列。
        count (int): 需要的数量。
        rng (Optional[random.Random]): 随机数生成器，测试时可传入固定种子的实例。
    Returns:
        List[T]: 最多 min(count, len(items)) 个互不重复的元素。
    """
    rng = rng or random
    if count <= 0 or not items:
        return []
    return rng.sample(list(items), min(count, len(items)))


def pick_random(choices: Sequence[T], rng: Optional[random.Random] = None) -> T:
    """从非空序列中均匀抽取一个元素。"""
    rng = rng or random
    return choices[rng.randrange(len(choices))]


def remove_duplicate_configs(configs: List[ProxyConfig]) -> List[ProxyConfig]:
    """
    根据配置的唯一键去重，保留第一次出现的配置。
    Args:
        configs (List[ProxyConfig]): 配置列表。
    Returns:
        List[ProxyConfig]: 去重后的配置列表。
    """
    seen_keys = set() # 用于存储已见过的唯一键
    deduplicated = []
    for conf in configs:
        key = conf.generate_key()
        if key not in seen_keys:
            deduplicated.append(conf)
            seen_keys.add(key)
    logger.info(f"去重前共有 {len(configs)} 个配置，去重后剩下 {len(deduplicated)} 个。")
    return deduplicated


def b64decode_text(text: str) -> str:
    """
    解码 base64 文本，兼容 urlsafe 字符集、缺失的填充和换行。
    Raises:
        binascii.Error, UnicodeDecodeError: 内容不是合法的 base64 / UTF-8。
    """
    compact = ''.join(text.split()).replace('-', '+').replace('_', '/').rstrip('=')
    compact += '=' * (-len(compact) % 4)
    return base64.b64decode(compact, validate=True).decode('utf-8')


def is_base64(text: str) -> bool:
    """
    粗略判断整段内容是否为 base64 编码。
    """
    if not text or not text.strip() or not BASE64_PATTERN.match(text):
        return False
    try:
        b64decode_text(text)
        return True
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return False


def muddle_domain(hostname: str, rng: Optional[random.Random] = None) -> str:
    """
    随机改变域名中字母的大小写，作为默认的合并目标地址。
    """
    rng = rng or random
    return ''.join(c.upper() if rng.random() < 0.5 else c.lower() for c in hostname)
