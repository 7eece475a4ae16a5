# output/writer.py

import base64 # 用于生成 base64 订阅
import logging
import os
import yaml # 用于生成 Clash 配置
from typing import List, Optional

import config # 绝对导入 config 模块
from models.config_model import ProxyConfig

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


def _output_path(filename: str, output_dir: Optional[str]) -> str:
    """确保输出目录存在并返回完整路径。"""
    output_dir = output_dir or config.OUTPUT_DIR
    os.makedirs(output_dir, exist_ok=True)
    return os.path.join(output_dir, filename)


def configs_to_plain_text(configs: List[ProxyConfig]) -> str:
    """每行一个分享链接。"""
    return '\n'.join(conf.to_uri() for conf in configs)


def configs_to_base64(configs: List[ProxyConfig]) -> str:
    return base64.b64encode(configs_to_plain_text(configs).encode('utf-8')).decode('ascii')


def configs_to_clash_dict(configs: List[ProxyConfig]) -> dict:
    """
    构建基本的 Clash 配置文件结构。
    Clash 要求节点名称唯一，重名的节点会追加序号。
    """
    clash_proxies = []
    seen_names = {} # 名称 -> 下一次尝试的序号
    for conf in configs:
        clash_proxy = conf.to_clash()
        name = base = str(clash_proxy['name'])
        while name in seen_names:
            seen_names[base] += 1
            name = f"{base}-{seen_names[base]}"
        seen_names.setdefault(name, 0)
        clash_proxy['name'] = name
        clash_proxies.append(clash_proxy)

    return {
        'proxies': clash_proxies,
        'proxy-groups': [
            {
                'name': 'Proxy',
                'type': 'select',
                'proxies': ['DIRECT'] + [p['name'] for p in clash_proxies],
            },
        ],
        'rules': ['MATCH,Proxy'],
    }


def write_configs_to_plain_text(configs: List[ProxyConfig], output_dir: Optional[str] = None):
    """
    将配置写入明文文件，每行一个分享链接。
    """
    output_path = _output_path(config.PLAIN_TEXT_OUTPUT_FILENAME, output_dir)
    try:
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(configs_to_plain_text(configs))
        logger.info(f"成功将 {len(configs)} 个配置写入明文文件: {output_path}")
    except IOError as e:
        logger.error(f"写入明文文件失败: {e}")


def write_configs_to_base64(configs: List[ProxyConfig], output_dir: Optional[str] = None):
    """
    将配置写入 base64 订阅文件。
    """
    output_path = _output_path(config.BASE64_OUTPUT_FILENAME, output_dir)
    try:
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(configs_to_base64(configs))
        logger.info(f"成功将 {len(configs)} 个配置写入 base64 订阅文件: {output_path}")
    except IOError as e:
        logger.error(f"写入 base64 订阅文件失败: {e}")


def write_configs_to_clash_yaml(configs: List[ProxyConfig], output_dir: Optional[str] = None):
    """
    将配置写入 Clash YAML 配置文件。
    """
    output_path = _output_path(config.CLASH_OUTPUT_FILENAME, output_dir)
    try:
        clash_config = configs_to_clash_dict(configs)
        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(clash_config, f, allow_unicode=True, sort_keys=False)
        logger.info(f"成功将 {len(clash_config['proxies'])} 个配置写入 Clash YAML 文件: {output_path}")
    except IOError as e:
        logger.error(f"写入 Clash YAML 文件失败: {e}")
    except yaml.YAMLError as e:
        logger.error(f"生成 Clash YAML 配置时发生 YAML 错误: {e}")
