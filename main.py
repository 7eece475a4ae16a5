# main.py

import argparse
import asyncio
import logging

import config # 导入 config.py
from aggregator.collector import ConfigCollector
from output.writer import write_configs_to_plain_text, write_configs_to_base64, write_configs_to_clash_yaml
from settings.store import EnvSettingsStore, YamlSettingsStore


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="从多个订阅源收集代理配置并生成订阅文件。")
    parser.add_argument("--url", required=True, help="本服务被访问的 URL，例如 https://sub.example.com/sub")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--settings", default=config.SETTINGS_FILE, help="YAML 设置文件路径")
    source.add_argument("--env", action="store_true", help=f"从 {config.SETTINGS_ENV_PREFIX}* 环境变量读取设置")
    parser.add_argument("--output-dir", default=config.OUTPUT_DIR, help="输出目录")
    parser.add_argument("--log-level", default="INFO", help="日志级别")
    return parser.parse_args(argv)


async def main(argv=None):
    """
    主异步函数：读取设置、收集配置并写入输出文件。
    """
    args = parse_args(argv)

    # 配置日志
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.info("程序开始运行...")

    store = EnvSettingsStore() if args.env else YamlSettingsStore(args.settings)
    collector = ConfigCollector(store)
    result = await collector.collect(args.url)

    if result.from_defaults:
        logging.info("本次运行使用了内置默认设置。")
    for report in result.providers:
        if not report.fetched:
            logging.info(f"{report.url}: 抓取失败")
            continue
        logging.info(
            f"{report.url}: 解析 {report.decoded}/{report.attempted}，"
            f"合并 {report.derived_sampled}/{report.derived_quota}，"
            f"原始 {report.original_sampled}/{report.original_quota}"
        )
    if result.derived_leftover or result.original_leftover:
        logging.info(f"未分配的配额: 合并 {result.derived_leftover}，原始 {result.original_leftover}")

    write_configs_to_plain_text(result.configs, args.output_dir)
    write_configs_to_base64(result.configs, args.output_dir)
    write_configs_to_clash_yaml(result.configs, args.output_dir)
    logging.info("程序运行结束。")


if __name__ == "__main__":
    asyncio.run(main())
