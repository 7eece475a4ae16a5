# scraper/fetcher.py

import asyncio
import aiohttp
import logging
from typing import List, Tuple, Optional

import config # 绝对导入 config 模块

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


async def fetch_url(session: aiohttp.ClientSession, url: str, timeout: int) -> Optional[str]:
    """
    异步函数：从单个订阅源抓取内容。
    Args:
        session (aiohttp.ClientSession): 共享的 HTTP 会话。
        url (str): 要抓取的 URL。
        timeout (int): 请求超时时间（秒）。
    Returns:
        Optional[str]: 如果成功抓取，返回内容字符串；否则返回 None。
    """
    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
            if response.status == 200: # 检查 HTTP 状态码是否为 200 (成功)
                logger.debug(f"成功抓取: {url}")
                return await response.text(errors='replace')
            logger.warning(f"抓取 {url} 失败，状态码: {response.status}")
            return None
    except asyncio.TimeoutError:
        logger.warning(f"抓取 {url} 超时。")
        return None
    except aiohttp.ClientError as e:
        logger.warning(f"抓取 {url} 时发生客户端错误: {e}")
        return None
    except Exception as e:
        # 单个订阅源的任何错误都不能影响其他订阅源
        logger.error(f"抓取 {url} 时发生未知错误: {e}")
        return None


async def fetch_all_proxy_sources(urls: List[str], timeout: int = config.FETCH_TIMEOUT) -> List[Tuple[str, Optional[str]]]:
    """
    异步函数：并发抓取所有订阅源的内容。
    Args:
        urls (List[str]): 订阅源 URL 列表，允许重复。
        timeout (int): 每个请求的超时时间（秒）。
    Returns:
        List[Tuple[str, Optional[str]]]: 与输入顺序一致的 (原始URL, 内容) 列表，抓取失败的内容为 None。
    """
    if not urls:
        return []
    logger.info(f"开始并发抓取 {len(urls)} 个订阅源。")
    headers = {'User-Agent': config.FETCH_USER_AGENT}
    async with aiohttp.ClientSession(headers=headers) as session:
        tasks = [fetch_url(session, url.strip(), timeout) for url in urls]
        results = await asyncio.gather(*tasks)

    fetched = sum(1 for result in results if result is not None)
    logger.info(f"完成所有订阅源抓取。成功抓取到 {fetched}/{len(urls)} 个源的内容。")
    return list(zip(urls, results))
