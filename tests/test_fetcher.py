import asyncio

from aiohttp import web
from aiohttp.test_utils import TestServer

from scraper.fetcher import fetch_all_proxy_sources


async def subscription(request):
    return web.Response(text="trojan://p@t.example.com:443#t")


async def slow(request):
    await asyncio.sleep(2)
    return web.Response(text="late")


def run_against_server(paths, extra_urls=(), timeout=5):
    async def scenario():
        app = web.Application()
        app.router.add_get("/sub", subscription)
        app.router.add_get("/slow", slow)
        async with TestServer(app) as server:
            urls = [str(server.make_url(path)) for path in paths] + list(extra_urls)
            return urls, await fetch_all_proxy_sources(urls, timeout=timeout)
    return asyncio.run(scenario())


def test_results_follow_input_order_and_isolate_failures():
    urls, results = run_against_server(["/sub", "/missing", "/sub"], extra_urls=["http://127.0.0.1:1/sub"])

    assert [url for url, _ in results] == urls
    assert [content for _, content in results] == [
        "trojan://p@t.example.com:443#t", None, "trojan://p@t.example.com:443#t", None,
    ]


def test_timeout_only_affects_the_slow_provider():
    _, results = run_against_server(["/slow", "/sub"], timeout=1)

    assert results[0][1] is None
    assert results[1][1] == "trojan://p@t.example.com:443#t"


def test_invalid_url_is_a_failure_not_an_error():
    results = asyncio.run(fetch_all_proxy_sources(["not a url"], timeout=1))

    assert results == [("not a url", None)]


def test_no_urls():
    assert asyncio.run(fetch_all_proxy_sources([])) == []
