# tilecache/cli.py
import argparse
import json
import sys

from rich.console import Console
from rich.table import Table

from .config import load_config
from .downloader import BatchDownloader
from .exceptions import ConfigurationError, LedgerIOError, UnsupportedProviderError
from .log import setup_logging
from .models import BoundingBox
from .providers import ProviderManager

console = Console()

USAGE = "tilecache <provider> <zoom_start> [zoom_end] [bounds] [locale] [concurrency]"


def parse_bounds(value: str):
    """
    解析 JSON 边界框 {"north":..,"south":..,"east":..,"west":..}，null 表示不限制
    """
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"边界框不是有效的 JSON: {e}")
    if data is None:
        return None
    if not isinstance(data, dict):
        raise argparse.ArgumentTypeError("边界框必须是 JSON 对象")
    try:
        return BoundingBox.from_dict(data)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def cmd_list_providers():
    table = Table(title="可用瓦片源")
    table.add_column("name", style="cyan")
    table.add_column("type")
    table.add_column("zoom_range")
    table.add_column("attribution")
    for name in ProviderManager.list_providers():
        info = ProviderManager.provider_info(name)
        table.add_row(name, info["type"], f"{info['min_zoom']}-{info['max_zoom']}", info["attribution"])
    console.print(table)


def print_stats(stats: dict, title: str = "统计"):
    table = Table(title=title)
    for k in ["downloaded", "failed", "skipped", "total"]:
        table.add_row(k, str(stats.get(k, 0)))
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tilecache",
        usage=USAGE,
        description="地图瓦片下载器：下载缺失的瓦片到本地缓存，失败的瓦片记录到失败日志",
    )
    parser.add_argument("provider", nargs="?", help="瓦片源 (google / yandex / osm / bing)")
    parser.add_argument("zoom_start", nargs="?", type=int, help="起始缩放级别")
    parser.add_argument("zoom_end", nargs="?", type=int, help="结束缩放级别，默认等于 zoom_start")
    parser.add_argument("bounds", nargs="?", type=parse_bounds, help='边界框 JSON，如 {"north":56,"south":55,"east":38,"west":37}')
    parser.add_argument("locale", nargs="?", help="语言参数，默认 ru")
    parser.add_argument("concurrency", nargs="?", type=int, help="并发下载数，默认 6")

    parser.add_argument("--config", help="JSON 配置文件")
    parser.add_argument("--cache-dir", help="瓦片缓存目录，默认 tiles")
    parser.add_argument("--failed-log", help="失败日志，默认 failed_tiles.log")
    parser.add_argument("--log-file", help="进度日志，默认 download.log")
    parser.add_argument("--strategy", choices=["batch", "window"], help="调度策略，默认 batch")
    parser.add_argument("--retry", action="store_true", help="下载前先重试失败日志中的瓦片")
    parser.add_argument("--retry-only", action="store_true", help="只重试失败日志中的瓦片")
    parser.add_argument("--list", action="store_true", help="列出支持的瓦片源")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list:
        cmd_list_providers()
        return 0

    if not args.retry_only and (not args.provider or args.zoom_start is None):
        parser.error("缺少 provider 或 zoom_start")

    try:
        config = load_config(args.config).override(
            cache_dir=args.cache_dir,
            failed_log=args.failed_log,
            log_file=args.log_file,
            strategy=args.strategy,
            locale=args.locale,
            concurrency=args.concurrency,
        )
    except ConfigurationError as e:
        console.print(f"[bold red]配置错误:[/bold red] {e}")
        return 2

    setup_logging(config.log_file, level=config.log_level, rotate_lines=config.log_rotate_lines)

    try:
        if args.retry_only:
            console.print("[bold blue]重试失败的瓦片[/bold blue]")
            stats = BatchDownloader.retry_failed(config, install_signal_handlers=True)
        else:
            console.print(
                f"[bold blue]下载瓦片[/bold blue] provider={args.provider} "
                f"zoom={args.zoom_start}-{args.zoom_end if args.zoom_end is not None else args.zoom_start}"
            )
            stats = BatchDownloader.download_zoom_range(
                provider_name=args.provider,
                zoom_start=args.zoom_start,
                zoom_end=args.zoom_end,
                bbox=args.bounds,
                config=config,
                retry_first=args.retry,
                install_signal_handlers=True,
            )
    except UnsupportedProviderError as e:
        console.print(f"[bold red]{e}[/bold red]")
        console.print(f"可用瓦片源: {', '.join(ProviderManager.list_providers())}")
        return 1
    except LedgerIOError as e:
        console.print(f"[bold red]失败日志错误:[/bold red] {e}")
        return 1
    except ValueError as e:
        console.print(f"[bold red]参数错误:[/bold red] {e}")
        return 2

    print_stats(stats)
    if stats.get("failed"):
        console.print(f"[yellow]部分瓦片下载失败，可使用 --retry-only 重试: {config.failed_log}[/yellow]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
