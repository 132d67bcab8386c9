"""
CLI 模块

命令行接口实现。
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import click
from loguru import logger

from modstash import __version__
from modstash.exceptions import ModStashError
from modstash.logger import setup_logger
from modstash.models import AcquireResult, InstallResult, ModStashConfig, load_config
from modstash.orchestrator import ModStashOrchestrator

T = TypeVar("T")


def _config(ctx: click.Context) -> ModStashConfig:
    return ctx.obj["config"]


def run_async(
    ctx: click.Context, func: Callable[[ModStashOrchestrator], Awaitable[T]]
) -> T:
    """在协调器上下文中运行异步操作"""

    async def runner() -> T:
        orchestrator = ModStashOrchestrator(_config(ctx), ctx.obj.get("client"))
        async with orchestrator:
            return await func(orchestrator)

    try:
        return asyncio.run(runner())
    except ModStashError as e:
        logger.error(f"操作失败: {e}")
        logger.debug(f"错误详情: {e.to_dict()}")
        raise click.ClickException(str(e))


def run_sync(ctx: click.Context, func: Callable[[ModStashOrchestrator], T]) -> T:
    """运行不需要访问网络的操作"""
    orchestrator = ModStashOrchestrator(_config(ctx), ctx.obj.get("client"))
    try:
        return func(orchestrator)
    except ModStashError as e:
        logger.error(f"操作失败: {e}")
        logger.debug(f"错误详情: {e.to_dict()}")
        raise click.ClickException(str(e))
    finally:
        asyncio.run(orchestrator.close())


def report(result) -> bool:
    """输出失败的依赖和最终结论"""
    for failure in result.failures:
        click.echo(f"依赖失败: {failure.describe()}")
    if result.satisfied:
        click.echo("结果: 所有依赖均已满足")
    else:
        click.echo("结果: 部分依赖未满足")
    return result.satisfied


@click.group()
@click.option(
    "-c", "--config", "config_path", type=click.Path(exists=True), help="配置文件路径"
)
@click.option("--cache-dir", help="模组缓存目录")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], cache_dir: Optional[str], debug: bool):
    """ModStash - 模组下载与安装管理工具"""
    setup_logger(level="DEBUG" if debug else None)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path).merge(cache_dir=cache_dir)
    except ModStashError as e:
        raise click.ClickException(str(e))


@main.command()
@click.option("-m", "--mod", "mod_id", required=True, help="模组 ID")
@click.option("-v", "--version", "version", help="模组版本（默认最新）")
@click.pass_context
def download(ctx: click.Context, mod_id: str, version: Optional[str]):
    """下载模组及其依赖"""
    result: AcquireResult = run_async(ctx, lambda o: o.download(mod_id, version))
    click.echo(f"已下载 {mod_id}@{result.version}，共 {result.total_count} 个模组")
    if not report(result):
        ctx.exit(1)


@main.command()
@click.option("-m", "--mod", "mod_id", required=True, help="模组 ID")
@click.option("-v", "--version", "version", help="模组版本（默认全部）")
@click.pass_context
def remove(ctx: click.Context, mod_id: str, version: Optional[str]):
    """删除已下载的模组"""
    removed = run_sync(ctx, lambda o: o.remove(mod_id, version))
    click.echo(f"已删除 {len(removed)} 个文件")


@main.command()
@click.option("-m", "--mod", "mod_id", required=True, help="模组 ID")
@click.pass_context
def update(ctx: click.Context, mod_id: str):
    """下载最新版本并删除旧版本"""
    result = run_async(ctx, lambda o: o.update(mod_id))
    if result.updated:
        click.echo(f"已将 {mod_id} 更新到 {result.acquire.version}")
        if not report(result.acquire):
            ctx.exit(1)
    else:
        click.echo(f"{mod_id} 已是最新版本 ({result.previous_version})")


@main.command("check-updates")
@click.option("-i", "--install", "apply", is_flag=True, help="自动下载更新")
@click.pass_context
def check_updates(ctx: click.Context, apply: bool):
    """检查已下载模组的更新"""
    results = run_async(ctx, lambda o: o.check_updates(apply))
    if not results:
        click.echo("已是最新")
        return
    for result in results:
        if result.updated:
            click.echo(f"已将 {result.mod_id} 更新到 {result.latest_version}")
        else:
            click.echo(f"{result.mod_id}@{result.latest_version} 可用")


@main.command("list-versions")
@click.option("-m", "--mod", "mod_id", required=True, help="模组 ID")
@click.pass_context
def list_versions(ctx: click.Context, mod_id: str):
    """列出已下载的版本"""
    versions = run_sync(ctx, lambda o: o.list_versions(mod_id))
    click.echo(", ".join(versions))


@main.command()
@click.option("-m", "--mod", "mod_id", required=True, help="模组 ID")
@click.option("-v", "--version", "version", help="模组版本（默认已下载的最新版本）")
@click.option("-p", "--path", "target", help="安装路径")
@click.option("--download", "download", is_flag=True, help="未下载时先下载")
@click.pass_context
def install(
    ctx: click.Context,
    mod_id: str,
    version: Optional[str],
    target: Optional[str],
    download: bool,
):
    """安装模组及其依赖"""
    result: InstallResult = run_async(
        ctx, lambda o: o.install(mod_id, version, target, download)
    )
    if not result.newly_installed:
        click.echo(f"{mod_id} 已安装")
        return
    for item in result.installed:
        click.echo(f"已安装 {item}")
    if not report(result):
        ctx.exit(1)


@main.command()
@click.option("-m", "--mod", "mod_id", required=True, help="模组 ID")
@click.option("-v", "--version", "version", help="模组版本（默认全部）")
@click.option("-p", "--path", "target", help="安装路径")
@click.pass_context
def uninstall(
    ctx: click.Context, mod_id: str, version: Optional[str], target: Optional[str]
):
    """从安装目录中移除模组"""
    removed = run_sync(ctx, lambda o: o.uninstall(mod_id, version, target))
    click.echo(f"已卸载 {len(removed)} 个文件")


@main.command("list")
@click.pass_context
def list_mods(ctx: click.Context):
    """列出已下载的模组"""
    for mod in run_sync(ctx, lambda o: o.list_downloaded()):
        click.echo(f"{mod.name} ({mod.mod_id}) - {mod.version}")


@main.command("list-installed")
@click.option("-p", "--path", "target", help="安装路径")
@click.pass_context
def list_installed(ctx: click.Context, target: Optional[str]):
    """列出已安装的模组"""
    for mod in run_sync(ctx, lambda o: o.list_installed(target)):
        click.echo(f"{mod.name} ({mod.mod_id}) - {mod.version}")


@main.command("mods-dir")
@click.pass_context
def mods_dir(ctx: click.Context):
    """显示模组缓存目录"""
    click.echo(_config(ctx).cache_dir)


@main.command()
def version():
    """显示 ModStash 版本"""
    click.echo(__version__)


if __name__ == "__main__":
    main()
