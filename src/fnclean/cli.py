"""fnclean CLI

使用 typer 实现命令行界面。
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from fnclean.archiver import ZipArchiver
from fnclean.charset import PRESETS, display_char
from fnclean.cleaner import clean_batch
from fnclean.clipboard import ClipboardHandler
from fnclean.config import Config
from fnclean.errors import ArchiveError, MissingArchiverError
from fnclean.exporter import FileExporter, write_name_list
from fnclean.history import ArchiveHistory
from fnclean.log import setup_logging
from fnclean.models import count_changed, format_size
from fnclean.registry import FileRegistry
from fnclean.remote import RemoteArchiver
from fnclean.storage import SettingsStorage, load_store

app = typer.Typer(
    name="fnclean",
    help="文件名清理工具 - 替换无效字符、批量导出与打包",
    no_args_is_help=True,
)
chars_app = typer.Typer(help="管理无效字符列表", no_args_is_help=True)
app.add_typer(chars_app, name="chars")
console = Console()


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="输出调试日志"),
    ] = False,
    env_file: Annotated[
        Optional[Path],
        typer.Option("--env-file", help=".env 文件路径（默认当前目录）"),
    ] = None,
) -> None:
    """加载配置并初始化日志"""
    setup_logging(verbose)
    try:
        ctx.obj = Config.from_env(env_file)
    except ValueError as e:
        console.print(f"[red]配置错误:[/red] {e}")
        raise typer.Exit(1)


def _config(ctx: typer.Context) -> Config:
    return ctx.obj if isinstance(ctx.obj, Config) else Config()


def _save(storage: SettingsStorage, store) -> None:
    if not storage.save(store):
        console.print("[yellow]设置保存失败，本次修改仅在当前会话有效[/yellow]")


def _parse_char(value: str) -> str:
    """解析单个字符参数，支持 U+XXXX 形式"""
    if value.upper().startswith("U+") and len(value) > 2:
        try:
            return chr(int(value[2:], 16))
        except ValueError:
            raise typer.BadParameter(f"无效的码位: {value}")
    if len(value) != 1:
        raise typer.BadParameter(f"只能指定单个字符: {value!r}")
    return value


@app.command()
def clean(
    ctx: typer.Context,
    names: Annotated[
        Optional[list[str]],
        typer.Argument(help="要清理的文件名（支持多个）"),
    ] = None,
    input_file: Annotated[
        Optional[Path],
        typer.Option("-i", "--input", help="从文本文件读取文件名（每行一个）"),
    ] = None,
    from_clipboard: Annotated[
        bool,
        typer.Option("--paste", help="从剪贴板读取文件名"),
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="把清理结果写入文本文件或目录"),
    ] = None,
    copy: Annotated[
        bool,
        typer.Option("--copy", help="把清理结果复制到剪贴板"),
    ] = False,
) -> None:
    """清理文件名并显示结果"""
    config = _config(ctx)
    if (from_clipboard or copy) and not ClipboardHandler.is_available():
        console.print("[red]错误:[/red] 剪贴板不可用")
        raise typer.Exit(1)

    try:
        lines: list[str] = list(names or [])
        if input_file:
            lines.extend(input_file.read_text(encoding="utf-8").splitlines())
        if from_clipboard:
            lines.extend(ClipboardHandler.paste_lines())

        with SettingsStorage(config.db_path) as storage:
            store = load_store(storage)

        pairs = clean_batch(lines, store.snapshot(), store.options)
        if not pairs:
            console.print("[yellow]请至少输入一个文件名[/yellow]")
            raise typer.Exit(1)

        table = Table(title="清理结果")
        table.add_column("原名")
        table.add_column("清理后", style="green")
        table.add_column("")
        for pair in pairs:
            table.add_row(pair.original, pair.cleaned, "↝" if pair.changed else "")
        console.print(table)

        changed = count_changed(pairs)
        console.print(f"共处理 {len(pairs)} 个文件名，{changed} 个发生变化")

        if output:
            path = write_name_list(pairs, output)
            console.print(f"[green]✓[/green] 结果已保存到: {path}")
        if copy:
            ClipboardHandler.copy_lines([pair.cleaned for pair in pairs])
            console.print("[green]✓[/green] 结果已复制到剪贴板")

    except OSError as e:
        console.print(f"[red]错误:[/red] {e}")
        raise typer.Exit(1)


# ============ 无效字符管理 ============


@chars_app.command("list")
def chars_list(ctx: typer.Context) -> None:
    """显示当前无效字符列表"""
    with SettingsStorage(_config(ctx).db_path) as storage:
        store = load_store(storage)

    table = Table(title=f"无效字符 ({len(store)})")
    table.add_column("字符")
    table.add_column("码位", style="cyan")
    for char in store.sorted_chars():
        table.add_row(display_char(char), f"U+{ord(char):04X}")
    console.print(table)


@chars_app.command("add")
def chars_add(
    ctx: typer.Context,
    chars: Annotated[str, typer.Argument(help="要添加的字符（重复字符只计一次）")],
) -> None:
    """添加无效字符"""
    with SettingsStorage(_config(ctx).db_path) as storage:
        store = load_store(storage)
        added = store.add(chars)
        _save(storage, store)

    if added:
        console.print(f"[green]✓[/green] 新增 {added} 个字符")
    else:
        console.print("这些字符已在列表中")


@chars_app.command("remove")
def chars_remove(
    ctx: typer.Context,
    char: Annotated[str, typer.Argument(help="要移除的字符，或 U+XXXX 码位")],
) -> None:
    """移除单个无效字符"""
    target = _parse_char(char)
    with SettingsStorage(_config(ctx).db_path) as storage:
        store = load_store(storage)
        present = target in store
        store.remove(target)
        _save(storage, store)

    if present:
        console.print(f"[green]✓[/green] 已移除 {display_char(target)}")
    else:
        console.print(f"[yellow]{display_char(target)} 不在列表中[/yellow]")


@chars_app.command("reset")
def chars_reset(
    ctx: typer.Context,
    yes: Annotated[
        bool,
        typer.Option("-y", "--yes", help="跳过确认"),
    ] = False,
) -> None:
    """恢复默认无效字符列表"""
    if not yes and not typer.confirm("确定要重置无效字符列表吗？"):
        raise typer.Abort()

    with SettingsStorage(_config(ctx).db_path) as storage:
        store = load_store(storage)
        store.reset()
        _save(storage, store)

    console.print(f"[green]✓[/green] 已重置为默认列表 ({len(store)} 个字符)")


@chars_app.command("preset")
def chars_preset(
    ctx: typer.Context,
    name: Annotated[
        Optional[str],
        typer.Argument(help="预设名称（不指定则列出所有预设）"),
    ] = None,
) -> None:
    """应用预设字符组"""
    if name is None:
        table = Table(title="预设")
        table.add_column("名称", style="cyan")
        table.add_column("字符")
        for preset_name, chars in PRESETS.items():
            table.add_row(preset_name, " ".join(display_char(c) for c in chars))
        console.print(table)
        return

    if name not in PRESETS:
        console.print(f"[red]错误:[/red] 未知预设: {name}")
        raise typer.Exit(1)

    with SettingsStorage(_config(ctx).db_path) as storage:
        store = load_store(storage)
        added = store.apply_named_preset(name)
        _save(storage, store)

    console.print(f"[green]✓[/green] 预设 {name}: 新增 {added} 个字符")


# ============ 格式化选项 ============


@app.command()
def options(
    ctx: typer.Context,
    underscores: Annotated[
        Optional[bool],
        typer.Option("--underscores/--no-underscores", help="空格替换为下划线"),
    ] = None,
    lowercase: Annotated[
        Optional[bool],
        typer.Option("--lowercase/--no-lowercase", help="转为小写"),
    ] = None,
    use_prefix: Annotated[
        Optional[bool],
        typer.Option("--use-prefix/--no-prefix", help="添加前缀"),
    ] = None,
    prefix: Annotated[
        Optional[str],
        typer.Option("--prefix", help="前缀文本（为空时使用 clean_）"),
    ] = None,
) -> None:
    """查看或修改格式化选项"""
    changes: dict = {}
    if underscores is not None:
        changes["use_underscores"] = underscores
    if lowercase is not None:
        changes["to_lowercase"] = lowercase
    if use_prefix is not None:
        changes["use_prefix"] = use_prefix
    if prefix is not None:
        changes["prefix"] = prefix or "clean_"

    with SettingsStorage(_config(ctx).db_path) as storage:
        store = load_store(storage)
        if changes:
            store.update_options(**changes)
            _save(storage, store)
        current = store.options

    table = Table(title="格式化选项")
    table.add_column("选项")
    table.add_column("值", style="cyan")
    table.add_row("下划线", "是" if current.use_underscores else "否")
    table.add_row("小写", "是" if current.to_lowercase else "否")
    table.add_row("前缀", current.prefix if current.use_prefix else "-")
    console.print(table)


# ============ 导出与归档 ============


def _registry_from(ctx: typer.Context, files: list[Path]) -> FileRegistry:
    config = _config(ctx)
    with SettingsStorage(config.db_path) as storage:
        store = load_store(storage)

    registry = FileRegistry(store, config)
    result = registry.add_paths(files)
    for error in result.errors[:3]:
        console.print(f"[yellow]跳过:[/yellow] {error}")
    if len(result.errors) > 3:
        console.print(f"  ... 还有 {len(result.errors) - 3} 个错误")
    registry.clean_all()
    return registry


@app.command()
def export(
    ctx: typer.Context,
    files: Annotated[
        list[Path],
        typer.Argument(help="要导出的文件"),
    ],
    output: Annotated[
        Path,
        typer.Option("-o", "--output", help="导出目录"),
    ],
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="只模拟执行，不实际复制"),
    ] = False,
    concurrency: Annotated[
        Optional[int],
        typer.Option("-j", "--concurrency", help="并发复制数（默认 5）"),
    ] = None,
) -> None:
    """以清理后的名称批量导出文件"""
    registry = _registry_from(ctx, files)
    entries = registry.cleaned_entries()
    if not entries:
        console.print("[yellow]没有可导出的文件[/yellow]")
        raise typer.Exit(1)

    if dry_run:
        console.print("[yellow]模拟执行模式[/yellow]")

    result = FileExporter().export_batch(
        entries,
        output,
        dry_run=dry_run,
        concurrency=concurrency or _config(ctx).download_concurrency,
    )

    console.print(f"\n[green]成功:[/green] {result.success_count}")
    console.print(f"[red]失败:[/red] {result.failed_count}")
    console.print(f"[yellow]跳过(冲突):[/yellow] {result.skipped_count}")

    if result.conflicts:
        console.print("\n[yellow]冲突详情:[/yellow]")
        for conflict in result.conflicts[:5]:
            console.print(f"  • {conflict.message}")
        if len(result.conflicts) > 5:
            console.print(f"  ... 还有 {len(result.conflicts) - 5} 个冲突")

    for path, error in result.failed_items[:5]:
        console.print(f"  [red]•[/red] {path.name}: {error}")

    if result.failed_count and not result.success_count:
        raise typer.Exit(1)


@app.command()
def archive(
    ctx: typer.Context,
    files: Annotated[
        list[Path],
        typer.Argument(help="要打包的文件"),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="归档保存目录（默认当前目录）"),
    ] = None,
    fmt: Annotated[
        str,
        typer.Option("-f", "--format", help="归档格式: zip 或 7z"),
    ] = "zip",
    server: Annotated[
        Optional[str],
        typer.Option("--server", help="7z 归档服务地址"),
    ] = None,
    compression: Annotated[
        int,
        typer.Option("--compression", min=0, max=9, help="7z 压缩级别 0-9"),
    ] = 9,
) -> None:
    """把清理后的文件打包为 ZIP 或 7z"""
    config = _config(ctx)
    if fmt not in ("zip", "7z"):
        console.print(f"[red]错误:[/red] 不支持的格式: {fmt}")
        raise typer.Exit(1)

    registry = _registry_from(ctx, files)
    entries = registry.cleaned_entries()
    output_dir = output or Path.cwd()

    try:
        if fmt == "zip":
            record = ZipArchiver().create(entries, output_dir)
        else:
            remote = RemoteArchiver(server or config.server_url)
            if not remote.ping():
                raise ArchiveError(
                    f"无法连接归档服务 {remote.base_url}，请先运行 `fnclean serve`"
                )
            record = remote.convert(entries, output_dir, compression=compression)
    except MissingArchiverError as e:
        console.print(f"[red]错误:[/red] {e}")
        console.print("请在服务器上安装 7-Zip: https://www.7-zip.org/")
        raise typer.Exit(1)
    except ArchiveError as e:
        console.print(f"[red]错误:[/red] {e}")
        raise typer.Exit(1)

    with ArchiveHistory(config.db_path) as history:
        if not history.record(record):
            console.print("[yellow]归档历史不可用，本次归档未记录[/yellow]")

    console.print(
        f"[green]✓[/green] 归档已创建: {record.path} "
        f"({record.files_count} 个文件, {format_size(record.size)})"
    )


@app.command()
def history(
    ctx: typer.Context,
    clear: Annotated[
        bool,
        typer.Option("--clear", help="清空归档历史"),
    ] = False,
) -> None:
    """显示归档历史"""
    with ArchiveHistory(_config(ctx).db_path) as archive_history:
        if clear:
            deleted = archive_history.clear()
            console.print(f"已删除 {deleted} 条记录")
            return
        records = archive_history.get_history()

    if not records:
        console.print("没有归档历史")
        return

    table = Table(title="归档历史")
    table.add_column("名称", style="cyan")
    table.add_column("时间")
    table.add_column("文件数")
    table.add_column("大小")

    for record in records:
        table.add_row(
            record.name,
            record.created.strftime("%Y-%m-%d %H:%M:%S"),
            str(record.files_count),
            format_size(record.size),
        )

    console.print(table)


# ============ 服务与界面 ============


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="监听地址"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("-p", "--port", help="监听端口"),
    ] = None,
) -> None:
    """启动 7z 归档服务"""
    import uvicorn

    from fnclean.service import create_app

    config = _config(ctx)
    console.print(f"启动归档服务 (需要 `{config.sevenzip_bin}` 在 PATH 中)...")
    uvicorn.run(
        create_app(config),
        host=host or config.server_host,
        port=port or config.server_port,
    )


@app.command()
def ui() -> None:
    """启动 Streamlit 界面"""
    import subprocess
    import sys

    console.print("启动 Streamlit 界面...")
    subprocess.run(
        [sys.executable, "-m", "streamlit", "run",
         str(Path(__file__).parent / "app.py")],
        check=True,
    )


if __name__ == "__main__":
    app()
