"""fnclean Streamlit 界面

上传文件、管理无效字符、清理名称并下载结果。
"""

import tempfile
from pathlib import Path

import streamlit as st

from fnclean.archiver import ZipArchiver
from fnclean.charset import PRESETS, count_unique, display_char
from fnclean.cleaner import clean_text
from fnclean.config import Config
from fnclean.errors import ArchiveError, MissingArchiverError
from fnclean.exporter import default_list_name
from fnclean.history import ArchiveHistory
from fnclean.models import count_changed, format_size
from fnclean.registry import FileRegistry
from fnclean.remote import RemoteArchiver
from fnclean.storage import SettingsStorage, load_store

# 页面配置
st.set_page_config(
    page_title="fnclean - 文件名清理",
    page_icon="🧹",
    layout="wide",
)

# 初始化 session state
if "config" not in st.session_state:
    st.session_state.config = Config.from_env()
if "store" not in st.session_state:
    with SettingsStorage(st.session_state.config.db_path) as _storage:
        st.session_state.store = load_store(_storage)
if "registry" not in st.session_state:
    st.session_state.registry = FileRegistry(
        st.session_state.store, st.session_state.config
    )
if "upload_dir" not in st.session_state:
    st.session_state.upload_dir = Path(tempfile.mkdtemp(prefix="fnclean-"))
if "seen_uploads" not in st.session_state:
    st.session_state.seen_uploads = set()
if "message" not in st.session_state:
    st.session_state.message = None
if "uploader_key" not in st.session_state:
    st.session_state.uploader_key = 0


def save_settings() -> None:
    """保存设置，失败时只提示"""
    with SettingsStorage(st.session_state.config.db_path) as storage:
        if not storage.save(st.session_state.store):
            st.session_state.message = ("warning", "设置保存失败，仅在本次会话有效")


def render_options() -> None:
    """格式化选项"""
    store = st.session_state.store
    opts = store.options

    st.subheader("格式化选项")
    use_underscores = st.checkbox("空格替换为下划线", value=opts.use_underscores)
    to_lowercase = st.checkbox("转为小写", value=opts.to_lowercase)
    use_prefix = st.checkbox("添加前缀", value=opts.use_prefix)
    prefix = opts.prefix
    if use_prefix:
        prefix = st.text_input("前缀", value=opts.prefix) or "clean_"

    changes = {
        "use_underscores": use_underscores,
        "to_lowercase": to_lowercase,
        "use_prefix": use_prefix,
        "prefix": prefix,
    }
    if any(getattr(opts, key) != value for key, value in changes.items()):
        # 已清理的名称由登记表自动重新计算
        store.update_options(**changes)
        save_settings()
        st.rerun()


def render_chars() -> None:
    """无效字符管理"""
    store = st.session_state.store

    st.subheader(f"无效字符 ({len(store)})")
    preview = " ".join(display_char(c) for c in store.sorted_chars()[:20])
    if len(store) > 20:
        preview += f" +{len(store) - 20}..."
    st.caption(preview)

    new_chars = st.text_input("添加字符", key="new_chars")
    st.caption(f"{count_unique(new_chars)} 个不重复字符")
    if st.button("➕ 添加", use_container_width=True):
        if not new_chars:
            st.session_state.message = ("warning", "请输入要添加的字符")
        else:
            added = store.add(new_chars)
            save_settings()
            if added:
                st.session_state.message = ("success", f"新增 {added} 个字符")
            else:
                st.session_state.message = ("info", "这些字符已在列表中")
        st.rerun()

    st.caption("预设")
    cols = st.columns(3)
    for i, (name, chars) in enumerate(PRESETS.items()):
        with cols[i % 3]:
            if st.button(name, key=f"preset_{name}", use_container_width=True):
                added = store.apply_preset(chars)
                save_settings()
                st.session_state.message = ("success", f"预设 {name}: 新增 {added} 个字符")
                st.rerun()

    to_remove = st.multiselect(
        "移除字符",
        options=store.sorted_chars(),
        format_func=lambda c: f"{display_char(c)}  U+{ord(c):04X}",
    )
    if to_remove and st.button("➖ 移除所选", use_container_width=True):
        for char in to_remove:
            store.remove(char)
        save_settings()
        st.session_state.message = ("success", f"已移除 {len(to_remove)} 个字符")
        st.rerun()

    confirm = st.checkbox("确认重置为默认列表")
    if st.button("↩️ 重置", use_container_width=True, disabled=not confirm):
        store.reset()
        save_settings()
        st.session_state.message = ("success", "无效字符列表已重置")
        st.rerun()


def handle_uploads(uploaded_files) -> None:
    """把上传的文件写入会话临时目录并登记"""
    registry: FileRegistry = st.session_state.registry
    added = 0
    errors: list[str] = []

    for uploaded in uploaded_files:
        key = (uploaded.name, uploaded.size)
        if key in st.session_state.seen_uploads:
            continue
        st.session_state.seen_uploads.add(key)

        target_dir = st.session_state.upload_dir / f"{len(st.session_state.seen_uploads)}"
        target_dir.mkdir(parents=True, exist_ok=True)
        source = target_dir / Path(uploaded.name).name
        source.write_bytes(uploaded.getbuffer())

        entry, error = registry.add_file(uploaded.name, uploaded.size, source)
        if entry:
            added += 1
        elif error:
            errors.append(error)

    if added:
        st.session_state.message = ("success", f"已添加 {added} 个文件")
    if errors:
        shown = errors[:3]
        if len(errors) > 3:
            shown.append(f"... 还有 {len(errors) - 3} 个错误")
        st.session_state.message = ("warning", "\n".join(shown))


def render_downloads() -> None:
    """打包下载"""
    config: Config = st.session_state.config
    registry: FileRegistry = st.session_state.registry
    entries = registry.cleaned_entries()

    st.subheader("打包下载")
    if not entries:
        st.info("没有已清理的文件")
        return

    fmt = st.radio("格式", ["zip", "7z"], horizontal=True)
    compression = 9
    server_url = config.server_url
    if fmt == "7z":
        compression = st.slider("压缩级别", 0, 9, 9)
        server_url = st.text_input("归档服务地址", value=config.server_url)

    if st.button("📦 创建归档", type="primary"):
        output_dir = st.session_state.upload_dir / "archives"
        try:
            if fmt == "zip":
                record = ZipArchiver().create(entries, output_dir)
            else:
                remote = RemoteArchiver(server_url)
                if not remote.ping():
                    raise ArchiveError(f"无法连接归档服务 {remote.base_url}")
                record = remote.convert(entries, output_dir, compression=compression)
        except MissingArchiverError as e:
            st.error(f"{e}\n\n请在服务器上安装 7-Zip: https://www.7-zip.org/")
            return
        except ArchiveError as e:
            st.error(f"创建归档失败: {e}")
            return

        with ArchiveHistory(config.db_path) as history:
            history.record(record)
        st.session_state.last_archive = record

    record = st.session_state.get("last_archive")
    if record and record.path and record.path.exists():
        st.download_button(
            f"⬇️ 下载 {record.name} ({format_size(record.size)})",
            data=record.path.read_bytes(),
            file_name=record.name,
            mime="application/octet-stream",
        )

    with st.expander("归档历史"):
        with ArchiveHistory(config.db_path) as history:
            records = history.get_history()
        if not records:
            st.text("暂无历史记录")
        for item in records:
            st.text(
                f"{item.name}  {item.created:%Y-%m-%d %H:%M}  "
                f"{item.files_count} 个文件  {format_size(item.size)}"
            )


def render_files() -> None:
    """文件列表"""
    registry: FileRegistry = st.session_state.registry

    stats = registry.stats()
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("文件", stats.total)
    with col2:
        st.metric("已清理", stats.cleaned)
    with col3:
        st.metric("待清理", stats.pending)
    with col4:
        st.metric("总大小", format_size(stats.total_size))

    col1, col2 = st.columns(2)
    with col1:
        if st.button("🧹 全部清理", type="primary", use_container_width=True):
            count = registry.clean_all()
            if count:
                st.session_state.message = ("success", f"已清理 {count} 个文件名")
            else:
                st.session_state.message = ("info", "所有文件都已清理")
            st.rerun()
    with col2:
        if st.button("🗑️ 清空列表", use_container_width=True):
            registry.clear()
            st.session_state.seen_uploads = set()
            # 换一个 key 才能清空上传控件中的文件
            st.session_state.uploader_key += 1
            st.session_state.message = ("info", "已移除所有文件")
            st.rerun()

    st.divider()

    for entry in list(registry.entries):
        col1, col2, col3 = st.columns([3, 3, 2])
        with col1:
            st.text(f"📄 {entry.original_name}  ({format_size(entry.size)})")
        with col2:
            if entry.cleaned:
                marker = " ↝" if entry.changed else ""
                st.text(f"{entry.cleaned_name}{marker}")
            else:
                st.text("🟡 待清理")
        with col3:
            c1, c2, c3 = st.columns(3)
            with c1:
                if not entry.cleaned and st.button("🧹", key=f"clean_{entry.id}"):
                    registry.clean_file(entry.id)
                    st.rerun()
            with c2:
                if entry.cleaned and entry.source and entry.source.exists():
                    st.download_button(
                        "⬇️",
                        data=entry.source.read_bytes(),
                        file_name=entry.target_name,
                        key=f"download_{entry.id}",
                    )
            with c3:
                if st.button("✖", key=f"remove_{entry.id}"):
                    registry.remove(entry.id)
                    st.rerun()


def render_name_list() -> None:
    """粘贴文件名列表，逐行清理"""
    store = st.session_state.store

    with st.expander("📝 清理文件名列表"):
        text = st.text_area("每行一个文件名", key="name_list", height=150)
        if not text.strip():
            return

        pairs = clean_text(text, store.snapshot(), store.options)
        st.dataframe(
            [{"原名": p.original, "清理后": p.cleaned} for p in pairs],
            use_container_width=True,
            hide_index=True,
        )
        st.caption(f"共 {len(pairs)} 个名称，{count_changed(pairs)} 个发生变化")
        st.download_button(
            "⬇️ 下载名称清单",
            data="\n".join(p.cleaned for p in pairs) + "\n",
            file_name=default_list_name(),
            mime="text/plain",
        )


def main():
    st.title("🧹 fnclean - 文件名清理")

    with st.sidebar:
        render_options()
        st.divider()
        render_chars()

    if st.session_state.message:
        msg_type, msg_text = st.session_state.message
        if msg_type == "success":
            st.success(msg_text)
        elif msg_type == "warning":
            st.warning(msg_text)
        else:
            st.info(msg_text)
        st.session_state.message = None

    render_name_list()

    uploaded_files = st.file_uploader(
        "选择或拖入文件",
        accept_multiple_files=True,
        key=f"file_uploader_{st.session_state.uploader_key}",
    )
    if uploaded_files:
        handle_uploads(uploaded_files)

    if not st.session_state.registry.entries:
        st.info("请先上传文件")
        return

    render_files()
    st.divider()
    render_downloads()


if __name__ == "__main__":
    main()
