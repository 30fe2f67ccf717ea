"""冲突检测器

检测导出时的冲突：目标已存在、多个文件清理后同名等。
"""

from collections import defaultdict
from pathlib import Path

from fnclean.models import Conflict, ConflictType, FileEntry


class ConflictValidator:
    """冲突检测器"""

    def validate(
        self, entries: list[FileEntry], output_dir: Path | None = None
    ) -> list[Conflict]:
        """检测所有冲突

        Args:
            entries: 待导出的登记项
            output_dir: 导出目录，为 None 时只检测重名

        Returns:
            冲突列表
        """
        conflicts: list[Conflict] = []
        target_names: dict[str, list[FileEntry]] = defaultdict(list)

        for entry in entries:
            target_names[entry.target_name].append(entry)
            if output_dir is not None:
                tgt_path = Path(output_dir) / entry.target_name
                if tgt_path.exists():
                    conflicts.append(
                        Conflict(
                            type=ConflictType.TARGET_EXISTS,
                            entry_id=entry.id,
                            tgt_path=tgt_path,
                            message=f"目标文件已存在: {tgt_path}",
                        )
                    )

        conflicts.extend(self._check_duplicate_targets(target_names, output_dir))
        return conflicts

    def _check_duplicate_targets(
        self, target_names: dict[str, list[FileEntry]], output_dir: Path | None
    ) -> list[Conflict]:
        """检查重复目标

        Args:
            target_names: 目标文件名到登记项列表的映射
            output_dir: 导出目录

        Returns:
            重复目标冲突列表
        """
        conflicts: list[Conflict] = []
        base = Path(output_dir) if output_dir is not None else Path()

        for name, group in target_names.items():
            if len(group) > 1:
                for entry in group:
                    conflicts.append(
                        Conflict(
                            type=ConflictType.DUPLICATE_TARGET,
                            entry_id=entry.id,
                            tgt_path=base / name,
                            message=f"多个文件清理后同名: {name}",
                        )
                    )

        return conflicts

    def get_valid_operations(
        self, entries: list[FileEntry], output_dir: Path | None = None
    ) -> tuple[list[FileEntry], list[Conflict]]:
        """获取可导出的登记项和冲突

        同名的多个文件按原名排序后保留第一个，其余跳过。

        Args:
            entries: 待导出的登记项
            output_dir: 导出目录

        Returns:
            (可导出的登记项, 被跳过的冲突)
        """
        conflicts = self.validate(entries, output_dir)

        blocked = {c.entry_id for c in conflicts if c.type == ConflictType.TARGET_EXISTS}

        # 重复目标：每组保留原名最小的一个
        dup_groups: dict[Path, list[Conflict]] = defaultdict(list)
        for c in conflicts:
            if c.type == ConflictType.DUPLICATE_TARGET:
                dup_groups[c.tgt_path].append(c)

        by_id = {entry.id: entry for entry in entries}
        kept: set[str] = set()
        skipped: list[Conflict] = [
            c for c in conflicts if c.type == ConflictType.TARGET_EXISTS
        ]

        for tgt_path, group in dup_groups.items():
            ordered = sorted(
                group, key=lambda c: (by_id[c.entry_id].original_name, c.entry_id)
            )
            kept.add(ordered[0].entry_id)
            for c in ordered[1:]:
                skipped.append(
                    Conflict(
                        type=c.type,
                        entry_id=c.entry_id,
                        tgt_path=c.tgt_path,
                        message=f"跳过重复: {by_id[c.entry_id].original_name} (另一个同名文件已处理)",
                    )
                )

        dup_ids = {c.entry_id for group in dup_groups.values() for c in group}
        operations = [
            entry
            for entry in entries
            if entry.id not in blocked and (entry.id not in dup_ids or entry.id in kept)
        ]
        return operations, skipped
