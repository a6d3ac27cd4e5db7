"""Project and project context given to every new thread."""

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path

# Checked in order; the first one present in a worktree wins
RULES_FILE_NAMES = (".rules", "AGENTS.md", "CLAUDE.md")


@dataclass
class Project:
    """A workspace made of one or more worktree directories."""

    root: Path
    worktrees: list[Path] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.worktrees:
            self.worktrees = [self.root]

    @classmethod
    def open(cls, work_dir: str | Path | None = None) -> "Project":
        """Open a project rooted at ``work_dir``.

        Resolves to an absolute path (handles .. and symlinks).

        Raises:
            ValueError: If the path doesn't exist or is not a directory.
        """
        if not work_dir:
            return cls(root=Path.cwd().resolve())

        resolved = Path(work_dir).resolve()
        if not resolved.exists():
            raise ValueError(f"Working directory does not exist: {work_dir}")
        if not resolved.is_dir():
            raise ValueError(f"Path is not a directory: {work_dir}")
        return cls(root=resolved)


@dataclass(frozen=True)
class WorktreeContext:
    root_name: str
    abs_path: str
    rules_file: str | None = None
    rules: str | None = None


@dataclass
class ProjectContext:
    """Snapshot of project facts used when prompting a thread."""

    worktrees: list[WorktreeContext]
    os: str
    arch: str
    shell: str

    @property
    def has_rules(self) -> bool:
        return any(w.rules for w in self.worktrees)

    @classmethod
    def from_project(cls, project: Project) -> "ProjectContext":
        worktrees = []
        for path in project.worktrees:
            rules_file, rules = _read_rules(path)
            worktrees.append(
                WorktreeContext(
                    root_name=path.name,
                    abs_path=str(path),
                    rules_file=rules_file,
                    rules=rules,
                )
            )
        return cls(
            worktrees=worktrees,
            os=platform.system().lower() or "unknown",
            arch=platform.machine() or "unknown",
            shell=os.environ.get("SHELL", "sh"),
        )


def _read_rules(path: Path) -> tuple[str | None, str | None]:
    for name in RULES_FILE_NAMES:
        candidate = path / name
        if candidate.is_file():
            try:
                return name, candidate.read_text(encoding="utf-8").strip()
            except (OSError, UnicodeDecodeError):
                continue
    return None, None
