from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from prdsmith.utils.io import write_text

PRIORITY_MARKERS = {"high": "[P0]", "medium": "[P1]", "low": "[P2]"}


def render_todo_markdown(todo: Dict) -> str:
    lines: List[str] = [f"# {todo.get('title') or 'TODO'}", ""]
    for index, phase in enumerate(todo.get("phases", []), start=1):
        lines.extend([f"## Phase {index}: {phase['name']}", ""])
        for task in phase.get("tasks", []):
            marker = PRIORITY_MARKERS.get(str(task.get("priority", "")).lower(), "")
            title = f"{marker} {task['title']}".strip()
            lines.append(f"- [ ] **{title}**")
            if task.get("description"):
                lines.append(f"  {task['description']}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def write_documents(output_dir: Path, documents: Dict[str, str]) -> List[Path]:
    """Write every generated document; called only once all of them exist."""
    written: List[Path] = []
    for filename, content in documents.items():
        path = output_dir / filename
        write_text(path, content if content.endswith("\n") else content + "\n")
        written.append(path)
    return written
