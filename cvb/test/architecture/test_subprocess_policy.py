from __future__ import annotations

import ast

from ._gate import require_arch_checks_enabled
from ._utils import cvb_root, iter_source_files, matches_prefix, parse_imports, read_tree


def _direct_subprocess_calls(tree: ast.AST) -> list[int]:
    lines: list[int] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        func = node.func
        if not isinstance(func, ast.Attribute) or not isinstance(func.value, ast.Name):
            continue
        if func.value.id == "subprocess" and func.attr in {"run", "check_output", "Popen", "call"}:
            lines.append(node.lineno)
    return lines


def test_subprocess_only_in_platform_process() -> None:
    require_arch_checks_enabled()

    root = cvb_root()
    offenders: list[str] = []
    for file_path in iter_source_files(root):
        rel = file_path.relative_to(root)
        if rel.as_posix() == "platform/process.py":
            continue
        for line in _direct_subprocess_calls(read_tree(file_path)):
            offenders.append(f"{rel}:{line}: direct subprocess call")

    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)


def test_rich_only_in_output_console() -> None:
    require_arch_checks_enabled()

    root = cvb_root()
    offenders: list[str] = []
    for file_path in iter_source_files(root):
        rel = file_path.relative_to(root)
        if rel.as_posix() == "output/console.py":
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage violations:\n" + "\n".join(offenders)
