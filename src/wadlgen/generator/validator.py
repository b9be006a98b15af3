"""Validates generated modules for syntax and structural correctness."""

import ast


def validate_python(files: dict[str, str]) -> dict[str, str]:
    """Check Python files for syntax errors.

    Returns dict of {filename: error_message} for files with errors.
    """
    errors = {}
    for filename, content in files.items():
        if not filename.endswith(".py"):
            continue
        try:
            ast.parse(content, filename=filename)
        except SyntaxError as e:
            errors[filename] = f"SyntaxError: {e.msg} (line {e.lineno})"
    return errors


def _defined_names(tree: ast.Module) -> set[str]:
    names = set()
    for node in tree.body:
        if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            names.add(node.name)
        elif isinstance(node, ast.Assign):
            names.update(t.id for t in node.targets if isinstance(t, ast.Name))
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            names.add(node.target.id)
    return names


def _exported_names(tree: ast.Module) -> list[str]:
    for node in tree.body:
        if isinstance(node, ast.Assign) and any(
            isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets
        ):
            if isinstance(node.value, (ast.List, ast.Tuple)):
                return [e.value for e in node.value.elts if isinstance(e, ast.Constant)]
    return []


def validate_exports(files: dict[str, str]) -> dict[str, str]:
    """Check that every name listed in ``__all__`` is defined in the module.

    Files that do not parse are skipped; ``validate_python`` reports them.
    """
    errors = {}
    for filename, content in files.items():
        if not filename.endswith(".py"):
            continue
        try:
            tree = ast.parse(content, filename=filename)
        except SyntaxError:
            continue
        missing = [n for n in _exported_names(tree) if n not in _defined_names(tree)]
        if missing:
            errors[filename] = f"__all__ lists undefined names: {', '.join(missing)}"
    return errors


def validate_files(files: dict[str, str]) -> dict[str, str]:
    """Run all validations on generated files.

    Returns dict of {filename: error_message} for all files with errors.
    Export checks only run when every file parses.
    """
    errors = {}
    errors.update(validate_python(files))
    if not errors:
        errors.update(validate_exports(files))
    return errors
