#!/usr/bin/env python3
"""PII gate for runtime code under src/.

Fails if:
- print( appears in runtime code
- a logger call mentions a guest field without going through safe_log_context
- a logger call passes a raw request model (body / request) as a value

Logger calls are checked as a whole (all lines up to the closing paren),
so multi-line extra={...} blocks are covered.

Usage:
    python scripts/check_log_pii.py [SRC_DIR]
"""

import re
import sys
from pathlib import Path

GUEST_FIELDS = ("guest_name", "guest_phone", "guestname", "guestphone")
RAW_VALUES = re.compile(r"=\s*(body|request)\s*[,)]")

PRINT_CALL = re.compile(r"^\s*print\s*\(")
LOGGER_CALL = re.compile(r"\blogger\.(debug|info|warning|error|critical|exception)\s*\(")


def _call_text(lines: list[str], start: int) -> str:
    """Join lines from start until the logger call's parentheses balance."""
    depth = 0
    chunk = []
    for line in lines[start:]:
        code = line.split("#", 1)[0]
        chunk.append(code)
        depth += code.count("(") - code.count(")")
        if depth <= 0:
            break
    return "\n".join(chunk)


def check_source(text: str, name: str = "<string>") -> list[str]:
    """Return violations found in one module's source."""
    errors = []
    lines = text.splitlines()

    for index, line in enumerate(lines):
        lineno = index + 1
        if line.lstrip().startswith("#"):
            continue

        if PRINT_CALL.search(line):
            errors.append(f"{name}:{lineno}: print() not allowed in runtime code")

        if not LOGGER_CALL.search(line):
            continue
        call = _call_text(lines, index)
        lowered = call.lower()
        redacted = "safe_log_context" in call
        for field in GUEST_FIELDS:
            if field in lowered and not redacted:
                errors.append(
                    f"{name}:{lineno}: logger call mentions '{field}' "
                    "outside safe_log_context"
                )
        if RAW_VALUES.search(call):
            errors.append(f"{name}:{lineno}: logger call logs a raw request object")

    return errors


def check_tree(src_dir: Path) -> list[str]:
    errors: list[str] = []
    for path in sorted(src_dir.rglob("*.py")):
        errors.extend(check_source(path.read_text(encoding="utf-8"), str(path)))
    return errors


def main(argv: list[str]) -> int:
    src_dir = Path(argv[1]) if len(argv) > 1 else Path(__file__).parent.parent / "src"
    if not src_dir.is_dir():
        sys.stderr.write(f"Error: {src_dir} is not a directory\n")
        return 1

    errors = check_tree(src_dir)
    if errors:
        sys.stderr.write("PII gate FAILED:\n")
        for err in errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("PII gate passed\n")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
