from __future__ import annotations


def build_guidance_message(*, what: str, why: str, fix: str, example: str | None = None) -> str:
    lines = [
        f"What happened: {what}",
        f"Why: {why}",
        f"Fix: {fix}",
    ]
    if example:
        lines.append(f"Example: {example}")
    return "\n".join(lines)


def guidance_summary(text: str) -> str:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("What happened:"):
            return stripped.replace("What happened:", "", 1).strip()
    return text.splitlines()[0].strip() if text.strip() else ""


__all__ = ["build_guidance_message", "guidance_summary"]
