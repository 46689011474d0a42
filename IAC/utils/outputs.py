"""
Stack output helpers.

Writes resolved stack outputs to a dotenv-style file next to the Pulumi
project so operators (and `pipeshub-deploy`) can read them without the
Pulumi CLI.
"""

from pathlib import Path

import pulumi


def format_outputs(values: dict[str, object]) -> str:
    """
    Render outputs as KEY=value lines with upper-cased keys.

    Args:
        values: Resolved output values

    Returns:
        str: File content ending with a newline
    """
    lines = ["# Generated by pulumi up. Do not edit."]
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ",".join(str(item) for item in value)
        lines.append(f"{key.upper()}={value}")
    return "\n".join(lines) + "\n"


def write_outputs_to_env(
    outputs: dict[str, pulumi.Input],
    filename: str,
    directory: Path | None = None,
) -> None:
    """
    Write stack outputs to an env file once they resolve.

    Skipped during previews, where most outputs are unknown.

    Args:
        outputs: Output name -> value or pulumi.Output
        filename: File name to write
        directory: Target directory (defaults to the IAC project root)
    """
    if pulumi.runtime.is_dry_run():
        return

    target = (directory or Path(__file__).parent.parent) / filename

    def _write(values: dict[str, object]) -> None:
        target.write_text(format_outputs(values), encoding="utf-8")
        pulumi.log.info(f"Wrote stack outputs to {target}")

    pulumi.Output.all(**outputs).apply(_write)
