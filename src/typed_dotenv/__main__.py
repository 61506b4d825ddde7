"""Show the typed values parsed from dotenv files."""

from __future__ import annotations

from collections.abc import Sequence
import functools
import json
import os
from pathlib import Path
import re
import shutil

import click

from . import loader, values

_PROG_NAME = "typed-dotenv"

DEFINE_RE = re.compile(r"(?P<name>[A-Za-z_][A-Za-z0-9_.]*)=(?P<value>.*)", re.DOTALL)


def parse_defines(ctx: click.Context, param: click.Parameter,
                  value: Sequence[str]) -> dict[str, values.EnvValue]:
    """Convert NAME=VALUE options to a dictionary of constants.

    Values are coerced like bare values in a dotenv file.
    """
    constants: dict[str, values.EnvValue] = {}
    for item in value:
        match = DEFINE_RE.fullmatch(item)
        if match is None:
            raise click.BadParameter(f"Expected NAME=VALUE, got {item!r}", ctx, param)
        constants[match.group("name")] = values.coerce(match.group("value"))
    return constants


def print_env(env: dict[str, values.EnvValue]) -> None:
    """Print variables, one per line, with the Python type of each value."""
    bold = functools.partial(click.style, bold=True)
    width = max([0, *(len(name) for name in env)])
    for name, value in env.items():
        kind = click.style(type(value).__name__, fg="cyan")
        click.echo(f"{bold(name.ljust(width))} = {value!r}  ({kind})")


@click.command(
    context_settings={
        "help_option_names": ["-h", "--help"],
        "max_content_width": 120,
        "terminal_width": shutil.get_terminal_size().columns,
    },
)
@click.option("--color", type=click.Choice(["auto", "always", "never"]), default=None,
              help="Control colors in output.")
@click.option("-D", "--define", "constants", metavar="NAME=VALUE", multiple=True,
              callback=parse_defines,
              help="Define a constant substituted for bare values matching NAME.")
@click.option("--json", "as_json", is_flag=True, default=False,
              help="Print variables as a JSON object.")
@click.option("--optional", is_flag=True, default=False,
              help="Skip files which do not exist instead of failing.")
@click.version_option()
@click.argument("files", metavar="FILE...", nargs=-1, required=True,
                type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def main(ctx: click.Context, *, files: tuple[Path, ...], color: str | None,
         constants: dict[str, values.EnvValue], as_json: bool, optional: bool) -> None:
    """Parse dotenv FILEs and show the resulting variables.

    Files are processed in order, with variables from later files replacing
    those from earlier ones.
    """
    match color:
        case "auto":
            ctx.color = None
        case "always":
            ctx.color = True
        case "never":
            ctx.color = False
        case _:
            if os.environ.get("NO_COLOR"):
                ctx.color = False
            elif os.environ.get("FORCE_COLOR"):
                ctx.color = True

    env_loader = loader.Loader(constants)
    env: dict[str, values.EnvValue] = {}
    for path in files:
        try:
            updates = env_loader.include(path) if optional else env_loader.require(path)
        except loader.LoadFailure as exc:
            raise click.ClickException(str(exc)) from None
        if updates is None:
            click.secho(f"Skipping missing file {str(path)!r}", fg="yellow", err=True)
        else:
            env.update(updates)

    if as_json:
        click.echo(json.dumps(env, indent=2))
    else:
        print_env(env)


if __name__ == "__main__":
    main(prog_name=_PROG_NAME)
