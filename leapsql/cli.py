"""Command-line entry point: global options, configuration loading and subcommands."""

from __future__ import annotations

import argparse
import sys
from typing import Any, Callable, Sequence

from leapsql.config import Config, ConfigError, load_config
from leapsql.scaffold import ScaffoldError, init_example, init_project

PROG = "leapsql"
VERSION = "0.1.0"
BUILD_DATE = "unknown"
GIT_COMMIT = "unknown"

OUTPUT_FORMATS = ("auto", "text", "markdown", "json")
SHELLS = ("bash", "zsh", "fish", "powershell")
_ENGINE_LINE = "Data Transformation Engine for DuckDB-style SQL models"

_DESCRIPTION = """\
LeapSQL is a SQL-based data transformation engine.

It allows you to define SQL models with dependencies, templating, and macros,
then execute them in the correct order with state tracking and lineage."""

_COMPLETION_HELP = """\
Generate shell completion scripts for LeapSQL.

To load completions:

Bash:
  $ source <(leapsql completion bash)

Zsh:
  $ leapsql completion zsh > "${fpath[1]}/_leapsql"

Fish:
  $ leapsql completion fish | source

PowerShell:
  PS> leapsql completion powershell | Out-String | Invoke-Expression
"""

_INIT_HELP = """\
Initialize a new LeapSQL project with default directory structure and configuration.

This creates:
  - models/ directory for SQL models
  - seeds/ directory for seed data CSV files
  - macros/ directory for Starlark macros
  - leapsql.yaml configuration file

Use --example to create a full working demo project with sample data,
models (staging + marts), and macros demonstrating best practices."""

# (long flag, short flag, dest, help); dest "verbose" is a switch.
_GLOBAL_FLAGS: tuple[tuple[str, str, str, str], ...] = (
    ("--config", "", "config", "config file (default: ./leapsql.yaml)"),
    ("--models-dir", "", "models_dir", "Path to models directory"),
    ("--seeds-dir", "", "seeds_dir", "Path to seeds directory"),
    ("--macros-dir", "", "macros_dir", "Path to macros directory"),
    ("--database", "", "database", "Path to database (empty for in-memory)"),
    ("--state", "", "state", "Path to state database"),
    ("--env", "", "env", "Environment name"),
    ("--verbose", "-v", "verbose", "Verbose output"),
    ("--output", "-o", "output", "Output format (auto|text|markdown|json)"),
)

# Flag dest -> configuration key.
_CONFIG_KEYS = {
    "models_dir": "models_dir",
    "seeds_dir": "seeds_dir",
    "macros_dir": "macros_dir",
    "database": "database",
    "state": "state_path",
    "env": "environment",
    "verbose": "verbose",
    "output": "output",
}

_COMMANDS: tuple[tuple[str, str], ...] = (
    ("version", "Show version information"),
    ("init", "Initialize a new LeapSQL project"),
    ("completion", "Generate shell completion scripts"),
)

# Commands that run without loading configuration.
_NO_CONFIG_COMMANDS = {"completion"}


def version_text(version: str = VERSION) -> str:
    """Return the text printed by the version command."""
    return f"LeapSQL v{version}\n{_ENGINE_LINE}\n"


def _global_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    group = parent.add_argument_group("global options")
    for long_flag, short_flag, dest, help_text in _GLOBAL_FLAGS:
        names = [n for n in (short_flag, long_flag) if n]
        if dest == "verbose":
            group.add_argument(
                *names, dest=dest, action="store_true", default=argparse.SUPPRESS, help=help_text
            )
        elif dest == "output":
            group.add_argument(
                *names, dest=dest, choices=OUTPUT_FORMATS, default=argparse.SUPPRESS,
                help=help_text,
            )
        else:
            group.add_argument(*names, dest=dest, default=argparse.SUPPRESS, help=help_text)
    return parent


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with global options and all subcommands."""
    common = _global_options()
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        parents=[common],
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"{PROG} {VERSION}\n{_ENGINE_LINE}",
    )
    sub = parser.add_subparsers(dest="command", metavar="<command>")
    helps = dict(_COMMANDS)

    version_cmd = sub.add_parser(
        "version",
        help=helps["version"],
        description="Display LeapSQL version and build information.",
        parents=[common],
    )
    version_cmd.set_defaults(handler=_run_version)

    init_cmd = sub.add_parser(
        "init",
        help=helps["init"],
        description=_INIT_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        parents=[common],
    )
    init_cmd.add_argument("directory", nargs="?", default=".", help="project directory")
    init_cmd.add_argument("--force", action="store_true", help="Overwrite existing configuration")
    init_cmd.add_argument(
        "--example",
        action="store_true",
        help="Create a full example project with seeds, models, and macros",
    )
    init_cmd.set_defaults(handler=_run_init)

    completion_cmd = sub.add_parser(
        "completion",
        help=helps["completion"],
        description=_COMPLETION_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        parents=[common],
    )
    completion_cmd.add_argument("shell", choices=SHELLS)
    completion_cmd.set_defaults(handler=_run_completion)

    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        key: getattr(args, dest)
        for dest, key in _CONFIG_KEYS.items()
        if hasattr(args, dest)
    }


def _run_version(args: argparse.Namespace, cfg: Config | None) -> None:
    sys.stdout.write(version_text(VERSION))


def _run_init(args: argparse.Namespace, cfg: Config | None) -> None:
    if args.example:
        init_example(args.directory, force=args.force)
    else:
        init_project(args.directory, force=args.force)


def _run_completion(args: argparse.Namespace, cfg: Config | None) -> None:
    sys.stdout.write(_COMPLETION_GENERATORS[args.shell]())


def _all_flags() -> list[str]:
    flags = []
    for long_flag, short_flag, _dest, _help in _GLOBAL_FLAGS:
        flags.append(long_flag)
        if short_flag:
            flags.append(short_flag)
    return flags + ["--help", "-h", "--version"]


def _bash_completion() -> str:
    template = """\
# bash completion for leapsql
_leapsql_completions() {
    local cur="${COMP_WORDS[COMP_CWORD]}"
    local prev="${COMP_WORDS[COMP_CWORD-1]}"
    case "$prev" in
        -o|--output)
            COMPREPLY=( $(compgen -W "@OUTPUTS@" -- "$cur") )
            return ;;
        completion)
            COMPREPLY=( $(compgen -W "@SHELLS@" -- "$cur") )
            return ;;
    esac
    if [[ "$cur" == -* ]]; then
        COMPREPLY=( $(compgen -W "@FLAGS@" -- "$cur") )
    else
        COMPREPLY=( $(compgen -W "@COMMANDS@" -- "$cur") )
    fi
}
complete -F _leapsql_completions leapsql
"""
    return (
        template.replace("@OUTPUTS@", " ".join(OUTPUT_FORMATS))
        .replace("@SHELLS@", " ".join(SHELLS))
        .replace("@FLAGS@", " ".join(_all_flags()))
        .replace("@COMMANDS@", " ".join(name for name, _ in _COMMANDS))
    )


def _zsh_completion() -> str:
    commands = "\n".join(f"    '{name}:{text}'" for name, text in _COMMANDS)
    specs = []
    for long_flag, short_flag, dest, help_text in _GLOBAL_FLAGS:
        if dest == "verbose":
            action = ""
        elif dest == "output":
            action = f":format:({' '.join(OUTPUT_FORMATS)})"
        else:
            action = ":path:_files"
        specs.append(f"    '{long_flag}[{help_text}]{action}' \\")
        if short_flag:
            specs.append(f"    '{short_flag}[{help_text}]{action}' \\")
    lines = [
        "#compdef leapsql",
        "",
        "_leapsql() {",
        "  local -a commands",
        "  commands=(",
        commands,
        "  )",
        "  _arguments -C \\",
        *specs,
        "    '1: :->command' \\",
        "    '*:: :->args'",
        "  case $state in",
        "    command) _describe 'command' commands ;;",
        f"    args) [[ $words[1] == completion ]] && _values 'shell' {' '.join(SHELLS)} ;;",
        "  esac",
        "}",
        "",
        "compdef _leapsql leapsql",
        "",
    ]
    return "\n".join(lines)


def _fish_completion() -> str:
    lines = ["# fish completion for leapsql"]
    for name, text in _COMMANDS:
        lines.append(
            f"complete -c leapsql -f -n '__fish_use_subcommand' -a {name} -d '{text}'"
        )
    lines.append(
        "complete -c leapsql -f -n '__fish_seen_subcommand_from completion' "
        f"-a '{' '.join(SHELLS)}'"
    )
    for long_flag, short_flag, dest, help_text in _GLOBAL_FLAGS:
        parts = ["complete -c leapsql"]
        if short_flag:
            parts.append(f"-s {short_flag.lstrip('-')}")
        parts.append(f"-l {long_flag.lstrip('-')}")
        if dest == "output":
            parts.append(f"-xa '{' '.join(OUTPUT_FORMATS)}'")
        elif dest != "verbose":
            parts.append("-r")
        parts.append(f"-d '{help_text}'")
        lines.append(" ".join(parts))
    return "\n".join(lines) + "\n"


def _powershell_completion() -> str:
    words = [name for name, _ in _COMMANDS] + _all_flags() + list(OUTPUT_FORMATS)
    items = ", ".join(f"'{w}'" for w in words)
    return (
        "# powershell completion for leapsql\n"
        "Register-ArgumentCompleter -Native -CommandName 'leapsql' -ScriptBlock {\n"
        "    param($wordToComplete, $commandAst, $cursorPosition)\n"
        f"    $items = @({items})\n"
        "    $items | Where-Object { $_ -like \"$wordToComplete*\" } | ForEach-Object {\n"
        "        [System.Management.Automation.CompletionResult]::new($_, $_, 'ParameterValue', $_)\n"
        "    }\n"
        "}\n"
    )


_COMPLETION_GENERATORS: dict[str, Callable[[], str]] = {
    "bash": _bash_completion,
    "zsh": _zsh_completion,
    "fish": _fish_completion,
    "powershell": _powershell_completion,
}


def _exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the process exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return _exit_code(exc.code)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        cfg: Config | None = None
        if args.command not in _NO_CONFIG_COMMANDS:
            cfg = load_config(getattr(args, "config", None), overrides=_overrides(args))
            if cfg.verbose and cfg.config_file:
                print(f"Using config file: {cfg.config_file}", file=sys.stderr)
        args.handler(args, cfg)
    except (ConfigError, ScaffoldError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())