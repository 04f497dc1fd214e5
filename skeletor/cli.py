"""Command-line front end for skeletor.

Usage::

    skeletor create --name helm3 --author "Jane Doe"
    skeletor create --name helm3 --module github.com/acme/helm3 -o ./helm3 --dry-run
    skeletor list-templates
    skeletor version
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from . import __version__
from .config import GeneratorConfig
from .scaffolder import (
    ConflictPolicy,
    Generator,
    ParameterValidationError,
    TemplateConfigError,
    available_templates,
)
from .utils import console, print_error, print_success, print_summary_table, print_warning

DEFAULT_MODULE_PREFIX = "github.com/getporter"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skeletor",
        description="skeletor -- create new Porter mixins from a template tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  skeletor create --name helm3 --author 'Jane Doe'\n"
            "  skeletor create --name helm3 --module github.com/acme/helm3 --dry-run\n"
            "  skeletor create --name helm3 --template-dir ./my-template --on-conflict skip\n"
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a new mixin project")
    create.add_argument("--name", required=True, help="Name of the new mixin (lowercase)")
    create.add_argument(
        "--module",
        default=None,
        help=f"Module path (default: {DEFAULT_MODULE_PREFIX}/<name>)",
    )
    create.add_argument("--author", default="", help="Author name")
    create.add_argument("--email", default="", help="Author email used as security contact")
    create.add_argument("--description", default="", help="Short description of the mixin")
    create.add_argument("--output", "-o", default=None, help="Output directory (default: ./<name>)")
    source = create.add_mutually_exclusive_group()
    source.add_argument("--template", default=None, help="Bundled template name (default: mixin)")
    source.add_argument("--template-dir", default=None, help="Local directory containing the template")
    create.add_argument(
        "--on-conflict",
        choices=[policy.value for policy in ConflictPolicy],
        default=None,
        help="What to do with files that already exist (default: overwrite)",
    )
    create.add_argument("--dry-run", action="store_true", help="Simulate generation without writing files")
    create.add_argument("--quiet", "-q", action="store_true", help="Only print the summary")

    subparsers.add_parser("list-templates", help="List the bundled templates")
    subparsers.add_parser("version", help="Show version information")
    return parser


def _config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    """Environment settings, overridden by any flags given on the command line."""
    config = GeneratorConfig.from_env()
    overrides: dict[str, Any] = {}
    if args.template:
        overrides["template_name"] = args.template
        overrides["template_dir"] = None
    if args.template_dir:
        overrides["template_dir"] = Path(args.template_dir)
    if args.on_conflict:
        overrides["conflict_policy"] = ConflictPolicy(args.on_conflict)
    if args.dry_run:
        overrides["dry_run"] = True
    if args.quiet:
        overrides["quiet"] = True
    return config.model_copy(update=overrides)


def _run_create(args: argparse.Namespace) -> int:
    try:
        config = _config_from_args(args)
    except ValidationError as exc:
        print_error(f"Invalid configuration: {exc}")
        return 1
    raw_params = {
        "PluginName": args.name,
        "ModulePath": args.module or f"{DEFAULT_MODULE_PREFIX}/{args.name}",
        "AuthorName": args.author,
        "AuthorEmail": args.email,
        "Description": args.description,
    }
    output_dir = Path(args.output or f"./{args.name}")

    try:
        template_source = config.load_source()
    except (FileNotFoundError, NotADirectoryError, TemplateConfigError) as exc:
        print_error(str(exc))
        return 1

    if template_source.config.hooks:
        names = ", ".join(sorted(template_source.config.hooks))
        print_warning(f"Template hooks are not run: {names}")

    if config.dry_run:
        console.print("[bold cyan][Dry Run][/bold cyan] Simulating file generation...")
    else:
        console.print(f"Generating mixin files from template [bold]{template_source.name}[/bold]...")

    generator = Generator(template_source, config)
    try:
        result = generator.generate(raw_params, output_dir)
    except ParameterValidationError as exc:
        print_error(str(exc))
        return 1

    console.print()
    print_summary_table(result.summary(), title="Generation Summary")

    if not result.success:
        print_error(str(result.error))
        if result.files:
            print_warning(
                f"{len(result.files)} file(s) were already written to {output_dir}; "
                "remove the directory before retrying."
            )
        return 1

    if config.dry_run:
        print_success("[Dry Run] Simulation complete. No files were written.")
        return 0

    print_success(f"Mixin '{args.name}' successfully created in {output_dir}")
    console.print("\nNext steps:")
    console.print(f"  1. cd {output_dir}")
    console.print("  2. Review the generated code and customize as needed.")
    console.print("  3. Run 'mage build test' to verify everything works.")
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``skeletor`` and ``python -m skeletor``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        console.print(f"skeletor {__version__}")
        return

    if args.command == "list-templates":
        names = available_templates()
        if not names:
            print_warning("No bundled templates found.")
        for name in names:
            console.print(name)
        return

    exit_code = _run_create(args)
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
