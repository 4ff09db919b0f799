#!/usr/bin/env python3
"""CLI entry point for manifest-helper.

Usage:
    manifest-helper init [--name NAME]
    manifest-helper deps PKG...
    manifest-helper install PKG...
    manifest-helper scripts NAME=COMMAND...

Existing scripts are only replaced after confirmation: --yes replaces all,
--no keeps all, otherwise each conflict is asked about on stdin.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from config import ConfigError, load_helper_config
from package_helper import PackageHelper

logger = logging.getLogger(__name__)


def _make_confirm(args):
    """Build the confirmation policy selected on the command line."""
    if args.yes:
        async def confirm(*_):
            return True
    elif args.no:
        async def confirm(*_):
            return False
    else:
        async def confirm(script_name=None):
            if script_name is None:
                question = f"{args.manifest_file} does not exist. Generate it?"
            else:
                question = f"Script '{script_name}' already exists. Replace it?"
            return await _query(question)
    return confirm


async def _query(question: str) -> bool:
    """Ask a y/N question on stdin. Anything but yes (or EOF) means no."""
    try:
        answer = await asyncio.to_thread(input, f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ('y', 'yes')


def _parse_script(value: str) -> tuple[str, str]:
    """Parse NAME=COMMAND into a (name, command) pair."""
    name, sep, command = value.partition('=')
    if not sep or not name.strip() or not command.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=COMMAND, got '{value}'")
    return name.strip(), command.strip()


async def _cmd_init(helper: PackageHelper, args) -> int:
    confirm = _make_confirm(args)
    name = args.name or helper.config.project_root.resolve().name
    created = await helper.init(name, confirm)
    if not created:
        print(f"Using existing {helper.config.manifest_path}")
        return 0
    if not await confirm():
        print("Aborted, nothing written")
        return 1
    path = helper.save()
    print(f"Created {path}")
    return 0


async def _cmd_deps(helper: PackageHelper, args) -> int:
    await helper.init(helper.config.project_root.resolve().name, _make_confirm(args))
    for dep in helper.get_missing_dependencies(args.packages):
        print(dep)
    return 0


async def _cmd_install(helper: PackageHelper, args) -> int:
    await helper.init(helper.config.project_root.resolve().name, _make_confirm(args))
    if await helper.install_dependencies(args.packages):
        print("Dependencies installed")
        return 0
    print(f"Error: {helper.config.package_manager} install failed")
    return 1


async def _cmd_scripts(helper: PackageHelper, args) -> int:
    confirm = _make_confirm(args)
    created = await helper.init(helper.config.project_root.resolve().name, confirm)
    if not await helper.update_scripts(dict(args.scripts), confirm):
        print("Scripts unchanged")
        return 0
    if created and not await confirm():
        print("Aborted, nothing written")
        return 1
    path = helper.save()
    print(f"Updated scripts in {path}")
    return 0


COMMANDS = {
    'init': _cmd_init,
    'deps': _cmd_deps,
    'install': _cmd_install,
    'scripts': _cmd_scripts,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--root', type=Path, help='Project root (default: $MANIFEST_HELPER_ROOT or cwd)')
    common.add_argument('--package-manager', help='Package manager executable (default: npm)')
    common.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    policy = common.add_mutually_exclusive_group()
    policy.add_argument('--yes', '-y', action='store_true', help='Answer yes to every confirmation')
    policy.add_argument('--no', '-n', action='store_true', help='Answer no to every confirmation')

    parser = argparse.ArgumentParser(
        prog='manifest-helper',
        description='Manage a project manifest: defaults, dependencies and scripts',
    )
    sub = parser.add_subparsers(dest='command')

    init_parser = sub.add_parser('init', parents=[common], help='Create a default manifest if none exists')
    init_parser.add_argument('--name', help='Project name (default: project root directory name)')

    deps_parser = sub.add_parser('deps', parents=[common], help='List dependencies that are not installed')
    deps_parser.add_argument('packages', nargs='+', metavar='PKG')

    install_parser = sub.add_parser('install', parents=[common], help='Install missing dependencies')
    install_parser.add_argument('packages', nargs='+', metavar='PKG')

    scripts_parser = sub.add_parser('scripts', parents=[common], help='Add or replace scripts')
    scripts_parser.add_argument('scripts', nargs='+', type=_parse_script, metavar='NAME=COMMAND')

    return parser


def main(argv=None) -> int:
    """CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        config = load_helper_config(args.root)
        if args.package_manager:
            config.package_manager = args.package_manager
        args.manifest_file = config.manifest_file
        helper = PackageHelper(config)
        return asyncio.run(COMMANDS[args.command](helper, args))
    except ConfigError as e:
        print(f"Error: {e}")
        return 1
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Manifest read failed", exc_info=True)
        print(f"Error: cannot read manifest: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
