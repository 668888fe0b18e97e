from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from mash.configs.config_loader import ConfigLoader
from mash.core.context import ContextStore
from mash.core.results import RunOutcome
from mash.exceptions import MashError
from mash.runtime.main import MashApplication

logger = logging.getLogger('mash.cli')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mash',
        description='Command shell that bootstraps the host application as far as the requested command needs.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='Run `mash help` for the list of commands available at the current bootstrap level.',
    )
    parser.add_argument('-d', '--debug', action='store_true', default=None, help='Display debug output, timers and memory usage.')
    parser.add_argument('-q', '--quiet', action='store_true', default=None, help='Suppress non-error messages.')
    parser.add_argument('-v', '--verbose', action='store_true', default=None, help='Display informational messages.')
    parser.add_argument('--early', metavar='PATH', help='Early hook run before any bootstrap (file.py or pkg.mod:func).')
    parser.add_argument('-r', '--root', metavar='DIR', help='Host root directory.')
    parser.add_argument('-l', '--site', metavar='NAME', help='Host site to bootstrap.')
    parser.add_argument('-u', '--user', metavar='NAME', help='User to act as once logged in.')
    parser.add_argument('-c', '--config', metavar='FILE', help='Additional mash configuration file.')
    parser.add_argument('--env', metavar='NAME', help='Configuration environment to apply.')
    parser.add_argument('arguments', nargs=argparse.REMAINDER, help='Command words followed by command arguments.')
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for flag in ('debug', 'quiet', 'verbose'):
        if getattr(args, flag):
            overrides[flag] = True
    if args.early:
        overrides['early'] = args.early
    if args.user:
        overrides['user'] = args.user
    host: Dict[str, Any] = {}
    if args.root:
        host['root'] = args.root
    if args.site:
        host['site'] = args.site
    if host:
        overrides['host'] = host
    return overrides


def configure_logging(config: Dict[str, Any]) -> None:
    # Flag-driven levels for the mash loggers are applied by process_global_options.
    log_cfg = config.get('logging') or {}
    level = str(log_cfg.get('level', 'WARNING')).upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING),
                        format=log_cfg.get('format', '%(levelname)-8s %(name)s: %(message)s'))


def render_result(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, indent=2, default=str)
    return str(value)


def report(outcome: RunOutcome) -> int:
    if outcome.executed or outcome.early_exit:
        text = render_result(outcome.result)
        if text is not None:
            print(text)
        return outcome.exit_code

    for violation in outcome.violations:
        logger.error('%s', violation)
    return outcome.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    # Existing environment variables win over .env entries.
    load_dotenv(find_dotenv(usecwd=True))
    arguments: List[str] = list(args.arguments)
    if arguments and arguments[0] == '--':
        arguments = arguments[1:]

    try:
        config = ConfigLoader().load(config_path=args.config, env=args.env, overrides=overrides_from_args(args))
    except MashError as exc:
        logging.basicConfig(level=logging.ERROR)
        logger.error('%s', exc)
        return 1

    configure_logging(config)
    context = ContextStore.from_config(config, arguments)
    try:
        outcome = MashApplication(context).run()
    except MashError as exc:
        logger.error('%s', exc, exc_info=context.debug)
        return 1
    return report(outcome)


if __name__ == '__main__':
    sys.exit(main())
