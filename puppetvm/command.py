"""Build the ``puppet apply`` command line for a guest platform and run it.

Option order is fixed: raw options, module path, Hiera config, color flag,
manifest dir, detailed exit codes, then the manifest file. Facts are rendered
as ``FACTER_`` environment assignments sorted by name, and an optional working
directory wraps the whole command so Puppet never runs if the ``cd`` fails.

Puppet's detailed exit codes: 0 means no changes, 2 means changes were applied,
anything else is a failure.
"""

from __future__ import annotations

from collections import deque
from typing import Mapping

from loguru import logger

from .config import PuppetConfig
from .errors import RemoteExecutionFailedError
from .machine import Machine
from .paths import ResolvedPaths
from .runtime import Platform

log = logger

SUCCESS_EXIT_CODES = (0, 2)
CHANGES_APPLIED = 2
FACT_PREFIX = 'FACTER_'
OUTPUT_TAIL_LINES = 20


def module_path_option(paths: ResolvedPaths, platform: Platform) -> str | None:
    if not paths.module_bindings:
        return None
    module_paths = [*paths.module_guest_paths, platform.default_module_path]
    return f"--modulepath '{platform.path_separator.join(module_paths)}'"


def build_options(
    config: PuppetConfig,
    paths: ResolvedPaths,
    platform: Platform,
    *,
    colored: bool,
) -> str:
    options = list(config.options)
    modulepath = module_path_option(paths, platform)
    if modulepath is not None:
        options.append(modulepath)
    if paths.hiera_guest_path:
        options.append(f'--hiera_config={paths.hiera_guest_path}')
    if not colored:
        options.append('--color=false')
    options.append(f'--manifestdir {paths.manifests_guest_path}')
    options.append('--detailed-exitcodes')
    options.append(paths.manifest_file)
    return ' '.join(options)


def render_facts(facter: Mapping[str, str], platform: Platform) -> str:
    if not facter:
        return ''
    facts = [f"{FACT_PREFIX}{key}='{facter[key]}'" for key in sorted(facter)]
    if platform.is_windows:
        facts = [f'`$env:{fact};' for fact in facts]
    return ' '.join(facts) + ' '


def wrap_working_directory(
    command: str, working_directory: str | None, platform: Platform
) -> str:
    if not working_directory:
        return command
    if platform.is_windows:
        return f'cd {working_directory}; if (`$?) {{ {command} }}'
    return f'cd {working_directory} && {command}'


def build_command(
    config: PuppetConfig,
    paths: ResolvedPaths,
    platform: Platform,
    *,
    colored: bool,
) -> str:
    options = build_options(config, paths, platform, colored=colored)
    facter = render_facts(config.facter, platform)
    command = f'{facter}{config.binary} apply {options}'
    return wrap_working_directory(command, config.working_directory, platform)


def changes_applied(exit_code: int) -> bool:
    return exit_code == CHANGES_APPLIED


def classify_exit_code(exit_code: int, output_tail: list[str] | None = None) -> int:
    if exit_code not in SUCCESS_EXIT_CODES:
        raise RemoteExecutionFailedError(exit_code, output_tail)
    return exit_code


def execute(machine: Machine, command: str) -> int:
    """Run ``command`` with privileges, streaming output to the machine UI."""
    tail: deque[str] = deque(maxlen=OUTPUT_TAIL_LINES)

    def on_line(line: str) -> None:
        line = line.rstrip('\r\n')
        if not line:
            return
        tail.append(line)
        machine.ui.info(line)

    log.debug('Running on {}: {}', machine.name, command)
    exit_code = machine.communicate.sudo(
        command, good_exit=SUCCESS_EXIT_CODES, on_line=on_line
    )
    log.debug('Puppet finished on {} with exit code {}', machine.name, exit_code)
    return classify_exit_code(exit_code, list(tail))
