"""The entry point into `spatialmif` CLI commands."""
import ast
import re
import signal
import subprocess
import sys
from importlib.resources import as_file
from importlib.resources import files

import spatialmif
from spatialmif import submodule_names


def underscore_to_hyphen(string, inverse=False):
    if not inverse:
        return re.sub('_', '-', string)
    return re.sub('-', '_', string)


def get_commands(submodule_name):
    """Hyphenated names of the scripts in ``spatialmif/<submodule>/scripts``."""
    scripts = files(f'spatialmif.{submodule_name}') / 'scripts'
    if not scripts.is_dir():
        return []
    return sorted(
        underscore_to_hyphen(re.sub(r'\.py$', '', entry.name))
        for entry in scripts.iterdir()
        if entry.name.endswith('.py') and not re.search(r'^__.*__\.py$', entry.name)
    )


def get_script(submodule_name, command):
    script_name = underscore_to_hyphen(command, inverse=True)
    _file = files(f'spatialmif.{submodule_name}.scripts').joinpath(f'{script_name}.py')
    if not _file.is_file():
        raise ValueError(f'Did not locate {script_name} from submodule "{submodule_name}".')
    with as_file(_file) as path:
        return path


def describe_command(submodule_name, command):
    """First line of the script's module docstring."""
    source = get_script(submodule_name, command).read_text(encoding='utf-8')
    docstring = ast.get_docstring(ast.parse(source))
    if docstring is None:
        return ''
    return docstring.strip().splitlines()[0]


def get_modules_with_commands():
    return [name for name in submodule_names if len(get_commands(name)) > 0]


def resolve_command(arguments):
    """Splits ``<module> <command> [args...]`` into its parts. A missing or unknown module or
    command comes back as None."""
    module = None
    command = None
    if len(arguments) >= 1 and arguments[0] in get_modules_with_commands():
        module = arguments[0]
        if len(arguments) >= 2 and arguments[1] in get_commands(module):
            command = arguments[1]
    return module, command, list(arguments[2:])


def print_version_and_all_commands():
    print(f'Version {spatialmif.__version__}')
    for module in get_modules_with_commands():
        print('')
        for command in get_commands(module):
            print(f'spatialmif {module} {command:<20} {describe_command(module, command)}')


def print_module_commands(module):
    for command in get_commands(module):
        print(f'{command:<20} {describe_command(module, command)}')


def run_script(script_path, arguments):
    """Runs the script in a child interpreter, passing on termination signals. Returns its exit
    code."""
    with subprocess.Popen([sys.executable, str(script_path)] + arguments) as running_process:
        for signal_number in (signal.SIGTERM, signal.SIGINT):
            signal.signal(signal_number, lambda signum, frame: running_process.send_signal(signum))
        return running_process.wait()


def main_program():
    module, command, arguments = resolve_command(sys.argv[1:])
    if module is None:
        print_version_and_all_commands()
        sys.exit()
    if command is None:
        print_module_commands(module)
        sys.exit()
    sys.exit(run_script(get_script(module, command), arguments))
