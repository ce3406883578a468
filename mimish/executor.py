"""Running parsed commands: builtins in the shell, everything else as processes."""

import errno
import io
import os
import signal
import subprocess
import tempfile
import threading

from mimish.builtins import (
    ShellExit,
    cd,
    echo,
    exit_command,
    export,
    print_env,
    pwd,
    unset,
)
from mimish.commands import FileType
from mimish.environment import Environment
from mimish.quotes import is_white_space, matches_command, remove_quotes, split_quoted

COMMAND_NOT_FOUND = "command not found"
NOT_FOUND_STATUS = 127

BUILTINS = ("echo", "cd", "pwd", "export", "unset", "env", "exit")

_MODES = {
    FileType.INFILE: ("rb", "infile"),
    FileType.HEREDOC: ("rb", "infile"),
    FileType.OUTFILE: ("wb", "outfile"),
    FileType.APPEND: ("ab", "outfile"),
}

_SIGNAL_STATUSES = {signal.SIGINT: 130}
if hasattr(signal, "SIGQUIT"):
    _SIGNAL_STATUSES[signal.SIGQUIT] = 131


class _RedirectionError(OSError):
    """A redirection file could not be opened; *label* names its direction."""

    def __init__(self, label, code, message, filename):
        super().__init__(code, message, filename)
        self.label = label


def is_builtin(command):
    """Return True if the command text names a builtin."""
    return any(matches_command(name, command) for name in BUILTINS)


def _is_executable(path):
    return bool(path) and os.access(path, os.F_OK | os.X_OK)


def _path_directories(env):
    for entry in env:
        if entry.startswith("PATH="):
            return [directory for directory in entry[5:].split(":") if directory]
    return None


def find_executable(command, env):
    """Return the path to run for the first word of *command*, or None."""
    if not command:
        return None
    words = split_quoted(command, " ")
    directories = _path_directories(env)
    if not words:
        return None
    name = words[0]
    if _is_executable(name):
        return name
    if directories is None:
        return None
    suffix = name if name.startswith("/") else "/" + name
    for directory in directories:
        candidate = directory + suffix
        if _is_executable(candidate):
            return candidate
    return None


def _opener(path, flags):
    return os.open(path, flags, 0o644)


def _open(filename, mode, label):
    if filename is None:
        raise _RedirectionError(
            label, errno.ENOENT, os.strerror(errno.ENOENT), filename
        )
    try:
        return open(filename, mode, opener=_opener)
    except OSError as error:
        raise _RedirectionError(
            label, error.errno, error.strerror, filename
        ) from None


def _close(*files):
    for handle in files:
        if handle is not None:
            handle.close()


def open_redirections(command):
    """Open the redirections of *command* in order.

    Returns (input, output) binary files, either of which may be None; only
    the last file of each direction stays open. Raises OSError when a file
    cannot be opened.
    """
    source = sink = None
    try:
        for redirection in command.redirections:
            mode, label = _MODES[redirection.type]
            handle = _open(redirection.filename, mode, label)
            if mode == "rb":
                _close(source)
                source = handle
            else:
                _close(sink)
                sink = handle
    except BaseException:
        _close(source, sink)
        raise
    return source, sink


def _report(error, stderr):
    label = getattr(error, "label", "redirection")
    stderr.write(f"{label}: {error.strerror}\n")


def run_builtin(command, env, status, stdout, stderr):
    """Run the builtin named by *command* and return the new exit status."""
    if matches_command("echo", command):
        return echo(command, stdout)
    if matches_command("cd", command):
        return cd(command, env, stderr)
    if matches_command("pwd", command):
        pwd(stdout)
        return status
    if matches_command("export", command):
        return export(command, env, stdout)
    if matches_command("unset", command):
        return unset(command, env)
    if matches_command("env", command):
        return print_env(env, stdout)
    if matches_command("exit", command):
        return exit_command(command, status, stderr)
    raise ValueError(f"not a builtin: {command!r}")


def _run_single_builtin(command, env, status, stdout, stderr):
    try:
        source, sink = open_redirections(command)
    except OSError as error:
        _report(error, stderr)
        return 1
    try:
        if sink is None:
            return run_builtin(command.text, env, status, stdout, stderr)
        buffer = io.StringIO()
        try:
            return run_builtin(command.text, env, status, buffer, stderr)
        finally:
            sink.write(buffer.getvalue().encode())
    finally:
        _close(source, sink)


def _fileno(stream):
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _process_env(env):
    return dict(entry.split("=", 1) for entry in env if "=" in entry)


class _Pipeline:
    """One run of a pipeline of commands connected by pipes."""

    def __init__(self, env, status, stdout, stderr):
        self.env = env
        self.status = status
        self.stdout = stdout
        self.stderr = stderr
        self._processes = []
        self._writers = []
        self._spools = []

    def run(self, commands):
        previous = None
        result = self.status
        for position, command in enumerate(commands):
            is_last = position == len(commands) - 1
            read_end, write_end = (None, None) if is_last else os.pipe()
            result = self._stage(command, previous, write_end)
            previous = read_end
        for process in self._processes:
            process.wait()
        for writer in self._writers:
            writer.join()
        for spool, stream in self._spools:
            spool.seek(0)
            stream.write(spool.read().decode("utf-8", "replace"))
            spool.close()
        return self._final_status(result)

    def _final_status(self, result):
        if isinstance(result, int):
            return result
        code = result.returncode
        if code >= 0:
            return code
        return _SIGNAL_STATUSES.get(-code, self.status)

    def _stage(self, command, stdin_fd, write_end):
        try:
            try:
                infile, outfile = open_redirections(command)
            except OSError as error:
                _report(error, self.stderr)
                return 1
            try:
                source = infile.fileno() if infile is not None else stdin_fd
                sink = outfile.fileno() if outfile is not None else write_end
                if is_builtin(command.text):
                    return self._builtin(command.text, sink)
                return self._external(command.text, source, sink)
            finally:
                _close(infile, outfile)
        finally:
            for descriptor in (stdin_fd, write_end):
                if descriptor is not None:
                    os.close(descriptor)

    def _builtin(self, text, sink):
        out = io.StringIO()
        local_env = Environment(self.env)
        cwd = os.getcwd()
        try:
            result = run_builtin(text, local_env, self.status, out, self.stderr)
        except ShellExit as request:
            result = request.status
        finally:
            os.chdir(cwd)
        code = result if matches_command("exit", text) else 0
        if sink is None:
            self.stdout.write(out.getvalue())
        else:
            self._write_async(sink, out.getvalue().encode())
        return code

    def _write_async(self, descriptor, data):
        duplicate = os.dup(descriptor)

        def pump():
            view = memoryview(data)
            try:
                while view:
                    view = view[os.write(duplicate, view):]
            except BrokenPipeError:
                pass
            finally:
                os.close(duplicate)

        writer = threading.Thread(target=pump, daemon=True)
        writer.start()
        self._writers.append(writer)

    def _target(self, stream):
        descriptor = _fileno(stream)
        if descriptor is not None:
            stream.flush()
            return descriptor
        spool = tempfile.TemporaryFile()
        self._spools.append((spool, stream))
        return spool

    def _external(self, text, source, sink):
        text = remove_quotes(text)
        args = split_quoted(text, " ")
        path = find_executable(text, self.env)
        if path is None or not args:
            self.stderr.write(COMMAND_NOT_FOUND + "\n")
            return NOT_FOUND_STATUS
        try:
            process = subprocess.Popen(
                args,
                executable=path,
                stdin=source,
                stdout=sink if sink is not None else self._target(self.stdout),
                stderr=self._target(self.stderr),
                env=_process_env(self.env),
            )
        except OSError as error:
            self.stderr.write(f"execve: {error.strerror}\n")
            return 1
        self._processes.append(process)
        return process


def execute(commands, env, status, stdout, stderr):
    """Run *commands* as a pipeline and return the new exit status.

    A lone builtin runs in the shell itself and may raise ShellExit; builtins
    inside a pipeline work on a copy of the environment.
    """
    commands = list(commands)
    if not commands or all(is_white_space(char) for char in commands[0].text):
        return status
    if len(commands) == 1 and is_builtin(commands[0].text):
        return _run_single_builtin(commands[0], env, status, stdout, stderr)
    return _Pipeline(env, status, stdout, stderr).run(commands)