"""
Run formatted command strings through a shell's ``-c`` flag and capture
the result as ``(exit_code, stdout, stderr)``.

    code, out, err = sh("echo '{} + {}' | cat", 1, 3)
    # (0, "1 + 3\\n", "")
    wrap_sh("echo '{} + {}' | cat", 1, 3)
    # "1 + 3\\n"

Arguments are substituted with ``str.format`` and passed to the shell as-is.
Nothing is quoted: use ``shlex.quote`` on values that may hold shell
metacharacters.
"""

import logging
import subprocess
from typing import NamedTuple

log = logging.getLogger(__name__)

__all__ = [
    "CommandResult", "ShellError", "SpawnError", "ShellIOError", "CommandFailed",
    "Shell", "FLAVORS", "run", "wrap",
    "sh", "ash", "csh", "ksh", "zsh", "bash", "dash", "fish", "mksh", "tcsh",
    "wrap_sh", "wrap_ash", "wrap_csh", "wrap_ksh", "wrap_zsh",
    "wrap_bash", "wrap_dash", "wrap_fish", "wrap_mksh", "wrap_tcsh",
]


class CommandResult(NamedTuple):
    """Exit code, then stdout and stderr (same order as fds 1 and 2)."""
    exit_code: int
    stdout: str
    stderr: str


# ---- errors ----
class ShellError(Exception):
    """Base class for errors raised by this module."""


class SpawnError(ShellError):
    """The shell binary could not be located or started."""
    def __init__(self, shell, reason):
        super().__init__(shell, reason)
        self.shell = shell
        self.reason = reason

    def __str__(self):
        return f"cannot start shell {self.shell!r}: {self.reason}"


class ShellIOError(ShellError):
    """Captured stdout/stderr could not be read to completion."""
    def __init__(self, shell, reason):
        super().__init__(shell, reason)
        self.shell = shell
        self.reason = reason

    def __str__(self):
        return f"failed reading output of {self.shell!r}: {self.reason}"


class CommandFailed(ShellError):
    """Non-zero exit from a wrapped command. ``str()`` is the command's stderr."""
    def __init__(self, code: int, stdout: str, stderr: str):
        super().__init__(code, stdout, stderr)
        self.code = code
        self.stdout = stdout
        self.stderr = stderr

    def __str__(self):
        return self.stderr

    def __eq__(self, other):
        if not isinstance(other, CommandFailed):
            return NotImplemented
        return (self.code, self.stdout, self.stderr) == (other.code, other.stdout, other.stderr)

    def __hash__(self):
        return hash((self.code, self.stdout, self.stderr))


# ---- core ----
def run(shell, cmd: str, *args) -> CommandResult:
    """Render ``cmd.format(*args)`` and run it with ``<shell> -c``.

    Blocks until the child exits. A non-zero exit is reported, not raised.
    Raises SpawnError if the shell cannot be started and ShellIOError if its
    output cannot be drained.
    """
    # Formatting errors surface before anything is spawned
    rendered = cmd.format(*args)
    argv = [shell, "-c", rendered]
    log.debug("spawning %r", argv)

    try:
        proc = subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except (OSError, ValueError) as e:
        # ValueError: the rendered command holds a NUL byte
        log.debug("spawn of %r failed: %s", shell, e)
        raise SpawnError(shell, e) from e

    with proc:
        try:
            out, err = proc.communicate()
        except OSError as e:
            proc.kill()
            log.debug("reading output of %r failed: %s", shell, e)
            raise ShellIOError(shell, e) from e

    code = proc.returncode
    # Killed by a signal: there is no exit code, report a generic failure
    if code < 0:
        code = 1
    log.debug("%r exited with %d", shell, code)
    # Bytes in, lossy UTF-8 out; no newline translation
    return CommandResult(code, out.decode("utf-8", "replace"), err.decode("utf-8", "replace"))


def wrap(shell, cmd: str, *args) -> str:
    """Like run(), but return stdout on success and raise CommandFailed otherwise."""
    code, out, err = run(shell, cmd, *args)
    if code != 0:
        raise CommandFailed(code, out, err)
    return out


class Shell:
    """A shell binary bound for repeated use: ``Shell("bash")("echo {}", 1)``."""

    def __init__(self, path, description=""):
        self.path = path
        self.description = description

    def __call__(self, cmd: str, *args) -> CommandResult:
        return run(self.path, cmd, *args)

    def wrap(self, cmd: str, *args) -> str:
        return wrap(self.path, cmd, *args)

    def __repr__(self):
        if self.description:
            return f"Shell({self.path!r}, {self.description!r})"
        return f"Shell({self.path!r})"


# ---- flavors ----
sh = Shell("sh", "POSIX shell")
ash = Shell("ash", "Almquist shell")
csh = Shell("csh", "C shell")
ksh = Shell("ksh", "Korn shell")
zsh = Shell("zsh", "Z shell")
bash = Shell("bash", "Bourne Again shell")
dash = Shell("dash", "Debian Almquist shell")
fish = Shell("fish", "Fish shell")
mksh = Shell("mksh", "MirBSD Korn shell")
tcsh = Shell("tcsh", "TENEX C shell")

wrap_sh = sh.wrap
wrap_ash = ash.wrap
wrap_csh = csh.wrap
wrap_ksh = ksh.wrap
wrap_zsh = zsh.wrap
wrap_bash = bash.wrap
wrap_dash = dash.wrap
wrap_fish = fish.wrap
wrap_mksh = mksh.wrap
wrap_tcsh = tcsh.wrap

FLAVORS = {s.path: s for s in (sh, ash, csh, ksh, zsh, bash, dash, fish, mksh, tcsh)}
