# checksum_archiver/proc.py
from __future__ import annotations
import os, subprocess

# Windows flags to hide console windows
CREATE_NO_WINDOW = 0x08000000
STARTF_USESHOWWINDOW = 0x00000001
SW_HIDE = 0


def _startupinfo_windows():
    if os.name != "nt":
        return None
    si = subprocess.STARTUPINFO()
    si.dwFlags |= STARTF_USESHOWWINDOW
    si.wShowWindow = SW_HIDE
    return si


def run_tool(cmd: list[str],
             cwd: str | None = None,
             env: dict | None = None,
             check: bool = True) -> subprocess.CompletedProcess:
    """
    Run an external tool to completion with no console window (on Windows)
    and captured text output. Blocks until the process exits.

    Raises FileNotFoundError if the executable is missing and, with check=True,
    subprocess.CalledProcessError on a non-zero exit.
    """
    res = subprocess.run(
        cmd, cwd=cwd, env=env, shell=False,
        stdin=subprocess.DEVNULL,
        capture_output=True, text=True, errors="replace",
        startupinfo=_startupinfo_windows(),
        creationflags=CREATE_NO_WINDOW if os.name == "nt" else 0,
    )
    if check and res.returncode != 0:
        raise subprocess.CalledProcessError(res.returncode, cmd, res.stdout, res.stderr)
    return res
