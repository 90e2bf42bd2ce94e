"""Command dispatch for IPAM plugins: environment, stdin and error output."""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from typing import Any, Callable, Mapping, TextIO

SUPPORTED_VERSIONS = ("0.1.0", "0.2.0", "0.3.0", "0.3.1", "0.4.0")

ERR_INCOMPATIBLE_VERSION = 1
ERR_GENERIC = 100

_ADD_GET_DEL = ("ADD", "GET", "DEL")
_ADD_GET = ("ADD", "GET")

# Environment variable -> commands that require it (None: every command).
_REQUIRED: dict[str, tuple[str, ...] | None] = {
    "CNI_COMMAND": None,
    "CNI_CONTAINERID": _ADD_GET_DEL,
    "CNI_NETNS": _ADD_GET,
    "CNI_IFNAME": _ADD_GET_DEL,
    "CNI_ARGS": (),
    "CNI_PATH": _ADD_GET_DEL,
}


class PluginError(Exception):
    """An error reported to the runtime as a JSON error object."""

    def __init__(self, code: int, msg: str, details: str = "") -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code, "msg": self.msg}
        if self.details:
            out["details"] = self.details
        return out

    def __str__(self) -> str:
        return f"{self.msg}; {self.details}" if self.details else self.msg


@dataclass
class CmdArgs:
    """Arguments handed to a plugin command."""

    container_id: str = ""
    netns: str = ""
    if_name: str = ""
    args: str = ""
    path: str = ""
    stdin_data: bytes = b""


AddOrGet = Callable[[CmdArgs, TextIO], None]
Delete = Callable[[CmdArgs], None]


def _read_stdin(stdin: Any) -> bytes:
    buffer = getattr(stdin, "buffer", None)
    data = buffer.read() if buffer is not None else stdin.read()
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def _check_version(stdin_data: bytes) -> None:
    try:
        conf = json.loads(stdin_data or b"{}")
    except ValueError as exc:
        raise PluginError(ERR_GENERIC, f"decoding version from network config: {exc}") from None
    version = (conf.get("cniVersion") if isinstance(conf, dict) else None) or "0.1.0"
    if version not in SUPPORTED_VERSIONS:
        supported = ", ".join(f'"{v}"' for v in SUPPORTED_VERSIONS)
        raise PluginError(
            ERR_INCOMPATIBLE_VERSION,
            "incompatible CNI versions",
            f'config is "{version}", plugin supports [{supported}]',
        )


def _run(cmd_add: AddOrGet, cmd_get: AddOrGet, cmd_del: Delete,
         environ: Mapping[str, str], stdin: Any, stdout: TextIO) -> None:
    command = environ.get("CNI_COMMAND", "")
    missing = [
        name for name, cmds in _REQUIRED.items()
        if not environ.get(name) and (cmds is None or command in cmds)
    ]
    if missing:
        raise PluginError(ERR_GENERIC, f"required env variables [{','.join(missing)}] missing")

    if command == "VERSION":
        json.dump(
            {"cniVersion": SUPPORTED_VERSIONS[-1], "supportedVersions": list(SUPPORTED_VERSIONS)},
            stdout,
        )
        stdout.write("\n")
        return
    if command not in _ADD_GET_DEL:
        raise PluginError(ERR_GENERIC, f"unknown CNI_COMMAND: {command}")

    args = CmdArgs(
        container_id=environ.get("CNI_CONTAINERID", ""),
        netns=environ.get("CNI_NETNS", ""),
        if_name=environ.get("CNI_IFNAME", ""),
        args=environ.get("CNI_ARGS", ""),
        path=environ.get("CNI_PATH", ""),
        stdin_data=_read_stdin(stdin),
    )
    _check_version(args.stdin_data)

    if command == "ADD":
        cmd_add(args, stdout)
    elif command == "GET":
        cmd_get(args, stdout)
    else:
        cmd_del(args)


def plugin_main(cmd_add: AddOrGet, cmd_get: AddOrGet, cmd_del: Delete,
                environ: Mapping[str, str] | None = None,
                stdin: Any = None, stdout: TextIO | None = None) -> int:
    """Run the command named by CNI_COMMAND; return the process exit code."""
    environ = environ if environ is not None else os.environ
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    try:
        _run(cmd_add, cmd_get, cmd_del, environ, stdin, stdout)
    except PluginError as exc:
        error = exc
    except Exception as exc:  # every failure is reported to the runtime
        error = PluginError(ERR_GENERIC, str(exc))
    else:
        return 0
    json.dump(error.to_dict(), stdout, indent=4)
    stdout.write("\n")
    return 1