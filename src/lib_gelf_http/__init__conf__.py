"""Static package metadata surfaced to the CLI and documentation.

Purpose
-------
Keep the values printed by ``lib_gelf_http info`` in one module so packaging
and the CLI banner stay in sync.

Contents
--------
* Module-level constants describing the distribution.
* :func:`print_info` rendering the metadata banner.
"""

from __future__ import annotations

from typing import Callable

name = "lib_gelf_http"
title = "GELF over HTTP(S) client with TLS client certificates and delivery reports"
version = "0.1.0"
homepage = "https://github.com/bitranox/lib_gelf_http"
author = "bitranox"
author_email = "bitranox@gmail.com"
shell_command = "lib_gelf_http"


def print_info(writer: Callable[[str], None] | None = None) -> None:
    """Print the metadata banner, or hand each line to ``writer``.

    Examples
    --------
    >>> lines = []
    >>> print_info(writer=lines.append)
    >>> lines[0]
    'Info for lib_gelf_http:\\n'
    """

    fields = [
        ("name", name),
        ("title", title),
        ("version", version),
        ("homepage", homepage),
        ("author", author),
        ("author_email", author_email),
        ("shell_command", shell_command),
    ]
    pad = max(len(label) for label, _ in fields)
    lines = [f"Info for {name}:\n", "\n"]
    lines.extend(f"    {label.ljust(pad)} = {value}\n" for label, value in fields)
    for line in lines:
        if writer is None:
            print(line, end="")
        else:
            writer(line)


def summary_info() -> str:
    """Return the banner produced by :func:`print_info` as one string."""

    lines: list[str] = []
    print_info(writer=lines.append)
    return "".join(lines)


__all__ = [
    "author",
    "author_email",
    "homepage",
    "name",
    "print_info",
    "shell_command",
    "summary_info",
    "title",
    "version",
]
