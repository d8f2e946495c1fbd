"""Runs bash as root, with the Android network groups on 32-bit ARM devices."""

from __future__ import annotations

import os
import platform
import sys

SHELL = "/bin/bash"
AID_INET = 3003
AID_NET_RAW = 3004


def _is_arm() -> bool:
    machine = platform.machine().lower()
    return machine.startswith("arm") and not machine.startswith("arm64")


def main(argv: list[str] | None = None) -> int:
    """Replace this process with a root bash shell, passing ``argv`` through."""
    args = list(sys.argv[1:] if argv is None else argv)

    # Android's "paranoid network" feature only lets processes in these
    # groups use the network.
    if _is_arm():
        os.setgroups([AID_INET, AID_NET_RAW])

    try:
        os.setgid(0)
        os.setuid(0)
        os.execv(SHELL, [SHELL, *args])
    except OSError as exc:
        print(f"failed to start {SHELL}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())