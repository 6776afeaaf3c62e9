"""mdns-bridge CLI: dispatches to the apply / install / uninstall verbs.

Verbs:
  apply      create/activate NM profiles, configure Avahi & nftables now
  install    apply, then persist the config and enable the boot-time unit
  uninstall  remove unit/config and the NM profiles this tool created

Examples:
  sudo mdns-bridge apply --trunk eth0 --vlans "10 30 50"

  sudo mdns-bridge install --mgmt-mode tagged --mgmt-vid 99

  sudo mdns-bridge uninstall
"""

from __future__ import annotations

import sys

from mdnsbridge.cli import main as run_command

COMMANDS = {
    "apply": "Converge interfaces and regenerate Avahi + nftables config now",
    "install": "apply + persist config + enable boot-time unit",
    "uninstall": "Reverse install and restore backed-up configs",
}


def _print_usage() -> None:
    print("usage: sudo mdns-bridge {apply|install|uninstall} [options]\n", file=sys.stderr)
    print("Available commands:", file=sys.stderr)
    for cmd, desc in COMMANDS.items():
        print(f"  {cmd:10s}  {desc}", file=sys.stderr)
    print("\nRun 'mdns-bridge <command> --help' for command-specific options.", file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    """Main entry point: dispatch to the verb handler."""
    argv = sys.argv[1:] if argv is None else argv

    if not argv or argv[0] in ("-h", "--help"):
        _print_usage()
        sys.exit(0 if argv else 1)

    command = argv[0]
    if command not in COMMANDS:
        print(f"mdns-bridge: unknown command '{command}'\n", file=sys.stderr)
        _print_usage()
        sys.exit(1)

    sys.exit(run_command(command, argv[1:]))


if __name__ == "__main__":
    main()
