"""
Programmatic Alembic migration runner.

There is no alembic.ini; the script location is the migrations directory next
to this module and the database URL comes from qms.db.config.

Usage examples:
    python -m qms.db.run_migrations upgrade head
    python -m qms.db.run_migrations downgrade -1
    python -m qms.db.run_migrations stamp head
    python -m qms.db.run_migrations history
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List

from alembic import command
from alembic.config import Config

from qms.db.config import get_settings

# Commands and the default arguments used when none are given.
_COMMANDS: Dict[str, tuple[Callable[..., None], List[str]]] = {
    "upgrade": (command.upgrade, ["head"]),
    "downgrade": (command.downgrade, ["-1"]),
    "stamp": (command.stamp, ["head"]),
    "history": (command.history, []),
    "current": (command.current, []),
    "heads": (command.heads, []),
    "revision": (command.revision, []),
}


# PUBLIC_INTERFACE
def build_config() -> Config:
    """Return an Alembic Config pointing at this package's migrations."""
    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).resolve().parent / "migrations"))
    # env.py uses the async URL for online runs; this one serves offline (--sql) mode.
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url)
    return cfg


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Run an Alembic command, e.g. main(["upgrade", "head"])."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    cmd, other = args[0], args[1:]
    if cmd == "show":
        if not other:
            print("Usage: show <revision>")
            sys.exit(2)
        command.show(build_config(), other[0])
        return

    if cmd not in _COMMANDS:
        print(f"Unsupported Alembic command: {cmd}")
        sys.exit(2)

    func, defaults = _COMMANDS[cmd]
    func(build_config(), *(other or defaults))


if __name__ == "__main__":
    main()
