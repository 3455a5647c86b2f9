"""Script de ejecución.

Permite ejecutar la CLI con `python -m main` desde `src/` durante desarrollo,
además del script `rconsole` instalado por pip.
"""

from __future__ import annotations

import sys

# Rich imprime "●" y "…": evita UnicodeEncodeError en consolas cp1252 de Windows.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
