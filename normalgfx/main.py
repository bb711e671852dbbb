"""Точка входа в приложение."""
import sys
from typing import Optional, Sequence

from normalgfx.app import ConverterApp


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Создаёт приложение и выполняет одну команду конвертации."""
    app = ConverterApp()
    return app.run(argv)


if __name__ == "__main__":
    sys.exit(main())
