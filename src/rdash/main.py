from __future__ import annotations

import logging

from rdash.application.container import build_container
from rdash.application.dashboard import Dashboard
from rdash.config import get_app_paths, load_settings
from rdash.logging_config import setup_logging
from rdash.ui.app import App


def main() -> None:
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)

    settings = load_settings()
    container = build_container(settings, db_path=paths.db_path)
    logging.getLogger(__name__).info("app_start backend=%s", settings.backend)

    app = App(Dashboard(container), logs_dir=str(paths.logs_dir))
    app.mainloop()


if __name__ == "__main__":
    main()
