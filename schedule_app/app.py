"""WSGI entry (`schedule_app.app:app`) and the `schedule-app` dev server command."""

from __future__ import annotations

import os

from . import APP_HOST, APP_PORT, create_app


app = create_app()


def run() -> None:
    app.run(
        host=os.getenv("SCHEDULE_HOST", APP_HOST),
        port=int(os.getenv("SCHEDULE_PORT", APP_PORT)),
        debug=False,
    )


if __name__ == "__main__":
    run()
