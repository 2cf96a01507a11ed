"""Logging setup for applications embedding resmap."""

from __future__ import annotations

import logging
from typing import Final

# executed statements are logged here at INFO
SQL_LOGGER_NAME: Final[str] = "resmap.adapters.sqlalchemy.unit_of_work"


def configure_logging(
    *,
    level: int = logging.INFO,
    sql_level: int | None = None,
    force: bool = False,
) -> None:
    """Initialise the root logger once.

    ``sql_level`` sets the threshold for executed-SQL records separately, e.g.
    ``logging.WARNING`` keeps other output while hiding statements. Pass
    ``force=True`` to replace handlers installed earlier.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    if sql_level is not None:
        logging.getLogger(SQL_LOGGER_NAME).setLevel(sql_level)
