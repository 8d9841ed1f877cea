import logging
from pathlib import Path


class LogFilter(logging.Filter):
    """Keeps records from one logger and its children, e.g. "src.DCSModManager.merger"."""

    def __init__(self, name: str) -> None:
        super().__init__()
        self._name = name

    def filter(self, record) -> bool:
        return record.name == self._name or record.name.startswith(self._name + ".")


def setup_logging(
    log_file: str | Path | None, level: str = "INFO", name_filter: str | None = None
) -> None:
    level = level.upper()

    logger = logging.getLogger()
    logger.setLevel(level)

    logger.handlers.clear()

    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s @ %(levelname)s - %(funcName)s:%(lineno)d : %(message)s"
    )
    console_formatter = logging.Formatter("%(levelname)s: %(message)s")

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode="w", encoding="UTF-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        if name_filter is not None:
            file_handler.addFilter(LogFilter(name_filter))
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    # the console only shows problems, the log file gets everything
    console_handler.setLevel(max(logging.getLevelName(level), logging.WARNING))
    if name_filter is not None:
        console_handler.addFilter(LogFilter(name_filter))
    console_handler.setFormatter(console_formatter)

    logger.addHandler(console_handler)
