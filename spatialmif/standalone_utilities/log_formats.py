"""Colorized loggers for spatialmif modules, scripts and tutorial chapters."""
import logging
import os
import re

ESCAPE = '\u001b[{}m'
RESET = ESCAPE.format('0')
DIVIDER = '┃'
DATE_FORMAT = '%m-%d %H:%M:%S'

LEVEL_COLORS = {
    logging.DEBUG: '34',
    logging.INFO: '32;1',
    logging.WARNING: '33;1',
    logging.ERROR: '31;1',
    logging.CRITICAL: '31;1',
}


def _colored(text: str, code: str) -> str:
    return ESCAPE.format(code) + text + RESET


def _level_format(level: int) -> str:
    parts = [
        _colored('%(asctime)s', '34'),
        _colored('[', '35') + _colored('%(levelname)-8s', LEVEL_COLORS[level]) + _colored(']', '35'),
    ]
    if level != logging.INFO:
        parts.append(_colored('%(lineno)4d', '34'))
    parts.append(_colored('%(name)-32s', '35') + _colored(DIVIDER, '0;36'))
    parts.append('%(message)s')
    return ' '.join(parts)


class CustomFormatter(logging.Formatter):
    """One colorized format per level. Line numbers are shown for every level but INFO."""
    FORMATS = {level: _level_format(level) for level in LEVEL_COLORS}

    def format(self, record):
        formatter = logging.Formatter(self.FORMATS.get(record.levelno), datefmt=DATE_FORMAT)
        return formatter.format(record)


def colorized_logger(name: str) -> logging.Logger:
    """A lightweight customization of the standard library's ``logging`` loggers, with colorized
    messages and the ``spatialmif.`` prefix dropped from module names.

    The level is DEBUG if the ``DEBUG`` environment variable is set, otherwise INFO.

    Args:
        name (str):
            Typically a module's ``__name__``, or a command name for scripts.
    """
    logger = logging.getLogger(re.sub(r'^spatialmif\.', '', name))
    level = logging.DEBUG if 'DEBUG' in os.environ else logging.INFO
    logger.setLevel(level)
    if len(logger.handlers) == 0:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(CustomFormatter())
        logger.addHandler(handler)
    return logger
