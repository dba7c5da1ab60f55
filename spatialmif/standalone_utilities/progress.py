"""Logs basic indicator of amount of progress over a loop of images, chapters, or permutations."""
from logging import Logger

from spatialmif.standalone_utilities.log_formats import colorized_logger

_logger = colorized_logger(__name__)


class FractionalProgressReporter:
    """Logs "N% finished with <task>." at each of ``parts`` evenly spaced checkpoints, and a final
    message including the number of items skipped along the way (e.g. images with too few cells).
    """
    def __init__(self, size: int, task: str = 'task', parts: int = 4, logger: Logger = _logger):
        self.size = size
        self.task = task
        self.logger = logger
        self.counter = 0
        self.skipped: list[str] = []
        self.checkpoints = set(round((i + 1) * (size / parts)) for i in range(parts)) if size > 0 else set()

    def increment(self, item: str | None = None) -> None:
        self.counter = self.counter + 1
        if self.counter in self.checkpoints:
            percent = round(100 * (self.counter / self.size))
            if item is None:
                self.logger.info('%s%% finished with %s.', percent, self.task)
            else:
                self.logger.info('%s%% finished with %s. (%s ...)', percent, self.task, item)

    def skip(self, item: str, reason: str) -> None:
        self.skipped.append(item)
        self.logger.warning('Skipping %s in %s: %s', item, self.task, reason)
        self.increment()

    def done(self) -> None:
        if len(self.skipped) > 0:
            self.logger.info('Done %s (%s items, %s skipped).', self.task, self.size, len(self.skipped))
        else:
            self.logger.info('Done %s (%s items).', self.task, self.size)
