"""Logging setup for the pbview CLI.

The root logger gets the configured level and format. pbview's own loggers
(`pbview.*`) can run at a different level, so `level: WARNING` with
`package_level: DEBUG` traces pbview without library noise. With
`log_commands` the gateway logger reports every pb/git invocation, its
exit code and stderr.

What each pbview logger reports:
- pbview.services.process_runner: invocations (DEBUG), timeouts and missing executables (WARNING)
- pbview.services.pb_client: failed pb commands (WARNING)
- pbview.parsers.*: undecodable pb output (WARNING), dropped tree cycles (WARNING)
"""

import logging

from pbview.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGE_LOGGER = "pbview"
COMMAND_LOGGER = "pbview.services.process_runner"


def _resolve_level(level: str) -> int:
    """Map level name to logging constant; unknown names give INFO."""
    return LEVELS.get(level.upper().strip(), logging.INFO)


class PBViewLogging:
    """Applies LoggingConfig to the root and pbview loggers."""

    def __init__(self, config: LoggingConfig) -> None:
        self._level = _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT
        # Empty package level follows the root
        self._package_level = _resolve_level(config.package_level) if config.package_level.strip() else logging.NOTSET
        self._log_commands = config.log_commands

    def setup(self) -> None:
        logging.basicConfig(level=self._level, format=self._format, force=True)
        package = logging.getLogger(PACKAGE_LOGGER)
        package.setLevel(self._package_level)
        commands = logging.getLogger(COMMAND_LOGGER)
        commands.setLevel(logging.DEBUG if self._log_commands else logging.NOTSET)
