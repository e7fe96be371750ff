from .console_reporter import Colors, ConsoleReporter

__all__ = ["Colors", "ConsoleReporter"]
