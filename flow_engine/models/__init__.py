from .execution import ContextSnapshot, LogEntry, LogLevel, RunResult, RunStatus

__all__ = ["ContextSnapshot", "LogEntry", "LogLevel", "RunResult", "RunStatus"]
