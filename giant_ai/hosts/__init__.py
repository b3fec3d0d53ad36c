from giant_ai.hosts.capture import CaptureHost, Notification
from giant_ai.hosts.terminal import TerminalHost

__all__ = ["CaptureHost", "Notification", "TerminalHost"]
