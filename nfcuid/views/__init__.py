"""
Views - Qt presentation layer. The application has no window; the tray
icon is its only visible surface.
"""

from .tray_icon import TrayNotifier

__all__ = ["TrayNotifier"]
