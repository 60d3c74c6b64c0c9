"""TaskHub - task management API with realtime updates."""

__version__ = "1.0.0"
