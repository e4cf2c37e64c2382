"""
Service Organization
====================

**application/**
  Singleton services managed by ServiceContainer. One instance per application.
  Examples: CommandService, DeviceStateService, SensorLogService

Construction order lives in ``container_builder.py``; ``container.py`` holds
the assembled ServiceContainer.
"""
