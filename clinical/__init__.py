"""Clinical workspace application.

Models, services, REST views, WebSocket consumers and management
commands for patients, tasks, shift handoffs, protocols, clinical
calculators, notifications and vital-sign monitoring.
"""
