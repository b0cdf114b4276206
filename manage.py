#!/usr/bin/env python
"""
Command line entry point for the carebase project.

Sets the default settings module to ``carebase.settings`` and delegates
to Django's management utility (``runserver``, ``migrate``,
``send_task_reminders``, ``populate_demo_data``...).
"""
import os
import sys


def main() -> None:
    """Run administrative tasks for the Django project."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'carebase.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
