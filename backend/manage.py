#!/usr/bin/env python
"""
Command-line entry point of the bookkeeping backend.

Runs Django management commands (migrate, runserver, assign_role,
verify_validation_history, ...) with the development settings unless
DJANGO_SETTINGS_MODULE points elsewhere.
"""

import os
import sys


def main():
    """Run administrative tasks, defaulting to core.settings.dev."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'core.settings.dev')

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
