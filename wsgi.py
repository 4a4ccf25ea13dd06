"""WSGI entry point for the financial planner application.

Serve it with any WSGI server, or locally with `flask --app wsgi run`.
"""

from finplan import create_app

app = create_app()
