"""
WSGI / Flask CLI entry point.

Usage:
    FLASK_APP=wsgi.py flask run
    flask db migrate -m "description"
    flask db upgrade
    flask create-user --code SV-002 --name "..." --email ... --role SV
    flask seed-demo
"""

from trainprep import create_app

app = create_app()
