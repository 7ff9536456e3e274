# Overview: WSGI entrypoint (FLASK_APP=wsgi.py).

from stockkeep import create_app

app = create_app()
