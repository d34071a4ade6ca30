# WSGI entrypoint (FLASK_APP=wsgi.py)
from apple_rewards import create_app

app = create_app()
