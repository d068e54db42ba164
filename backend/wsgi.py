# backend/wsgi.py
from tallyscan import create_app

app = create_app()
