# backend/wsgi.py
from hazel import create_app

app = create_app()
