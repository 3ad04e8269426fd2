# backend/wsgi.py
from motorbersih import create_app

app = create_app()
