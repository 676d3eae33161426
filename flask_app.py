"""WSGI entry point.

``gunicorn flask_app:app`` in production, ``python flask_app.py`` locally.
"""
from app import create_app

app = create_app()

if __name__ == "__main__":  # pragma: no cover - manual run helper
    app.run(debug=True, host="0.0.0.0", port=5000)
