"""WSGI entry point for the Todo service."""

import os

from todo_app import create_app

app = create_app(os.getenv("FLASK_ENV", "production"))

if __name__ == "__main__":
    # Listen on all interfaces so container platforms can route to us
    app.run(host="0.0.0.0", port=app.config["PORT"])
