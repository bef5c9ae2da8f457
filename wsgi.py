"""
WSGI Entry Point

Gunicorn deployment:

    gunicorn --bind 0.0.0.0:8000 wsgi:application

The configuration is chosen by ``FLASK_CONFIG`` (default: development).
"""

from app import create_app

application = create_app()


if __name__ == '__main__':
    application.run(host='0.0.0.0', port=8000)
