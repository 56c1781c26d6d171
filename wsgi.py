# wsgi.py
"""
WSGI entry point

    gunicorn wsgi:application
    flask --app wsgi run --debug
"""

from app import create_app

application = create_app()
app = application

if __name__ == '__main__':
    # Development server
    create_app('development').run(host='0.0.0.0', port=5000, debug=True)
