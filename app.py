"""
WSGI entry point

    gunicorn app:app
    FLASK_ENV=development python app.py
"""
import os

from medreport import create_app

app = create_app(os.getenv('FLASK_ENV', 'production'))


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.getenv('PORT', 3000)))
