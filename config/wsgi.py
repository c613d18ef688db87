import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

application = get_wsgi_application()

from django.conf import settings
from config.logger import setup_logging

setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
