"""
Configuração WSGI do projeto Print Brasil.

Expõe o callable `application` usado pelo servidor de produção.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'printbrasil.settings')

application = get_wsgi_application()
