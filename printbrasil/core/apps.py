# printbrasil/core/apps.py

from django.apps import AppConfig

class CoreConfig(AppConfig):
    # O nome completo do path da aplicação
    name = 'printbrasil.core'
    label = 'core'
    verbose_name = 'Regras de Preço, Frete e Pagamento (Core)'

    # Sem modelos: a persistência fica na Infrastructure.
    default_auto_field = 'django.db.models.BigAutoField'
