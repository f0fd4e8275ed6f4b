from django.apps import AppConfig

class VendasConfig(AppConfig):
    name = 'printbrasil.vendas'
    label = 'vendas'
    verbose_name = 'Vendas e Pedidos'
    default_auto_field = 'django.db.models.BigAutoField'
