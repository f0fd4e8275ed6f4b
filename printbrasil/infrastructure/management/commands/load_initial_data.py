from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from printbrasil.catalog.models import Produto
from printbrasil.core.entities import MODO_POR_AREA
from printbrasil.infrastructure.models import Configuracao


class Command(BaseCommand):
    help = 'Carrega usuários e produtos iniciais para teste da loja'

    def handle(self, *args, **kwargs):
        self.stdout.write('Criando dados iniciais...')
        User = get_user_model()

        # Usuários
        usuarios = [
            ('admin@printbrasil.com', 'admin123', 'Administrador', True),
            ('cliente@printbrasil.com', 'cliente123', 'Cliente Teste', False),
        ]
        for email, senha, nome, admin in usuarios:
            if User.objects.filter(email=email).exists():
                continue
            if admin:
                User.objects.create_superuser(email=email, password=senha, first_name=nome)
            else:
                User.objects.create_user(email=email, password=senha, first_name=nome)
            self.stdout.write(self.style.SUCCESS(f'Criado usuário "{email}" / {senha}'))

        # Produtos (todos vendidos por m²)
        produtos = [
            ('Banner Vinílico Premium',
             'Banner de alta qualidade, ideal para ambientes internos e externos com impressão em alta resolução',
             Decimal('45.90'), 'banner'),
            ('Adesivo Vinílico',
             'Adesivo de vinil autocolante, perfeito para aplicação em vidros, paredes e veículos',
             Decimal('35.00'), 'adesivo'),
            ('Lona para Outdoor',
             'Lona resistente para uso externo, ideal para fachadas e outdoors com proteção UV',
             Decimal('52.90'), 'lona'),
            ('Banner Lona 440g',
             'Lona premium alta gramatura, extra resistente para uso prolongado em ambientes externos',
             Decimal('58.90'), 'banner'),
            ('Adesivo Perfurado',
             'Adesivo perfurado para vidros, permite visibilidade de dentro para fora',
             Decimal('42.00'), 'adesivo'),
            ('Banner Blackout',
             'Banner com bloqueio total de luz, ideal para backlight e iluminação interna',
             Decimal('48.90'), 'banner'),
        ]

        for nome, descricao, preco_m2, categoria in produtos:
            produto, created = Produto.objects.get_or_create(
                nome=nome,
                defaults={
                    'descricao': descricao,
                    'categoria': categoria,
                    'modo_preco': MODO_POR_AREA,
                    'preco_m2': preco_m2,
                    'largura_maxima': Decimal('5.00'),
                    'altura_maxima': Decimal('50.00'),
                }
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f'Criado produto "{produto.nome}"'))

        # Configurações padrão (o token do Melhor Envio é cadastrado pelo admin)
        _, created = Configuracao.objects.get_or_create(chave='MELHOR_ENVIO_ENV', defaults={'valor': 'sandbox'})
        if created:
            self.stdout.write(self.style.SUCCESS('Criada configuração "MELHOR_ENVIO_ENV" = sandbox'))

        self.stdout.write(self.style.SUCCESS('Dados iniciais criados com sucesso!'))
