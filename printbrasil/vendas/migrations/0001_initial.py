import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Pedido',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('pending', 'Aguardando Pagamento'), ('paid', 'Pago'), ('processing', 'Em Produção'), ('shipped', 'Enviado'), ('delivered', 'Entregue'), ('cancelled', 'Cancelado')], db_index=True, default='pending', max_length=20)),
                ('data_pedido', models.DateTimeField(auto_now_add=True)),
                ('data_atualizacao', models.DateTimeField(auto_now=True)),
                ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('taxa_criacao_arte', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('frete', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('metodo_pagamento', models.CharField(choices=[('card', 'Cartão de Crédito'), ('boleto', 'Boleto'), ('pix', 'PIX')], max_length=10)),
                ('transacao_id', models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ('tipo_entrega', models.CharField(choices=[('delivery', 'Entrega'), ('pickup', 'Retirada no local')], default='delivery', max_length=10)),
                ('endereco_entrega', models.TextField(blank=True, null=True)),
                ('transportadora', models.CharField(blank=True, max_length=100, null=True)),
                ('servico_frete', models.CharField(blank=True, max_length=100, null=True)),
                ('prazo_entrega_dias', models.PositiveIntegerField(blank=True, null=True)),
                ('chave_idempotencia', models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ('usuario', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='pedidos', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Pedido',
                'verbose_name_plural': 'Pedidos',
                'db_table': 'vendas_pedido',
                'ordering': ['-data_pedido'],
            },
        ),
        migrations.CreateModel(
            name='ItemPedido',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('nome_produto', models.CharField(max_length=255)),
                ('modo_preco', models.CharField(choices=[('per_area', 'Por m²'), ('fixed_unit', 'Por unidade')], max_length=20)),
                ('preco_unitario', models.DecimalField(decimal_places=2, max_digits=10)),
                ('largura', models.DecimalField(blank=True, decimal_places=3, max_digits=8, null=True)),
                ('altura', models.DecimalField(blank=True, decimal_places=3, max_digits=8, null=True)),
                ('area', models.DecimalField(blank=True, decimal_places=6, max_digits=12, null=True)),
                ('quantidade', models.PositiveIntegerField(blank=True, null=True)),
                ('total', models.DecimalField(decimal_places=2, max_digits=10)),
                ('opcao_arte', models.CharField(choices=[('upload', 'Arte enviada pelo cliente'), ('create_for_me', 'Criação de arte')], default='upload', max_length=20)),
                ('arquivo_arte', models.CharField(blank=True, max_length=500, null=True)),
                ('taxa_criacao_arte', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('pedido', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='itens', to='vendas.pedido')),
                ('produto', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='itens_venda', to='catalog.produto')),
            ],
            options={
                'verbose_name': 'Item do Pedido',
                'verbose_name_plural': 'Itens do Pedido',
                'db_table': 'vendas_item_pedido',
            },
        ),
    ]
