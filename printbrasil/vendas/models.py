import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from printbrasil.core.entities import (
    MODO_POR_AREA, MODO_UNIDADE_FIXA, ARTE_UPLOAD, ARTE_CRIAR_PARA_MIM,
    ENTREGA_RETIRADA, ENTREGA_DOMICILIO, PAGAMENTO_CARTAO, PAGAMENTO_PIX, PAGAMENTO_BOLETO,
    STATUS_PENDENTE, STATUS_PAGO, STATUS_PROCESSANDO, STATUS_ENVIADO, STATUS_ENTREGUE, STATUS_CANCELADO,
)


class Pedido(models.Model):
    """
    Modelo que representa um pedido/venda no sistema.
    Os valores gravados são sempre os recalculados pelo servidor.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Relacionamentos
    usuario = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='pedidos')

    # Status e Data
    STATUS_CHOICES = [
        (STATUS_PENDENTE, 'Aguardando Pagamento'),
        (STATUS_PAGO, 'Pago'),
        (STATUS_PROCESSANDO, 'Em Produção'),
        (STATUS_ENVIADO, 'Enviado'),
        (STATUS_ENTREGUE, 'Entregue'),
        (STATUS_CANCELADO, 'Cancelado'),
    ]

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDENTE, db_index=True)
    data_pedido = models.DateTimeField(auto_now_add=True)
    data_atualizacao = models.DateTimeField(auto_now=True)

    # Valores
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    taxa_criacao_arte = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    frete = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    # Dados de Pagamento
    FORMA_PAGAMENTO_CHOICES = [
        (PAGAMENTO_CARTAO, 'Cartão de Crédito'),
        (PAGAMENTO_BOLETO, 'Boleto'),
        (PAGAMENTO_PIX, 'PIX'),
    ]
    metodo_pagamento = models.CharField(max_length=10, choices=FORMA_PAGAMENTO_CHOICES)
    transacao_id = models.CharField(max_length=100, blank=True, null=True, db_index=True)

    # Entrega
    TIPO_ENTREGA_CHOICES = [
        (ENTREGA_DOMICILIO, 'Entrega'),
        (ENTREGA_RETIRADA, 'Retirada no local'),
    ]
    tipo_entrega = models.CharField(max_length=10, choices=TIPO_ENTREGA_CHOICES, default=ENTREGA_DOMICILIO)
    endereco_entrega = models.TextField(blank=True, null=True)
    transportadora = models.CharField(max_length=100, blank=True, null=True)
    servico_frete = models.CharField(max_length=100, blank=True, null=True)
    prazo_entrega_dias = models.PositiveIntegerField(blank=True, null=True)

    # Reenvios do checkout com a mesma chave devolvem o mesmo pedido
    chave_idempotencia = models.CharField(max_length=100, unique=True, blank=True, null=True)

    class Meta:
        verbose_name = 'Pedido'
        verbose_name_plural = 'Pedidos'
        db_table = 'vendas_pedido'
        ordering = ['-data_pedido']

    def __str__(self):
        return f"Pedido #{self.id} - {self.usuario.email}"


class ItemPedido(models.Model):
    """
    Modelo que representa um item dentro de um pedido.
    Mantém um snapshot dos dados do produto no momento da compra.
    """
    MODO_PRECO_CHOICES = [
        (MODO_POR_AREA, 'Por m²'),
        (MODO_UNIDADE_FIXA, 'Por unidade'),
    ]
    OPCAO_ARTE_CHOICES = [
        (ARTE_UPLOAD, 'Arte enviada pelo cliente'),
        (ARTE_CRIAR_PARA_MIM, 'Criação de arte'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    pedido = models.ForeignKey(Pedido, related_name='itens', on_delete=models.CASCADE)
    produto = models.ForeignKey('catalog.Produto', on_delete=models.PROTECT, related_name='itens_venda')

    # Snapshot dos dados do produto
    nome_produto = models.CharField(max_length=255)
    modo_preco = models.CharField(max_length=20, choices=MODO_PRECO_CHOICES)
    preco_unitario = models.DecimalField(max_digits=10, decimal_places=2)
    largura = models.DecimalField(max_digits=8, decimal_places=3, blank=True, null=True)
    altura = models.DecimalField(max_digits=8, decimal_places=3, blank=True, null=True)
    area = models.DecimalField(max_digits=12, decimal_places=6, blank=True, null=True)
    quantidade = models.PositiveIntegerField(blank=True, null=True)
    total = models.DecimalField(max_digits=10, decimal_places=2)

    # Arte
    opcao_arte = models.CharField(max_length=20, choices=OPCAO_ARTE_CHOICES, default=ARTE_UPLOAD)
    arquivo_arte = models.CharField(max_length=500, blank=True, null=True)
    taxa_criacao_arte = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        verbose_name = 'Item do Pedido'
        verbose_name_plural = 'Itens do Pedido'
        db_table = 'vendas_item_pedido'

    def __str__(self):
        if self.modo_preco == MODO_POR_AREA:
            return f"{self.nome_produto} {self.largura}x{self.altura}m em Pedido #{self.pedido_id}"
        return f"{self.quantidade}x {self.nome_produto} em Pedido #{self.pedido_id}"
