from rest_framework import serializers

from printbrasil.core.entities import (
    ENTREGA_DOMICILIO, METODOS_PAGAMENTO, OPCOES_ARTE, PACOTE_PADRAO, Pacote, STATUS_PEDIDO, TIPOS_ENTREGA,
    CASAS_DIMENSAO, DIMENSAO_MAXIMA, QUANTIDADE_MAXIMA,
)


def campo_decimal(**kwargs):
    """DecimalField sem limite de casas: o cliente pode mandar somas não arredondadas."""
    return serializers.DecimalField(max_digits=None, decimal_places=None, **kwargs)


def campo_texto_opcional(**kwargs):
    return serializers.CharField(required=False, allow_null=True, allow_blank=True, **kwargs)


# ====================================================================
# SERIALIZERS DE ENTRADA (CHECKOUT)
# ====================================================================

class ItemCarrinhoSerializer(serializers.Serializer):
    """
    Linha do carrinho enviada pelo navegador. Só o produto, as medidas ou a
    quantidade e a escolha de arte são usados; valores calculados no cliente
    são ignorados.
    """
    productId = serializers.CharField()
    width = serializers.DecimalField(
        max_digits=None, decimal_places=CASAS_DIMENSAO, max_value=DIMENSAO_MAXIMA, required=False, allow_null=True
    )
    height = serializers.DecimalField(
        max_digits=None, decimal_places=CASAS_DIMENSAO, max_value=DIMENSAO_MAXIMA, required=False, allow_null=True
    )
    quantity = serializers.IntegerField(max_value=QUANTIDADE_MAXIMA, required=False, allow_null=True)
    artOption = serializers.ChoiceField(choices=OPCOES_ARTE, required=False, allow_null=True)
    artFile = campo_texto_opcional(max_length=500)
    artCreationFee = campo_decimal(required=False, allow_null=True)

    def to_linha(self, dados: dict) -> dict:
        return {
            'produto_id': dados['productId'],
            'largura': dados.get('width'),
            'altura': dados.get('height'),
            'quantidade': dados.get('quantity'),
            'opcao_arte': dados.get('artOption'),
            'arquivo_arte': dados.get('artFile'),
            'taxa_criacao_arte': dados.get('artCreationFee'),
        }


class CriarPedidoSerializer(serializers.Serializer):
    """
    Serializer para a validação dos dados de checkout.
    Os totais do cliente servem apenas para comparação com o recálculo.
    """
    items = ItemCarrinhoSerializer(many=True, required=False)
    deliveryType = serializers.ChoiceField(choices=TIPOS_ENTREGA, default=ENTREGA_DOMICILIO)
    shippingAddress = campo_texto_opcional()
    paymentMethod = serializers.ChoiceField(choices=METODOS_PAGAMENTO)
    subtotal = campo_decimal()
    artCreationFee = campo_decimal(required=False, allow_null=True)
    shipping = campo_decimal()
    total = campo_decimal()
    shippingCarrier = campo_texto_opcional(max_length=100)
    shippingService = campo_texto_opcional(max_length=100)
    shippingDeliveryDays = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    idempotencyKey = campo_texto_opcional(max_length=100)

    def to_dados_pedido(self) -> dict:
        """Converte os campos da API para o dicionário esperado pelo CriarPedidoUseCase."""
        dados = self.validated_data
        linha = ItemCarrinhoSerializer()
        return {
            'itens': [linha.to_linha(item) for item in dados.get('items') or []],
            'tipo_entrega': dados['deliveryType'],
            'endereco_entrega': dados.get('shippingAddress'),
            'metodo_pagamento': dados['paymentMethod'],
            'subtotal': dados['subtotal'],
            'taxa_criacao_arte': dados.get('artCreationFee'),
            'frete': dados['shipping'],
            'total': dados['total'],
            'transportadora': dados.get('shippingCarrier') or None,
            'servico_frete': dados.get('shippingService') or None,
            'prazo_entrega_dias': dados.get('shippingDeliveryDays'),
            'chave_idempotencia': dados.get('idempotencyKey') or None,
        }


class AtualizarStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUS_PEDIDO)


# ====================================================================
# SERIALIZERS DE SAÍDA (PEDIDO)
# ====================================================================

class ItemPedidoSerializer(serializers.Serializer):
    id = serializers.CharField()
    orderId = serializers.CharField(source='pedido_id')
    productId = serializers.CharField(source='produto_id')
    productName = serializers.CharField(source='nome_produto')
    pricingMode = serializers.CharField(source='modo_preco')
    unitPrice = serializers.DecimalField(source='preco_unitario', max_digits=10, decimal_places=2)
    width = serializers.DecimalField(source='largura', max_digits=8, decimal_places=3, allow_null=True)
    height = serializers.DecimalField(source='altura', max_digits=8, decimal_places=3, allow_null=True)
    area = serializers.DecimalField(max_digits=12, decimal_places=6, allow_null=True)
    quantity = serializers.IntegerField(source='quantidade', allow_null=True)
    total = serializers.DecimalField(max_digits=10, decimal_places=2)
    artOption = serializers.CharField(source='opcao_arte')
    artFile = serializers.CharField(source='arquivo_arte', allow_null=True)
    artCreationFee = serializers.DecimalField(source='taxa_criacao_arte', max_digits=10, decimal_places=2)


class PedidoSerializer(serializers.Serializer):
    id = serializers.CharField()
    userId = serializers.CharField(source='usuario_id')
    status = serializers.CharField()
    deliveryType = serializers.CharField(source='tipo_entrega')
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2)
    artCreationFee = serializers.DecimalField(source='taxa_criacao_arte', max_digits=10, decimal_places=2)
    shipping = serializers.DecimalField(source='frete', max_digits=10, decimal_places=2)
    total = serializers.DecimalField(max_digits=10, decimal_places=2)
    shippingAddress = serializers.CharField(source='endereco_entrega', allow_null=True)
    paymentMethod = serializers.CharField(source='metodo_pagamento')
    paymentId = serializers.CharField(source='transacao_id', allow_null=True)
    shippingCarrier = serializers.CharField(source='transportadora', allow_null=True)
    shippingService = serializers.CharField(source='servico_frete', allow_null=True)
    shippingDeliveryDays = serializers.IntegerField(source='prazo_entrega_dias', allow_null=True)
    createdAt = serializers.DateTimeField(source='data_pedido')
    updatedAt = serializers.DateTimeField(source='data_atualizacao', allow_null=True)


# ====================================================================
# FRETE
# ====================================================================

class PacoteSerializer(serializers.Serializer):
    """Dimensões em cm e peso em kg; o que faltar usa o tubo padrão."""
    height = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    width = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    length = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    weight = serializers.DecimalField(max_digits=8, decimal_places=3, min_value=0, required=False)


class CalcularFreteSerializer(serializers.Serializer):
    destinationCEP = serializers.CharField(max_length=12)
    packageDetails = PacoteSerializer(required=False, allow_null=True)
    insuranceValue = campo_decimal(required=False, allow_null=True, min_value=0)

    def to_pacote(self) -> Pacote:
        dados = self.validated_data.get('packageDetails') or {}
        return Pacote(
            altura=dados.get('height') or PACOTE_PADRAO.altura,
            largura=dados.get('width') or PACOTE_PADRAO.largura,
            comprimento=dados.get('length') or PACOTE_PADRAO.comprimento,
            peso=dados.get('weight') or PACOTE_PADRAO.peso,
        )


class OpcaoFreteSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField(source='servico')
    company = serializers.CharField(source='transportadora')
    deliveryTime = serializers.IntegerField(source='prazo_dias')
    price = serializers.DecimalField(source='preco', max_digits=10, decimal_places=2)
    discount = serializers.DecimalField(source='desconto', max_digits=10, decimal_places=2)
    finalPrice = serializers.DecimalField(source='preco_final', max_digits=10, decimal_places=2)


# ====================================================================
# PAGAMENTO
# ====================================================================

class IdentificacaoSerializer(serializers.Serializer):
    type = serializers.CharField(max_length=10, default='CPF')
    number = serializers.CharField(max_length=20)


class PagadorSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False)
    first_name = serializers.CharField(required=False, max_length=100)
    last_name = serializers.CharField(required=False, max_length=100)
    identification = IdentificacaoSerializer(required=False)


class PagamentoSerializer(serializers.Serializer):
    """Corpo comum a PIX e boleto."""
    orderId = serializers.CharField()
    payer = PagadorSerializer(required=False)

    def to_dados_gateway(self) -> dict:
        dados = {k: v for k, v in self.validated_data.items() if k != 'orderId'}
        if 'payer' in dados:
            dados['payer'] = {k: dict(v) if isinstance(v, dict) else v for k, v in dados['payer'].items()}
        return dados


class PagamentoCartaoSerializer(PagamentoSerializer):
    """Cartão: o token vem do SDK do Mercado Pago no navegador, nunca o número do cartão."""
    token = serializers.CharField()
    installments = serializers.IntegerField(min_value=1, default=1)
    payment_method_id = serializers.CharField(max_length=50)


class TransacaoSerializer(serializers.Serializer):
    id = serializers.CharField(source='referencia_externa')
    status = serializers.CharField(source='status_pagamento')
    status_detail = serializers.CharField(source='detalhe_status', allow_null=True)
    qr_code = serializers.CharField(allow_null=True)
    qr_code_base64 = serializers.CharField(allow_null=True)
    ticket_url = serializers.CharField(source='url_pagamento', allow_null=True)
    barcode = serializers.CharField(source='codigo_barras', allow_null=True)
