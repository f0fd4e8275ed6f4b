import uuid
from decimal import Decimal
from unittest.mock import Mock, patch

import requests
from django.contrib.auth import get_user_model
from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from printbrasil.catalog.models import Produto
from printbrasil.vendas.models import Pedido
from printbrasil.core.entities import MODO_POR_AREA, MODO_UNIDADE_FIXA
from printbrasil.core.exceptions import ServicoExternoError


def _resposta_mp(dados):
    resposta = Mock(status_code=200)
    resposta.json.return_value = dados
    resposta.raise_for_status.return_value = None
    return resposta


class BaseAPITestCase(APITestCase):

    def setUp(self):
        """
        Cria um cliente, um segundo cliente, um administrador e dois produtos:
        um vendido por m² e outro por unidade.
        """
        User = get_user_model()
        self.cliente = User.objects.create_user(email='cliente@printbrasil.com', password='cliente123',
                                                first_name='Cliente', last_name='Teste')
        self.outro = User.objects.create_user(email='outro@printbrasil.com', password='outro123')
        self.admin = User.objects.create_superuser(email='admin@printbrasil.com', password='admin123')

        self.banner = Produto.objects.create(
            nome='Banner Vinílico Premium', modo_preco=MODO_POR_AREA, preco_m2=Decimal('45.90'),
            largura_maxima=Decimal('5.00'), altura_maxima=Decimal('50.00'),
        )
        self.placa = Produto.objects.create(
            nome='Placa PVC', modo_preco=MODO_UNIDADE_FIXA, preco_unitario=Decimal('19.90'),
        )

    def _checkout(self, **kwargs):
        payload = {
            'items': [{'productId': str(self.banner.id), 'width': '2.5', 'height': '1.5', 'artOption': 'upload'}],
            'deliveryType': 'pickup',
            'paymentMethod': 'pix',
            'subtotal': '172.13',
            'artCreationFee': '0',
            'shipping': '0',
            'total': '172.13',
        }
        payload.update(kwargs)
        return payload

    def _criar_pedido(self, usuario, **kwargs):
        self.client.force_authenticate(user=usuario)
        response = self.client.post('/api/orders/', self._checkout(**kwargs), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return response.data['order']


# ====================================================================
# 1. PEDIDOS
# ====================================================================

class PedidosAPITestCase(BaseAPITestCase):

    def test_checkout_com_valores_corretos(self):
        """
        Cenário: banner 2.5 x 1.5 m para retirada, total conferido pelo servidor.
        """
        # ARRANGE
        self.client.force_authenticate(user=self.cliente)

        # ACT
        response = self.client.post('/api/orders/', self._checkout(), format='json')

        # ASSERT
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        pedido = response.data['order']
        self.assertEqual(pedido['status'], 'pending')
        self.assertEqual(pedido['total'], '172.13')
        self.assertEqual(pedido['shippingCarrier'], 'pickup')
        self.assertEqual(pedido['shippingService'], 'in-person')
        self.assertEqual(pedido['shippingDeliveryDays'], 0)
        self.assertEqual(pedido['userId'], str(self.cliente.pk))
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['items'][0]['unitPrice'], '45.90')
        self.assertEqual(response.data['items'][0]['productName'], 'Banner Vinílico Premium')
        self.assertEqual(Pedido.objects.count(), 1)

    def test_checkout_com_entrega(self):
        self.client.force_authenticate(user=self.cliente)
        payload = self._checkout(
            items=[{'productId': str(self.placa.id), 'quantity': 2}],
            deliveryType='delivery', shippingAddress='Rua Teste, 100 - Brasília/DF',
            subtotal='39.80', shipping='25.50', total='65.30',
            shippingCarrier='Correios', shippingService='PAC', shippingDeliveryDays=8,
        )

        response = self.client.post('/api/orders/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order']['total'], '65.30')
        self.assertEqual(response.data['order']['shippingCarrier'], 'Correios')
        self.assertEqual(response.data['items'][0]['quantity'], 2)

    def test_valores_adulterados_sao_recusados(self):
        self.client.force_authenticate(user=self.cliente)

        response = self.client.post('/api/orders/', self._checkout(subtotal='100.00', total='100.00'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('message', response.data)
        self.assertEqual(Pedido.objects.count(), 0)

    def test_frete_fora_da_faixa(self):
        self.client.force_authenticate(user=self.cliente)
        payload = self._checkout(deliveryType='delivery', shippingAddress='Rua X', shipping='5.00', total='177.13')

        response = self.client.post('/api/orders/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_carrinho_vazio(self):
        self.client.force_authenticate(user=self.cliente)

        response = self.client.post('/api/orders/', self._checkout(items=[]), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Carrinho vazio')

    def test_produto_inexistente(self):
        self.client.force_authenticate(user=self.cliente)
        payload = self._checkout(items=[{'productId': str(uuid.uuid4()), 'quantity': 1}])

        response = self.client.post('/api/orders/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_campos_invalidos(self):
        self.client.force_authenticate(user=self.cliente)

        response = self.client.post('/api/orders/', self._checkout(paymentMethod='cheque'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Valores inválidos enviados')
        self.assertIn('paymentMethod', response.data['errors'])

    def test_quantidade_gigante_e_recusada_sem_gravar(self):
        self.client.force_authenticate(user=self.cliente)
        payload = self._checkout(
            items=[{'productId': str(self.placa.id), 'quantity': 10 ** 9}],
            subtotal='19900000000.00', total='19900000000.00',
        )

        response = self.client.post('/api/orders/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data['errors'])
        self.assertEqual(Pedido.objects.count(), 0)

    def test_medida_com_mais_de_tres_casas_e_recusada(self):
        self.client.force_authenticate(user=self.cliente)
        payload = self._checkout(
            items=[{'productId': str(self.banner.id), 'width': '1.2345', 'height': '1'}],
            subtotal='56.66', total='56.66',
        )

        response = self.client.post('/api/orders/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Pedido.objects.count(), 0)

    def test_subtotal_do_pedido_e_a_soma_dos_itens(self):
        """
        Cenário: 4 banners de 2.5 x 1.5 m. Cada item sai por 172.13 e o pedido por 688.52.
        """
        self.client.force_authenticate(user=self.cliente)
        linha = {'productId': str(self.banner.id), 'width': '2.5', 'height': '1.5', 'artOption': 'upload'}
        payload = self._checkout(items=[dict(linha) for _ in range(4)], subtotal='688.52', total='688.52')

        response = self.client.post('/api/orders/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['order']['subtotal'], '688.52')
        self.assertEqual(
            Decimal(response.data['order']['subtotal']),
            sum(Decimal(item['total']) for item in response.data['items']),
        )
        gravado = Pedido.objects.get()
        self.assertEqual(gravado.subtotal, sum(item.total for item in gravado.itens.all()))

    def test_checkout_sem_login(self):
        response = self.client.post('/api/orders/', self._checkout(), format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_reenvio_com_a_mesma_chave(self):
        """
        Cenário: o navegador reenvia o checkout após um timeout. Nenhum pedido duplicado.
        """
        self.client.force_authenticate(user=self.cliente)
        payload = self._checkout(idempotencyKey='checkout-123')

        primeira = self.client.post('/api/orders/', payload, format='json')
        segunda = self.client.post('/api/orders/', payload, format='json')

        self.assertEqual(primeira.status_code, status.HTTP_201_CREATED)
        self.assertEqual(segunda.status_code, status.HTTP_200_OK)
        self.assertEqual(primeira.data['order']['id'], segunda.data['order']['id'])
        self.assertEqual(Pedido.objects.count(), 1)

    def test_listar_pedidos(self):
        meu = self._criar_pedido(self.cliente)
        self._criar_pedido(self.outro)

        self.client.force_authenticate(user=self.cliente)
        response = self.client.get('/api/orders/')
        self.assertEqual([p['id'] for p in response.data], [meu['id']])

        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/orders/', {'status': 'pending'})
        self.assertEqual(len(response.data), 2)

    def test_detalhe_do_pedido(self):
        pedido = self._criar_pedido(self.outro)

        self.client.force_authenticate(user=self.cliente)
        self.assertEqual(self.client.get(f"/api/orders/{pedido['id']}/").status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get(f'/api/orders/{uuid.uuid4()}/').status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(user=self.outro)
        response = self.client.get(f"/api/orders/{pedido['id']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['items']), 1)

    def test_admin_atualiza_status(self):
        pedido = self._criar_pedido(self.cliente)
        url = f"/api/orders/{pedido['id']}/status/"

        self.client.force_authenticate(user=self.cliente)
        self.assertEqual(self.client.patch(url, {'status': 'shipped'}, format='json').status_code,
                         status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        self.assertEqual(self.client.patch(url, {'status': 'perdido'}, format='json').status_code,
                         status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(url, {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'shipped')
        self.assertEqual(Pedido.objects.get(pk=pedido['id']).status, 'shipped')


# ====================================================================
# 2. FRETE
# ====================================================================

@override_settings(MELHOR_ENVIO_TOKEN='me-token', MELHOR_ENVIO_ENV='sandbox', FRETE_CEP_ORIGEM='01310100')
class CalcularFreteAPITestCase(APITestCase):

    url = '/api/shipping/calculate/'

    @patch('printbrasil.infrastructure.gateways.MelhorEnvioGateway.cotar')
    def test_cotacao_do_provedor(self, mock_cotar):
        mock_cotar.return_value = [
            {'id': 1, 'name': 'PAC', 'price': '30.50', 'custom_price': '28.40', 'discount': '2.10',
             'delivery_time': 8, 'company': {'name': 'Correios'}},
        ]

        response = self.client.post(self.url, {'destinationCEP': '70040-010'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('fallback', response.data)
        self.assertEqual(response.data['originCEP'], '01310100')
        opcao = response.data['options'][0]
        self.assertEqual(opcao['company'], 'Correios')
        self.assertEqual(opcao['finalPrice'], '28.40')
        self.assertEqual(opcao['deliveryTime'], 8)

    @patch('printbrasil.infrastructure.gateways.MelhorEnvioGateway.cotar')
    def test_provedor_fora_do_ar_usa_estimativa(self, mock_cotar):
        """
        Cenário: o Melhor Envio falha e o checkout continua com a estimativa local.
        """
        mock_cotar.side_effect = ServicoExternoError('Falha de comunicação com o Melhor Envio.')

        response = self.client.post(self.url, {'destinationCEP': '70040010'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['fallback'])
        self.assertEqual(response.data['fallbackReason'], 'Falha de comunicação com o Melhor Envio.')
        self.assertEqual([o['id'] for o in response.data['options']], ['estimativa-economico', 'estimativa-expresso'])
        self.assertEqual(response.data['options'][0]['finalPrice'], '51.50')
        self.assertEqual(response.data['options'][1]['deliveryTime'], 7)

    @patch('printbrasil.infrastructure.gateways.MelhorEnvioGateway.cotar')
    def test_pacote_informado_e_repassado(self, mock_cotar):
        mock_cotar.return_value = []

        self.client.post(self.url, {
            'destinationCEP': '20040002',
            'packageDetails': {'height': '20', 'width': '20', 'length': '100', 'weight': '3'},
            'insuranceValue': '150.00',
        }, format='json')

        kwargs = mock_cotar.call_args.kwargs
        self.assertEqual(kwargs['pacote'].comprimento, Decimal('100'))
        self.assertEqual(kwargs['pacote'].peso, Decimal('3'))
        self.assertEqual(kwargs['valor_seguro'], Decimal('150.00'))

    def test_cep_invalido(self):
        response = self.client.post(self.url, {'destinationCEP': '123'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(MELHOR_ENVIO_TOKEN='')
    def test_sem_token_configurado(self):
        response = self.client.post(self.url, {'destinationCEP': '70040010'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn('message', response.data)


# ====================================================================
# 3. PAGAMENTOS
# ====================================================================

@override_settings(MERCADO_PAGO_ACCESS_TOKEN='TEST-token', MERCADO_PAGO_PUBLIC_KEY='TEST-public-key')
class PagamentosAPITestCase(BaseAPITestCase):

    def setUp(self):
        super().setUp()
        self.pedido = self._criar_pedido(self.cliente)
        self.client.force_authenticate(user=self.cliente)

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_gerar_pix(self, mock_post):
        mock_post.return_value = _resposta_mp({
            'id': 555, 'status': 'pending', 'external_reference': self.pedido['id'],
            'point_of_interaction': {'transaction_data': {'qr_code': '000201pix', 'qr_code_base64': 'iVBOR'}},
        })

        response = self.client.post('/api/payments/pix/', {'orderId': self.pedido['id']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['qr_code'], '000201pix')
        self.assertEqual(response.data['order']['status'], 'pending')
        self.assertEqual(response.data['order']['paymentId'], '555')
        self.assertEqual(mock_post.call_args.kwargs['json']['external_reference'], self.pedido['id'])

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_cartao_aprovado(self, mock_post):
        mock_post.return_value = _resposta_mp({'id': 777, 'status': 'approved', 'status_detail': 'accredited',
                                               'external_reference': self.pedido['id']})

        response = self.client.post('/api/payments/process/', {
            'orderId': self.pedido['id'], 'token': 'card-tok', 'installments': 1, 'payment_method_id': 'visa',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment']['status'], 'approved')
        self.assertEqual(response.data['order']['status'], 'paid')
        self.assertEqual(Pedido.objects.get(pk=self.pedido['id']).status, 'paid')

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_falha_de_comunicacao_no_pagamento(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('sem rede')

        response = self.client.post('/api/payments/boleto/', {'orderId': self.pedido['id']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_402_PAYMENT_REQUIRED)
        self.assertEqual(Pedido.objects.get(pk=self.pedido['id']).status, 'pending')

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_pedido_de_outro_cliente(self, mock_post):
        self.client.force_authenticate(user=self.outro)

        response = self.client.post('/api/payments/pix/', {'orderId': self.pedido['id']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        mock_post.assert_not_called()

    def test_cartao_sem_token(self):
        response = self.client.post('/api/payments/process/', {'orderId': self.pedido['id']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_chave_publica(self):
        self.client.force_authenticate(user=None)

        response = self.client.get('/api/payments/public-key/')

        self.assertEqual(response.data, {'publicKey': 'TEST-public-key'})


@override_settings(MERCADO_PAGO_ACCESS_TOKEN='TEST-token')
class WebhookMercadoPagoAPITestCase(BaseAPITestCase):

    url = '/api/payments/webhook/'

    def setUp(self):
        super().setUp()
        self.pedido = self._criar_pedido(self.cliente)
        self.client.force_authenticate(user=None)

    @patch('printbrasil.infrastructure.gateways.requests.get')
    def test_pagamento_aprovado_e_notificacao_repetida(self, mock_get):
        """
        Cenário: a mesma notificação 'approved' chega duas vezes; o pedido fica pago uma vez só.
        """
        mock_get.return_value = _resposta_mp({'id': 555, 'status': 'approved', 'external_reference': self.pedido['id']})
        notificacao = {'type': 'payment', 'data': {'id': '555'}}

        primeira = self.client.post(self.url, notificacao, format='json')
        segunda = self.client.post(self.url, notificacao, format='json')

        self.assertEqual(primeira.status_code, status.HTTP_200_OK)
        self.assertEqual(primeira.data['order_status'], 'paid')
        self.assertEqual(segunda.status_code, status.HTTP_200_OK)
        self.assertEqual(segunda.data['order_status'], 'paid')
        pedido = Pedido.objects.get(pk=self.pedido['id'])
        self.assertEqual(pedido.status, 'paid')
        self.assertEqual(pedido.transacao_id, '555')

    @patch('printbrasil.infrastructure.gateways.requests.get')
    def test_notificacao_pela_query_string(self, mock_get):
        mock_get.return_value = _resposta_mp({'id': 556, 'status': 'rejected', 'external_reference': self.pedido['id']})

        response = self.client.post(f'{self.url}?type=payment&data.id=556')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_status'], 'cancelled')
        self.assertTrue(mock_get.call_args.args[0].endswith('/payments/556'))

    @patch('printbrasil.infrastructure.gateways.requests.get')
    def test_notificacao_que_nao_e_de_pagamento(self, mock_get):
        response = self.client.post(self.url, {'type': 'merchant_order', 'data': {'id': '1'}}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ignored')
        mock_get.assert_not_called()

    @patch('printbrasil.infrastructure.gateways.requests.get')
    def test_falha_ao_consultar_o_pagamento(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()

        response = self.client.post(self.url, {'type': 'payment', 'data': {'id': '555'}}, format='json')

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(Pedido.objects.get(pk=self.pedido['id']).status, 'pending')
