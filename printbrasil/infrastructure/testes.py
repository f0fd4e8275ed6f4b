from decimal import Decimal, InvalidOperation
from io import StringIO
from unittest.mock import Mock, patch

import requests
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase, override_settings

# Importamos as classes que queremos testar
from printbrasil.catalog.models import Produto as ProdutoModel
from printbrasil.vendas.models import Pedido as PedidoModel, ItemPedido as ItemPedidoModel
from printbrasil.infrastructure.models import Configuracao
from printbrasil.infrastructure.mappers import UsuarioMapper
from printbrasil.infrastructure.repositories import (
    ConfiguracaoRepositoryDjango,
    PedidoRepositoryDjango,
    ProdutoRepositoryDjango,
)
from printbrasil.infrastructure.gateways import MelhorEnvioGateway, MercadoPagoGateway
from printbrasil.core import dependency_injection as di
from printbrasil.core.entities import (
    ItemPedido, Pedido, Produto as ProdutoEntity, Usuario,
    MODO_POR_AREA, MODO_UNIDADE_FIXA, PACOTE_PADRAO, STATUS_PAGO, STATUS_PENDENTE,
)
from printbrasil.core.exceptions import (
    ConfiguracaoAusenteError, DadosInvalidosError, PagamentoFalhouError,
    PedidoNaoEncontradoError, PersistenciaError, ServicoExternoError,
)


def _resposta(dados, status_code=200):
    """Response falsa do requests com o JSON informado."""
    resposta = Mock(status_code=status_code)
    resposta.json.return_value = dados
    if status_code >= 400:
        resposta.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resposta)
    else:
        resposta.raise_for_status.return_value = None
    return resposta


# ====================================================================
# REPOSITÓRIOS
# ====================================================================

class ProdutoRepositoryTestCase(TestCase):

    def setUp(self):
        """
        Configura o ambiente para cada teste, criando uma instância do repositório
        e um produto real no banco de dados.
        """
        self.repository = ProdutoRepositoryDjango()
        self.produto_model = ProdutoModel.objects.create(
            nome='Banner Vinílico Premium',
            descricao='Banner de alta qualidade.',
            modo_preco=MODO_POR_AREA,
            preco_m2=Decimal('45.90'),
            largura_maxima=Decimal('5.00'),
            altura_maxima=Decimal('50.00'),
        )

    def test_buscar_por_id_com_sucesso(self):
        """
        Cenário: Verificar se o repositório consegue encontrar um produto existente.
        """
        # ACT
        produto = self.repository.buscar_por_id(str(self.produto_model.id))

        # ASSERT
        self.assertIsInstance(produto, ProdutoEntity)
        self.assertEqual(produto.id, str(self.produto_model.id))
        self.assertEqual(produto.preco_m2, Decimal('45.90'))
        self.assertTrue(produto.por_area)

    def test_buscar_por_id_nao_encontrado(self):
        """
        Cenário: IDs inexistentes ou que nem são UUID devolvem None.
        """
        self.assertIsNone(self.repository.buscar_por_id('00000000-0000-0000-0000-000000000000'))
        self.assertIsNone(self.repository.buscar_por_id('id-nao-existente'))

    def test_produto_sem_preco_para_o_modo_nao_valida(self):
        produto = ProdutoModel(nome='Placa', modo_preco=MODO_UNIDADE_FIXA, preco_m2=Decimal('10'))

        with self.assertRaises(ValidationError):
            produto.full_clean()


class PedidoRepositoryTestCase(TestCase):

    def setUp(self):
        self.repository = PedidoRepositoryDjango()
        self.usuario = get_user_model().objects.create_user(email='cliente@printbrasil.com', password='cliente123')
        self.produto_model = ProdutoModel.objects.create(
            nome='Banner Vinílico Premium', modo_preco=MODO_POR_AREA, preco_m2=Decimal('45.90'),
        )

    def _pedido(self, **kwargs):
        dados = dict(
            usuario_id=str(self.usuario.pk), tipo_entrega='delivery',
            subtotal=Decimal('172.13'), taxa_criacao_arte=Decimal('0.00'),
            frete=Decimal('20.00'), total=Decimal('192.13'), metodo_pagamento='pix',
            endereco_entrega='Rua Teste, 100', transportadora='Correios', servico_frete='PAC',
            prazo_entrega_dias=7,
        )
        dados.update(kwargs)
        return Pedido(**dados)

    def _item(self, **kwargs):
        dados = dict(
            produto_id=str(self.produto_model.pk), nome_produto='Banner Vinílico Premium',
            modo_preco=MODO_POR_AREA, preco_unitario=Decimal('45.90'), total=Decimal('172.13'),
            largura=Decimal('2.5'), altura=Decimal('1.5'), area=Decimal('3.75'),
        )
        dados.update(kwargs)
        return ItemPedido(**dados)

    def test_criar_pedido_com_itens(self):
        """
        Cenário: o pedido e os itens são gravados juntos e o snapshot do preço é mantido.
        """
        # ACT
        pedido = self.repository.criar_pedido_com_itens(self._pedido(), [self._item(), self._item()])

        # ASSERT
        self.assertIsNotNone(pedido.id)
        self.assertEqual(pedido.status, STATUS_PENDENTE)
        self.assertEqual(len(pedido.itens), 2)
        self.assertEqual(pedido.itens[0].preco_unitario, Decimal('45.90'))
        self.assertEqual(pedido.itens[0].pedido_id, pedido.id)
        self.assertEqual(PedidoModel.objects.count(), 1)
        self.assertEqual(ItemPedidoModel.objects.filter(pedido_id=pedido.id).count(), 2)

    def test_falha_em_um_item_desfaz_o_pedido(self):
        """
        Cenário: um item inválido no meio do lote não pode deixar pedido órfão.
        """
        itens = [self._item(), self._item(nome_produto=None)]

        with self.assertRaises(PersistenciaError):
            self.repository.criar_pedido_com_itens(self._pedido(), itens)

        self.assertEqual(PedidoModel.objects.count(), 0)
        self.assertEqual(ItemPedidoModel.objects.count(), 0)

    def test_valor_que_nao_cabe_na_coluna_desfaz_o_pedido(self):
        """
        Cenário: o banco recusa um valor fora da precisão da coluna (InvalidOperation
        na conversão do Decimal). Nada fica gravado e o erro vira PersistenciaError.
        """
        itens = [self._item(total=Decimal('1000000000.00'))]

        with patch.object(ItemPedidoModel.objects, 'bulk_create', side_effect=InvalidOperation):
            with self.assertRaises(PersistenciaError):
                self.repository.criar_pedido_com_itens(self._pedido(), itens)

        self.assertEqual(PedidoModel.objects.count(), 0)

    def test_pedido_devolvido_tem_os_itens_gravados(self):
        """
        Cenário: o pedido retornado traz os itens na ordem enviada, com o total de cada um.
        """
        itens = [self._item(total=Decimal('172.13')), self._item(total=Decimal('20.00'))]

        pedido = self.repository.criar_pedido_com_itens(self._pedido(), itens)

        self.assertEqual([i.total for i in pedido.itens], [Decimal('172.13'), Decimal('20.00')])
        self.assertEqual(
            sorted(ItemPedidoModel.objects.filter(pedido_id=pedido.id).values_list('total', flat=True)),
            [Decimal('20.00'), Decimal('172.13')],
        )

    def test_chave_de_idempotencia_e_unica(self):
        self.repository.criar_pedido_com_itens(self._pedido(chave_idempotencia='chave-1'), [self._item()])

        with self.assertRaises(PersistenciaError):
            self.repository.criar_pedido_com_itens(self._pedido(chave_idempotencia='chave-1'), [self._item()])

        encontrado = self.repository.buscar_por_chave_idempotencia('chave-1')
        self.assertEqual(encontrado.usuario_id, str(self.usuario.pk))
        self.assertIsNone(self.repository.buscar_por_chave_idempotencia('chave-2'))

    def test_listar_pedidos(self):
        outro = get_user_model().objects.create_user(email='outro@printbrasil.com', password='x')
        meu = self.repository.criar_pedido_com_itens(self._pedido(), [self._item()])
        self.repository.criar_pedido_com_itens(self._pedido(usuario_id=str(outro.pk)), [self._item()])
        self.repository.atualizar_status(meu.id, STATUS_PAGO)

        self.assertEqual([p.id for p in self.repository.listar_pedidos_por_usuario(str(self.usuario.pk))], [meu.id])
        self.assertEqual(len(self.repository.listar_todos_pedidos()), 2)
        self.assertEqual([p.id for p in self.repository.listar_todos_pedidos(STATUS_PAGO)], [meu.id])
        self.assertEqual(len(self.repository.listar_itens(meu.id)), 1)

    def test_atualizar_status_grava_o_pagamento(self):
        pedido = self.repository.criar_pedido_com_itens(self._pedido(), [self._item()])

        atualizado = self.repository.atualizar_status(pedido.id, STATUS_PAGO, id_externo_pagamento='mp-123')

        self.assertEqual(atualizado.status, STATUS_PAGO)
        self.assertEqual(atualizado.transacao_id, 'mp-123')
        self.assertEqual(PedidoModel.objects.get(pk=pedido.id).transacao_id, 'mp-123')

    def test_atualizar_status_pedido_inexistente(self):
        for pedido_id in ('00000000-0000-0000-0000-000000000000', 'nao-e-uuid'):
            with self.assertRaises(PedidoNaoEncontradoError):
                self.repository.atualizar_status(pedido_id, STATUS_PAGO)

    def test_buscar_por_id_inexistente(self):
        self.assertIsNone(self.repository.buscar_por_id('nao-e-uuid'))


class ConfiguracaoRepositoryTestCase(TestCase):

    def test_obter(self):
        Configuracao.objects.create(chave='MELHOR_ENVIO_TOKEN', valor='token-admin')
        Configuracao.objects.create(chave='VAZIA', valor='')
        repository = ConfiguracaoRepositoryDjango()

        self.assertEqual(repository.obter('MELHOR_ENVIO_TOKEN'), 'token-admin')
        self.assertIsNone(repository.obter('VAZIA'))
        self.assertIsNone(repository.obter('NAO_EXISTE'))

    @override_settings(MELHOR_ENVIO_TOKEN='token-env', MELHOR_ENVIO_ENV='production')
    def test_tabela_tem_prioridade_sobre_o_ambiente(self):
        Configuracao.objects.create(chave='MELHOR_ENVIO_TOKEN', valor='token-admin')

        resolvedor = di.get_resolvedor_frete()

        self.assertEqual(resolvedor.configuracao.token, 'token-admin')
        self.assertEqual(resolvedor.configuracao.ambiente, 'production')


class UsuarioMapperTestCase(TestCase):

    def test_staff_conta_como_administrador(self):
        User = get_user_model()
        staff = User.objects.create_user(email='staff@printbrasil.com', password='x', is_staff=True)
        cliente = User.objects.create_user(email='c@printbrasil.com', password='x', first_name='Maria')

        self.assertTrue(UsuarioMapper.to_entity(staff).is_admin)
        entidade = UsuarioMapper.to_entity(cliente)
        self.assertFalse(entidade.is_admin)
        self.assertEqual(entidade.nome, 'Maria')
        self.assertEqual(entidade.id, str(cliente.pk))


# ====================================================================
# GATEWAYS
# ====================================================================

@override_settings(MERCADO_PAGO_ACCESS_TOKEN='TEST-token', MERCADO_PAGO_WEBHOOK_URL='https://loja.test/api/payments/webhook/')
class MercadoPagoGatewayTestCase(TestCase):

    def setUp(self):
        self.gateway = MercadoPagoGateway()
        self.pedido = Pedido(
            id='8f0c1b7a-0000-4000-8000-000000000001', usuario_id='user-1', tipo_entrega='pickup',
            subtotal=Decimal('172.13'), taxa_criacao_arte=Decimal('0'), frete=Decimal('0'),
            total=Decimal('172.13'), metodo_pagamento='pix',
        )
        self.usuario = Usuario(id='user-1', email='cliente@printbrasil.com', nome='Cliente Teste')

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_pix_envia_referencia_do_pedido(self, mock_post):
        """
        Cenário: o PIX leva external_reference = id do pedido e devolve o QR Code.
        """
        # ARRANGE
        mock_post.return_value = _resposta({
            'id': 123456, 'status': 'pending', 'transaction_amount': 172.13,
            'external_reference': self.pedido.id,
            'point_of_interaction': {'transaction_data': {'qr_code': '000201...', 'qr_code_base64': 'iVBOR...'}},
        })

        # ACT
        transacao = self.gateway.criar_pagamento(self.pedido, 'pix', self.usuario, {})

        # ASSERT
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['external_reference'], self.pedido.id)
        self.assertEqual(payload['payment_method_id'], 'pix')
        self.assertEqual(payload['transaction_amount'], 172.13)
        self.assertEqual(payload['notification_url'], 'https://loja.test/api/payments/webhook/')
        self.assertEqual(payload['payer']['email'], 'cliente@printbrasil.com')
        self.assertIn('X-Idempotency-Key', mock_post.call_args.kwargs['headers'])
        self.assertEqual(transacao.referencia_externa, '123456')
        self.assertEqual(transacao.pedido_id, self.pedido.id)
        self.assertEqual(transacao.qr_code, '000201...')
        self.assertEqual(transacao.qr_code_base64, 'iVBOR...')

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_boleto_devolve_url_e_codigo_de_barras(self, mock_post):
        mock_post.return_value = _resposta({
            'id': 99, 'status': 'pending', 'external_reference': self.pedido.id,
            'transaction_details': {'external_resource_url': 'https://mp.test/boleto.pdf'},
            'barcode': {'content': '23793381286000'},
        })

        transacao = self.gateway.criar_pagamento(self.pedido, 'boleto', self.usuario, {})

        self.assertEqual(mock_post.call_args.kwargs['json']['payment_method_id'], 'bolbradesco')
        self.assertEqual(transacao.url_pagamento, 'https://mp.test/boleto.pdf')
        self.assertEqual(transacao.codigo_barras, '23793381286000')

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_cartao_exige_token(self, mock_post):
        with self.assertRaises(DadosInvalidosError):
            self.gateway.criar_pagamento(self.pedido, 'card', self.usuario, {})
        mock_post.assert_not_called()

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_cartao_envia_token_e_parcelas(self, mock_post):
        mock_post.return_value = _resposta({'id': 7, 'status': 'approved', 'external_reference': self.pedido.id})

        transacao = self.gateway.criar_pagamento(
            self.pedido, 'card', self.usuario, {'token': 'card-tok', 'installments': 3, 'payment_method_id': 'master'}
        )

        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['token'], 'card-tok')
        self.assertEqual(payload['installments'], 3)
        self.assertEqual(payload['payment_method_id'], 'master')
        self.assertEqual(transacao.status_pagamento, 'approved')

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_erro_http_vira_pagamento_falhou(self, mock_post):
        mock_post.return_value = _resposta({'message': 'invalid_token'}, status_code=400)

        with self.assertRaises(PagamentoFalhouError) as contexto:
            self.gateway.criar_pagamento(self.pedido, 'pix', self.usuario, {})
        self.assertIn('invalid_token', contexto.exception.message)

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_falha_de_rede_vira_pagamento_falhou(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('sem rede')

        with self.assertRaises(PagamentoFalhouError):
            self.gateway.criar_pagamento(self.pedido, 'pix', self.usuario, {})

    @patch('printbrasil.infrastructure.gateways.requests.get')
    def test_buscar_pagamento(self, mock_get):
        mock_get.return_value = _resposta({'id': 123456, 'status': 'approved', 'external_reference': 'pedido-1',
                                           'payment_type_id': 'bank_transfer'})

        transacao = self.gateway.buscar_pagamento('123456')

        self.assertEqual(mock_get.call_args.args[0], 'https://api.mercadopago.com/v1/payments/123456')
        self.assertEqual(transacao.status_pagamento, 'approved')
        self.assertEqual(transacao.pedido_id, 'pedido-1')

    @patch('printbrasil.infrastructure.gateways.requests.get')
    def test_buscar_pagamento_com_falha(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()

        with self.assertRaises(ServicoExternoError):
            self.gateway.buscar_pagamento('123456')

    @override_settings(MERCADO_PAGO_ACCESS_TOKEN='')
    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_sem_token_nao_chama_a_api(self, mock_post):
        gateway = MercadoPagoGateway()

        with self.assertRaises(ConfiguracaoAusenteError):
            gateway.criar_pagamento(self.pedido, 'pix', self.usuario, {})
        mock_post.assert_not_called()


class MelhorEnvioGatewayTestCase(TestCase):

    def setUp(self):
        self.gateway = MelhorEnvioGateway()

    def _cotar(self, ambiente='sandbox'):
        return self.gateway.cotar(
            cep_origem='01310100', cep_destino='70040010', pacote=PACOTE_PADRAO,
            valor_seguro=Decimal('100'), token='me-token', ambiente=ambiente,
        )

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_cotacao_no_sandbox(self, mock_post):
        mock_post.return_value = _resposta([{'id': 1, 'name': 'PAC', 'price': '22.10'}])

        cotacoes = self._cotar()

        self.assertEqual(cotacoes, [{'id': 1, 'name': 'PAC', 'price': '22.10'}])
        self.assertEqual(mock_post.call_args.args[0], 'https://sandbox.melhorenvio.com.br/api/v2/me/shipment/calculate')
        kwargs = mock_post.call_args.kwargs
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer me-token')
        self.assertEqual(kwargs['json']['to'], {'postal_code': '70040010'})
        self.assertEqual(kwargs['json']['package']['length'], 60.0)
        self.assertEqual(kwargs['json']['options']['insurance_value'], 100.0)

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_producao_usa_a_url_real(self, mock_post):
        mock_post.return_value = _resposta([])

        self._cotar(ambiente='production')

        self.assertTrue(mock_post.call_args.args[0].startswith('https://melhorenvio.com.br/'))

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_resposta_que_nao_e_lista(self, mock_post):
        mock_post.return_value = _resposta({'message': 'Unauthenticated.'})

        with self.assertRaises(ServicoExternoError):
            self._cotar()

    @patch('printbrasil.infrastructure.gateways.requests.post')
    def test_erro_http_ou_timeout(self, mock_post):
        mock_post.return_value = _resposta({'message': 'Unauthenticated.'}, status_code=401)
        with self.assertRaises(ServicoExternoError):
            self._cotar()

        mock_post.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(ServicoExternoError):
            self._cotar()


# ====================================================================
# DADOS INICIAIS
# ====================================================================

class LoadInitialDataTestCase(TestCase):

    def test_carrega_usuarios_produtos_e_configuracao(self):
        call_command('load_initial_data', stdout=StringIO())
        # Rodar de novo não duplica nada
        call_command('load_initial_data', stdout=StringIO())

        User = get_user_model()
        admin = User.objects.get(email='admin@printbrasil.com')
        self.assertTrue(admin.is_admin)
        self.assertTrue(admin.check_password('admin123'))
        self.assertFalse(User.objects.get(email='cliente@printbrasil.com').is_admin)

        self.assertEqual(ProdutoModel.objects.count(), 6)
        banner = ProdutoModel.objects.get(nome='Banner Vinílico Premium')
        self.assertEqual(banner.preco_m2, Decimal('45.90'))
        self.assertEqual(banner.modo_preco, MODO_POR_AREA)
        self.assertEqual(Configuracao.objects.get(chave='MELHOR_ENVIO_ENV').valor, 'sandbox')
