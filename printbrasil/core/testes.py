# printbrasil/core/testes.py

import unittest
from decimal import Decimal
from unittest.mock import Mock

# Importamos as classes que queremos testar
from printbrasil.core.entities import (
    Produto, Pedido, Usuario, TransacaoPagamento, Pacote, ConfiguracaoFrete, PoliticaFrete,
    MODO_POR_AREA, MODO_UNIDADE_FIXA, ARTE_CRIAR_PARA_MIM,
    STATUS_PENDENTE, STATUS_PAGO, STATUS_CANCELADO, STATUS_ENVIADO,
)
from printbrasil.core.exceptions import (
    AcessoNegadoError, CarrinhoVazioError, CepInvalidoError, ConfiguracaoAusenteError,
    DadosInvalidosError, DimensoesInvalidasError, FreteInvalidoError, PagamentoFalhouError,
    PedidoNaoEncontradoError, PersistenciaError, ProdutoNaoEncontradoError,
    QuantidadeInvalidaError, ServicoExternoError, StatusInvalidoError, TaxaInvalidaError,
    ValoresDivergentesError,
)
from printbrasil.core.monetario import arredondar_moeda, calcular_area, converter_decimal
from printbrasil.core.frete import (
    ResolvedorFrete, calcular_peso_cobravel, estimar_frete, mapear_opcao_provedor, normalizar_cep,
)
from printbrasil.core.use_cases import (
    CriarPedidoUseCase,
    GerenciarPedidosAdminUseCase,
    ListarPedidosDoUsuarioUseCase,
    ProcessarPagamentoUseCase,
    ProcessarWebhookPagamentoUseCase,
    ValidarPrecosPedidoUseCase,
)


def _banner(**kwargs):
    dados = dict(
        id='prod-banner', nome='Banner Vinílico Premium', modo_preco=MODO_POR_AREA,
        preco_m2=Decimal('45.90'), largura_maxima=Decimal('5.00'),
    )
    dados.update(kwargs)
    return Produto(**dados)


def _placa(**kwargs):
    dados = dict(
        id='prod-placa', nome='Placa PVC', modo_preco=MODO_UNIDADE_FIXA, preco_unitario=Decimal('19.90'),
    )
    dados.update(kwargs)
    return Produto(**dados)


def _repo_produtos(*produtos):
    repo = Mock()
    catalogo = {p.id: p for p in produtos}
    repo.buscar_por_id.side_effect = catalogo.get
    return repo


def _pedido(**kwargs):
    dados = dict(
        id='pedido-1', usuario_id='user-1', tipo_entrega='delivery',
        subtotal=Decimal('172.13'), taxa_criacao_arte=Decimal('0.00'), frete=Decimal('20.00'),
        total=Decimal('192.13'), metodo_pagamento='pix', status=STATUS_PENDENTE,
    )
    dados.update(kwargs)
    return Pedido(**dados)


# ====================================================================
# ARITMÉTICA MONETÁRIA
# ====================================================================

class TestMonetario(unittest.TestCase):

    def test_arredonda_meio_centavo_para_cima(self):
        self.assertEqual(arredondar_moeda(Decimal('172.125')), Decimal('172.13'))
        self.assertEqual(arredondar_moeda(Decimal('0.005')), Decimal('0.01'))
        self.assertEqual(arredondar_moeda(Decimal('10.004')), Decimal('10.00'))

    def test_float_e_convertido_pela_representacao_textual(self):
        self.assertEqual(converter_decimal(0.1), Decimal('0.1'))
        self.assertEqual(converter_decimal(' 45.90 '), Decimal('45.90'))

    def test_valores_nao_numericos_ou_infinitos_sao_recusados(self):
        for valor in ('abc', 'NaN', 'Infinity', '-inf', None, True, ''):
            with self.subTest(valor=valor):
                with self.assertRaises(DadosInvalidosError):
                    converter_decimal(valor)

    def test_area_exige_dimensoes_positivas(self):
        self.assertEqual(calcular_area('2.5', '1.5'), Decimal('3.75'))
        with self.assertRaises(DimensoesInvalidasError):
            calcular_area(0, 1)
        with self.assertRaises(DimensoesInvalidasError):
            calcular_area('1', '-2')


# ====================================================================
# ESTIMATIVA DE FRETE
# ====================================================================

class TestEstimarFrete(unittest.TestCase):

    def test_brasilia_limita_prazos_mesmo_com_distancia_grande(self):
        """
        Cenário: prefixo 70 contra origem 01 dá distância 69.
        Os prazos ficam travados em 15 (econômico) e 7 (expresso).
        """
        economico, expresso = estimar_frete('70040010')

        self.assertEqual(economico.prazo_dias, 15)
        self.assertEqual(expresso.prazo_dias, 7)
        # Peso cobrável do tubo padrão: 10x10x60/6000 = 1 kg
        self.assertEqual(economico.preco, Decimal('51.50'))
        self.assertEqual(expresso.preco, Decimal('63.00'))

    def test_mesma_regiao_da_origem(self):
        economico, expresso = estimar_frete('01310-100')

        self.assertEqual(economico.preco, Decimal('17.00'))
        self.assertEqual(economico.prazo_dias, 5)
        self.assertEqual(expresso.preco, Decimal('28.50'))
        self.assertEqual(expresso.prazo_dias, 2)

    def test_opcoes_sem_desconto_e_preco_final_igual_ao_preco(self):
        for opcao in estimar_frete('90010000'):
            self.assertEqual(opcao.desconto, Decimal('0'))
            self.assertEqual(opcao.preco_final, opcao.preco)
            self.assertEqual(opcao.transportadora, 'Transportadora Genérica')

    def test_resultado_e_deterministico(self):
        self.assertEqual(estimar_frete('30130000'), estimar_frete('30130000'))

    def test_preco_nunca_menor_que_a_base(self):
        for cep in ('01000000', '20040002', '69900000', '99999999'):
            economico, expresso = estimar_frete(cep)
            self.assertGreaterEqual(economico.preco, Decimal('15.00'))
            self.assertGreaterEqual(expresso.preco, Decimal('25.00'))

    def test_pacote_pesado_usa_peso_real(self):
        pacote = Pacote(altura=Decimal('10'), largura=Decimal('10'), comprimento=Decimal('60'), peso=Decimal('10'))

        self.assertEqual(calcular_peso_cobravel(pacote), Decimal('10'))
        economico, _ = estimar_frete('01000000', pacote)
        self.assertEqual(economico.preco, Decimal('35.00'))

    def test_cep_sem_prefixo_numerico_falha(self):
        with self.assertRaises(CepInvalidoError):
            estimar_frete('x')

    def test_cep_incompleto_e_recusado_como_no_resolvedor(self):
        """
        Cenário: a estimativa aceita exatamente os mesmos CEPs que o resolvedor.
        Prefixo válido com menos de 8 dígitos não gera cotação.
        """
        for cep in ('7004', '70.04', '700400100'):
            with self.subTest(cep=cep):
                with self.assertRaises(CepInvalidoError):
                    estimar_frete(cep)

    def test_normalizar_cep(self):
        self.assertEqual(normalizar_cep('70.040-010'), '70040010')
        with self.assertRaises(CepInvalidoError):
            normalizar_cep('1234')


class TestMapearOpcaoProvedor(unittest.TestCase):

    def test_prefere_preco_negociado(self):
        opcao = mapear_opcao_provedor({
            'id': 1, 'name': 'PAC', 'price': '30.50', 'custom_price': '28.40', 'discount': '2.10',
            'delivery_time': 8, 'custom_delivery_time': 9, 'company': {'name': 'Correios'},
        })

        self.assertEqual(opcao.id, '1')
        self.assertEqual(opcao.transportadora, 'Correios')
        self.assertEqual(opcao.servico, 'PAC')
        self.assertEqual(opcao.preco, Decimal('30.50'))
        self.assertEqual(opcao.preco_final, Decimal('28.40'))
        self.assertEqual(opcao.prazo_dias, 9)

    def test_sem_preco_negociado_usa_preco_de_tabela(self):
        opcao = mapear_opcao_provedor({'id': 2, 'name': 'SEDEX', 'price': '45.00', 'delivery_time': 3,
                                       'company': {'name': 'Correios'}})
        self.assertEqual(opcao.preco_final, Decimal('45.00'))

    def test_cotacao_com_erro_ou_sem_preco_e_descartada(self):
        self.assertIsNone(mapear_opcao_provedor({'id': 3, 'name': 'Jadlog', 'error': 'Transportadora indisponível'}))
        self.assertIsNone(mapear_opcao_provedor({'id': 4, 'name': 'Azul'}))

    def test_prazo_nao_numerico_descarta_a_cotacao(self):
        for prazo in ('abc', '2.5', [7]):
            with self.subTest(prazo=prazo):
                self.assertIsNone(mapear_opcao_provedor({
                    'id': 5, 'name': 'PAC', 'price': '22.10', 'delivery_time': prazo,
                    'company': {'name': 'Correios'},
                }))


# ====================================================================
# RESOLVEDOR DE FRETE
# ====================================================================

class TestResolvedorFrete(unittest.TestCase):

    def setUp(self):
        self.provedor = Mock()
        self.resolvedor = ResolvedorFrete(self.provedor, ConfiguracaoFrete(token='token-teste'))

    def test_falha_do_provedor_cai_na_estimativa(self):
        self.provedor.cotar.side_effect = ServicoExternoError('Melhor Envio respondeu 503.')

        cotacao = self.resolvedor.calcular('70040-010')

        self.assertTrue(cotacao.fallback)
        self.assertEqual(cotacao.motivo_fallback, 'Melhor Envio respondeu 503.')
        self.assertEqual(cotacao.opcoes, estimar_frete('70040010'))
        self.assertEqual(cotacao.cep_origem, '01310100')

    def test_lista_vazia_ou_so_com_erros_cai_na_estimativa(self):
        for resposta in ([], [{'id': 1, 'name': 'PAC', 'error': 'indisponível'}]):
            with self.subTest(resposta=resposta):
                self.provedor.cotar.side_effect = None
                self.provedor.cotar.return_value = resposta

                cotacao = self.resolvedor.calcular('20040002')

                self.assertTrue(cotacao.fallback)
                self.assertEqual(cotacao.opcoes, estimar_frete('20040002'))

    def test_cotacao_com_prazo_invalido_cai_na_estimativa(self):
        self.provedor.cotar.return_value = [
            {'id': 1, 'name': 'PAC', 'price': '22.10', 'delivery_time': 'abc', 'company': {'name': 'Correios'}},
        ]

        cotacao = self.resolvedor.calcular('20040002')

        self.assertTrue(cotacao.fallback)
        self.assertEqual(cotacao.opcoes, estimar_frete('20040002'))

    def test_cotacoes_validas_sao_mapeadas(self):
        self.provedor.cotar.return_value = [
            {'id': 1, 'name': 'PAC', 'price': '22.10', 'delivery_time': 7, 'company': {'name': 'Correios'}},
            {'id': 2, 'name': '.Com', 'error': 'Serviço indisponível'},
        ]

        cotacao = self.resolvedor.calcular('20040002')

        self.assertFalse(cotacao.fallback)
        self.assertEqual(len(cotacao.opcoes), 1)
        self.assertEqual(cotacao.opcoes[0].preco_final, Decimal('22.10'))
        kwargs = self.provedor.cotar.call_args.kwargs
        self.assertEqual(kwargs['cep_origem'], '01310100')
        self.assertEqual(kwargs['cep_destino'], '20040002')
        self.assertEqual(kwargs['token'], 'token-teste')
        self.assertEqual(kwargs['ambiente'], 'sandbox')

    def test_sem_token_e_erro_de_configuracao(self):
        resolvedor = ResolvedorFrete(self.provedor, ConfiguracaoFrete(token=None))

        with self.assertRaises(ConfiguracaoAusenteError):
            resolvedor.calcular('20040002')
        self.provedor.cotar.assert_not_called()

    def test_cep_invalido_nao_chama_o_provedor(self):
        with self.assertRaises(CepInvalidoError):
            self.resolvedor.calcular('123')
        self.provedor.cotar.assert_not_called()


# ====================================================================
# VALIDAÇÃO DE PREÇOS
# ====================================================================

class TestValidarPrecosPedido(unittest.TestCase):

    def setUp(self):
        self.use_case = ValidarPrecosPedidoUseCase(_repo_produtos(_banner(), _placa(), _placa(id='inativo', ativo=False)))

    def _validar(self, itens, subtotal, total, frete='0', taxa='0', tipo_entrega='pickup'):
        return self.use_case.executar(
            itens=itens, subtotal=subtotal, taxa_criacao_arte=taxa,
            frete=frete, total=total, tipo_entrega=tipo_entrega,
        )

    def test_banner_2_5_por_1_5(self):
        """
        Cenário: 2.5 x 1.5 m a R$ 45,90/m² = 172.125, gravado como 172.13.
        """
        totais = self._validar(
            [{'produto_id': 'prod-banner', 'largura': '2.5', 'altura': '1.5'}],
            subtotal='172.13', total='172.13',
        )

        self.assertEqual(totais.subtotal, Decimal('172.13'))
        self.assertEqual(totais.total, Decimal('172.13'))
        item = totais.itens[0]
        self.assertEqual(item.total, Decimal('172.13'))
        self.assertEqual(item.area, Decimal('3.75'))
        self.assertEqual(item.preco_unitario, Decimal('45.90'))
        self.assertEqual(item.nome_produto, 'Banner Vinílico Premium')

    def test_soma_nao_arredondada_do_cliente_e_aceita(self):
        totais = self._validar(
            [{'produto_id': 'prod-banner', 'largura': 2.5, 'altura': 1.5}],
            subtotal=172.125, total=172.125,
        )
        self.assertEqual(totais.subtotal, Decimal('172.13'))

    def test_subtotal_adulterado_e_recusado(self):
        with self.assertRaises(ValoresDivergentesError):
            self._validar(
                [{'produto_id': 'prod-banner', 'largura': '2.5', 'altura': '1.5'}],
                subtotal='100.00', total='100.00',
            )

    def test_tolerancia_de_um_centavo(self):
        itens = [{'produto_id': 'prod-placa', 'quantidade': 1}]

        self._validar(itens, subtotal='19.91', total='19.91')
        with self.assertRaises(ValoresDivergentesError):
            self._validar(itens, subtotal='19.90', total='19.92')

    def test_produto_por_unidade_ignora_medidas(self):
        totais = self._validar(
            [{'produto_id': 'prod-placa', 'quantidade': 3, 'largura': '10', 'altura': '10'}],
            subtotal='59.70', total='59.70',
        )

        item = totais.itens[0]
        self.assertEqual(item.quantidade, 3)
        self.assertIsNone(item.largura)
        self.assertEqual(item.total, Decimal('59.70'))

    def test_quantidade_invalida(self):
        for quantidade in (0, -1, '2.5', None, True):
            with self.subTest(quantidade=quantidade):
                with self.assertRaises(QuantidadeInvalidaError):
                    self._validar([{'produto_id': 'prod-placa', 'quantidade': quantidade}], '0', '0')

    def test_dimensoes_invalidas(self):
        for largura, altura in (('0', '1'), ('-1', '1'), ('NaN', '1'), ('1', None), ('5.5', '1')):
            with self.subTest(largura=largura, altura=altura):
                with self.assertRaises(DimensoesInvalidasError):
                    self._validar([{'produto_id': 'prod-banner', 'largura': largura, 'altura': altura}], '0', '0')

    def test_largura_no_limite_e_aceita(self):
        totais = self._validar(
            [{'produto_id': 'prod-banner', 'largura': '5.00', 'altura': '1'}],
            subtotal='229.50', total='229.50',
        )
        self.assertEqual(totais.subtotal, Decimal('229.50'))

    def test_produto_inexistente_ou_inativo(self):
        for produto_id in ('nao-existe', 'inativo'):
            with self.subTest(produto_id=produto_id):
                with self.assertRaises(ProdutoNaoEncontradoError):
                    self._validar([{'produto_id': produto_id, 'quantidade': 1}], '19.90', '19.90')

    def test_carrinho_vazio(self):
        with self.assertRaises(CarrinhoVazioError):
            self._validar([], '0', '0')

    def test_taxa_de_criacao_de_arte_entra_no_total(self):
        totais = self._validar(
            [{'produto_id': 'prod-placa', 'quantidade': 1, 'opcao_arte': ARTE_CRIAR_PARA_MIM,
              'taxa_criacao_arte': '35.00'}],
            subtotal='19.90', taxa='35.00', total='54.90',
        )

        self.assertEqual(totais.taxa_criacao_arte, Decimal('35.00'))
        self.assertEqual(totais.total, Decimal('54.90'))
        self.assertEqual(totais.itens[0].opcao_arte, ARTE_CRIAR_PARA_MIM)

    def test_taxa_negativa_ou_opcao_de_arte_desconhecida(self):
        with self.assertRaises(TaxaInvalidaError):
            self._validar([{'produto_id': 'prod-placa', 'quantidade': 1, 'taxa_criacao_arte': '-5'}], '19.90', '14.90')
        with self.assertRaises(DadosInvalidosError):
            self._validar([{'produto_id': 'prod-placa', 'quantidade': 1, 'opcao_arte': 'impressao_3d'}], '19.90', '19.90')

    def test_retirada_exige_frete_zero(self):
        with self.assertRaises(FreteInvalidoError):
            self._validar([{'produto_id': 'prod-placa', 'quantidade': 1}], '19.90', '34.90', frete='15.00')

    def test_entrega_respeita_a_faixa_de_frete(self):
        itens = [{'produto_id': 'prod-placa', 'quantidade': 1}]

        for frete in ('9.99', '200.01', '0'):
            with self.subTest(frete=frete):
                with self.assertRaises(FreteInvalidoError):
                    total = Decimal('19.90') + Decimal(frete)
                    self._validar(itens, '19.90', total, frete=frete, tipo_entrega='delivery')

        for frete in ('10.00', '200.00'):
            totais = self._validar(itens, '19.90', Decimal('19.90') + Decimal(frete), frete=frete, tipo_entrega='delivery')
            self.assertEqual(totais.frete, Decimal(frete))

    def test_faixa_de_frete_configuravel(self):
        use_case = ValidarPrecosPedidoUseCase(_repo_produtos(_placa()), PoliticaFrete(minimo=Decimal('5'), maximo=Decimal('50')))
        totais = use_case.executar(
            itens=[{'produto_id': 'prod-placa', 'quantidade': 1}], subtotal='19.90', taxa_criacao_arte='0',
            frete='7.50', total='27.40', tipo_entrega='delivery',
        )
        self.assertEqual(totais.total, Decimal('27.40'))

    def test_tipo_de_entrega_desconhecido(self):
        with self.assertRaises(DadosInvalidosError):
            self._validar([{'produto_id': 'prod-placa', 'quantidade': 1}], '19.90', '19.90', tipo_entrega='drone')

    def test_muitos_itens_nao_acumulam_erro(self):
        # 30 linhas de 0.333 x 1 m: cada uma 15.2847, gravada como 15.28
        itens = [{'produto_id': 'prod-banner', 'largura': '0.333', 'altura': '1'} for _ in range(30)]

        totais = self._validar(itens, subtotal='458.40', total='458.40')

        self.assertEqual(totais.subtotal, Decimal('458.40'))
        self.assertEqual(totais.subtotal, sum(item.total for item in totais.itens))
        self.assertEqual(len(totais.itens), 30)

    def test_subtotal_e_a_soma_dos_itens_arredondados(self):
        """
        Cenário: 4 banners de 2.5 x 1.5 m. Cada item é gravado como 172.13,
        então o subtotal é 688.52 (e não 688.50, a soma exata arredondada).
        """
        itens = [{'produto_id': 'prod-banner', 'largura': '2.5', 'altura': '1.5'} for _ in range(4)]

        totais = self._validar(itens, subtotal='688.52', total='688.52')

        self.assertEqual(totais.subtotal, Decimal('688.52'))
        self.assertEqual(totais.subtotal, sum(item.total for item in totais.itens))
        with self.assertRaises(ValoresDivergentesError):
            self._validar(itens, subtotal='688.50', total='688.50')

    def test_quantidade_acima_do_limite(self):
        self._validar([{'produto_id': 'prod-placa', 'quantidade': 100000}], '1990000.00', '1990000.00')
        with self.assertRaises(QuantidadeInvalidaError):
            self._validar([{'produto_id': 'prod-placa', 'quantidade': 100001}], '0', '0')

    def test_total_acima_do_que_o_pedido_comporta(self):
        """
        Cenário: quantidade permitida, mas o total (9.999.999.000,00) não cabe no pedido.
        """
        use_case = ValidarPrecosPedidoUseCase(_repo_produtos(_placa(preco_unitario=Decimal('99999.99'))))

        with self.assertRaises(DadosInvalidosError):
            use_case.executar(
                itens=[{'produto_id': 'prod-placa', 'quantidade': 100000}],
                subtotal='9999999000.00', taxa_criacao_arte='0', frete='0',
                total='9999999000.00', tipo_entrega='pickup',
            )

    def test_medidas_acima_do_que_o_item_comporta(self):
        use_case = ValidarPrecosPedidoUseCase(_repo_produtos(_banner(id='lona', largura_maxima=None)))

        for largura, altura in (('99999', '99999'), ('100000', '1'), ('1', '100000')):
            with self.subTest(largura=largura, altura=altura):
                with self.assertRaises(DimensoesInvalidasError):
                    use_case.executar(
                        itens=[{'produto_id': 'lona', 'largura': largura, 'altura': altura}],
                        subtotal='0', taxa_criacao_arte='0', frete='0', total='0', tipo_entrega='pickup',
                    )

    def test_medidas_com_mais_de_tres_casas_sao_recusadas(self):
        """
        Cenário: o item grava as medidas com 3 casas. 1.2345 m seria gravado
        como 1.234 m com o total calculado sobre 1.2345, então é recusado.
        """
        with self.assertRaises(DimensoesInvalidasError):
            self._validar([{'produto_id': 'prod-banner', 'largura': '1.2345', 'altura': '1'}], '56.66', '56.66')

        # Zeros à direita não contam como casas a mais
        totais = self._validar(
            [{'produto_id': 'prod-banner', 'largura': '2.5000', 'altura': '1.500'}],
            subtotal='172.13', total='172.13',
        )
        self.assertEqual(totais.itens[0].largura, Decimal('2.5'))


# ====================================================================
# CRIAÇÃO DO PEDIDO
# ====================================================================

class TestCriarPedido(unittest.TestCase):

    def setUp(self):
        self.pedido_repo_mock = Mock()
        self.pedido_repo_mock.buscar_por_chave_idempotencia.return_value = None

        def _gravar(pedido, itens):
            pedido.id = 'pedido-novo'
            pedido.itens = list(itens)
            return pedido

        self.pedido_repo_mock.criar_pedido_com_itens.side_effect = _gravar
        self.produto_repo_mock = _repo_produtos(_banner(), _placa())

        self.use_case = CriarPedidoUseCase(
            produto_repo=self.produto_repo_mock,
            pedido_repo=self.pedido_repo_mock,
            endereco_retirada='Balcão da loja',
        )
        self.usuario = Usuario(id='user-1', email='cliente@printbrasil.com')

    def _dados(self, **kwargs):
        dados = {
            'itens': [{'produto_id': 'prod-banner', 'largura': '2.5', 'altura': '1.5'}],
            'tipo_entrega': 'delivery',
            'endereco_entrega': 'Rua Teste, 100 - Brasília/DF, CEP: 70040-010',
            'metodo_pagamento': 'pix',
            'subtotal': '172.13',
            'taxa_criacao_arte': '0',
            'frete': '51.50',
            'total': '223.63',
            'transportadora': 'Correios',
            'servico_frete': 'PAC',
            'prazo_entrega_dias': 9,
        }
        dados.update(kwargs)
        return dados

    def test_criar_pedido_com_sucesso(self):
        # ACT
        pedido, itens, criado = self.use_case.executar(self.usuario, self._dados())

        # ASSERT
        self.assertTrue(criado)
        self.assertEqual(pedido.id, 'pedido-novo')
        self.assertEqual(pedido.status, STATUS_PENDENTE)
        self.assertEqual(pedido.total, Decimal('223.63'))
        self.assertEqual(pedido.total, pedido.subtotal + pedido.taxa_criacao_arte + pedido.frete)
        self.assertEqual(pedido.transportadora, 'Correios')
        self.assertEqual(pedido.prazo_entrega_dias, 9)
        self.assertEqual(len(itens), 1)
        self.pedido_repo_mock.criar_pedido_com_itens.assert_called_once()

    def test_subtotal_do_pedido_bate_com_os_itens(self):
        itens = [{'produto_id': 'prod-banner', 'largura': '2.5', 'altura': '1.5'} for _ in range(4)]

        pedido, itens_gravados, _ = self.use_case.executar(
            self.usuario, self._dados(itens=itens, subtotal='688.52', total='740.02'),
        )

        self.assertEqual(pedido.subtotal, Decimal('688.52'))
        self.assertEqual(pedido.subtotal, sum(item.total for item in itens_gravados))
        self.assertEqual(pedido.total, Decimal('740.02'))

    def test_retirada_grava_valores_fixos(self):
        dados = self._dados(tipo_entrega='pickup', frete='0', total='172.13', endereco_entrega=None,
                            transportadora='Jadlog', servico_frete='Expresso', prazo_entrega_dias=3)

        pedido, _, _ = self.use_case.executar(self.usuario, dados)

        self.assertEqual(pedido.endereco_entrega, 'Balcão da loja')
        self.assertEqual(pedido.transportadora, 'pickup')
        self.assertEqual(pedido.servico_frete, 'in-person')
        self.assertEqual(pedido.prazo_entrega_dias, 0)
        self.assertEqual(pedido.frete, Decimal('0'))

    def test_entrega_sem_endereco_falha(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(self.usuario, self._dados(endereco_entrega='   '))
        self.pedido_repo_mock.criar_pedido_com_itens.assert_not_called()

    def test_valores_divergentes_nao_gravam_nada(self):
        with self.assertRaises(ValoresDivergentesError):
            self.use_case.executar(self.usuario, self._dados(subtotal='1.00', total='52.50'))
        self.pedido_repo_mock.criar_pedido_com_itens.assert_not_called()

    def test_metodo_de_pagamento_invalido(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(self.usuario, self._dados(metodo_pagamento='cheque'))

    def test_chave_repetida_devolve_o_mesmo_pedido(self):
        existente = _pedido(id='pedido-antigo', usuario_id='user-1', chave_idempotencia='chave-1')
        self.pedido_repo_mock.buscar_por_chave_idempotencia.return_value = existente
        self.pedido_repo_mock.listar_itens.return_value = []

        pedido, _, criado = self.use_case.executar(self.usuario, self._dados(chave_idempotencia='chave-1'))

        self.assertFalse(criado)
        self.assertIs(pedido, existente)
        self.pedido_repo_mock.criar_pedido_com_itens.assert_not_called()
        self.produto_repo_mock.buscar_por_id.assert_not_called()

    def test_chave_de_outro_usuario_e_recusada(self):
        self.pedido_repo_mock.buscar_por_chave_idempotencia.return_value = _pedido(usuario_id='outro')

        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(self.usuario, self._dados(chave_idempotencia='chave-1'))

    def test_corrida_na_chave_devolve_o_pedido_vencedor(self):
        vencedor = _pedido(id='pedido-vencedor', usuario_id='user-1')
        self.pedido_repo_mock.buscar_por_chave_idempotencia.side_effect = [None, vencedor]
        self.pedido_repo_mock.criar_pedido_com_itens.side_effect = PersistenciaError()
        self.pedido_repo_mock.listar_itens.return_value = []

        pedido, _, criado = self.use_case.executar(self.usuario, self._dados(chave_idempotencia='chave-1'))

        self.assertFalse(criado)
        self.assertEqual(pedido.id, 'pedido-vencedor')

    def test_falha_de_persistencia_sem_chave_propaga(self):
        self.pedido_repo_mock.criar_pedido_com_itens.side_effect = PersistenciaError()

        with self.assertRaises(PersistenciaError):
            self.use_case.executar(self.usuario, self._dados())


class TestListarPedidos(unittest.TestCase):

    def test_cliente_ve_apenas_os_proprios_pedidos(self):
        repo = Mock()
        ListarPedidosDoUsuarioUseCase(repo).executar(Usuario(id='user-1'))

        repo.listar_pedidos_por_usuario.assert_called_once_with('user-1')
        repo.listar_todos_pedidos.assert_not_called()

    def test_admin_ve_todos(self):
        repo = Mock()
        ListarPedidosDoUsuarioUseCase(repo).executar(Usuario(id='admin', is_admin=True), status=STATUS_PAGO)

        repo.listar_todos_pedidos.assert_called_once_with(STATUS_PAGO)


# ====================================================================
# PAGAMENTOS
# ====================================================================

def _transacao(status, pedido_id='pedido-1', referencia='mp-1'):
    return TransacaoPagamento(
        referencia_externa=referencia, status_pagamento=status, valor=Decimal('192.13'),
        metodo='card', pedido_id=pedido_id,
    )


class TestProcessarPagamento(unittest.TestCase):

    def setUp(self):
        self.pedido_repo_mock = Mock()
        self.pedido_repo_mock.buscar_por_id.return_value = _pedido()
        self.pedido_repo_mock.atualizar_status.side_effect = (
            lambda pedido_id, novo_status, id_externo_pagamento=None:
            _pedido(status=novo_status, transacao_id=id_externo_pagamento)
        )
        self.gateway_mock = Mock()
        self.use_case = ProcessarPagamentoUseCase(self.pedido_repo_mock, self.gateway_mock)
        self.usuario = Usuario(id='user-1', email='cliente@printbrasil.com')

    def test_cartao_aprovado_marca_como_pago(self):
        self.gateway_mock.criar_pagamento.return_value = _transacao('approved')

        transacao, pedido = self.use_case.pagar_cartao('pedido-1', self.usuario, {'token': 'tok'})

        self.assertEqual(pedido.status, STATUS_PAGO)
        self.pedido_repo_mock.atualizar_status.assert_called_once_with(
            'pedido-1', STATUS_PAGO, id_externo_pagamento='mp-1'
        )
        self.assertEqual(self.gateway_mock.criar_pagamento.call_args.kwargs['metodo'], 'card')

    def test_cartao_recusado_cancela(self):
        self.gateway_mock.criar_pagamento.return_value = _transacao('rejected')

        _, pedido = self.use_case.pagar_cartao('pedido-1', self.usuario, {'token': 'tok'})

        self.assertEqual(pedido.status, STATUS_CANCELADO)

    def test_pix_mantem_pendente_e_guarda_o_pagamento(self):
        self.gateway_mock.criar_pagamento.return_value = _transacao('pending', referencia='mp-pix')

        _, pedido = self.use_case.gerar_pix('pedido-1', self.usuario, {})

        self.assertEqual(pedido.status, STATUS_PENDENTE)
        self.pedido_repo_mock.atualizar_status.assert_called_once_with(
            'pedido-1', STATUS_PENDENTE, id_externo_pagamento='mp-pix'
        )

    def test_pedido_de_outro_usuario(self):
        self.pedido_repo_mock.buscar_por_id.return_value = _pedido(usuario_id='outro')

        with self.assertRaises(AcessoNegadoError):
            self.use_case.gerar_boleto('pedido-1', self.usuario, {})
        self.gateway_mock.criar_pagamento.assert_not_called()

    def test_admin_pode_pagar_pedido_de_outro_usuario(self):
        self.pedido_repo_mock.buscar_por_id.return_value = _pedido(usuario_id='outro')
        self.gateway_mock.criar_pagamento.return_value = _transacao('pending')

        self.use_case.gerar_boleto('pedido-1', Usuario(id='admin', is_admin=True), {})

        self.gateway_mock.criar_pagamento.assert_called_once()

    def test_pedido_inexistente(self):
        self.pedido_repo_mock.buscar_por_id.return_value = None

        with self.assertRaises(PedidoNaoEncontradoError):
            self.use_case.gerar_pix('nao-existe', self.usuario, {})

    def test_pedido_ja_pago_nao_gera_novo_pagamento(self):
        self.pedido_repo_mock.buscar_por_id.return_value = _pedido(status=STATUS_PAGO)

        with self.assertRaises(StatusInvalidoError):
            self.use_case.gerar_pix('pedido-1', self.usuario, {})
        self.gateway_mock.criar_pagamento.assert_not_called()

    def test_falha_do_gateway_propaga_sem_alterar_o_pedido(self):
        self.gateway_mock.criar_pagamento.side_effect = PagamentoFalhouError('Erro de conexão')

        with self.assertRaises(PagamentoFalhouError):
            self.use_case.pagar_cartao('pedido-1', self.usuario, {'token': 'tok'})
        self.pedido_repo_mock.atualizar_status.assert_not_called()


class TestProcessarWebhookPagamento(unittest.TestCase):

    def setUp(self):
        self.pedido_repo_mock = Mock()
        self.gateway_mock = Mock()
        self.use_case = ProcessarWebhookPagamentoUseCase(self.pedido_repo_mock, self.gateway_mock)

    def test_aprovado_para_pedido_ja_pago_nao_faz_nada(self):
        """
        Cenário: o Mercado Pago reenvia a notificação 'approved' de um pedido já pago.
        """
        self.gateway_mock.buscar_pagamento.return_value = _transacao('approved')
        self.pedido_repo_mock.buscar_por_id.return_value = _pedido(status=STATUS_PAGO, transacao_id='mp-1')

        resultado = self.use_case.executar({'type': 'payment', 'data': {'id': 'mp-1'}})

        self.assertEqual(resultado['status'], 'ok')
        self.assertEqual(resultado['order_status'], STATUS_PAGO)
        self.pedido_repo_mock.atualizar_status.assert_not_called()

    def test_aprovado_para_pedido_pendente(self):
        self.gateway_mock.buscar_pagamento.return_value = _transacao('approved')
        self.pedido_repo_mock.buscar_por_id.return_value = _pedido()
        self.pedido_repo_mock.atualizar_status.return_value = _pedido(status=STATUS_PAGO)

        resultado = self.use_case.executar({'type': 'payment', 'data': {'id': 'mp-1'}})

        self.assertEqual(resultado['order_status'], STATUS_PAGO)
        self.pedido_repo_mock.atualizar_status.assert_called_once_with(
            'pedido-1', STATUS_PAGO, id_externo_pagamento='mp-1'
        )

    def test_pedido_cancelado_nao_volta_para_pago(self):
        self.gateway_mock.buscar_pagamento.return_value = _transacao('approved')
        self.pedido_repo_mock.buscar_por_id.return_value = _pedido(status=STATUS_CANCELADO)

        resultado = self.use_case.executar({'type': 'payment', 'data': {'id': 'mp-1'}})

        self.assertEqual(resultado['order_status'], STATUS_CANCELADO)
        self.pedido_repo_mock.atualizar_status.assert_not_called()

    def test_notificacao_que_nao_e_de_pagamento(self):
        resultado = self.use_case.executar({'type': 'merchant_order', 'data': {'id': '99'}})

        self.assertEqual(resultado, {'status': 'ignored', 'reason': 'not_a_payment'})
        self.gateway_mock.buscar_pagamento.assert_not_called()

    def test_formato_antigo_topic_resource(self):
        self.gateway_mock.buscar_pagamento.return_value = _transacao('pending')
        self.pedido_repo_mock.buscar_por_id.return_value = _pedido(transacao_id='mp-1')

        self.use_case.executar({'topic': 'payment', 'resource': 'https://api.mercadopago.com/v1/payments/123'})

        self.gateway_mock.buscar_pagamento.assert_called_once_with('123')

    def test_pagamento_sem_referencia_ou_pedido_desconhecido(self):
        self.gateway_mock.buscar_pagamento.return_value = _transacao('approved', pedido_id=None)
        resultado = self.use_case.executar({'type': 'payment', 'data': {'id': 'mp-1'}})
        self.assertEqual(resultado['reason'], 'missing_external_reference')

        self.gateway_mock.buscar_pagamento.return_value = _transacao('approved', pedido_id='sumiu')
        self.pedido_repo_mock.buscar_por_id.return_value = None
        resultado = self.use_case.executar({'type': 'payment', 'data': {'id': 'mp-1'}})
        self.assertEqual(resultado['reason'], 'order_not_found')

        self.pedido_repo_mock.atualizar_status.assert_not_called()


# ====================================================================
# ADMINISTRAÇÃO
# ====================================================================

class TestGerenciarPedidosAdmin(unittest.TestCase):

    def setUp(self):
        self.pedido_repo_mock = Mock()
        self.pedido_repo_mock.buscar_por_id.return_value = _pedido(status=STATUS_PAGO)
        self.use_case = GerenciarPedidosAdminUseCase(self.pedido_repo_mock)

    def test_atualizar_status_valido(self):
        self.use_case.atualizar_status_manual('pedido-1', ' Shipped ')

        self.pedido_repo_mock.atualizar_status.assert_called_once_with('pedido-1', STATUS_ENVIADO)

    def test_status_invalido(self):
        with self.assertRaises(StatusInvalidoError):
            self.use_case.atualizar_status_manual('pedido-1', 'perdido')
        self.pedido_repo_mock.atualizar_status.assert_not_called()

    def test_pedido_inexistente(self):
        self.pedido_repo_mock.buscar_por_id.return_value = None

        with self.assertRaises(PedidoNaoEncontradoError):
            self.use_case.atualizar_status_manual('nao-existe', STATUS_PAGO)


if __name__ == '__main__':
    unittest.main()
