# printbrasil/core/use_cases.py
"""
Implementação dos Casos de Uso (Lógica de Negócio) da aplicação.
Esta camada depende apenas das Entidades e Portas (Interfaces) do Core,
garantindo o isolamento da lógica de negócio.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

# Entidades e Exceções
from printbrasil.core.entities import (
    Usuario, Produto, Pedido, ItemPedido, TotaisValidados, PoliticaFrete,
    LinhaCarrinho, LinhaPorArea, LinhaPorUnidade, TransacaoPagamento,
    MODO_POR_AREA, MODO_UNIDADE_FIXA, ARTE_UPLOAD, OPCOES_ARTE,
    ENTREGA_RETIRADA, ENTREGA_DOMICILIO, TIPOS_ENTREGA, METODOS_PAGAMENTO,
    PAGAMENTO_CARTAO, PAGAMENTO_PIX, PAGAMENTO_BOLETO,
    STATUS_PENDENTE, STATUS_PAGO, STATUS_CANCELADO, STATUS_PEDIDO,
    RETIRADA_TRANSPORTADORA, RETIRADA_SERVICO, RETIRADA_PRAZO_DIAS,
    QUANTIDADE_MAXIMA, CASAS_DIMENSAO, DIMENSAO_MAXIMA, AREA_MAXIMA, VALOR_MAXIMO,
)
from printbrasil.core.exceptions import (
    AcessoNegadoError,
    CarrinhoVazioError,
    ConfiguracaoAusenteError,
    DadosInvalidosError,
    DimensoesInvalidasError,
    FreteInvalidoError,
    PedidoNaoEncontradoError,
    PersistenciaError,
    ProdutoNaoEncontradoError,
    QuantidadeInvalidaError,
    StatusInvalidoError,
    TaxaInvalidaError,
    ValoresDivergentesError,
)
from printbrasil.core.monetario import (
    ZERO, arredondar_moeda, calcular_area, converter_decimal, dentro_da_tolerancia
)

# Portas (Interfaces) - Importadas do printbrasil/core/ports.py
from printbrasil.core.ports import (
    IProdutoRepository,
    IPedidoRepository,
    IGatewayPagamento,
)

logger = logging.getLogger(__name__)

ENDERECO_RETIRADA_PADRAO = "Retirada no local - Print Brasil, Av. Paulista, 1000 - São Paulo/SP"


# ====================================================================
# 1. RECÁLCULO E VALIDAÇÃO DE PREÇOS (Fronteira de confiança)
# ====================================================================

def _validar_quantidade(valor) -> int:
    if isinstance(valor, bool) or valor is None:
        raise QuantidadeInvalidaError("Quantidade inválida: deve ser um inteiro positivo.")
    if isinstance(valor, int):
        quantidade = valor
    else:
        numero = converter_decimal(valor, "quantidade", QuantidadeInvalidaError)
        if numero != numero.to_integral_value():
            raise QuantidadeInvalidaError("Quantidade inválida: deve ser um inteiro positivo.")
        quantidade = int(numero)
    if quantidade <= 0:
        raise QuantidadeInvalidaError("Quantidade inválida: deve ser um inteiro positivo.")
    if quantidade > QUANTIDADE_MAXIMA:
        raise QuantidadeInvalidaError(f"Quantidade inválida: máximo de {QUANTIDADE_MAXIMA} unidades por item.")
    return quantidade


def _validar_dimensao(valor, campo: str, maximo_produto: Optional[Decimal], produto: Produto) -> Decimal:
    """
    Medida em metros, positiva, com no máximo 3 casas decimais (precisão
    gravada no item) e dentro do limite do produto.
    """
    medida = converter_decimal(valor, campo, DimensoesInvalidasError)
    if medida <= 0:
        raise DimensoesInvalidasError("Dimensões inválidas: largura e altura devem ser positivas.")
    if maximo_produto is not None and medida > maximo_produto:
        raise DimensoesInvalidasError(
            f"{campo.capitalize()} {medida} excede o máximo de {maximo_produto} m para {produto.nome}."
        )
    if medida > DIMENSAO_MAXIMA:
        raise DimensoesInvalidasError(f"{campo.capitalize()} {medida} excede o máximo de {DIMENSAO_MAXIMA} m.")
    if medida != medida.quantize(Decimal(1).scaleb(-CASAS_DIMENSAO)):
        raise DimensoesInvalidasError(
            f"{campo.capitalize()} {medida} tem mais de {CASAS_DIMENSAO} casas decimais."
        )
    return medida


def montar_linha(produto: Produto, dados: Dict) -> LinhaCarrinho:
    """
    Monta a linha do carrinho conforme o modo de preço GRAVADO no produto.
    Qualquer indicação de tipo vinda do cliente é ignorada.
    """
    opcao_arte = dados.get("opcao_arte") or ARTE_UPLOAD
    if opcao_arte not in OPCOES_ARTE:
        raise DadosInvalidosError(f"Opção de arte inválida: {opcao_arte}.")

    taxa = converter_decimal(dados.get("taxa_criacao_arte") or "0", "taxa de criação de arte", TaxaInvalidaError)
    if taxa < 0:
        raise TaxaInvalidaError("Taxa de criação de arte inválida.")

    comum = dict(
        produto=produto,
        opcao_arte=opcao_arte,
        arquivo_arte=dados.get("arquivo_arte") or None,
        taxa_criacao_arte=arredondar_moeda(taxa),
    )

    if produto.modo_preco == MODO_POR_AREA:
        largura = _validar_dimensao(dados.get("largura"), "largura", produto.largura_maxima, produto)
        altura = _validar_dimensao(dados.get("altura"), "altura", produto.altura_maxima, produto)
        if largura * altura > AREA_MAXIMA:
            raise DimensoesInvalidasError(f"Área de {largura * altura} m² excede o máximo permitido.")
        return LinhaPorArea(largura=largura, altura=altura, **comum)

    if produto.modo_preco == MODO_UNIDADE_FIXA:
        return LinhaPorUnidade(quantidade=_validar_quantidade(dados.get("quantidade")), **comum)

    raise ConfiguracaoAusenteError(f"Produto {produto.id} com modo de preço desconhecido.")


def calcular_valor_linha(linha: LinhaCarrinho) -> Decimal:
    """Valor exato (sem arredondar) da linha, sempre com o preço do catálogo."""
    preco = linha.produto.preco_vigente
    if preco is None or preco <= 0:
        raise ConfiguracaoAusenteError(f"Produto {linha.produto.id} sem preço configurado.")

    if isinstance(linha, LinhaPorArea):
        return calcular_area(linha.largura, linha.altura) * preco
    return linha.quantidade * preco


def snapshot_item(linha: LinhaCarrinho) -> ItemPedido:
    """Cria o ItemPedido (snapshot imutável) a partir da linha validada."""
    produto = linha.produto
    item = ItemPedido(
        produto_id=produto.id,
        nome_produto=produto.nome,
        modo_preco=produto.modo_preco,
        preco_unitario=produto.preco_vigente,
        total=arredondar_moeda(calcular_valor_linha(linha)),
        opcao_arte=linha.opcao_arte,
        arquivo_arte=linha.arquivo_arte,
        taxa_criacao_arte=linha.taxa_criacao_arte,
    )
    if isinstance(linha, LinhaPorArea):
        item.largura = linha.largura
        item.altura = linha.altura
        item.area = linha.largura * linha.altura
    else:
        item.quantidade = linha.quantidade
    return item


class ValidarPrecosPedidoUseCase:
    """
    Recalcula subtotal, taxas de arte e total a partir do catálogo e compara
    com os valores enviados pelo cliente. É a fronteira de confiança do checkout.
    """
    def __init__(self, produto_repo: IProdutoRepository, politica_frete: Optional[PoliticaFrete] = None):
        self.produto_repo = produto_repo
        self.politica_frete = politica_frete or PoliticaFrete()

    def _validar_frete(self, tipo_entrega: str, frete: Decimal):
        if tipo_entrega == ENTREGA_RETIRADA:
            if frete != 0:
                raise FreteInvalidoError("Pedidos para retirada não podem ter frete.")
        elif not (self.politica_frete.minimo <= frete <= self.politica_frete.maximo):
            raise FreteInvalidoError(
                f"Frete fora da faixa permitida "
                f"({self.politica_frete.minimo} a {self.politica_frete.maximo})."
            )

    def executar(
        self,
        itens: List[Dict],
        subtotal,
        taxa_criacao_arte,
        frete,
        total,
        tipo_entrega: str,
    ) -> TotaisValidados:
        if not itens:
            raise CarrinhoVazioError("Carrinho vazio")

        if tipo_entrega not in TIPOS_ENTREGA:
            raise DadosInvalidosError(f"Tipo de entrega inválido: {tipo_entrega}.")

        itens_pedido = []
        subtotal_servidor = ZERO
        taxa_servidor = ZERO

        for dados in itens:
            produto = self.produto_repo.buscar_por_id(dados.get("produto_id"))
            if not produto or not produto.ativo:
                raise ProdutoNaoEncontradoError(f"Produto {dados.get('produto_id')} não encontrado")

            linha = montar_linha(produto, dados)
            item = snapshot_item(linha)
            # Subtotal é a soma dos totais já arredondados de cada item.
            subtotal_servidor += item.total
            taxa_servidor += linha.taxa_criacao_arte
            itens_pedido.append(item)

        subtotal_cliente = converter_decimal(subtotal, "subtotal")
        taxa_cliente = converter_decimal(taxa_criacao_arte if taxa_criacao_arte not in (None, "") else "0",
                                         "taxa de criação de arte")
        frete_cliente = converter_decimal(frete, "frete")
        total_cliente = converter_decimal(total, "total")

        self._validar_frete(tipo_entrega, frete_cliente)

        # O frete é aceito depois da checagem de faixa: ele vem do cálculo de frete, não do carrinho.
        taxa_servidor = arredondar_moeda(taxa_servidor)
        frete_servidor = arredondar_moeda(frete_cliente)
        total_servidor = subtotal_servidor + taxa_servidor + frete_servidor

        if total_servidor > VALOR_MAXIMO:
            raise DadosInvalidosError("Valor do pedido excede o limite permitido.")

        logger.info(
            "[Pedido] Validação: subtotal=%s/%s taxa_arte=%s/%s frete=%s total=%s/%s",
            subtotal_servidor, subtotal_cliente, taxa_servidor, taxa_cliente,
            frete_servidor, total_servidor, total_cliente,
        )

        if not (dentro_da_tolerancia(subtotal_servidor, subtotal_cliente)
                and dentro_da_tolerancia(taxa_servidor, taxa_cliente)
                and dentro_da_tolerancia(total_servidor, total_cliente)):
            logger.warning(
                "[Pedido] Valores divergentes: dif_subtotal=%s dif_taxa_arte=%s dif_total=%s",
                abs(subtotal_servidor - subtotal_cliente),
                abs(taxa_servidor - taxa_cliente),
                abs(total_servidor - total_cliente),
            )
            raise ValoresDivergentesError()

        return TotaisValidados(
            subtotal=subtotal_servidor,
            taxa_criacao_arte=taxa_servidor,
            frete=frete_servidor,
            total=total_servidor,
            itens=itens_pedido,
        )


# ====================================================================
# 2. CASOS DE USO DE PEDIDO E CHECKOUT
# ====================================================================

class CriarPedidoUseCase:
    """
    Caso de Uso que coordena a finalização do checkout:
    Recálculo, Montagem do Pedido e Persistência atômica com os itens.
    """
    def __init__(self,
                 produto_repo: IProdutoRepository,
                 pedido_repo: IPedidoRepository,
                 politica_frete: Optional[PoliticaFrete] = None,
                 endereco_retirada: str = ENDERECO_RETIRADA_PADRAO):

        self.pedido_repo = pedido_repo
        self.validador = ValidarPrecosPedidoUseCase(produto_repo, politica_frete)
        self.endereco_retirada = endereco_retirada

    def _pedido_existente(self, usuario: Usuario, chave: Optional[str]):
        if not chave:
            return None
        pedido = self.pedido_repo.buscar_por_chave_idempotencia(chave)
        if pedido and str(pedido.usuario_id) != str(usuario.id):
            raise DadosInvalidosError("Chave de idempotência já utilizada.")
        return pedido

    def executar(self, usuario: Usuario, dados: Dict) -> Tuple[Pedido, List[ItemPedido], bool]:
        """
        Processa o checkout. Retorna (pedido, itens, criado); `criado` é False
        quando a mesma chave de idempotência já gerou um pedido antes.
        """
        chave = dados.get("chave_idempotencia")
        existente = self._pedido_existente(usuario, chave)
        if existente:
            logger.info("[Pedido] Reenvio do checkout com chave %s, devolvendo pedido %s", chave, existente.id)
            return existente, self.pedido_repo.listar_itens(existente.id), False

        metodo_pagamento = dados.get("metodo_pagamento")
        if metodo_pagamento not in METODOS_PAGAMENTO:
            raise DadosInvalidosError(f"Método de pagamento inválido: {metodo_pagamento}.")

        tipo_entrega = dados.get("tipo_entrega") or ENTREGA_DOMICILIO
        totais = self.validador.executar(
            itens=dados.get("itens") or [],
            subtotal=dados.get("subtotal"),
            taxa_criacao_arte=dados.get("taxa_criacao_arte"),
            frete=dados.get("frete"),
            total=dados.get("total"),
            tipo_entrega=tipo_entrega,
        )

        if tipo_entrega == ENTREGA_RETIRADA:
            endereco = self.endereco_retirada
            transportadora, servico, prazo = RETIRADA_TRANSPORTADORA, RETIRADA_SERVICO, RETIRADA_PRAZO_DIAS
        else:
            endereco = (dados.get("endereco_entrega") or "").strip()
            if not endereco:
                raise DadosInvalidosError("Endereço de entrega é obrigatório.")
            transportadora = dados.get("transportadora")
            servico = dados.get("servico_frete")
            prazo = dados.get("prazo_entrega_dias")

        pedido = Pedido(
            usuario_id=usuario.id,
            status=STATUS_PENDENTE,
            tipo_entrega=tipo_entrega,
            subtotal=totais.subtotal,
            taxa_criacao_arte=totais.taxa_criacao_arte,
            frete=totais.frete,
            total=totais.total,
            endereco_entrega=endereco,
            metodo_pagamento=metodo_pagamento,
            transportadora=transportadora,
            servico_frete=servico,
            prazo_entrega_dias=prazo,
            chave_idempotencia=chave or None,
        )

        try:
            pedido_final = self.pedido_repo.criar_pedido_com_itens(pedido, totais.itens)
        except PersistenciaError:
            # Duas requisições simultâneas com a mesma chave: a segunda perde na unicidade
            existente = self._pedido_existente(usuario, chave)
            if not existente:
                raise
            return existente, self.pedido_repo.listar_itens(existente.id), False

        logger.info("[Pedido] Pedido %s criado para usuário %s (total %s)",
                    pedido_final.id, usuario.id, pedido_final.total)
        return pedido_final, pedido_final.itens, True


def obter_pedido_autorizado(pedido_repo: IPedidoRepository, pedido_id: str, usuario: Usuario) -> Pedido:
    """Busca o pedido e exige que o usuário seja o dono ou administrador."""
    pedido = pedido_repo.buscar_por_id(pedido_id)
    if not pedido:
        raise PedidoNaoEncontradoError("Pedido não encontrado")
    if str(pedido.usuario_id) != str(usuario.id) and not usuario.is_admin:
        raise AcessoNegadoError("Acesso negado")
    return pedido


class ListarPedidosDoUsuarioUseCase:
    """Caso de Uso para listar os pedidos de um cliente (admin vê todos)."""
    def __init__(self, pedido_repo: IPedidoRepository):
        self.pedido_repo = pedido_repo

    def executar(self, usuario: Usuario, status: Optional[str] = None) -> List[Pedido]:
        if usuario.is_admin:
            return self.pedido_repo.listar_todos_pedidos(status)
        return self.pedido_repo.listar_pedidos_por_usuario(usuario.id)


class DetalharPedidoUseCase:
    def __init__(self, pedido_repo: IPedidoRepository):
        self.pedido_repo = pedido_repo

    def executar(self, pedido_id: str, usuario: Usuario) -> Tuple[Pedido, List[ItemPedido]]:
        pedido = obter_pedido_autorizado(self.pedido_repo, pedido_id, usuario)
        return pedido, self.pedido_repo.listar_itens(pedido.id)


# ====================================================================
# 3. PAGAMENTOS
# ====================================================================

# Mapeamento do status do Mercado Pago para o status do pedido.
# Status ausentes do mapa não alteram o pedido.
_STATUS_GATEWAY_PARA_PEDIDO = {
    "approved": STATUS_PAGO,
    "authorized": STATUS_PENDENTE,
    "pending": STATUS_PENDENTE,
    "in_process": STATUS_PENDENTE,
    "in_mediation": STATUS_PENDENTE,
    "rejected": STATUS_CANCELADO,
    "cancelled": STATUS_CANCELADO,
    "refunded": STATUS_CANCELADO,
    "charged_back": STATUS_CANCELADO,
}


def aplicar_status_pagamento(pedido_repo: IPedidoRepository, pedido: Pedido, transacao: TransacaoPagamento) -> Pedido:
    """
    Aplica o resultado do gateway ao pedido. Só pedidos pendentes mudam de
    status; repetir o status atual não faz nada.
    """
    novo_status = _STATUS_GATEWAY_PARA_PEDIDO.get(transacao.status_pagamento)
    if novo_status is None:
        logger.warning("[Pagamento] Status de gateway desconhecido '%s' para pedido %s",
                       transacao.status_pagamento, pedido.id)
        return pedido

    if pedido.status != STATUS_PENDENTE:
        if novo_status != pedido.status:
            logger.warning("[Pagamento] Pedido %s já está '%s'; status '%s' do pagamento %s ignorado",
                           pedido.id, pedido.status, transacao.status_pagamento, transacao.referencia_externa)
        return pedido

    if novo_status == STATUS_PENDENTE and pedido.transacao_id == transacao.referencia_externa:
        return pedido

    logger.info("[Pagamento] Pedido %s: %s -> %s (pagamento %s)",
                pedido.id, pedido.status, novo_status, transacao.referencia_externa)
    return pedido_repo.atualizar_status(pedido.id, novo_status, id_externo_pagamento=transacao.referencia_externa)


class ProcessarPagamentoUseCase:
    """
    Despacha o pagamento de um pedido pendente para o fluxo correto.
    Cartão é síncrono e atualiza o pedido na hora; PIX e boleto devolvem o
    QR Code / boleto e o pedido continua pendente até o webhook.
    """
    def __init__(self, pedido_repo: IPedidoRepository, pagamento_gateway: IGatewayPagamento):
        self.pedido_repo = pedido_repo
        self.pagamento_gateway = pagamento_gateway

    def executar(self, pedido_id: str, usuario: Usuario, metodo: str, dados: Dict) -> Tuple[TransacaoPagamento, Pedido]:
        pedido = obter_pedido_autorizado(self.pedido_repo, pedido_id, usuario)
        if pedido.status != STATUS_PENDENTE:
            raise StatusInvalidoError(f"Pedido {pedido.id} não está pendente de pagamento.")

        transacao = self.pagamento_gateway.criar_pagamento(
            pedido=pedido, metodo=metodo, usuario=usuario, dados=dados
        )
        return transacao, aplicar_status_pagamento(self.pedido_repo, pedido, transacao)

    def pagar_cartao(self, pedido_id: str, usuario: Usuario, dados: Dict):
        return self.executar(pedido_id, usuario, PAGAMENTO_CARTAO, dados)

    def gerar_pix(self, pedido_id: str, usuario: Usuario, dados: Dict):
        return self.executar(pedido_id, usuario, PAGAMENTO_PIX, dados)

    def gerar_boleto(self, pedido_id: str, usuario: Usuario, dados: Dict):
        return self.executar(pedido_id, usuario, PAGAMENTO_BOLETO, dados)


class ProcessarWebhookPagamentoUseCase:
    """
    Use Case para atualizar o status de um pedido baseado na notificação
    de pagamento (Webhook/IPN). Pode receber notificações de pagamentos
    que não foram criados nesta requisição; a aplicação do status é idempotente.
    """
    def __init__(self, pedido_repo: IPedidoRepository, pagamento_gateway: IGatewayPagamento):
        self.pedido_repo = pedido_repo
        self.pagamento_gateway = pagamento_gateway

    @staticmethod
    def _extrair(payload: Dict) -> Tuple[Optional[str], Optional[str]]:
        tipo = payload.get("type") or payload.get("topic")
        if not tipo and payload.get("action"):
            tipo = str(payload["action"]).split(".")[0]

        dados = payload.get("data") if isinstance(payload.get("data"), dict) else {}
        pagamento_id = dados.get("id") or payload.get("resource")
        if pagamento_id is not None:
            pagamento_id = str(pagamento_id).rstrip("/").split("/")[-1]
        return tipo, pagamento_id

    def executar(self, payload: Dict) -> Dict:
        tipo, pagamento_id = self._extrair(payload or {})

        if tipo != "payment" or not pagamento_id:
            logger.info("[MercadoPago][Webhook] Notificação ignorada: tipo=%s id=%s", tipo, pagamento_id)
            return {"status": "ignored", "reason": "not_a_payment"}

        transacao = self.pagamento_gateway.buscar_pagamento(pagamento_id)

        if not transacao.pedido_id:
            logger.warning("[MercadoPago][Webhook] Pagamento %s sem external_reference", pagamento_id)
            return {"status": "ignored", "reason": "missing_external_reference"}

        pedido = self.pedido_repo.buscar_por_id(transacao.pedido_id)
        if not pedido:
            logger.warning("[MercadoPago][Webhook] Pedido %s do pagamento %s não encontrado",
                           transacao.pedido_id, pagamento_id)
            return {"status": "ignored", "reason": "order_not_found"}

        pedido = aplicar_status_pagamento(self.pedido_repo, pedido, transacao)
        return {"status": "ok", "order_id": pedido.id, "order_status": pedido.status}


# ====================================================================
# 4. CASOS DE USO ADMINISTRATIVOS
# ====================================================================

class GerenciarPedidosAdminUseCase:
    """Caso de Uso para listagem e atualização de pedidos (acesso administrativo)."""

    def __init__(self, pedido_repo: IPedidoRepository):
        self.pedido_repo = pedido_repo

    def listar_todos(self, status: Optional[str] = None) -> List[Pedido]:
        """Lista todos os pedidos no sistema, com filtro opcional por status."""
        return self.pedido_repo.listar_todos_pedidos(status)

    def atualizar_status_manual(self, pedido_id: str, novo_status: str) -> Pedido:
        """Atualiza o status de um pedido manualmente (ex: por um administrador)."""
        novo_status = (novo_status or "").strip().lower()

        if novo_status not in STATUS_PEDIDO:
            raise StatusInvalidoError(f"O status '{novo_status}' não é um status de pedido válido.")

        if not self.pedido_repo.buscar_por_id(pedido_id):
            raise PedidoNaoEncontradoError("Pedido não encontrado")

        return self.pedido_repo.atualizar_status(pedido_id, novo_status)
