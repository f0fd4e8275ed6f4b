from dataclasses import dataclass, field
from decimal import Decimal
from datetime import datetime
from typing import List, Optional, Union
import uuid

# ====================================================================
# CONSTANTES DE DOMÍNIO
# Valores trafegados na API e persistidos no banco.
# ====================================================================

MODO_POR_AREA = "per_area"
MODO_UNIDADE_FIXA = "fixed_unit"
MODOS_PRECO = (MODO_POR_AREA, MODO_UNIDADE_FIXA)

ARTE_UPLOAD = "upload"
ARTE_CRIAR_PARA_MIM = "create_for_me"
OPCOES_ARTE = (ARTE_UPLOAD, ARTE_CRIAR_PARA_MIM)

ENTREGA_RETIRADA = "pickup"
ENTREGA_DOMICILIO = "delivery"
TIPOS_ENTREGA = (ENTREGA_RETIRADA, ENTREGA_DOMICILIO)

PAGAMENTO_CARTAO = "card"
PAGAMENTO_PIX = "pix"
PAGAMENTO_BOLETO = "boleto"
METODOS_PAGAMENTO = (PAGAMENTO_CARTAO, PAGAMENTO_PIX, PAGAMENTO_BOLETO)

STATUS_PENDENTE = "pending"
STATUS_PAGO = "paid"
STATUS_PROCESSANDO = "processing"
STATUS_ENVIADO = "shipped"
STATUS_ENTREGUE = "delivered"
STATUS_CANCELADO = "cancelled"
STATUS_PEDIDO = (
    STATUS_PENDENTE, STATUS_PAGO, STATUS_PROCESSANDO,
    STATUS_ENVIADO, STATUS_ENTREGUE, STATUS_CANCELADO,
)

# Valores fixos gravados no pedido quando o cliente retira no balcão.
RETIRADA_TRANSPORTADORA = "pickup"
RETIRADA_SERVICO = "in-person"
RETIRADA_PRAZO_DIAS = 0

# Limites das colunas de vendas.Pedido e vendas.ItemPedido.
QUANTIDADE_MAXIMA = 100000
CASAS_DIMENSAO = 3
DIMENSAO_MAXIMA = Decimal("99999.999")
AREA_MAXIMA = Decimal("999999.999999")
VALOR_MAXIMO = Decimal("99999999.99")


# ====================================================================
# ENTIDADES CORE
# Representam os objetos de negócio puros.
# ====================================================================

@dataclass
class Usuario:
    """Entidade do Usuário, usada como dona dos pedidos."""
    id: str
    email: str = ""
    nome: str = ""
    is_admin: bool = False


@dataclass
class Produto:
    """
    Entrada do catálogo. O preço gravado aqui é a única fonte confiável
    para o recálculo do pedido; o preço enviado pelo cliente nunca é usado.
    """
    nome: str
    modo_preco: str
    descricao: str = ""
    categoria: str = "banner"
    preco_m2: Optional[Decimal] = None
    preco_unitario: Optional[Decimal] = None
    largura_maxima: Optional[Decimal] = None
    altura_maxima: Optional[Decimal] = None
    imagem_url: Optional[str] = None
    ativo: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def por_area(self) -> bool:
        return self.modo_preco == MODO_POR_AREA

    @property
    def preco_vigente(self) -> Decimal:
        """Preço que vale para o modo de precificação do produto."""
        return self.preco_m2 if self.por_area else self.preco_unitario


@dataclass
class LinhaPorArea:
    """Linha de carrinho de um produto vendido por m² (largura x altura)."""
    produto: Produto
    largura: Decimal
    altura: Decimal
    opcao_arte: str = ARTE_UPLOAD
    arquivo_arte: Optional[str] = None
    taxa_criacao_arte: Decimal = Decimal("0.00")


@dataclass
class LinhaPorUnidade:
    """Linha de carrinho de um produto vendido por unidade."""
    produto: Produto
    quantidade: int
    opcao_arte: str = ARTE_UPLOAD
    arquivo_arte: Optional[str] = None
    taxa_criacao_arte: Decimal = Decimal("0.00")


# A forma da linha é decidida pelo modo de preço gravado no produto.
LinhaCarrinho = Union[LinhaPorArea, LinhaPorUnidade]


@dataclass
class ItemPedido:
    """Snapshot de um item no momento da compra (imutável)."""
    produto_id: str
    nome_produto: str
    modo_preco: str
    preco_unitario: Decimal
    total: Decimal
    largura: Optional[Decimal] = None
    altura: Optional[Decimal] = None
    area: Optional[Decimal] = None
    quantidade: Optional[int] = None
    opcao_arte: str = ARTE_UPLOAD
    arquivo_arte: Optional[str] = None
    taxa_criacao_arte: Decimal = Decimal("0.00")
    pedido_id: Optional[str] = None
    id: Optional[str] = None


@dataclass
class Pedido:
    """Entidade do Pedido de Venda."""
    usuario_id: str
    tipo_entrega: str
    subtotal: Decimal
    taxa_criacao_arte: Decimal
    frete: Decimal
    total: Decimal
    metodo_pagamento: str
    status: str = STATUS_PENDENTE
    endereco_entrega: Optional[str] = None
    transportadora: Optional[str] = None
    servico_frete: Optional[str] = None
    prazo_entrega_dias: Optional[int] = None
    chave_idempotencia: Optional[str] = None
    transacao_id: Optional[str] = None
    id: Optional[str] = None
    data_pedido: datetime = field(default_factory=datetime.now)
    data_atualizacao: Optional[datetime] = None
    itens: List[ItemPedido] = field(default_factory=list)


@dataclass
class TotaisValidados:
    """Resultado do recálculo feito no servidor."""
    subtotal: Decimal
    taxa_criacao_arte: Decimal
    frete: Decimal
    total: Decimal
    itens: List[ItemPedido] = field(default_factory=list)


# ====================================================================
# FRETE
# ====================================================================

@dataclass(frozen=True)
class Pacote:
    """Dimensões físicas do volume (cm) e peso (kg)."""
    altura: Decimal
    largura: Decimal
    comprimento: Decimal
    peso: Decimal


# Tubo padrão usado para enviar banners enrolados.
PACOTE_PADRAO = Pacote(
    altura=Decimal("10"),
    largura=Decimal("10"),
    comprimento=Decimal("60"),
    peso=Decimal("0.5"),
)


@dataclass
class OpcaoFrete:
    """Cotação de uma transportadora/serviço. Não é persistida."""
    id: str
    transportadora: str
    servico: str
    prazo_dias: int
    preco: Decimal
    desconto: Decimal = Decimal("0.00")
    preco_final: Optional[Decimal] = None

    def __post_init__(self):
        if self.preco_final is None:
            self.preco_final = self.preco - self.desconto


@dataclass
class CotacaoFrete:
    """Resposta do cálculo de frete, real ou estimada."""
    opcoes: List[OpcaoFrete]
    cep_origem: str
    fallback: bool = False
    motivo_fallback: Optional[str] = None


@dataclass(frozen=True)
class ConfiguracaoFrete:
    """Credenciais do provedor de frete, passadas explicitamente ao resolvedor."""
    token: Optional[str]
    ambiente: str = "sandbox"


@dataclass(frozen=True)
class PoliticaFrete:
    """Faixa aceitável do frete informado pelo cliente em pedidos com entrega."""
    minimo: Decimal = Decimal("10.00")
    maximo: Decimal = Decimal("200.00")


# ====================================================================
# PAGAMENTO
# ====================================================================

@dataclass
class TransacaoPagamento:
    """Entidade que registra a comunicação com o Gateway de Pagamento."""
    referencia_externa: str  # ID do pagamento no Mercado Pago
    status_pagamento: str    # status bruto do gateway: approved, pending, rejected...
    valor: Decimal
    metodo: str
    pedido_id: Optional[str] = None  # external_reference enviado na criação
    detalhe_status: Optional[str] = None
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None
    url_pagamento: Optional[str] = None  # boleto / ticket
    codigo_barras: Optional[str] = None
    data_transacao: datetime = field(default_factory=datetime.now)
