"""
Diagnostic knowledge base.

Read-only reference data: for each funnel stage, an ordered list of likely
causes and recommended actions. Order is priority; the matcher never reorders
entries.
"""

from types import MappingProxyType
from typing import Mapping

from funnel_engine.models.funnel import DiagnosticEntry


def _entries(stage_id: str, rows: tuple[tuple[str, str, str, str], ...], start: int = 1) -> tuple[DiagnosticEntry, ...]:
    return tuple(
        DiagnosticEntry(
            stage_id=stage_id,
            situation=situation,
            metric_label=metric_label,
            metric_key=metric_key or None,
            action=action,
            priority=start + offset,
        )
        for offset, (situation, metric_label, metric_key, action) in enumerate(rows)
    )


# (situation, metric label, metric key, action)
_LEAD_TO_MQL = (
    ("Anúncios não atraem atenção", "CTR baixo", "ctr",
     "Testar novos criativos, headlines e CTAs. Revisar segmentação."),
    ("Custo por clique alto demais", "CPC/CPM alto", "cpc",
     "Otimizar lances, testar públicos diferentes, melhorar quality score."),
    ("Landing page não converte", "CVR clique → lead baixo", "cvr_click_lead",
     "Melhorar LP: headline, formulário mais curto, prova social, velocidade."),
    ("Leads muito caros", "CPL alto", "cpl",
     "Revisar oferta, testar lead magnet, melhorar conversão da LP."),
    ("Leads de baixa qualidade", "% leads inválidos alto", "invalid_lead_rate",
     "Adicionar campos qualificadores, usar captcha, revisar fonte de tráfego."),
    ("Falta de dados para qualificar", "% leads com fit preenchido baixo", "fit_fill_rate",
     "Adicionar campos de qualificação no formulário ou enriquecer dados."),
)

_MQL_TO_SQL = (
    ("Demora no primeiro contato", "TTFT alto", "ttft",
     "Automatizar distribuição de leads, alertas em tempo real, SLA < 5min."),
    ("Baixo volume de contato em 24h", "Contact rate baixo", "contact_rate_24h",
     "Revisar cadência, distribuição, priorização de leads."),
    ("Leads não atendem/respondem", "Connect rate baixo", "connect_rate",
     "Testar horários, canais (WhatsApp, email), personalização."),
    ("Vendas rejeitando muitos MQLs", "SAL rate baixo", "sal_rate",
     "Alinhar critérios de qualificação entre marketing e vendas."),
    ("MQLs parados por muito tempo", "Aging MQL alto", "mql_aging_days",
     "Criar SLAs, alertas de aging, revisão semanal de pipeline."),
)

_SQL_TO_MEETING = (
    ("SQLs não viram reuniões", "Taxa SQL → reunião baixa", "sql_to_meeting",
     "Revisar abordagem, cadência de follow-up, proposta de valor."),
    ("Baixa taxa de resposta", "Taxa de resposta baixa", "response_rate",
     "Personalizar mensagens, testar diferentes canais e horários."),
    ("Poucas tentativas de contato", "Nº tentativas/SQL baixo", "attempts_per_sql",
     "Aumentar cadência, usar múltiplos canais, persistência."),
    ("Reuniões sem decisor", "% reuniões com decisor baixo", "meeting_with_decision_maker_rate",
     "Qualificar melhor antes de agendar, perguntar sobre stakeholders."),
    ("Demora para agendar", "Tempo até agendar alto", "time_to_schedule_days",
     "Oferecer slots imediatos, usar ferramentas de agendamento."),
)

_MEETING_TO_WIN = (
    ("Baixa taxa de fechamento", "Win rate baixo", "meeting_to_win",
     "Revisar pitch, treinar equipe, analisar objeções comuns."),
    ("Ciclo de vendas muito longo", "Ciclo de vendas alto", "sales_cycle_days",
     "Criar urgência, simplificar proposta, remover fricções."),
    ("Muitas perdas por preço", "Motivos de perda: preço", "loss_reasons",
     "Revisar pricing, ancoragem de valor, negociação."),
    ("Descontos muito altos", "Taxa de desconto alta", "discount_rate",
     "Treinar negociação, definir limites, justificar valor."),
)

_TRAFFIC = (
    ("Produto não corresponde ao canal (Facebook = Intenção, Google = Necessidade)", "CTR/CPC fora do benchmark", "ctr",
     "Definir produtos de Intenção para Facebook e Necessidade para Google"),
    ("Objetivo de campanha incorreto", "CTR/CPC fora do benchmark", "",
     "Conversão AddtoCart/ViewContent = Topo, Purchase = Meio/Fundo, Tráfego = Topo/Meio"),
    ("Público errado", "CTR baixo", "ctr",
     "Trabalhar público condizente com a Persona/Oferta"),
    ("Oferta não atrativa", "CTR baixo", "ctr",
     "Gerar mais valor (Frete Grátis, Desconto, Brinde, Kit)"),
    ("Criativo ruim ou poucos criativos", "CTR baixo", "ctr",
     "Testar mínimo 4 criativos por conjunto, formatos diferentes"),
    ("Copy ruim", "CTR baixo", "ctr",
     "Usar gatilhos de Autoridade, Benefício e Escassez"),
    ("Frequência muito alta (>3 nos últimos 7 dias)", "CPC alto", "cpc",
     "Reduzir frequência, trazer novos públicos para topo"),
    ("Carregamento lento da página de destino", "CPC alto", "cpc",
     "Analisar taxa de carregamento, otimizar página"),
)

_VISITOR_TO_CART = (
    ("UX/UI no Mobile", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Usar checklist de UX/UI mobile"),
    ("UX/UI no Site", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Revisar experiência geral do site"),
    ("Foto e/ou Vídeo do Produto inadequados", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Foto e vídeo atrativos mostrando benefícios, diferenciais e usabilidade"),
    ("Descrição incompleta", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Descrição com benefícios, quebra de objeções, todas as informações do produto"),
    ("Precificação fora do mercado", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Fazer estudo de mercado/benchmark de preços"),
    ("Falta de prova social", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Ter avaliações em vídeo e texto explicando soluções"),
    ("Grade quebrada (estoque)", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Desativar produtos sem estoque, guardar para saldões"),
    ("Produtos anunciados não visíveis", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Garantir produtos anunciados nas primeiras seções"),
    ("Falta de selos de segurança", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Adicionar selos de segurança, bancos, bandeiras de cartão"),
    ("Sazonalidade não considerada", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Garantir escala de produtos por estação"),
    ("Pop-up de carrinho atrapalhando", "Visitantes → Carrinho baixo", "visitor_to_cart",
     "Remover pop-up para metrificação adequada"),
)

_CART_TO_PURCHASE = (
    ("Preço do frete elevado", "Carrinho → Compra baixo", "cart_to_purchase",
     "Contratar Hub de Frete (MelhorEnvio, Enviando, Frenet) ou segmentar região"),
    ("Problemas na plataforma/checkout", "Carrinho → Compra baixo", "cart_to_purchase",
     "Otimizar campos do checkout, usar checkout one page transparente"),
    ("Tempo de entrega elevado", "Carrinho → Compra baixo", "cart_to_purchase",
     "Contratar Hub de Frete ou segmentar por região próxima"),
    ("Recusa elevada de pagamento", "Carrinho → Compra baixo", "cart_to_purchase",
     "Trocar gateway (PayPal, MercadoPago, PagSeguro, Pagar.me)"),
    ("Condições de pagamento ruins", "Carrinho → Compra baixo", "cart_to_purchase",
     "Facilitar parcelamento (mínimo 3x sem juros para ticket baixo)"),
    ("Campo cupom de desconto com problema", "Carrinho → Compra baixo", "cart_to_purchase",
     "Verificar se cupons estão funcionando"),
    ("Falta de confiabilidade no checkout", "Carrinho → Compra baixo", "cart_to_purchase",
     "Reforçar compra segura com slogans e certificados"),
    ("Demora no processamento da compra", "Carrinho → Compra baixo", "cart_to_purchase",
     "Usar SpeedPage Insights para verificar velocidade"),
)

_PURCHASE_TO_PAYMENT = (
    ("Não há processo de recuperação de venda", "Compra → Pagamento baixo", "purchase_to_payment",
     "Iniciar recuperação manual ou automatizada (e-vendas, Active Campaign)"),
    ("Tempo muito longo no boleto", "Compra → Pagamento baixo", "purchase_to_payment",
     "Reduzir vencimento do boleto para máximo 72h"),
    ("Público muito jovem (boletos não pagos)", "Compra → Pagamento baixo", "purchase_to_payment",
     "Revisar segmentação de público nas campanhas"),
    ("Problema com automações de email", "Compra → Pagamento baixo", "purchase_to_payment",
     "Revisar disparos e verificar integrações"),
    ("Gateway de pagamento com recusas em massa", "Compra → Pagamento baixo", "purchase_to_payment",
     "Contatar gateway ou migrar para outro meio de pagamento"),
    ("Problema na plataforma", "Compra → Pagamento baixo", "purchase_to_payment",
     "Migrar para plataformas como Tray, Loja Integrada, NuvemShop"),
    ("Boleto/Pix inválido", "Compra → Pagamento baixo", "purchase_to_payment",
     "Revisar integrações e validar token do gateway"),
    ("Falta de confiabilidade", "Compra → Pagamento baixo", "purchase_to_payment",
     "Reforçar compra segura com certificados nos emails"),
)


DIAGNOSTIC_CATALOG: Mapping[str, tuple[DiagnosticEntry, ...]] = MappingProxyType({
    # Inside sales
    "lead_to_mql": _entries("lead_to_mql", _LEAD_TO_MQL, start=1),
    "mql_to_sql": _entries("mql_to_sql", _MQL_TO_SQL, start=10),
    "sql_to_meeting": _entries("sql_to_meeting", _SQL_TO_MEETING, start=20),
    "meeting_to_win": _entries("meeting_to_win", _MEETING_TO_WIN, start=30),
    # E-commerce
    "traffic": _entries("traffic", _TRAFFIC),
    "visitor_to_cart": _entries("visitor_to_cart", _VISITOR_TO_CART),
    "cart_to_purchase": _entries("cart_to_purchase", _CART_TO_PURCHASE),
    "purchase_to_payment": _entries("purchase_to_payment", _PURCHASE_TO_PAYMENT),
})

STAGE_LABELS: Mapping[str, str] = MappingProxyType({
    "lead_to_mql": "Lead → MQL",
    "mql_to_sql": "MQL → SQL",
    "sql_to_meeting": "SQL → Reunião",
    "meeting_to_win": "Reunião → Contrato",
    "traffic": "Tráfego",
    "visitor_to_cart": "Visitantes → Carrinho",
    "cart_to_purchase": "Carrinho → Compra",
    "purchase_to_payment": "Compra → Pagamento",
})
