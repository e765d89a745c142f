"""Keyword vocabularies used by the detector, the classifier prompt and category guessing"""

from typing import Dict, List

from finia_gateway.domain.models import ProfileKind


# Income vocabulary shared by every profile
PERSONAL_INCOME_KEYWORDS = [
    "recebi",
    "recebimento",
    "recebeu",
    "pagamento",
    "pagou",
    "transferiu",
    "depósito",
    "deposito",
    "entrou",
    "caiu",
    "salário",
    "salario",
    "ganho",
    "ganhei",
    "rendimento",
    "aluguel recebido",
    "dividendo",
    "pix recebido",
    "transferência recebida",
    "adiantamento",
    "reembolso",
    "retorno",
]

# Extra income vocabulary for business-individual profiles
BUSINESS_INCOME_KEYWORDS = [
    "freelance",
    "freela",
    "honorário",
    "fatura",
    "venda",
    "vendi",
    "comissão",
    "comissao",
    "royalties",
    "prestação serviço",
    "prestação de serviço",
    "contrato",
    "projeto",
    "cliente pagou",
    "lucro",
    "pró-labore",
    "pro-labore",
]

BUSINESS_KEYWORDS = [
    "empresa",
    "cliente",
    "cnpj",
    "nota fiscal",
    "contrato",
    "projeto",
    "serviço",
    "consultoria",
    "fornecedor",
    "business",
    "corporativo",
    "comercial",
    "b2b",
    "reunião de negócios",
    "empreendimento",
    "escritório",
    "jurídica",
    "pj",
    "profissional",
    "negócio",
    "empreendedor",
    "mei",
    "empresarial",
    "prestação",
    "consultor",
]

PERSONAL_KEYWORDS = [
    "pessoal",
    "casa",
    "família",
    "filhos",
    "supermercado",
    "lazer",
    "restaurante",
    "cinema",
    "shopping",
    "academia",
    "roupas",
    "celular pessoal",
    "faculdade",
    "férias",
    "hobby",
    "presente",
    "física",
    "pf",
    "particular",
    "privado",
    "doméstico",
    "residencial",
    "apartamento",
    "condomínio",
    "iptu",
]

FIXED_EXPENSE_KEYWORDS = [
    "mensal",
    "mensalidade",
    "assinatura",
    "recorrente",
    "fixo",
    "todos os meses",
    "sempre",
    "plano",
    "conta fixa",
    "parcela",
    "prestação",
    "financiamento",
    "aluguel",
    "condomínio",
    "iptu",
    "água",
    "luz",
    "telefone",
    "internet",
    "escola",
    "faculdade",
    "curso",
    "academia",
    "netflix",
    "spotify",
]

VARIABLE_EXPENSE_KEYWORDS = [
    "eventual",
    "pontual",
    "único",
    "uma vez",
    "inesperado",
    "imprevisto",
    "hoje",
    "ontem",
    "esta semana",
    "nesta vez",
    "excepcionalmente",
    "restaurante",
    "compra",
    "cinema",
    "lazer",
    "viagem",
    "presente",
    "emergência",
    "conserto",
    "reparo",
    "médico",
    "remédio",
]

# Expense words fed to the classifier prompt
BUSINESS_EXPENSE_KEYWORDS = [
    "fornecedor",
    "nota fiscal",
    "escritório",
    "material",
    "software",
    "hospedagem",
    "anúncio",
    "marketing",
    "imposto",
    "das",
    "contador",
    "reunião com cliente",
    "almoço com cliente",
    "equipamento",
]

PERSONAL_EXPENSE_KEYWORDS = [
    "mercado",
    "supermercado",
    "padaria",
    "restaurante",
    "ifood",
    "uber",
    "gasolina",
    "farmácia",
    "aluguel",
    "condomínio",
    "luz",
    "água",
    "cinema",
    "roupa",
    "academia",
]

# Base category name (without PJ/PF suffix) -> words that suggest it
CATEGORY_HINTS: Dict[str, List[str]] = {
    "Alimentação": ["almoço", "jantar", "lanche", "café", "restaurante", "mercado", "supermercado", "padaria", "ifood"],
    "Transporte": ["uber", "99", "taxi", "táxi", "gasolina", "combustível", "ônibus", "metrô", "estacionamento"],
    "Moradia": ["aluguel", "condomínio", "luz", "água", "energia", "internet", "iptu", "gás"],
    "Saúde": ["médico", "remédio", "farmácia", "consulta", "hospital", "exame", "dentista"],
    "Lazer": ["cinema", "show", "viagem", "bar", "netflix", "spotify", "passeio"],
    "Educação": ["curso", "faculdade", "escola", "livro", "mensalidade escolar"],
    "Compras": ["roupa", "shopping", "loja", "sapato"],
    "Marketing": ["anúncio", "marketing", "publicidade", "ads", "impulsionamento"],
    "Material de Escritório": ["papel", "caneta", "impressora", "escritório", "papelaria"],
    "Software/Assinaturas": ["software", "assinatura", "licença", "hospedagem", "domínio", "saas"],
    "Serviços Terceiros": ["contador", "contabilidade", "terceirizado", "designer", "freelancer"],
    "Impostos": ["imposto", "das", "iss", "taxa", "tributo", "inss"],
    "Equipamentos": ["notebook", "computador", "equipamento", "monitor", "câmera"],
    "Salário": ["salário", "salario", "pró-labore", "pro-labore"],
    "Freelance": ["freela", "freelance", "bico"],
    "Rendimentos": ["rendimento", "dividendo", "juros", "investimento"],
    "Vendas": ["venda", "vendi", "vendas"],
    "Prestação de Serviços": ["serviço", "projeto", "prestação"],
    "Consultoria": ["consultoria", "mentoria"],
    "Comissões": ["comissão", "comissao"],
}

# Category-name terms used to infer the nature of a custom category
INCOME_CATEGORY_TERMS = [
    "receita",
    "ganho",
    "renda",
    "salário",
    "salario",
    "venda",
    "prestação",
    "serviço",
    "comissão",
    "freelance",
    "consultoria",
    "honorário",
    "rendimento",
    "investimento",
    "dividendo",
    "lucro",
    "prêmio",
    "bônus",
    "royalty",
    "recebimento",
]

EXPENSE_CATEGORY_TERMS = [
    "gasto",
    "despesa",
    "compra",
    "pagamento",
    "conta",
    "alimentação",
    "transporte",
    "moradia",
    "aluguel",
    "saúde",
    "médico",
    "remédio",
    "educação",
    "curso",
    "lazer",
    "viagem",
    "restaurante",
    "mercado",
    "combustível",
    "imposto",
    "taxa",
    "material",
    "equipamento",
    "roupa",
]


def income_keywords(profile_kind: ProfileKind) -> List[str]:
    """Business profiles use the union of business and personal income vocabularies"""
    if profile_kind == ProfileKind.BUSINESS_INDIVIDUAL:
        return PERSONAL_INCOME_KEYWORDS + BUSINESS_INCOME_KEYWORDS
    return list(PERSONAL_INCOME_KEYWORDS)
