# mercogestor/domain/models.py
"""
Modelos (dataclasses) do domínio e comandos de entrada.

Observação importante:
- Entidades são montadas a partir dos documentos do store
  (``from_doc``) e voltam ao formato de armazenamento com ``to_dados``.
  As chaves seguem o contrato da API (``nome``, ``productId``,
  ``dataISO``...).
- Comandos (``Novo*``/``Atualizacao*``) são construídos na fronteira por
  ``from_payload``, que valida e converte o corpo recebido. Corpos
  malformados falham cedo com ``InvalidInput``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

from mercogestor.domain.parsers import (
    data_iso,
    normalize_str,
    numero_obrigatorio,
    numero_opcional,
    parse_data,
    parse_numero,
)
from mercogestor.domain.errors import InvalidInput


TIPOS_MOVIMENTO = ("in", "out")
MOTIVOS_SAIDA = ("sale", "consumption", "waste", "adjust")
PAPEIS = ("admin", "operador", "visualizador")
PAPEL_PADRAO = "operador"


def _payload(obj: Any) -> Mapping[str, Any]:
    if obj is None:
        return {}
    if not isinstance(obj, Mapping):
        raise InvalidInput("Corpo da requisição deve ser um objeto JSON.")
    return obj


# -------------------------
# Entidades
# -------------------------

@dataclass(frozen=True)
class Categoria:
    id: str
    categoria: str

    @classmethod
    def from_doc(cls, doc) -> "Categoria":
        return cls(id=doc.id, categoria=str(doc.dados.get("categoria") or ""))

    def to_dados(self) -> Dict[str, Any]:
        return {"categoria": self.categoria}

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **self.to_dados()}


@dataclass(frozen=True)
class Produto:
    """Cadastro de produto. ``categoria`` é o nome da categoria (desnormalizado)."""
    id: str
    nome: str
    unidade: str
    minimo: float = 0.0
    preco: Optional[float] = None
    categoria: Optional[str] = None

    @classmethod
    def from_doc(cls, doc) -> "Produto":
        d = doc.dados
        return cls(
            id=doc.id,
            nome=str(d.get("nome") or ""),
            unidade=str(d.get("unidade") or ""),
            minimo=parse_numero(d.get("minimo")).valor or 0.0,
            preco=parse_numero(d.get("preco")).valor,
            categoria=d.get("categoria"),
        )

    def to_dados(self) -> Dict[str, Any]:
        return {
            "nome": self.nome,
            "unidade": self.unidade,
            "minimo": self.minimo,
            "preco": self.preco,
            "categoria": self.categoria,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **self.to_dados()}


@dataclass(frozen=True)
class Movimento:
    """Evento de estoque: entrada (``in``) ou saída (``out``) de um produto."""
    id: str
    product_id: str
    tipo: str
    quantidade: float
    data_iso: str
    preco_unitario: Optional[float] = None
    validade_lote: Optional[str] = None   # apenas entradas
    motivo: Optional[str] = None          # apenas saídas

    @classmethod
    def from_doc(cls, doc) -> "Movimento":
        d = doc.dados
        return cls(
            id=doc.id,
            product_id=str(d.get("productId") or ""),
            tipo=str(d.get("tipo") or ""),
            quantidade=parse_numero(d.get("quantidade")).valor or 0.0,
            data_iso=str(d.get("dataISO") or ""),
            preco_unitario=parse_numero(d.get("precoUnitario")).valor,
            validade_lote=d.get("validadeLote"),
            motivo=d.get("motivo"),
        )

    def normalizado(self) -> "Movimento":
        """Descarta validade em saídas e motivo em entradas."""
        if self.tipo == "in":
            return replace(self, motivo=None)
        if self.tipo == "out":
            return replace(self, validade_lote=None)
        return self

    def to_dados(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "tipo": self.tipo,
            "quantidade": self.quantidade,
            "dataISO": self.data_iso,
            "precoUnitario": self.preco_unitario,
            "validadeLote": self.validade_lote,
            "motivo": self.motivo,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **self.to_dados()}


@dataclass(frozen=True)
class Usuario:
    id: str
    nome: str
    role: str = PAPEL_PADRAO
    email: Optional[str] = None

    @classmethod
    def from_doc(cls, doc) -> "Usuario":
        d = doc.dados
        return cls(id=doc.id, nome=str(d.get("nome") or ""), role=d.get("role") or PAPEL_PADRAO, email=d.get("email"))

    def to_dict(self) -> Dict[str, Any]:
        out = {"id": self.id, "nome": self.nome, "role": self.role}
        if self.email:
            out["email"] = self.email
        return out


# -------------------------
# Comandos
# -------------------------

@dataclass(frozen=True)
class NovaCategoria:
    categoria: str

    @classmethod
    def from_payload(cls, payload: Any) -> "NovaCategoria":
        nome = normalize_str(_payload(payload).get("categoria"))
        if nome is None:
            raise InvalidInput("O nome da categoria é obrigatório.")
        return cls(categoria=nome)


@dataclass(frozen=True)
class AtualizacaoCategoria:
    campos: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "AtualizacaoCategoria":
        p = _payload(payload)
        campos: Dict[str, Any] = {}
        if "categoria" in p:
            nome = normalize_str(p.get("categoria"))
            if nome is None:
                raise InvalidInput("O nome da categoria não pode ser vazio.")
            campos["categoria"] = nome
        return cls(campos)


@dataclass(frozen=True)
class NovoProduto:
    nome: str
    unidade: str
    minimo: float
    preco: Optional[float] = None
    categoria: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "NovoProduto":
        p = _payload(payload)
        nome = normalize_str(p.get("nome"))
        unidade = normalize_str(p.get("unidade"))
        if nome is None or unidade is None or not parse_numero(p.get("minimo")).presente:
            raise InvalidInput("Nome, unidade e estoque mínimo são obrigatórios.")
        minimo = numero_obrigatorio(p, "minimo")
        if minimo < 0:
            raise InvalidInput("O estoque mínimo não pode ser negativo.")
        return cls(
            nome=nome,
            unidade=unidade,
            minimo=minimo,
            preco=numero_opcional(p, "preco"),
            categoria=normalize_str(p.get("categoria")),
        )

    def to_dados(self) -> Dict[str, Any]:
        return {
            "nome": self.nome,
            "unidade": self.unidade,
            "minimo": self.minimo,
            "preco": self.preco,
            "categoria": self.categoria,
        }


@dataclass(frozen=True)
class AtualizacaoProduto:
    campos: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "AtualizacaoProduto":
        p = _payload(payload)
        campos: Dict[str, Any] = {}
        for chave in ("nome", "unidade"):
            if chave in p:
                valor = normalize_str(p.get(chave))
                if valor is None:
                    raise InvalidInput(f"O campo '{chave}' não pode ser vazio.")
                campos[chave] = valor
        if "minimo" in p:
            minimo = numero_obrigatorio(p, "minimo")
            if minimo < 0:
                raise InvalidInput("O estoque mínimo não pode ser negativo.")
            campos["minimo"] = minimo
        if "preco" in p:
            preco = parse_numero(p.get("preco"))
            if preco.valido or not preco.presente:
                campos["preco"] = preco.valor
        if "categoria" in p:
            # vazio limpa a categoria, como na cascata de remoção
            campos["categoria"] = normalize_str(p.get("categoria")) or ""
        return cls(campos)

    @property
    def categoria(self) -> Optional[str]:
        return self.campos.get("categoria") or None


@dataclass(frozen=True)
class NovoMovimento:
    product_id: str
    tipo: str
    quantidade: float
    data_iso: str
    preco_unitario: Optional[float] = None
    validade_lote: Optional[str] = None
    motivo: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "NovoMovimento":
        p = _payload(payload)
        product_id = normalize_str(p.get("productId"))
        tipo = normalize_str(p.get("tipo"))
        if product_id is None or tipo is None or not parse_numero(p.get("quantidade")).presente \
                or normalize_str(p.get("dataISO")) is None:
            raise InvalidInput("ID do produto, tipo, quantidade e data são obrigatórios.")
        return cls(
            product_id=product_id,
            tipo=_tipo(tipo),
            quantidade=_quantidade(p),
            data_iso=data_iso(p.get("dataISO"), "dataISO"),
            preco_unitario=numero_opcional(p, "precoUnitario"),
            validade_lote=_validade(p.get("validadeLote")),
            motivo=_motivo(p.get("motivo")),
        )

    def to_movimento(self, movement_id: str = "") -> Movimento:
        return Movimento(
            id=movement_id,
            product_id=self.product_id,
            tipo=self.tipo,
            quantidade=self.quantidade,
            data_iso=self.data_iso,
            preco_unitario=self.preco_unitario,
            validade_lote=self.validade_lote,
            motivo=self.motivo,
        ).normalizado()


@dataclass(frozen=True)
class AtualizacaoMovimento:
    campos: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "AtualizacaoMovimento":
        p = _payload(payload)
        campos: Dict[str, Any] = {}
        if "productId" in p:
            product_id = normalize_str(p.get("productId"))
            if product_id is None:
                raise InvalidInput("O ID do produto não pode ser vazio.")
            campos["productId"] = product_id
        if "tipo" in p:
            campos["tipo"] = _tipo(normalize_str(p.get("tipo")))
        if "quantidade" in p:
            campos["quantidade"] = _quantidade(p)
        if "dataISO" in p:
            campos["dataISO"] = data_iso(p.get("dataISO"), "dataISO")
        if "precoUnitario" in p:
            preco = parse_numero(p.get("precoUnitario"))
            if preco.valido or not preco.presente:
                campos["precoUnitario"] = preco.valor
        if "validadeLote" in p:
            # vazio limpa; ilegível é ignorado e mantém a validade gravada
            bruto = normalize_str(p.get("validadeLote"))
            if bruto is None or parse_data(bruto) is not None:
                campos["validadeLote"] = bruto
        if "motivo" in p:
            campos["motivo"] = _motivo(p.get("motivo"))
        return cls(campos)

    @property
    def product_id(self) -> Optional[str]:
        return self.campos.get("productId")


@dataclass(frozen=True)
class NovoUsuario:
    nome: str
    role: str = PAPEL_PADRAO
    email: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "NovoUsuario":
        p = _payload(payload)
        nome = normalize_str(p.get("nome"))
        if nome is None:
            raise InvalidInput("Nome é um campo obrigatório.")
        role = normalize_str(p.get("role")) or PAPEL_PADRAO
        return cls(nome=nome, role=_papel(role), email=normalize_str(p.get("email")))

    def to_dados(self) -> Dict[str, Any]:
        dados: Dict[str, Any] = {"nome": self.nome, "role": self.role}
        if self.email:
            dados["email"] = self.email
        return dados


@dataclass(frozen=True)
class AtualizacaoUsuario:
    campos: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any, permitir_papel: bool = True) -> "AtualizacaoUsuario":
        """``permitir_papel=False`` ignora ``role`` sem validar (ator não é admin)."""
        p = _payload(payload)
        campos: Dict[str, Any] = {}
        if "nome" in p:
            nome = normalize_str(p.get("nome"))
            if nome is None:
                raise InvalidInput("Nome não pode ser vazio.")
            campos["nome"] = nome
        if "role" in p and permitir_papel:
            campos["role"] = _papel(normalize_str(p.get("role")))
        return cls(campos)


# -------------------------
# validações de campo
# -------------------------

def _tipo(tipo: Optional[str]) -> str:
    if tipo not in TIPOS_MOVIMENTO:
        raise InvalidInput("O tipo do movimento deve ser 'in' ou 'out'.")
    return tipo


def _quantidade(p: Mapping[str, Any]) -> float:
    qtd = numero_obrigatorio(p, "quantidade", "A quantidade deve ser um número positivo.")
    if qtd <= 0:
        raise InvalidInput("A quantidade deve ser um número positivo.")
    return qtd


def _validade(valor: Any) -> Optional[str]:
    s = normalize_str(valor)
    if s is None:
        return None
    # validade ilegível é tratada como ausente
    return s if parse_data(s) is not None else None


def _motivo(valor: Any) -> Optional[str]:
    s = normalize_str(valor)
    if s is None:
        return None
    if s not in MOTIVOS_SAIDA:
        raise InvalidInput(f"Motivo inválido. Use um de: {', '.join(MOTIVOS_SAIDA)}.")
    return s


def _papel(role: Optional[str]) -> str:
    if role not in PAPEIS:
        raise InvalidInput(f"Papel inválido. Use um de: {', '.join(PAPEIS)}.")
    return role
